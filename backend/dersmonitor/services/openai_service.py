"""
OpenAI APIを使用して授業観察の所見を生成するサービス
"""
import json
import logging
from typing import Any, Dict, List, Optional

import httpx
from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncAzureOpenAI,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)

from ..config.settings import Settings, get_settings
from ..errors import NarrativeCollaboratorError
from ..prompt_template.narrative_prompt import SYSTEM_PROMPT, build_user_prompt
from .narrative_service import NarrativeContext, NarrativeService

logger = logging.getLogger(__name__)

# input_audio で送信できる音声形式
AUDIO_FORMATS = {
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
}


def create_client(settings: Settings):
    """設定に応じて非同期のOpenAIクライアントを生成する"""
    timeout = httpx.Timeout(
        connect=10.0,
        read=settings.OPENAI_TIMEOUT,
        write=10.0,
        pool=settings.OPENAI_TIMEOUT
    )
    # 再試行は呼び出し側が判断するため、クライアント側では行わない
    if (settings.OPENAI_API_TYPE or "").lower() == "azure":
        logger.info(f"Azure OpenAIクライアントを初期化: {settings.OPENAI_API_BASE_URL}")
        return AsyncAzureOpenAI(
            api_key=settings.OPENAI_API_KEY,
            api_version=settings.OPENAI_API_VERSION,
            base_url=settings.OPENAI_API_BASE_URL,
            timeout=timeout,
            max_retries=0
        )
    logger.info("OpenAIクライアントを初期化")
    return AsyncOpenAI(
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.OPENAI_API_BASE_URL,
        timeout=timeout,
        max_retries=0
    )


def build_messages(context: NarrativeContext) -> List[Dict[str, Any]]:
    """
    所見生成用のメッセージを作成する

    画像は image_url、wav/mp3 の音声は input_audio として添付する。
    それ以外のメディア（動画など）はチャットでは送信できないため、
    プロンプト内でファイル名と形式のみを伝える。
    """
    content: List[Dict[str, Any]] = [{"type": "text", "text": build_user_prompt(context)}]

    for media in context.attachments:
        if media.mime_type.startswith("image/"):
            content.append({
                "type": "image_url",
                "image_url": {"url": f"data:{media.mime_type};base64,{media.data}"}
            })
        elif media.mime_type in AUDIO_FORMATS:
            content.append({
                "type": "input_audio",
                "input_audio": {"data": media.data, "format": AUDIO_FORMATS[media.mime_type]}
            })
        else:
            logger.warning(f"添付ファイルは送信できない形式のため、プロンプトでの言及のみとします: {media.name} ({media.mime_type})")

    return [
        {"role": "system", "content": SYSTEM_PROMPT},
        {"role": "user", "content": content}
    ]


def parse_narrative_response(text: Optional[str]) -> Dict[str, Any]:
    """
    APIの応答テキストをJSONとして解析する

    Args:
        text: 応答テキスト（コードブロックで囲まれていてもよい）

    Returns:
        Dict[str, Any]: 解析結果

    Raises:
        NarrativeCollaboratorError: 応答が空、またはJSONオブジェクトとして解析できない場合
    """
    if not text or not text.strip():
        raise NarrativeCollaboratorError(
            message="生成されたコンテンツが空です",
            error_type="empty_response",
            details="APIは応答しましたが、生成されたテキストが空でした"
        )

    evaluation_text = text.strip()

    # コードブロックマーカーの除去
    if evaluation_text.startswith("```"):
        lines = evaluation_text.split("\n")[1:]
        if lines and lines[-1].strip().startswith("```"):
            lines = lines[:-1]
        evaluation_text = "\n".join(lines).strip()

    try:
        json_data = json.loads(evaluation_text)
    except json.JSONDecodeError as e:
        logger.debug(f"JSONパースエラー: {e}")
        # 制御文字を除去して再試行
        cleaned_text = "".join(char for char in evaluation_text if ord(char) >= 32)
        try:
            json_data = json.loads(cleaned_text)
        except json.JSONDecodeError:
            raise NarrativeCollaboratorError(
                message="JSONパースエラー",
                error_type="parse",
                details=f"応答のJSONパースに失敗: {e}"
            ) from e

    if not isinstance(json_data, dict):
        raise NarrativeCollaboratorError(
            message="無効な応答形式",
            error_type="parse",
            details="応答がJSONオブジェクトではありません"
        )
    return json_data


def _classify_api_error(error: Exception) -> NarrativeCollaboratorError:
    """OpenAIの例外を所見生成エラーに変換する"""
    if isinstance(error, APITimeoutError):
        error_type, details = "timeout", "API呼び出しがタイムアウトしました"
    elif isinstance(error, APIConnectionError):
        error_type, details = "connection", "APIに接続できません。ネットワーク接続を確認してください"
    elif isinstance(error, RateLimitError):
        error_type, details = "rate_limit", "APIの呼び出し回数制限に達しました"
    elif isinstance(error, AuthenticationError):
        error_type, details = "authentication", "APIキーまたは認証情報が無効です"
    else:
        error_type, details = "api", str(error)
    return NarrativeCollaboratorError(
        message=f"API呼び出しエラー: {error}",
        error_type=error_type,
        details=details
    )


class OpenAINarrativeService(NarrativeService):
    """OpenAI（またはAzure OpenAI）による所見生成サービス"""

    def __init__(self, settings: Optional[Settings] = None, client=None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self):
        # APIキーが未設定でも起動できるよう、初回呼び出し時に生成する
        if self._client is None:
            self._client = create_client(self.settings)
        return self._client

    async def analyze(self, context: NarrativeContext) -> Dict[str, Any]:
        """
        評価コンテキストから所見を生成する

        Args:
            context: 評価コンテキスト

        Returns:
            Dict[str, Any]: 応答をJSONとして解析した辞書（必須フィールドの検証は統合時に行う）

        Raises:
            NarrativeCollaboratorError: 通信・タイムアウト・解析の失敗
        """
        logger.info("\n=== 所見生成リクエスト開始 ===")
        logger.info(f"使用モデル: {self.settings.OPENAI_API_LLM_MODEL_NAME}")
        logger.debug(f"評価済み基準数: {len(context.rated_criteria)}, 添付ファイル数: {len(context.attachments)}")

        messages = build_messages(context)

        try:
            response = await self.client.chat.completions.create(
                model=self.settings.OPENAI_API_LLM_MODEL_NAME,
                messages=messages,
                temperature=self.settings.OPENAI_TEMPERATURE,
                max_tokens=self.settings.OPENAI_MAX_TOKENS,
                response_format={"type": "json_object"}
            )
        except APIError as e:
            classified = _classify_api_error(e)
            logger.error("\n=== API呼び出しエラー ===")
            logger.error(f"エラー種別: {classified.error_type}")
            logger.error(f"エラー内容: {classified.details}")
            raise classified from e

        if not response or not response.choices:
            raise NarrativeCollaboratorError(
                message="APIレスポンスが無効です",
                error_type="empty_response",
                details="APIからの応答が空または無効な形式です"
            )

        content = response.choices[0].message.content
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.info(f"トークン使用量: {usage.total_tokens}")

        result = parse_narrative_response(content)
        logger.info("\n=== 所見生成完了 ===")
        return result
