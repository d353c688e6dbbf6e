"""
アプリケーション設定を管理するモジュール
"""
from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """環境設定クラス"""
    # アプリケーション設定
    APP_NAME: str = "DersMonitor"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # OpenAI API設定
    OPENAI_API_KEY: str | None = None
    OPENAI_API_TYPE: str | None = None  # "azure" の場合は Azure OpenAI を使用
    OPENAI_API_VERSION: str | None = None
    OPENAI_API_BASE_URL: str | None = None
    OPENAI_API_LLM_MODEL_NAME: str = "gpt-4o-mini"
    OPENAI_MAX_TOKENS: int = 2000
    OPENAI_TEMPERATURE: float = 0.4
    OPENAI_TIMEOUT: int = 60

    # 所見生成全体のタイムアウト（秒）
    NARRATIVE_TIMEOUT: float = 120.0

    # 永続化設定
    STORAGE_PATH: str = "data/evaluations.json"
    STORAGE_KEY: str = "dersmonitor_evaluations"

    # 評価基準設定（未指定の場合は組み込みの観察フォームを使用）
    RUBRIC_CATALOG_PATH: str | None = None

    # 提出ポリシー
    MIN_RATED_CRITERIA: int = 5
    MAX_MEDIA_BYTES: int = 20 * 1024 * 1024

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # 未定義の環境変数を無視する
    )

    @property
    def effective_log_level(self) -> str:
        """DEBUGが有効な場合はログレベルをDEBUGに引き上げる"""
        return "DEBUG" if self.DEBUG else self.LOG_LEVEL.upper()


@lru_cache()
def get_settings() -> Settings:
    """
    設定インスタンスを取得（キャッシュ付き）

    Returns:
        Settings: 設定インスタンス
    """
    return Settings()
