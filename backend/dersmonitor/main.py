"""
ロギング設定とサービスの組み立て
"""
import logging
import sys
from typing import Optional

from .config import get_settings, load_catalog
from .config.settings import Settings
from .services.evaluation_service import EvaluationService
from .services.narrative_service import NarrativeService
from .services.openai_service import OpenAINarrativeService
from .services.record_store import EvaluationRecordStore
from .storage import JsonFileBackend

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    ルートロガーを標準出力に設定する

    Args:
        level: ログレベル名（Noneの場合は設定のLOG_LEVEL、DEBUG有効時はDEBUG）

    Returns:
        logging.Logger: ルートロガー
    """
    level = level or get_settings().effective_log_level
    logger = logging.getLogger()
    logger.setLevel(level)

    # 既存のハンドラをクリア
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # 新しいハンドラを追加
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)
    return logger


def create_evaluation_service(
    settings: Optional[Settings] = None,
    narrative_service: Optional[NarrativeService] = None
) -> EvaluationService:
    """
    設定からカタログ・ストレージ・所見生成サービスを組み立てる

    Args:
        settings: 設定（Noneの場合は環境変数から読み込む）
        narrative_service: 所見生成サービス（Noneの場合はOpenAIを使用）

    Returns:
        EvaluationService: 評価サービス
    """
    settings = settings or get_settings()
    logger = logging.getLogger(__name__)

    catalog = load_catalog(settings.RUBRIC_CATALOG_PATH)
    backend = JsonFileBackend(settings.STORAGE_PATH, collection_key=settings.STORAGE_KEY)
    store = EvaluationRecordStore(backend)

    logger.info(f"{settings.APP_NAME} を初期化しました: 保存先={settings.STORAGE_PATH}")
    return EvaluationService(
        store=store,
        narrative_service=narrative_service or OpenAINarrativeService(settings),
        catalog=catalog,
        settings=settings,
    )
