"""
評価処理を管理するサービス
"""
import asyncio
import logging
from typing import List, Optional

from ..config.rubric_catalog import get_catalog
from ..config.settings import Settings, get_settings
from ..errors import (
    DersMonitorError,
    IncompleteEvaluationError,
    InvalidDraftError,
    NarrativeCollaboratorError,
)
from ..models.analysis_result import AnalysisResult
from ..models.evaluation import EvaluationDraft, EvaluationRecord
from ..models.rubric import RubricCatalog
from .analysis_merge import merge
from .narrative_service import NarrativeContext, NarrativeService, build_narrative_context
from .record_store import EvaluationRecordStore
from .score_calculator import ScoreCalculator

logger = logging.getLogger(__name__)

# 入力必須の項目（フィールド名, 表示名）
REQUIRED_FIELDS = (
    ("observer_name", "müşahidəçi"),
    ("teacher_name", "müəllim"),
    ("subject", "fənn"),
)


class EvaluationService:
    """授業観察評価サービス"""

    def __init__(
        self,
        store: EvaluationRecordStore,
        narrative_service: NarrativeService,
        catalog: Optional[RubricCatalog] = None,
        settings: Optional[Settings] = None
    ):
        """評価サービスの初期化"""
        self.store = store
        self.narrative_service = narrative_service
        self.catalog = catalog or get_catalog()
        self.settings = settings or get_settings()
        self.score_calculator = ScoreCalculator()
        logger.debug(f"EvaluationService initialized: カテゴリ数={len(self.catalog)}")

    def check_draft(self, draft: EvaluationDraft) -> None:
        """
        提出データの必須項目と添付ファイルのサイズを検証する

        Raises:
            InvalidDraftError: 必須項目が空、または添付ファイルが大きすぎる場合
        """
        missing = [label for name, label in REQUIRED_FIELDS if not getattr(draft, name).strip()]
        if missing:
            raise InvalidDraftError(
                "必須項目が入力されていません",
                details=", ".join(missing),
            )

        for media in draft.media_files():
            if media.size > self.settings.MAX_MEDIA_BYTES:
                raise InvalidDraftError(
                    f"添付ファイルが大きすぎます: {media.name}",
                    details=f"{media.size} bytes（上限 {self.settings.MAX_MEDIA_BYTES} bytes）",
                )

    def is_incomplete(self, draft: EvaluationDraft) -> bool:
        """評価済みの基準数が設定された下限に満たないかどうか"""
        return self.score_calculator.count_rated(draft.ratings) < self.settings.MIN_RATED_CRITERIA

    async def _request_narrative(self, context: NarrativeContext):
        """所見生成を呼び出す（再試行はしない）"""
        try:
            return await asyncio.wait_for(
                self.narrative_service.analyze(context),
                timeout=self.settings.NARRATIVE_TIMEOUT,
            )
        except asyncio.TimeoutError as e:
            raise NarrativeCollaboratorError(
                message="所見生成がタイムアウトしました",
                error_type="timeout",
                details=f"{self.settings.NARRATIVE_TIMEOUT}秒以内に応答がありませんでした",
            ) from e
        except DersMonitorError:
            raise
        except Exception as e:
            logger.error(f"所見生成中に予期せぬエラーが発生: {type(e).__name__}: {e}")
            raise NarrativeCollaboratorError(
                message="所見生成中に予期せぬエラーが発生しました",
                error_type="api",
                details=f"{type(e).__name__}: {e}",
            ) from e

    async def analyze(self, draft: EvaluationDraft, confirm_incomplete: bool = False) -> AnalysisResult:
        """
        提出データを採点し、所見と統合した分析結果を返す（保存はしない）

        Args:
            draft: 提出データ
            confirm_incomplete: 評価済みの基準が少なくても続行する場合はTrue

        Returns:
            AnalysisResult: 分析結果
        """
        # 検証と採点は所見生成の呼び出し前に行う
        self.check_draft(draft)
        scoring = self.score_calculator.score(draft.ratings, self.catalog)

        if self.is_incomplete(draft) and not confirm_incomplete:
            rated_count = self.score_calculator.count_rated(draft.ratings)
            logger.warning(f"評価済みの基準が少ないため確認が必要です: {rated_count}件")
            raise IncompleteEvaluationError(rated_count, self.settings.MIN_RATED_CRITERIA)

        context = build_narrative_context(draft, self.catalog, scoring.overall_score)
        narrative = await self._request_narrative(context)
        return merge(scoring, narrative)

    async def submit(self, draft: EvaluationDraft, confirm_incomplete: bool = False) -> EvaluationRecord:
        """
        評価を提出する

        採点・所見生成・統合がすべて成功した場合のみ記録を保存する。
        途中で失敗した場合、既存の記録は変更されない。

        Args:
            draft: 提出データ（idがあれば既存記録の編集）
            confirm_incomplete: 評価済みの基準が少なくても続行する場合はTrue

        Returns:
            EvaluationRecord: 保存された評価記録

        Raises:
            InvalidDraftError, InvalidRatingError, IncompleteEvaluationError:
                入力の不備（所見生成の呼び出し前に検出）
            MissingNarrativeFieldError, NarrativeCollaboratorError: 所見生成の失敗
        """
        logger.info("\n=== 評価提出プロセスを開始 ===")
        logger.info(f"教師: {draft.teacher_name}, 科目: {draft.subject}, 編集: {draft.id is not None}")

        try:
            analysis = await self.analyze(draft, confirm_incomplete=confirm_incomplete)
        except DersMonitorError as e:
            logger.error(f"評価の提出に失敗しました: {e.error_type} - {e.message}")
            raise

        record = self.store.submit(draft, analysis)

        logger.info("\n=== 評価完了 ===")
        logger.info(f"総合スコア: {analysis.overall_score}点 ({analysis.grade})")
        logger.info(f"記録ID: {record.id}")
        return record

    def list_evaluations(self) -> List[EvaluationRecord]:
        return self.store.list()

    def get_evaluation(self, record_id: str) -> Optional[EvaluationRecord]:
        return self.store.get(record_id)

    def edit_draft(self, record_id: str) -> Optional[EvaluationDraft]:
        """保存済みの記録を編集用の提出データとして取得する"""
        record = self.store.get(record_id)
        return record.to_draft() if record is not None else None

    def delete_evaluation(self, record_id: str) -> bool:
        return self.store.remove(record_id)
