"""
採点結果と所見を統合するモジュール
"""
import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from ..errors import MissingNarrativeFieldError, NarrativeCollaboratorError
from ..models.analysis_result import NARRATIVE_FIELDS, AnalysisResult, NarrativeResult, ScoringResult

logger = logging.getLogger(__name__)


def merge(
    scoring: ScoringResult,
    narrative: Union[NarrativeResult, Mapping[str, Any]]
) -> AnalysisResult:
    """
    採点結果と所見を統合し、新しい分析結果を生成する

    再計算は行わず、入力はどちらも変更しない。

    Args:
        scoring: 採点エンジンの出力
        narrative: 所見生成の出力（NarrativeResult または応答をそのまま辞書にしたもの）

    Returns:
        AnalysisResult: 統合された分析結果

    Raises:
        MissingNarrativeFieldError: 所見に必須フィールドがない場合
        NarrativeCollaboratorError: 所見が辞書でない、またはフィールドの値の形式が不正な場合
    """
    if isinstance(narrative, NarrativeResult):
        narrative_data = {field: getattr(narrative, field) for field in NARRATIVE_FIELDS}
    elif not isinstance(narrative, Mapping):
        logger.error(f"所見の形式が不正です: {type(narrative).__name__}")
        raise NarrativeCollaboratorError(
            message="所見の形式が不正です",
            error_type="parse",
            details=f"所見はオブジェクトである必要があります: {type(narrative).__name__}",
        )
    else:
        missing_fields = [
            field for field in NARRATIVE_FIELDS
            if field not in narrative or narrative[field] is None
        ]
        if missing_fields:
            logger.error(f"所見の必須フィールドが不足しています: {missing_fields}")
            raise MissingNarrativeFieldError(missing_fields)
        narrative_data = {field: narrative[field] for field in NARRATIVE_FIELDS}

    try:
        return AnalysisResult(
            **narrative_data,
            overall_score=scoring.overall_score,
            category_scores=dict(scoring.category_scores),
        )
    except ValidationError as e:
        logger.error(f"所見の形式が不正です: {e}")
        raise NarrativeCollaboratorError(
            message="所見の形式が不正です",
            error_type="parse",
            details=str(e),
        ) from e
