"""
所見生成（外部の分析サービス）とのインターフェース
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Tuple, Union

from ..models.analysis_result import NarrativeResult
from ..models.evaluation import EvaluationDraft, MediaFile
from ..models.rubric import RubricCatalog


@dataclass(frozen=True)
class RatedCriterion:
    """評価済みの基準1件分の情報"""
    section_title: str
    section_weight: float
    criterion_id: str
    label: str
    rating: int
    description: str


@dataclass(frozen=True)
class NarrativeContext:
    """所見生成に渡す評価コンテキスト"""
    observer_name: str
    teacher_name: str
    subject: str
    topic: str
    class_grade: str
    overall_score: int
    rated_criteria: Tuple[RatedCriterion, ...] = ()
    unrated_criteria: Tuple[str, ...] = ()  # 未評価の基準のラベル
    comment: str = ""
    attachments: Tuple[MediaFile, ...] = field(default_factory=tuple)


def build_narrative_context(
    draft: EvaluationDraft,
    catalog: RubricCatalog,
    overall_score: int
) -> NarrativeContext:
    """
    提出データと採点結果から所見生成用のコンテキストを作成する

    Args:
        draft: 提出データ
        catalog: 評価基準カタログ
        overall_score: 計算済みの総合スコア

    Returns:
        NarrativeContext: 評価コンテキスト
    """
    rated: List[RatedCriterion] = []
    unrated: List[str] = []
    for section in catalog:
        for criterion in section.criteria:
            rating = draft.ratings.get(criterion.id, 0)
            if rating > 0:
                rated.append(RatedCriterion(
                    section_title=section.title,
                    section_weight=section.weight,
                    criterion_id=criterion.id,
                    label=criterion.label,
                    rating=rating,
                    description=criterion.description_for(rating) or "",
                ))
            else:
                unrated.append(criterion.label)

    return NarrativeContext(
        observer_name=draft.observer_name,
        teacher_name=draft.teacher_name,
        subject=draft.subject,
        topic=draft.topic,
        class_grade=draft.class_grade,
        overall_score=overall_score,
        rated_criteria=tuple(rated),
        unrated_criteria=tuple(unrated),
        comment=draft.comment,
        attachments=tuple(draft.media_files()),
    )


class NarrativeService(ABC):
    """所見生成サービス"""

    @abstractmethod
    async def analyze(self, context: NarrativeContext) -> Union[NarrativeResult, Mapping[str, Any]]:
        """
        評価コンテキストから所見を生成する

        Returns:
            所見（NarrativeResult、または必須フィールドを持つ辞書）

        Raises:
            NarrativeCollaboratorError: 通信・タイムアウト・解析の失敗
        """
