"""
採点結果と所見を統合した分析結果を表現するモデル
"""
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Dict, Mapping, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer, field_validator


def _read_only(value: Mapping[str, int]) -> Mapping[str, int]:
    return MappingProxyType(dict(value))


def _plain_dict(value: Mapping[str, int]) -> Dict[str, int]:
    return dict(value)


# 生成後に変更できない「ID -> 整数」の対応（シリアライズ時は通常の辞書）
ReadOnlyIntMapping = Annotated[
    Mapping[str, int],
    AfterValidator(_read_only),
    PlainSerializer(_plain_dict),
]

# 総合スコアの評語（下限, 評語）
GRADE_THRESHOLDS = (
    (90, "Əla"),
    (75, "Yaxşı"),
    (50, "Kafi"),
    (0, "Zəif"),
)


# 所見生成の応答に必須のフィールド
NARRATIVE_FIELDS = ("summary", "sentiment", "strengths", "weaknesses", "recommendations")


def grade_for(score: int) -> str:
    """総合スコアに対応する評語を返す"""
    for lower_bound, label in GRADE_THRESHOLDS:
        if score >= lower_bound:
            return label
    return GRADE_THRESHOLDS[-1][1]


class Sentiment(str, Enum):
    """授業全体の質の評価"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, value) -> "Sentiment":
        """英語表記とアゼルバイジャン語表記のどちらも受け付ける"""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"sentimentは文字列である必要があります: {value!r}")
        normalized = value.strip().casefold()
        for sentiment, aliases in _SENTIMENT_ALIASES.items():
            if normalized in aliases:
                return sentiment
        raise ValueError(f"未知のsentimentです: {value!r}")


_SENTIMENT_ALIASES = {
    Sentiment.HIGH: {"high", "yüksək"},
    Sentiment.MEDIUM: {"medium", "orta"},
    Sentiment.LOW: {"low", "aşağı"},
}


class ScoringResult(BaseModel):
    """採点エンジンの出力"""
    overall_score: int = Field(ge=0, le=100)
    category_scores: ReadOnlyIntMapping

    model_config = ConfigDict(frozen=True)


class NarrativeResult(BaseModel):
    """所見生成の出力"""
    summary: str
    sentiment: Sentiment
    strengths: Tuple[str, ...]
    weaknesses: Tuple[str, ...]
    recommendations: Tuple[str, ...]

    model_config = ConfigDict(frozen=True)

    @field_validator("sentiment", mode="before")
    @classmethod
    def _parse_sentiment(cls, value):
        return Sentiment.parse(value)


class AnalysisResult(NarrativeResult):
    """
    所見と採点結果を統合した分析結果

    生成後は変更不可。
    """
    overall_score: int = Field(ge=0, le=100)
    category_scores: ReadOnlyIntMapping

    @property
    def grade(self) -> str:
        return grade_for(self.overall_score)

    @property
    def scoring(self) -> ScoringResult:
        return ScoringResult(
            overall_score=self.overall_score,
            category_scores=dict(self.category_scores),
        )

    @property
    def narrative(self) -> NarrativeResult:
        return NarrativeResult(
            summary=self.summary,
            sentiment=self.sentiment,
            strengths=self.strengths,
            weaknesses=self.weaknesses,
            recommendations=self.recommendations,
        )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "summary": "Dərs ümumilikdə yaxşı planlaşdırılıb.",
                "sentiment": "High",
                "strengths": ["Məzmun aydın izah edilir."],
                "weaknesses": ["Rəy nadir hallarda verilir."],
                "recommendations": ["Özünüqiymətləndirmə üsullarını tətbiq edin."],
                "overall_score": 78,
                "category_scores": {
                    "planning_instruction": 80,
                    "environment": 90,
                    "outcomes": 70,
                    "assessment": 60,
                },
            }
        },
    )
