"""
データモデルのパッケージ
"""
from .analysis_result import (
    NARRATIVE_FIELDS,
    AnalysisResult,
    NarrativeResult,
    ScoringResult,
    Sentiment,
    grade_for,
)
from .evaluation import EvaluationDraft, EvaluationRecord, MediaFile
from .rubric import Criterion, RubricCatalog, Section

__all__ = [
    'NARRATIVE_FIELDS',
    'AnalysisResult',
    'Criterion',
    'EvaluationDraft',
    'EvaluationRecord',
    'MediaFile',
    'NarrativeResult',
    'RubricCatalog',
    'ScoringResult',
    'Section',
    'Sentiment',
    'grade_for'
]
