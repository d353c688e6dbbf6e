"""
テスト共通のフィクスチャ
"""
import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from dersmonitor.config import get_catalog
from dersmonitor.config.settings import Settings
from dersmonitor.models import Criterion, EvaluationDraft, RubricCatalog, Section
from dersmonitor.services.narrative_service import NarrativeService
from dersmonitor.services.record_store import EvaluationRecordStore
from dersmonitor.storage import InMemoryBackend

# 所見生成の正常な応答
NARRATIVE_RESPONSE = {
    "summary": "Dərs ümumilikdə yaxşı planlaşdırılıb.",
    "sentiment": "High",
    "strengths": ["Təlim nəticələri aydın paylaşılıb."],
    "weaknesses": ["Fərdi ehtiyaclar az nəzərə alınıb."],
    "recommendations": ["Diferensial tapşırıqlardan istifadə edin."],
}


def make_criterion(criterion_id: str) -> Criterion:
    return Criterion(
        id=criterion_id,
        label=f"{criterion_id} test",
        levels={level: f"{criterion_id} səviyyə {level}" for level in range(1, 6)},
    )


class FakeNarrativeService(NarrativeService):
    """呼び出しを記録し、あらかじめ決めた応答（またはエラー）を返す所見生成サービス"""

    def __init__(self, response=None, error=None, delay=0.0):
        self.response = dict(NARRATIVE_RESPONSE) if response is None else response
        self.error = error
        self.delay = delay
        self.calls = []

    async def analyze(self, context):
        self.calls.append(context)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


class StepClock:
    """呼び出すたびに1分ずつ進む時計"""

    def __init__(self, start=None):
        self.current = start or datetime(2024, 9, 16, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        now = self.current
        self.current = now + timedelta(minutes=1)
        return now


@pytest.fixture
def catalog():
    """組み込みの観察フォーム"""
    return get_catalog()


@pytest.fixture
def small_catalog():
    """重み60/40の2カテゴリからなるカタログ"""
    return RubricCatalog(sections=(
        Section(id="A", title="Section A", weight=60, criteria=(make_criterion("a1"), make_criterion("a2"))),
        Section(id="B", title="Section B", weight=40, criteria=(make_criterion("b1"), make_criterion("b2"))),
    )).validate()


@pytest.fixture
def settings():
    """環境変数や.envに依存しないテスト用設定"""
    return Settings(
        _env_file=None,
        OPENAI_API_KEY="test-api-key",
        OPENAI_API_LLM_MODEL_NAME="gpt-4o-mini",
        NARRATIVE_TIMEOUT=1.0,
        MIN_RATED_CRITERIA=5,
        MAX_MEDIA_BYTES=1024,
    )


@pytest.fixture
def backend():
    return InMemoryBackend()


@pytest.fixture
def store(backend):
    """メモリ上のストレージを使う評価記録ストア"""
    return EvaluationRecordStore(backend, clock=StepClock())


@pytest.fixture
def narrative_service():
    return FakeNarrativeService()


@pytest.fixture
def draft():
    """必須項目と5件以上の評価を持つ提出データ"""
    return EvaluationDraft(
        observer_name="Aygün Məmmədova",
        teacher_name="Rəşad Əliyev",
        subject="Riyaziyyat",
        topic="Kəsrlər",
        class_grade="9A",
        ratings={"1.1": 4, "1.2": 5, "1.3": 3, "2.1": 4, "3.1": 5, "4.1": 2},
        comment="Şagirdlər fəal idi.",
    )
