"""
評価サービスのテストモジュール
"""
import logging
import sys

import pytest

from conftest import NARRATIVE_RESPONSE, FakeNarrativeService
from dersmonitor.errors import (
    IncompleteEvaluationError,
    InvalidDraftError,
    InvalidRatingError,
    MissingNarrativeFieldError,
    NarrativeCollaboratorError,
)
from dersmonitor.main import create_evaluation_service, setup_logging
from dersmonitor.models import MediaFile
from dersmonitor.services.evaluation_service import EvaluationService


@pytest.fixture
def evaluation_service(store, narrative_service, catalog, settings):
    """EvaluationServiceのインスタンスを提供するフィクスチャ"""
    return EvaluationService(store, narrative_service, catalog=catalog, settings=settings)


@pytest.mark.asyncio
async def test_submit_creates_record(evaluation_service, narrative_service, draft):
    """採点・所見生成・統合・保存が一連で行われることを確認"""
    print("\n=== 評価提出のテスト ===")
    record = await evaluation_service.submit(draft)

    assert record.result.overall_score == 76
    assert record.result.category_scores["assessment"] == 40
    assert record.result.summary == NARRATIVE_RESPONSE["summary"]
    assert evaluation_service.list_evaluations() == [record]
    assert evaluation_service.get_evaluation(record.id) == record

    # 所見生成には計算済みのスコアと評価済み基準が渡される
    context = narrative_service.calls[0]
    assert context.overall_score == 76
    assert [item.criterion_id for item in context.rated_criteria] == ["1.1", "1.2", "1.3", "2.1", "3.1", "4.1"]
    assert len(context.unrated_criteria) == 16


@pytest.mark.asyncio
async def test_invalid_rating_fails_before_collaborator(evaluation_service, narrative_service, draft):
    """評価値の不備は所見生成の呼び出し前に検出される"""
    bad_draft = draft.model_copy(update={"ratings": {**draft.ratings, "1.1": 7}})

    with pytest.raises(InvalidRatingError):
        await evaluation_service.submit(bad_draft)

    assert narrative_service.calls == []
    assert evaluation_service.list_evaluations() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["observer_name", "teacher_name", "subject"])
async def test_required_fields(evaluation_service, narrative_service, draft, field):
    with pytest.raises(InvalidDraftError):
        await evaluation_service.submit(draft.model_copy(update={field: "  "}))
    assert narrative_service.calls == []


@pytest.mark.asyncio
async def test_media_too_large(evaluation_service, narrative_service, draft, settings):
    video = MediaFile.from_bytes("ders.mp4", "video/mp4", b"x" * (settings.MAX_MEDIA_BYTES + 1))

    with pytest.raises(InvalidDraftError):
        await evaluation_service.submit(draft.model_copy(update={"video": video}))
    assert narrative_service.calls == []


@pytest.mark.asyncio
async def test_incomplete_requires_confirmation(evaluation_service, narrative_service, draft):
    """評価済みの基準が少ない場合は確認がなければ提出しない"""
    sparse = draft.model_copy(update={"ratings": {"1.1": 4, "2.1": 3}})

    with pytest.raises(IncompleteEvaluationError) as exc_info:
        await evaluation_service.submit(sparse)
    assert exc_info.value.rated_count == 2
    assert exc_info.value.min_required == 5
    assert narrative_service.calls == []

    record = await evaluation_service.submit(sparse, confirm_incomplete=True)
    assert evaluation_service.list_evaluations() == [record]


def test_is_incomplete(evaluation_service, draft):
    assert evaluation_service.is_incomplete(draft) is False
    assert evaluation_service.is_incomplete(draft.model_copy(update={"ratings": {}})) is True


@pytest.mark.asyncio
async def test_missing_field_leaves_store_unchanged(store, catalog, settings, draft):
    """所見にrecommendationsがない場合、既存の記録は変更されない"""
    good = EvaluationService(store, FakeNarrativeService(), catalog=catalog, settings=settings)
    existing = await good.submit(draft)

    response = {key: value for key, value in NARRATIVE_RESPONSE.items() if key != "recommendations"}
    broken = EvaluationService(store, FakeNarrativeService(response=response), catalog=catalog, settings=settings)

    with pytest.raises(MissingNarrativeFieldError):
        await broken.submit(existing.to_draft().model_copy(update={"topic": "dəyişdi"}))
    with pytest.raises(MissingNarrativeFieldError):
        await broken.submit(draft)

    assert store.list() == [existing]


@pytest.mark.asyncio
async def test_collaborator_error_propagates(store, catalog, settings, draft):
    """所見生成のエラーはそのまま呼び出し側へ伝わる"""
    error = NarrativeCollaboratorError("bağlantı xətası", error_type="connection")
    service = EvaluationService(store, FakeNarrativeService(error=error), catalog=catalog, settings=settings)

    with pytest.raises(NarrativeCollaboratorError) as exc_info:
        await service.submit(draft)

    assert exc_info.value is error
    assert store.list() == []


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(store, catalog, settings, draft):
    service = EvaluationService(
        store, FakeNarrativeService(error=RuntimeError("boom")), catalog=catalog, settings=settings
    )

    with pytest.raises(NarrativeCollaboratorError) as exc_info:
        await service.submit(draft)

    assert exc_info.value.error_type == "api"
    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert store.list() == []


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [42, "High"])
async def test_non_mapping_response(store, catalog, settings, draft, response):
    """辞書でない所見は解析エラーとして呼び出し側へ伝わる"""
    service = EvaluationService(
        store, FakeNarrativeService(response=response), catalog=catalog, settings=settings
    )

    with pytest.raises(NarrativeCollaboratorError) as exc_info:
        await service.submit(draft)

    assert exc_info.value.error_type == "parse"
    assert store.list() == []


@pytest.mark.asyncio
async def test_timeout(store, catalog, settings, draft):
    """所見生成が設定時間内に終わらない場合はタイムアウトエラー"""
    quick_settings = settings.model_copy(update={"NARRATIVE_TIMEOUT": 0.01})
    service = EvaluationService(
        store, FakeNarrativeService(delay=1.0), catalog=catalog, settings=quick_settings
    )

    with pytest.raises(NarrativeCollaboratorError) as exc_info:
        await service.submit(draft)

    assert exc_info.value.error_type == "timeout"
    assert store.list() == []


@pytest.mark.asyncio
async def test_resubmit_after_failure(store, catalog, settings, draft):
    """失敗した提出の後、同じ内容ですぐに再提出できる"""
    narrative_service = FakeNarrativeService(error=NarrativeCollaboratorError("müvəqqəti xəta"))
    service = EvaluationService(store, narrative_service, catalog=catalog, settings=settings)

    with pytest.raises(NarrativeCollaboratorError):
        await service.submit(draft)

    narrative_service.error = None
    record = await service.submit(draft)

    assert service.list_evaluations() == [record]
    assert len(narrative_service.calls) == 2


@pytest.mark.asyncio
async def test_edit_flow(evaluation_service, draft):
    """保存済みの記録を編集して再提出すると同じ記録が更新される"""
    print("\n=== 評価編集のテスト ===")
    original = await evaluation_service.submit(draft)
    other = await evaluation_service.submit(draft)

    edit = evaluation_service.edit_draft(original.id)
    assert edit.id == original.id
    assert edit.ratings == draft.ratings

    updated = await evaluation_service.submit(edit.model_copy(update={"ratings": {**edit.ratings, "4.1": 5}}))

    assert updated.id == original.id
    assert updated.created_at == original.created_at
    assert updated.result.category_scores["assessment"] == 100
    assert [record.id for record in evaluation_service.list_evaluations()] == [other.id, original.id]
    assert evaluation_service.edit_draft("missing") is None


@pytest.mark.asyncio
async def test_delete(evaluation_service, draft):
    record = await evaluation_service.submit(draft)

    assert evaluation_service.delete_evaluation("missing") is False
    assert evaluation_service.delete_evaluation(record.id) is True
    assert evaluation_service.get_evaluation(record.id) is None
    assert evaluation_service.list_evaluations() == []


@pytest.mark.asyncio
async def test_create_evaluation_service(tmp_path, settings, draft):
    """設定から組み立てたサービスがJSONファイルに保存することを確認"""
    path = tmp_path / "evaluations.json"
    configured = settings.model_copy(update={"STORAGE_PATH": str(path)})

    service = create_evaluation_service(configured, narrative_service=FakeNarrativeService())
    record = await service.submit(draft)

    reopened = create_evaluation_service(configured, narrative_service=FakeNarrativeService())
    assert reopened.get_evaluation(record.id) == record
    assert path.exists()


def test_setup_logging():
    """ルートロガーのハンドラが標準出力の1つに置き換わることを確認"""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        setup_logging("DEBUG")
        logger = setup_logging("WARNING")

        assert logger is root
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        assert logger.handlers[0].stream is sys.stdout
    finally:
        for handler in root.handlers[:]:
            root.removeHandler(handler)
        for handler in saved_handlers:
            root.addHandler(handler)
        root.setLevel(saved_level)
