"""
評価記録ストアと永続化ストレージのテストモジュール
"""
import json

import pytest
from pydantic import ValidationError

from conftest import NARRATIVE_RESPONSE, StepClock
from dersmonitor.errors import StorageError
from dersmonitor.models import EvaluationDraft, MediaFile, ScoringResult
from dersmonitor.services.analysis_merge import merge
from dersmonitor.services.record_store import EvaluationRecordStore
from dersmonitor.storage import InMemoryBackend, JsonFileBackend


def make_analysis(overall_score=64):
    scoring = ScoringResult(overall_score=overall_score, category_scores={"A": overall_score})
    return merge(scoring, NARRATIVE_RESPONSE)


class FailingBackend(InMemoryBackend):
    """fail_writes が True の間は書き込みに失敗するストレージ"""

    def __init__(self, records=None):
        super().__init__(records)
        self.fail_writes = False

    def write_all(self, records):
        if self.fail_writes:
            raise StorageError("書き込みに失敗しました")
        super().write_all(records)


def test_submit_without_id_creates_record(store, backend, draft):
    """IDなしの提出は新しい記録を1件作成する"""
    print("\n=== 記録作成のテスト ===")
    record = store.submit(draft, make_analysis())

    assert record.id
    assert record.teacher_name == draft.teacher_name
    assert record.result.overall_score == 64
    assert len(store) == 1
    assert store.get(record.id) == record
    assert backend.write_count == 1


def test_submit_without_id_always_adds(store, draft):
    for expected in range(1, 4):
        store.submit(draft, make_analysis())
        assert len(store.list()) == expected


def test_submit_with_existing_id_replaces(store, draft):
    """既存IDでの提出は件数を増やさず、作成日時を保持する"""
    original = store.submit(draft, make_analysis(50))
    other = store.submit(draft, make_analysis(70))

    edited = original.to_draft().model_copy(update={"topic": "Onluq kəsrlər"})
    updated = store.submit(edited, make_analysis(90))
    store.submit(edited, make_analysis(91))

    assert len(store.list()) == 2
    assert updated.id == original.id
    assert updated.created_at == original.created_at
    assert store.get(original.id).topic == "Onluq kəsrlər"
    assert store.get(original.id).result.overall_score == 91
    assert store.get(other.id).result.overall_score == 70


def test_submit_with_unknown_id_creates_under_that_id(store, draft):
    record = store.submit(draft.model_copy(update={"id": "imported-1"}), make_analysis())
    assert record.id == "imported-1"
    assert "imported-1" in store


def test_list_orders_newest_first(store, draft):
    """t1 < t2 < t3 の順に作成した記録は [t3, t2, t1] で返る"""
    first = store.submit(draft, make_analysis(10))
    second = store.submit(draft, make_analysis(20))
    third = store.submit(draft, make_analysis(30))

    assert [record.id for record in store.list()] == [third.id, second.id, first.id]
    assert first.created_at < second.created_at < third.created_at


def test_edit_keeps_position(store, draft):
    first = store.submit(draft, make_analysis(10))
    second = store.submit(draft, make_analysis(20))

    store.submit(first.to_draft(), make_analysis(99))

    assert [record.id for record in store.list()] == [second.id, first.id]


def test_remove(store, draft):
    record = store.submit(draft, make_analysis())
    store.submit(draft, make_analysis())

    assert store.remove("missing") is False
    assert len(store.list()) == 2

    assert store.remove(record.id) is True
    assert len(store.list()) == 1
    assert store.get(record.id) is None
    assert store.remove(record.id) is False


def test_stored_records_are_read_only(store, backend, draft):
    """取得した記録を書き換えても保存済みの状態は変わらない"""
    media_draft = draft.model_copy(update={"video": MediaFile.from_bytes("ders.mp4", "video/mp4", b"video")})
    record = store.submit(media_draft, make_analysis())

    fetched = store.get(record.id)
    with pytest.raises(TypeError):
        fetched.ratings["1.1"] = 1
    with pytest.raises(TypeError):
        store.list()[0].result.category_scores["A"] = 0
    with pytest.raises(ValidationError):
        fetched.topic = "dəyişdi"
    with pytest.raises(ValidationError):
        fetched.video.name = "başqa.mp4"

    assert store.get(record.id).ratings["1.1"] == draft.ratings["1.1"]
    assert backend.read_all()[0]["ratings"] == draft.ratings
    assert backend.read_all()[0]["result"]["category_scores"] == {"A": 64}


def test_submitting_caller_draft_is_copied(store, draft):
    """提出後に呼び出し側の提出データを変更しても記録は変わらない"""
    editable = draft.model_copy(deep=True)
    record = store.submit(editable, make_analysis())

    editable.ratings["1.1"] = 1

    assert store.get(record.id).ratings["1.1"] == draft.ratings["1.1"]


def test_submit_record_as_draft(store, draft):
    """保存済みの記録をそのまま提出すると同じ記録が置き換えられる"""
    record = store.submit(draft, make_analysis(50))

    replaced = store.submit(store.get(record.id), make_analysis(80))

    assert len(store) == 1
    assert replaced.id == record.id
    assert replaced.created_at == record.created_at
    assert replaced.result.overall_score == 80
    assert replaced.ratings == record.ratings


def test_get_unknown_id(store):
    assert store.get("missing") is None


def test_failed_write_leaves_state_unchanged(draft):
    """書き込みに失敗した場合はメモリ上の記録も変更しない"""
    backend = FailingBackend()
    store = EvaluationRecordStore(backend, clock=StepClock())
    record = store.submit(draft, make_analysis(50))

    backend.fail_writes = True
    with pytest.raises(StorageError):
        store.submit(draft, make_analysis(60))
    with pytest.raises(StorageError):
        store.submit(record.to_draft(), make_analysis(70))
    with pytest.raises(StorageError):
        store.remove(record.id)

    assert [r.id for r in store.list()] == [record.id]
    assert store.get(record.id).result.overall_score == 50


def test_loads_existing_records(draft):
    """ストレージに保存済みの記録を読み込む"""
    backend = InMemoryBackend()
    first_store = EvaluationRecordStore(backend, clock=StepClock())
    created = [first_store.submit(draft, make_analysis(score)) for score in (10, 20)]

    reloaded = EvaluationRecordStore(backend)

    assert reloaded.list() == first_store.list()
    assert reloaded.get(created[0].id) == created[0]


def test_invalid_stored_record():
    backend = InMemoryBackend([{"id": "broken"}])
    with pytest.raises(StorageError):
        EvaluationRecordStore(backend)


def test_duplicate_stored_ids_keep_first(draft):
    backend = InMemoryBackend()
    store = EvaluationRecordStore(backend, clock=StepClock())
    store.submit(draft, make_analysis(10))
    stored = backend.read_all()
    backend.write_all(stored + [dict(stored[0], topic="dublikat")])

    reloaded = EvaluationRecordStore(backend)

    assert len(reloaded) == 1
    assert reloaded.list()[0].topic == draft.topic


def test_json_file_round_trip(tmp_path, draft):
    """JSONファイルに保存した記録を別のストアで読み込めることを確認"""
    print("\n=== JSONファイル保存のテスト ===")
    path = tmp_path / "data" / "evaluations.json"
    store = EvaluationRecordStore(JsonFileBackend(path), clock=StepClock())
    record = store.submit(draft, make_analysis())

    document = json.loads(path.read_text(encoding="utf-8"))
    assert list(document) == ["dersmonitor_evaluations"]
    assert document["dersmonitor_evaluations"][0]["id"] == record.id
    assert document["dersmonitor_evaluations"][0]["result"]["sentiment"] == "High"

    reloaded = EvaluationRecordStore(JsonFileBackend(path))
    assert reloaded.get(record.id) == record


def test_json_file_keeps_other_keys(tmp_path, draft):
    path = tmp_path / "evaluations.json"
    path.write_text(json.dumps({"other": {"keep": True}}), encoding="utf-8")

    store = EvaluationRecordStore(JsonFileBackend(path, collection_key="custom"))
    store.submit(draft, make_analysis())

    document = json.loads(path.read_text(encoding="utf-8"))
    assert document["other"] == {"keep": True}
    assert len(document["custom"]) == 1


def test_json_file_missing_is_empty(tmp_path):
    backend = JsonFileBackend(tmp_path / "missing.json")
    assert backend.read_all() == []


@pytest.mark.parametrize("content", [
    "{broken",
    json.dumps([1, 2, 3]),
    json.dumps({"dersmonitor_evaluations": {"not": "a list"}}),
])
def test_json_file_corrupt(tmp_path, content):
    path = tmp_path / "evaluations.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(StorageError):
        EvaluationRecordStore(JsonFileBackend(path))


def test_json_file_failed_replace_keeps_file(tmp_path, draft, monkeypatch):
    """置き換えに失敗しても既存のファイルと一時ファイルが残らないことを確認"""
    path = tmp_path / "evaluations.json"
    store = EvaluationRecordStore(JsonFileBackend(path), clock=StepClock())
    record = store.submit(draft, make_analysis())
    before = path.read_text(encoding="utf-8")

    def fail_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("dersmonitor.storage.json_file.os.replace", fail_replace)

    with pytest.raises(StorageError):
        store.submit(EvaluationDraft(observer_name="a", teacher_name="b", subject="c"), make_analysis())

    assert path.read_text(encoding="utf-8") == before
    assert [p.name for p in tmp_path.iterdir()] == ["evaluations.json"]
    assert [r.id for r in store.list()] == [record.id]
