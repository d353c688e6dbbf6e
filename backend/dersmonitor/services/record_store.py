"""
評価記録のライフサイクル（作成・更新・取得・削除）を管理するサービス
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError

from ..errors import StorageError
from ..models.analysis_result import AnalysisResult
from ..models.evaluation import EvaluationDraft, EvaluationRecord
from ..storage.base import PersistenceBackend

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class EvaluationRecordStore:
    """
    評価記録ストア

    記録はIDをキーに1件だけ存在する。変更のたびにコレクション全体を
    ストレージへ書き込み、書き込みに失敗した場合はメモリ上の状態も変更しない。
    """

    def __init__(
        self,
        backend: PersistenceBackend,
        clock: Optional[Callable[[], datetime]] = None,
        id_factory: Optional[Callable[[], str]] = None
    ):
        self.backend = backend
        self.clock = clock or _utc_now
        self.id_factory = id_factory or _new_id
        self._records: Dict[str, EvaluationRecord] = self._load()

    def _load(self) -> Dict[str, EvaluationRecord]:
        """ストレージから記録を読み込む"""
        records: Dict[str, EvaluationRecord] = {}
        for index, raw in enumerate(self.backend.read_all()):
            try:
                record = EvaluationRecord.model_validate(raw)
            except ValidationError as e:
                raise StorageError(
                    f"保存されている記録 #{index} の形式が不正です",
                    details=str(e),
                ) from e
            if record.id in records:
                logger.warning(f"重複したIDの記録を無視します: {record.id}")
                continue
            records[record.id] = record
        logger.info(f"評価記録を読み込みました: {len(records)}件")
        return records

    def _persist(self, records: Dict[str, EvaluationRecord]) -> None:
        self.backend.write_all([record.model_dump(mode="json") for record in records.values()])
        self._records = records

    def submit(self, draft: EvaluationDraft, analysis: AnalysisResult) -> EvaluationRecord:
        """
        評価記録を作成または置き換える

        Args:
            draft: 提出データ（idがあれば既存記録の編集）
            analysis: 完成した分析結果

        Returns:
            EvaluationRecord: 確定した評価記録
        """
        existing = self._records.get(draft.id) if draft.id else None
        # 記録（EvaluationRecord）が渡された場合も提出データの項目だけを使う
        fields = draft.model_dump(include=set(EvaluationDraft.model_fields) - {"id"})

        if existing is not None:
            # 既存記録を同じ位置で置き換え、作成日時は保持する
            record = EvaluationRecord(
                **fields,
                id=existing.id,
                created_at=existing.created_at,
                result=analysis,
            )
            records = dict(self._records)
            records[record.id] = record
            self._persist(records)
            logger.info(f"評価記録を更新しました: id={record.id}")
            return record

        record = EvaluationRecord(
            **fields,
            id=draft.id or self.id_factory(),
            created_at=self.clock(),
            result=analysis,
        )
        # 新しい記録は先頭に追加する
        records = {record.id: record}
        records.update(self._records)
        self._persist(records)
        logger.info(f"評価記録を作成しました: id={record.id}")
        return record

    def list(self) -> List[EvaluationRecord]:
        """作成日時の新しい順に記録を返す"""
        return sorted(self._records.values(), key=lambda record: record.created_at, reverse=True)

    def get(self, record_id: str) -> Optional[EvaluationRecord]:
        """IDで記録を取得する（存在しない場合はNone）"""
        return self._records.get(record_id)

    def remove(self, record_id: str) -> bool:
        """
        記録を削除する

        Returns:
            bool: 記録が存在して削除された場合はTrue
        """
        if record_id not in self._records:
            logger.debug(f"削除対象の記録が存在しません: id={record_id}")
            return False
        records = {rid: record for rid, record in self._records.items() if rid != record_id}
        self._persist(records)
        logger.info(f"評価記録を削除しました: id={record_id}")
        return True

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record_id: str) -> bool:
        return record_id in self._records
