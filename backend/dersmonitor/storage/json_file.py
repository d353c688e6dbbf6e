"""
JSONファイルに記録を保存するストレージ
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Union

from ..errors import StorageError
from .base import PersistenceBackend

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_KEY = "dersmonitor_evaluations"


class JsonFileBackend(PersistenceBackend):
    """
    1つのJSONファイルに {コレクションキー: [記録, ...]} の形式で保存する

    書き込みは一時ファイルに書いてから置き換えるため、途中で失敗しても
    既存のファイルは壊れない。
    """

    def __init__(self, path: Union[str, Path], collection_key: str = DEFAULT_COLLECTION_KEY):
        self.path = Path(path)
        self.collection_key = collection_key

    def read_all(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            logger.debug(f"保存ファイルが存在しないため空のコレクションとして扱います: {self.path}")
            return []

        try:
            with self.path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(
                "保存ファイルのJSON解析に失敗しました",
                details=f"{self.path}: {e}",
            ) from e
        except OSError as e:
            raise StorageError(
                "保存ファイルを読み込めません",
                details=f"{self.path}: {e}",
            ) from e

        if not isinstance(document, dict):
            raise StorageError(
                "保存ファイルの形式が不正です",
                details=f"{self.path}: ルートがオブジェクトではありません",
            )

        records = document.get(self.collection_key, [])
        if not isinstance(records, list):
            raise StorageError(
                "保存ファイルの形式が不正です",
                details=f"{self.path}: {self.collection_key} がリストではありません",
            )
        return records

    def write_all(self, records: List[Dict[str, Any]]) -> None:
        # 他のコレクションキーの内容は保持する
        document: Dict[str, Any] = {}
        if self.path.exists():
            try:
                with self.path.open("r", encoding="utf-8") as f:
                    existing = json.load(f)
                if isinstance(existing, dict):
                    document = existing
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"既存の保存ファイルを読み込めないため上書きします: {e}")
        document[self.collection_key] = records

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, ensure_ascii=False, indent=2)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except OSError as e:
            raise StorageError(
                "保存ファイルに書き込めません",
                details=f"{self.path}: {e}",
            ) from e

        logger.debug(f"記録を保存しました: 件数={len(records)}, ファイル={self.path}")
