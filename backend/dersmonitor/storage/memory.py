"""
プロセス内メモリに記録を保持するストレージ
"""
import copy
from typing import Any, Dict, List, Optional

from .base import PersistenceBackend


class InMemoryBackend(PersistenceBackend):
    """テストや一時利用のためのメモリ上のストレージ"""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self._records = copy.deepcopy(records) if records else []
        self.write_count = 0

    def read_all(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self._records)

    def write_all(self, records: List[Dict[str, Any]]) -> None:
        self._records = copy.deepcopy(records)
        self.write_count += 1
