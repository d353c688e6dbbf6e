"""
評価記録の永続化インターフェース
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List


class PersistenceBackend(ABC):
    """
    評価記録のコレクション全体を読み書きするストレージ

    部分更新は行わず、常にコレクション全体を読み書きする。
    """

    @abstractmethod
    def read_all(self) -> List[Dict[str, Any]]:
        """保存されているすべての記録を保存順に返す"""

    @abstractmethod
    def write_all(self, records: List[Dict[str, Any]]) -> None:
        """コレクション全体を置き換える"""
