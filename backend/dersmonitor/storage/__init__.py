"""
評価記録の永続化ストレージ
"""
from .base import PersistenceBackend
from .json_file import DEFAULT_COLLECTION_KEY, JsonFileBackend
from .memory import InMemoryBackend

__all__ = [
    'DEFAULT_COLLECTION_KEY',
    'InMemoryBackend',
    'JsonFileBackend',
    'PersistenceBackend'
]
