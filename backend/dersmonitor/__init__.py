"""
授業観察フォームの採点・所見統合・評価記録管理
"""
from .errors import DersMonitorError
from .main import create_evaluation_service, setup_logging

__all__ = [
    'DersMonitorError',
    'create_evaluation_service',
    'setup_logging'
]
