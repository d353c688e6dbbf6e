"""
評価処理で発生するエラーを定義するモジュール
"""
from typing import List, Optional


class DersMonitorError(Exception):
    """評価処理に関するエラーの基底クラス"""
    error_type = "error"

    def __init__(self, message: str, error_type: Optional[str] = None, details: str = ""):
        self.message = message
        self.error_type = error_type or self.error_type
        self.details = details
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": type(self).__name__,
            "error_type": self.error_type,
            "message": self.message,
            "details": self.details,
        }


class InvalidCatalogError(DersMonitorError):
    """評価基準カタログの不変条件違反"""
    error_type = "catalog"


class InvalidRatingError(DersMonitorError):
    """未知の評価基準ID、または0〜5の範囲外の評価値"""
    error_type = "rating"

    def __init__(self, message: str, criterion_id: Optional[str] = None, details: str = ""):
        self.criterion_id = criterion_id
        super().__init__(message, details=details)


class InvalidDraftError(DersMonitorError):
    """必須項目の欠落やメディアサイズ超過など、提出内容の不備"""
    error_type = "draft"


class IncompleteEvaluationError(DersMonitorError):
    """評価済みの基準が少なく、呼び出し側の確認が必要"""
    error_type = "incomplete"

    def __init__(self, rated_count: int, min_required: int):
        self.rated_count = rated_count
        self.min_required = min_required
        super().__init__(
            f"評価済みの基準が{rated_count}件しかありません（推奨: {min_required}件以上）",
            details="confirm_incomplete=True を指定すると、このまま提出できます",
        )


class MissingNarrativeFieldError(DersMonitorError):
    """所見生成の結果に必須フィールドが含まれていない"""
    error_type = "missing_field"

    def __init__(self, missing_fields: List[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(
            f"所見に必須フィールドがありません: {', '.join(self.missing_fields)}",
            details="所見生成の応答形式を確認してください",
        )


class NarrativeCollaboratorError(DersMonitorError):
    """所見生成の呼び出し（通信、タイムアウト、解析）の失敗"""
    error_type = "api"


class StorageError(DersMonitorError):
    """永続化ストレージの読み書きの失敗"""
    error_type = "storage"
