"""
授業観察の評価記録を表現するモデル
"""
import base64
import binascii
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .analysis_result import AnalysisResult, ReadOnlyIntMapping


class MediaFile(BaseModel):
    """添付メディア（動画・音声）"""
    name: str
    mime_type: str
    data: str  # Base64エンコードされたデータ

    model_config = ConfigDict(frozen=True)

    @field_validator("data")
    @classmethod
    def _check_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"dataはBase64形式である必要があります: {e}") from e
        return value

    @classmethod
    def from_bytes(cls, name: str, mime_type: str, payload: bytes) -> "MediaFile":
        return cls(name=name, mime_type=mime_type, data=base64.b64encode(payload).decode("ascii"))

    def payload(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def size(self) -> int:
        """デコード後のバイト数"""
        padding = self.data[-2:].count("=")
        return len(self.data) * 3 // 4 - padding


class EvaluationDraft(BaseModel):
    """
    提出前の評価データ

    idが設定されている場合は既存記録の編集として扱う。
    """
    id: Optional[str] = None
    observer_name: str = ""
    teacher_name: str = ""
    subject: str = ""
    topic: str = ""
    class_grade: str = ""
    ratings: Dict[str, int] = Field(default_factory=dict)  # 評価基準ID -> 評価値(0は未評価)
    comment: str = ""
    video: Optional[MediaFile] = None
    audio: Optional[MediaFile] = None

    def media_files(self) -> List[MediaFile]:
        return [media for media in (self.video, self.audio) if media is not None]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "observer_name": "Aygün Məmmədova",
                "teacher_name": "Rəşad Əliyev",
                "subject": "Riyaziyyat",
                "topic": "Kəsrlər",
                "class_grade": "9A",
                "ratings": {"1.1": 4, "1.2": 5, "2.1": 3},
                "comment": "Şagirdlər fəal idi.",
            }
        }
    )


class EvaluationRecord(EvaluationDraft):
    """
    永続化された評価記録（変更不可）

    分析結果を持たない記録は存在しない。
    """
    id: str
    created_at: datetime
    ratings: ReadOnlyIntMapping = Field(default_factory=dict, validate_default=True)
    result: AnalysisResult

    model_config = ConfigDict(frozen=True)

    def to_draft(self) -> EvaluationDraft:
        """編集用に、IDを保持した提出データへ戻す"""
        return EvaluationDraft.model_validate(
            self.model_dump(exclude={"created_at", "result"})
        )
