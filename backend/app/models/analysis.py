from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field, field_validator, model_validator


class MediaKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"
    TEXT = "text"
    UNKNOWN = "unknown"


def media_kind_for(mime_type: str) -> MediaKind:
    normalized = (mime_type or "").split(";", 1)[0].strip().lower()
    if normalized.startswith("image/"):
        return MediaKind.IMAGE
    if normalized == "application/pdf":
        return MediaKind.PDF
    if normalized == "text/plain":
        return MediaKind.TEXT
    return MediaKind.UNKNOWN


@dataclass(frozen=True)
class Attachment:
    filename: str
    mime_type: str
    data: bytes

    @property
    def kind(self) -> MediaKind:
        return media_kind_for(self.mime_type)


class AttachmentInput(BaseModel):
    filename: str = Field(..., min_length=1)
    mimeType: str = ""
    dataBase64: str

    @field_validator("dataBase64")
    @classmethod
    def validate_base64(cls, value: str) -> str:
        try:
            base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ValueError("dataBase64 is not valid base64") from exc
        return value

    def to_attachment(self) -> Attachment:
        return Attachment(
            filename=self.filename,
            mime_type=self.mimeType,
            data=base64.b64decode(self.dataBase64),
        )


class AnalysisRequest(BaseModel):
    essayText: str | None = None
    attachment: AttachmentInput | None = None

    @model_validator(mode="after")
    def require_text_or_attachment(self) -> "AnalysisRequest":
        if not (self.essayText or "").strip() and self.attachment is None:
            raise ValueError("essayText or attachment is required")
        return self


class ViewSelectionInput(BaseModel):
    target: str | int
