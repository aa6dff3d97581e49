"""Pydantic schemas for complaints, admin sessions, chat and request/response validation."""
from datetime import datetime, UTC
from enum import Enum
from typing import List, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator

from audio_codec import strip_data_uri
from config import config


class ComplaintStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class StatusFilter(str, Enum):
    ALL = "ALL"
    PENDING = "PENDING"
    RESOLVED = "RESOLVED"


class AdminRole(str, Enum):
    HOSTEL_WARDEN = "Hostel Warden"
    FACULTY_MEMBER = "Faculty Member"
    ANTI_RAGGING_COMMITTEE = "Anti-Ragging Committee"
    STUDENT_COUNCIL = "Student Council"


def _new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Complaint(BaseModel):
    """A single anonymous incident report.

    Records are never edited in place: the store replaces them with
    updated copies, so a snapshot handed to a reader stays stable.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)
    status: ComplaintStatus = ComplaintStatus.PENDING
    category: str = config.CATEGORY_PLACEHOLDER
    is_audio: bool = False
    transcription: Optional[str] = None
    ai_analysis: Optional[str] = None

    @property
    def is_categorized(self) -> bool:
        return self.category != config.CATEGORY_PLACEHOLDER


class AdminProfile(BaseModel):
    """Profile supplied once at login; lives only as long as the session."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "name": "Dr. A. Sharma",
                "role": "Hostel Warden",
                "department": "Mechanical Engineering"
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=200)
    role: AdminRole = AdminRole.HOSTEL_WARDEN
    department: str = Field(..., min_length=1, max_length=200)

    @field_validator("name", "department")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ChatMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    role: Literal["user", "assistant"]
    text: str


class GroundingResult(BaseModel):
    """Search-backed narrative plus the de-duplicated source URLs it cites."""

    text: str = ""
    links: List[str] = Field(default_factory=list)


class SpeechPayload(BaseModel):
    """Synthesized speech as base64 raw PCM (16-bit signed little-endian)."""

    audio: str
    sample_rate: int = config.PCM_SAMPLE_RATE
    channels: int = config.PCM_CHANNELS
    encoding: str = "pcm_s16le"


# ---------------------------------------------------------------------------
# HTTP request bodies
# ---------------------------------------------------------------------------

class ComplaintRequest(BaseModel):
    """Request schema for a typed complaint."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "text": "Seniors are forcing freshers to do their assignments every night."
            }
        }
    )

    text: str = Field(..., min_length=1, max_length=config.MAX_COMPLAINT_CHARS, description="Complaint text")

    @field_validator("text")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Complaint cannot be empty")
        return value


class AudioComplaintRequest(BaseModel):
    """Request schema for a recorded complaint.

    `audio` is the base64 of the recording. A data URI produced by a
    browser FileReader is accepted too; its prefix is stripped.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "audio": "GkXfo59ChoEBQveBAULygQRC84EIQoKEd2VibUKHgQRChYECGFOAZwEAAAAAAAAAAAAA",
                "mime_type": "audio/webm"
            }
        }
    )

    audio: str = Field(..., min_length=1, description="Base64 encoded recording")
    mime_type: str = Field("audio/webm", description="Container type reported by the recorder")

    @field_validator("audio")
    @classmethod
    def drop_data_uri_prefix(cls, value: str) -> str:
        return strip_data_uri(value)


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, max_length=500)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=config.MAX_COMPLAINT_CHARS)


class ChatResponse(BaseModel):
    reply: Optional[ChatMessage] = None
    messages: List[ChatMessage]
