"""
Data models for the mock interview assistant.
Persisted field names follow the storage layout through pydantic aliases.
"""
import uuid
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Sender(str, Enum):
    AI = "ai"
    USER = "user"


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class DetailField(str, Enum):
    """Candidate details collected before questioning, in collection order."""
    NAME = "name"
    EMAIL = "email"
    PHONE = "phone"


class InterviewPhase(Enum):
    NOT_STARTED = "not_started"
    COLLECTING_DETAILS = "collecting_details"
    AWAITING_ANSWER = "awaiting_answer"
    ENDED = "ended"


class CandidateDetails(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def get(self, detail: DetailField) -> Optional[str]:
        return getattr(self, detail.value)

    def next_missing(self) -> Optional[DetailField]:
        """First detail still absent, in collection order."""
        for detail in DetailField:
            if not self.get(detail):
                return detail
        return None


class TranscriptEntry(BaseModel):
    """A single chat message. Question prompts carry their bank index."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    sender: Sender
    text: str
    question_index: Optional[int] = Field(default=None, alias="questionIndex")


class InProgressInterview(BaseModel):
    """The persisted part of an interview session."""
    model_config = ConfigDict(populate_by_name=True)

    transcript: List[TranscriptEntry] = Field(default_factory=list, alias="messages")
    next_question_index: int = Field(default=0, ge=0, alias="questionNumber")
    candidate: CandidateDetails = Field(default_factory=CandidateDetails, alias="candidateDetails")
    pending_detail_field: Optional[DetailField] = Field(default=None, alias="detailToCollect")

    @model_validator(mode="after")
    def no_questions_while_collecting(self):
        if self.pending_detail_field is not None and self.next_question_index > 0:
            raise ValueError("questions cannot be asked while candidate details are being collected")
        return self


class InterviewSession(InProgressInterview):
    """Full state of the active interview, including the transient timer fields."""
    seconds_remaining: int = 0
    time_expired: bool = False
    ended: bool = False


class CompletedSession(BaseModel):
    """A finalized, scored interview in the archive."""
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    interview_id: str = Field(default_factory=lambda: uuid.uuid4().hex, alias="id")
    candidate: CandidateDetails = Field(default_factory=CandidateDetails, alias="candidateDetails")
    transcript: List[TranscriptEntry] = Field(default_factory=list, alias="messages")
    completed_at: str = Field(..., alias="completedAt")
    score: int = Field(..., ge=0, le=60)
    summary: str = ""

    @field_validator("score")
    @classmethod
    def score_in_steps_of_ten(cls, value: int) -> int:
        if value % 10 != 0:
            raise ValueError("score must be a multiple of 10")
        return value

    def matches(self, identity: str) -> bool:
        """Archive identity: the interview id, or completedAt for records written without one."""
        return identity in (self.interview_id, self.completed_at)


class SessionView(BaseModel):
    """Read-model snapshot handed to the presentation layer."""
    phase: InterviewPhase
    transcript: List[TranscriptEntry]
    seconds_remaining: int
    time_expired: bool
    ended: bool
    candidate: CandidateDetails
    pending_detail_field: Optional[DetailField] = None
    question_number: int = 0
    total_questions: int = 0
    awaiting_next_question: bool = False
    storage_warning: Optional[str] = None


# ================================================================
# Request / Response Models
# ================================================================

class TextResponseRequest(BaseModel):
    text: str


class ResumeUploadResponse(BaseModel):
    filename: str
    candidate: CandidateDetails
    superseded: bool = False


class InProgressStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    resume_available: bool = Field(..., alias="resumeAvailable")
