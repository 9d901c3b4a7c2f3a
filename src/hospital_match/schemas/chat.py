"""Chat request and response schemas."""

from pydantic import BaseModel, Field

from hospital_match.schemas.search import HospitalHit, MatchItem


class ChatRequest(BaseModel):
    """Request model for chat endpoint."""

    session_id: str = Field(..., description="Caller-supplied conversation id", min_length=1)
    text: str = Field(..., description="User message", min_length=1)


class ChatResponse(BaseModel):
    """Assistant reply with optional audio and the items it refers to."""

    reply: str = Field(..., description="Assistant reply text")
    action: str = Field(..., description="Classified intent action")
    hospitals: list[HospitalHit] = Field(default_factory=list, description="Search results")
    matches: list[MatchItem] = Field(default_factory=list, description="Confirmation matches")
    audio_base64: str | None = Field(None, description="Synthesized reply audio")
    content_type: str | None = Field(None, description="Audio content type")


class TranscriptTurn(BaseModel):
    role: str
    text: str


class TranscriptResponse(BaseModel):
    """Recorded turns of one conversation, oldest first."""

    session_id: str
    turns: list[TranscriptTurn]
