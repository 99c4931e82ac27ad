"""Pydantic request models for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from world_state.models import EMOTIONS


class CreateCharacter(BaseModel):
    id: str | None = None
    name: str
    affection: int = Field(default=0, ge=0, le=100)
    emotion: str = "neutral"
    personality: Any = None
    current_location: str | None = None
    metadata: dict[str, Any] | None = None

    @field_validator("emotion")
    @classmethod
    def known_emotion(cls, value: str) -> str:
        if value not in EMOTIONS:
            raise ValueError(f"emotion must be one of {', '.join(EMOTIONS)}")
        return value


class UpdateCharacter(BaseModel):
    """Partial update; range and transition checks run through the validator."""

    name: str | None = None
    affection: int | None = None
    emotion: str | None = None
    personality: Any = None
    current_location: str | None = None
    metadata: dict[str, Any] | None = None


class AddInventoryItem(BaseModel):
    item_name: str
    item_type: str | None = None
    quantity: int = 1
    equipped: bool = False
    properties: dict[str, Any] | None = None


class UpdateInventoryItem(BaseModel):
    item_name: str | None = None
    item_type: str | None = None
    quantity: int | None = None
    equipped: bool | None = None
    properties: dict[str, Any] | None = None


class AddMemory(BaseModel):
    content: str
    importance: int = Field(default=1, ge=1, le=5)
    timestamp: int | None = None
    tags: list[str] | None = None
    metadata: dict[str, Any] | None = None


class CreateLocation(BaseModel):
    id: str | None = None
    name: str
    type: str | None = None
    parent_location: str | None = None
    connected_to: list[dict[str, Any]] | None = None
    description: str | None = None
    metadata: dict[str, Any] | None = None


class AddTimelineEvent(BaseModel):
    event_type: str
    description: str
    timestamp: int | None = None
    participants: list[str] | None = None
    location: str | None = None
    importance: int = 1
    metadata: dict[str, Any] | None = None


class CreateSnapshot(BaseModel):
    description: str = ""


class MessageBody(BaseModel):
    message: str
    dry_run: bool = False
