"""Core domain models.

Persistent entities (Character, Location, InventoryItem, Memory,
TimelineEvent) are what the repository hands back; the store underneath only
deals in plain dict rows. Extraction candidates, validation results and
pipeline results are models too, so every boundary is validated and
serialisable with model_dump().
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Ordered: emotion scoring breaks ties by this order.
EMOTIONS: tuple[str, ...] = (
    "neutral",
    "happy",
    "sad",
    "angry",
    "excited",
    "scared",
    "confused",
    "calm",
    "anxious",
    "loving",
)

Severity = Literal["error", "warning", "info"]
InventoryAction = Literal["add", "remove"]
UpdateType = Literal["affection", "emotion", "location", "inventory", "event"]


# ---------------------------------------------------------------------------
# Persistent entities
# ---------------------------------------------------------------------------

class Character(BaseModel):
    """A conversational character and its mutable state."""

    id: str
    name: str
    affection: int = Field(default=0, ge=0, le=100)
    emotion: str = "neutral"
    personality: Any = None  # opaque structured blob
    current_location: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: int | None = None
    updated_at: int | None = None


class Connection(BaseModel):
    """One advisory edge in a location's connected_to list."""

    model_config = ConfigDict(populate_by_name=True)

    location_id: str = Field(validation_alias=AliasChoices("location_id", "locationId", "id"))
    travel_time: float | None = Field(
        default=None, validation_alias=AliasChoices("travel_time", "travelTime")
    )


class Location(BaseModel):
    id: str
    name: str
    type: str | None = None
    parent_location: str | None = None
    connected_to: list[Connection] | None = None  # None: no connection data recorded
    description: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: int | None = None
    updated_at: int | None = None

    def connects_to(self, location_id: str) -> bool:
        return any(c.location_id == location_id for c in self.connected_to or ())


class InventoryItem(BaseModel):
    id: str
    character_id: str
    item_name: str
    item_type: str | None = None
    quantity: int = Field(default=1, ge=0)
    equipped: bool = False
    properties: dict[str, Any] = Field(default_factory=dict)
    created_at: int | None = None
    updated_at: int | None = None


class Memory(BaseModel):
    id: str
    character_id: str
    content: str
    importance: int = Field(default=1, ge=1, le=5)
    timestamp: int
    tags: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: int | None = None
    updated_at: int | None = None


class TimelineEvent(BaseModel):
    id: str
    timestamp: int
    event_type: str
    description: str
    participants: list[str] = Field(default_factory=list)
    location: str | None = None
    importance: int = Field(default=1, ge=1, le=5)
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: int | None = None
    updated_at: int | None = None


class SnapshotInfo(BaseModel):
    """Snapshot metadata; the state blob itself is fetched separately."""

    id: str
    snapshot_time: int
    description: str = ""
    created_at: int | None = None


class ValidationLogEntry(BaseModel):
    id: str
    timestamp: int
    validation_type: str
    passed: bool
    details: dict[str, Any] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidationIssue(BaseModel):
    field: str
    message: str
    severity: Severity = "error"
    context: dict[str, Any] = Field(default_factory=dict)


class ValidationResult(BaseModel):
    """Outcome of one validation call. passed is False iff errors is non-empty."""

    passed: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
    info: list[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationResult:
        errors = [i for i in issues if i.severity == "error"]
        return cls(
            passed=not errors,
            errors=errors,
            warnings=[i for i in issues if i.severity == "warning"],
            info=[i for i in issues if i.severity == "info"],
        )


class RuleOutcome(BaseModel):
    """Verdict returned by a registered validation rule."""

    passed: bool = True
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Extraction candidates
# ---------------------------------------------------------------------------

class AffectionChange(BaseModel):
    delta: int
    new_value: int
    current_value: int


class EmotionScore(BaseModel):
    emotion: str
    confidence: float


class EmotionReading(BaseModel):
    emotion: str
    confidence: float
    alternatives: list[EmotionScore] = Field(default_factory=list)


class LocationChange(BaseModel):
    location: str
    keyword: str


class InventoryChange(BaseModel):
    action: InventoryAction
    item_name: str
    quantity: int = 1
    character_id: str


class ExtractedEvent(BaseModel):
    event_type: str = "general"
    description: str
    timestamp: int
    importance: int = 1
    participants: list[str] = Field(default_factory=list)


class ExtractionResult(BaseModel):
    affection: AffectionChange | None = None
    emotion: EmotionReading | None = None
    location: LocationChange | None = None
    inventory: list[InventoryChange] = Field(default_factory=list)
    events: list[ExtractedEvent] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline results
# ---------------------------------------------------------------------------

class StateUpdate(BaseModel):
    """One candidate the orchestrator processed.

    target_id names the row the update touched (location, inventory item or
    timeline event) when there is one.
    """

    type: UpdateType
    applied: bool = False
    data: dict[str, Any] = Field(default_factory=dict)
    target_id: str | None = None
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)


class ProcessResult(BaseModel):
    extracted: ExtractionResult
    updates: list[StateUpdate] = Field(default_factory=list)
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)
