"""Tests for world_state.models and world_state.errors."""

import pytest
from pydantic import ValidationError

from world_state.errors import ConstraintViolationError, NotFoundError, StoreError, WorldStateError
from world_state.models import (
    Character,
    Connection,
    Location,
    ProcessResult,
    ExtractionResult,
    ValidationIssue,
    ValidationResult,
)


class TestCharacter:
    def test_defaults(self) -> None:
        c = Character(id="a", name="Alice")
        assert c.affection == 0
        assert c.emotion == "neutral"
        assert c.metadata == {}
        assert c.current_location is None

    @pytest.mark.parametrize("affection", [-1, 101])
    def test_affection_bounds(self, affection) -> None:
        with pytest.raises(ValidationError):
            Character(id="a", name="Alice", affection=affection)


class TestConnection:
    @pytest.mark.parametrize("payload", [
        {"location_id": "hall"},
        {"locationId": "hall"},
        {"id": "hall"},
    ])
    def test_id_aliases(self, payload) -> None:
        assert Connection.model_validate(payload).location_id == "hall"

    def test_travel_time_alias(self) -> None:
        assert Connection.model_validate({"id": "hall", "travelTime": 3}).travel_time == 3

    def test_location_connects_to(self) -> None:
        loc = Location(id="tavern", name="Tavern", connected_to=[{"id": "hall"}])
        assert loc.connects_to("hall")
        assert not loc.connects_to("tavern")


class TestValidationResult:
    def test_split_by_severity(self) -> None:
        result = ValidationResult.from_issues([
            ValidationIssue(field="a", message="bad"),
            ValidationIssue(field="b", message="hmm", severity="warning"),
            ValidationIssue(field="c", message="fyi", severity="info"),
        ])
        assert not result.passed
        assert [i.field for i in result.errors] == ["a"]
        assert [i.field for i in result.warnings] == ["b"]
        assert [i.field for i in result.info] == ["c"]

    def test_warnings_alone_pass(self) -> None:
        result = ValidationResult.from_issues([ValidationIssue(field="b", message="hmm", severity="warning")])
        assert result.passed

    def test_unknown_severity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ValidationIssue(field="a", message="x", severity="fatal")


class TestProcessResult:
    def test_serialises(self) -> None:
        result = ProcessResult(extracted=ExtractionResult())
        data = result.model_dump()
        assert data["updates"] == []
        assert data["extracted"]["inventory"] == []


class TestErrors:
    def test_hierarchy(self) -> None:
        assert issubclass(ConstraintViolationError, StoreError)
        assert issubclass(StoreError, WorldStateError)
        assert issubclass(NotFoundError, LookupError)

    def test_not_found_message(self) -> None:
        err = NotFoundError("Snapshot", "s-1")
        assert str(err) == "Snapshot not found: s-1"
        assert (err.kind, err.entity_id) == ("Snapshot", "s-1")
