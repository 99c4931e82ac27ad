"""Extract -> validate -> apply, one narrative message at a time.

Categories are handled in a fixed order (affection, emotion, location, each
inventory change, each event) and are independent of each other: a candidate
that fails validation, or whose write blows up in the store, is reported and
skipped while the remaining candidates carry on.

A candidate is written only when it passed validation, ``auto_apply`` is on
and the call is not a dry run. ``strict_mode`` only affects reporting: when
off, failed candidates are also listed in ``updates`` (with ``applied=False``)
so a caller can review them.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from world_state.errors import WorldStateError
from world_state.extraction import StateExtractor
from world_state.log import timed
from world_state.models import (
    AffectionChange,
    EmotionReading,
    ExtractedEvent,
    InventoryChange,
    LocationChange,
    ProcessResult,
    StateUpdate,
    UpdateType,
    ValidationIssue,
)
from world_state.repository import StateRepository
from world_state.validation import StateValidator


class StateOrchestrator:
    def __init__(
        self,
        repository: StateRepository,
        validator: StateValidator,
        extractor: StateExtractor,
        *,
        auto_apply: bool = True,
        strict_mode: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.repository = repository
        self.validator = validator
        self.extractor = extractor
        self.auto_apply = auto_apply
        self.strict_mode = strict_mode
        self._log = logger if logger is not None else logging.getLogger(__name__)

    def process_message(self, character_id: str, text: str, *, dry_run: bool = False) -> ProcessResult:
        with timed(self._log, "process_message"):
            extracted = self.extractor.extract_all(character_id, text)
            result = ProcessResult(extracted=extracted)
            apply = self.auto_apply and not dry_run

            if extracted.affection is not None:
                change = extracted.affection
                self._collect(result, self._guarded(
                    "affection", change.model_dump(),
                    lambda: self._affection(character_id, change, apply),
                ))
            if extracted.emotion is not None:
                reading = extracted.emotion
                self._collect(result, self._guarded(
                    "emotion", reading.model_dump(),
                    lambda: self._emotion(character_id, reading, apply),
                ))
            if extracted.location is not None:
                move = extracted.location
                self._collect(result, self._guarded(
                    "location", move.model_dump(),
                    lambda: self._location(character_id, move, apply),
                ))
            for item in extracted.inventory:
                self._collect(result, self._guarded(
                    "inventory", item.model_dump(),
                    lambda item=item: self._inventory(character_id, item, apply),
                ))
            for event in extracted.events:
                self._collect(result, self._guarded(
                    "event", event.model_dump(),
                    lambda event=event: self._event(event, apply),
                ))

        self._log.info(
            "Message processed character=%s updates=%d errors=%d warnings=%d dry_run=%s",
            character_id, len(result.updates), len(result.errors), len(result.warnings), dry_run,
        )
        return result

    def _collect(self, result: ProcessResult, update: StateUpdate) -> None:
        result.errors += update.errors
        result.warnings += update.warnings
        if update.errors and self.strict_mode:
            return
        result.updates.append(update)

    def _guarded(self, update_type: UpdateType, data: dict[str, Any], step: Callable[[], StateUpdate]) -> StateUpdate:
        try:
            return step()
        except WorldStateError as exc:
            self._log.exception("Applying %s update failed", update_type)
            return StateUpdate(
                type=update_type,
                data=data,
                errors=[ValidationIssue(field=update_type, message=str(exc))],
            )

    # ------------------------------------------------------------------
    # Per-category steps
    # ------------------------------------------------------------------

    def _character_field(
        self, update_type: UpdateType, character_id: str, updates: dict[str, Any], data: dict[str, Any], apply: bool
    ) -> StateUpdate:
        validation = self.validator.validate_character_update(character_id, updates)
        update = StateUpdate(
            type=update_type,
            data=data,
            target_id=character_id,
            errors=validation.errors,
            warnings=validation.warnings,
        )
        if validation.passed and apply:
            self.repository.update_character(character_id, updates)
            update.applied = True
        return update

    def _affection(self, character_id: str, change: AffectionChange, apply: bool) -> StateUpdate:
        return self._character_field(
            "affection", character_id, {"affection": change.new_value}, change.model_dump(), apply
        )

    def _emotion(self, character_id: str, reading: EmotionReading, apply: bool) -> StateUpdate:
        return self._character_field(
            "emotion", character_id, {"emotion": reading.emotion}, reading.model_dump(), apply
        )

    def _location(self, character_id: str, move: LocationChange, apply: bool) -> StateUpdate:
        data = move.model_dump()
        location = self.repository.find_location_by_name(move.location)
        if location is None and apply:
            location = self.repository.create_location({"name": move.location, "type": "unknown"})
        if location is None:
            # dry run against an unknown place: nothing to validate yet
            return StateUpdate(type="location", data={**data, "location_id": None})
        update = self._character_field(
            "location", character_id, {"current_location": location.id}, {**data, "location_id": location.id}, apply
        )
        update.target_id = location.id
        return update

    def _inventory(self, character_id: str, change: InventoryChange, apply: bool) -> StateUpdate:
        validation = self.validator.validate_inventory_item(
            character_id, {"item_name": change.item_name, "quantity": change.quantity}
        )
        update = StateUpdate(
            type="inventory",
            data=change.model_dump(),
            errors=validation.errors,
            warnings=validation.warnings,
        )
        if not (validation.passed and apply):
            return update

        if change.action == "add":
            item = self.repository.add_inventory_item(
                character_id, {"item_name": change.item_name, "quantity": change.quantity}
            )
            update.target_id = item.id
            update.applied = True
            return update

        held = next(
            (i for i in self.repository.get_inventory(character_id)
             if change.item_name in i.item_name or i.item_name in change.item_name),
            None,
        )
        if held is None:
            update.warnings.append(ValidationIssue(
                field="inventory",
                message=f"No inventory item matching {change.item_name!r} to remove",
                severity="warning",
            ))
            return update
        self.repository.delete_inventory_item(held.id)
        update.target_id = held.id
        update.applied = True
        return update

    def _event(self, event: ExtractedEvent, apply: bool) -> StateUpdate:
        payload = event.model_dump()
        validation = self.validator.validate_timeline_event(payload)
        update = StateUpdate(
            type="event",
            data=payload,
            errors=validation.errors,
            warnings=validation.warnings,
        )
        if validation.passed and apply:
            stored = self.repository.add_timeline_event(payload)
            update.target_id = stored.id
            update.applied = True
        return update

    def stats(self) -> dict[str, Any]:
        return {
            "repository": self.repository.stats(),
            "validation": self.validator.get_validation_stats(),
        }

    def close(self) -> None:
        self.repository.close()
