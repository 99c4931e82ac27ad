"""Validation gate for proposed state changes.

Every check reads committed state through the repository and returns a
ValidationResult; nothing here writes state except the audit log. Severity
decides the outcome: any ERROR fails the check, WARNING and INFO are carried
along for the caller but never block.

On top of the built-in checks sits an ordered rule registry. Each typed
validator also runs the rules registered for its category plus the
``general`` ones, in registration order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from world_state.errors import WorldStateError
from world_state.log import timed
from world_state.models import EMOTIONS, RuleOutcome, ValidationIssue, ValidationResult
from world_state.repository import StateRepository
from world_state.store import now_ms

CATEGORIES: tuple[str, ...] = ("character", "timeline", "location", "inventory", "general")

AFFECTION_MIN = 0
AFFECTION_MAX = 100
AFFECTION_MAX_STEP = 20

# current emotion -> emotions it rarely jumps to directly
UNLIKELY_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "happy": ("sad", "angry", "scared"),
    "sad": ("happy", "excited"),
    "angry": ("happy", "loving"),
    "calm": ("angry", "anxious"),
}

EQUIPMENT_SLOTS: tuple[str, ...] = ("weapon", "armor", "accessory")

FUTURE_TOLERANCE_MS = 24 * 60 * 60 * 1000
MAX_PARTICIPANTS = 10
MAX_QUANTITY = 999

RulePredicate = Callable[[dict[str, Any]], RuleOutcome | dict[str, Any]]


@dataclass
class ValidationRule:
    name: str
    category: str
    predicate: RulePredicate


def _error(field: str, message: str, **context: Any) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity="error", context=context)


def _warning(field: str, message: str, **context: Any) -> ValidationIssue:
    return ValidationIssue(field=field, message=message, severity="warning", context=context)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Default rules
# ---------------------------------------------------------------------------

def no_negative_affection(data: dict[str, Any]) -> RuleOutcome:
    value = data.get("affection")
    if _is_int(value) and value < 0:
        return RuleOutcome(passed=False, errors=[_error("affection", "Affection cannot be negative")])
    return RuleOutcome()


def no_negative_timestamp(data: dict[str, Any]) -> RuleOutcome:
    value = data.get("timestamp")
    if _is_int(value) and value < 0:
        return RuleOutcome(passed=False, errors=[_error("timestamp", "Timestamp cannot be negative")])
    return RuleOutcome()


class StateValidator:
    """Checks proposed updates against committed state and registered rules.

    Args:
        repository:      Read access to committed state (and the audit log).
        log_validations: Append every typed validation to validation_logs.
        logger:          Logger to use instead of the module logger.
    """

    def __init__(
        self,
        repository: StateRepository,
        *,
        log_validations: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repo = repository
        self.log_validations = log_validations
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._rules: list[ValidationRule] = []
        self.register_rule("no-negative-affection", no_negative_affection, "character")
        self.register_rule("no-negative-timestamp", no_negative_timestamp, "timeline")

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    def validate_character_update(self, character_id: str, updates: dict[str, Any]) -> ValidationResult:
        with timed(self._log, "validate_character_update"):
            character = self._repo.get_character(character_id)
            if character is None:
                result = ValidationResult.from_issues(
                    [_error("id", f"Character not found: {character_id}")]
                )
                self._audit("character", result, character_id=character_id, updates=updates)
                return result

            issues: list[ValidationIssue] = []
            if "affection" in updates:
                issues += self._check_affection(character.affection, updates["affection"])
            if "emotion" in updates:
                issues += self._check_emotion(character.emotion, updates["emotion"])
            if "current_location" in updates:
                issues += self._check_location(character.current_location, updates["current_location"])

            result = self._merge(issues, self.validate_with_rules(updates, "character"))
        self._audit("character", result, character_id=character_id, updates=updates)
        return result

    @staticmethod
    def _check_affection(current: int, value: Any) -> list[ValidationIssue]:
        if not _is_int(value):
            return [_error("affection", f"Affection must be an integer, got {value!r}", new_value=value)]
        issues = []
        if not AFFECTION_MIN <= value <= AFFECTION_MAX:
            issues.append(_error(
                "affection",
                f"Affection must be between {AFFECTION_MIN}-{AFFECTION_MAX}, got {value}",
                current_value=current,
                new_value=value,
            ))
        delta = abs(value - current)
        if delta > AFFECTION_MAX_STEP:
            issues.append(_warning(
                "affection",
                f"Affection change too large: {delta} (max {AFFECTION_MAX_STEP} per update)",
                current_value=current,
                new_value=value,
                delta=delta,
            ))
        return issues

    @staticmethod
    def _check_emotion(current: str | None, value: Any) -> list[ValidationIssue]:
        issues = []
        if value not in EMOTIONS:
            issues.append(_error("emotion", f"Invalid emotion: {value}", valid_emotions=list(EMOTIONS)))
        if current and value in UNLIKELY_TRANSITIONS.get(current, ()):
            issues.append(_warning(
                "emotion",
                f"Unlikely emotion transition: {current} -> {value}",
                current_emotion=current,
                new_emotion=value,
            ))
        return issues

    def _check_location(self, current: str | None, target: str | None) -> list[ValidationIssue]:
        if not target:
            return []
        if self._repo.get_location(target) is None:
            return [_error("current_location", f"Location does not exist: {target}")]
        if not current or current == target:
            return []
        origin = self._repo.get_location(current)
        if origin is not None and origin.connected_to is not None and not origin.connects_to(target):
            return [_warning(
                "current_location",
                f"Location {target} is not reachable from {current}",
                current_location=current,
                new_location=target,
            )]
        return []

    # ------------------------------------------------------------------
    # Timeline
    # ------------------------------------------------------------------

    def validate_timeline_event(self, event: dict[str, Any]) -> ValidationResult:
        with timed(self._log, "validate_timeline_event"):
            issues: list[ValidationIssue] = []
            if not event.get("event_type"):
                issues.append(_error("event_type", "Event type is required"))
            if not event.get("description"):
                issues.append(_error("description", "Event description is required"))

            timestamp = event.get("timestamp")
            if timestamp is not None and not _is_int(timestamp):
                issues.append(_error("timestamp", f"Timestamp must be an integer, got {timestamp!r}"))
            elif timestamp is not None:
                if timestamp < 0:
                    issues.append(_error("timestamp", f"Invalid timestamp: {timestamp}"))
                elif timestamp > now_ms() + FUTURE_TOLERANCE_MS:
                    issues.append(_warning(
                        "timestamp", f"Timestamp is too far in the future: {timestamp}", timestamp=timestamp
                    ))

            importance = event.get("importance")
            if importance is not None and not _is_int(importance):
                issues.append(_error("importance", f"Importance must be an integer, got {importance!r}"))
            elif importance is not None and not 1 <= importance <= 5:
                issues.append(_error("importance", f"Importance must be between 1-5, got {importance}"))

            participants = event.get("participants")
            if participants is not None:
                if not isinstance(participants, list):
                    issues.append(_error("participants", "Participants must be a list"))
                elif len(participants) > MAX_PARTICIPANTS:
                    issues.append(_warning(
                        "participants",
                        f"Too many participants: {len(participants)} (max {MAX_PARTICIPANTS})",
                    ))

            result = self._merge(issues, self.validate_with_rules(event, "timeline"))
        self._audit("timeline", result, event=event)
        return result

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def validate_inventory_item(self, character_id: str, item: dict[str, Any]) -> ValidationResult:
        with timed(self._log, "validate_inventory_item"):
            issues: list[ValidationIssue] = []
            if not item.get("item_name"):
                issues.append(_error("item_name", "Item name is required"))

            quantity = item.get("quantity")
            if quantity is not None and not _is_int(quantity):
                issues.append(_error("quantity", f"Quantity must be an integer, got {quantity!r}"))
            elif quantity is not None:
                if quantity < 0:
                    issues.append(_error("quantity", f"Quantity cannot be negative: {quantity}"))
                elif quantity > MAX_QUANTITY:
                    issues.append(_warning("quantity", f"Quantity too large: {quantity} (max {MAX_QUANTITY})"))

            item_type = item.get("item_type")
            if item.get("equipped") and item_type in EQUIPMENT_SLOTS:
                equipped = self._repo.get_inventory(character_id, item_type=item_type, equipped=True)
                conflicts = [i for i in equipped if i.id != item.get("id")]
                if conflicts:
                    issues.append(_warning(
                        "equipped",
                        f"Already has equipped {item_type}: {conflicts[0].item_name}",
                        conflicting_item=conflicts[0].item_name,
                    ))

            result = self._merge(issues, self.validate_with_rules(item, "inventory"))
        self._audit("inventory", result, character_id=character_id, item=item)
        return result

    # ------------------------------------------------------------------
    # Rule registry
    # ------------------------------------------------------------------

    def register_rule(self, name: str, predicate: RulePredicate, category: str = "general") -> None:
        """Add a rule; re-registering a name replaces it in place."""
        if category not in CATEGORIES:
            raise ValueError(f"Unknown validation category: {category!r}")
        rule = ValidationRule(name=name, category=category, predicate=predicate)
        for index, existing in enumerate(self._rules):
            if existing.name == name:
                self._rules[index] = rule
                break
        else:
            self._rules.append(rule)
        self._log.debug("Rule registered name=%s category=%s", name, category)

    def unregister_rule(self, name: str) -> bool:
        before = len(self._rules)
        self._rules = [r for r in self._rules if r.name != name]
        return len(self._rules) != before

    @property
    def rules(self) -> list[ValidationRule]:
        return list(self._rules)

    def validate_with_rules(self, data: dict[str, Any], category: str) -> ValidationResult:
        issues: list[ValidationIssue] = []
        for rule in self._rules:
            if rule.category not in (category, "general"):
                continue
            try:
                outcome = rule.predicate(data)
                if not isinstance(outcome, RuleOutcome):
                    outcome = RuleOutcome.model_validate(outcome)
            except Exception:
                self._log.exception("Validation rule %r failed; skipping", rule.name)
                continue
            if not outcome.passed:
                issues += outcome.errors
            issues += outcome.warnings
        return ValidationResult.from_issues(issues)

    @staticmethod
    def _merge(issues: list[ValidationIssue], ruled: ValidationResult) -> ValidationResult:
        return ValidationResult.from_issues(issues + ruled.errors + ruled.warnings + ruled.info)

    # ------------------------------------------------------------------
    # Audit log
    # ------------------------------------------------------------------

    def _audit(self, validation_type: str, result: ValidationResult, **details: Any) -> None:
        if not self.log_validations:
            return
        details["errors"] = [e.model_dump() for e in result.errors]
        details["warnings"] = [w.model_dump() for w in result.warnings]
        self.log_validation(validation_type, result.passed, details)

    def log_validation(self, validation_type: str, passed: bool, details: dict[str, Any] | None = None) -> None:
        try:
            self._repo.append_validation_log(validation_type, passed, details or {})
        except (WorldStateError, TypeError, ValueError):
            self._log.exception("Failed to log %s validation", validation_type)

    def get_validation_stats(self, validation_type: str | None = None, limit: int = 100) -> dict[str, Any]:
        logs = self._repo.get_validation_logs(validation_type=validation_type, limit=limit)
        total = len(logs)
        passed = sum(1 for entry in logs if entry.passed)
        return {
            "total": total,
            "passed": passed,
            "failed": total - passed,
            "pass_rate": round(passed / total * 100, 2) if total else 0.0,
            "recent": [entry.model_dump() for entry in logs[:10]],
        }
