"""Infers candidate state changes from narrative text.

The extractor only proposes: it reads the character's current affection to
turn absolute phrasings into deltas, and never writes. Each sub-extractor
contains its own failures (logged, reported as "no signal") so one bad pattern
cannot take down the rest of a message.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from world_state.extraction.patterns import (
    AFFECTION_PATTERNS,
    CN_NUMERALS,
    EMOTION_KEYWORDS,
    EMOTION_SATURATION,
    EVENT_DESCRIPTION_LIMIT,
    IMPORTANCE_TIERS,
    INVENTORY_PATTERNS,
    MOVEMENT_KEYWORDS,
    PARTICIPANT_PAIR,
    PARTICIPANT_SINGLE,
    TRAILING_PUNCTUATION,
)
from world_state.log import timed
from world_state.models import (
    AffectionChange,
    EmotionReading,
    EmotionScore,
    ExtractedEvent,
    ExtractionResult,
    InventoryChange,
    LocationChange,
)
from world_state.repository import StateRepository
from world_state.store import now_ms


@dataclass(frozen=True)
class CustomPattern:
    regex: re.Pattern[str]
    extract: Callable[[re.Match[str]], Any]


def parse_quantity(token: str | None) -> int:
    """'3' -> 3, '两' -> 2; anything else (or nothing) -> 1."""
    if not token:
        return 1
    if token.isdigit():
        return int(token)
    return CN_NUMERALS.get(token, 1)


def _trim(name: str) -> str:
    return TRAILING_PUNCTUATION.sub("", name.strip()).strip()


class StateExtractor:
    def __init__(self, repository: StateRepository, *, logger: logging.Logger | None = None) -> None:
        self._repo = repository
        self._log = logger if logger is not None else logging.getLogger(__name__)
        self._custom: dict[str, CustomPattern] = {}

    # ------------------------------------------------------------------
    # Affection
    # ------------------------------------------------------------------

    def extract_affection_change(self, character_id: str, text: str) -> AffectionChange | None:
        try:
            character = self._repo.get_character(character_id)
            if character is None:
                return None
            current = character.affection
            for pattern in AFFECTION_PATTERNS:
                match = pattern.regex.search(text)
                if not match:
                    continue
                value = int(match.group(pattern.group))
                if pattern.mode == "absolute":
                    return AffectionChange(delta=value - current, new_value=value, current_value=current)
                delta = -value if pattern.negative else value
                return AffectionChange(delta=delta, new_value=current + delta, current_value=current)
            return None
        except Exception:
            self._log.exception("Affection extraction failed for %s", character_id)
            return None

    # ------------------------------------------------------------------
    # Emotion
    # ------------------------------------------------------------------

    def extract_emotion(self, text: str) -> EmotionReading | None:
        try:
            scores: list[tuple[str, int]] = []
            for emotion, keywords in EMOTION_KEYWORDS:
                score = sum(len(re.findall(re.escape(k), text, re.IGNORECASE)) for k in keywords)
                if score > 0:
                    scores.append((emotion, score))
            if not scores:
                return None

            # stable: ties keep table order
            scores.sort(key=lambda pair: pair[1], reverse=True)

            def confidence(score: int) -> float:
                return min(score / EMOTION_SATURATION, 1.0)

            emotion, score = scores[0]
            return EmotionReading(
                emotion=emotion,
                confidence=confidence(score),
                alternatives=[EmotionScore(emotion=e, confidence=confidence(s)) for e, s in scores[1:3]],
            )
        except Exception:
            self._log.exception("Emotion extraction failed")
            return None

    # ------------------------------------------------------------------
    # Location
    # ------------------------------------------------------------------

    def extract_location_change(self, text: str) -> LocationChange | None:
        try:
            for keyword in MOVEMENT_KEYWORDS:
                match = re.search(re.escape(keyword) + "了?(.{2,10})", text, re.IGNORECASE)
                if not match:
                    continue
                location = _trim(match.group(1))
                if location:
                    return LocationChange(location=location, keyword=keyword)
            return None
        except Exception:
            self._log.exception("Location extraction failed")
            return None

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------

    def extract_inventory_changes(self, character_id: str, text: str) -> list[InventoryChange]:
        changes: list[InventoryChange] = []
        try:
            for pattern in INVENTORY_PATTERNS:
                for match in pattern.regex.finditer(text):
                    item_name = _trim(match.group(pattern.name_group) or "")
                    if not item_name:
                        continue
                    quantity = 1
                    if pattern.quantity_group is not None:
                        quantity = parse_quantity(match.group(pattern.quantity_group))
                    changes.append(InventoryChange(
                        action=pattern.action,
                        item_name=item_name,
                        quantity=quantity,
                        character_id=character_id,
                    ))
        except Exception:
            self._log.exception("Inventory extraction failed for %s", character_id)
        return changes

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    @staticmethod
    def _importance(text: str) -> int:
        lowered = text.lower()
        for level, keywords in IMPORTANCE_TIERS:
            if any(k.lower() in lowered for k in keywords):
                return level
        return 1

    @staticmethod
    def _participants(text: str) -> list[str]:
        names: list[str] = []
        for match in PARTICIPANT_PAIR.finditer(text):
            names += [match.group(1), match.group(2)]
        for match in PARTICIPANT_SINGLE.finditer(text):
            names.append(match.group(1))
        return list(dict.fromkeys(names))

    def extract_events(self, text: str) -> list[ExtractedEvent]:
        try:
            importance = self._importance(text)
            participants = self._participants(text)
            if importance < 2 and not participants:
                return []
            return [ExtractedEvent(
                event_type="general",
                description=text[:EVENT_DESCRIPTION_LIMIT],
                timestamp=now_ms(),
                importance=importance,
                participants=participants,
            )]
        except Exception:
            self._log.exception("Event extraction failed")
            return []

    # ------------------------------------------------------------------
    # Everything at once
    # ------------------------------------------------------------------

    def extract_all(self, character_id: str, text: str) -> ExtractionResult:
        with timed(self._log, "extract_all"):
            return ExtractionResult(
                affection=self.extract_affection_change(character_id, text),
                emotion=self.extract_emotion(text),
                location=self.extract_location_change(text),
                inventory=self.extract_inventory_changes(character_id, text),
                events=self.extract_events(text),
            )

    # ------------------------------------------------------------------
    # Custom patterns
    # ------------------------------------------------------------------

    def register_pattern(
        self,
        name: str,
        regex: str | re.Pattern[str],
        extract: Callable[[re.Match[str]], Any],
    ) -> None:
        if not callable(extract):
            raise ValueError(f"Pattern {name!r} needs a callable extract function")
        compiled = regex if isinstance(regex, re.Pattern) else re.compile(regex, re.IGNORECASE)
        self._custom[name] = CustomPattern(compiled, extract)
        self._log.debug("Custom pattern registered name=%s", name)

    def extract_custom(self, text: str, name: str) -> Any:
        """Run a registered pattern; None when it is unknown, misses or fails."""
        pattern = self._custom.get(name)
        if pattern is None:
            self._log.warning("Custom pattern not found: %s", name)
            return None
        try:
            match = pattern.regex.search(text)
            return pattern.extract(match) if match else None
        except Exception:
            self._log.exception("Custom pattern %s failed", name)
            return None
