"""Pattern tables for heuristic state extraction.

Everything the extractor recognises lives here as data, so adding a phrasing
means adding a row, not a branch. Chinese and English phrasings sit side by
side in each table; table order is match priority.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

_CN_NUMERAL = "[一两二三四五六七八九十\\d]+"
_CN_COUNTER = "(?:个|把|件|张|本)?"


@dataclass(frozen=True)
class AffectionPattern:
    regex: re.Pattern[str]
    mode: Literal["delta", "absolute"]
    negative: bool = False
    group: int = 1


@dataclass(frozen=True)
class InventoryPattern:
    regex: re.Pattern[str]
    action: Literal["add", "remove"]
    quantity_group: int | None
    name_group: int


def _affection(pattern: str, mode: Literal["delta", "absolute"], negative: bool = False) -> AffectionPattern:
    return AffectionPattern(re.compile(pattern, re.IGNORECASE), mode, negative)


def _inventory(pattern: str, action: Literal["add", "remove"], quantity_group: int | None, name_group: int) -> InventoryPattern:
    return InventoryPattern(re.compile(pattern, re.IGNORECASE), action, quantity_group, name_group)


# First match wins.
AFFECTION_PATTERNS: tuple[AffectionPattern, ...] = (
    _affection(r"好感度[增加提升上升]+了?\s*(\d+)\s*点", "delta"),
    _affection(r"好感度[减少降低下降]+了?\s*(\d+)\s*点", "delta", negative=True),
    _affection(r"好感度(?:变成|现在是|达到|为)\s*(\d+)", "absolute"),
    _affection(r"对.*?好感度现在是\s*(\d+)", "absolute"),
    _affection(r"好感度?\s*[+＋]\s*(\d+)", "delta"),
    _affection(r"好感度?\s*[-－]\s*(\d+)", "delta", negative=True),
    _affection(r"affection\s+increased\s+by\s+(\d+)", "delta"),
    _affection(r"affection\s+decreased\s+by\s+(\d+)", "delta", negative=True),
    _affection(r"affection\s+is\s+now\s+(\d+)", "absolute"),
    _affection(r"affection\s*[+＋]\s*(\d+)", "delta"),
)

# Ordered: on equal scores the earlier emotion wins.
EMOTION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("happy", ("高兴", "开心", "愉快", "快乐", "欢喜", "兴奋", "微笑", "太好了", "happy", "cheerful", "joyful", "smile")),
    ("sad", ("难过", "伤心", "悲伤", "沮丧", "失落", "哭泣", "太糟糕", "不敢相信", "sad", "depressed", "cry", "terrible")),
    ("angry", ("生气", "愤怒", "恼火", "火大", "怒", "皱眉", "angry", "furious", "mad", "frown")),
    ("excited", ("激动", "兴奋", "振奋", "热情", "excited", "enthusiastic")),
    ("scared", ("害怕", "恐惧", "惊恐", "惧怕", "scared", "afraid", "fearful")),
    ("confused", ("困惑", "迷惑", "疑惑", "不解", "confused", "puzzled")),
    ("calm", ("平静", "冷静", "淡定", "安静", "calm", "peaceful")),
    ("anxious", ("焦虑", "不安", "紧张", "担心", "anxious", "worried", "nervous")),
    ("loving", ("爱", "深情", "温柔", "亲密", "loving", "affectionate", "tender")),
)

# A keyword score of this many hits means full confidence.
EMOTION_SATURATION = 3

MOVEMENT_KEYWORDS: tuple[str, ...] = (
    "走进", "来到", "到达", "进入", "抵达", "前往", "去了",
    "entered", "arrived at", "went to", "moved to",
)

# Captured names are cut at the first of these.
TRAILING_PUNCTUATION = re.compile(r"[。，！？；、,.!?;].*", re.DOTALL)

INVENTORY_PATTERNS: tuple[InventoryPattern, ...] = (
    _inventory(rf"(?:给|递给|交给)(?:了)?(?:你|我)\s*({_CN_NUMERAL})?\s*{_CN_COUNTER}\s*(.+)", "add", 1, 2),
    _inventory(rf"(?:获得|得到|拿到|收到)了?\s*({_CN_NUMERAL})?\s*{_CN_COUNTER}\s*(.+)", "add", 1, 2),
    _inventory(r"gave\s+(?:you|me)\s+(\d+)?\s*(.+)", "add", 1, 2),
    _inventory(rf"(?:拿走|取走|没收)了?(?:你的|我的|你|我)?\s*({_CN_NUMERAL})?\s*{_CN_COUNTER}\s*(.+)", "remove", 1, 2),
    _inventory(rf"(?:失去|丢失|遗失)了?\s*({_CN_NUMERAL})?\s*{_CN_COUNTER}\s*(.+)", "remove", 1, 2),
    _inventory(r"took\s+(?:your|my)\s+(.+)", "remove", None, 1),
)

CN_NUMERALS: dict[str, int] = {
    "一": 1, "两": 2, "二": 2, "三": 3, "四": 4,
    "五": 5, "六": 6, "七": 7, "八": 8, "九": 9, "十": 10,
}

# Highest tier present decides an event's importance.
IMPORTANCE_TIERS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (5, ("第一次", "首次", "终于", "史无前例", "first time", "finally")),
    (4, ("完成", "成功", "达成", "实现", "completed", "achieved")),
    (3, ("坦白", "承认", "告诉", "透露", "confessed", "revealed")),
    (2, ("发现", "找到", "遇到", "found", "discovered")),
    (1, ("说", "做", "去", "said", "did")),
)

_NAME = r"[A-Z][a-z]+|[\u4e00-\u9fa5]{2,4}"

# "Alice 和 Bob", "Alice and Bob"
PARTICIPANT_PAIR = re.compile(rf"({_NAME})\s*(?:和|与|跟|,|and)\s*({_NAME})")
# a name at the start of the text or after whitespace, followed by a space or speech verb
PARTICIPANT_SINGLE = re.compile(r"(?:^|\s)([A-Z][a-z]{2,}|[\u4e00-\u9fa5]{2,4})(?:\s|[：:说做])")

EVENT_DESCRIPTION_LIMIT = 200
