"""
Tutorium Backend — Language Levels
====================================

What:  The CEFR level catalogue (A1..C1) and normalization of legacy values.
Who:   Used by user/student/course schemas and the /api/levels route.

Older records and the first version of the UI stored free-form level names
(English or Russian). `normalize_level` maps those onto CEFR codes and leaves
anything it does not recognise untouched.
"""

from typing import Dict, List, Optional

LEVELS: List[Dict[str, str]] = [
    {"value": "A1", "label": "A1 - Начинающий", "description": "Базовые фразы и выражения"},
    {"value": "A2", "label": "A2 - Элементарный", "description": "Простые диалоги и повседневные темы"},
    {"value": "B1", "label": "B1 - Средний", "description": "Основные идеи в знакомых ситуациях"},
    {"value": "B2", "label": "B2 - Продвинутый", "description": "Сложные тексты и специализированные темы"},
    {"value": "C1", "label": "C1 - Профессиональный", "description": "Свободное владение языком"},
]

LEVEL_CODES = tuple(level["value"] for level in LEVELS)

LEGACY_LEVEL_MAP: Dict[str, str] = {
    "beginner": "A1",
    "elementary": "A2",
    "intermediate": "B1",
    "advanced": "B2",
    "С нуля": "A1",
    "Начинающий": "A1",
    "Элементарный": "A2",
    "Средний": "B1",
    "Продолжающий": "B1",
    "Продвинутый": "B2",
    "Профессиональный": "C1",
}


def normalize_level(value: Optional[str]) -> Optional[str]:
    """Return the CEFR code for a legacy level name; pass anything else through."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    return LEGACY_LEVEL_MAP.get(value, value)


def level_label(value: Optional[str]) -> Optional[str]:
    code = normalize_level(value)
    for level in LEVELS:
        if level["value"] == code:
            return level["label"]
    return value
