# app/services/nlp/vocabulary.py
"""
Named-entity vocabulary: surface forms per (entity type, canonical value).

Built once at import as tuples of frozen entries; treat as read-only.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class VocabularyEntry:
    entity_type: str
    canonical: str
    aliases: Tuple[str, ...]
    label: Optional[str] = None  # display name, medications only


def _entry(entity_type: str, canonical: str, aliases, label: Optional[str] = None) -> VocabularyEntry:
    return VocabularyEntry(entity_type, canonical, tuple(aliases), label)


DEFAULT_VOCABULARY: Tuple[VocabularyEntry, ...] = (
    # Add more common medications here
    _entry("medication", "aspirin", ["Aspirin", "ASA"], "Aspirin"),
    _entry("medication", "lipitor", ["Lipitor", "atorvastatin"], "Lipitor"),
    _entry("medication", "metformin", ["Metformin", "Glucophage"], "Metformin"),
    _entry("medication", "crocin", ["Crocin", "Paracetamol"], "Crocin"),

    _entry("dosageUnit", "pill", ["pill", "pills", "tablet", "tablets", "capsule", "capsules"]),
    _entry("dosageUnit", "mg", ["mg", "milligram", "milligrams"]),
    _entry("dosageUnit", "ml", ["ml", "milliliter", "milliliters"]),

    _entry("timeOfDay", "morning", ["morning", "AM", "a.m.", "in the morning"]),
    _entry("timeOfDay", "noon", ["noon", "midday"]),
    _entry("timeOfDay", "afternoon", ["afternoon"]),
    _entry("timeOfDay", "evening", ["evening", "PM", "p.m.", "in the evening"]),
    _entry("timeOfDay", "night", ["night", "bedtime", "at night"]),

    _entry("mealTime", "breakfast", ["breakfast", "before breakfast", "after breakfast"]),
    _entry("mealTime", "lunch", ["lunch", "before lunch", "after lunch"]),
    _entry("mealTime", "dinner", ["dinner", "before dinner", "after dinner"]),

    _entry("frequencyTerm", "daily", ["daily", "every day", "once a day"]),
    _entry("frequencyTerm", "twice", ["twice a day", "two times a day"]),
    _entry("frequencyTerm", "thrice", ["thrice a day", "three times a day"]),

    _entry("instructionTerm", "with_water", ["with water", "glass of water"]),
    _entry("instructionTerm", "with_food", ["with food", "with meals"]),
    _entry("instructionTerm", "empty_stomach", ["empty stomach", "before food", "before meals"]),
)


def medication_labels(vocabulary: Tuple[VocabularyEntry, ...] = DEFAULT_VOCABULARY) -> Dict[str, str]:
    """canonical medication value -> display name"""
    return {
        e.canonical: (e.label or e.canonical)
        for e in vocabulary
        if e.entity_type == "medication"
    }
