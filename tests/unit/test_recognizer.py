# ============================================================================
# FILE: tests/unit/test_recognizer.py
# ============================================================================
"""
Unit tests for the named-entity recognizer
"""

import pytest

from app.services.nlp.recognizer import EntityRecognizer, recognize
from app.services.nlp.vocabulary import DEFAULT_VOCABULARY, VocabularyEntry, medication_labels


def _types(entities):
    return [(e.entity_type, e.canonical_value) for e in entities]


def test_recognizes_all_slots(metformin_text):
    """Medication, unit, frequency and instruction in one sentence"""
    entities = recognize(metformin_text)

    assert _types(entities) == [
        ("medication", "metformin"),
        ("dosageUnit", "mg"),
        ("frequencyTerm", "twice"),
        ("instructionTerm", "with_food"),
    ]


@pytest.mark.parametrize("text", ["take LIPITOR", "take lipitor", "Take Atorvastatin"])
def test_medication_alias_is_case_insensitive(text):
    entities = recognize(text)

    assert _types(entities) == [("medication", "lipitor")]


def test_source_span_points_into_text():
    text = "Take Glucophage after dinner"
    entities = recognize(text)

    med = entities[0]
    assert med.source_text == "Glucophage"
    assert text[med.start:med.end] == "Glucophage"


def test_longest_alias_wins_on_overlap():
    """'in the morning' is one mention, not also 'morning'"""
    entities = recognize("Take Aspirin in the morning")

    times = [e for e in entities if e.entity_type == "timeOfDay"]
    assert len(times) == 1
    assert times[0].source_text == "in the morning"


def test_repeated_mentions_are_kept():
    entities = recognize("Aspirin in the morning, Aspirin again in the morning")

    meds = [e for e in entities if e.entity_type == "medication"]
    times = [e for e in entities if e.entity_type == "timeOfDay"]
    assert len(meds) == 2
    assert len(times) == 2


def test_am_inside_clock_time_is_not_an_entity():
    entities = recognize("Take Aspirin at 9am")

    assert _types(entities) == [("medication", "aspirin")]


def test_dotted_am_alias():
    entities = recognize("Take Crocin at 8 a.m.")

    assert ("timeOfDay", "morning") in _types(entities)


def test_unmatched_text_returns_empty_list():
    assert recognize("I feel fine today") == []
    assert recognize("") == []


def test_entities_are_immutable():
    entity = recognize("Take Aspirin")[0]

    with pytest.raises(Exception):
        entity.canonical_value = "other"


def test_extended_vocabulary():
    recognizer = EntityRecognizer().extend([
        VocabularyEntry("medication", "ibuprofen", ("Ibuprofen", "Advil"), "Ibuprofen"),
    ])

    assert _types(recognizer.recognize("take advil")) == [("medication", "ibuprofen")]
    # default recognizer is unchanged
    assert recognize("take advil") == []


def test_medication_labels():
    labels = medication_labels(DEFAULT_VOCABULARY)

    assert labels["lipitor"] == "Lipitor"
    assert labels["crocin"] == "Crocin"
    assert set(labels) == {"aspirin", "lipitor", "metformin", "crocin"}
