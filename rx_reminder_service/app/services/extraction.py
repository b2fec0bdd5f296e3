import logging
from typing import Dict, List, Optional

from app.core.errors import EmptyInputError
from app.schemas.models import ParseResult, RawEntity, StructuredMedication
from app.services.drug_validator import DrugValidator, checked_validation, validate_drug_name
from app.services.nlp import patterns
from app.services.nlp.recognizer import EntityRecognizer, default_recognizer
from app.services.nlp.vocabulary import medication_labels

logger = logging.getLogger(__name__)

INSTRUCTION_TEXT = {
    "with_water": "Take with water",
    "with_food": "Take with food",
    "empty_stomach": "Take on empty stomach",
}

# time-of-day / meal entity -> reminder clock time (display format)
ENTITY_TIME_MAP = {
    "morning": "8:00 AM",
    "breakfast": "7:30 AM",
    "noon": "12:00 PM",
    "lunch": "12:30 PM",
    "afternoon": "3:00 PM",
    "evening": "6:00 PM",
    "dinner": "6:30 PM",
    "night": "10:00 PM",
}


def _first(entities: List[RawEntity], entity_type: str) -> Optional[RawEntity]:
    return next((e for e in entities if e.entity_type == entity_type), None)


def frequency_from_count(count: int) -> Optional[str]:
    if count <= 0:
        return None
    if count == 1:
        return "once a day"
    if count == 2:
        return "twice a day"
    return f"{count} times a day"


def _reminder_times(text: str, entities: List[RawEntity]):
    times: List[str] = []
    context: List[str] = []

    ordered = (
        [e for e in entities if e.entity_type == "timeOfDay"]
        + [e for e in entities if e.entity_type == "mealTime"]
    )
    for e in ordered:
        t = ENTITY_TIME_MAP.get(e.canonical_value)
        if t and t not in times:
            times.append(t)
            context.append(e.source_text or e.canonical_value)

    if not times:
        for raw in patterns.match_clock_times(text):
            t = raw.upper()
            if t not in times:
                times.append(t)
                context.append(raw)

    return times, context


def structure(
    text: str,
    entities: List[RawEntity],
    validator: Optional[DrugValidator] = validate_drug_name,
    labels: Optional[Dict[str, str]] = None,
) -> Optional[StructuredMedication]:
    """
    Merge recognizer entities and regex fallbacks into one medication record.
    Returns None when no medication name can be resolved.
    """
    labels = labels if labels is not None else medication_labels()

    # 1) name
    med_entity = _first(entities, "medication")
    if med_entity:
        name = labels.get(med_entity.canonical_value, med_entity.source_text)
    else:
        name = patterns.match_medication_name(text)
    if not name:
        logger.info("No medication name identified.")
        return None

    # 2) dosage: number + unit; a unit on its own is not a dosage
    dosage = None
    number = patterns.match_dosage_number(text)
    if number:
        unit = _first(entities, "dosageUnit")
        dosage = f"{number} {unit.source_text or unit.canonical_value}" if unit else number

    # 3) frequency
    freq_entity = _first(entities, "frequencyTerm")
    frequency = (freq_entity.source_text or freq_entity.canonical_value) if freq_entity else None
    if not frequency:
        frequency = patterns.match_frequency(text)

    # 4) instructions
    instr_entity = _first(entities, "instructionTerm")
    if instr_entity:
        instructions = INSTRUCTION_TEXT.get(instr_entity.canonical_value)
    else:
        instructions = patterns.match_instructions(text)

    # 5-6) reminder times (string sort, see DESIGN.md)
    times, context = _reminder_times(text, entities)
    reminder_times = sorted(times)

    # 7) frequency from number of times
    if not frequency and reminder_times:
        frequency = frequency_from_count(len(reminder_times))

    med = StructuredMedication(
        name=name,
        dosage=dosage,
        frequency=frequency,
        instructions=instructions,
        reminder_times=reminder_times,
        time_context=", ".join(context),
    )

    # 8) vocabulary check; a failed lookup never aborts the parse
    if validator is not None:
        med.validation = checked_validation(name, validator)

    logger.info("Parsed medication: %s", med.model_dump_json())
    return med


def parse_prescription_text(
    text: str,
    recognizer: Optional[EntityRecognizer] = None,
    validator: Optional[DrugValidator] = validate_drug_name,
) -> ParseResult:
    if text is None or not text.strip():
        raise EmptyInputError("No text supplied for parsing")

    recognizer = recognizer or default_recognizer
    logger.info("Parsing text: %s", text)
    entities = recognizer.recognize(text)

    labels = medication_labels(recognizer.vocabulary)
    med = structure(text, entities, validator=validator, labels=labels)
    return ParseResult(
        raw_entities=entities,
        structured_medications=[med] if med else [],
    )
