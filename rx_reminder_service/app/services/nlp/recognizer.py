# app/services/nlp/recognizer.py
import logging
import re
from typing import Iterable, List, Pattern, Tuple

from app.schemas.models import RawEntity
from app.services.nlp.vocabulary import DEFAULT_VOCABULARY, VocabularyEntry

logger = logging.getLogger(__name__)


def _alias_pattern(alias: str) -> Pattern[str]:
    # whole-word match; "a.m." ends in punctuation so \b would not fit there
    return re.compile(r"(?<!\w)" + re.escape(alias) + r"(?!\w)", re.IGNORECASE)


class EntityRecognizer:
    """
    Alias matcher over a fixed vocabulary. No training, no scoring:
    an entity is found wherever one of its surface forms occurs.
    """

    def __init__(self, vocabulary: Iterable[VocabularyEntry] = DEFAULT_VOCABULARY):
        self.vocabulary: Tuple[VocabularyEntry, ...] = tuple(vocabulary)
        self._patterns: Tuple[Tuple[VocabularyEntry, Pattern[str]], ...] = tuple(
            (entry, _alias_pattern(alias))
            for entry in self.vocabulary
            for alias in entry.aliases
        )

    def extend(self, extra: Iterable[VocabularyEntry]) -> "EntityRecognizer":
        return EntityRecognizer(self.vocabulary + tuple(extra))

    def recognize(self, text: str) -> List[RawEntity]:
        if not text:
            return []

        candidates: List[RawEntity] = []
        for entry, pattern in self._patterns:
            for m in pattern.finditer(text):
                candidates.append(RawEntity(
                    entity_type=entry.entity_type,
                    canonical_value=entry.canonical,
                    source_text=m.group(0),
                    start=m.start(),
                    end=m.end(),
                ))

        # longest alias wins where matches of the same type overlap
        candidates.sort(key=lambda e: (-(e.end - e.start), e.start))
        kept: List[RawEntity] = []
        for ent in candidates:
            if any(
                k.entity_type == ent.entity_type and k.start < ent.end and ent.start < k.end
                for k in kept
            ):
                continue
            kept.append(ent)

        kept.sort(key=lambda e: (e.start, e.entity_type))
        logger.debug("Entities found: %s", [(e.entity_type, e.canonical_value, e.source_text) for e in kept])
        return kept


default_recognizer = EntityRecognizer()


def recognize(text: str) -> List[RawEntity]:
    return default_recognizer.recognize(text)
