"""Keyword-based intent and topic tagging for farmer questions.

Definitions live in ``agrivoice/resources``: one JSON file per intent under
``intents/`` (file name order is priority order) and a single
``tags.json`` listing crop and issue tags in the order they are reported.
Keywords are matched as case-insensitive substrings so the same file can
carry English, Hindi and Telugu spellings.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Mapping, Sequence

RESOURCES_DIR = Path(__file__).resolve().parents[1] / "resources"
DEFAULT_INTENT = "general_advisory"


@dataclass(frozen=True)
class IntentDefinition:
    """Static definition loaded from intent resources."""

    id: str
    keywords: Sequence[re.Pattern[str]]


@dataclass(frozen=True)
class TagDefinition:
    tag: str
    keywords: Sequence[re.Pattern[str]]


@dataclass(frozen=True)
class DetectedIntent:
    """Outcome returned by the detector."""

    id: str
    confidence: float
    matched_tokens: Sequence[str]


class IntentDetector:
    """Load intent/tag definitions from JSON resources and score transcripts."""

    def __init__(
        self,
        intents: Sequence[IntentDefinition],
        tags: Sequence[TagDefinition] = (),
    ) -> None:
        self._intents = intents
        self._tags = tags

    @classmethod
    def from_directory(cls, root: Path) -> "IntentDetector":
        """Instantiate the detector from ``root/intents/*.json`` and ``root/tags.json``."""

        intents: list[IntentDefinition] = []
        intents_dir = root / "intents"
        if intents_dir.exists():
            for intent_path in sorted(intents_dir.glob("*.json")):
                data = _load_json(intent_path)
                if not data:
                    continue
                intents.append(
                    IntentDefinition(
                        id=str(data.get("id") or intent_path.stem),
                        keywords=_compile_keywords(data.get("keywords", [])),
                    )
                )

        tags: list[TagDefinition] = []
        tag_data = _load_json(root / "tags.json")
        for group in ("crops", "issues"):
            for entry in tag_data.get(group, []):
                if not isinstance(entry, Mapping) or not entry.get("tag"):
                    continue
                tags.append(
                    TagDefinition(
                        tag=str(entry["tag"]),
                        keywords=_compile_keywords(entry.get("keywords", [])),
                    )
                )

        return cls(intents, tags)

    def detect(self, transcript: str) -> DetectedIntent | None:
        """Return the first intent, in priority order, with any keyword in the transcript.

        A pest question that also mentions water is still ``pest_management``.
        """

        if not transcript:
            return None

        transcript_norm = transcript.lower()
        for definition in self._intents:
            hits = _collect_matches(definition.keywords, transcript_norm)
            if hits:
                return DetectedIntent(
                    id=definition.id,
                    confidence=min(1.0, 0.5 + 0.1 * len(hits)),
                    matched_tokens=hits,
                )
        return None

    def classify(self, transcript: str) -> str:
        """Return the detected intent id, or the general advisory bucket."""

        detected = self.detect(transcript)
        return detected.id if detected else DEFAULT_INTENT

    def extract_tags(self, transcript: str) -> list[str]:
        """Return every tag whose keywords appear in the transcript, in definition order."""

        if not transcript:
            return []
        transcript_norm = transcript.lower()
        return [
            definition.tag
            for definition in self._tags
            if _collect_matches(definition.keywords, transcript_norm)
        ]

    @property
    def definitions(self) -> Sequence[IntentDefinition]:
        """Return the configured intent definitions."""

        return tuple(self._intents)


def _load_json(path: Path) -> Mapping[str, object]:
    try:
        with path.open("r", encoding="utf-8") as file:
            return json.load(file)
    except (OSError, json.JSONDecodeError):
        return {}


def _compile_keywords(keywords: Iterable[str]) -> list[re.Pattern[str]]:
    return [re.compile(re.escape(raw.lower())) for raw in keywords if raw]


def _collect_matches(patterns: Sequence[re.Pattern[str]], text: str) -> list[str]:
    matches: list[str] = []
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            matches.append(match.group(0))
    return matches


@lru_cache(maxsize=1)
def get_intent_detector() -> IntentDetector:
    """Return the detector built from the bundled resources."""

    return IntentDetector.from_directory(RESOURCES_DIR)


__all__ = [
    "DEFAULT_INTENT",
    "DetectedIntent",
    "IntentDefinition",
    "IntentDetector",
    "TagDefinition",
    "get_intent_detector",
]
