"""Note enrichment: title, topic, emotion, tags and summary for new notes."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Mapping, Sequence

from .errors import InputValidationError
from .interfaces import ArtifactStore
from .llm import GenerationParams
from .models import NoteEnrichment, SourceUnit
from .prompts import (
    ENRICH_EMOTION_SYSTEM,
    ENRICH_RELATED_SYSTEM,
    ENRICH_SUMMARY_SYSTEM,
    ENRICH_TAGS_SYSTEM,
    ENRICH_TITLE_SYSTEM,
    ENRICH_TOPIC_SYSTEM,
    enrich_emotion_prompt,
    enrich_related_prompt,
    enrich_summary_prompt,
    enrich_tags_prompt,
    enrich_title_prompt,
    enrich_topic_prompt,
)
from .retry import ResilientGenerator
from .store import source_units_from_rows

logger = logging.getLogger(__name__)

TOPICS = (
    "Personal Reflection",
    "Work/Professional",
    "Creative Idea",
    "Learning/Education",
    "Health/Wellness",
    "Relationships",
    "Goals/Planning",
    "Random Thought",
    "Other",
)
EMOTIONS = (
    "Joy",
    "Sadness",
    "Anger",
    "Fear",
    "Surprise",
    "Disgust",
    "Neutral",
    "Contemplative",
    "Excited",
    "Anxious",
    "Grateful",
    "Frustrated",
)
MAX_TAGS = 5
MAX_RELATED = 3
RELATED_POOL_SIZE = 20
DEFAULT_TITLE = "Untitled Note"

TITLE_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=50)
TOPIC_PARAMS = GenerationParams(temperature=0.3, max_output_tokens=30)
EMOTION_PARAMS = GenerationParams(temperature=0.3, max_output_tokens=30)
TAGS_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=100)
SUMMARY_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=200)
RELATED_PARAMS = GenerationParams(temperature=0.5, max_output_tokens=100)


def pick_label(raw: str, allowed: tuple[str, ...], default: str) -> str:
    """Match model output to a closed label set, case-insensitively."""

    text = raw.strip().strip("\"'.").strip()
    lowered = {label.lower(): label for label in allowed}
    if text.lower() in lowered:
        return lowered[text.lower()]
    for label in allowed:
        if label.lower() in text.lower():
            return label
    return default


def split_tags(raw: str) -> list[str]:
    tags: list[str] = []
    for part in raw.split(","):
        tag = part.strip().strip("#\"'").strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags[:MAX_TAGS]


def parse_related_ids(raw: str, candidate_ids: Sequence[str]) -> list[str]:
    """Keep known IDs from a comma-separated answer, in the model's order."""

    allowed = set(candidate_ids)
    picked: list[str] = []
    for part in raw.split(","):
        item = part.strip().strip("\"'`.").strip()
        if item in allowed and item not in picked:
            picked.append(item)
    return picked[:MAX_RELATED]


class NoteEnricher:
    """Generate note metadata with independent calls run in parallel."""

    def __init__(self, generator: ResilientGenerator, max_workers: int = 3):
        self.generator = generator
        self.max_workers = max_workers

    def generate_title(self, content: str) -> str:
        raw = self.generator.generate("title", ENRICH_TITLE_SYSTEM, enrich_title_prompt(content), TITLE_PARAMS)
        return raw.strip().strip("\"'“”").strip() or DEFAULT_TITLE

    def classify_topic(self, content: str) -> str:
        raw = self.generator.generate(
            "topic", ENRICH_TOPIC_SYSTEM, enrich_topic_prompt(content, TOPICS), TOPIC_PARAMS
        )
        return pick_label(raw, TOPICS, "Other")

    def detect_emotion(self, content: str) -> str:
        raw = self.generator.generate(
            "emotion", ENRICH_EMOTION_SYSTEM, enrich_emotion_prompt(content, EMOTIONS), EMOTION_PARAMS
        )
        return pick_label(raw, EMOTIONS, "Neutral")

    def generate_tags(self, content: str, title: str, topic: str, emotion: str) -> list[str]:
        raw = self.generator.generate(
            "tags", ENRICH_TAGS_SYSTEM, enrich_tags_prompt(content, title, topic, emotion), TAGS_PARAMS
        )
        return split_tags(raw)

    def generate_summary(self, content: str, title: str) -> str:
        raw = self.generator.generate(
            "summary", ENRICH_SUMMARY_SYSTEM, enrich_summary_prompt(content, title), SUMMARY_PARAMS
        )
        return raw.strip()

    def find_related_notes(self, note: Mapping[str, Any], others: Sequence[Mapping[str, Any]]) -> list[str]:
        if not others:
            return []
        raw = self.generator.generate(
            "related", ENRICH_RELATED_SYSTEM, enrich_related_prompt(note, others), RELATED_PARAMS
        )
        return parse_related_ids(raw, [str(other.get("id", "")) for other in others])

    def enrich(self, content: str) -> NoteEnrichment:
        """Run title/topic/emotion together, then tags/summary together.

        A failure in any call fails the whole enrichment.
        """

        with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
            title_future = pool.submit(self.generate_title, content)
            topic_future = pool.submit(self.classify_topic, content)
            emotion_future = pool.submit(self.detect_emotion, content)
            title = title_future.result()
            topic = topic_future.result()
            emotion = emotion_future.result()

            tags_future = pool.submit(self.generate_tags, content, title, topic, emotion)
            summary_future = pool.submit(self.generate_summary, content, title)
            tags = tags_future.result()
            summary = summary_future.result()

        return NoteEnrichment(title=title, topic=topic, emotion=emotion, tags=tags, summary=summary)


def add_note(store: ArtifactStore, enricher: NoteEnricher, content: str) -> SourceUnit:
    """Enrich ``content`` and insert it into the ``notes`` collection."""

    text = (content or "").strip()
    if not text:
        raise InputValidationError("Note content is required")

    enrichment = enricher.enrich(text)
    row = store.insert(
        "notes",
        {
            "title": enrichment.title,
            "content": text,
            "tags": enrichment.tags,
            "topic": enrichment.topic,
            "emotion": enrichment.emotion,
            "summary": enrichment.summary,
        },
    )
    return source_units_from_rows([row])[0]


def _load_note(store: ArtifactStore, note_id: str) -> dict:
    rows = store.query("notes", {"id": note_id})
    if not rows:
        raise InputValidationError(f"Note not found: {note_id}")
    return rows[0]


def related_notes(
    store: ArtifactStore,
    enricher: NoteEnricher,
    note_id: str,
    pool_size: int = RELATED_POOL_SIZE,
) -> list[dict]:
    """Return up to MAX_RELATED notes related to ``note_id``, most related first.

    Only the ``pool_size`` most recent other notes are offered to the model.
    """

    note = _load_note(store, note_id)
    others = [row for row in store.query("notes") if row.get("id") != note_id]
    others.sort(key=lambda row: str(row.get("created_at") or ""), reverse=True)
    others = others[:pool_size]

    by_id = {str(row.get("id")): row for row in others}
    return [by_id[item] for item in enricher.find_related_notes(note, others)]


def regenerate_title(store: ArtifactStore, enricher: NoteEnricher, note_id: str) -> dict:
    """Generate a fresh title for a stored note and write it back."""

    note = _load_note(store, note_id)
    title = enricher.generate_title(str(note.get("content") or ""))
    updated = store.update("notes", note_id, {"title": title})
    logger.info("Regenerated title for note %s", note_id)
    return updated
