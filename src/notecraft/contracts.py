"""Stage contracts: coerce parsed payloads into well-typed stage records.

Every normalizer here is total. It accepts any mapping, including an empty
one, and returns a record whose required fields are populated, backfilling
from data already available in the run when the model left them out.
"""

from __future__ import annotations

import re
from typing import Any, Mapping, Sequence

from .extractor import as_mapping, as_str, as_str_list
from .models import (
    PLATFORMS,
    Article,
    CardCopy,
    ExtractionResult,
    MediaReference,
    SourceUnit,
    TopicCandidate,
)

TOPIC_BATCH_SIZE = 5
MAX_MEDIA_CANDIDATES = 3
QUOTE_LIMIT = 120
FALLBACK_MESSAGE_CHARS = 400

PLACEHOLDER_KEY_POINTS = (
    "Small, ordinary moments carry lessons worth slowing down for.",
    "Growth shows up in how we respond, not only in what happens to us.",
)
DEFAULT_DAILY_TITLE = "Daily Inspiration"
DEFAULT_ENCOURAGEMENT = "Take a deep breath. Notice one small thing you can appreciate right now."
DEFAULT_TOPIC_SEED = "Everyday growth"

PLACEHOLDER_TITLE_PATTERN = re.compile(r"^(topic\s*\d*|to be generated|untitled)$", re.IGNORECASE)
PLATFORM_ALIASES = {
    "fb": "FB",
    "facebook": "FB",
    "ig": "IG",
    "instagram": "IG",
    "blog": "Blog",
}
YOUTUBE_IN_TEXT_PATTERN = re.compile(
    r"https?://(?:www\.)?(?:youtube\.com/watch\?v=[\w\-]+|youtu\.be/[\w\-]+)", re.IGNORECASE
)
SENTENCE_END_PATTERN = re.compile(r"(?<=[.!?。！？])\s")


def normalize_extraction(payload: Mapping[str, Any], sources: Sequence[SourceUnit]) -> ExtractionResult:
    """Build an ExtractionResult whose key point list is never empty."""

    result = ExtractionResult(
        key_points=as_str_list(payload.get("key_points")),
        grouped_concepts=as_str_list(payload.get("grouped_concepts")),
        deep_themes=as_str_list(payload.get("deep_themes")),
        pain_points=as_str_list(payload.get("pain_points")),
        emotional_direction=as_str(payload.get("emotional_direction")),
    )
    if not result.key_points:
        result.key_points = list(result.deep_themes)
    if not result.key_points:
        result.key_points = [source.title.strip() for source in sources if source.title.strip()]
    if not result.key_points:
        result.key_points = list(PLACEHOLDER_KEY_POINTS)
    return result


def normalize_platform(value: Any) -> str:
    text = as_str(value)
    if text in PLATFORMS:
        return text
    return PLATFORM_ALIASES.get(text.lower(), "Blog")


def normalize_topics(
    payload: Mapping[str, Any],
    extraction: ExtractionResult,
    style: str,
) -> list[TopicCandidate]:
    """Return exactly TOPIC_BATCH_SIZE candidates, padding with placeholders."""

    raw_topics = payload.get("topics")
    topics: list[TopicCandidate] = []
    seen_titles: set[str] = set()

    for item in raw_topics if isinstance(raw_topics, list) else []:
        data = as_mapping(item)
        title = as_str(data.get("title"))
        if not title or PLACEHOLDER_TITLE_PATTERN.match(title) or title.lower() in seen_titles:
            continue
        seen_titles.add(title.lower())
        topics.append(
            TopicCandidate(
                title=title,
                angle=as_str(data.get("angle")),
                connection_to_notes=as_str(data.get("connection_to_notes")),
                connection_to_mentor=as_str(data.get("connection_to_mentor")),
                platform=normalize_platform(data.get("platform")),
            )
        )
        if len(topics) == TOPIC_BATCH_SIZE:
            return topics

    seeds = extraction.deep_themes + extraction.key_points or [DEFAULT_TOPIC_SEED]
    index = 0
    while len(topics) < TOPIC_BATCH_SIZE:
        seed = seeds[index % len(seeds)]
        title = seed if index < len(seeds) else f"{seed} (part {index // len(seeds) + 1})"
        index += 1
        if title.lower() in seen_titles:
            continue
        seen_titles.add(title.lower())
        topics.append(
            TopicCandidate(
                title=title,
                angle=f"Looking at {seed.lower()} through the lens of {style}.",
                connection_to_notes=f"Builds on the note theme: {seed}.",
                connection_to_mentor=f"Applies {style}'s principles to everyday experience.",
                platform=PLATFORMS[len(topics) % len(PLATFORMS)],
            )
        )
    return topics


def derive_quote(text: str, limit: int = QUOTE_LIMIT) -> str:
    """First sentence of ``text``, cut at a word boundary when too long."""

    flat = " ".join(text.split())
    if not flat:
        return ""
    first = SENTENCE_END_PATTERN.split(flat, maxsplit=1)[0]
    if len(first) <= limit:
        return first
    cut = first[:limit].rsplit(" ", 1)[0] or first[:limit]
    return cut.rstrip(",;:") + "..."


def normalize_article(
    payload: Mapping[str, Any],
    *,
    raw_text: str,
    topic: TopicCandidate,
    extraction: ExtractionResult,
) -> Article:
    """Build an Article whose title and body are never empty."""

    title = as_str(payload.get("title")) or topic.title or "Article"
    body = (
        as_str(payload.get("content"))
        or as_str(payload.get("body"))
        or raw_text.strip()
        or "\n\n".join(extraction.key_points)
        or topic.angle
        or title
    )
    quote = as_str(payload.get("key_quote")) or derive_quote(body)
    return Article(title=title, body=body, quote=quote)


def article_fallback(raw_text: str, topic: TopicCandidate) -> dict:
    return {"title": topic.title, "content": raw_text.strip()}


def normalize_card(payload: Mapping[str, Any], article: Article) -> CardCopy:
    """Build a CardCopy with both quote variants populated."""

    article_quote = article.quote or derive_quote(article.body)
    key_quote = as_str(payload.get("key_quote")) or article_quote
    return CardCopy(
        title=as_str(payload.get("title")) or article.title,
        key_quote=key_quote,
        reflection_quote=as_str(payload.get("reflection_quote")) or key_quote or article.title,
        action_quote=as_str(payload.get("action_quote")) or article.title,
    )


def card_fallback(article: Article) -> dict:
    return {"title": article.title, "key_quote": article.quote}


def fallback_message(sources: Sequence[SourceUnit]) -> str:
    joined = "\n\n".join(source.body.strip() for source in sources if source.body.strip())
    return joined[:FALLBACK_MESSAGE_CHARS].strip() or DEFAULT_ENCOURAGEMENT


def normalize_daily(payload: Mapping[str, Any], sources: Sequence[SourceUnit]) -> tuple[str, str, MediaReference]:
    """Return title, message and the unverified media reference."""

    song = as_mapping(payload.get("song"))
    reason = as_str(song.get("reason"))
    url = as_str(song.get("youtube_url"))
    if not url:
        match = YOUTUBE_IN_TEXT_PATTERN.search(reason)
        url = match.group(0) if match else ""

    media = MediaReference(
        title=as_str(song.get("title")),
        artist=as_str(song.get("artist")),
        url=url,
        candidates=as_str_list(song.get("youtube_candidates"))[:MAX_MEDIA_CANDIDATES],
        reason=reason,
    )
    title = as_str(payload.get("title")) or DEFAULT_DAILY_TITLE
    message = as_str(payload.get("message")) or fallback_message(sources)
    return title, message, media
