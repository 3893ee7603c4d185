"""Core data models for the note-to-artifact generation pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime

PLATFORMS = ("FB", "IG", "Blog")


@dataclass(slots=True, frozen=True)
class SourceUnit:
    """One user-authored note used as pipeline input."""

    id: str
    title: str
    body: str
    tags: tuple[str, ...] = ()
    created_at: datetime | None = None


@dataclass(slots=True)
class ExtractionResult:
    """Insights derived from two or more notes."""

    key_points: list[str] = field(default_factory=list)
    grouped_concepts: list[str] = field(default_factory=list)
    deep_themes: list[str] = field(default_factory=list)
    pain_points: list[str] = field(default_factory=list)
    emotional_direction: str = ""


@dataclass(slots=True)
class TopicCandidate:
    """One proposed article topic."""

    title: str
    angle: str
    connection_to_notes: str
    connection_to_mentor: str
    platform: str = "Blog"


@dataclass(slots=True)
class Article:
    """Long-form article drafted from a chosen topic."""

    title: str
    body: str
    quote: str = ""
    copied_fragments: list[str] = field(default_factory=list)


@dataclass(slots=True)
class CardCopy:
    """Short copy for a shareable card."""

    title: str
    key_quote: str
    reflection_quote: str
    action_quote: str


@dataclass(slots=True)
class MediaReference:
    """Recommended song with its verified link."""

    title: str = ""
    artist: str = ""
    url: str = ""
    candidates: list[str] = field(default_factory=list)
    reason: str = ""


@dataclass(slots=True)
class DailyArtifact:
    """One inspiration card per calendar date."""

    date: str
    title: str
    message: str
    media: MediaReference = field(default_factory=MediaReference)
    source_ids: list[str] = field(default_factory=list)
    copied_fragments: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "DailyArtifact":
        media = data.get("media") or {}
        return cls(
            date=str(data.get("date", "")),
            title=str(data.get("title", "")),
            message=str(data.get("message", "")),
            media=MediaReference(
                title=str(media.get("title", "")),
                artist=str(media.get("artist", "")),
                url=str(media.get("url", "")),
                candidates=list(media.get("candidates", [])),
                reason=str(media.get("reason", "")),
            ),
            source_ids=list(data.get("source_ids", [])),
            copied_fragments=list(data.get("copied_fragments", [])),
        )


@dataclass(slots=True, frozen=True)
class PipelineRun:
    """Caller-held state of one article workflow, filled left to right.

    Stages return a new run instead of mutating the one they were given.
    """

    sources: tuple[SourceUnit, ...]
    style: str
    extraction: ExtractionResult | None = None
    topics: tuple[TopicCandidate, ...] = ()
    chosen_topic: TopicCandidate | None = None
    article: Article | None = None
    card: CardCopy | None = None

    @property
    def source_ids(self) -> list[str]:
        return [item.id for item in self.sources]


@dataclass(slots=True)
class NoteEnrichment:
    """Generated metadata for a freshly captured note."""

    title: str
    topic: str
    emotion: str
    tags: list[str] = field(default_factory=list)
    summary: str = ""


@dataclass(slots=True)
class WeeklyReview:
    """Insights over one Monday-to-Sunday week of notes."""

    week: str
    themes: list[str] = field(default_factory=list)
    emotional_trends: str = ""
    highlights: list[str] = field(default_factory=list)
    reflection: str = ""
    note_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class AttemptRecord:
    """One failed call attempt seen by the retry wrapper."""

    attempt: int
    delay_ms: int
    kind: str


@dataclass(slots=True)
class DailyRunResult:
    """Outcome metadata for one daily job run."""

    artifact: DailyArtifact
    persisted: bool
    storage_error: str | None = None


@dataclass(slots=True)
class Letter:
    """A letter from a parent to their child, rewritten from a spoken transcript."""

    title: str
    body: str
    summary: str = ""
    child_name: str = ""
    tone: str = "warm"
    locale: str = "zh-TW"
