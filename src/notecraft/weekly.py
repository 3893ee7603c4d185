"""Weekly review: get-or-generate insights keyed by the week's Monday."""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, tzinfo

from .config import PromptConfig
from .errors import NothingToSummarizeError
from .extractor import as_str, as_str_list, extract
from .interfaces import ArtifactStore
from .llm import GenerationParams
from .models import SourceUnit, WeeklyReview
from .prompts import weekly_prompt
from .retry import ResilientGenerator
from .store import source_units_from_rows

logger = logging.getLogger(__name__)

WEEKLY_COLLECTION = "weekly_insights"
WEEKLY_PARAMS = GenerationParams(temperature=0.7, max_output_tokens=1000)
FALLBACK_REFLECTION = "Unable to generate reflection at this time."


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def notes_in_week(sources: list[SourceUnit], monday: date, tz: tzinfo | None = None) -> list[SourceUnit]:
    """Notes created from Monday 00:00 up to the next Monday 00:00 in ``tz``.

    ``tz`` defaults to the local timezone of the process.
    """

    start = datetime.combine(monday, time.min, tzinfo=tz) if tz else datetime.combine(monday, time.min).astimezone()
    end = start + timedelta(days=7)
    return [item for item in sources if item.created_at and start <= item.created_at < end]


class WeeklyReviewJob:
    """Return the stored review for a week, generating it on first request."""

    def __init__(
        self,
        generator: ResilientGenerator,
        store: ArtifactStore,
        prompts: PromptConfig | None = None,
        tz: tzinfo | None = None,
    ):
        self.generator = generator
        self.store = store
        self.prompts = prompts or PromptConfig()
        self.tz = tz

    def today(self) -> date:
        return datetime.now(self.tz).date() if self.tz else date.today()

    def get_or_generate(self, week_of: date | None = None) -> WeeklyReview:
        monday = week_start(week_of or self.today())
        key = monday.isoformat()

        existing = self.store.get_by_key(WEEKLY_COLLECTION, key)
        if existing:
            return WeeklyReview(**existing)

        notes = notes_in_week(source_units_from_rows(self.store.query("notes")), monday, self.tz)
        if not notes:
            raise NothingToSummarizeError(f"No notes found for the week of {key}")

        raw = self.generator.generate("weekly", self.prompts.weekly_system, weekly_prompt(notes), WEEKLY_PARAMS)
        review = extract(
            raw,
            lambda payload: WeeklyReview(
                week=key,
                themes=as_str_list(payload.get("themes")),
                emotional_trends=as_str(payload.get("emotionalTrends")),
                highlights=as_str_list(payload.get("highlights")),
                reflection=as_str(payload.get("reflection")) or FALLBACK_REFLECTION,
                note_count=len(notes),
            ),
            dict,
            stage="weekly",
        )
        self.store.upsert_by_key(WEEKLY_COLLECTION, key, review.to_dict())
        logger.info("Saved weekly review for %s (%d notes)", key, len(notes))
        return review
