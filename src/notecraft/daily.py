"""Idempotent daily inspiration job keyed by calendar date."""

from __future__ import annotations

import logging
import random
import re
from datetime import date
from typing import Sequence

from .config import PromptConfig
from .contracts import normalize_daily
from .errors import NothingToSummarizeError
from .extractor import extract
from .interfaces import ArtifactStore, ReachabilityProbe
from .llm import GenerationParams
from .models import DailyArtifact, DailyRunResult, MediaReference, SourceUnit
from .prompts import daily_prompt
from .retry import ResilientGenerator
from .similarity import find_copied_sentences
from .store import source_units_from_rows

logger = logging.getLogger(__name__)

DAILY_COLLECTION = "daily_inspiration"
DAILY_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=500)

YOUTUBE_URL_PATTERN = re.compile(r"^(https?://)?(www\.)?(youtube\.com/watch\?v=|youtu\.be/)", re.IGNORECASE)


def date_key(day: date) -> str:
    return day.strftime("%Y-%m-%d")


def sample_sources(sources: Sequence[SourceUnit], size: int, rng: random.Random) -> list[SourceUnit]:
    """Pick up to ``size`` notes with an unbiased shuffle."""

    pool = list(sources)
    rng.shuffle(pool)
    return pool[: min(size, len(pool))]


def resolve_media_link(media: MediaReference, probe: ReachabilityProbe) -> MediaReference:
    """Keep the first reachable YouTube link among primary and alternates.

    Returns a copy whose ``url`` is verified or empty and whose alternates are
    dropped.
    """

    candidates = [media.url, *media.candidates]
    picked = ""
    for url in candidates:
        if not url or not YOUTUBE_URL_PATTERN.match(url):
            continue
        if probe.probe(url):
            picked = url
            break

    if not picked and (media.url or media.candidates):
        logger.warning("No reachable link among %d candidate(s), clearing media link", len(candidates))

    return MediaReference(
        title=media.title,
        artist=media.artist,
        url=picked,
        candidates=[],
        reason=media.reason,
    )


class DailyInspirationJob:
    """Generate and upsert the single inspiration artifact for a date."""

    def __init__(
        self,
        generator: ResilientGenerator,
        store: ArtifactStore,
        probe: ReachabilityProbe,
        prompts: PromptConfig | None = None,
        sample_size: int = 2,
        rng: random.Random | None = None,
    ):
        self.generator = generator
        self.store = store
        self.probe = probe
        self.prompts = prompts or PromptConfig()
        self.sample_size = sample_size
        self.rng = rng or random.Random()

    def get(self, day: date | None = None) -> DailyArtifact | None:
        """Return the stored artifact for ``day`` (default today), if any."""

        row = self.store.get_by_key(DAILY_COLLECTION, date_key(day or date.today()))
        return DailyArtifact.from_dict(row) if row else None

    def run(self, day: date | None = None) -> DailyRunResult:
        """Generate the artifact for ``day`` and upsert it under its date key.

        Raises:
            NothingToSummarizeError: No notes exist; no generation call is made.
        """

        key = date_key(day or date.today())
        sources = source_units_from_rows(self.store.query("notes"))
        if not sources:
            raise NothingToSummarizeError("No notes available to generate inspiration")

        selected = sample_sources(sources, self.sample_size, self.rng)
        raw = self.generator.generate(
            "daily",
            self.prompts.daily_system,
            daily_prompt(selected),
            DAILY_PARAMS,
        )
        title, message, media = extract(
            raw,
            lambda payload: normalize_daily(payload, selected),
            lambda: {"message": "" if "{" in raw else raw},
            stage="daily",
        )

        artifact = DailyArtifact(
            date=key,
            title=title,
            message=message,
            media=resolve_media_link(media, self.probe),
            source_ids=[item.id for item in selected],
            copied_fragments=find_copied_sentences(message, selected),
        )
        if artifact.copied_fragments:
            logger.warning("Daily message for %s repeats note text verbatim", key)

        try:
            self.store.upsert_by_key(DAILY_COLLECTION, key, artifact.to_dict())
        except Exception as exc:
            logger.error("Failed to save daily inspiration for %s: %s", key, exc)
            return DailyRunResult(artifact=artifact, persisted=False, storage_error=str(exc))

        logger.info("Saved daily inspiration for %s", key)
        return DailyRunResult(artifact=artifact, persisted=True)
