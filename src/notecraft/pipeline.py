"""Pipeline orchestration from selected notes to shareable card copy."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, replace
from typing import Sequence

from .config import PromptConfig
from .contracts import (
    article_fallback,
    card_fallback,
    normalize_article,
    normalize_card,
    normalize_extraction,
    normalize_topics,
)
from .errors import InputValidationError
from .extractor import extract
from .interfaces import ArtifactStore
from .llm import GenerationParams
from .models import PipelineRun, SourceUnit
from .prompts import article_prompt, card_prompt, extract_prompt, topics_prompt
from .retry import ResilientGenerator
from .similarity import find_copied_sentences
from .store import source_units_from_rows

logger = logging.getLogger(__name__)

MIN_SOURCES = 2

EXTRACT_PARAMS = GenerationParams(temperature=0.7, max_output_tokens=500)
TOPICS_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=1200)
ARTICLE_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=2000)
CARD_PARAMS = GenerationParams(temperature=0.7, max_output_tokens=300)


@dataclass(slots=True)
class ArticlePipeline:
    """Run the extract -> topics -> article -> card stages one call at a time.

    The orchestrator holds no run state. Each stage takes a PipelineRun and
    returns a new one with only that stage's field replaced; downstream fields
    are left alone, so recomputing them after a regenerate is up to the caller.
    """

    generator: ResilientGenerator
    store: ArtifactStore | None = None
    prompts: PromptConfig = field(default_factory=PromptConfig)

    def start(self, sources: Sequence[SourceUnit], style: str) -> PipelineRun:
        """Validate the selection and open a run."""

        run = PipelineRun(sources=tuple(sources), style=(style or "").strip())
        _require_selection(run)
        return run

    def start_from_ids(self, source_ids: Sequence[str], style: str) -> PipelineRun:
        """Load the selected notes from the store and open a run."""

        if self.store is None:
            raise InputValidationError("No store configured to load notes from")
        ids = list(dict.fromkeys(source_ids))
        if len(ids) < MIN_SOURCES:
            raise InputValidationError(f"At least {MIN_SOURCES} note IDs are required")

        rows = self.store.query("notes", {"id": ids})
        by_id = {unit.id: unit for unit in source_units_from_rows(rows)}
        missing = [item for item in ids if item not in by_id]
        if missing:
            raise InputValidationError(f"Notes not found: {', '.join(missing)}")
        return self.start([by_id[item] for item in ids], style)

    def extract(self, run: PipelineRun) -> PipelineRun:
        _require_selection(run)
        raw = self.generator.generate(
            "extract",
            self.prompts.extract_system,
            extract_prompt(run.sources, run.style),
            EXTRACT_PARAMS,
        )
        extraction = extract(
            raw,
            lambda payload: normalize_extraction(payload, run.sources),
            dict,
            stage="extract",
        )
        return replace(run, extraction=extraction)

    def propose_topics(self, run: PipelineRun) -> PipelineRun:
        _require_selection(run)
        if run.extraction is None:
            raise InputValidationError("Extraction data is required")

        raw = self.generator.generate(
            "topics",
            self.prompts.topics_system,
            topics_prompt(run.sources, run.style, run.extraction),
            TOPICS_PARAMS,
        )
        topics = extract(
            raw,
            lambda payload: normalize_topics(payload, run.extraction, run.style),
            lambda: {"topics": []},
            stage="topics",
        )
        return replace(run, topics=tuple(topics))

    def choose_topic(self, run: PipelineRun, index: int) -> PipelineRun:
        """Pick a proposed topic by 0-based position."""

        if not run.topics:
            raise InputValidationError("Topics must be proposed before choosing one")
        if not 0 <= index < len(run.topics):
            raise InputValidationError(f"Topic index {index} is out of range 0-{len(run.topics) - 1}")
        return replace(run, chosen_topic=run.topics[index])

    def draft_article(self, run: PipelineRun) -> PipelineRun:
        _require_selection(run)
        if run.extraction is None:
            raise InputValidationError("Extraction data is required")
        if run.chosen_topic is None:
            raise InputValidationError("Selected topic is required")

        topic = run.chosen_topic
        extraction = run.extraction
        raw = self.generator.generate(
            "article",
            self.prompts.article_system,
            article_prompt(run.sources, run.style, extraction, topic),
            ARTICLE_PARAMS,
        )
        article = extract(
            raw,
            lambda payload: normalize_article(payload, raw_text=raw, topic=topic, extraction=extraction),
            lambda: article_fallback(raw, topic),
            stage="article",
        )

        article.copied_fragments = find_copied_sentences(article.body, run.sources)
        if article.copied_fragments:
            logger.warning("Article repeats %d note sentence(s) verbatim", len(article.copied_fragments))
        return replace(run, article=article)

    def compose_card(self, run: PipelineRun) -> PipelineRun:
        article = run.article
        if article is None or not article.body:
            raise InputValidationError("Article content is required")

        raw = self.generator.generate(
            "card",
            self.prompts.card_system,
            card_prompt(article.title, article.body),
            CARD_PARAMS,
        )
        card = extract(
            raw,
            lambda payload: normalize_card(payload, article),
            lambda: card_fallback(article),
            stage="card",
        )
        return replace(run, card=card)

    def save(self, run: PipelineRun) -> dict:
        """Persist the run's article and card; only called when the user opts in."""

        if self.store is None:
            raise InputValidationError("No store configured to save into")
        if run.article is None:
            raise InputValidationError("Nothing to save: the run has no article")

        article_row = self.store.insert(
            "articles",
            {
                "style": run.style,
                "source_ids": run.source_ids,
                "topic": asdict(run.chosen_topic) if run.chosen_topic else None,
                "article": asdict(run.article),
            },
        )
        saved = {"article": article_row}
        if run.card is not None:
            saved["card"] = self.store.insert(
                "cards",
                {"article_id": article_row["id"], "card": asdict(run.card)},
            )
        return saved


def _require_selection(run: PipelineRun) -> None:
    if len(run.sources) < MIN_SOURCES:
        raise InputValidationError(f"At least {MIN_SOURCES} notes are required")
    if not run.style:
        raise InputValidationError("Mentor style is required")
