"""Command line entry point for notecraft."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from .config import DEFAULT_CONFIG_PATH, AppConfig, load_config
from .daily import DailyInspirationJob
from .enrichment import NoteEnricher, add_note, regenerate_title, related_notes
from .errors import InputValidationError, PipelineError
from .letters import LETTER_LANGUAGES, LETTER_TONES, LetterWriter, save_letter
from .llm import GenerationClient
from .output_writer import MarkdownWriter
from .pipeline import ArticlePipeline
from .probe import YouTubeOEmbedProbe
from .renderer import (
    render_article_markdown,
    render_daily_markdown,
    render_letter_markdown,
    render_weekly_markdown,
)
from .retry import ResilientGenerator
from .store import SQLiteArtifactStore
from .weekly import WeeklyReviewJob


@dataclass(slots=True)
class Services:
    """Collaborators built once from config."""

    store: SQLiteArtifactStore
    generator: ResilientGenerator
    writer: MarkdownWriter
    config: AppConfig


def _build_runtime_log_lines(config) -> list[str]:
    generation = config.generation
    runtime = config.runtime
    return [
        f"  model_name={generation.model_name}",
        f"  endpoint={generation.endpoint}",
        f"  max_attempts={generation.max_attempts}",
        f"  base_delay_ms={generation.base_delay_ms}",
        f"  db_path={runtime.db_path}",
        f"  daily_sample_size={getattr(runtime, 'daily_sample_size', 2)}",
        f"  markdown_output_dir={getattr(runtime, 'markdown_output_dir', 'N/A')}",
        f"  output_pdf={getattr(runtime, 'output_pdf', False)}",
        f"  pdf_output_dir={getattr(runtime, 'pdf_output_dir', 'N/A')}",
    ]


def build_services(config: AppConfig) -> Services:
    generation = config.generation
    client = GenerationClient(
        model=generation.model_name,
        endpoint=generation.endpoint,
        timeout_seconds=generation.timeout_seconds,
        api_key_env=generation.api_key_env,
    )
    if not client.enabled:
        print(f"[STEP] {generation.api_key_env} is not set; generation commands will fail")

    store = SQLiteArtifactStore(config.runtime.db_path)
    store.init_db()
    return Services(
        store=store,
        generator=ResilientGenerator(
            client,
            max_attempts=generation.max_attempts,
            base_delay_ms=generation.base_delay_ms,
        ),
        writer=MarkdownWriter(
            markdown_dir=config.runtime.markdown_output_dir,
            pdf_dir=config.runtime.pdf_output_dir,
            output_pdf=config.runtime.output_pdf,
        ),
        config=config,
    )


def cmd_add_note(services: Services, args: argparse.Namespace) -> None:
    note = add_note(services.store, NoteEnricher(services.generator), args.text)
    print(f"Saved note {note.id}: {note.title} [{', '.join(note.tags)}]")


def cmd_related(services: Services, args: argparse.Namespace) -> None:
    notes = related_notes(services.store, NoteEnricher(services.generator), args.note_id)
    if not notes:
        print("No related notes found")
        return
    for index, note in enumerate(notes, start=1):
        print(f"  {index}. {note['id']}: {note.get('title') or '(no title)'}")


def cmd_retitle(services: Services, args: argparse.Namespace) -> None:
    note = regenerate_title(services.store, NoteEnricher(services.generator), args.note_id)
    print(f"New title for {note['id']}: {note['title']}")


def cmd_letter(services: Services, args: argparse.Namespace) -> None:
    letter = LetterWriter(services.generator, services.config.prompts).generate(
        args.text, child_name=args.child, tone=args.tone, locale=args.locale
    )
    if args.save:
        saved = save_letter(services.store, letter, args.text)
        print(f"[STEP] Saved letter {saved['id']}")

    output_path = services.writer.write(f"letter_{letter.title}", render_letter_markdown(letter))
    print(f"Generated letter -> {output_path}")


def cmd_daily(services: Services, args: argparse.Namespace) -> None:
    job = DailyInspirationJob(
        generator=services.generator,
        store=services.store,
        probe=YouTubeOEmbedProbe(timeout_seconds=services.config.runtime.probe_timeout_seconds),
        prompts=services.config.prompts,
        sample_size=services.config.runtime.daily_sample_size,
    )
    result = job.run(day=args.date)
    output_path = services.writer.write(f"daily_{result.artifact.date}", render_daily_markdown(result.artifact))
    if result.persisted:
        print(f"Generated daily inspiration for {result.artifact.date} -> {output_path}")
    else:
        print(f"Generated daily inspiration but could not save it: {result.storage_error} -> {output_path}")


def cmd_show_daily(services: Services, args: argparse.Namespace) -> None:
    job = DailyInspirationJob(
        generator=services.generator,
        store=services.store,
        probe=YouTubeOEmbedProbe(),
    )
    artifact = job.get(day=args.date)
    if artifact is None:
        print("No daily inspiration for that date")
        return
    print(render_daily_markdown(artifact), end="")


def cmd_weekly(services: Services, args: argparse.Namespace) -> None:
    review = WeeklyReviewJob(services.generator, services.store, services.config.prompts).get_or_generate(args.week_of)
    output_path = services.writer.write(f"weekly_{review.week}", render_weekly_markdown(review))
    print(f"Weekly review for {review.week} -> {output_path}")


def cmd_article(services: Services, args: argparse.Namespace) -> None:
    pipeline = ArticlePipeline(
        generator=services.generator,
        store=services.store,
        prompts=services.config.prompts,
    )
    print("[STEP] Loading notes")
    run = pipeline.start_from_ids(args.notes, args.style)
    print("[STEP] Extracting insights")
    run = pipeline.extract(run)
    print("[STEP] Proposing topics")
    run = pipeline.propose_topics(run)
    for index, topic in enumerate(run.topics, start=1):
        print(f"  {index}. [{topic.platform}] {topic.title}")

    run = pipeline.choose_topic(run, args.topic - 1)
    print(f"[STEP] Drafting article: {run.chosen_topic.title}")
    run = pipeline.draft_article(run)
    print("[STEP] Composing card")
    run = pipeline.compose_card(run)

    if args.save:
        saved = pipeline.save(run)
        print(f"[STEP] Saved article {saved['article']['id']}")

    output_path = services.writer.write(f"article_{run.article.title}", render_article_markdown(run.article, run.card))
    print(f"Generated article -> {output_path}")


def _parse_date(text: str) -> date:
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM-DD, got {text!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Turn personal notes into shareable writing")
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to config json. Default: config/default_config.json",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    add = sub.add_parser("add-note", help="Enrich and save a new note")
    add.add_argument("text")
    add.set_defaults(handler=cmd_add_note)

    related = sub.add_parser("related", help="List notes related to a note")
    related.add_argument("note_id")
    related.set_defaults(handler=cmd_related)

    retitle = sub.add_parser("retitle", help="Regenerate the title of a stored note")
    retitle.add_argument("note_id")
    retitle.set_defaults(handler=cmd_retitle)

    letter = sub.add_parser("letter", help="Rewrite a transcript into a letter to your child")
    letter.add_argument("text")
    letter.add_argument("--child", default="", help="Child's name")
    letter.add_argument("--tone", choices=sorted(LETTER_TONES), default="warm")
    letter.add_argument("--locale", choices=sorted(LETTER_LANGUAGES), default="zh-TW")
    letter.add_argument("--save", action="store_true", help="Save the letter to the store")
    letter.set_defaults(handler=cmd_letter)

    daily = sub.add_parser("daily", help="Generate (or regenerate) the daily inspiration")
    daily.add_argument("--date", type=_parse_date, default=None)
    daily.set_defaults(handler=cmd_daily)

    show = sub.add_parser("show-daily", help="Print the stored daily inspiration")
    show.add_argument("--date", type=_parse_date, default=None)
    show.set_defaults(handler=cmd_show_daily)

    weekly = sub.add_parser("weekly", help="Get or generate the weekly review")
    weekly.add_argument("--week-of", type=_parse_date, default=None)
    weekly.set_defaults(handler=cmd_weekly)

    article = sub.add_parser("article", help="Run the article pipeline over selected notes")
    article.add_argument("--notes", nargs="+", required=True, help="At least two note IDs")
    article.add_argument("--style", required=True, help="Mentor or persona style, e.g. 'Stephen Covey'")
    article.add_argument("--topic", type=int, default=1, help="1-based topic number to draft")
    article.add_argument("--save", action="store_true", help="Save the article and card to the store")
    article.set_defaults(handler=cmd_article)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI main function."""

    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    effective_config_path = Path(args.config) if args.config else DEFAULT_CONFIG_PATH
    config = load_config(effective_config_path)
    print(f"[STEP] Loading configuration from {effective_config_path.resolve()}")
    for line in _build_runtime_log_lines(config):
        print(line)

    try:
        args.handler(build_services(config), args)
    except InputValidationError as exc:
        print(f"Invalid input ({exc.code}): {exc.reason}", file=sys.stderr)
        return 1
    except PipelineError as exc:
        print(f"Generation failed ({exc.code}): {exc.reason}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    sys.exit(main())
