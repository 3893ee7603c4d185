"""Markdown rendering for articles, cards and periodic artifacts."""

from __future__ import annotations

from .models import Article, CardCopy, DailyArtifact, Letter, WeeklyReview


def render_article_markdown(article: Article, card: CardCopy | None = None) -> str:
    """Render an article, with its card copy appended when present."""

    blocks = [f"# {article.title}", ""]
    if article.quote:
        blocks.extend([f"> {article.quote}", ""])

    for paragraph in article.body.split("\n"):
        if paragraph.strip():
            blocks.extend([paragraph.strip(), ""])

    if card is not None:
        blocks.extend(
            [
                "## Card",
                "",
                f"- **Title**: {card.title}",
                f"- **Key Quote**: {card.key_quote}",
                f"- **Reflection**: {card.reflection_quote}",
                f"- **Action**: {card.action_quote}",
                "",
            ]
        )

    return "\n".join(blocks).strip() + "\n"


def render_daily_markdown(artifact: DailyArtifact) -> str:
    media = artifact.media
    song = " - ".join(part for part in [media.title, media.artist] if part) or "N/A"
    link = f"[{media.url}]({media.url})" if media.url else "N/A"

    blocks = [
        f"# {artifact.title} - {artifact.date}",
        "",
        f"> {artifact.message}",
        "",
        "## Song",
        f"- **Song**: {song}",
        f"- **Link**: {link}",
    ]
    if media.reason:
        blocks.append(f"- **Why**: {media.reason}")
    return "\n".join(blocks).strip() + "\n"


def render_weekly_markdown(review: WeeklyReview) -> str:
    blocks = [f"# Weekly Review - week of {review.week}", "", f"Notes this week: {review.note_count}", ""]
    if review.themes:
        blocks.extend(["## Themes", *[f"- {item}" for item in review.themes], ""])
    if review.emotional_trends:
        blocks.extend(["## Emotional Trends", review.emotional_trends, ""])
    if review.highlights:
        blocks.extend(["## Highlights", *[f"- {item}" for item in review.highlights], ""])
    blocks.extend(["## Reflection", review.reflection])
    return "\n".join(blocks).strip() + "\n"


def render_letter_markdown(letter: Letter) -> str:
    blocks = [f"# {letter.title}", ""]
    for paragraph in letter.body.split("\n"):
        if paragraph.strip():
            blocks.extend([paragraph.strip(), ""])
    if letter.summary:
        blocks.append(f"> {letter.summary}")
    return "\n".join(blocks).strip() + "\n"
