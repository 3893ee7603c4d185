"""Export adapters for markdown and optional PDF output."""

from __future__ import annotations

import html
import re
from pathlib import Path

from reportlab.lib import colors
from reportlab.lib.pagesizes import A5
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import ListFlowable, ListItem, Paragraph, SimpleDocTemplate, Spacer

SAFE_STEM_PATTERN = re.compile(r"[^\w\-]+")


class MarkdownWriter:
    """Write an export to markdown, mirrored to PDF when enabled."""

    def __init__(self, markdown_dir: str | Path, pdf_dir: str | Path, output_pdf: bool = False):
        self.markdown_dir = Path(markdown_dir)
        self.pdf_dir = Path(pdf_dir)
        self.output_pdf = output_pdf
        self.markdown_dir.mkdir(parents=True, exist_ok=True)
        if self.output_pdf:
            self.pdf_dir.mkdir(parents=True, exist_ok=True)

    def write(self, stem: str, text: str) -> str:
        safe_stem = SAFE_STEM_PATTERN.sub("_", stem).strip("_") or "export"
        markdown_path = self.markdown_dir / f"{safe_stem}.md"
        markdown_path.write_text(text, encoding="utf-8")

        if self.output_pdf:
            self._write_pdf(text=text, output_path=self.pdf_dir / f"{safe_stem}.pdf", title=stem)
        return str(markdown_path)

    def _write_pdf(self, text: str, output_path: Path, title: str) -> None:
        doc = SimpleDocTemplate(
            str(output_path),
            pagesize=A5,
            leftMargin=14 * mm,
            rightMargin=14 * mm,
            topMargin=14 * mm,
            bottomMargin=16 * mm,
            title=title,
        )
        doc.build(_build_story(_parse_markdown_blocks(text)), onFirstPage=_draw_footer, onLaterPages=_draw_footer)


def _draw_footer(canvas, doc) -> None:  # type: ignore[no-untyped-def]
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.HexColor("#8b6f47"))
    canvas.drawRightString(A5[0] - 14 * mm, 8 * mm, f"{canvas.getPageNumber()}")
    canvas.restoreState()


def _build_story(blocks: list[tuple[str, str]]):
    styles = _build_styles()
    story = []
    index = 0

    while index < len(blocks):
        kind, content = blocks[index]

        if kind == "li":
            items = []
            while index < len(blocks) and blocks[index][0] == "li":
                items.append(ListItem(Paragraph(_inline_to_reportlab(blocks[index][1]), styles["p"]), leftIndent=8))
                index += 1
            story.append(ListFlowable(items, bulletType="bullet", leftIndent=10, bulletFontName="Helvetica"))
            story.append(Spacer(1, 6))
            continue

        story.append(Paragraph(_inline_to_reportlab(content), styles[kind]))
        story.append(Spacer(1, 8 if kind in ("h1", "quote") else 5))
        index += 1

    return story


def _build_styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    ink = colors.HexColor("#3b2f23")
    return {
        "h1": ParagraphStyle("H1", parent=base["Heading1"], fontName="Helvetica-Bold", fontSize=17, leading=21, textColor=ink),
        "h2": ParagraphStyle("H2", parent=base["Heading2"], fontName="Helvetica-Bold", fontSize=13, leading=16, textColor=ink),
        "p": ParagraphStyle("P", parent=base["BodyText"], fontName="Helvetica", fontSize=10.5, leading=15, textColor=ink),
        "quote": ParagraphStyle(
            "QUOTE",
            parent=base["BodyText"],
            fontName="Helvetica-Oblique",
            fontSize=11.5,
            leading=16,
            leftIndent=10,
            textColor=colors.HexColor("#6b4f2f"),
            backColor=colors.HexColor("#f6efe4"),
            borderPadding=6,
        ),
    }


def _parse_markdown_blocks(text: str) -> list[tuple[str, str]]:
    """Split export markdown into (kind, text) blocks: h1, h2, quote, li, p."""

    blocks: list[tuple[str, str]] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if line.startswith("# "):
            blocks.append(("h1", line[2:].strip()))
        elif line.startswith("## ") or line.startswith("### "):
            blocks.append(("h2", line.lstrip("#").strip()))
        elif line.startswith(">"):
            blocks.append(("quote", line[1:].strip()))
        elif re.match(r"^(?:-|\*)\s+", line):
            blocks.append(("li", re.sub(r"^(?:-|\*)\s+", "", line)))
        else:
            blocks.append(("p", line))
    return blocks


def _inline_to_reportlab(text: str) -> str:
    escaped = html.escape(text)
    escaped = re.sub(r"\[([^\]]+)\]\(([^)]+)\)", r"\1 (\2)", escaped)
    escaped = re.sub(r"\*\*([^*]+)\*\*", r"<b>\1</b>", escaped)
    return escaped
