from pathlib import Path

from notecraft.output_writer import MarkdownWriter, _parse_markdown_blocks


def test_markdown_writer_outputs_markdown_and_pdf(tmp_path: Path) -> None:
    markdown_dir = tmp_path / "exports" / "markdown"
    pdf_dir = tmp_path / "exports" / "pdf"

    writer = MarkdownWriter(markdown_dir=markdown_dir, pdf_dir=pdf_dir, output_pdf=True)
    output_path = writer.write("daily_2026-02-06", "# Title\n\n> Quote\n\nBody\n\n- **Song**: x")

    md_path = markdown_dir / "daily_2026-02-06.md"
    pdf_path = pdf_dir / "daily_2026-02-06.pdf"

    assert output_path == str(md_path)
    assert md_path.exists()
    assert pdf_path.exists()
    assert pdf_path.read_bytes().startswith(b"%PDF")


def test_markdown_writer_skips_pdf_when_disabled(tmp_path: Path) -> None:
    markdown_dir = tmp_path / "exports" / "markdown"
    pdf_dir = tmp_path / "exports" / "pdf"

    writer = MarkdownWriter(markdown_dir=markdown_dir, pdf_dir=pdf_dir)
    writer.write("weekly_2026-02-02", "# Title\n\nBody")

    assert (markdown_dir / "weekly_2026-02-02.md").exists()
    assert not (pdf_dir / "weekly_2026-02-02.pdf").exists()


def test_markdown_writer_sanitizes_stem(tmp_path: Path) -> None:
    writer = MarkdownWriter(markdown_dir=tmp_path, pdf_dir=tmp_path / "pdf")

    output_path = writer.write("article_The Pause: Why/How?", "# T")

    assert Path(output_path).name == "article_The_Pause_Why_How.md"


def test_parse_markdown_blocks_preserves_structure() -> None:
    markdown = (
        "# Title\n\n"
        "> A quote\n\n"
        "Intro paragraph.\n\n"
        "## Section\n"
        "- item a\n"
        "- item b\n"
    )

    blocks = _parse_markdown_blocks(markdown)

    assert blocks == [
        ("h1", "Title"),
        ("quote", "A quote"),
        ("p", "Intro paragraph."),
        ("h2", "Section"),
        ("li", "item a"),
        ("li", "item b"),
    ]
