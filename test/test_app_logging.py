from types import SimpleNamespace

from notecraft.app import _build_runtime_log_lines


def test_runtime_log_lines_use_actual_config_values() -> None:
    config = SimpleNamespace(
        generation=SimpleNamespace(
            model_name="gpt-5.1",
            endpoint="https://api.openai.com/v1/chat/completions",
            max_attempts=4,
            base_delay_ms=250,
        ),
        runtime=SimpleNamespace(
            db_path="data/test.sqlite3",
            daily_sample_size=3,
            markdown_output_dir="exports/markdown",
            output_pdf=True,
            pdf_output_dir="exports/pdf",
        ),
    )

    lines = _build_runtime_log_lines(config)

    joined = "\n".join(lines)
    assert "model_name=gpt-5.1" in joined
    assert "max_attempts=4" in joined
    assert "base_delay_ms=250" in joined
    assert "db_path=data/test.sqlite3" in joined
    assert "daily_sample_size=3" in joined
    assert "output_pdf=True" in joined


def test_runtime_log_lines_tolerate_missing_optional_fields() -> None:
    config = SimpleNamespace(
        generation=SimpleNamespace(model_name="m", endpoint="e", max_attempts=1, base_delay_ms=1),
        runtime=SimpleNamespace(db_path="db"),
    )

    joined = "\n".join(_build_runtime_log_lines(config))

    assert "daily_sample_size=2" in joined
    assert "markdown_output_dir=N/A" in joined
    assert "output_pdf=False" in joined
