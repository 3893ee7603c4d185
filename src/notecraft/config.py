"""Configuration loading for notecraft."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path

from . import prompts


@dataclass(slots=True)
class GenerationConfig:
    """Generation service and retry configuration."""

    model_name: str = "gpt-5.1"
    endpoint: str = "https://api.openai.com/v1/chat/completions"
    api_key_env: str = "OPENAI_API_KEY"
    timeout_seconds: float = 60
    max_attempts: int = 3
    base_delay_ms: int = 1000


@dataclass(slots=True)
class RuntimeConfig:
    """Runtime behavior configuration."""

    db_path: str = "data/notecraft.sqlite3"
    markdown_output_dir: str = "exports/markdown"
    pdf_output_dir: str = "exports/pdf"
    output_pdf: bool = False
    daily_sample_size: int = 2
    probe_timeout_seconds: float = 10


@dataclass(slots=True)
class PromptConfig:
    """System prompts for each generation stage."""

    extract_system: str = prompts.EXTRACT_SYSTEM
    topics_system: str = prompts.TOPICS_SYSTEM
    article_system: str = prompts.ARTICLE_SYSTEM
    card_system: str = prompts.CARD_SYSTEM
    daily_system: str = prompts.DAILY_SYSTEM
    weekly_system: str = prompts.WEEKLY_SYSTEM
    letter_system: str = prompts.LETTER_SYSTEM


@dataclass(slots=True)
class AppConfig:
    """Application configuration object."""

    generation: GenerationConfig = field(default_factory=GenerationConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)
    prompts: PromptConfig = field(default_factory=PromptConfig)


DEFAULT_CONFIG_PATH = Path("config/default_config.json")


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load configuration from JSON file.

    Args:
        path: Custom config path. If omitted, uses default config.

    Returns:
        Parsed AppConfig object.

    Raises:
        FileNotFoundError: If config file does not exist.
        ValueError: If a numeric field cannot be parsed.
    """

    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    data = json.loads(config_path.read_text(encoding="utf-8"))
    defaults = AppConfig()

    gen_data = data.get("generation", {})
    generation = GenerationConfig(
        model_name=gen_data.get("model_name", defaults.generation.model_name),
        endpoint=gen_data.get("endpoint", defaults.generation.endpoint),
        api_key_env=gen_data.get("api_key_env", defaults.generation.api_key_env),
        timeout_seconds=float(gen_data.get("timeout_seconds", defaults.generation.timeout_seconds)),
        max_attempts=int(gen_data.get("max_attempts", defaults.generation.max_attempts)),
        base_delay_ms=int(gen_data.get("base_delay_ms", defaults.generation.base_delay_ms)),
    )
    if generation.max_attempts < 1:
        raise ValueError("generation.max_attempts must be at least 1")

    runtime_data = {key.lower(): value for key, value in data.get("runtime", {}).items()}
    runtime = RuntimeConfig(
        db_path=runtime_data.get("db_path", defaults.runtime.db_path),
        markdown_output_dir=runtime_data.get("markdown_output_dir", defaults.runtime.markdown_output_dir),
        pdf_output_dir=runtime_data.get("pdf_output_dir", defaults.runtime.pdf_output_dir),
        output_pdf=bool(runtime_data.get("output_pdf", False)),
        daily_sample_size=int(runtime_data.get("daily_sample_size", defaults.runtime.daily_sample_size)),
        probe_timeout_seconds=float(
            runtime_data.get("probe_timeout_seconds", defaults.runtime.probe_timeout_seconds)
        ),
    )

    prompt_data = data.get("prompts", {})
    prompt_config = PromptConfig(
        **{
            name: prompt_data[name]
            for name in (item.name for item in fields(PromptConfig))
            if isinstance(prompt_data.get(name), str) and prompt_data[name].strip()
        }
    )

    return AppConfig(generation=generation, runtime=runtime, prompts=prompt_config)
