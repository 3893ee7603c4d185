"""Letters from a parent to their child, rewritten from a rough transcript."""

from __future__ import annotations

import logging

from .config import PromptConfig
from .errors import InputValidationError
from .extractor import as_str, extract
from .interfaces import ArtifactStore
from .llm import GenerationParams
from .models import Letter
from .prompts import letter_prompt
from .retry import ResilientGenerator

logger = logging.getLogger(__name__)

LETTERS_COLLECTION = "letters"
LETTER_PARAMS = GenerationParams(temperature=0.8, max_output_tokens=800)

DEFAULT_LETTER_TITLES = {
    "zh-TW": "給你的一小段話",
    "en": "A few words for you",
    "ja": "あなたへのひとこと",
}
LETTER_LANGUAGES = {
    "zh-TW": "Traditional Chinese",
    "en": "English",
    "ja": "Japanese",
}
LETTER_TONES = {
    "warm": "Warm and encouraging: gentle, supportive, full of love",
    "honest": "Honest talk: direct and sincere, for moments that need a real conversation",
    "story": "Storytelling: a small story or metaphor that makes the message easy to remember",
    "short": "Short reminder: brief and to the point, for everyday encouragement",
}


class LetterWriter:
    """Turn a transcript into a Letter with one generation call."""

    def __init__(self, generator: ResilientGenerator, prompts: PromptConfig | None = None):
        self.generator = generator
        self.prompts = prompts or PromptConfig()

    def generate(self, raw_text: str, child_name: str = "", tone: str = "warm", locale: str = "zh-TW") -> Letter:
        """Write a letter in ``tone`` and ``locale``.

        Raises:
            InputValidationError: Empty transcript, unknown tone or unknown locale.
        """

        text = (raw_text or "").strip()
        if not text:
            raise InputValidationError("Letter transcript is required")
        if tone not in LETTER_TONES:
            raise InputValidationError(f"Unknown tone {tone!r}; expected one of {', '.join(LETTER_TONES)}")
        if locale not in LETTER_LANGUAGES:
            raise InputValidationError(f"Unknown locale {locale!r}; expected one of {', '.join(LETTER_LANGUAGES)}")

        name = (child_name or "").strip()
        raw = self.generator.generate(
            "letter",
            self.prompts.letter_system,
            letter_prompt(text, name, LETTER_TONES[tone], LETTER_LANGUAGES[locale]),
            LETTER_PARAMS,
        )
        return extract(
            raw,
            lambda payload: Letter(
                title=as_str(payload.get("title")) or DEFAULT_LETTER_TITLES[locale],
                body=as_str(payload.get("letter")) or raw.strip() or text,
                summary=as_str(payload.get("summary")),
                child_name=name,
                tone=tone,
                locale=locale,
            ),
            dict,
            stage="letter",
        )


def save_letter(store: ArtifactStore, letter: Letter, raw_text: str) -> dict:
    row = store.insert(
        LETTERS_COLLECTION,
        {
            "child_name": letter.child_name,
            "title": letter.title,
            "raw_text": raw_text.strip(),
            "letter": letter.body,
            "summary": letter.summary,
            "tone": letter.tone,
            "locale": letter.locale,
        },
    )
    logger.info("Saved letter %s", row["id"])
    return row
