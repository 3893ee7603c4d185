import json
from pathlib import Path

import pytest

from notecraft.errors import InputValidationError
from notecraft.letters import DEFAULT_LETTER_TITLES, LETTERS_COLLECTION, LetterWriter, save_letter
from notecraft.retry import ResilientGenerator
from notecraft.store import SQLiteArtifactStore


class FakeCapability:
    def __init__(self, responses: list[str]):
        self.responses = list(responses)
        self.prompts: list[tuple[str, str]] = []

    def generate(self, system_prompt, user_prompt, params):
        self.prompts.append((system_prompt, user_prompt))
        return self.responses.pop(0)


def _writer(responses: list[str]) -> tuple[LetterWriter, FakeCapability]:
    capability = FakeCapability(responses)
    return LetterWriter(ResilientGenerator(capability, sleep=lambda _: None)), capability


def test_letter_uses_structured_fields_and_tone() -> None:
    writer, capability = _writer(
        [json.dumps({"title": "About today", "letter": "Dear Mia,\nI am proud of you.", "summary": "Pride."})]
    )

    letter = writer.generate("  you did great at the recital even though you were scared  ", "Mia", "story", "en")

    assert letter.title == "About today"
    assert letter.body == "Dear Mia,\nI am proud of you."
    assert letter.summary == "Pride."
    assert (letter.child_name, letter.tone, letter.locale) == ("Mia", "story", "en")
    user_prompt = capability.prompts[0][1]
    assert 'named "Mia"' in user_prompt
    assert "Storytelling" in user_prompt
    assert "Language: English" in user_prompt
    assert "you did great at the recital" in user_prompt


def test_letter_falls_back_to_raw_model_text() -> None:
    writer, _ = _writer(["爸爸想跟你說，今天你很勇敢。"])

    letter = writer.generate("今天你很勇敢")

    assert letter.title == DEFAULT_LETTER_TITLES["zh-TW"]
    assert letter.body == "爸爸想跟你說，今天你很勇敢。"
    assert letter.summary == ""


@pytest.mark.parametrize(
    ("text", "tone", "locale"),
    [("   ", "warm", "en"), ("hello", "angry", "en"), ("hello", "warm", "fr")],
)
def test_letter_rejects_invalid_input_before_generation(text, tone, locale) -> None:
    writer, capability = _writer([])

    with pytest.raises(InputValidationError):
        writer.generate(text, tone=tone, locale=locale)

    assert capability.prompts == []


def test_save_letter(tmp_path: Path) -> None:
    store = SQLiteArtifactStore(tmp_path / "letters.sqlite3")
    store.init_db()
    writer, _ = _writer([json.dumps({"title": "T", "letter": "Body"})])
    letter = writer.generate("raw words ", "Leo", locale="en")

    row = save_letter(store, letter, "raw words ")

    assert store.query(LETTERS_COLLECTION) == [row]
    assert row["raw_text"] == "raw words"
    assert row["letter"] == "Body"
    assert row["child_name"] == "Leo"
