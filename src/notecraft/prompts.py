"""Default system prompts and user prompt builders for each stage."""

from __future__ import annotations

import json
from dataclasses import asdict
from typing import Any, Mapping, Sequence

from .models import ExtractionResult, SourceUnit, TopicCandidate

EXTRACT_SYSTEM = """
You are a content strategist reading a writer's personal notes.
Summarize the ideas in your own words; never copy sentences from the notes.
Return JSON only:
{
  "key_points": string[],
  "grouped_concepts": string[],
  "deep_themes": string[],
  "pain_points": string[],
  "emotional_direction": string
}
Give 3-5 key points and 3-5 deep themes. Answer in the language of the notes.
""".strip()

TOPICS_SYSTEM = """
You are a content strategist proposing article topics from notes and a mentor's philosophy.
Propose exactly 5 distinct topics with specific, attractive titles.
Return JSON only:
{
  "topics": [
    {
      "title": string,
      "angle": string,
      "connection_to_notes": string,
      "connection_to_mentor": string,
      "platform": "FB" | "IG" | "Blog"
    }
  ]
}
Never use placeholder titles. Answer in the language of the notes.
""".strip()

ARTICLE_SYSTEM = """
You are a professional writer producing a 500-1000 word article.
Use the notes only as a skeleton. Do not copy, quote or reuse sentences from them,
and do not quote the mentor; apply the mentor's thinking as a lens.
Open with a story or situation, develop the core message with concrete examples,
and close with a small step the reader can take today.
Return JSON only:
{"title": string, "content": string, "key_quote": string}
Answer in the language of the notes.
""".strip()

CARD_SYSTEM = """
You are writing copy for a shareable social media card based on an article.
Return JSON only:
{
  "title": string,
  "key_quote": string,
  "reflection_quote": string,
  "action_quote": string
}
reflection_quote is one thought-provoking sentence; action_quote is one short actionable sentence.
Answer in the language of the article.
""".strip()

DAILY_SYSTEM = """
You are a warm, grounded life coach writing a short daily encouragement
inspired by (never copied from) the user's notes.
Return JSON only:
{
  "title": string,
  "message": string,
  "song": {
    "title": string,
    "artist": string,
    "youtube_url": string,
    "youtube_candidates": string[],
    "reason": string
  }
}
The message is 1-2 paraphrased sentences. Pick a real song whose lyrics and mood
match the message; youtube_url is a https://www.youtube.com/watch?v=ID link and
youtube_candidates holds 2-3 alternative links. The reason names the concrete
lyric or theme that connects the song to the message.
Answer in the dominant language of the notes.
""".strip()

WEEKLY_SYSTEM = """
You analyze one week of personal notes. Return JSON only:
{"themes": string[], "emotionalTrends": string, "highlights": string[], "reflection": string}
""".strip()

ENRICH_TITLE_SYSTEM = "You write short, thought-provoking titles that capture a note's deeper meaning."
ENRICH_TOPIC_SYSTEM = "You classify notes into topics."
ENRICH_EMOTION_SYSTEM = "You detect the dominant emotion in a note."
ENRICH_TAGS_SYSTEM = "You write short, meaningful tags in the language of the note."
ENRICH_SUMMARY_SYSTEM = "You write short summaries that reveal the themes beneath a note."
ENRICH_RELATED_SYSTEM = "You find related notes based on content similarity."

LETTER_SYSTEM = """
You help a parent turn a rough spoken transcript into a short letter to their child,
written from the parent to the child.
Use everyday words a child aged 6-15 understands. Distill and reorganize the thoughts;
do not copy long sentences from the transcript. Stay warm, honest and grounded,
without sounding like a slogan. Aim for a letter a child reads in one or two minutes.
Soften or generalize medical, financial or adult-only details.
Never mention being an AI.
Open by addressing the child (by name when given), explain one or two core ideas,
and close with a short, warm reassurance.
Return JSON only:
{"title": string, "letter": string, "summary": string}
The title is 5-10 words; the summary is one sentence and may be empty.
""".strip()


def format_sources(sources: Sequence[SourceUnit], label: str = "Note") -> str:
    blocks = []
    for index, source in enumerate(sources, start=1):
        blocks.append(
            f"{label} {index}:\n"
            f"Title: {source.title or '(no title)'}\n"
            f"Content: {source.body}\n"
            f"Tags: {', '.join(source.tags)}"
        )
    return "\n\n".join(blocks)


def extract_prompt(sources: Sequence[SourceUnit], style: str) -> str:
    return (
        f"Mentor Style: {style}\n\n"
        f"Notes to analyze:\n{format_sources(sources)}\n\n"
        "Extract insights following the JSON format specified."
    )


def topics_prompt(sources: Sequence[SourceUnit], style: str, extraction: ExtractionResult) -> str:
    return (
        f"Mentor Style: {style}\n\n"
        f"Selected Notes:\n{format_sources(sources)}\n\n"
        f"Content Extraction:\n{json.dumps(asdict(extraction), ensure_ascii=False, indent=2)}\n\n"
        "Generate exactly 5 article topics following the JSON format specified."
    )


def article_prompt(
    sources: Sequence[SourceUnit],
    style: str,
    extraction: ExtractionResult,
    topic: TopicCandidate,
) -> str:
    return (
        f"Mentor Style: {style}\n\n"
        f"Selected Notes:\n{format_sources(sources)}\n\n"
        f"Content Extraction:\n{json.dumps(asdict(extraction), ensure_ascii=False, indent=2)}\n\n"
        f"Selected Topic:\n{json.dumps(asdict(topic), ensure_ascii=False, indent=2)}\n\n"
        "Write the article. The content must be original; do not copy from the notes."
    )


def card_prompt(title: str, body: str) -> str:
    return f"Article:\nTitle: {title}\nContent: {body}\n\nExtract card content following the JSON format specified."


def daily_prompt(sources: Sequence[SourceUnit]) -> str:
    return (
        f"These are {len(sources)} randomly selected cards from all saved cards.\n"
        "Create the JSON only, no extra text.\n\n"
        f"Cards:\n{format_sources(sources, label='Card')}"
    )


def weekly_prompt(sources: Sequence[SourceUnit]) -> str:
    return f"Notes from this week:\n{format_sources(sources)}\n\nReturn the weekly review JSON."


def enrich_title_prompt(content: str) -> str:
    return (
        "Generate a concise, creative title (max 10 words) capturing the essence of this note, "
        f'in the language of the note.\n\nContent: "{content}"\n\nReturn only the title.'
    )


def enrich_topic_prompt(content: str, topics: Sequence[str]) -> str:
    options = "\n".join(f"- {item}" for item in topics)
    return f'Classify this note into one of these topics:\n{options}\n\nNote content: "{content}"\n\nReturn only the topic name.'


def enrich_emotion_prompt(content: str, emotions: Sequence[str]) -> str:
    options = "\n".join(f"- {item}" for item in emotions)
    return f'Return the dominant emotion of this note, one of:\n{options}\n\nNote content: "{content}"\n\nReturn only the emotion name.'


def enrich_tags_prompt(content: str, title: str, topic: str, emotion: str) -> str:
    return (
        "Generate 3-5 short tags (1-2 words each), comma-separated.\n\n"
        f'Title: "{title}"\nTopic: "{topic}"\nEmotion: "{emotion}"\nContent: "{content}"\n\n'
        "Return only the tags separated by commas."
    )


def enrich_summary_prompt(content: str, title: str) -> str:
    return (
        "Summarize this note in 2-3 sentences that add perspective rather than repeat it, "
        f'in the language of the note.\n\nTitle: "{title}"\nContent: "{content}"'
    )


def _note_field(note: Mapping[str, Any], name: str) -> str:
    value = note.get(name)
    if isinstance(value, list):
        return ", ".join(str(item) for item in value)
    return str(value or "")


def enrich_related_prompt(note: Mapping[str, Any], others: Sequence[Mapping[str, Any]]) -> str:
    candidates = "\n".join(
        f"{index}. ID: {_note_field(other, 'id')}\n"
        f"   Title: {_note_field(other, 'title')}\n"
        f"   Content: {_note_field(other, 'content')}\n"
        f"   Topic: {_note_field(other, 'topic')}\n"
        f"   Tags: {_note_field(other, 'tags')}"
        for index, other in enumerate(others, start=1)
    )
    return (
        "Given this note:\n"
        f'Title: "{_note_field(note, "title")}"\n'
        f'Content: "{_note_field(note, "content")}"\n'
        f'Topic: "{_note_field(note, "topic")}"\n'
        f"Tags: {_note_field(note, 'tags')}\n\n"
        f"And these other notes:\n{candidates}\n\n"
        "Find the 3 most related notes by ID, considering shared topics or themes, related tags, "
        "content similarity and complementary ideas.\n\n"
        'Return only the IDs separated by commas, like: "id1,id2,id3"'
    )


def letter_prompt(raw_text: str, child_name: str, tone_description: str, language: str) -> str:
    recipient = f'their child named "{child_name}"' if child_name else "their child"
    return (
        f"Rewrite this raw transcript into a letter from the parent to {recipient}.\n\n"
        f"Tone: {tone_description}\n"
        f"Language: {language}\n\n"
        f"Raw transcript:\n{raw_text}\n\n"
        "Find the core message and feelings (care, worry, pride, encouragement, apology), "
        "distill them into one or two simple ideas, and write the letter in the requested tone and language. "
        "Return JSON only with title, letter and summary."
    )
