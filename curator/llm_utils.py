from __future__ import annotations

from collections.abc import Sequence
from typing import cast

from curator.constants import AI_FALLBACK_TEXT, BRIEFING_MAX_STORIES
from curator.models import Story


def build_payload(prompt: str) -> dict[str, object]:
    """Gemini generateContent request body for a single-turn text prompt."""
    return {"contents": [{"parts": [{"text": prompt}]}]}


def extract_text(data: object) -> str:
    """First candidate's text from a generateContent response, or a fallback."""
    if not isinstance(data, dict):
        return AI_FALLBACK_TEXT
    candidates = cast(dict[str, object], data).get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return AI_FALLBACK_TEXT
    first = candidates[0]
    if not isinstance(first, dict):
        return AI_FALLBACK_TEXT
    content = first.get("content")
    if not isinstance(content, dict):
        return AI_FALLBACK_TEXT
    parts = content.get("parts")
    if not isinstance(parts, list) or not parts:
        return AI_FALLBACK_TEXT
    part = parts[0]
    text = part.get("text") if isinstance(part, dict) else None
    if isinstance(text, str) and text:
        return text
    return AI_FALLBACK_TEXT


def analysis_prompt(story: Story) -> str:
    return (
        "I am reading a news story.\n"
        f'Headline: "{story.title}"\n'
        f'Excerpt: "{story.excerpt or ""}"\n'
        f"Source: {story.source}\n\n"
        "Please explain in one or two short sentences why this story might be "
        "significant or what the broader context is.\n"
        'Focus on "why it matters". Keep it neutral and objective.'
    )


def briefing_prompt(
    stories: Sequence[Story], max_stories: int = BRIEFING_MAX_STORIES
) -> str:
    headlines = "\n".join(f"- {s.title} ({s.source})" for s in stories[:max_stories])
    return (
        'You are a professional news anchor providing a "Morning Briefing".\n'
        "Here are the top headlines for this user:\n"
        f"{headlines}\n\n"
        "Synthesize these into a single, cohesive paragraph (about 3-4 sentences) "
        "summarizing the key themes or most important events.\n"
        "Do not just list the titles. Make it sound engaging and professional."
    )
