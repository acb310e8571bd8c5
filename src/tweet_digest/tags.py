"""Suggestion helpers for delimited tag lists."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from tweet_digest.jobs.models import TagOption

TAG_SUGGESTION_LIMIT = 15

_DELIMITERS = re.compile(r"[,，\n]")


def parse_tag_list(text: str) -> list[str]:
    """Split on commas (ASCII or full-width) and newlines; drop blank tokens."""

    return [token.strip() for token in _DELIMITERS.split(text) if token.strip()]


def format_tag_list(tags: Iterable[str]) -> str:
    return ", ".join(tags)


def suggestions(
    current_text: str,
    known_options: Sequence[TagOption | str],
    limit: int = TAG_SUGGESTION_LIMIT,
) -> list[str]:
    """Known tags matching the last token that are not already present."""

    selected = {token.lower() for token in parse_tag_list(current_text)}
    last_token = _DELIMITERS.split(current_text)[-1].strip().lower()
    matches: list[str] = []
    for option in known_options:
        tag = option.tag if isinstance(option, TagOption) else option
        normalized = tag.lower()
        if normalized in selected:
            continue
        if last_token and last_token not in normalized:
            continue
        matches.append(tag)
        if len(matches) >= limit:
            break
    return matches


def apply_suggestion(current_text: str, chosen: str) -> str:
    """Replace the last (possibly partial) token with ``chosen`` and dedupe."""

    parts = _DELIMITERS.split(current_text)
    parts[-1] = chosen
    seen: set[str] = set()
    unique: list[str] = []
    for part in parts:
        token = part.strip()
        if not token:
            continue
        normalized = token.lower()
        if normalized in seen:
            continue
        seen.add(normalized)
        unique.append(token)
    return format_tag_list(unique)
