#!/usr/bin/env python3
"""
Parser for Markdown story documents.

Document format:
- Optional YAML frontmatter (--- ... ---) with project/team defaults
- One story per H2 heading (## Title)
- Optional fenced YAML metadata block (```yaml ... ```) right after the heading
- Everything else up to the next H2 (or EOF) is the story body

The boundary helpers here are shared with content_writer so that parsing and
write-back always agree on where stories start and end.
"""
from __future__ import annotations

import math
from collections import Counter
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .models import Frontmatter, Number, Story, StoryDocument


STORY_HEADING_PREFIX = '## '
FRONTMATTER_DELIMITER = '---'
FRONTMATTER_CLOSERS = ('---', '...')
METADATA_FENCES = ('```yaml', '```yml')
FENCE_CLOSE = '```'
CODE_FENCE_MARKERS = ('```', '~~~')


class ParseError(Exception):
    """Raised when a document contains no story at all."""


def frontmatter_end(lines: List[str]) -> Optional[int]:
    """Return the index of the closing frontmatter delimiter, or None if there is no frontmatter."""
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
        return None
    for i in range(1, len(lines)):
        if lines[i].rstrip() in FRONTMATTER_CLOSERS:
            return i
    return None


def code_fence_ranges(lines: List[str], first: int = 0) -> List[Tuple[int, int]]:
    """
    Find closed fenced code blocks.

    A fence opened with ``` or ~~~ closes at the next line made only of the
    same fence character. An opening fence that never closes is treated as
    plain text, so it cannot swallow the rest of the document.

    Returns:
        List of (open, close) line indexes, inclusive
    """
    ranges: List[Tuple[int, int]] = []
    i = first
    while i < len(lines):
        stripped = lines[i].strip()
        marker = next((m for m in CODE_FENCE_MARKERS if stripped.startswith(m)), None)
        if marker is None:
            i += 1
            continue

        close = next(
            (j for j in range(i + 1, len(lines)) if _is_fence_close(lines[j], marker)),
            None,
        )
        if close is None:
            i += 1
            continue

        ranges.append((i, close))
        i = close + 1

    return ranges


def _is_fence_close(line: str, marker: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(marker) and not stripped.strip(marker[0])


def find_story_sections(lines: List[str]) -> List[Tuple[int, int]]:
    """
    Locate story sections in a document split into lines.

    H2 headings inside the frontmatter or inside closed fenced code blocks
    are not story boundaries.

    Args:
        lines: Document lines (split on "\\n")

    Returns:
        List of (start, end) pairs: start is the heading line, end is exclusive
    """
    closing = frontmatter_end(lines)
    first = closing + 1 if closing is not None else 0

    in_code = set()
    for open_idx, close_idx in code_fence_ranges(lines, first):
        in_code.update(range(open_idx, close_idx + 1))

    starts = [
        i for i in range(first, len(lines))
        if i not in in_code and lines[i].startswith(STORY_HEADING_PREFIX)
    ]

    ends = starts[1:] + [len(lines)]
    return list(zip(starts, ends))


def find_metadata_fence(lines: List[str], start: int, end: int) -> Optional[Tuple[int, int]]:
    """
    Find the metadata block of the story whose heading is at `start`.

    Blank lines between heading and fence are allowed; any other line first
    means the story has no metadata block.

    Returns:
        (open, close) line indexes of the fences, or None
    """
    j = start + 1
    while j < end and not lines[j].strip():
        j += 1

    if j >= end or lines[j].strip() not in METADATA_FENCES:
        return None

    for k in range(j + 1, end):
        if lines[k].strip() == FENCE_CLOSE:
            return j, k
    return None


def heading_title(line: str) -> str:
    return line[len(STORY_HEADING_PREFIX):].strip()


def parse_markdown(content: str, file_path: str) -> StoryDocument:
    """
    Parse a Markdown document into frontmatter plus ordered stories.

    Args:
        content: Raw document text
        file_path: Document label used in error messages

    Returns:
        Parsed StoryDocument

    Raises:
        ParseError: If the document has no H2 story heading
    """
    lines = content.split('\n')
    frontmatter = _parse_frontmatter(lines)

    sections = find_story_sections(lines)
    if not sections:
        raise ParseError(
            f"No H2 headings found in file: {file_path}. "
            f"Each user story must start with an H2 heading (## )."
        )

    stories = [_parse_story(lines, start, end, frontmatter) for start, end in sections]
    return StoryDocument(frontmatter=frontmatter, stories=stories, file_path=file_path)


def duplicate_titles(document: StoryDocument) -> List[str]:
    """Titles that occur more than once in the document, in first-seen order."""
    counts = Counter(story.title for story in document.stories)
    return [title for title, count in counts.items() if count > 1]


def _parse_frontmatter(lines: List[str]) -> Frontmatter:
    closing = frontmatter_end(lines)
    if closing is None:
        return Frontmatter()

    data = _load_mapping('\n'.join(lines[1:closing]))
    return Frontmatter(
        project=_string_or_none(data.get('project')),
        team=_string_or_none(data.get('team')),
    )


def _parse_story(lines: List[str], start: int, end: int, frontmatter: Frontmatter) -> Story:
    title = heading_title(lines[start])

    fence = find_metadata_fence(lines, start, end)
    if fence:
        open_idx, close_idx = fence
        metadata = _load_mapping('\n'.join(lines[open_idx + 1:close_idx]))
        body_lines = lines[close_idx + 1:end]
    else:
        metadata = {}
        body_lines = lines[start + 1:end]

    return Story(
        title=title,
        linear_id=_string_or_none(metadata.get('linear_id')),
        linear_url=_string_or_none(metadata.get('linear_url')),
        priority=_number_or_none(metadata.get('priority')),
        labels=_labels(metadata.get('labels')),
        estimate=_number_or_none(metadata.get('estimate')),
        assignee=_string_or_none(metadata.get('assignee')),
        status=_string_or_none(metadata.get('status')),
        body=_join_body(body_lines),
        project=frontmatter.project,
        team=frontmatter.team,
    )


def _load_mapping(text: str) -> Dict[str, Any]:
    # Malformed YAML degrades to "no metadata" rather than failing the document
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return {}
    return data if isinstance(data, dict) else {}


def _join_body(body_lines: List[str]) -> str:
    first = 0
    last = len(body_lines)
    while first < last and not body_lines[first].strip():
        first += 1
    while last > first and not body_lines[last - 1].strip():
        last -= 1
    return '\n'.join(body_lines[first:last])


def _string_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    if not text.strip():
        return None
    return text


def _number_or_none(value: Any) -> Optional[Number]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else value

    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    return None if math.isnan(number) else number


def _labels(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = [str(item).strip() for item in value if item is not None]
    elif isinstance(value, str):
        items = [part.strip() for part in value.split(',')]
    else:
        items = [str(value).strip()]
    return [item for item in items if item]
