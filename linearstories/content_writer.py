#!/usr/bin/env python3
"""
Write Linear IDs back into Markdown story documents.

Only the linear_id / linear_url lines of the targeted stories change; every
other byte of the document is preserved (field order, comments, spacing,
line endings, untouched stories).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Sequence

from .content_parser import find_metadata_fence, find_story_sections, heading_title


LINEAR_ID_LINE = re.compile(r'^linear_id:')
LINEAR_URL_LINE = re.compile(r'^linear_url:')


@dataclass(frozen=True)
class WriteBackUpdate:
    """Identifier/URL to record for the story with this title."""
    title: str
    linear_id: str
    linear_url: str


def write_back_ids(content: str, updates: Sequence[WriteBackUpdate]) -> str:
    """
    Return `content` with linear_id / linear_url filled in for the given stories.

    Stories are matched by title. An update applies to the first story with
    that title; if the update list repeats a title, the first entry wins.
    Does not touch the disk.

    Args:
        content: Original document text
        updates: Identifiers assigned to newly created stories

    Returns:
        Updated document text (the input itself when there are no updates)
    """
    if not updates:
        return content

    pending: Dict[str, WriteBackUpdate] = {}
    for update in updates:
        pending.setdefault(update.title, update)

    lines = content.split('\n')
    sections = find_story_sections(lines)
    if not sections:
        return content

    result: List[str] = lines[:sections[0][0]]
    for start, end in sections:
        update = pending.pop(heading_title(lines[start]), None)
        if update is None:
            result.extend(lines[start:end])
        else:
            result.extend(_rewrite_story(lines, start, end, update))

    return '\n'.join(result)


def _rewrite_story(lines: List[str], start: int, end: int, update: WriteBackUpdate) -> List[str]:
    id_line = f'linear_id: {update.linear_id}'
    url_line = f'linear_url: {update.linear_url}'

    fence = find_metadata_fence(lines, start, end)
    if fence is None:
        eol = _eol(lines[start])
        block = ['', '```yaml', id_line, url_line, '```']
        return [lines[start]] + [line + eol for line in block] + lines[start + 1:end]

    open_idx, close_idx = fence
    out = lines[start:open_idx + 1]
    found_id = found_url = False

    for line in lines[open_idx + 1:close_idx]:
        if LINEAR_ID_LINE.match(line):
            out.append(id_line + _eol(line))
            found_id = True
        elif LINEAR_URL_LINE.match(line):
            out.append(url_line + _eol(line))
            found_url = True
        else:
            out.append(line)

    eol = _eol(lines[close_idx])
    if not found_id:
        out.append(id_line + eol)
    if not found_url:
        out.append(url_line + eol)

    out.extend(lines[close_idx:end])
    return out


def _eol(line: str) -> str:
    # Keep CRLF documents CRLF: lines are split on "\n" so "\r" stays on the line
    return '\r' if line.endswith('\r') else ''
