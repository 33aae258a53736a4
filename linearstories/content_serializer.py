#!/usr/bin/env python3
"""
Serialize stories back to the Markdown document format read by content_parser.
"""
from __future__ import annotations

from typing import Any, List, Optional, Sequence

import yaml

from .content_parser import METADATA_FENCES
from .models import Frontmatter, Story


DOCUMENT_END = '\n...\n'


def serialize_stories(stories: Sequence[Story], frontmatter: Optional[Frontmatter] = None) -> str:
    """
    Serialize stories to Markdown.

    A metadata block is written only for stories that have metadata, with
    one exception: a body that itself opens with a yaml fence gets an empty
    block in front of it, otherwise the parser would read the body's code
    block as the story's metadata.

    Args:
        stories: Stories in document order
        frontmatter: Optional document-level project/team

    Returns:
        Markdown text, always ending with a newline
    """
    parts: List[str] = []

    if frontmatter and not frontmatter.is_empty():
        parts.append('---')
        if frontmatter.project:
            parts.append(f'project: {_double_quoted(frontmatter.project)}')
        if frontmatter.team:
            parts.append(f'team: {_double_quoted(frontmatter.team)}')
        parts.append('---')
        parts.append('')

    for story in stories:
        parts.append(f'## {story.title}')
        parts.append('')

        metadata = _metadata_lines(story)
        if metadata or _body_opens_with_yaml_fence(story.body):
            parts.append('```yaml')
            parts.extend(metadata)
            parts.append('```')
            parts.append('')

        if story.body.strip():
            parts.append(story.body.rstrip('\n'))
            parts.append('')

    text = '\n'.join(parts)
    return text if text.endswith('\n') else text + '\n'


def _metadata_lines(story: Story) -> List[str]:
    """Metadata lines for a story; fields without a value are left out."""
    lines: List[str] = []

    if story.linear_id is not None:
        lines.append(f'linear_id: {_yaml_inline(story.linear_id)}')
    if story.linear_url is not None:
        lines.append(f'linear_url: {_yaml_inline(story.linear_url)}')
    if story.priority is not None:
        lines.append(f'priority: {_number(story.priority)}')
    if story.labels:
        lines.append(f'labels: {_yaml_inline(list(story.labels))}')
    if story.estimate is not None:
        lines.append(f'estimate: {_number(story.estimate)}')
    if story.assignee is not None:
        lines.append(f'assignee: {_yaml_inline(story.assignee)}')
    if story.status is not None:
        lines.append(f'status: {_yaml_inline(story.status)}')

    return lines


def _body_opens_with_yaml_fence(body: str) -> bool:
    for line in body.split('\n'):
        if line.strip():
            return line.strip() in METADATA_FENCES
    return False


def _yaml_inline(value: Any, **kwargs: Any) -> str:
    """Render a scalar or list on one line, quoted whenever YAML would read it back differently."""
    text = yaml.safe_dump(
        value,
        default_flow_style=True,
        width=float('inf'),
        allow_unicode=True,
        **kwargs,
    )
    if text.endswith(DOCUMENT_END):
        text = text[:-len(DOCUMENT_END)]
    return text.rstrip('\n')


def _double_quoted(value: str) -> str:
    return _yaml_inline(value, default_style='"')


def _number(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
