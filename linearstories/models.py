#!/usr/bin/env python3
"""
Data model shared by the parser, serializer and sync orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

Number = Union[int, float]

IMPORT_ACTIONS = ('created', 'updated', 'failed', 'skipped')


@dataclass
class Story:
    """One user story, parsed from or serialized to one H2 section."""
    title: str
    linear_id: Optional[str] = None  # e.g. "ENG-42"; None until created in Linear
    linear_url: Optional[str] = None
    priority: Optional[Number] = None  # 0=None, 1=Urgent, 2=High, 3=Normal, 4=Low
    labels: List[str] = field(default_factory=list)
    estimate: Optional[Number] = None
    assignee: Optional[str] = None  # email or display name
    status: Optional[str] = None  # workflow state name
    body: str = ''
    project: Optional[str] = None
    team: Optional[str] = None


@dataclass
class Frontmatter:
    """Document-level defaults inherited by every story."""
    project: Optional[str] = None
    team: Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.project or self.team)


@dataclass
class StoryDocument:
    frontmatter: Frontmatter
    stories: List[Story]
    file_path: str


@dataclass
class ImportResult:
    """Outcome of importing a single story."""
    story: Story
    action: str  # one of IMPORT_ACTIONS
    linear_id: Optional[str] = None
    linear_url: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DocumentError:
    """A document that could not be processed at all (unreadable, no stories)."""
    path: str
    message: str


@dataclass(frozen=True)
class ImportSummary:
    total: int
    created: int
    updated: int
    failed: int
    skipped: int
    results: Tuple[ImportResult, ...] = ()
    document_errors: Tuple[DocumentError, ...] = ()

    @classmethod
    def from_results(
        cls,
        results: List[ImportResult],
        document_errors: Optional[List[DocumentError]] = None
    ) -> 'ImportSummary':
        """Count actions over results, keeping their order."""
        counts = {action: 0 for action in IMPORT_ACTIONS}
        for result in results:
            counts[result.action] += 1

        return cls(
            total=len(results),
            created=counts['created'],
            updated=counts['updated'],
            failed=counts['failed'],
            skipped=counts['skipped'],
            results=tuple(results),
            document_errors=tuple(document_errors or ()),
        )


@dataclass
class ExportFilters:
    project: Optional[str] = None
    issues: List[str] = field(default_factory=list)  # identifiers like "ENG-42"
    status: Optional[str] = None
    assignee: Optional[str] = None  # email
    creator: Optional[str] = None  # email


@dataclass(frozen=True)
class ExportResult:
    count: int
    output_path: str
