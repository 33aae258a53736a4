#!/usr/bin/env python3
"""
Import Markdown user stories into Linear.

For every document, in order:
1. Parse it into stories
2. Per story: resolve team/project/labels/assignee/state, then update the
   issue named by linear_id or create a new one
3. Write the new linear_id / linear_url back into the document

A failing story is recorded as 'failed' and the run moves on; the summary
always lists every story in document order.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .config_loader import ResolvedConfig
from .content_parser import ParseError, duplicate_titles, parse_markdown
from .content_writer import WriteBackUpdate, write_back_ids
from .file_access import LocalFileAccess
from .issues import CreateIssueInput, IssueGateway, UpdateIssueInput
from .logger import SyncLogger, get_logger
from .models import DocumentError, ImportResult, ImportSummary, Story
from .resolvers import Resolver


PRIORITY_RANGE = range(0, 5)  # 0=None, 1=Urgent, 2=High, 3=Normal, 4=Low


class StoryImportError(Exception):
    """A story that cannot be sent to Linear as written."""
    pass


def merge_labels(story_labels: Iterable[str], default_labels: Iterable[str]) -> List[str]:
    """Story labels first, then defaults; duplicates dropped, order kept."""
    seen = set()
    merged: List[str] = []
    for label in list(story_labels) + list(default_labels):
        if label not in seen:
            seen.add(label)
            merged.append(label)
    return merged


def _checked_priority(priority) -> Optional[int]:
    if priority is None:
        return None
    if float(priority).is_integer() and int(priority) in PRIORITY_RANGE:
        return int(priority)
    raise StoryImportError(
        f"Invalid priority {priority}: expected 0 (none), 1 (urgent), 2 (high), 3 (normal) or 4 (low)"
    )


class StoryImporter:
    """Drives one import run over a list of documents."""

    def __init__(
        self,
        client,
        config: ResolvedConfig,
        team: Optional[str] = None,
        project: Optional[str] = None,
        dry_run: bool = False,
        skip_write_back: bool = False,
        fail_fast: bool = True,
        file_access=None,
        logger: Optional[SyncLogger] = None
    ):
        """
        Initialize importer.

        Args:
            client: LinearClient used for lookups and issue mutations
            config: Resolved configuration (default team/project/labels)
            team: Run-level team override (beats config, loses to the document)
            project: Run-level project override
            dry_run: Parse only; every story is 'skipped', nothing is sent or written
            skip_write_back: Never modify documents
            fail_fast: Raise on an unreadable/unparseable document instead of recording it
            file_access: Object with read_text/write_text (default: local disk)
            logger: Logger (default: global logger)
        """
        self.config = config
        self.team = team
        self.project = project
        self.dry_run = dry_run
        self.skip_write_back = skip_write_back
        self.fail_fast = fail_fast
        self.files = file_access or LocalFileAccess()
        self.logger = logger or get_logger()

        self.gateway = IssueGateway(client)
        self.resolver = Resolver(client, logger=self.logger)

    def run(self, document_paths: Iterable[str]) -> ImportSummary:
        """
        Import every document, in order.

        Returns:
            ImportSummary over all stories of all documents

        Raises:
            ParseError, OSError: Only when fail_fast is set
        """
        results: List[ImportResult] = []
        document_errors: List[DocumentError] = []

        for path in document_paths:
            try:
                content = self.files.read_text(path)
                document = parse_markdown(content, path)
            except (ParseError, OSError) as e:
                if self.fail_fast:
                    raise
                self.logger.error(f"Skipping document {path}", error=e)
                document_errors.append(DocumentError(path=path, message=str(e)))
                continue

            for title in duplicate_titles(document):
                self.logger.warning(
                    f'Duplicate story title in {path}: "{title}"; write-back only targets the first',
                    context={'file': path, 'title': title},
                )

            self.logger.info(
                f"Importing {len(document.stories)} stories from {path}",
                context={'file': path, 'dry_run': self.dry_run},
            )

            updates: List[WriteBackUpdate] = []
            for story in document.stories:
                result = self._process_story(story)
                results.append(result)
                self.logger.log_story_result(story.title, result.action, result.linear_id, result.error)

                if result.action == 'created' and result.linear_id and result.linear_url:
                    updates.append(WriteBackUpdate(story.title, result.linear_id, result.linear_url))

            if updates and not self.dry_run and not self.skip_write_back:
                error = self._write_back(path, content, updates)
                if error is not None:
                    document_errors.append(error)

        self.logger.debug("Resolver cache", context=self.resolver.cache.summary())
        return ImportSummary.from_results(results, document_errors)

    def _write_back(self, path: str, content: str, updates: List[WriteBackUpdate]) -> Optional[DocumentError]:
        try:
            self.files.write_text(path, write_back_ids(content, updates))
        except OSError as e:
            self.logger.error(
                f"Failed to write Linear IDs back to {path}",
                error=e,
                context={'ids': [u.linear_id for u in updates]},
            )
            return DocumentError(path=path, message=f"write-back failed: {e}")

        self.logger.info(
            f"Wrote {len(updates)} Linear ID(s) back to {path}",
            context={'ids': [u.linear_id for u in updates]},
        )
        return None

    def _process_story(self, story: Story) -> ImportResult:
        """Resolve names and create or update one story; never raises."""
        if self.dry_run:
            return ImportResult(story=story, action='skipped')

        try:
            team_name = story.team or self.team or self.config.default_team
            if not team_name:
                return ImportResult(
                    story=story,
                    action='failed',
                    error="No team specified for story and no default team configured",
                )

            priority = _checked_priority(story.priority)
            team_id = self.resolver.resolve_team_id(team_name)

            project_name = story.project or self.project or self.config.default_project
            project_id = self.resolver.resolve_project_id(project_name, team_id) if project_name else None

            labels = merge_labels(story.labels, self.config.default_labels)
            label_ids = self.resolver.resolve_label_ids(labels) if labels else []

            assignee_id = self.resolver.resolve_assignee_id(story.assignee) if story.assignee else None
            state_id = self.resolver.resolve_workflow_state_id(story.status, team_id) if story.status else None

            fields = dict(
                description=story.body or None,
                project_id=project_id,
                label_ids=label_ids or None,
                assignee_id=assignee_id,
                priority=priority,
                estimate=story.estimate,
                state_id=state_id,
            )

            if story.linear_id:
                updated = self.gateway.update_issue(
                    story.linear_id, UpdateIssueInput(title=story.title, **fields)
                )
                return ImportResult(
                    story=story,
                    action='updated',
                    linear_id=story.linear_id,
                    linear_url=story.linear_url or updated.url,
                )

            created = self.gateway.create_issue(
                CreateIssueInput(title=story.title, team_id=team_id, **fields)
            )
            return ImportResult(
                story=story,
                action='created',
                linear_id=created.identifier,
                linear_url=created.url,
            )

        except Exception as e:
            return ImportResult(story=story, action='failed', error=str(e))


def import_documents(
    client,
    document_paths: Iterable[str],
    config: ResolvedConfig,
    team: Optional[str] = None,
    project: Optional[str] = None,
    dry_run: bool = False,
    skip_write_back: bool = False,
    fail_fast: bool = True,
    file_access=None,
    logger: Optional[SyncLogger] = None
) -> ImportSummary:
    """
    Import stories from Markdown documents into Linear (convenience function).

    Returns:
        ImportSummary
    """
    importer = StoryImporter(
        client,
        config,
        team=team,
        project=project,
        dry_run=dry_run,
        skip_write_back=skip_write_back,
        fail_fast=fail_fast,
        file_access=file_access,
        logger=logger,
    )
    return importer.run(document_paths)
