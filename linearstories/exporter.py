#!/usr/bin/env python3
"""
Export Linear issues to a Markdown story document.

The output is a snapshot in the same format the importer reads, so an
exported file can be edited and imported again (issues keep their linear_id
and are updated, not duplicated).
"""

from __future__ import annotations

from typing import Optional

from .config_loader import ResolvedConfig
from .content_serializer import serialize_stories
from .file_access import LocalFileAccess
from .filters import IssueFilterInput, build_issue_filter
from .issues import IssueGateway, LinearIssueData
from .linear_client import LinearApiError
from .logger import SyncLogger, get_logger
from .models import ExportFilters, ExportResult, Frontmatter, Story
from .resolvers import Resolver, ResolverError, is_uuid


def issue_to_story(issue: LinearIssueData) -> Story:
    """Map a fetched issue onto a Story (identifier → linear_id, url → linear_url)."""
    return Story(
        title=issue.title,
        linear_id=issue.identifier or None,
        linear_url=issue.url or None,
        priority=issue.priority,
        labels=list(issue.label_names),
        estimate=issue.estimate,
        assignee=issue.assignee_email or issue.assignee_name,
        status=issue.state_name,
        body=issue.description or '',
        project=issue.project_name,
        team=issue.team_name,
    )


class StoryExporter:
    """Query Linear and write the matching issues to one Markdown file."""

    def __init__(
        self,
        client,
        config: ResolvedConfig,
        team: Optional[str] = None,
        file_access=None,
        logger: Optional[SyncLogger] = None
    ):
        """
        Initialize exporter.

        Args:
            client: LinearClient
            config: Resolved configuration
            team: Team override (default: config.default_team)
            file_access: Object with write_text (default: local disk)
            logger: Logger (default: global logger)
        """
        self.config = config
        self.team = team or config.default_team
        self.files = file_access or LocalFileAccess()
        self.logger = logger or get_logger()

        self.gateway = IssueGateway(client)
        self.resolver = Resolver(client, logger=self.logger)

    def build_filter_input(self, filters: ExportFilters) -> IssueFilterInput:
        """
        Turn CLI-level filters into filter conditions, resolving the project
        name to a UUID when a team is known. An unresolvable project is
        filtered by name instead of aborting the export.
        """
        filter_input = IssueFilterInput(
            identifiers=list(filters.issues),
            status_name=filters.status,
            assignee_email=filters.assignee,
            creator_email=filters.creator,
        )

        if filters.project:
            if is_uuid(filters.project):
                filter_input.project_id = filters.project
            elif self.team:
                try:
                    team_id = self.resolver.resolve_team_id(self.team)
                    filter_input.project_id = self.resolver.resolve_project_id(filters.project, team_id)
                except (ResolverError, LinearApiError) as e:
                    self.logger.warning(
                        f'Could not resolve project "{filters.project}", filtering by name',
                        context={'project': filters.project, 'team': self.team, 'error': str(e)},
                    )
                    filter_input.project_name = filters.project
            else:
                filter_input.project_name = filters.project

        return filter_input

    def run(self, filters: ExportFilters, output_path: str) -> ExportResult:
        """
        Fetch matching issues and write them to `output_path`.

        The file is written even when nothing matches.

        Raises:
            LinearApiError: If fetching issues fails
            OSError: If the output file cannot be written
        """
        issue_filter = build_issue_filter(self.build_filter_input(filters))
        self.logger.debug("Export filter", context={'filter': issue_filter})

        issues = self.gateway.fetch_issues(issue_filter)
        stories = [issue_to_story(issue) for issue in issues]

        frontmatter = Frontmatter(project=filters.project or None, team=self.team or None)
        self.files.write_text(output_path, serialize_stories(stories, frontmatter))

        self.logger.info(
            f"Exported {len(stories)} stories to {output_path}",
            context={'count': len(stories), 'output': output_path},
        )
        self.logger.debug("Resolver cache", context=self.resolver.cache.summary())
        return ExportResult(count=len(stories), output_path=output_path)


def export_records(
    client,
    config: ResolvedConfig,
    filters: ExportFilters,
    output_path: str,
    team: Optional[str] = None,
    file_access=None,
    logger: Optional[SyncLogger] = None
) -> ExportResult:
    """
    Export Linear issues to a Markdown file (convenience function).

    Returns:
        ExportResult with the number of exported stories and the output path
    """
    exporter = StoryExporter(client, config, team=team, file_access=file_access, logger=logger)
    return exporter.run(filters, output_path)
