#!/usr/bin/env python3
"""
Create, update and fetch Linear issues.

Response payloads are decoded here, once, into typed results; the rest of
the package never looks at raw GraphQL data. Every failure, whether an
explicit `success: false` or an exception from the client, surfaces as
LinearApiError.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .linear_client import LinearApiError
from .models import Number


PAGE_SIZE = 50


@dataclass
class CreateIssueInput:
    title: str
    team_id: str
    description: Optional[str] = None
    project_id: Optional[str] = None
    label_ids: Optional[List[str]] = None
    assignee_id: Optional[str] = None
    priority: Optional[int] = None
    estimate: Optional[Number] = None
    state_id: Optional[str] = None


@dataclass
class UpdateIssueInput:
    title: Optional[str] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    label_ids: Optional[List[str]] = None
    assignee_id: Optional[str] = None
    priority: Optional[int] = None
    estimate: Optional[Number] = None
    state_id: Optional[str] = None


@dataclass(frozen=True)
class CreatedIssue:
    id: str
    identifier: str
    url: str


@dataclass(frozen=True)
class UpdatedIssue:
    identifier: str
    url: Optional[str] = None


@dataclass
class LinearIssueData:
    """A fetched issue with nested objects flattened to names."""
    id: str
    identifier: str
    url: str
    title: str
    description: Optional[str] = None
    priority: Optional[int] = None
    estimate: Optional[Number] = None
    state_name: Optional[str] = None
    assignee_email: Optional[str] = None
    assignee_name: Optional[str] = None
    label_names: List[str] = field(default_factory=list)
    project_name: Optional[str] = None
    team_name: Optional[str] = None
    team_key: Optional[str] = None


_INPUT_FIELDS = {
    'title': 'title',
    'team_id': 'teamId',
    'description': 'description',
    'project_id': 'projectId',
    'label_ids': 'labelIds',
    'assignee_id': 'assigneeId',
    'priority': 'priority',
    'estimate': 'estimate',
    'state_id': 'stateId',
}


def _to_graphql_input(issue_input: Union[CreateIssueInput, UpdateIssueInput]) -> Dict[str, Any]:
    """Only fields that are set are sent, so updates never clear unset fields."""
    payload: Dict[str, Any] = {}
    for attr, key in _INPUT_FIELDS.items():
        value = getattr(issue_input, attr, None)
        if value is not None:
            payload[key] = value
    return payload


class IssueGateway:
    """Issue operations against an injected LinearClient."""

    def __init__(self, client, page_size: int = PAGE_SIZE):
        self.client = client
        self.page_size = page_size

    def create_issue(self, issue_input: CreateIssueInput) -> CreatedIssue:
        """
        Create a Linear issue.

        Raises:
            LinearApiError: If Linear rejects the issue or the call fails
        """
        try:
            response = self.client.create_issue(_to_graphql_input(issue_input))
        except Exception as e:
            raise LinearApiError(f'Failed to create issue: "{issue_input.title}" - {e}') from e

        issue = response.get('issue') or {}
        if not response.get('success') or not issue.get('identifier'):
            raise LinearApiError(f'Failed to create issue: "{issue_input.title}"')

        return CreatedIssue(
            id=issue.get('id', ''),
            identifier=issue['identifier'],
            url=issue.get('url', ''),
        )

    def update_issue(self, issue_id: str, issue_input: UpdateIssueInput) -> UpdatedIssue:
        """
        Update an existing issue by UUID or identifier (e.g. "ENG-42").

        Raises:
            LinearApiError: If Linear rejects the update or the call fails
        """
        try:
            response = self.client.update_issue(issue_id, _to_graphql_input(issue_input))
        except Exception as e:
            raise LinearApiError(f'Failed to update issue: "{issue_id}" - {e}') from e

        if not response.get('success'):
            raise LinearApiError(f'Failed to update issue: "{issue_id}"')

        issue = response.get('issue') or {}
        return UpdatedIssue(
            identifier=issue.get('identifier') or issue_id,
            url=issue.get('url'),
        )

    def fetch_issues(self, issue_filter: Dict[str, Any]) -> List[LinearIssueData]:
        """
        Fetch every issue matching `issue_filter`, following pagination cursors.

        Raises:
            LinearApiError: If any page request fails
        """
        issues: List[LinearIssueData] = []
        cursor: Optional[str] = None

        while True:
            try:
                page = self.client.issues(issue_filter, first=self.page_size, after=cursor)
            except LinearApiError:
                raise
            except Exception as e:
                raise LinearApiError(f"Failed to fetch issues - {e}") from e

            issues.extend(_decode_issue(node) for node in page.get('nodes') or [])

            page_info = page.get('pageInfo') or {}
            cursor = page_info.get('endCursor')
            if not page_info.get('hasNextPage') or not cursor:
                break

        return issues


def _decode_issue(node: Dict[str, Any]) -> LinearIssueData:
    state = node.get('state') or {}
    assignee = node.get('assignee') or {}
    project = node.get('project') or {}
    team = node.get('team') or {}
    labels = (node.get('labels') or {}).get('nodes') or []

    return LinearIssueData(
        id=node.get('id', ''),
        identifier=node.get('identifier', ''),
        url=node.get('url', ''),
        title=node.get('title', ''),
        description=node.get('description'),
        priority=node.get('priority'),
        estimate=node.get('estimate'),
        state_name=state.get('name'),
        assignee_email=assignee.get('email'),
        assignee_name=assignee.get('displayName'),
        label_names=[label['name'] for label in labels if label.get('name')],
        project_name=project.get('name'),
        team_name=team.get('name'),
        team_key=team.get('key'),
    )
