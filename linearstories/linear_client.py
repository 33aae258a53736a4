#!/usr/bin/env python3
"""
Linear GraphQL client.

Thin transport over the Linear API: each method sends one GraphQL document
and returns plain response data. Decoding into typed results happens in
issues.py; name lookups are consumed by resolvers.py.
"""

import time
from typing import Any, Dict, List, Optional

import requests

from .logger import get_logger


class LinearApiError(Exception):
    """Raised when a Linear API call is rejected or cannot be completed."""
    pass


class LinearClient:
    """Client for the Linear GraphQL API."""

    GRAPHQL_ENDPOINT = 'https://api.linear.app/graphql'

    TEAMS_QUERY = """
    query Teams($filter: TeamFilter) {
      teams(filter: $filter) {
        nodes { id name key }
      }
    }
    """

    PROJECTS_QUERY = """
    query Projects($filter: ProjectFilter) {
      projects(filter: $filter) {
        nodes { id name }
      }
    }
    """

    LABELS_QUERY = """
    query IssueLabels($filter: IssueLabelFilter) {
      issueLabels(filter: $filter) {
        nodes { id name }
      }
    }
    """

    USERS_QUERY = """
    query Users($filter: UserFilter) {
      users(filter: $filter) {
        nodes { id name displayName email }
      }
    }
    """

    WORKFLOW_STATES_QUERY = """
    query WorkflowStates($filter: WorkflowStateFilter) {
      workflowStates(filter: $filter) {
        nodes { id name type }
      }
    }
    """

    CREATE_ISSUE_MUTATION = """
    mutation IssueCreate($input: IssueCreateInput!) {
      issueCreate(input: $input) {
        success
        issue { id identifier url }
      }
    }
    """

    UPDATE_ISSUE_MUTATION = """
    mutation IssueUpdate($id: String!, $input: IssueUpdateInput!) {
      issueUpdate(id: $id, input: $input) {
        success
        issue { id identifier url }
      }
    }
    """

    ISSUES_QUERY = """
    query Issues($filter: IssueFilter, $first: Int, $after: String) {
      issues(filter: $filter, first: $first, after: $after) {
        nodes {
          id
          identifier
          url
          title
          description
          priority
          estimate
          state { name }
          assignee { email displayName }
          labels { nodes { name } }
          project { name }
          team { name key }
        }
        pageInfo { hasNextPage endCursor }
      }
    }
    """

    def __init__(
        self,
        api_key: str,
        endpoint: Optional[str] = None,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Linear client.

        Args:
            api_key: Linear personal API key
            endpoint: GraphQL endpoint (default: GRAPHQL_ENDPOINT)
            timeout: Per-request timeout in seconds
            session: Optional pre-built requests session
        """
        if not api_key:
            raise LinearApiError("Linear API key required")

        self.endpoint = endpoint or self.GRAPHQL_ENDPOINT
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            'Authorization': api_key,
            'Content-Type': 'application/json',
        })

    def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Execute a GraphQL document.

        Args:
            query: GraphQL query or mutation
            variables: Query variables

        Returns:
            The response's `data` object

        Raises:
            LinearApiError: On transport failure, HTTP error status or GraphQL errors
        """
        logger = get_logger()
        started = time.monotonic()

        try:
            response = self._session.post(
                self.endpoint,
                json={'query': query, 'variables': variables or {}},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise LinearApiError(f"Linear request failed: {e}") from e

        logger.debug(
            "Linear GraphQL request",
            context={
                'status_code': response.status_code,
                'duration_sec': round(time.monotonic() - started, 3),
            },
        )

        try:
            payload = response.json()
        except ValueError:
            payload = None

        errors = payload.get('errors') if isinstance(payload, dict) else None
        if errors:
            message = errors[0].get('message', 'Unknown GraphQL error')
            raise LinearApiError(f"GraphQL error: {message}")

        if response.status_code >= 400:
            raise LinearApiError(f"Linear API returned HTTP {response.status_code}")
        if not isinstance(payload, dict):
            raise LinearApiError("Linear API returned a non-JSON response")

        return payload.get('data') or {}

    # ----- Lookups -----
    def _nodes(self, query: str, field: str, lookup_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = self.execute(query, {'filter': lookup_filter})
        return (data.get(field) or {}).get('nodes') or []

    def teams(self, lookup_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._nodes(self.TEAMS_QUERY, 'teams', lookup_filter)

    def projects(self, lookup_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._nodes(self.PROJECTS_QUERY, 'projects', lookup_filter)

    def issue_labels(self, lookup_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._nodes(self.LABELS_QUERY, 'issueLabels', lookup_filter)

    def users(self, lookup_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._nodes(self.USERS_QUERY, 'users', lookup_filter)

    def workflow_states(self, lookup_filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._nodes(self.WORKFLOW_STATES_QUERY, 'workflowStates', lookup_filter)

    # ----- Issues -----
    def create_issue(self, issue_input: Dict[str, Any]) -> Dict[str, Any]:
        """Run issueCreate; returns the raw {success, issue} payload."""
        data = self.execute(self.CREATE_ISSUE_MUTATION, {'input': issue_input})
        return data.get('issueCreate') or {}

    def update_issue(self, issue_id: str, issue_input: Dict[str, Any]) -> Dict[str, Any]:
        """Run issueUpdate; `issue_id` may be a UUID or an identifier like ENG-42."""
        data = self.execute(self.UPDATE_ISSUE_MUTATION, {'id': issue_id, 'input': issue_input})
        return data.get('issueUpdate') or {}

    def issues(
        self,
        issue_filter: Dict[str, Any],
        first: int = 50,
        after: Optional[str] = None
    ) -> Dict[str, Any]:
        """Fetch one page of issues; returns the raw {nodes, pageInfo} connection."""
        variables: Dict[str, Any] = {'filter': issue_filter, 'first': first}
        if after:
            variables['after'] = after
        data = self.execute(self.ISSUES_QUERY, variables)
        return data.get('issues') or {}
