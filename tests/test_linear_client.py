"""Tests for the Linear GraphQL transport."""

from unittest.mock import MagicMock

import pytest
import requests

from linearstories.linear_client import LinearApiError, LinearClient


def _response(status_code=200, payload=None, json_error=False):
    response = MagicMock()
    response.status_code = status_code
    if json_error:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    session = MagicMock()
    session.headers = {}
    return session


class TestLinearClientBasics:
    """Test construction."""

    def test_requires_api_key(self):
        """Test an empty key is rejected."""
        with pytest.raises(LinearApiError, match="API key required"):
            LinearClient("")

    def test_authorization_header(self, session):
        """Test the key is sent as the Authorization header."""
        LinearClient("lin_api_123", session=session)

        assert session.headers["Authorization"] == "lin_api_123"

    def test_graphql_endpoint(self):
        """Test GraphQL endpoint is correct."""
        assert LinearClient.GRAPHQL_ENDPOINT == "https://api.linear.app/graphql"


class TestExecute:
    """Test request/response handling."""

    def test_returns_data(self, session):
        """Test the data object is returned and variables are posted."""
        session.post.return_value = _response(payload={"data": {"teams": {"nodes": []}}})
        client = LinearClient("key", session=session)

        data = client.execute("query { teams { nodes { id } } }", {"a": 1})

        assert data == {"teams": {"nodes": []}}
        _, kwargs = session.post.call_args
        assert kwargs["json"]["variables"] == {"a": 1}
        assert kwargs["timeout"] == 30.0

    def test_graphql_errors(self, session):
        """Test GraphQL errors raise with the first message."""
        session.post.return_value = _response(payload={"errors": [{"message": "Bad filter"}]})
        client = LinearClient("key", session=session)

        with pytest.raises(LinearApiError, match="GraphQL error: Bad filter"):
            client.execute("query")

    def test_http_error(self, session):
        """Test HTTP error statuses raise."""
        session.post.return_value = _response(status_code=500, json_error=True)
        client = LinearClient("key", session=session)

        with pytest.raises(LinearApiError, match="HTTP 500"):
            client.execute("query")

    def test_non_json_response(self, session):
        """Test a 200 without a JSON body raises."""
        session.post.return_value = _response(json_error=True)
        client = LinearClient("key", session=session)

        with pytest.raises(LinearApiError, match="non-JSON"):
            client.execute("query")

    def test_transport_error(self, session):
        """Test connection failures are wrapped."""
        session.post.side_effect = requests.ConnectionError("refused")
        client = LinearClient("key", session=session)

        with pytest.raises(LinearApiError, match="Linear request failed"):
            client.execute("query")


class TestOperations:
    """Test the typed helpers unwrap their payloads."""

    def test_teams_nodes(self, session):
        """Test lookups return the nodes list."""
        session.post.return_value = _response(
            payload={"data": {"teams": {"nodes": [{"id": "t1", "name": "Eng", "key": "ENG"}]}}}
        )
        client = LinearClient("key", session=session)

        assert client.teams({"name": {"eq": "Eng"}}) == [{"id": "t1", "name": "Eng", "key": "ENG"}]

    def test_create_issue_payload(self, session):
        """Test issueCreate payload is returned as is."""
        payload = {"success": True, "issue": {"id": "i", "identifier": "ENG-1", "url": "u"}}
        session.post.return_value = _response(payload={"data": {"issueCreate": payload}})
        client = LinearClient("key", session=session)

        assert client.create_issue({"title": "A", "teamId": "t"}) == payload

    def test_issues_omits_empty_cursor(self, session):
        """Test the first page is requested without an 'after' variable."""
        session.post.return_value = _response(
            payload={"data": {"issues": {"nodes": [], "pageInfo": {"hasNextPage": False}}}}
        )
        client = LinearClient("key", session=session)

        client.issues({}, first=10)

        _, kwargs = session.post.call_args
        assert kwargs["json"]["variables"] == {"filter": {}, "first": 10}
