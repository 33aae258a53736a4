"""Shared fixtures: an in-memory Linear client, a recording logger and sample documents."""

from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from linearstories.config_loader import ResolvedConfig
from linearstories.logger import configure_logger


FIXTURES_DIR = Path(__file__).parent / "fixtures"

TEAM_ID = "11111111-1111-1111-1111-111111111111"
PROJECT_ID = "22222222-2222-2222-2222-222222222222"
FEATURE_LABEL_ID = "33333333-3333-3333-3333-333333333333"
FRONTEND_LABEL_ID = "44444444-4444-4444-4444-444444444444"
USER_ID = "55555555-5555-5555-5555-555555555555"
STATE_ID = "66666666-6666-6666-6666-666666666666"


class FakeLinearClient:
    """In-memory stand-in for LinearClient that records every call."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.teams_by_name = {"Engineering": [{"id": TEAM_ID, "name": "Engineering", "key": "ENG"}]}
        self.projects_by_name = {"Q1 Release": [{"id": PROJECT_ID, "name": "Q1 Release"}]}
        self.labels_by_name = {
            "Feature": [{"id": FEATURE_LABEL_ID, "name": "Feature"}],
            "Frontend": [{"id": FRONTEND_LABEL_ID, "name": "Frontend"}],
        }
        self.user_nodes = [{"id": USER_ID, "displayName": "alice", "email": "alice@example.com"}]
        self.states_by_name = {"todo": [{"id": STATE_ID, "name": "Todo"}]}
        self.issue_pages: List[Dict[str, Any]] = [{"nodes": [], "pageInfo": {"hasNextPage": False}}]
        self.fail_create_for: set = set()
        self.next_number = 200

    def _record(self, name: str, *args) -> None:
        self.calls.append((name,) + args)

    def calls_named(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    def teams(self, lookup_filter):
        self._record("teams", lookup_filter)
        return list(self.teams_by_name.get(lookup_filter["name"]["eq"], []))

    def projects(self, lookup_filter):
        self._record("projects", lookup_filter)
        return list(self.projects_by_name.get(lookup_filter["name"]["eq"], []))

    def issue_labels(self, lookup_filter):
        self._record("issue_labels", lookup_filter)
        return list(self.labels_by_name.get(lookup_filter["name"]["eq"], []))

    def users(self, lookup_filter):
        self._record("users", lookup_filter)
        if "email" in lookup_filter:
            return [u for u in self.user_nodes if u["email"] == lookup_filter["email"]["eq"]]
        name = lookup_filter["displayName"]["eq"]
        return [u for u in self.user_nodes if u["displayName"] == name]

    def workflow_states(self, lookup_filter):
        self._record("workflow_states", lookup_filter)
        return list(self.states_by_name.get(lookup_filter["name"]["eqIgnoreCase"].lower(), []))

    def create_issue(self, issue_input):
        self._record("create_issue", issue_input)
        if issue_input["title"] in self.fail_create_for:
            raise RuntimeError("Linear is unavailable")
        self.next_number += 1
        identifier = f"ENG-{self.next_number}"
        return {
            "success": True,
            "issue": {
                "id": f"issue-{self.next_number}",
                "identifier": identifier,
                "url": f"https://linear.app/acme/issue/{identifier}",
            },
        }

    def update_issue(self, issue_id, issue_input):
        self._record("update_issue", issue_id, issue_input)
        return {
            "success": True,
            "issue": {
                "id": "issue-existing",
                "identifier": issue_id,
                "url": f"https://linear.app/acme/issue/{issue_id}",
            },
        }

    def issues(self, issue_filter, first=50, after=None):
        self._record("issues", issue_filter, first, after)
        index = len(self.calls_named("issues")) - 1
        return self.issue_pages[index]


class RecordingLogger:
    """Collects log calls instead of writing them anywhere."""

    def __init__(self):
        self.records: List[tuple] = []
        self.contexts: Dict[str, Dict[str, Any]] = {}

    def info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.records.append(("info", message))

    def debug(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.records.append(("debug", message))
        self.contexts[message] = context or {}

    def warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        self.records.append(("warning", message))

    def error(self, message: str, error=None, context: Optional[Dict[str, Any]] = None) -> None:
        self.records.append(("error", message))

    def log_story_result(self, title, action, linear_id=None, error=None) -> None:
        self.records.append(("story", f"{action}: {title}"))

    def messages(self, level: str) -> List[str]:
        return [message for lvl, message in self.records if lvl == level]


class MemoryFileAccess:
    """Dict-backed file access for importer/exporter runs."""

    def __init__(self, files: Optional[Dict[str, str]] = None):
        self.files: Dict[str, str] = dict(files or {})
        self.writes: List[str] = []

    def read_text(self, path: str) -> str:
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.files[path]

    def write_text(self, path: str, text: str) -> None:
        self.writes.append(path)
        self.files[path] = text


@pytest.fixture
def fake_client():
    return FakeLinearClient()


@pytest.fixture
def recording_logger():
    return RecordingLogger()


@pytest.fixture
def config():
    return ResolvedConfig(api_key="lin_api_test", default_team="Engineering")


@pytest.fixture
def fixture_text():
    """Read a sample document from tests/fixtures."""

    def _read(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _read


@pytest.fixture(autouse=True)
def quiet_global_logger():
    """Keep the process-wide logger off the console between tests."""
    configure_logger(console_output=False)
    yield
    configure_logger(console_output=False)
