#!/usr/bin/env python3
"""
Resolve human-readable names (team, project, label, assignee, workflow state)
to Linear UUIDs.

One Resolver per import/export run. Every lookup is memoized in the
Resolver's own ResolutionCache, including misses, so repeating a name never
costs a second API call. UUIDs are passed through untouched.
"""
from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from .logger import SyncLogger, get_logger


UUID_PATTERN = re.compile(
    r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$',
    re.IGNORECASE,
)

NOT_FOUND = object()


class ResolverError(Exception):
    """Raised when a required name (team, project) has no match in Linear."""
    pass


def is_uuid(value: str) -> bool:
    return bool(UUID_PATTERN.match(value))


class ResolutionCache:
    """Per-run memo of (kind, key) -> id or NOT_FOUND."""

    def __init__(self) -> None:
        self._entries: Dict[Tuple[str, str], Any] = {}
        self.hits = 0
        self.misses = 0

    def lookup(self, kind: str, key: str) -> Any:
        """Return the cached id, NOT_FOUND, or None when the key was never resolved."""
        entry = self._entries.get((kind, key))
        if entry is None:
            self.misses += 1
        else:
            self.hits += 1
        return entry

    def store(self, kind: str, key: str, value: Optional[str]) -> None:
        self._entries[(kind, key)] = NOT_FOUND if value is None else value

    def summary(self) -> Dict[str, int]:
        """
        Get summary of cache state.

        Returns:
            Dictionary with entry, hit and miss counts
        """
        return {
            'entries': len(self._entries),
            'hits': self.hits,
            'misses': self.misses,
        }

    def __len__(self) -> int:
        return len(self._entries)


class Resolver:
    """Name → UUID resolution against Linear, with per-run caching."""

    def __init__(self, client, logger: Optional[SyncLogger] = None, cache: Optional[ResolutionCache] = None):
        """
        Initialize resolver.

        Args:
            client: LinearClient (or anything with the same lookup methods)
            logger: Sink for warnings (default: global logger)
            cache: Cache to use (default: a fresh one owned by this resolver)
        """
        self.client = client
        self.logger = logger or get_logger()
        self.cache = cache if cache is not None else ResolutionCache()

    def _resolve(
        self,
        kind: str,
        key: str,
        fetch: Callable[[], List[Dict[str, Any]]],
        describe: str
    ) -> Optional[str]:
        cached = self.cache.lookup(kind, key)
        if cached is not None:
            return None if cached is NOT_FOUND else cached

        nodes = fetch()
        if len(nodes) > 1:
            self.logger.warning(
                f"Multiple matches for {kind} {describe}, using the first",
                context={'kind': kind, 'name': describe, 'matches': len(nodes)},
            )

        resolved = nodes[0].get('id') if nodes else None
        self.cache.store(kind, key, resolved)
        return resolved

    def resolve_team_id(self, name_or_id: str) -> str:
        """
        Resolve a team name to its UUID.

        Raises:
            ResolverError: If no team has that name
        """
        if is_uuid(name_or_id):
            return name_or_id

        team_id = self._resolve(
            'team', name_or_id,
            lambda: self.client.teams({'name': {'eq': name_or_id}}),
            f'"{name_or_id}"',
        )
        if team_id is None:
            raise ResolverError(f'Team not found: "{name_or_id}"')
        return team_id

    def resolve_project_id(self, name_or_id: str, team_id: str) -> str:
        """
        Resolve a project name, scoped to a team, to its UUID.

        Raises:
            ResolverError: If the team has no project with that name
        """
        if is_uuid(name_or_id):
            return name_or_id

        project_id = self._resolve(
            'project', f'{team_id}:{name_or_id}',
            lambda: self.client.projects({
                'name': {'eq': name_or_id},
                'accessibleTeams': {'some': {'id': {'eq': team_id}}},
            }),
            f'"{name_or_id}"',
        )
        if project_id is None:
            raise ResolverError(f'Project not found: "{name_or_id}"')
        return project_id

    def resolve_label_ids(self, names: List[str]) -> List[str]:
        """
        Resolve label names to UUIDs, best-effort.

        Unknown labels are skipped with a warning; the result keeps input order.
        """
        ids: List[str] = []
        for name in names:
            if is_uuid(name):
                ids.append(name)
                continue

            label_id = self._resolve(
                'label', name,
                lambda: self.client.issue_labels({'name': {'eq': name}}),
                f'"{name}"',
            )
            if label_id is None:
                self.logger.warning(f'Label not found, skipping: "{name}"', context={'label': name})
                continue
            ids.append(label_id)
        return ids

    def resolve_assignee_id(self, email_or_name: str) -> Optional[str]:
        """Resolve an email (contains "@") or display name to a user UUID; None if unknown."""
        if is_uuid(email_or_name):
            return email_or_name

        if '@' in email_or_name:
            user_filter = {'email': {'eq': email_or_name}}
        else:
            user_filter = {'displayName': {'eq': email_or_name}}

        return self._resolve(
            'user', email_or_name,
            lambda: self.client.users(user_filter),
            f'"{email_or_name}"',
        )

    def resolve_workflow_state_id(self, name: str, team_id: str) -> Optional[str]:
        """Resolve a workflow state name (case-insensitive) within a team; None if unknown."""
        if is_uuid(name):
            return name

        return self._resolve(
            'state', f'{team_id}:{name.lower()}',
            lambda: self.client.workflow_states({
                'team': {'id': {'eq': team_id}},
                'name': {'eqIgnoreCase': name},
            }),
            f'"{name}"',
        )
