#!/usr/bin/env python3
"""
Build Linear IssueFilter objects from a small set of named conditions.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


IDENTIFIER_PATTERN = re.compile(r'^([A-Za-z]+)-(\d+)$')


@dataclass
class IssueFilterInput:
    project_id: Optional[str] = None
    project_name: Optional[str] = None  # used only when the name could not be resolved
    identifiers: List[str] = field(default_factory=list)
    status_name: Optional[str] = None
    assignee_email: Optional[str] = None
    creator_email: Optional[str] = None


def build_issue_filter(filter_input: IssueFilterInput) -> Dict[str, Any]:
    """
    Translate filter conditions into Linear's IssueFilter structure.

    Conditions are combined at the top level (AND). Linear cannot filter by
    identifier directly, so "ENG-12" becomes a team key plus issue number.

    Args:
        filter_input: Filter conditions; unset fields add nothing

    Returns:
        IssueFilter dict (empty when no condition is set)
    """
    issue_filter: Dict[str, Any] = {}

    if filter_input.project_id:
        issue_filter['project'] = {'id': {'eq': filter_input.project_id}}
    elif filter_input.project_name:
        issue_filter['project'] = {'name': {'eq': filter_input.project_name}}

    if filter_input.identifiers:
        issue_filter.update(_identifier_filter(filter_input.identifiers))

    if filter_input.status_name:
        issue_filter['state'] = {'name': {'eqIgnoreCase': filter_input.status_name}}

    if filter_input.assignee_email:
        issue_filter['assignee'] = {'email': {'eq': filter_input.assignee_email}}

    if filter_input.creator_email:
        issue_filter['creator'] = {'email': {'eq': filter_input.creator_email}}

    return issue_filter


def _identifier_filter(identifiers: List[str]) -> Dict[str, Any]:
    numbers_by_team: Dict[str, List[int]] = {}
    for identifier in identifiers:
        match = IDENTIFIER_PATTERN.match(identifier.strip())
        if not match:
            continue
        team_key = match.group(1).upper()
        numbers_by_team.setdefault(team_key, []).append(int(match.group(2)))

    if not numbers_by_team:
        return {}

    if len(numbers_by_team) == 1:
        team_key, numbers = next(iter(numbers_by_team.items()))
        return {
            'number': {'in': numbers},
            'team': {'key': {'eq': team_key}},
        }

    # Issue numbers are per team, so pair each team with its own numbers
    return {
        'or': [
            {'team': {'key': {'eq': team_key}}, 'number': {'in': numbers}}
            for team_key, numbers in numbers_by_team.items()
        ]
    }
