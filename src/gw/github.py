"""GitHub access via the `gh` CLI."""

from __future__ import annotations

import json
import logging
import os
import re
import subprocess
from typing import Iterable

from gw.exceptions import RemoteQueryFailed
from gw.models import PR_STATES, PullRequest

log = logging.getLogger(__name__)

# https://github.com/owner/repo(.git), https://token@github.com/owner/repo,
# git@github.com:owner/repo.git, ssh://git@github.com/owner/repo.git
_GITHUB_URL = re.compile(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$")

_PR_FIELDS = "nodes { number state title headRefName }"


def parse_full_name(url: str | None) -> str | None:
    """Return ``owner/repo`` for a GitHub remote URL, or None if unrecognized."""
    if not url:
        return None
    match = _GITHUB_URL.search(url.strip())
    if match is None:
        return None
    return f"{match.group(1)}/{match.group(2)}"


def build_pr_query(count: int) -> str:
    """Build one GraphQL query that looks up PRs for ``count`` branches.

    Each branch gets an aliased ``pullRequests`` selection (``b0``, ``b1``, ...)
    bound to the ``$b<i>`` variable, newest PR first.
    """
    params = ["$owner: String!", "$name: String!"]
    selections = []
    for i in range(count):
        params.append(f"$b{i}: String!")
        selections.append(
            f"b{i}: pullRequests(headRefName: $b{i}, first: 1, "
            f"states: [OPEN, MERGED, CLOSED], "
            f"orderBy: {{field: CREATED_AT, direction: DESC}}) {{ {_PR_FIELDS} }}"
        )
    body = "\n    ".join(selections)
    return (
        f"query({', '.join(params)}) {{\n"
        f"  repository(owner: $owner, name: $name) {{\n"
        f"    {body}\n"
        f"  }}\n"
        f"}}"
    )


class GitHubClient:
    """Resolves repository metadata and pull requests through `gh`."""

    host = "github.com"

    def __init__(self, timeout: int = 30) -> None:
        self.timeout = timeout

    def _gh(self, args: list[str]) -> str:
        cmd = ["gh", *args]
        log.debug("running gh %s", " ".join(args[:2]))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise RemoteQueryFailed("GitHub CLI `gh` is not installed.") from e
        except subprocess.TimeoutExpired as e:
            raise RemoteQueryFailed(
                f"GitHub CLI timed out after {self.timeout}s."
            ) from e
        except subprocess.CalledProcessError as e:
            detail = (e.stderr or "").strip() or f"exit {e.returncode}"
            raise RemoteQueryFailed(f"GitHub CLI failed: {detail}") from e
        return result.stdout

    def _gh_json(self, args: list[str]):
        out = self._gh(args)
        try:
            return json.loads(out)
        except json.JSONDecodeError as e:
            raise RemoteQueryFailed("GitHub CLI returned malformed JSON.") from e

    def token(self) -> str:
        for var in ("GH_TOKEN", "GITHUB_TOKEN"):
            value = os.environ.get(var)
            if value:
                return value
        token = self._gh(["auth", "token"]).strip()
        if not token:
            raise RemoteQueryFailed("No GitHub token available; run `gh auth login`.")
        return token

    def clone_url(self, full_name: str) -> str:
        return f"https://{self.token()}@{self.host}/{full_name}.git"

    def default_branch(self, full_name: str) -> str:
        data = self._gh_json(["api", f"repos/{full_name}"])
        branch = data.get("default_branch") if isinstance(data, dict) else None
        if not branch:
            raise RemoteQueryFailed(f"GitHub did not report a default branch for {full_name}.")
        return branch

    def find_prs_by_branches(
        self, full_name: str, branches: Iterable[str]
    ) -> dict[str, PullRequest]:
        """Look up the PR for each branch in a single GraphQL request.

        Branches without a PR are absent from the result. If a branch has
        several PRs, the most recently created one is used.
        """
        names = sorted(set(branches))
        if not names:
            return {}
        owner, _, name = full_name.partition("/")

        args = ["api", "graphql", "-f", f"query={build_pr_query(len(names))}"]
        args += ["-f", f"owner={owner}", "-f", f"name={name}"]
        for i, branch in enumerate(names):
            args += ["-f", f"b{i}={branch}"]

        data = self._gh_json(args)
        if not isinstance(data, dict) or data.get("errors"):
            raise RemoteQueryFailed(f"GitHub query for {full_name} returned errors.")
        repository = (data.get("data") or {}).get("repository")
        if repository is None:
            raise RemoteQueryFailed(f"GitHub repository {full_name} not found.")

        prs: dict[str, PullRequest] = {}
        for i, branch in enumerate(names):
            nodes = (repository.get(f"b{i}") or {}).get("nodes") or []
            if not nodes:
                continue
            prs[branch] = self._parse_pr(nodes[0], branch)
        return prs

    @staticmethod
    def _parse_pr(node, branch: str) -> PullRequest:
        try:
            state = str(node.get("state", "")).upper()
            number = int(node["number"])
            title = str(node.get("title") or "")
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise RemoteQueryFailed(f"Malformed pull request data for {branch}.") from e
        if state not in PR_STATES:
            raise RemoteQueryFailed(f"Unexpected PR state '{state}' for {branch}.")
        return PullRequest(number=number, state=state, title=title, branch=branch)
