"""Port: repository data — defined by the domain, implemented outside this package."""

from __future__ import annotations

from typing import Protocol

from repo_sitegen.domain.entities import RepoInfo


class RepoFetcher(Protocol):
    """Abstract contract for collecting the repository facts a run needs."""

    async def fetch_repo_info(self, full_name: str) -> RepoInfo:
        """Return name, description, language, topics, README, stats and contributors."""
        ...
