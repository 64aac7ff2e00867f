"""Materialize the commits that belong to a revision range."""

from typing import List, Optional, Sequence

from git_tagwalk.core.repository import GitRepository
from git_tagwalk.models.boundary import InclusivenessStrategy, RevisionBoundary
from git_tagwalk.models.commit import Commit


class CommitRangeComputer:
    def __init__(self, repository: GitRepository):
        self.repository = repository

    def compute_range(
        self,
        from_boundary: RevisionBoundary,
        to_boundary: RevisionBoundary,
        path_filters: Optional[Sequence[str]] = None,
    ) -> List[Commit]:
        """
        Commits between ``from`` (exclusive) and ``to`` (inclusive), newest first.

        Then inclusiveness is applied:
        - DEFAULT on ``from``: add it only if it is a root commit
        - INCLUSIVE on ``from``: always add it
        - EXCLUSIVE on ``to``: drop it
        """
        hashes = self.repository.commit_log(
            from_boundary.commit_hash, to_boundary.commit_hash, path_filters
        )
        commits = [self.repository.commit(commit_hash) for commit_hash in hashes]

        from_commit = self.repository.commit(from_boundary.commit_hash)
        if from_boundary.strategy == InclusivenessStrategy.DEFAULT:
            if from_commit.is_root:
                commits.append(from_commit)
        elif from_boundary.strategy == InclusivenessStrategy.INCLUSIVE:
            commits.append(from_commit)

        if to_boundary.strategy == InclusivenessStrategy.EXCLUSIVE:
            commits = [c for c in commits if c.hash != to_boundary.commit_hash]

        # from == to would otherwise list the boundary twice
        unique: List[Commit] = []
        seen = set()
        for commit in commits:
            if commit.hash not in seen:
                seen.add(commit.hash)
                unique.append(commit)
        return unique
