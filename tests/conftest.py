"""Shared fixtures: real temporary git repositories with controlled history."""

import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest
from git import Repo

# 2020-01-01T00:00:00Z, commits are spaced one minute apart from here
EPOCH = 1577836800


class RepoBuilder:
    """Builds commit graphs with explicit parents and increasing commit times.

    Pass ``minute`` to pin a commit to a given offset from ``EPOCH`` instead,
    e.g. to give several commits the same second or to skew a clock.
    """

    def __init__(self, path: Path):
        self.path = path
        self.repo = Repo.init(path)
        with self.repo.config_writer() as config:
            config.set_value("user", "name", "Test User")
            config.set_value("user", "email", "test@example.com")
        self._clock = 0

    def commit(
        self,
        message: str,
        parents: Optional[List[str]] = None,
        files: Optional[Dict[str, str]] = None,
        minute: Optional[int] = None,
    ) -> str:
        files = files or {f"{message}.txt": f"{message}\n"}
        for name, content in files.items():
            target = self.path / name
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content)
            self.repo.index.add([name])

        self._clock += 1
        offset = self._clock if minute is None else minute
        date = f"{EPOCH + offset * 60} +0000"
        parent_commits = None
        if parents is not None:
            parent_commits = [self.repo.commit(parent) for parent in parents]
        commit = self.repo.index.commit(
            message,
            parent_commits=parent_commits,
            author_date=date,
            commit_date=date,
        )
        return commit.hexsha

    def tag(self, name: str, commit: str, message: Optional[str] = None) -> None:
        if message is None:
            self.repo.create_tag(name, ref=commit)
        else:
            self.repo.create_tag(name, ref=commit, message=message)


@pytest.fixture
def repo_builder():
    """Create an empty git repository and a builder for its history."""
    with tempfile.TemporaryDirectory() as temp_dir:
        builder = RepoBuilder(Path(temp_dir))
        yield builder
        builder.repo.close()


@pytest.fixture
def linear_repo(repo_builder):
    """A(root) -> B(v1.0.0) -> C -> D(v2.0.0)."""
    a = repo_builder.commit("A")
    b = repo_builder.commit("B")
    c = repo_builder.commit("C")
    d = repo_builder.commit("D")
    repo_builder.tag("v1.0.0", b)
    repo_builder.tag("v2.0.0", d)
    repo_builder.hashes = {"A": a, "B": b, "C": c, "D": d}
    return repo_builder


@pytest.fixture
def diamond_repo(repo_builder):
    """A(root) -> B(v1.0.0), A -> C, D merges B and C."""
    a = repo_builder.commit("A")
    b = repo_builder.commit("B", parents=[a])
    c = repo_builder.commit("C", parents=[a])
    d = repo_builder.commit("D", parents=[b, c])
    repo_builder.tag("v1.0.0", b)
    repo_builder.hashes = {"A": a, "B": b, "C": c, "D": d}
    return repo_builder
