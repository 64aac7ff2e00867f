"""Git repository access for the tag walker, backed by GitPython."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import git
from git import Repo

from git_tagwalk.core.exceptions import RepositoryError
from git_tagwalk.models.commit import Commit
from git_tagwalk.models.tag import TagRef

logger = logging.getLogger(__name__)


class GitRepository:
    """Read-only view of a git repository.

    One instance is opened per pipeline invocation and closed when the
    invocation ends; every read during the walk goes through it.
    """

    def __init__(self, repo_path: Path):
        self.repo_path = Path(repo_path).expanduser().resolve()
        try:
            self.repo = Repo(self.repo_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise RepositoryError(f"Did not find a GIT repo in {self.repo_path}") from e
        self._commits: Dict[str, Commit] = {}

    def __enter__(self) -> "GitRepository":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.repo.close()

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.git_dir)

    @property
    def working_tree_dir(self) -> Optional[Path]:
        if self.repo.working_tree_dir is None:
            return None
        return Path(self.repo.working_tree_dir)

    @property
    def origin_url(self) -> Optional[str]:
        try:
            return self.repo.remote("origin").url
        except ValueError:
            return None

    def _iter_refs(self) -> Iterator[Tuple[str, git.SymbolicReference]]:
        yield "HEAD", self.repo.head
        for ref in self.repo.refs:
            yield ref.path, ref

    def ref_names(self) -> List[str]:
        return [name for name, _ in self._iter_refs()]

    def describe(self) -> str:
        """Repository location followed by all known ref names."""
        return f"Repo: {self.git_dir}\n" + "\n".join(self.ref_names())

    def find_ref(self, name: str, exact: bool) -> Optional[str]:
        """Find a ref and return the hash of the commit it peels to.

        Exact matching is case-insensitive and also tries ``refs/tags/<name>``
        and ``refs/heads/<name>``; otherwise any ref ending with ``name``
        matches.
        """
        wanted = {
            name.lower(),
            f"refs/tags/{name}".lower(),
            f"refs/heads/{name}".lower(),
        }
        for ref_name, ref in self._iter_refs():
            if exact:
                matching = ref_name.lower() in wanted
            else:
                matching = ref_name.endswith(name)
            if not matching:
                continue
            try:
                return ref.commit.hexsha
            except ValueError:
                # HEAD of an empty repository, or a ref to a non-commit object
                logger.debug("Ref %s does not peel to a commit", ref_name)
        return None

    def resolve_commit(self, spec: str) -> Optional[str]:
        """Resolve a direct commit identifier, full or abbreviated."""
        try:
            return self.repo.commit(spec).hexsha
        except (git.exc.BadName, git.exc.BadObject, ValueError):
            return None

    def commit(self, commit_hash: str) -> Commit:
        cached = self._commits.get(commit_hash)
        if cached is not None:
            return cached

        raw = self.repo.commit(commit_hash)
        message = raw.message
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")
        commit = Commit(
            hash=raw.hexsha,
            author_name=raw.author.name or "",
            author_email=raw.author.email or "",
            timestamp=datetime.fromtimestamp(raw.committed_date, tz=timezone.utc),
            message=message,
            parents=tuple(parent.hexsha for parent in raw.parents),
        )
        self._commits[commit.hash] = commit
        return commit

    def first_commit(self) -> str:
        """Return the root commit at the end of HEAD's first-parent chain.

        Following first parents keeps the walk in graph order, so skewed commit
        dates on merged branches cannot put another commit last.
        """
        last = None
        try:
            for last in self.repo.iter_commits("HEAD", first_parent=True):
                pass
        except (git.exc.GitCommandError, ValueError) as e:
            raise RepositoryError(
                f"First commit not found in {self.git_dir}", spec="HEAD"
            ) from e
        if last is None:
            raise RepositoryError(f"First commit not found in {self.git_dir}")
        return last.hexsha

    def commit_log(
        self,
        from_hash: str,
        to_hash: str,
        path_filters: Optional[Sequence[str]] = None,
    ) -> List[str]:
        """Hashes reachable from ``to_hash`` but not from ``from_hash``, newest first."""
        paths = list(path_filters) if path_filters else ""
        return [
            commit.hexsha
            for commit in self.repo.iter_commits(f"{from_hash}..{to_hash}", paths=paths)
        ]

    def list_tags(self) -> List[TagRef]:
        """All tags peeled to their commits, sorted by name."""
        tags: List[TagRef] = []
        for tag_ref in sorted(self.repo.tags, key=lambda t: t.name):
            try:
                commit_hash = tag_ref.commit.hexsha
            except ValueError:
                logger.debug("Skipping tag %s, it does not point at a commit", tag_ref.name)
                continue
            tags.append(
                TagRef(
                    name=tag_ref.name,
                    commit_hash=commit_hash,
                    annotation=self._read_annotation(tag_ref),
                )
            )
        return tags

    def _read_annotation(self, tag_ref: git.TagReference) -> Optional[str]:
        try:
            tag_object = tag_ref.tag
        except (ValueError, OSError, git.exc.ODBError) as e:
            logger.error("Could not read annotated tag %s: %s", tag_ref.name, e)
            return None
        if tag_object is None:
            return None
        return tag_object.message

    def diff_text(self, commit_hash: str) -> str:
        """Unified diff of a commit against its first parent, without hunk headers."""
        raw = self.repo.commit(commit_hash)
        if not raw.parents:
            return ""

        lines: List[str] = []
        for diff in raw.parents[0].diff(raw, create_patch=True):
            lines.append(f"--- a/{diff.a_path}" if diff.a_path else "--- /dev/null")
            lines.append(f"+++ b/{diff.b_path}" if diff.b_path else "+++ /dev/null")
            body = diff.diff
            if isinstance(body, bytes):
                body = body.decode("utf-8", errors="replace")
            for line in (body or "").splitlines():
                if line.startswith("@@"):
                    continue
                lines.append(line)
        return "\n".join(lines)

    def submodule_path(self, path: str) -> Optional[Path]:
        """Return the checked-out location of a known submodule, if any."""
        if self.working_tree_dir is None:
            return None
        for submodule in self.repo.submodules:
            if submodule.path != path:
                continue
            location = self.working_tree_dir / submodule.path
            if (location / ".git").exists():
                return location
            logger.warning("Submodule %s is not checked out", path)
            return None
        return None

    def __str__(self) -> str:
        return self.describe()
