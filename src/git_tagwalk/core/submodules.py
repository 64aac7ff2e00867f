"""Detect submodule pointer updates and expand them into nested changelog data."""

import logging
import re
from typing import Callable, Dict, Iterable, List

from git_tagwalk.core.exceptions import GitTagwalkError
from git_tagwalk.core.repository import GitRepository
from git_tagwalk.models.changelog import ChangelogData
from git_tagwalk.models.commit import Commit
from git_tagwalk.models.settings import Settings
from git_tagwalk.models.submodule import SubmodulePointerChange

logger = logging.getLogger(__name__)

SUBMODULE_POINTER_RE = re.compile(
    r"^\+{3} b/([\w/\s-]+)$\n-Subproject commit (\w+)$\n\+Subproject commit (\w+)$",
    re.MULTILINE,
)

ChangelogBuilder = Callable[[Settings], ChangelogData]


def parse_pointer_changes(commit_hash: str, diff_text: str) -> List[SubmodulePointerChange]:
    """Find every submodule pointer update in the diff text of one commit."""
    return [
        SubmodulePointerChange(
            commit_hash=commit_hash,
            path=match.group(1),
            from_commit=match.group(2),
            to_commit=match.group(3),
        )
        for match in SUBMODULE_POINTER_RE.finditer(diff_text)
    ]


class SubmoduleExpander:
    """Runs the whole pipeline again for every submodule pointer update.

    ``build`` is the pipeline entry point; it receives settings derived
    from the caller's, scoped to the submodule and the old/new pointers.
    """

    def __init__(self, repository: GitRepository, settings: Settings, build: ChangelogBuilder):
        self.repository = repository
        self.settings = settings
        self.build = build

    def expand(self, commits: Iterable[Commit]) -> Dict[str, List[ChangelogData]]:
        sections: Dict[str, List[ChangelogData]] = {}
        for commit in commits:
            diff_text = self.repository.diff_text(commit.hash)
            for change in parse_pointer_changes(commit.hash, diff_text):
                submodule_path = self.repository.submodule_path(change.path)
                if submodule_path is None:
                    continue
                nested = self._build_nested(change, submodule_path)
                if nested is not None:
                    sections.setdefault(commit.hash, []).append(nested)
        return sections

    def _build_nested(self, change: SubmodulePointerChange, submodule_path):
        nested_settings = self.settings.for_submodule(
            submodule_path, change.from_commit, change.to_commit
        )
        try:
            return self.build(nested_settings)
        except GitTagwalkError as e:
            logger.error(
                "Could not build changelog data for submodule %s (%s..%s) in %s: %s",
                change.path,
                change.from_commit,
                change.to_commit,
                change.commit_hash,
                e,
            )
            return None
