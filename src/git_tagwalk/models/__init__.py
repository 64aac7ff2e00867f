"""Data models for Git Tagwalk."""

from .boundary import InclusivenessStrategy, RevisionBoundary
from .changelog import ChangelogData
from .commit import Commit
from .settings import Settings
from .submodule import SubmodulePointerChange
from .tag import Tag, TagRef

__all__ = [
    "ChangelogData",
    "Commit",
    "InclusivenessStrategy",
    "RevisionBoundary",
    "Settings",
    "SubmodulePointerChange",
    "Tag",
    "TagRef",
]
