"""Commit model for walked repositories."""

from datetime import datetime
from typing import Tuple

from pydantic import BaseModel


class Commit(BaseModel):
    """A commit as seen by the tag walker."""

    hash: str
    author_name: str
    author_email: str
    timestamp: datetime
    message: str
    parents: Tuple[str, ...] = ()

    model_config = {"frozen": True}

    @property
    def is_merge(self) -> bool:
        """Check if this commit has more than one parent."""
        return len(self.parents) > 1

    @property
    def is_root(self) -> bool:
        return not self.parents

    @property
    def sort_key(self) -> Tuple[datetime, str]:
        """Oldest first, hash breaks ties."""
        return (self.timestamp, self.hash)
