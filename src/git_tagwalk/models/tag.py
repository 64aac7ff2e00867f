"""Tag bucket model."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from .commit import Commit


class Tag(BaseModel):
    """A tag together with the commits released under it."""

    name: str
    annotation: Optional[str] = None
    commits: List[Commit] = []
    timestamp: Optional[datetime] = None

    @property
    def is_annotated(self) -> bool:
        return self.annotation is not None


class TagRef(BaseModel):
    """A tag as listed by the repository, peeled to its commit."""

    name: str
    commit_hash: str
    annotation: Optional[str] = None

    model_config = {"frozen": True}
