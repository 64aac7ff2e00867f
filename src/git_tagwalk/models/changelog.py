"""Result model handed to changelog renderers."""

from typing import Dict, List, Optional

from pydantic import BaseModel

from .commit import Commit
from .tag import Tag


class ChangelogData(BaseModel):
    """Tags and commits of one repository range, plus nested submodule ranges."""

    origin_url: Optional[str] = None
    tags: List[Tag] = []
    commits: List[Commit] = []
    submodule_sections: Dict[str, List["ChangelogData"]] = {}

    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]

    def find_tag(self, name: str) -> Optional[Tag]:
        for tag in self.tags:
            if tag.name == name:
                return tag
        return None


ChangelogData.model_rebuild()
