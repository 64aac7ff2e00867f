"""Settings for one changelog data computation."""

from pathlib import Path
from typing import List, Optional, Tuple

from pydantic import BaseModel, ValidationError

from git_tagwalk.core.exceptions import SettingsError

from .boundary import InclusivenessStrategy

ZERO_COMMIT = "0" * 40
DEFAULT_UNTAGGED_NAME = "Unreleased"


class Settings(BaseModel):
    """Immutable parameters of a single pipeline invocation.

    Nested submodule runs derive their own value with ``for_submodule``
    instead of borrowing and restoring the caller's.
    """

    from_repo: Path = Path(".")
    from_ref: Optional[str] = None
    to_ref: Optional[str] = None
    from_commit: Optional[str] = None
    to_commit: Optional[str] = None
    from_inclusiveness: InclusivenessStrategy = InclusivenessStrategy.DEFAULT
    to_inclusiveness: InclusivenessStrategy = InclusivenessStrategy.DEFAULT
    untagged_name: str = DEFAULT_UNTAGGED_NAME
    ignore_tag_pattern: Optional[str] = None
    path_filter: Optional[str] = None
    path_filters: Tuple[str, ...] = ()
    parse_submodules: bool = False

    model_config = {"frozen": True}

    @property
    def effective_path_filters(self) -> List[str]:
        """Single and multiple path filters merged, first occurrence wins."""
        merged: List[str] = []
        candidates = list(self.path_filters)
        if self.path_filter:
            candidates.append(self.path_filter)
        for path in candidates:
            if path and path not in merged:
                merged.append(path)
        return merged

    @property
    def from_revision(self) -> str:
        return self.from_ref or self.from_commit or ZERO_COMMIT

    @property
    def to_revision(self) -> str:
        return self.to_ref or self.to_commit or "HEAD"

    def for_submodule(
        self, submodule_path: Path, from_commit: str, to_commit: str
    ) -> "Settings":
        """Derive settings scoped to a submodule pointer change."""
        return self.model_copy(
            update={
                "from_repo": Path(submodule_path),
                "from_commit": from_commit,
                "to_commit": to_commit,
                "from_ref": None,
                "to_ref": None,
            }
        )

    @classmethod
    def from_file(cls, config_path: Path, **overrides) -> "Settings":
        """Load settings from a JSON file, then apply non-None overrides."""
        config_path = Path(config_path)
        try:
            raw = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise SettingsError(f"Failed to read settings file: {config_path}") from e

        try:
            settings = cls.model_validate_json(raw)
        except ValidationError as e:
            raise SettingsError(f"Invalid settings in {config_path}:\n{e}") from e

        updates = {key: value for key, value in overrides.items() if value is not None}
        if not updates:
            return settings
        return cls.model_validate({**settings.model_dump(), **updates})
