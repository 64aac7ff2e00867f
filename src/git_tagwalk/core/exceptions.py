"""Exceptions raised by Git Tagwalk."""

from typing import Optional


class GitTagwalkError(RuntimeError):
    pass


class SettingsError(GitTagwalkError):
    pass


class RepositoryError(GitTagwalkError):
    """A repository could not be opened, resolved or walked."""

    def __init__(
        self,
        message: str,
        spec: Optional[str] = None,
        description: Optional[str] = None,
    ):
        self.spec = spec
        self.description = description
        if description:
            message = f"{message}\n{description}" if message else description
        super().__init__(message)
