"""Revision boundary model."""

from enum import Enum

from pydantic import BaseModel


class InclusivenessStrategy(str, Enum):
    """Whether a boundary commit belongs to the range it delimits.

    DEFAULT includes a ``from`` commit only when it is a root commit,
    INCLUSIVE always includes it and EXCLUSIVE drops the ``to`` commit.
    """

    DEFAULT = "default"
    INCLUSIVE = "inclusive"
    EXCLUSIVE = "exclusive"


class RevisionBoundary(BaseModel):
    """A resolved commit hash paired with its inclusiveness rule."""

    commit_hash: str
    strategy: InclusivenessStrategy = InclusivenessStrategy.DEFAULT

    model_config = {"frozen": True}
