"""Submodule pointer change model."""

from pydantic import BaseModel


class SubmodulePointerChange(BaseModel):
    """A submodule pointer moved by one commit of the outer repository."""

    commit_hash: str
    path: str
    from_commit: str
    to_commit: str

    model_config = {"frozen": True}
