"""Indices over the tags found in a commit range."""

import re
from types import MappingProxyType
from typing import Iterable, List, Mapping, Optional

from git_tagwalk.core.semantic import prefer_new_tag
from git_tagwalk.models.tag import TagRef


def _compile(ignore_pattern: Optional[str]) -> Optional["re.Pattern[str]"]:
    return re.compile(ignore_pattern) if ignore_pattern else None


def without_ignored(
    tags: Iterable[TagRef], ignore_pattern: Optional[str] = None
) -> List[TagRef]:
    """Drop tags whose whole name matches ``ignore_pattern``."""
    pattern = _compile(ignore_pattern)
    if pattern is None:
        return list(tags)
    return [tag for tag in tags if not pattern.fullmatch(tag.name)]


def build_tag_per_commit(
    tags: Iterable[TagRef], ignore_pattern: Optional[str] = None
) -> Mapping[str, TagRef]:
    """Map each tagged commit hash to the tag that wins precedence on it.

    Tags whose whole name matches ``ignore_pattern`` are left out. When two
    tags point at one commit, ``prefer_new_tag`` picks the winner; on a tie
    the tag seen first is kept.
    """
    tag_per_commit = {}
    for tag in without_ignored(tags, ignore_pattern):
        existing = tag_per_commit.get(tag.commit_hash)
        if existing is None or prefer_new_tag(existing.name, tag.name):
            tag_per_commit[tag.commit_hash] = tag
    return MappingProxyType(tag_per_commit)


def build_annotation_per_tag_name(
    tags: Iterable[TagRef], ignore_pattern: Optional[str] = None
) -> Mapping[str, str]:
    """Map annotated tag names to their annotation text."""
    return MappingProxyType(
        {
            tag.name: tag.annotation
            for tag in without_ignored(tags, ignore_pattern)
            if tag.annotation is not None
        }
    )


def tags_in_range(tags: Iterable[TagRef], commit_hashes: Iterable[str]) -> List[TagRef]:
    """Tags that point at one of ``commit_hashes``, in input order."""
    included = set(commit_hashes)
    return [tag for tag in tags if tag.commit_hash in included]
