"""Semantic version parsing and tag precedence."""

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

# Any non-digit prefix is allowed so that "v1.2.3", "release-1.2.3" and
# "refs/tags/v1.2.3" all count as semantic versions.
SEMVER_TAG_RE = re.compile(
    r"^[^\d]*(\d+)\.(\d+)\.(\d+)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

Identifier = Tuple[int, Union[int, str]]


def _identifier_key(identifier: str) -> Identifier:
    # numeric identifiers sort below alphanumeric ones
    if identifier.isdigit():
        return (0, int(identifier))
    return (1, identifier)


@dataclass(frozen=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int
    prerelease: Tuple[str, ...] = ()
    tag: str = ""

    @classmethod
    def parse(cls, name: str) -> Optional["SemanticVersion"]:
        m = SEMVER_TAG_RE.match(name or "")
        if not m:
            return None
        prerelease = tuple(m.group(4).split(".")) if m.group(4) else ()
        return cls(
            int(m.group(1)), int(m.group(2)), int(m.group(3)), prerelease, name
        )

    @property
    def precedence(self) -> tuple:
        """Sort key following semantic versioning precedence.

        A release ranks above every prerelease of the same triplet; build
        metadata never takes part.
        """
        if not self.prerelease:
            pre: tuple = (1,)
        else:
            pre = (0, tuple(_identifier_key(i) for i in self.prerelease))
        return (self.major, self.minor, self.patch, pre)

    def __lt__(self, other: "SemanticVersion") -> bool:
        return self.precedence < other.precedence

    def __str__(self) -> str:
        version = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            version += "-" + ".".join(self.prerelease)
        return version


def is_semantic(name: Optional[str]) -> bool:
    return name is not None and SemanticVersion.parse(name) is not None


def prefer_new_tag(existing: Optional[str], new: Optional[str]) -> bool:
    """Decide whether ``new`` should replace ``existing`` as the tag name.

    Truth table:

    ==============  ==============  ==========================================
    existing        new             result
    ==============  ==============  ==========================================
    None            None            False
    None            any             True
    any             None            False
    name            same name       False
    non-semantic    semantic        True
    semantic        non-semantic    False
    semantic        semantic        True only if new has higher precedence
    non-semantic    non-semantic    False (the existing name is kept)
    ==============  ==============  ==========================================

    Used both when two tags point at one commit and when two traversal
    paths reach a shared ancestor with different tag contexts.
    """
    if new is None:
        return False
    if existing is None:
        return True
    if existing == new:
        return False

    new_version = SemanticVersion.parse(new)
    if new_version is None:
        return False
    existing_version = SemanticVersion.parse(existing)
    if existing_version is None:
        return True
    return existing_version < new_version
