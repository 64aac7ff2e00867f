"""Assign every commit of a range to the tag that first releases it."""

import heapq
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Mapping, Optional, Set

from git_tagwalk.core.repository import GitRepository
from git_tagwalk.core.semantic import prefer_new_tag
from git_tagwalk.models.boundary import RevisionBoundary
from git_tagwalk.models.commit import Commit
from git_tagwalk.models.tag import Tag, TagRef

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class TraversalTask:
    """A commit ready to be visited, with the tag context that reached it.

    Ready tasks are popped newest first, then by stronger tag, then by hash.
    The order only makes the walk reproducible; which context a commit gets
    is settled before it becomes ready.
    """

    commit: Commit
    tag_name: Optional[str]

    def __lt__(self, other: "TraversalTask") -> bool:
        if self.commit.timestamp != other.commit.timestamp:
            return self.commit.timestamp > other.commit.timestamp
        if prefer_new_tag(other.tag_name, self.tag_name):
            return True
        if prefer_new_tag(self.tag_name, other.tag_name):
            return False
        return self.commit.hash < other.commit.hash


class _WorkQueue:
    """Releases a commit only after each of its children has offered a context.

    ``waiting`` counts the in-walk children of every commit. Offers are merged
    with ``prefer_new_tag`` and the commit becomes ready on the last one, so a
    shared ancestor never sees a context before every merge path has reached it.
    Commits missing from ``waiting`` are ready on their first offer.
    """

    def __init__(self, waiting: Optional[Mapping[str, int]] = None):
        self._heap: List[TraversalTask] = []
        self._offers: Dict[str, TraversalTask] = {}
        self._waiting: Dict[str, int] = dict(waiting or {})

    def __len__(self) -> int:
        return len(self._heap)

    def offer(self, task: TraversalTask) -> None:
        commit_hash = task.commit.hash
        existing = self._offers.get(commit_hash)
        if existing is None or prefer_new_tag(existing.tag_name, task.tag_name):
            self._offers[commit_hash] = task

        remaining = self._waiting.get(commit_hash, 1) - 1
        self._waiting[commit_hash] = remaining
        if remaining <= 0:
            heapq.heappush(self._heap, self._offers.pop(commit_hash))

    def pop(self) -> TraversalTask:
        return heapq.heappop(self._heap)


class TagGraphWalker:
    """Walks the commit graph from ``to`` back to ``from`` and fills tag buckets.

    ``included`` is the range computed by ``CommitRangeComputer``; no commit
    outside it ends up in a bucket. With path filters the filtered range
    cannot prune the traversal, because an excluded commit may still lead to
    included ancestors, so the full ancestry is walked and buckets are
    pruned afterwards.
    """

    def __init__(
        self,
        repository: GitRepository,
        included: Iterable[Commit],
        path_filtered: bool = False,
    ):
        self.repository = repository
        self.included: Set[str] = {commit.hash for commit in included}
        self.path_filtered = path_filtered

    def assign(
        self,
        from_boundary: RevisionBoundary,
        to_boundary: RevisionBoundary,
        tag_per_commit: Mapping[str, TagRef],
        annotation_per_tag_name: Mapping[str, str],
        untagged_name: str,
    ) -> List[Tag]:
        """Return the untagged bucket (if any) then tags by their commit time."""
        assigned: Dict[str, str] = {}
        buckets: Dict[str, Dict[str, Commit]] = {}
        first_seen: Dict[str, datetime] = {}
        waiting = self._count_children(from_boundary.commit_hash, to_boundary.commit_hash)

        # The first pass collects every tagged bucket, the second sweeps up
        # whatever no tag reached into the untagged bucket.
        for starting_tag in (None, untagged_name):
            self._populate(
                from_boundary.commit_hash,
                to_boundary.commit_hash,
                tag_per_commit,
                assigned,
                buckets,
                first_seen,
                waiting,
                starting_tag,
            )

        if self.path_filtered:
            self._prune(buckets)

        tags: List[Tag] = []
        if untagged_name in buckets:
            tags.append(
                self._to_tag(untagged_name, buckets, first_seen, annotation_per_tag_name)
            )
        by_commit_time = sorted(
            tag_per_commit.values(),
            key=lambda tag: self.repository.commit(tag.commit_hash).sort_key,
        )
        for tag_ref in by_commit_time:
            if tag_ref.name in buckets and tag_ref.name != untagged_name:
                tags.append(
                    self._to_tag(tag_ref.name, buckets, first_seen, annotation_per_tag_name)
                )
        return tags

    def _should_include(self, commit_hash: str) -> bool:
        return self.path_filtered or commit_hash in self.included

    def _parents_in_walk(self, commit: Commit, from_hash: str) -> List[str]:
        if commit.hash == from_hash:
            return []
        return [p for p in commit.parents if self._should_include(p)]

    def _count_children(self, from_hash: str, to_hash: str) -> Dict[str, int]:
        """Number of children through which the walk reaches each commit."""
        waiting: Dict[str, int] = {}
        seen = {to_hash}
        stack = [to_hash]
        while stack:
            commit = self.repository.commit(stack.pop())
            for parent_hash in self._parents_in_walk(commit, from_hash):
                waiting[parent_hash] = waiting.get(parent_hash, 0) + 1
                if parent_hash not in seen:
                    seen.add(parent_hash)
                    stack.append(parent_hash)
        return waiting

    def _populate(
        self,
        from_hash: str,
        to_hash: str,
        tag_per_commit: Mapping[str, TagRef],
        assigned: Dict[str, str],
        buckets: Dict[str, Dict[str, Commit]],
        first_seen: Dict[str, datetime],
        waiting: Mapping[str, int],
        starting_tag: Optional[str],
    ) -> None:
        queue = _WorkQueue(waiting)
        queue.offer(TraversalTask(self.repository.commit(to_hash), starting_tag))

        while queue:
            task = queue.pop()
            commit = task.commit

            tag_name = None
            if commit.hash not in assigned:
                tag_name = task.tag_name
                if commit.hash in tag_per_commit:
                    tag_name = tag_per_commit[commit.hash].name

                if tag_name is not None and self._should_include(commit.hash):
                    bucket = buckets.setdefault(tag_name, {})
                    if not bucket:
                        first_seen[tag_name] = commit.timestamp
                    bucket[commit.hash] = commit
                    assigned[commit.hash] = tag_name

            # An assigned commit passes no context on, but its parents still
            # wait for it before they are released.
            for parent_hash in self._parents_in_walk(commit, from_hash):
                queue.offer(TraversalTask(self.repository.commit(parent_hash), tag_name))

            logger.debug("Work left: %d", len(queue))

    def _prune(self, buckets: Dict[str, Dict[str, Commit]]) -> None:
        for tag_name in list(buckets):
            bucket = buckets[tag_name]
            for commit_hash in [h for h in bucket if h not in self.included]:
                del bucket[commit_hash]
            if not bucket:
                logger.debug("Dropping tag %s, no commits match the path filters", tag_name)
                del buckets[tag_name]

    @staticmethod
    def _to_tag(
        tag_name: str,
        buckets: Dict[str, Dict[str, Commit]],
        first_seen: Dict[str, datetime],
        annotation_per_tag_name: Mapping[str, str],
    ) -> Tag:
        commits = sorted(buckets[tag_name].values(), key=lambda c: c.sort_key)
        return Tag(
            name=tag_name,
            annotation=annotation_per_tag_name.get(tag_name),
            commits=commits,
            timestamp=first_seen.get(tag_name),
        )
