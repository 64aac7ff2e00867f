"""Changelog data pipeline: resolve, range, index, walk, expand."""

import logging
from typing import List

from git_tagwalk.core.commit_range import CommitRangeComputer
from git_tagwalk.core.exceptions import RepositoryError
from git_tagwalk.core.repository import GitRepository
from git_tagwalk.core.resolver import RevisionResolver
from git_tagwalk.core.submodules import SubmoduleExpander
from git_tagwalk.core.tag_index import (
    build_annotation_per_tag_name,
    build_tag_per_commit,
    tags_in_range,
    without_ignored,
)
from git_tagwalk.core.walker import TagGraphWalker
from git_tagwalk.models.boundary import RevisionBoundary
from git_tagwalk.models.changelog import ChangelogData
from git_tagwalk.models.settings import Settings

logger = logging.getLogger(__name__)


def resolve_boundaries(repository: GitRepository, settings: Settings):
    resolver = RevisionResolver(repository)
    from_boundary = resolver.resolve(settings.from_revision, settings.from_inclusiveness)
    to_boundary = resolver.resolve(settings.to_revision, settings.to_inclusiveness)
    return from_boundary, to_boundary


def build_changelog_data(settings: Settings) -> ChangelogData:
    """Compute tags and commits for the range described by ``settings``.

    Raises:
        RepositoryError: the repository or a boundary could not be resolved,
            or the walk or the submodule expansion failed.
    """
    with GitRepository(settings.from_repo) as repository:
        from_boundary, to_boundary = resolve_boundaries(repository, settings)
        logger.info(
            "Walking %s..%s in %s",
            from_boundary.commit_hash,
            to_boundary.commit_hash,
            repository.git_dir,
        )
        try:
            data = _walk(repository, settings, from_boundary, to_boundary)
            if settings.parse_submodules:
                expander = SubmoduleExpander(repository, settings, build_changelog_data)
                data = data.model_copy(
                    update={"submodule_sections": expander.expand(data.commits)}
                )
        except RepositoryError:
            raise
        except Exception as e:
            raise RepositoryError("", description=repository.describe()) from e
        return data


def _walk(
    repository: GitRepository,
    settings: Settings,
    from_boundary: RevisionBoundary,
    to_boundary: RevisionBoundary,
) -> ChangelogData:
    path_filters = settings.effective_path_filters
    range_computer = CommitRangeComputer(repository)
    commits = range_computer.compute_range(from_boundary, to_boundary, path_filters)

    # Tags are looked up over the unfiltered range, a tag on a commit that
    # misses the path filters still names the commits below it.
    unfiltered = (
        range_computer.compute_range(from_boundary, to_boundary)
        if path_filters
        else commits
    )
    tags = tags_in_range(repository.list_tags(), (c.hash for c in unfiltered))
    tag_per_commit = build_tag_per_commit(tags, settings.ignore_tag_pattern)
    annotation_per_tag_name = build_annotation_per_tag_name(
        tags, settings.ignore_tag_pattern
    )

    walker = TagGraphWalker(repository, commits, path_filtered=bool(path_filters))
    walked_tags = walker.assign(
        from_boundary,
        to_boundary,
        tag_per_commit,
        annotation_per_tag_name,
        settings.untagged_name,
    )
    return ChangelogData(
        origin_url=repository.origin_url,
        tags=walked_tags,
        commits=commits,
    )


def tags_at_boundary(settings: Settings) -> List[str]:
    """Names of the tags pointing exactly at the resolved ``to`` commit."""
    with GitRepository(settings.from_repo) as repository:
        from_boundary, to_boundary = resolve_boundaries(repository, settings)
        try:
            unfiltered = CommitRangeComputer(repository).compute_range(
                from_boundary, to_boundary
            )
            tags = tags_in_range(repository.list_tags(), (c.hash for c in unfiltered))
        except RepositoryError:
            raise
        except Exception as e:
            raise RepositoryError("", description=repository.describe()) from e
        return [
            tag.name
            for tag in without_ignored(tags, settings.ignore_tag_pattern)
            if tag.commit_hash == to_boundary.commit_hash
        ]
