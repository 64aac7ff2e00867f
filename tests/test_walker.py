"""Tests for assigning commits to tag buckets."""

from datetime import datetime, timezone

import pytest

from git_tagwalk.core.commit_range import CommitRangeComputer
from git_tagwalk.core.pipeline import build_changelog_data
from git_tagwalk.core.repository import GitRepository
from git_tagwalk.core.tag_index import build_tag_per_commit
from git_tagwalk.core.walker import TagGraphWalker, TraversalTask, _WorkQueue
from git_tagwalk.models.boundary import InclusivenessStrategy, RevisionBoundary
from git_tagwalk.models.commit import Commit
from git_tagwalk.models.settings import Settings


def buckets(data, builder):
    """Tag name -> commit names, in output order."""
    names = {h: n for n, h in builder.hashes.items()}
    return [(tag.name, [names[c.hash] for c in tag.commits]) for tag in data.tags]


def assert_partition(data):
    """Every in-range commit sits in exactly one bucket."""
    seen = [c.hash for tag in data.tags for c in tag.commits]
    assert len(seen) == len(set(seen))
    assert set(seen) == {c.hash for c in data.commits}


def test_linear_history(linear_repo):
    data = build_changelog_data(Settings(from_repo=linear_repo.path))

    assert buckets(data, linear_repo) == [
        ("v1.0.0", ["A", "B"]),
        ("v2.0.0", ["C", "D"]),
    ]
    assert_partition(data)


def test_untagged_bucket_comes_first(linear_repo):
    e = linear_repo.commit("E")
    linear_repo.hashes["E"] = e

    data = build_changelog_data(Settings(from_repo=linear_repo.path, untagged_name="Next"))

    assert buckets(data, linear_repo)[0] == ("Next", ["E"])
    assert [t.name for t in data.tags] == ["Next", "v1.0.0", "v2.0.0"]
    assert_partition(data)


def test_tag_timestamp_is_first_assigned_commit(linear_repo):
    data = build_changelog_data(Settings(from_repo=linear_repo.path))
    v2 = data.find_tag("v2.0.0")
    assert v2.timestamp == v2.commits[-1].timestamp


def test_range_between_tags(linear_repo):
    data = build_changelog_data(
        Settings(from_repo=linear_repo.path, from_ref="v1.0.0", to_ref="v2.0.0")
    )
    assert buckets(data, linear_repo) == [("v2.0.0", ["C", "D"])]


def test_exclusive_to_drops_tagged_head(linear_repo):
    data = build_changelog_data(
        Settings(
            from_repo=linear_repo.path,
            to_inclusiveness=InclusivenessStrategy.EXCLUSIVE,
        )
    )
    # v2.0.0 sits on the excluded commit, so C has no tag to inherit
    assert buckets(data, linear_repo) == [
        ("Unreleased", ["C"]),
        ("v1.0.0", ["A", "B"]),
    ]
    assert_partition(data)


def test_diamond_merge_is_deterministic(diamond_repo):
    settings = Settings(from_repo=diamond_repo.path)
    first = build_changelog_data(settings)
    second = build_changelog_data(settings)

    # the tagged path reaches A with v1.0.0, which beats no tag at all
    assert buckets(first, diamond_repo) == [
        ("Unreleased", ["C", "D"]),
        ("v1.0.0", ["A", "B"]),
    ]
    assert first.model_dump_json() == second.model_dump_json()
    assert_partition(first)


def test_merge_paths_with_competing_tags(repo_builder):
    a = repo_builder.commit("A")
    b = repo_builder.commit("B", parents=[a])
    c = repo_builder.commit("C", parents=[a])
    d = repo_builder.commit("D", parents=[b, c])
    repo_builder.tag("v1.2.0", b)
    repo_builder.tag("v1.10.0", c)
    repo_builder.hashes = {"A": a, "B": b, "C": c, "D": d}

    data = build_changelog_data(Settings(from_repo=repo_builder.path))

    assert buckets(data, repo_builder) == [
        ("Unreleased", ["D"]),
        ("v1.2.0", ["B"]),
        ("v1.10.0", ["A", "C"]),
    ]
    assert_partition(data)


def test_two_tags_on_one_commit(linear_repo):
    linear_repo.tag("release", linear_repo.hashes["B"])
    linear_repo.tag("v1.10.0", linear_repo.hashes["D"])

    data = build_changelog_data(Settings(from_repo=linear_repo.path))

    assert [t.name for t in data.tags] == ["v1.0.0", "v2.0.0"]


def test_ignored_tags_do_not_start_buckets(linear_repo):
    data = build_changelog_data(
        Settings(from_repo=linear_repo.path, ignore_tag_pattern=r"v2\..*")
    )
    assert buckets(data, linear_repo) == [
        ("Unreleased", ["C", "D"]),
        ("v1.0.0", ["A", "B"]),
    ]


def test_annotations_are_attached(repo_builder):
    a = repo_builder.commit("A")
    b = repo_builder.commit("B")
    repo_builder.tag("v1.0.0", a, message="First release")
    repo_builder.tag("v1.1.0", b)

    data = build_changelog_data(Settings(from_repo=repo_builder.path))

    assert data.find_tag("v1.0.0").annotation.strip() == "First release"
    assert data.find_tag("v1.1.0").annotation is None


def test_path_filter_drops_tags_without_matching_commits(repo_builder):
    repo_builder.hashes = {
        "A": repo_builder.commit("A", files={"src/a.py": "a"}),
        "B": repo_builder.commit("B", files={"src/b.py": "b"}),
        "C": repo_builder.commit("C", files={"docs/c.md": "c"}),
        "D": repo_builder.commit("D", files={"src/d.py": "d"}),
    }
    repo_builder.tag("v1.0.0", repo_builder.hashes["B"])
    repo_builder.tag("v2.0.0", repo_builder.hashes["C"])

    data = build_changelog_data(
        Settings(from_repo=repo_builder.path, path_filters=("src",))
    )

    assert buckets(data, repo_builder) == [
        ("Unreleased", ["D"]),
        ("v1.0.0", ["A", "B"]),
    ]
    assert_partition(data)


def test_path_filter_keeps_ancestors_behind_filtered_commits(repo_builder):
    repo_builder.hashes = {
        "A": repo_builder.commit("A", files={"src/a.py": "a"}),
        "B": repo_builder.commit("B", files={"src/b.py": "b"}),
        "C": repo_builder.commit("C", files={"docs/c.md": "c"}),
        "D": repo_builder.commit("D", files={"docs/d.md": "d"}),
    }
    repo_builder.tag("v1.0.0", repo_builder.hashes["D"])

    data = build_changelog_data(
        Settings(from_repo=repo_builder.path, path_filter="src")
    )

    assert buckets(data, repo_builder) == [("v1.0.0", ["A", "B"])]


def test_deep_history_does_not_recurse(repo_builder):
    root = repo_builder.commit("root")
    head = root
    for i in range(1200):
        head = repo_builder.commit(f"c{i}", files={"deep.txt": f"{i}\n"})
    repo_builder.tag("v1.0.0", head)

    with GitRepository(repo_builder.path) as repository:
        from_boundary = RevisionBoundary(commit_hash=root)
        to_boundary = RevisionBoundary(commit_hash=head)
        commits = CommitRangeComputer(repository).compute_range(from_boundary, to_boundary)
        tags = TagGraphWalker(repository, commits).assign(
            from_boundary,
            to_boundary,
            build_tag_per_commit(repository.list_tags()),
            {},
            "Unreleased",
        )

    assert [t.name for t in tags] == ["v1.0.0"]
    assert len(tags[0].commits) == 1201


def _commit(name, minute):
    return Commit(
        hash=name,
        author_name="a",
        author_email="a@example.com",
        timestamp=datetime(2020, 1, 1, 0, minute, tzinfo=timezone.utc),
        message=name,
    )


@pytest.mark.parametrize("salt", range(6))
def test_same_second_diamond_follows_precedence(repo_builder, salt):
    a = repo_builder.commit(f"A{salt}", minute=0)
    b = repo_builder.commit(f"B{salt}", parents=[a], minute=0)
    c = repo_builder.commit(f"C{salt}", parents=[a], minute=0)
    d = repo_builder.commit(f"D{salt}", parents=[b, c], minute=0)
    repo_builder.tag("v1.0.0", b)
    repo_builder.tag("v2.0.0", c)

    data = build_changelog_data(Settings(from_repo=repo_builder.path))

    # hash order differs per salt, the shared ancestor must not care
    assert a in {commit.hash for commit in data.find_tag("v2.0.0").commits}
    assert [commit.hash for commit in data.find_tag("v1.0.0").commits] == [b]
    assert [commit.hash for commit in data.find_tag("Unreleased").commits] == [d]
    assert_partition(data)


def test_skewed_clock_ancestor_waits_for_merge_paths(repo_builder):
    a = repo_builder.commit("A", minute=10)
    b = repo_builder.commit("B", parents=[a], minute=11)
    # C claims to be older than its own parent
    c = repo_builder.commit("C", parents=[a], minute=1)
    d = repo_builder.commit("D", parents=[b, c], minute=12)
    repo_builder.tag("v1.0.0", b)
    repo_builder.tag("v3.0.0", c)
    repo_builder.hashes = {"A": a, "B": b, "C": c, "D": d}

    data = build_changelog_data(Settings(from_repo=repo_builder.path))

    assert buckets(data, repo_builder) == [
        ("Unreleased", ["D"]),
        ("v3.0.0", ["C", "A"]),
        ("v1.0.0", ["B"]),
    ]
    assert_partition(data)


def test_commit_waits_for_every_child():
    commit = _commit("x", 1)
    queue = _WorkQueue({"x": 2})
    queue.offer(TraversalTask(commit, "v1.0.0"))
    assert len(queue) == 0

    queue.offer(TraversalTask(commit, "v2.0.0"))
    assert len(queue) == 1
    assert queue.pop().tag_name == "v2.0.0"


def test_queue_keeps_stronger_context_per_commit():
    commit = _commit("x", 1)
    queue = _WorkQueue({"x": 4})
    queue.offer(TraversalTask(commit, None))
    queue.offer(TraversalTask(commit, "v1.2.0"))
    queue.offer(TraversalTask(commit, "release"))
    queue.offer(TraversalTask(commit, "v1.10.0"))

    assert len(queue) == 1
    assert queue.pop().tag_name == "v1.10.0"
    assert len(queue) == 0


def test_ready_commits_pop_newest_first():
    queue = _WorkQueue()
    queue.offer(TraversalTask(_commit("old", 1), "v1.0.0"))
    queue.offer(TraversalTask(_commit("new", 2), None))

    assert queue.pop().commit.hash == "new"
    assert queue.pop().commit.hash == "old"


@pytest.mark.parametrize(
    "stronger, weaker",
    [("v1.0.0", None), ("v1.0.0", "release"), ("v2.0.0", "v1.0.0")],
)
def test_stronger_context_first_at_equal_time(stronger, weaker):
    assert TraversalTask(_commit("b", 1), stronger) < TraversalTask(_commit("a", 1), weaker)
