"""Main CLI interface for Git Tagwalk."""

import logging
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from git_tagwalk.core.exceptions import GitTagwalkError
from git_tagwalk.core.pipeline import (
    build_changelog_data,
    tags_at_boundary,
)
from git_tagwalk.core.repository import GitRepository
from git_tagwalk.core.resolver import RevisionResolver
from git_tagwalk.models.boundary import InclusivenessStrategy
from git_tagwalk.models.changelog import ChangelogData
from git_tagwalk.models.settings import Settings

console = Console()
error_console = Console(stderr=True)

STRATEGIES = click.Choice([s.value for s in InclusivenessStrategy], case_sensitive=False)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[
            RichHandler(console=error_console, show_path=False, rich_tracebacks=True)
        ],
        force=True,
    )


RANGE_OPTIONS = [
    click.option(
        "--repo", "repo_path", type=click.Path(exists=True), help="Path to the git repository"
    ),
    click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, dir_okay=False),
        help="JSON settings file",
    ),
    click.option("--from-ref", help="Start after this branch or tag"),
    click.option("--to-ref", help="End at this branch or tag"),
    click.option("--from-commit", help="Start after this commit"),
    click.option("--to-commit", help="End at this commit"),
    click.option("--from-inclusiveness", type=STRATEGIES, help="Inclusiveness of the from boundary"),
    click.option("--to-inclusiveness", type=STRATEGIES, help="Inclusiveness of the to boundary"),
    click.option("--untagged-name", help="Name of the bucket for untagged commits"),
    click.option("--ignore-tag-pattern", help="Ignore tags whose name matches this regex"),
    click.option(
        "--path-filter", "path_filters", multiple=True, help="Only commits touching this path"
    ),
    click.option("--verbose", "-v", is_flag=True, help="Show debug logging"),
]


def range_options(command):
    """Options shared by every command that works on a commit range."""
    for option in reversed(RANGE_OPTIONS):
        command = option(command)
    return command


def _build_settings(
    repo_path: Optional[str],
    config_path: Optional[str],
    path_filters: Tuple[str, ...],
    **overrides,
) -> Settings:
    overrides["from_repo"] = Path(repo_path) if repo_path else None
    overrides["path_filters"] = tuple(path_filters) or None
    for key in ("from_inclusiveness", "to_inclusiveness"):
        if overrides.get(key):
            overrides[key] = InclusivenessStrategy(overrides[key].lower())

    if config_path:
        return Settings.from_file(Path(config_path), **overrides)
    return Settings(**{key: value for key, value in overrides.items() if value is not None})


def _print_tags(data: ChangelogData) -> None:
    table = Table(title="Tags")
    table.add_column("Tag", style="cyan")
    table.add_column("Date")
    table.add_column("Commits", justify="right")
    table.add_column("Annotation")

    for tag in data.tags:
        date = tag.timestamp.strftime("%Y-%m-%d") if tag.timestamp else ""
        annotation = (tag.annotation or "").strip().splitlines()
        table.add_row(tag.name, date, str(len(tag.commits)), annotation[0] if annotation else "")

    console.print(table)
    if data.origin_url:
        console.print(f"[bold]Origin:[/bold] {data.origin_url}")

    for commit_hash, sections in data.submodule_sections.items():
        for section in sections:
            console.print(
                f"[bold]Submodule update in {commit_hash[:8]}:[/bold] "
                f"{', '.join(section.tag_names()) or 'no tags'}"
            )


@click.group()
@click.version_option(package_name="git-tagwalk")
def main():
    """Git Tagwalk - group commits by the tag that releases them."""


@main.command()
@range_options
@click.option("--submodules", is_flag=True, help="Expand submodule pointer updates")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def tags(verbose: bool, submodules: bool, as_json: bool, **options):
    """Show the commits of a range grouped by tag."""
    _configure_logging(verbose)
    try:
        settings = _build_settings(parse_submodules=True if submodules else None, **options)
        data = build_changelog_data(settings)
    except GitTagwalkError as e:
        error_console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e

    if as_json:
        click.echo(data.model_dump_json(indent=2))
    else:
        _print_tags(data)


@main.command()
@click.argument("revision")
@click.option("--repo", "repo_path", type=click.Path(exists=True), default=".", help="Path to the git repository")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def resolve(revision: str, repo_path: str, verbose: bool):
    """Print the commit a revision resolves to."""
    _configure_logging(verbose)
    try:
        with GitRepository(Path(repo_path)) as repository:
            boundary = RevisionResolver(repository).resolve(revision)
    except GitTagwalkError as e:
        error_console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e
    click.echo(boundary.commit_hash)


@main.command("current-tags")
@range_options
def current_tags(verbose: bool, **options):
    """Print the tags that point at the end of the range."""
    _configure_logging(verbose)
    try:
        names = tags_at_boundary(_build_settings(**options))
    except GitTagwalkError as e:
        error_console.print(f"[red]Error: {e}[/red]")
        raise click.Abort() from e
    for name in names:
        click.echo(name)


if __name__ == "__main__":
    main()
