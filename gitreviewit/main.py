"""GitReviewIt entry point.

Loads the pull requests waiting for your review, enriches them and prints the
filtered list. Usage: gitreviewit [--query TEXT] [--org ORG] [--repo OWNER/NAME] [--team SLUG].
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from gitreviewit.adapters import GitHubAdapter
from gitreviewit.config import AppConfig, load_config
from gitreviewit.list_coordinator import ListCoordinator, ListState
from gitreviewit.logging import ReviewItLogging
from gitreviewit.models import FilterConfiguration, PullRequest
from gitreviewit.services import YamlFilterStore

LOG = logging.getLogger("gitreviewit")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="gitreviewit",
        description="GitReviewIt - pull requests waiting for your review",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=Path("config.yaml"),
        help="Path to YAML config file",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Only load and validate config, then exit",
    )
    parser.add_argument("--query", "-q", default="", help="Fuzzy search over title, repository and author")
    parser.add_argument("--org", action="append", default=[], help="Only this organization (repeatable)")
    parser.add_argument("--repo", action="append", default=[], help="Only this owner/name repository (repeatable)")
    parser.add_argument("--team", action="append", default=[], help="Only repositories of this team (repeatable)")
    parser.add_argument(
        "--clear-filters",
        action="store_true",
        help="Forget saved organization/repository/team filters",
    )
    return parser.parse_args(argv if argv is not None else sys.argv[1:])


def format_pull_request(pr: PullRequest) -> str:
    """One line per pull request; stats only once enriched."""
    line = f"{pr.id}  {pr.title}  (@{pr.author_login})"
    if pr.is_draft:
        line += "  [draft]"
    metadata = pr.metadata
    if metadata is None:
        return line
    return (
        f"{line}  +{metadata.additions} -{metadata.deletions} in {metadata.changed_files_count} file(s)"
        f"  checks: {metadata.check_status.value}  merge: {metadata.merge_status.value}"
    )


def _selected_filters(args: argparse.Namespace) -> FilterConfiguration | None:
    if not (args.org or args.repo or args.team):
        return None
    return FilterConfiguration(
        organizations=frozenset(args.org),
        repositories=frozenset(args.repo),
        teams=frozenset(args.team),
    )


async def run(config: AppConfig, args: argparse.Namespace, token: str) -> int:
    """Load, enrich, filter and print. Returns the process exit code."""
    adapter = GitHubAdapter(token=token, api_url=config.github.api_url, timeout=config.github.timeout)
    store = YamlFilterStore(config.filters.store_path)
    coordinator = ListCoordinator(
        adapter,
        store=store,
        debounce_seconds=config.filters.search_debounce_seconds,
        max_concurrency=config.enrichment.max_concurrency,
    )
    try:
        if args.clear_filters:
            store.clear()
        coordinator.restore_filters()
        selected = _selected_filters(args)
        if selected is not None:
            coordinator.set_filter_configuration(selected)

        await coordinator.load()
        if coordinator.state == ListState.FAILED:
            error = coordinator.error
            print(f"Error: {error}", file=sys.stderr)
            if error is not None and error.recovery_suggestion:
                print(error.recovery_suggestion, file=sys.stderr)
            return 1

        await coordinator.wait_for_enrichment()
        await coordinator.wait_for_teams()
        if args.query:
            coordinator.set_search_query(args.query)
            await coordinator.settle_search()

        if coordinator.notice:
            print(coordinator.notice, file=sys.stderr)
        visible = coordinator.visible_items
        for pr in visible:
            print(format_pull_request(pr))
        failures = coordinator.enrichment_failures
        if failures:
            LOG.warning("%d pull request(s) could not be enriched", len(failures))
        print(f"{len(visible)} of {len(coordinator.items)} pull request(s)")
        return 0
    finally:
        await coordinator.close()


def main(argv: list[str] | None = None) -> int:
    """Entry point."""
    args = parse_args(argv)

    config_path = args.config
    if not config_path.is_file() and config_path == Path("config.yaml"):
        if Path("config.example.yaml").is_file():
            config_path = Path("config.example.yaml")
            logging.basicConfig(level=logging.INFO)
            LOG.warning("config.yaml not found, using config.example.yaml")

    config = load_config(config_path)
    ReviewItLogging(config.logging).setup()

    token = config.github_token_resolved
    if args.check:
        print("Config OK:", config.github.api_url, "token set" if token else "token missing")
        return 0

    if not token:
        LOG.error("GitHub token missing: set github.token, GITHUB_TOKEN or GITHUB_TOKEN_FILE")
        return 2

    try:
        return asyncio.run(run(config, args, token))
    except KeyboardInterrupt:
        return 0
    except Exception as e:
        LOG.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
