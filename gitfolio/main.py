"""Main entry point for the gitfolio application.

Sets up the Typer CLI application, performs dependency injection (Composition Root),
defines CLI commands, and delegates execution to the CommandHandler.
"""

import asyncio
import logging
import sys
from typing import Any, Coroutine, Dict, Optional

import typer
from typing_extensions import Annotated

# --- Core Layer ---
from gitfolio.core.command_handler import CommandHandler
from gitfolio.core.projects.query import REPOSITORY_TYPES, SORT_KEYS, RepositoryFilters
from gitfolio.core.services.github_service import GitHubService

# --- Infrastructure Layer ---
# Config
from gitfolio.infrastructure.config.settings import (
    get_api_url, get_cache_ttls, get_config, get_github_token, get_retry_settings,
    get_timeout_seconds, get_token_store_path, get_user_agent, load_configuration,
)
# UI
from gitfolio.infrastructure.cli.display import ConsoleDisplay
# Cache
from gitfolio.infrastructure.cache.caching_service import InMemoryCacheService
# Resilience
from gitfolio.infrastructure.resilience.api_retry import ApiRetryService
# GitHub access
from gitfolio.infrastructure.github.request_executor import GitHubRequestExecutor
from gitfolio.infrastructure.storage.token_store import TokenStore, YamlFileKeyValueStore
# Monitoring
from gitfolio.infrastructure.monitoring.logger_setup import DEFAULT_LOG_FORMAT, resolve_log_level, setup_logging

logger = logging.getLogger(__name__)

# --- Dependency Injection Container (Manual) ---

def create_dependencies() -> Dict[str, Any]:
    """Creates and wires up all dependencies for the application.

    This acts as the Composition Root.
    """
    dependencies: Dict[str, Any] = {}
    try:
        # 1. Load Configuration First
        load_configuration()
        setup_logging(
            log_level=resolve_log_level(get_config('logging.level')),
            log_format=get_config('logging.format', DEFAULT_LOG_FORMAT),
            log_file=get_config('logging.file'),
        )
        logger.info("Configuration and logging initialized.")

        # 2. Instantiate Infrastructure Adapters & Services
        dependencies['ui'] = ConsoleDisplay()
        cache_ttls = get_cache_ttls()
        dependencies['cache_service'] = InMemoryCacheService(default_ttl=cache_ttls.default)

        retry = get_retry_settings()
        dependencies['api_retry_service'] = ApiRetryService(
            max_retries=retry.max_retries,
            base_delay_s=retry.base_delay_seconds,
            max_jitter_s=retry.max_jitter_seconds,
            max_rate_limit_wait_s=retry.max_rate_limit_wait_seconds,
        )
        dependencies['token_store'] = TokenStore(YamlFileKeyValueStore(get_token_store_path()))
        dependencies['request_executor'] = GitHubRequestExecutor(
            token_store=dependencies['token_store'],
            cache_service=dependencies['cache_service'],
            retry_service=dependencies['api_retry_service'],
            token=get_github_token(),
            base_url=get_api_url(),
            user_agent=get_user_agent(),
            timeout_s=get_timeout_seconds(),
        )

        # 3. Instantiate Core Services
        dependencies['github_service'] = GitHubService(dependencies['request_executor'], cache_ttls=cache_ttls)

        # 4. Instantiate Command Handler
        dependencies['command_handler'] = CommandHandler(
            github_service=dependencies['github_service'],
            ui=dependencies['ui'],
        )
        logger.info("All dependencies initialized successfully.")
        return dependencies

    except Exception as e:
        logger.error(f"Fatal Error during application initialization: {e}", exc_info=True)
        if 'ui' in dependencies:
            dependencies['ui'].display_error(f"Application Initialization Failed: {e}")
        else:
            print(f"FATAL ERROR during initialization: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

# --- Get Wired-up Dependencies ---
# Built on first use so that importing this module has no side effects
_dependencies: Dict[str, Any] = {}


def get_dependencies() -> Dict[str, Any]:
    if not _dependencies:
        _dependencies.update(create_dependencies())
    return _dependencies


def get_handler() -> CommandHandler:
    return get_dependencies()['command_handler']

# --- Typer App Definition ---
app = typer.Typer(
    name="gitfolio",
    help="gitfolio: browse, filter and summarize GitHub repositories from the terminal.",
    add_completion=False,
    no_args_is_help=True,
)

# --- Helper for Running Async Commands ---
def run_async(coro: Coroutine[Any, Any, None]) -> None:
    """Manages running async functions from sync Typer commands."""
    try:
        asyncio.run(coro)
    except KeyboardInterrupt:
        logger.info("Command interrupted by user.")
        raise typer.Exit(code=130)

# --- CLI Commands ---

UsernameArgument = Annotated[
    Optional[str],
    typer.Argument(help="GitHub username. Defaults to the authenticated user."),
]
PageOption = Annotated[int, typer.Option("--page", min=1, help="Page of results to fetch.")]


@app.command()
def user():
    """Show the authenticated user's profile."""
    run_async(get_handler().handle_user())


@app.command()
def repos(
    username: UsernameArgument = None,
    sort: Annotated[Optional[str], typer.Option("--sort", "-s", help=f"Sort by: {', '.join(SORT_KEYS)}.")] = None,
    direction: Annotated[str, typer.Option("--direction", "-d", help="Sort direction: asc or desc.")] = "desc",
    language: Annotated[Optional[str], typer.Option("--language", "-l", help="Only repositories in this primary language.")] = None,
    repo_type: Annotated[Optional[str], typer.Option("--type", "-t", help=f"Repository type: {', '.join(REPOSITORY_TYPES)}.")] = None,
    min_stars: Annotated[Optional[int], typer.Option("--min-stars", min=0, help="Minimum star count.")] = None,
    max_stars: Annotated[Optional[int], typer.Option("--max-stars", min=0, help="Maximum star count.")] = None,
    has_topics: Annotated[Optional[bool], typer.Option("--has-topics/--no-topics", help="Only repositories with (or without) topics.")] = None,
    search: Annotated[Optional[str], typer.Option("--search", "-q", help="Case-insensitive text in name, description, language or topics.")] = None,
    page: PageOption = 1,
    per_page: Annotated[int, typer.Option("--per-page", min=1, max=100, help="Repositories per page.")] = 100,
):
    """List repositories, with local filtering and sorting."""
    try:
        filters = RepositoryFilters(
            language=language,
            type=repo_type,
            min_stars=min_stars,
            max_stars=max_stars,
            has_topics=has_topics,
            search_term=search,
        )
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--type")
    run_async(get_handler().handle_repos(username, filters=filters, sort_by=sort, direction=direction, page=page, per_page=per_page))


@app.command()
def repo(
    owner: Annotated[str, typer.Argument(help="Repository owner.")],
    name: Annotated[str, typer.Argument(help="Repository name.")],
):
    """Show the details of one repository."""
    run_async(get_handler().handle_repo(owner, name))


@app.command()
def languages(
    owner: Annotated[str, typer.Argument(help="Repository owner.")],
    name: Annotated[str, typer.Argument(help="Repository name.")],
):
    """Show the language breakdown (bytes per language) of a repository."""
    run_async(get_handler().handle_languages(owner, name))


@app.command()
def stats(username: UsernameArgument = None):
    """Summarize stars, forks, languages and activity across repositories."""
    run_async(get_handler().handle_stats(username))


@app.command()
def search(
    query: Annotated[str, typer.Argument(help="GitHub search query, e.g. 'language:python stars:>100'.")],
    sort: Annotated[str, typer.Option("--sort", "-s", help="Sort by: stars, forks, help-wanted-issues or updated.")] = "stars",
    order: Annotated[str, typer.Option("--order", "-o", help="Sort order: asc or desc.")] = "desc",
    page: PageOption = 1,
    per_page: Annotated[int, typer.Option("--per-page", min=1, max=100, help="Results per page.")] = 30,
):
    """Search public repositories on GitHub."""
    run_async(get_handler().handle_search(query, sort=sort, order=order, page=page, per_page=per_page))


@app.command(name="rate-limit")
def rate_limit_command():
    """Show the remaining API quota."""
    run_async(get_handler().handle_rate_limit())


@app.command(name="set-token")
def set_token_command(
    token: Annotated[str, typer.Argument(help="GitHub personal access token.")],
):
    """Save a GitHub token for future runs."""
    get_handler().handle_set_token(token)


@app.command(name="remove-token")
def remove_token_command():
    """Forget the saved GitHub token."""
    get_handler().handle_remove_token()


@app.command(name="test-connection")
def test_connection_command():
    """Check that the configured token is accepted by GitHub."""
    run_async(get_handler().handle_test_connection())


@app.command(name="clear-cache")
def clear_cache_command():
    """Clears the response cache."""
    run_async(get_handler().handle_clear_cache())

# --- Main Execution Guard ---

def cli_entry_point():
    """Function to be called by the script entry point in pyproject.toml."""
    app()

if __name__ == "__main__":
    cli_entry_point()
