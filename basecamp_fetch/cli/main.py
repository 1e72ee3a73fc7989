"""CLI commands for fetching from the Basecamp API."""

import json
import logging
import shutil
import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from types import FrameType

import click
import structlog

from basecamp_fetch import __version__
from basecamp_fetch.auth import AuthError, BasecampTokenProvider
from basecamp_fetch.debug import DebugSink, FileDebugSink, NullDebugSink
from basecamp_fetch.download import AssetDownloader, NoAuthAvailableError
from basecamp_fetch.fetch import (
    CancellationToken,
    FetchConfig,
    FetchFatalError,
    FetchMetrics,
    HttpFetcher,
    OperationCancelledError,
    Paginator,
)
from basecamp_fetch.observability.logging import bind_command_context, configure_logging
from basecamp_fetch.settings import AppSettings, get_settings


logger = structlog.get_logger()

EXIT_FAILURE = 1
EXIT_CANCELLED = 130


@dataclass
class CliContext:
    """Objects shared by all commands."""

    settings: AppSettings
    token: CancellationToken
    verbose: bool


def install_signal_handlers(token: CancellationToken) -> None:
    """Cancel the token on SIGINT or SIGTERM.

    Args:
        token: Token polled by running fetch operations.
    """

    def _handle(signum: int, frame: FrameType | None) -> None:  # noqa: ARG001
        logger.info("shutdown_requested", signal=signal.Signals(signum).name)
        token.cancel()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)


def _token_provider(settings: AppSettings) -> BasecampTokenProvider:
    return BasecampTokenProvider(
        client_id=settings.basecamp_client_id,
        client_secret=settings.basecamp_client_secret,
        redirect_uri=settings.basecamp_redirect_uri,
        token_path=settings.token_path,
        prompt=lambda message: click.prompt(message, prompt_suffix="> "),
    )


def _debug_sink(settings: AppSettings) -> DebugSink:
    if settings.debug:
        return FileDebugSink(settings.debug_dir)
    return NullDebugSink()


def _resolve_url(settings: AppSettings, target: str) -> str:
    """Accept either an absolute URL or a path below the account root."""
    if target.startswith(("http://", "https://")):
        return target
    try:
        return settings.api_url(target)
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="TARGET") from exc


def _fail(message: str, exit_code: int = EXIT_FAILURE) -> None:
    click.echo(message, err=True)
    sys.exit(exit_code)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging.",
)
@click.option(
    "--json-logs/--no-json-logs",
    default=False,
    help="Use JSON format for logs (default: false).",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, json_logs: bool) -> None:
    """Basecamp API fetch helper."""
    settings = get_settings()
    level = logging.DEBUG if (verbose or settings.debug) else logging.INFO
    configure_logging(level=level, json_format=json_logs)
    bind_command_context(ctx.invoked_subcommand or "cli")

    token = CancellationToken()
    install_signal_handlers(token)
    ctx.obj = CliContext(settings=settings, token=token, verbose=verbose)


@cli.command()
@click.pass_obj
def authorize(obj: CliContext) -> None:
    """Authorize with Basecamp and cache the access token."""
    provider = _token_provider(obj.settings)
    try:
        provider.access_token()
    except AuthError as exc:
        _fail(f"Authorization failed: {exc}")

    click.echo(f"Access token cached at {provider.token_path}")


@cli.command()
@click.argument("target")
@click.option(
    "--max-attempts",
    type=click.IntRange(1, 20),
    default=5,
    help="Attempts per page for network and server errors (default: 5).",
)
@click.pass_obj
def fetch(obj: CliContext, target: str, max_attempts: int) -> None:
    """Fetch a JSON resource and all of its pages.

    TARGET is an absolute URL or a path below the account root,
    e.g. "projects.json".
    """
    url = _resolve_url(obj.settings, target)
    provider = _token_provider(obj.settings)
    config = FetchConfig.model_validate(
        {"retry_policy": {"max_attempts": max_attempts}}
    )
    paginator = Paginator(
        HttpFetcher(config),
        token=obj.token,
        debug_sink=_debug_sink(obj.settings),
    )

    try:
        data = paginator.load_json(url, provider.headers())
    except OperationCancelledError:
        _fail("Cancelled.", EXIT_CANCELLED)
    except AuthError as exc:
        _fail(f"Authorization failed: {exc}")
    except FetchFatalError as exc:
        _fail(f"Fetch failed: {exc}")

    click.echo(json.dumps(data, indent=2, ensure_ascii=False))
    logger.debug("fetch_metrics", **FetchMetrics.get_instance().to_dict())


@cli.command()
@click.argument("url")
@click.option(
    "--output",
    "-o",
    "output_path",
    required=True,
    type=click.Path(dir_okay=False, path_type=Path),
    help="File to write the asset to.",
)
@click.pass_obj
def download(obj: CliContext, url: str, output_path: Path) -> None:
    """Download a private asset using the cached bearer token."""
    downloader = AssetDownloader(HttpFetcher(), _token_provider(obj.settings))

    try:
        result = downloader.download_with_auth(url)
    except NoAuthAvailableError as exc:
        _fail(str(exc))

    if not result.is_ok or result.stream is None:
        _fail(f"Asset not available: {result.reason}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with result.stream as source, output_path.open("wb") as target:
        shutil.copyfileobj(source, target)

    click.echo(f"Saved {output_path} ({result.content_type})")


if __name__ == "__main__":
    cli()
