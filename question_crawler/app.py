"""Typer CLI entrypoint for the question crawler."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository, CrawlConfig
from .engine import build_client
from .errors import CrawlerError
from .logging_conf import configure_logging, tail_log
from .pipeline import Pipeline, RunSummary
from .ui import ProgressReporter

app = typer.Typer(
    help="Fetch numbered question records and their images.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
config_app = typer.Typer(
    name="config",
    help="Inspect or create the crawler configuration.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Show crawler log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    verbose: bool


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    configure_logging(verbose=verbose, log_dir=repository.locator.logs_dir)
    return AppState(repository=repository, verbose=verbose)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _load_config(state: AppState, config_path: Optional[Path], **overrides) -> CrawlConfig:
    repository = state.repository
    try:
        config = repository.load_config(config_path)
        config = repository.with_overrides(config, **overrides)
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc
    except (ValidationError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    if not config.output_dir.is_absolute():
        config = repository.with_overrides(
            config, output_dir=repository.locator.resolve(config.output_dir)
        )
    return config


def _render_config_table(config: CrawlConfig) -> Table:
    table = Table(title="Crawler configuration", box=box.SIMPLE_HEAD)
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    for key, value in config.model_dump(mode="json").items():
        table.add_row(key, "-" if value is None else str(value))
    return table


def _render_summary_table(summary: RunSummary) -> Table:
    labels = {
        "fetched": "Records saved",
        "failed": "Fetch failures",
        "persist_failed": "Write failures",
        "images": "Images referenced",
        "images_downloaded": "Images downloaded",
        "images_failed": "Image failures",
    }
    table = Table(title="Run summary", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    for key, value in summary.as_dict().items():
        table.add_row(labels[key], str(value))
    return table


app.add_typer(config_app, name="config")
app.add_typer(log_app, name="log")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Fetch the configured identifier range, then its images.")
def run(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON config file."),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Remote origin."),
    start: Optional[int] = typer.Option(None, "--start", help="First identifier."),
    end: Optional[int] = typer.Option(None, "--end", help="Last identifier (inclusive)."),
    workers: Optional[int] = typer.Option(None, "--workers", help="Fetch worker count."),
    output: Optional[Path] = typer.Option(None, "--output", help="Output directory (cleared first)."),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Per-request timeout in seconds."),
    no_images: bool = typer.Option(False, "--no-images", help="Skip the image download pass."),
    quiet: bool = typer.Option(False, "--quiet", help="Print a one-line result only."),
) -> None:
    state = _get_state(ctx)
    config = _load_config(
        state,
        config_path,
        base_url=base_url,
        range_start=start,
        range_end=end,
        worker_count=workers,
        output_dir=output,
        request_timeout=timeout,
        download_images=False if no_images else None,
    )

    progress = ProgressReporter(enabled=_progress_default_enabled() and not quiet, console=console)
    progress.start(config.identifier_count)
    pipeline = Pipeline(config, client=build_client(config), listener=progress)
    try:
        summary = pipeline.execute()
    except CrawlerError as exc:
        console.print(f"Crawl aborted: {exc}", style="red")
        raise typer.Exit(code=1) from exc
    finally:
        progress.close()
        pipeline.client.close()

    if quiet:
        counts = summary.as_dict()
        console.print(
            f"Done: {counts['fetched']} saved, {counts['failed']} failed, "
            f"{counts['images_downloaded']}/{counts['images']} images"
        )
        return
    console.print(_render_summary_table(summary))
    if summary.failures:
        failed_table = Table(title="Failed identifiers", box=box.SIMPLE_HEAD)
        failed_table.add_column("Identifier", justify="right")
        failed_table.add_column("Kind", style="red")
        failed_table.add_column("Status", justify="right")
        for failure in summary.failures:
            failed_table.add_row(
                str(failure.identifier),
                failure.kind.value,
                "-" if failure.status_code is None else str(failure.status_code),
            )
        console.print(failed_table)


@config_app.command("show", help="Print the effective configuration.")
def config_show(
    ctx: typer.Context,
    config_path: Optional[Path] = typer.Option(None, "--config", help="YAML or JSON config file."),
) -> None:
    state = _get_state(ctx)
    console.print(_render_config_table(_load_config(state, config_path)))


@config_app.command("init", help="Write the default configuration file.")
def config_init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    state = _get_state(ctx)
    path = state.repository.locator.config_path()
    if path.exists() and not force:
        console.print(f"{path} already exists; pass --force to overwrite.", style="yellow")
        raise typer.Exit(code=1)
    state.repository.save_config(CrawlConfig(), path)
    console.print(f"Wrote {path}", style="green")


@log_app.command("show", help="Show the tail of the crawler log.")
def log_show(
    ctx: typer.Context,
    errors_only: bool = typer.Option(False, "--errors", help="Show error.log instead."),
    lines: int = typer.Option(50, "--lines", "-n", min=1, help="Number of lines."),
) -> None:
    state = _get_state(ctx)
    logs_dir = state.repository.locator.logs_dir
    path = logs_dir / ("error.log" if errors_only else "crawler.log")
    content = tail_log(path, lines)
    if not content:
        console.print(f"{path.name} is empty.", style="dim")
        return
    for line in content:
        console.print(line.rstrip("\n"), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
