"""apicollect command line.

Commands:
    apicollect collect   Fetch the objects a profile needs into a result directory

Options not given on the command line fall back to APICOLLECT_* variables.
"""

from __future__ import annotations

import asyncio

import click

from apicollect import __version__
from apicollect.app import run_collection
from apicollect.config import load_config
from apicollect.errors import CollectorError
from apicollect.observability.logging import get_logger, setup_logging


@click.group()
@click.version_option(__version__, prog_name="apicollect")
def cli() -> None:
    """Collect the cluster objects an XCCDF benchmark profile needs."""


@cli.command()
@click.option("--content", "content_path", help="XCCDF data stream to read rules and profiles from.")
@click.option("--tailoring", "tailoring_path", help="Optional tailoring document.")
@click.option("--profile", help="Profile (or tailored profile) id to resolve.")
@click.option("--resultdir", "result_dir", help="Directory fetched objects are written to.")
@click.option("--warnings-output-file", help="File the fetch warnings are written to, if any. Defaults to <resultdir>/warnings.out.")
@click.option("--timeout", type=float, help="Seconds to wait for the content files to appear.")
@click.option("--debug", is_flag=True, default=False, help="Log at debug level.")
@click.option("--console-log", is_flag=True, default=False, help="Human readable logs instead of JSON.")
def collect(
    content_path: str | None,
    tailoring_path: str | None,
    profile: str | None,
    result_dir: str | None,
    warnings_output_file: str | None,
    timeout: float | None,
    debug: bool,
    console_log: bool,
) -> None:
    """Resolve the profile, fetch its objects and write them to --resultdir."""
    config = load_config()
    if content_path:
        config.content.content_path = content_path
    if tailoring_path:
        config.content.tailoring_path = tailoring_path
    if profile:
        config.content.profile = profile
    if result_dir:
        config.output.result_dir = result_dir
    if warnings_output_file:
        config.output.warnings_output_file = warnings_output_file
    if timeout is not None:
        config.content.timeout_seconds = timeout
    if debug:
        config.log.level = "debug"

    missing = [
        flag
        for flag, value in (
            ("--content", config.content.content_path),
            ("--profile", config.content.profile),
            ("--resultdir", config.output.result_dir),
        )
        if not value
    ]
    if missing:
        raise click.UsageError(f"missing required option(s): {', '.join(missing)}")

    setup_logging(config.log.level, json_output=not console_log)
    log = get_logger("cli")
    try:
        report = asyncio.run(run_collection(config))
    except CollectorError as exc:
        raise SystemExit(1) from exc
    log.info(
        "collection_finished",
        files=len(report.written),
        warnings=len(report.result.warnings),
    )
