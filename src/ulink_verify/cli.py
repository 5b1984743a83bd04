from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import load_config_from_env, load_remote_config
from .errors import UlinkVerifyError
from .models import ProjectKind, Severity, TargetDiscoveryResult
from .plan import detect_project_kind
from .reporting import STATUS_ICONS, render_text, report_to_dict, write_json_snapshot, write_markdown_report
from .targets import discover_targets
from .utils import configure_logging, redact_home
from .verify import verify_project

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Verify ULink deep-link configuration in Flutter, iOS and Android projects.",
)

EXIT_FAILED = 1
EXIT_BAD_INPUT = 2

SEVERITY_COLORS = {
    Severity.ERROR: typer.colors.RED,
    Severity.WARNING: typer.colors.YELLOW,
    Severity.SUCCESS: typer.colors.GREEN,
}


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"ulink-verify {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show the version and exit."
    ),
) -> None:
    """ULink configuration verifier."""


def _echo_targets(discovery: TargetDiscoveryResult) -> None:
    for target in discovery.all_targets:
        marker = "*" if target == discovery.matched_target else " "
        typer.echo(f" {marker} {target.target_name}: {target.bundle_id}")
        typer.echo(f"     {redact_home(target.entitlements_file)}")


def _reject_unmatched_target(discovery: Optional[TargetDiscoveryResult]) -> bool:
    if discovery is None or discovery.requested_bundle_id is None or discovery.has_match:
        return False
    if not discovery.all_targets:
        return False
    typer.secho(
        f"No iOS target matches bundle identifier {discovery.requested_bundle_id}. Available targets:",
        fg=typer.colors.RED,
        err=True,
    )
    _echo_targets(discovery)
    return True


@app.command()
def verify(
    path: Path = typer.Argument(Path("."), help="Project root to verify."),
    remote_config: Optional[Path] = typer.Option(
        None, "--remote-config", "-r", help="ULink project configuration JSON, already fetched."
    ),
    bundle_id: Optional[str] = typer.Option(
        None, "--bundle-id", "-b", help="iOS bundle identifier of the target to verify."
    ),
    output_dir: Optional[Path] = typer.Option(
        None, "--output-dir", "-o", help="Write ulink_verify.json and ulink_verify_report.md here."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report payload as JSON."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show passed checks and debug logging."),
) -> None:
    """Cross-check local deep-link configuration against a ULink project."""
    try:
        config = load_config_from_env(
            path.resolve(),
            requested_bundle_id=bundle_id,
            remote_config_path=remote_config,
            output_dir=output_dir,
            verbose=verbose,
        )
    except UlinkVerifyError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_BAD_INPUT)
    configure_logging("DEBUG" if config.verbose else config.log_level)

    if not config.project_root.is_dir():
        typer.secho(f"Project path does not exist: {config.project_root}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_BAD_INPUT)

    remote = None
    if config.remote_config_path is not None:
        try:
            remote = load_remote_config(config.remote_config_path)
        except UlinkVerifyError as exc:
            typer.secho(str(exc), fg=typer.colors.RED, err=True)
            raise typer.Exit(EXIT_BAD_INPUT)

    outcome = verify_project(
        config.project_root,
        remote,
        requested_bundle_id=config.requested_bundle_id,
        max_walk_depth=config.max_walk_depth,
    )
    if _reject_unmatched_target(outcome.discovery):
        raise typer.Exit(EXIT_BAD_INPUT)

    report = outcome.report
    if config.output_dir is not None:
        config.output_dir.mkdir(parents=True, exist_ok=True)
        json_path = write_json_snapshot(config.output_dir, report)
        md_path = write_markdown_report(config.output_dir, report)
        logger.info("wrote %s and %s", json_path, md_path)

    if as_json:
        typer.echo(json.dumps(report_to_dict(report), indent=2, sort_keys=True))
    else:
        typer.secho(f"Detected {report.kind.value} project", bold=True)
        for line in render_text(report, config.verbose).splitlines():
            color = None
            for severity, icon in STATUS_ICONS.items():
                if line.startswith(icon):
                    color = SEVERITY_COLORS.get(severity)
            typer.secho(line, fg=color)

    if report.has_errors:
        raise typer.Exit(EXIT_FAILED)


@app.command()
def targets(
    path: Path = typer.Argument(Path("."), help="Project root to inspect."),
    bundle_id: Optional[str] = typer.Option(None, "--bundle-id", "-b", help="Bundle identifier to select."),
) -> None:
    """List the iOS targets (entitlements + Info.plist pairs) of a project."""
    configure_logging()
    root = path.resolve()
    kind = detect_project_kind(root)
    if not kind.has_ios:
        typer.secho(f"No iOS project found at {root}", fg=typer.colors.RED, err=True)
        raise typer.Exit(EXIT_BAD_INPUT)
    discovery = discover_targets(root, kind, bundle_id)
    if _reject_unmatched_target(discovery):
        raise typer.Exit(EXIT_FAILED)
    if not discovery.all_targets:
        typer.echo("No targets found")
        return
    _echo_targets(discovery)


@app.command()
def detect(path: Path = typer.Argument(Path("."), help="Project root to classify.")) -> None:
    """Print the detected project type."""
    configure_logging()
    kind = detect_project_kind(path.resolve())
    typer.echo(kind.value)
    if kind == ProjectKind.UNKNOWN:
        raise typer.Exit(EXIT_FAILED)


if __name__ == "__main__":
    app()
