#!/usr/bin/env python3
"""Main CLI entry point for Tag Insight using Typer.

This module provides the command-line interface for auditing batches of
captured tracking requests and for inspecting the vendor registry and the
rule catalog.
"""

import json
import logging
from enum import IntEnum
from pathlib import Path
from typing import Any, List, Optional

import typer
from typing_extensions import Annotated

from .. import __version__
from ..audit.config import ConfigManager, ConfigurationError, EngineConfig
from ..audit.detectors import default_registry
from ..audit.engine import AuditEngine
from ..audit.rules import AuditReport, ReportFormat, build_default_catalog


logger = logging.getLogger(__name__)


class ExitCode(IntEnum):
    """CLI exit codes for CI/CD integration.

    Maps audit results to standard exit codes that can be used in CI/CD
    pipelines for automated quality gates.
    """
    SUCCESS = 0           # Audit completed, no failing gate
    RULE_FAILURES = 1     # Issues found and --fail-on-warnings was set
    CRITICAL_FAILURES = 2 # Critical issues found and --fail-on-critical was set
    CONFIG_ERROR = 3      # Configuration or input error
    RUNTIME_ERROR = 4     # Unexpected error during the audit


# Create the main Typer app
app = typer.Typer(
    name="taginsight",
    help="Tag Insight - marketing tracking implementation auditor",
    add_completion=False,
)


@app.callback()
def main():
    """
    Tag Insight - marketing tracking implementation auditor.

    Audits captured tracking requests for Meta, GA4, Google Ads, TikTok and
    other vendors, and produces a scored, severity-grouped report.
    """
    pass


@app.command(name="version")
def show_version():
    """Show version information."""
    typer.echo(f"Tag Insight CLI v{__version__}")


def configure_logging(level: str) -> None:
    """Configure the root logger for CLI runs."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_requests_file(path: Path) -> List[Any]:
    """Read captured requests from a JSON file.

    The file holds either a JSON array of request records or an object with a
    ``requests`` array, as the crawler writes it.

    Raises:
        ValueError: If the file does not hold a request list
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("requests")
    if not isinstance(data, list):
        raise ValueError("expected a JSON array of requests or an object with a 'requests' array")
    return data


def resolve_exit_code(report: AuditReport, fail_on_critical: bool, fail_on_warnings: bool) -> ExitCode:
    """Map an audit report to the process exit code."""
    if fail_on_critical and report.has_critical_issues:
        return ExitCode.CRITICAL_FAILURES
    if fail_on_warnings and report.has_issues:
        return ExitCode.RULE_FAILURES
    return ExitCode.SUCCESS


@app.command()
def audit(
    requests_file: Annotated[
        Path,
        typer.Argument(help="JSON file with captured requests")
    ],

    # Configuration
    config_file: Annotated[
        Optional[Path],
        typer.Option("--config", "-c", help="Path to YAML configuration file")
    ] = None,

    env: Annotated[
        Optional[str],
        typer.Option("--env", "-e", help="Environment overrides to apply (development, staging, production, test)")
    ] = None,

    # Output configuration
    out: Annotated[
        Optional[Path],
        typer.Option("--out", "-o", help="Write the report to this file instead of stdout")
    ] = None,

    output_format: Annotated[
        ReportFormat,
        typer.Option("--format", "-f", help="Report format")
    ] = ReportFormat.JSON,

    pretty: Annotated[
        bool,
        typer.Option("--pretty", help="Indent JSON output")
    ] = False,

    # CI/CD options
    fail_on_critical: Annotated[
        bool,
        typer.Option("--fail-on-critical", help="Exit with code 2 on critical issues")
    ] = False,

    fail_on_warnings: Annotated[
        bool,
        typer.Option("--fail-on-warnings", help="Exit with code 1 when any issue is reported")
    ] = False,

    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Verbose logging")
    ] = False,
):
    """
    Audit a batch of captured tracking requests.

    Examples:

        # Print the JSON report
        taginsight audit requests.json --pretty

        # CI/CD gate with a config file
        taginsight audit requests.json --config taginsight.yaml --env staging \\
            --out report.json --fail-on-critical
    """
    if not requests_file.exists():
        typer.echo(f"❌ Requests file not found: {requests_file}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    try:
        config = ConfigManager(config_file).load_config(environment=env)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    configure_logging("DEBUG" if verbose else config.log_level)

    try:
        requests = load_requests_file(requests_file)
    except (OSError, ValueError) as e:
        typer.echo(f"❌ Error reading requests file {requests_file}: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    try:
        engine = AuditEngine(config)
        report = engine.audit(requests)
        rendered = report.render(output_format, pretty=pretty)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration error: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)
    except Exception as e:
        logger.exception("Audit failed")
        typer.echo(f"❌ Runtime error: {e}", err=True)
        raise typer.Exit(code=ExitCode.RUNTIME_ERROR.value)

    if out:
        try:
            out.parent.mkdir(parents=True, exist_ok=True)
            out.write_text(rendered + ("" if rendered.endswith("\n") else "\n"), encoding="utf-8")
        except (OSError, UnicodeError) as e:
            typer.echo(f"❌ Error writing report to {out}: {e}", err=True)
            raise typer.Exit(code=ExitCode.RUNTIME_ERROR.value)
        typer.echo(
            f"✅ Report written to {out}: score {report.overall.score} ({report.overall.score_label}), "
            f"{report.overall.solutions_detected} vendors, {report.overall.events_audited} events"
        )
    else:
        typer.echo(rendered)

    exit_code = resolve_exit_code(report, fail_on_critical, fail_on_warnings)
    if exit_code != ExitCode.SUCCESS:
        raise typer.Exit(code=exit_code.value)


@app.command()
def vendors():
    """List the vendors the detector recognizes, in detection order."""
    for vendor in default_registry:
        typer.echo(f"{vendor.key:<10} {vendor.name:<24} {', '.join(vendor.domains)}")


@app.command()
def rules(
    vendor: Annotated[
        Optional[str],
        typer.Argument(help="Only list rules for this vendor key")
    ] = None,
):
    """List the built-in rule catalog."""
    catalog = build_default_catalog()

    if vendor is not None and vendor.lower() not in catalog:
        typer.echo(f"❌ No rules for vendor '{vendor}'. Known: {', '.join(catalog.vendors)}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    vendor_keys = [vendor.lower()] if vendor else catalog.vendors
    for key in vendor_keys:
        typer.echo(f"[{key}]")
        for rule in catalog.rules_for(key):
            typer.echo(
                f"  {rule.rule_id:<24} {rule.severity.label:<13} -{rule.score_deduction:<3} {rule.name}"
            )


@app.command(name="validate-config")
def validate_config(
    config_file: Annotated[
        Path,
        typer.Argument(help="Path to configuration file to validate")
    ],
    environment: Annotated[
        Optional[str],
        typer.Option("--env", "-e", help="Environment context for validation")
    ] = None,
):
    """
    Validate a configuration file without running an audit.
    """
    if not config_file.exists():
        typer.echo(f"❌ Configuration file not found: {config_file}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    try:
        config = ConfigManager(config_file).load_config(environment=environment)
        AuditEngine(config)
    except ConfigurationError as e:
        typer.echo(f"❌ Configuration validation failed: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    typer.echo(f"✅ Configuration file {config_file} is valid")
    typer.echo(f"   Environment: {config.environment}")
    typer.echo(f"   Vendors: {', '.join(config.enabled_vendors) or 'all'}")


@app.command(name="init-config")
def init_config(
    output_path: Annotated[
        Path,
        typer.Argument(help="Where to write the default configuration")
    ] = Path("taginsight.yaml"),
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing file")
    ] = False,
):
    """Write a default YAML configuration file."""
    if output_path.exists() and not force:
        typer.echo(f"❌ {output_path} already exists (use --force to overwrite)", err=True)
        raise typer.Exit(code=ExitCode.CONFIG_ERROR.value)

    ConfigManager().create_default_config(output_path)
    typer.echo(f"✅ Default configuration written to {output_path}")


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    app()
