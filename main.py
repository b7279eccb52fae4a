#!/usr/bin/env python3
"""
Security Alerts Report - Main CLI Application
Exports code scanning alerts and the dependency graph of a GitHub repository to Excel
"""

import sys
import argparse
import traceback
from typing import Dict, Any

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from alerts_report.agents.report_agent import ReportAgent
from alerts_report.config.config_manager import ConfigManager

console = Console()


def workflow_command(command: str, message: str):
    """Emit a GitHub Actions workflow command (::error::, ::warning::)"""
    escaped = message.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")
    print(f"::{command}::{escaped}", flush=True)


def display_report_results(results: Dict[str, Any]):
    """Display the written sheets in a formatted table"""
    table = Table(title=f"Security Alerts Report: {results['repository']}")
    table.add_column("Sheet", style="cyan")
    table.add_column("Rows", style="magenta", justify="right")

    for sheet_name, rows in results.get("sheets", {}).items():
        table.add_row(sheet_name, str(rows))

    console.print(table)
    if results.get("repository_license"):
        console.print(f"Repository license: {results['repository_license']}")
    console.print(f"[green]✓ Workbook written to {results['output_path']}[/green]")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Export code scanning alerts and dependency licenses to an Excel workbook",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                          # repository from the Actions context
  python main.py --repo owner/repo        # explicit repository
  python main.py --output reports/a.xlsx  # custom output path
        """,
    )
    parser.add_argument("--repo", help="Repository in format owner/repo")
    parser.add_argument("--output", help="Path of the workbook to write")
    parser.add_argument(
        "--config", default="config.yaml", help="Configuration file path"
    )
    parser.add_argument("--env-file", default=".env", help="Environment file path")
    parser.add_argument(
        "--show-config",
        action="store_true",
        help="Print the effective configuration and exit",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser


def main(argv=None):
    """Main CLI entry point"""
    args = build_parser().parse_args(argv)

    try:
        config = ConfigManager(
            args.config,
            args.env_file,
            overrides={"repository": args.repo, "report.output_path": args.output},
        )
    except Exception as e:
        console.print(f"Error: {str(e)}", style="red", markup=False)
        workflow_command("error", str(e))
        sys.exit(1)

    if args.show_config:
        console.print(config.export_config(), markup=False)
        return

    console.print(Panel.fit("📊 Generating Security Alerts Report", style="cyan"))

    agent = ReportAgent(config, console=console)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        task = progress.add_task("Fetching alerts and dependencies...", total=None)

        result = agent.run()

        progress.update(task, description="Report finished")

    for warning in result.get("warnings", []):
        workflow_command("warning", warning)

    if result["status"] != "success":
        console.print(f"Error in {result['stage']}: {result['error']}", style="red", markup=False)
        if args.verbose and result.get("exception") is not None:
            exc = result["exception"]
            console.print(
                "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            )
        workflow_command("error", result["error"])
        sys.exit(1)

    display_report_results(result)


if __name__ == "__main__":
    main()
