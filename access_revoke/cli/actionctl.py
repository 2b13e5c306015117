#!/usr/bin/env python3
"""
Action Control CLI - Command Line Interface for the revoke access action.

Runs the invoke, error and halt handlers locally against parameter and
context files, and previews template resolution.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..engine.template_resolver import resolve_json_path_templates
from ..exceptions import ActionError
from ..workflows import RevokeAccessAction

logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()


def load_document(path: Optional[str]) -> Dict[str, Any]:
    """Load a JSON or YAML mapping from a file; a missing path yields {}."""
    if not path:
        return {}

    with open(path, "r", encoding="utf-8") as f:
        document = yaml.safe_load(f)

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise click.BadParameter(f"{path} must contain a mapping")
    return document


class ActionController:
    """Main controller for running the action from the command line."""

    def __init__(self, context_path: Optional[str] = None, retry_errors: bool = False):
        """Initialize the controller."""
        self.context_path = Path(context_path) if context_path else None
        self.context = load_document(context_path)
        self.action = RevokeAccessAction(retry_errors=retry_errors)

        if self.context_path:
            console.print(f"[blue]Loaded context from {self.context_path}[/blue]")


def _print_result(title: str, result: Dict[str, Any], as_json: bool):
    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    table = Table(title=title)
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="magenta")
    for key, value in result.items():
        table.add_row(key, escape(str(value)))
    console.print(table)


def _fail(message: str):
    console.print(f"[red]✗ {escape(message)}[/red]")
    sys.exit(1)


@click.group()
@click.option("--context", "-c", "context_path", type=click.Path(exists=True),
              help="JSON or YAML file with environment, secrets and data")
@click.option("--retry/--no-retry", default=False,
              help="Retry rate limit and service errors in the error handler")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, context_path, retry, verbose):
    """Revoke Access Action CLI - SailPoint IdentityNow access revocation"""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO,
                        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    ctx.ensure_object(dict)
    ctx.obj["controller"] = ActionController(context_path, retry)


@cli.command()
@click.argument("params_file", type=click.Path(exists=True))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def invoke(ctx, params_file, as_json):
    """Create a revoke access request from a parameters file."""
    controller = ctx.obj["controller"]

    try:
        result = controller.action.invoke(load_document(params_file), controller.context)
    except ActionError as e:
        logger.debug("Invoke failed", exc_info=True)
        _fail(f"Revoke access request failed: {e}")

    console.print("[green]✓ Revoke access request created[/green]")
    _print_result("Revoke Access Request", result, as_json)


@cli.command()
@click.argument("params_file", type=click.Path(exists=True))
@click.option("--status", "status_code", type=int, help="HTTP status of the failed request")
@click.option("--message", default="", help="Error message of the failed request")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def error(ctx, params_file, status_code, message, as_json):
    """Run the error handler for a failed request."""
    controller = ctx.obj["controller"]

    params = load_document(params_file)
    params["error"] = {"message": message, "statusCode": status_code}

    try:
        result = controller.action.error(params, controller.context)
    except ActionError as e:
        _fail(f"Error handler did not recover: {e}")

    console.print(f"[green]✓ Recovered via {result.get('recoveryMethod')}[/green]")
    _print_result("Recovered Request", result, as_json)


@cli.command()
@click.argument("params_file", type=click.Path(exists=True))
@click.option("--reason", default=None, help="Why the job is being halted")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.pass_context
def halt(ctx, params_file, reason, as_json):
    """Run the halt handler."""
    controller = ctx.obj["controller"]

    params = load_document(params_file)
    if reason is not None:
        params["reason"] = reason

    result = controller.action.halt(params, controller.context)
    _print_result("Halt", result, as_json)


@cli.command()
@click.argument("template_file", type=click.Path(exists=True))
@click.option("--omit-no-value", is_flag=True,
              help="Drop entries whose exact template cannot be resolved")
@click.pass_context
def resolve(ctx, template_file, omit_no_value):
    """Preview template resolution against the context data."""
    controller = ctx.obj["controller"]

    resolution = resolve_json_path_templates(
        load_document(template_file),
        controller.context.get("data") or {},
        omit_no_value_for_exact_templates=omit_no_value,
    )

    click.echo(json.dumps(resolution.result, indent=2))
    if resolution.errors:
        console.print("[yellow]Template resolution errors:[/yellow]")
        for message in resolution.errors:
            console.print(f"  - {escape(message)}")


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
