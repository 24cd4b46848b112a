"""Typer application and CLI entry point for cloudngfw.

A thin command-line wrapper over :class:`~cloudngfw.client.Client`. The
CLI always enables ``CLOUD_NGFW_*`` environment lookup, so a shell session
can be configured entirely through the environment or a credentials file.

Commands:
    ``config``  print the resolved configuration (secrets masked).
    ``token``   refresh the JWTs and report which scopes received one.
    ``call``    send a single request and print the response body.

:func:`main` is the console-script entry point declared in
``pyproject.toml``.
"""

from __future__ import annotations

import json
import logging
import signal
import sys
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional

import typer
from botocore.exceptions import BotoCoreError, ClientError
from rich.logging import RichHandler

from cloudngfw import __version__
from cloudngfw.auth.scopes import AuthScope
from cloudngfw.client import Client
from cloudngfw.config import resolve_config
from cloudngfw.exceptions import ApiError, CloudNgfwError
from cloudngfw.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from cloudngfw.logging_gate import flag_names
from cloudngfw.models import ClientConfig
from cloudngfw.output import OutputFormat, OutputManager, get_output, set_output

app = typer.Typer(
    name="cloudngfw",
    help="Talk to the Cloud NGFW management API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


class Scope(str, Enum):
    """CLI spelling of :class:`~cloudngfw.auth.AuthScope`."""

    none = "none"
    firewall = "firewall"
    rulestack = "rulestack"

    def to_auth_scope(self) -> AuthScope:
        return {
            Scope.none: AuthScope.NONE,
            Scope.firewall: AuthScope.FIREWALL,
            Scope.rulestack: AuthScope.RULESTACK,
        }[self]


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"cloudngfw {__version__}")
        raise typer.Exit()


def _configure_logging(output: OutputManager, verbose: bool) -> None:
    """Send log records (including the gated API traces) to stderr via Rich."""
    handler = RichHandler(
        console=output.stderr_console,
        show_time=False,
        show_path=False,
        markup=False,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[handler],
        force=True,
    )
    logging.getLogger("cloudngfw").setLevel(logging.DEBUG if verbose else logging.INFO)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    credentials_file: Optional[str] = typer.Option(
        None, "--credentials-file", "-c", help="JSON credentials file."
    ),
    host: Optional[str] = typer.Option(None, "--host", help="API host name."),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Set up output and logging, and collect the connection settings."""
    output = OutputManager(
        format=OutputFormat.JSON if json_output else OutputFormat.AUTO,
        no_color=no_color,
        quiet=quiet,
    )
    set_output(output)
    _configure_logging(output, verbose)

    ctx.ensure_object(dict)
    ctx.obj["config"] = ClientConfig(
        host=host or "",
        region=region or "",
        credentials_file=credentials_file,
        check_environment=True,
    )


@contextmanager
def _reporting_errors() -> Iterator[None]:
    """Turn library errors into a message on stderr and a typed exit code."""
    output = get_output()
    try:
        yield
    except ApiError as exc:
        output.error(str(exc))
        if exc.body:
            output.print_body(exc.body)
        raise typer.Exit(exc.exit_code) from exc
    except CloudNgfwError as exc:
        output.error(str(exc))
        raise typer.Exit(exc.exit_code) from exc
    except (BotoCoreError, ClientError) as exc:
        output.error(f"Role assumption failed: {exc}")
        raise typer.Exit(EXIT_GENERIC_FAILURE) from exc


def _mask(value: str) -> str:
    if not value:
        return ""
    return value[:4] + "****" if len(value) > 8 else "****"


@app.command("config")
def config_command(ctx: typer.Context) -> None:
    """Print the resolved configuration."""
    with _reporting_errors():
        resolved = resolve_config(ctx.obj["config"])
    data: dict[str, Any] = resolved.model_dump(mode="json", exclude={"logging"})
    data["access_key"] = _mask(resolved.access_key)
    data["secret_key"] = _mask(resolved.secret_key)
    data["logging"] = flag_names(resolved.logging)
    data["api_prefix"] = resolved.api_prefix
    get_output().print_json(data)


@app.command("token")
def token_command(ctx: typer.Context) -> None:
    """Refresh the JWTs for every configured role."""
    output = get_output()
    with _reporting_errors():
        with Client(ctx.obj["config"]) as client:
            obtained = {
                "firewall": bool(client.firewall_jwt),
                "rulestack": bool(client.rulestack_jwt),
            }
    for scope, ok in obtained.items():
        if ok:
            output.success(f"{scope} JWT refreshed")
    if not any(obtained.values()):
        output.warning("No role ARNs configured; no JWTs were fetched")
    output.print_json(obtained)


@app.command("call")
def call_command(
    ctx: typer.Context,
    method: str = typer.Argument(..., help="HTTP method (GET, POST, PUT, DELETE)."),
    path: list[str] = typer.Argument(..., help="Path segments, e.g. v1 config ngfirewalls."),
    scope: Scope = typer.Option(Scope.firewall, "--scope", "-s", help="Bearer token to present."),
    body: Optional[str] = typer.Option(None, "--body", "-b", help="JSON request body."),
    no_auth: bool = typer.Option(False, "--no-auth", help="Send no bearer token (same as --scope none)."),
) -> None:
    """Send one request and print the response body."""
    output = get_output()
    payload: Any = None
    if body is not None:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            output.error(f"--body is not valid JSON: {exc}")
            raise typer.Exit(EXIT_INVALID_USAGE) from exc

    auth = AuthScope.NONE if no_auth else scope.to_auth_scope()
    segments = [seg for part in path for seg in part.strip("/").split("/") if seg]
    with _reporting_errors():
        with Client(ctx.obj["config"]) as client:
            client.log(method.upper(), "%s", "/".join(segments))
            raw, _ = client.communicate(auth, method.upper(), segments, payload=payload)
    output.print_body(raw)


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """CLI entry point invoked by the ``cloudngfw`` console script."""
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except CloudNgfwError as exc:
        get_output().error(str(exc))
        sys.exit(exc.exit_code)
