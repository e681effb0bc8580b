"""Typer application and CLI entry point for typefetch.

Each sub-command issues exactly one request through a
:class:`~typefetch.client.TypeFetchClient`::

    typefetch get https://api.example.com/users -H "Authorization: Bearer t"
    typefetch post https://api.example.com/items -d '{"name": "widget"}'
    typefetch post https://api.example.com/login -F user=me -F password=pw
    typefetch delete https://api.example.com/items/1 --delete-handling status

Successful result data is rendered to stdout by the global
:class:`~typefetch.output.OutputManager`; errors go to stderr and the
process exits with the error's ``exit_code`` (see
:mod:`typefetch.exit_codes`).

Configuration follows :func:`~typefetch.config.resolve_client_config`:
command-line flags override ``TYPEFETCH_*`` environment variables, which
override the defaults.
"""

from __future__ import annotations

import asyncio
import json
import sys
from typing import Any, Callable, Optional

import typer

from typefetch import __version__
from typefetch.exit_codes import EXIT_INVALID_USAGE


app = typer.Typer(
    name="typefetch",
    help="Send HTTP requests with retries and typed bodies.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"typefetch {__version__}")
        raise typer.Exit()


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
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable [DEBUG] client diagnostics."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Installs the global :class:`~typefetch.output.OutputManager` from the
    output flags and stores ``verbose`` in ``ctx.obj`` for the request
    commands.
    """
    from typefetch.output import OutputFormat, OutputManager, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


# ------------------------------------------------------------------ #
# Shared options
# ------------------------------------------------------------------ #

_HEADER_OPTION = typer.Option(
    None, "--header", "-H", help="Request header as 'Name: value' (repeatable)."
)
_RETRIES_OPTION = typer.Option(
    None, "--retries", min=0, help="Retries after a transport failure."
)
_RETRY_DELAY_OPTION = typer.Option(
    None, "--retry-delay", min=0, help="Delay between retries in milliseconds."
)
_DELETE_HANDLING_OPTION = typer.Option(
    None, "--delete-handling", help="Empty DELETE response as: empty, status, json."
)
_DATA_OPTION = typer.Option(None, "--data", "-d", help="Request body.")
_TYPE_OPTION = typer.Option(
    "json", "--type", "-t", help="Body type: json, text, xml, html, blob."
)
_FORM_OPTION = typer.Option(
    None, "--form", "-F", help="Form field as KEY=VALUE (repeatable); sends a form body."
)


@app.command("get")
def get_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Request URL."),
    header: Optional[list[str]] = _HEADER_OPTION,
    retries: Optional[int] = _RETRIES_OPTION,
    retry_delay: Optional[int] = _RETRY_DELAY_OPTION,
) -> None:
    """Send a GET request and print the decoded JSON response."""
    _execute(ctx, "GET", url, None, header, retries, retry_delay)


@app.command("head")
def head_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Request URL."),
    header: Optional[list[str]] = _HEADER_OPTION,
    retries: Optional[int] = _RETRIES_OPTION,
    retry_delay: Optional[int] = _RETRY_DELAY_OPTION,
) -> None:
    """Send a HEAD request and print the response headers."""
    _execute(ctx, "HEAD", url, None, header, retries, retry_delay)


@app.command("delete")
def delete_command(
    ctx: typer.Context,
    url: str = typer.Argument(help="Request URL."),
    header: Optional[list[str]] = _HEADER_OPTION,
    retries: Optional[int] = _RETRIES_OPTION,
    retry_delay: Optional[int] = _RETRY_DELAY_OPTION,
    delete_handling: Optional[str] = _DELETE_HANDLING_OPTION,
) -> None:
    """Send a DELETE request."""
    _execute(
        ctx, "DELETE", url, None, header, retries, retry_delay,
        delete_handling=delete_handling,
    )


def _body_command(method: str):
    def command(
        ctx: typer.Context,
        url: str = typer.Argument(help="Request URL."),
        data: Optional[str] = _DATA_OPTION,
        body_type: str = _TYPE_OPTION,
        form: Optional[list[str]] = _FORM_OPTION,
        header: Optional[list[str]] = _HEADER_OPTION,
        retries: Optional[int] = _RETRIES_OPTION,
        retry_delay: Optional[int] = _RETRY_DELAY_OPTION,
    ) -> None:
        body = _build_body(data, body_type, form)
        _execute(ctx, method, url, body, header, retries, retry_delay)

    command.__doc__ = f"Send a {method} request with a typed body."
    return command


app.command("post")(_body_command("POST"))
app.command("put")(_body_command("PUT"))
app.command("patch")(_body_command("PATCH"))


# ------------------------------------------------------------------ #
# Helpers
# ------------------------------------------------------------------ #


def _build_body(
    data: Optional[str],
    body_type: str,
    form: Optional[list[str]],
) -> Any:
    """Turn command-line body options into a content wrapper (or ``None``)."""
    from typefetch.models import ContentWrapper
    from typefetch.output import get_output

    if form:
        if data is not None:
            get_output().error("--data and --form cannot be combined")
            raise typer.Exit(EXIT_INVALID_USAGE)
        fields: dict[str, str] = {}
        for item in form:
            key, sep, value = item.partition("=")
            if not sep or not key:
                get_output().error(f"Invalid form field {item!r}; expected KEY=VALUE")
                raise typer.Exit(EXIT_INVALID_USAGE)
            fields[key] = value
        return ContentWrapper(type="form", data=fields)

    if data is None:
        return None
    if body_type == "json":
        try:
            return ContentWrapper(type="json", data=json.loads(data))
        except json.JSONDecodeError as exc:
            get_output().error(f"--data is not valid JSON: {exc}")
            raise typer.Exit(EXIT_INVALID_USAGE)
    if body_type == "blob":
        return ContentWrapper(type="blob", data=data.encode("utf-8"))
    return ContentWrapper(type=body_type, data=data)


def _execute(
    ctx: typer.Context,
    method: str,
    url: str,
    body: Any,
    header: Optional[list[str]],
    retries: Optional[int],
    retry_delay: Optional[int],
    delete_handling: Optional[str] = None,
) -> None:
    """Resolve configuration, run one request, and render the result."""
    from typefetch.config import parse_header, resolve_client_config
    from typefetch.exceptions import ConfigError
    from typefetch.output import get_output

    output = get_output()
    obj = ctx.obj or {}

    try:
        headers = dict(parse_header(raw) for raw in header or [])
        config = resolve_client_config(
            {
                "debug": True if obj.get("verbose") else None,
                "headers": headers,
                "delete_handling": delete_handling,
                "retry": {
                    "count": retries,
                    "delay_ms": retry_delay,
                    "on_retry": _announce_retry(method, url),
                },
            }
        )
    except ConfigError as exc:
        output.error(exc.message)
        raise typer.Exit(exc.exit_code)

    if retry_delay is not None and config.retry.count == 0:
        output.warning("--retry-delay has no effect without --retries")

    result = asyncio.run(_run_request(config, method, url, body))

    if result.error is not None:
        error = result.error
        prefix = f"HTTP {error.status}: " if error.status is not None else ""
        output.error(f"{prefix}{error.message}")
        raise typer.Exit(error.exit_code)

    output.format_response(result.data)


def _announce_retry(method: str, url: str) -> Callable[[], None]:
    """Build an ``on_retry`` hook reporting each retry on stderr (hidden by --quiet)."""
    from typefetch.output import get_output

    def announce() -> None:
        get_output().info(f"Retrying {method} {url}")

    return announce


async def _run_request(config: Any, method: str, url: str, body: Any) -> Any:
    from typefetch.client import TypeFetchClient

    async with TypeFetchClient(config) as client:
        return await client.request(method, url, body)


def main() -> None:
    """CLI entry point invoked by the ``typefetch`` console script."""
    try:
        app()
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
