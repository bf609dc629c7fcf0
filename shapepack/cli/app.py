import json
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version as package_version
from pathlib import Path
from typing import Any, NoReturn

import typer

from shapepack.cli.inputs import InputLoadError, load_json_document
from shapepack.diff import DIFF_FORMAT_ENV_VAR, DiffFormat, check_no_difference, diff, resolve_format

app = typer.Typer(help="ShapeKit CLI")


@dataclass(slots=True)
class _OutputOptions:
    quiet: bool = False
    stable_json: bool = True


_OUTPUT_OPTIONS = _OutputOptions()


def _resolve_cli_version() -> str:
    try:
        return package_version("shapekit")
    except PackageNotFoundError:
        from shapekit import __version__ as local_version

        return local_version


def _version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(_resolve_cli_version(), color=False)
    raise typer.Exit()


@app.callback()
def app_options(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show ShapeKit version and exit.",
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        help="Suppress non-error text output.",
    ),
    stable_json: bool = typer.Option(
        True,
        "--stable-json/--pretty-json",
        help="Emit stable compact JSON (or pretty JSON).",
    ),
) -> None:
    """Global output controls for all CLI commands."""
    _OUTPUT_OPTIONS.quiet = quiet
    _OUTPUT_OPTIONS.stable_json = stable_json


def _echo(message: str, *, err: bool = False, force: bool = False) -> None:
    if _OUTPUT_OPTIONS.quiet and not err and not force:
        return
    typer.echo(message, err=err)


def _echo_json(payload: dict[str, Any]) -> None:
    if _OUTPUT_OPTIONS.stable_json:
        rendered = json.dumps(payload, ensure_ascii=True, sort_keys=True, separators=(",", ":"))
    else:
        rendered = json.dumps(payload, ensure_ascii=True, sort_keys=True, indent=2)
    typer.echo(rendered)


def _resolve_format_option(command: str, name: str | None, *, json_output: bool) -> DiffFormat:
    try:
        return resolve_format(name)
    except ValueError as error:
        _fail(command, str(error), json_output=json_output, code=2)


def _load_pair(
    command: str,
    left: Path,
    right: Path,
    *,
    json_output: bool,
) -> tuple[Any, Any]:
    try:
        return load_json_document(left), load_json_document(right)
    except InputLoadError as error:
        _fail(command, str(error), json_output=json_output, code=2, cause=error)


def _fail(
    command: str,
    reason: str,
    *,
    json_output: bool,
    code: int,
    cause: Exception | None = None,
) -> NoReturn:
    message = f"{command} failed: {reason}"
    if json_output:
        _echo_json({"status": "error", "exit_code": code, "message": message})
    else:
        _echo(message, err=True)
    raise typer.Exit(code=code) from cause


_FORMAT_HELP = f"Marker preset: default or proportional (env: {DIFF_FORMAT_ENV_VAR})."


@app.command(name="diff")
def diff_command(
    left: Path = typer.Argument(..., help="Path to the first JSON document."),
    right: Path = typer.Argument(..., help="Path to the second JSON document."),
    format_name: str | None = typer.Option(None, "--format", help=_FORMAT_HELP),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable diff output.",
    ),
) -> None:
    """Print the structural difference between two JSON documents."""
    diff_format = _resolve_format_option("diff", format_name, json_output=json_output)
    left_value, right_value = _load_pair("diff", left, right, json_output=json_output)

    difference = diff(left_value, right_value, format=diff_format)

    if json_output:
        _echo_json(
            {
                "status": "ok",
                "exit_code": 0,
                "identical": difference is None,
                "format": diff_format.name,
                "diff": difference,
                "left_path": str(left),
                "right_path": str(right),
            }
        )
        return

    _echo(difference if difference is not None else "no difference detected")


@app.command(name="assert")
def assert_command(
    expected: Path = typer.Argument(..., help="Path to the expected JSON document."),
    actual: Path = typer.Argument(..., help="Path to the actual JSON document."),
    format_name: str | None = typer.Option(None, "--format", help=_FORMAT_HELP),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Emit machine-readable assertion output.",
    ),
) -> None:
    """Fail with a diff when two JSON documents differ."""
    diff_format = _resolve_format_option("assert", format_name, json_output=json_output)
    expected_value, actual_value = _load_pair("assert", expected, actual, json_output=json_output)

    result = check_no_difference(expected_value, actual_value, format=diff_format)

    if json_output:
        payload = result.to_dict()
        payload["expected_path"] = str(expected)
        payload["actual_path"] = str(actual)
        _echo_json(payload)
    elif result.passed:
        _echo(f"assert passed: expected={expected} actual={actual}")
    else:
        _echo(result.message(f"expected={expected} actual={actual}"), force=True)

    if not result.passed:
        raise typer.Exit(code=result.exit_code)


def main() -> None:
    app()
