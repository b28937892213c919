"""CGI entry point and dump maintenance."""

import argparse
import os
import sys
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.table import Table

from image_page.config import PageConfig, load_config
from image_page.navigate import navigate
from image_page.output import CGI_HEADER, build_page_record, render_error, render_page
from image_page.request import RequestError, image_name, parse_request_uri, resolve_image_path
from image_page.scan import list_directory
from image_page.trace import VERBOSE, Function, Tracer
from image_page.version import version


def _request_headers(environ: dict[str, str]) -> dict[str, str]:
    """Recover HTTP headers from CGI HTTP_* variables."""
    return {
        key[5:].replace("_", "-"): value
        for key, value in environ.items()
        if key.startswith("HTTP_")
    }


def _write_errors(out: TextIO, console: Console, fn: Function, messages: list[str]) -> None:
    out.write(render_error(messages, version(), os.getcwd()))
    for message in messages:
        console.print(f"[red]Error:[/] {message}")
        fn.error("%s", message)


def serve_request(
    environ: dict[str, str],
    config: PageConfig,
    tracer: Tracer,
    out: TextIO,
    console: Console,
) -> None:
    """Write the CGI response for one request to out.

    Raises:
        SystemExit: With code 1 after writing an error page.
    """
    fn = tracer.function(tracer.package("cli"), "serve_request")
    out.write(CGI_HEADER)

    uri = environ.get("REQUEST_URI")
    if uri is None:
        _write_errors(out, console, fn, ["environment variable 'REQUEST_URI' not found"])
        raise SystemExit(1)
    fn.trace_request(environ.get("REQUEST_METHOD", "GET"), uri, _request_headers(environ))

    try:
        request = parse_request_uri(uri)
    except RequestError as e:
        _write_errors(out, console, fn, [str(e)])
        raise SystemExit(1) from e

    # Repeated parameters are reported but the page is still served.
    if request.warnings:
        _write_errors(out, console, fn, request.warnings)

    try:
        path = resolve_image_path(config.prefix, request.image)
    except RequestError as e:
        _write_errors(out, console, fn, [str(e)])
        raise SystemExit(1) from e
    fn.verbose("image:[%s] path:[%s] zoom:[%s]", request.image, path, request.zoom)

    try:
        exists = path.exists()
    except OSError as e:
        _write_errors(out, console, fn, [f"could not stat file: {request.image}: {e.strerror}"])
        raise SystemExit(1) from e
    if not exists:
        _write_errors(out, console, fn, [f"could not stat file: {request.image}"])
        raise SystemExit(1)

    try:
        entries = list_directory(path.parent)
    except OSError as e:
        _write_errors(out, console, fn, [f"could not read directory: {path.parent}: {e}"])
        fn.dump("could not read directory: %s", path.parent)
        raise SystemExit(1) from e

    result = navigate(entries, image_name(request.image), config.extensions)
    if not result.found:
        _write_errors(out, console, fn, [f"file not found: {request.image}"])
        raise SystemExit(1)
    fn.verbose(
        "index:[%d of %d] previous:[%s] next:[%s]",
        result.target_index,
        len(result.ordered_names),
        result.previous,
        result.next,
    )

    record = build_page_record(request, result, config.stylesheet, config.icon_dir)
    out.write(render_page(record))


def _run_dumps(config_path: Path | None, clear: bool) -> None:
    """List or clear the dumps under the configured dump directory."""
    console = Console()
    try:
        config = load_config(config_path)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    tracer = Tracer(config.trace)
    if not config.trace.dump_dir.is_dir():
        console.print(f"[dim]No dumps ({config.trace.dump_dir} does not exist).[/]")
        return

    if clear:
        removed = tracer.clear_dumps()
        console.print(f"[green]Removed {removed} dump(s).[/]")
        return

    dumps = tracer.list_dumps()
    if not dumps:
        console.print("[dim]No dumps.[/]")
        return
    table = Table(title=f"Dumps in {config.trace.dump_dir}")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Function")
    table.add_column("Message")
    for dump in dumps:
        try:
            info = dump.get_info()
        except (OSError, ValueError, TypeError):
            table.add_row(dump.directory.name, "", "[yellow](unreadable dump.json)[/]")
            continue
        table.add_row(info.timestamp, f"{info.package}.{info.function}", info.message)
    console.print(table)


def main() -> None:
    """Serve one image page request, CGI style."""
    if len(sys.argv) > 1 and sys.argv[1] == "dumps":
        sys.argv.pop(1)
        parser = argparse.ArgumentParser(description="List or clear diagnostic dumps.")
        parser.add_argument("-c", "--config", type=Path, default=None, help="Path to config file")
        parser.add_argument("--clear", action="store_true", help="Remove all dumps")
        args = parser.parse_args()
        _run_dumps(args.config, args.clear)
        return

    parser = argparse.ArgumentParser(
        description="Render the image viewer page for the request in REQUEST_URI.",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help="Path to config file (optional)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Trace everything, including request headers and navigation details",
    )
    args = parser.parse_args()

    console = Console(stderr=True)
    out = sys.stdout

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        out.write(CGI_HEADER)
        out.write(render_error([str(e)], version(), os.getcwd()))
        console.print(f"[red]Error:[/] {e}")
        raise SystemExit(1) from e

    if args.verbose:
        config.trace.level = VERBOSE
        config.trace.default_package_level = VERBOSE
        config.trace.default_function_level = VERBOSE
        loaded_from = config.loaded_from or "(defaults)"
        console.print(f"[dim]Config:[/] {loaded_from}")
        console.print(f"[dim]Prefix:[/] {config.prefix or '(none)'}")

    tracer = Tracer(config.trace)
    try:
        tracer.open()
    except OSError as e:
        console.print(f"[yellow]Warning:[/] tracing disabled: {e}")

    try:
        serve_request(dict(os.environ), config, tracer, out, console)
    finally:
        tracer.close()
