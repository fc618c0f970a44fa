"""Command line interface for Pico files."""

from __future__ import annotations

import logging
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Callable, Iterable

import click
from rich.console import Console
from rich.logging import RichHandler

from picofile import __version__
from picofile.container import api
from picofile.container.format import HEADER_FIXED_LEN, MAJOR, MAX_OFFSET, MINOR
from picofile.container.overview import HeaderFormat, render_header
from picofile.crypto.keys import parse_hex_key
from picofile.errors import (
    ContainerFormatError,
    IntegrityError,
    PicoError,
    StoreExists,
    StoreIOError,
    StoreNotFound,
)

EXIT_SUCCESS = 0
EXIT_USAGE = 1
EXIT_FS = 3
EXIT_CORRUPT = 4

ENCODE_EXTENSION = ".pico"
DECODE_EXTENSION = ".raw"

# Largest slot that still fits a one-byte key below the 32-bit data offset.
MAX_MD_LENGTH = MAX_OFFSET - HEADER_FIXED_LEN - 1

console = Console(stderr=True)
logger = logging.getLogger(__name__)

_LONG_HELP = f"""Encode files as Pico, decode Pico-encoded files, or dump their headers.

Encoding adds a .pico extension to each file, decoding adds .raw; override
either with --extension (include the dot). Any --suffix is added to the
file's name before the extension. Keys are given as hexadecimal digits with
no spaces, e.g. 5521E49A. Every file is processed even when earlier ones fail.

Pico encoding version: {MAJOR}.{MINOR}
"""


def _package_version() -> str:
    try:
        return version("picofile")
    except PackageNotFoundError:
        return __version__


def _configure_logging(verbose: bool, debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=debug)],
        force=True,
    )


def _output_path(source: Path, suffix: str, extension: str) -> Path:
    return source.with_name(f"{source.name}{suffix}{extension}")


def _handle_file(path: Path, action: Callable[[], None]) -> int:
    try:
        action()
    except StoreNotFound as exc:
        console.print(f"[red]File not found:[/red] {exc.path}")
        return EXIT_FS
    except StoreExists as exc:
        console.print(f"[red]{exc}[/red] Use --overwrite to replace.")
        return EXIT_FS
    except StoreIOError as exc:
        console.print(f"[red]I/O error on {path}:[/red] {exc} ({exc.cause})")
        return EXIT_FS
    except IntegrityError as exc:
        console.print(f"[red]Integrity check failed for {path}:[/red] {exc}")
        return EXIT_CORRUPT
    except ContainerFormatError as exc:
        console.print(f"[red]Invalid Pico file {path}:[/red] {exc}")
        return EXIT_CORRUPT
    except PicoError as exc:
        console.print(f"[red]Error processing {path}:[/red] {exc}")
        return EXIT_CORRUPT
    except OSError as exc:
        console.print(f"[red]Filesystem error on {path}:[/red] {exc}")
        return EXIT_FS
    except ValueError as exc:
        console.print(f"[red]Invalid request for {path}:[/red] {exc}")
        return EXIT_USAGE
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Unexpected error on {path}:[/red] {exc}")
        return EXIT_USAGE
    return EXIT_SUCCESS


def _run_batch(files: Iterable[Path], action: Callable[[Path], None]) -> int:
    worst = EXIT_SUCCESS
    for path in files:
        logger.debug("Processing %s", path)
        worst = max(worst, _handle_file(path, lambda: action(path)))
    return worst


def _parse_key(
    _ctx: click.Context, _param: click.Parameter, value: str | None
) -> bytes | None:
    if value is None:
        return None
    try:
        return parse_hex_key(value)
    except (ValueError, PicoError) as exc:
        raise click.BadParameter(str(exc)) from exc


def _parse_format(
    _ctx: click.Context, _param: click.Parameter, value: str
) -> HeaderFormat:
    try:
        return HeaderFormat.from_name(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc)) from exc


_files_argument = click.argument(
    "files", nargs=-1, required=True, type=click.Path(path_type=Path)
)


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    help=_LONG_HELP,
)
@click.version_option(version=_package_version(), prog_name="Pico")
@click.option("-v", "--verbose", is_flag=True, help="Increase verbosity.")
@click.option("--debug", is_flag=True, help="Enable debugging output.")
def cli(verbose: bool, debug: bool) -> None:
    _configure_logging(verbose, debug)


@cli.command(
    help="Encode files as Pico.",
    epilog="Examples:\n  pico encode sample.bin\n  pico encode --key 5521E49A --md-length 64 a.bin b.bin",
)
@_files_argument
@click.option("--key", "key", callback=_parse_key, help="Key as hex digits (random if omitted).")
@click.option(
    "--md-length",
    type=click.IntRange(min=0, max=MAX_MD_LENGTH),
    default=0,
    show_default=True,
    help="Bytes to reserve for metadata.",
)
@click.option("--metadata", default=None, help="Text to store in the metadata slot (UTF-8).")
@click.option("--extension", default=ENCODE_EXTENSION, show_default=True, help="Output file extension.")
@click.option("--suffix", default="", help="Suffix to add to output file names.")
@click.option("--overwrite/--no-overwrite", default=False, help="Overwrite existing outputs.")
@click.pass_context
def encode(
    ctx: click.Context,
    files: tuple[Path, ...],
    key: bytes | None,
    md_length: int,
    metadata: str | None,
    extension: str,
    suffix: str,
    overwrite: bool,
) -> None:
    metadata_bytes = metadata.encode("utf-8") if metadata else b""

    def _encode(path: Path) -> None:
        target = _output_path(path, suffix, extension)
        header = api.encode_file(
            path,
            target,
            key=key,
            md_length=md_length,
            metadata=metadata_bytes,
            overwrite=overwrite,
        )
        console.print(f"[green]Encoded[/green] {path} -> {target} (hash {header.hash.hex()}).")

    ctx.exit(_run_batch(files, _encode))


@cli.command(
    help="Decode Pico-encoded files.",
    epilog="Example:\n  pico decode sample.bin.pico",
)
@_files_argument
@click.option("--extension", default=DECODE_EXTENSION, show_default=True, help="Output file extension.")
@click.option("--suffix", default="", help="Suffix to add to output file names.")
@click.option("--overwrite/--no-overwrite", default=False, help="Overwrite existing outputs.")
@click.pass_context
def decode(
    ctx: click.Context,
    files: tuple[Path, ...],
    extension: str,
    suffix: str,
    overwrite: bool,
) -> None:
    def _decode(path: Path) -> None:
        target = _output_path(path, suffix, extension)
        api.decode_file(path, target, overwrite=overwrite)
        console.print(f"[green]Decoded[/green] {path} -> {target}.")

    ctx.exit(_run_batch(files, _decode))


@cli.command(
    help="Dump header information from Pico-encoded files to standard output.",
    epilog="Example:\n  pico header --format json sample.bin.pico",
)
@_files_argument
@click.option(
    "-f",
    "--format",
    "header_format",
    default=HeaderFormat.DICT.value,
    show_default=True,
    callback=_parse_format,
    help="One of dict, json, yaml or xml.",
)
@click.pass_context
def header(ctx: click.Context, files: tuple[Path, ...], header_format: HeaderFormat) -> None:
    def _dump(path: Path) -> None:
        rendered = render_header(api.read_header(path), header_format)
        click.echo(rendered, nl=False)

    ctx.exit(_run_batch(files, _dump))


@cli.command(
    help="Verify stored content hashes without writing files.",
    epilog="Example:\n  pico check sample.bin.pico",
)
@_files_argument
@click.pass_context
def check(ctx: click.Context, files: tuple[Path, ...]) -> None:
    def _check(path: Path) -> None:
        checked = api.check_file(path)
        console.print(f"[green]OK[/green] {path} (hash {checked.hash.hex()}).")

    ctx.exit(_run_batch(files, _check))


def main(argv: list[str] | None = None) -> int:
    try:
        return cli.main(args=argv, prog_name="pico", standalone_mode=False)
    except SystemExit as exc:  # noqa: TRY003
        code = exc.code if isinstance(exc.code, int) else EXIT_USAGE
        return code
    except click.ClickException as exc:
        exc.show()
        return EXIT_USAGE


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
