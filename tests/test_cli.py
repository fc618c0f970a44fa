import json
from pathlib import Path

import yaml
from click.testing import CliRunner

from picofile.cli import EXIT_CORRUPT, EXIT_FS, EXIT_SUCCESS, EXIT_USAGE, MAX_MD_LENGTH, cli, main
from picofile.container.api import read_header, read_metadata


def _encode(runner: CliRunner, *args: str):
    return runner.invoke(cli, ["encode", *args])


def test_cli_encode_decode_file(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.txt"
    source.write_text("hello")

    result = _encode(runner, str(source), "--key", "5521E49A")
    assert result.exit_code == EXIT_SUCCESS
    encoded = tmp_path / "sample.txt.pico"
    assert read_header(encoded).key == bytes([0x55, 0x21, 0xE4, 0x9A])

    result = runner.invoke(cli, ["decode", str(encoded)])
    assert result.exit_code == EXIT_SUCCESS
    assert (tmp_path / "sample.txt.pico.raw").read_text() == "hello"


def test_cli_extension_suffix_and_metadata(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"\x00\x01\x02")

    result = _encode(
        runner,
        str(source),
        "--extension",
        ".pc",
        "--suffix",
        "-enc",
        "--md-length",
        "16",
        "--metadata",
        "Martindale",
    )
    assert result.exit_code == EXIT_SUCCESS

    encoded = tmp_path / "sample.bin-enc.pc"
    assert read_header(encoded).md_length == 16
    assert read_metadata(encoded).rstrip(b"\x00") == b"Martindale"


def test_cli_batch_continues_after_failure(tmp_path: Path) -> None:
    runner = CliRunner()
    first = tmp_path / "first.bin"
    first.write_bytes(b"one")
    last = tmp_path / "last.bin"
    last.write_bytes(b"two")

    result = _encode(runner, str(first), str(tmp_path / "missing.bin"), str(last))

    assert result.exit_code == EXIT_FS
    assert (tmp_path / "first.bin.pico").exists()
    assert (tmp_path / "last.bin.pico").exists()


def test_cli_refuses_overwrite(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"data")
    (tmp_path / "sample.bin.pico").write_bytes(b"keep")

    result = _encode(runner, str(source))
    assert result.exit_code == EXIT_FS
    assert (tmp_path / "sample.bin.pico").read_bytes() == b"keep"

    result = _encode(runner, str(source), "--overwrite")
    assert result.exit_code == EXIT_SUCCESS


def test_cli_header_json(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"")
    _encode(runner, str(source), "--key", "5521E49A", "--md-length", "10")

    result = runner.invoke(cli, ["header", "--format", "JSON", str(tmp_path / "sample.bin.pico")])

    assert result.exit_code == EXIT_SUCCESS
    parsed = json.loads(result.stdout)
    assert parsed["offset"] == 42
    assert parsed["key"] == [85, 33, 228, 154]
    assert bytes(parsed["hash"]).hex() == "d41d8cd98f00b204e9800998ecf8427e"


def test_cli_header_yaml(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"abc")
    _encode(runner, str(source), "--key", "01")

    result = runner.invoke(cli, ["header", "-f", "yaml", str(tmp_path / "sample.bin.pico")])

    assert result.exit_code == EXIT_SUCCESS
    assert yaml.safe_load(result.stdout)["key_length"] == 1


def test_cli_header_rejects_unknown_format(tmp_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["header", "--format", "toml", str(tmp_path / "x.pico")])
    assert result.exit_code == 2


def test_cli_rejects_bad_key(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"abc")
    result = _encode(runner, str(source), "--key", "xyz")
    assert result.exit_code == 2
    assert not (tmp_path / "sample.bin.pico").exists()


def test_cli_decode_non_pico_file(tmp_path: Path) -> None:
    runner = CliRunner()
    plain = tmp_path / "plain.txt"
    plain.write_text("definitely not pico")

    result = runner.invoke(cli, ["decode", str(plain)])
    assert result.exit_code == EXIT_CORRUPT


def test_cli_check_detects_damage(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"check me please")
    _encode(runner, str(source))
    encoded = tmp_path / "sample.bin.pico"

    assert runner.invoke(cli, ["check", str(encoded)]).exit_code == EXIT_SUCCESS

    raw = bytearray(encoded.read_bytes())
    raw[-1] ^= 0x80
    encoded.write_bytes(bytes(raw))

    assert runner.invoke(cli, ["check", str(encoded)]).exit_code == EXIT_CORRUPT


def test_cli_verbose_and_debug_flags(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "sample.bin"
    source.write_bytes(b"abc")
    result = runner.invoke(cli, ["-v", "--debug", "encode", str(source)])
    assert result.exit_code == EXIT_SUCCESS


def test_main_returns_exit_code(tmp_path: Path) -> None:
    assert main(["check", str(tmp_path / "missing.pico")]) == EXIT_FS


def test_cli_md_length_beyond_offset_range_is_rejected(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "a.bin"
    source.write_bytes(b"abc")

    result = _encode(runner, "--md-length", "4294967296", str(source))

    assert result.exit_code == 2
    assert not (tmp_path / "a.bin.pico").exists()
    assert main(["encode", "--md-length", "4294967296", str(source)]) == EXIT_USAGE


def test_cli_oversized_slot_for_key_does_not_stop_batch(tmp_path: Path) -> None:
    runner = CliRunner()
    source = tmp_path / "a.bin"
    source.write_bytes(b"abc")

    # A two-byte key pushes the largest accepted slot one byte past the limit.
    result = _encode(
        runner,
        "--key",
        "0102",
        "--md-length",
        str(MAX_MD_LENGTH),
        str(source),
        str(tmp_path / "missing.bin"),
    )

    assert not isinstance(result.exception, ValueError)
    assert result.exit_code == EXIT_FS
    assert not (tmp_path / "a.bin.pico").exists()
