"""Header overview rendering (dict, JSON, YAML and XML text)."""
from __future__ import annotations

import enum
import json

import yaml

from picofile.container.format import MAGIC, PicoHeader


class HeaderFormat(enum.Enum):
    DICT = "dict"
    JSON = "json"
    YAML = "yaml"
    XML = "xml"

    @classmethod
    def from_name(cls, name: str) -> HeaderFormat:
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown header format: {name.upper()}") from None


def _magic_bytes() -> list[int]:
    return list(MAGIC.to_bytes(2, "big"))


def header_fields(header: PicoHeader) -> dict[str, object]:
    """Return the header as plain values, in on-disk field order."""

    return {
        "magic": _magic_bytes(),
        "major": header.major,
        "minor": header.minor,
        "offset": header.offset,
        "hash": list(header.hash),
        "key_length": header.key_length,
        "key": list(header.key),
        "md_length": header.md_length,
    }


def _hex_list(values: list[int]) -> str:
    return ", ".join(f"0x{value:02X}" for value in values)


def _render_dict(fields: dict[str, object]) -> str:
    lines = ["{"]
    for name, value in fields.items():
        if isinstance(value, list):
            rendered = f"[ {_hex_list(value)} ]"
        else:
            rendered = str(value)
        lines.append(f'    "{name}" : {rendered},')
    lines.append("}")
    return "\n".join(lines) + "\n"


def _render_json(fields: dict[str, object]) -> str:
    return json.dumps(fields, indent=4) + "\n"


def _render_yaml(fields: dict[str, object]) -> str:
    return yaml.safe_dump(fields, sort_keys=False, default_flow_style=None, width=200)


def _render_xml(header: PicoHeader) -> str:
    return (
        f"<pico magic='0x{MAGIC:04X}' major='{header.major}' minor='{header.minor}'"
        f" offset='{header.offset}' hash='{header.hash.hex().upper()}'"
        f" key='{header.key.hex().upper()}' md_length='{header.md_length}' />\n"
    )


def render_header(header: PicoHeader, fmt: HeaderFormat = HeaderFormat.DICT) -> str:
    """Render ``header`` as text in the requested format."""

    if fmt is HeaderFormat.XML:
        return _render_xml(header)
    fields = header_fields(header)
    if fmt is HeaderFormat.JSON:
        return _render_json(fields)
    if fmt is HeaderFormat.YAML:
        return _render_yaml(fields)
    return _render_dict(fields)


__all__ = ["HeaderFormat", "header_fields", "render_header"]
