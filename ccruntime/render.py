# ccruntime/render.py
from __future__ import annotations

import json
import tomllib
from typing import Any, TextIO

import tomli_w

from ccruntime.env import EnvInfo
from ccruntime.errors import SerializationError

FORMATS = ("toml", "json")


def _check_format(fmt: str) -> None:
    if fmt not in FORMATS:
        raise ValueError(f"unknown output format {fmt!r}, expected one of {', '.join(FORMATS)}")


def dumps(env: EnvInfo, fmt: str = "toml") -> str:
    """
    Text form of the snapshot.

    Keys follow the record hierarchy: [Meta], [Runtime.Version], [Shim.Location], ...
    """
    _check_format(fmt)
    data: dict[str, Any] = env.model_dump(by_alias=True)
    if fmt == "json":
        return json.dumps(data, ensure_ascii=False, indent=2) + "\n"
    return tomli_w.dumps(data)


def render(env: EnvInfo, sink: TextIO, fmt: str = "toml") -> None:
    _check_format(fmt)
    try:
        sink.write(dumps(env, fmt))
        sink.flush()
    except (OSError, TypeError, ValueError) as err:
        # TypeError: unencodable value; ValueError: write to a closed file
        raise SerializationError(f"cannot write environment report: {err}") from err


def parse(text: str, fmt: str = "toml") -> EnvInfo:
    _check_format(fmt)
    data = json.loads(text) if fmt == "json" else tomllib.loads(text)
    return EnvInfo.model_validate(data)
