"""Async file access used by the resolver and the orchestrator."""

import asyncio
import json
import os
from typing import Any, List, Optional, Union

from .error_handling import FileReadError, ManifestParseError

PathLike = Union[str, "os.PathLike[str]"]


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def read_file(
    path: PathLike, parse_json: bool = False, dependency: Optional[str] = None
) -> Any:
    """
    Read a file, optionally parsing it as JSON.

    Args:
        path: Absolute path of the file
        parse_json: Return the parsed JSON document instead of raw bytes
        dependency: Dependency the read belongs to, carried by raised errors

    Returns:
        bytes, or the parsed document when ``parse_json`` is set

    Raises:
        FileReadError: If the file cannot be read
        ManifestParseError: If parsing was requested and the content is not JSON
    """
    file_path = os.fspath(path)
    try:
        data = await asyncio.to_thread(_read_bytes, file_path)
    except OSError as e:
        raise FileReadError(
            f"Cannot read {file_path}: {e.strerror or e}", file_path, dependency
        ) from e

    if not parse_json:
        return data

    try:
        return json.loads(data)
    except ValueError as e:
        raise ManifestParseError(
            f"Invalid JSON in {file_path}: {e}", file_path, dependency
        ) from e


async def list_directory(path: PathLike) -> List[str]:
    """List entry names directly inside ``path``, in file system order."""
    return await asyncio.to_thread(os.listdir, os.fspath(path))
