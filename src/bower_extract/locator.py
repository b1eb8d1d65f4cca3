"""
Heuristic entry file locator.

Finds the main JavaScript file of an installed package that does not declare
one, by trying a fixed cascade of naming patterns against the files in the
package folder. The order of the steps matters: package naming conventions in
the wild rely on each fallback only applying when the previous one found
nothing.
"""

import glob
import math
import os
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from .error_handling import EntryNotFoundError
from .file_reader import list_directory
from .structured_logging import log_cascade_step

MINIFIED_PATTERN = "*.min.js"


class CascadeStep(Enum):
    """Steps of the locator cascade, in the order they are tried."""

    PREFIX = "prefix"  # <name>*.js
    STRIPPED_JS_SUFFIX = "stripped_js_suffix"  # momentjs -> moment*.js
    HALF_NAME = "half_name"  # jquery.elastic-1.6.11 -> jquery.ela*.js
    INDEX = "index"  # index*.js
    NONE = "none"


def match_prefix(files: Iterable[str], prefix: str) -> List[str]:
    """Base names in ``files`` matching ``<prefix>*.js``, order preserved."""
    pattern = f"{glob.escape(prefix)}*.js"
    return [f for f in files if fnmatchcase(os.path.basename(f), pattern)]


def exclude_minified(files: Iterable[str]) -> List[str]:
    return [f for f in files if not fnmatchcase(os.path.basename(f), MINIFIED_PATTERN)]


def locate_candidates(name: str, files: List[str]) -> Tuple[CascadeStep, List[str]]:
    """
    Run the cascade over a directory listing.

    Args:
        name: Dependency name
        files: Directory listing, in listing order

    Returns:
        The step that produced candidates and the candidates left once
        minified builds are excluded. ``CascadeStep.NONE`` with an empty list
        when no step matched.
    """
    step = CascadeStep.PREFIX
    found = match_prefix(files, name)

    if not found and name.endswith("js"):
        step = CascadeStep.STRIPPED_JS_SUFFIX
        found = match_prefix(files, name[:-2])

    if not found:
        step = CascadeStep.HALF_NAME
        found = match_prefix(files, name[: math.ceil(len(name) / 2)])

    if not found:
        step = CascadeStep.INDEX
        found = match_prefix(files, "index")

    if not found:
        return CascadeStep.NONE, []

    # minified builds are dropped after the winning step, never before
    return step, exclude_minified(found)


def select_entry_file(name: str, files: List[str]) -> Optional[str]:
    """First surviving candidate of the cascade, or None."""
    _, candidates = locate_candidates(name, files)
    return candidates[0] if candidates else None


async def find_entry_file(name: str, base_dir: Path) -> Path:
    """
    Find the main JS file of ``name`` inside ``base_dir``.

    Raises:
        EntryNotFoundError: If the folder cannot be listed or no file survives
    """
    folder = Path(base_dir) / name
    try:
        files = await list_directory(folder)
    except OSError as e:
        raise EntryNotFoundError(name, e.strerror or str(e)) from e

    step, candidates = locate_candidates(name, files)
    log_cascade_step(name, step.value, len(candidates))

    if not candidates:
        raise EntryNotFoundError(name)

    return folder / candidates[0]
