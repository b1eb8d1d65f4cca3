"""
Per-dependency file resolution.

Decides which file represents an installed dependency: a subset handler when
the project configures one, else the ``main`` entry of the dependency's own
manifest, else the heuristic locator. The chosen file is then read.
"""

from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any, List, Optional, Tuple, Union

from .dependency import ResolvedFile
from .error_handling import (
    ErrorHandler,
    ResolutionError,
    get_error_handler,
)
from .file_reader import read_file
from .locator import find_entry_file
from .structured_logging import get_resolver_logger, log_dependency_resolved
from .subsets import SubsetRegistry, call_handler

# public manifest first, then the one the installer writes
MANIFEST_NAMES = ("bower.json", ".bower.json")


class ResolutionSource(Enum):
    """Where a dependency's file path came from."""

    SUBSET = "subset"
    MANIFEST = "manifest"
    LOCATOR = "locator"


@dataclass(frozen=True)
class ResolvedPath:
    path: Path
    source: ResolutionSource


def select_main(main: Union[str, List[str], None]) -> Optional[str]:
    """
    Pick the entry to use from a manifest ``main`` field.

    A list is filtered to ``*.js`` entries and only the first one is used;
    multiple JS mains are not merged.
    """
    if not main:
        return None
    if isinstance(main, str):
        return main
    if isinstance(main, (list, tuple)):
        scripts = [
            entry
            for entry in main
            if isinstance(entry, str) and fnmatchcase(Path(entry).name, "*.js")
        ]
        if len(scripts) > 1:
            get_resolver_logger().warning(
                "multiple_js_mains",
                entries=scripts,
                selected=scripts[0],
            )
        return scripts[0] if scripts else None
    return None


def has_subset(subset_config: Any) -> bool:
    """
    Whether a subset config selects the subset hook.

    Falsy scalars (null, false, 0 and "") mean no subset is configured.
    Any other value selects the hook, including true and empty objects or
    arrays.
    """
    if subset_config is None or isinstance(subset_config, (bool, int, float, str)):
        return bool(subset_config)
    return True


def find_dependency_manifest(dependency_dir: Path) -> Optional[Path]:
    for manifest_name in MANIFEST_NAMES:
        candidate = dependency_dir / manifest_name
        if candidate.exists():
            return candidate
    return None


class DependencyResolver:
    """Resolves the file of a single dependency."""

    def __init__(
        self,
        base_dir: Path,
        subset_registry: Optional[SubsetRegistry] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Initialize resolver.

        Args:
            base_dir: Folder holding every installed dependency
            subset_registry: Handlers for dependencies configured with a subset
            error_handler: Error channel failures are reported to
        """
        self.base_dir = Path(base_dir)
        self.subset_registry = (
            subset_registry if subset_registry is not None else SubsetRegistry()
        )
        self.error_handler = error_handler or get_error_handler()

    async def resolve(
        self, name: str, subset_config: Any = None
    ) -> Optional[ResolvedFile]:
        """
        Resolve and read the file for ``name``.

        Failures are reported on the error channel and yield None; they are
        never raised to the caller.
        """
        try:
            resolved_path, content = await self._resolve_and_read(name, subset_config)
        except ResolutionError as e:
            self.error_handler.report(e, "dependency_resolver", "resolve", dependency=name)
            return None

        log_dependency_resolved(
            name, str(resolved_path.path), resolved_path.source.value, len(content)
        )
        return ResolvedFile(
            dependency_name=name,
            absolute_path=str(resolved_path.path),
            content=content,
        )

    async def _resolve_and_read(
        self, name: str, subset_config: Any
    ) -> Tuple[ResolvedPath, bytes]:
        resolved_path = await self.resolve_path(name, subset_config)
        content = await read_file(resolved_path.path, dependency=name)
        return resolved_path, content

    async def resolve_path(self, name: str, subset_config: Any = None) -> ResolvedPath:
        """
        Determine the file path for ``name`` without reading it.

        Raises:
            ResolutionError: On any failure along the chosen branch
        """
        dependency_dir = self.base_dir / name

        # a configured subset replaces manifest and locator entirely
        if has_subset(subset_config):
            handler = self.subset_registry.get(name)
            try:
                path = await call_handler(handler, dependency_dir, subset_config)
            except ResolutionError:
                raise
            except Exception as e:
                raise ResolutionError(
                    f"Subset handler for '{name}' failed: {e}", name
                ) from e
            return ResolvedPath(dependency_dir / path, ResolutionSource.SUBSET)

        manifest_path = find_dependency_manifest(dependency_dir)
        if manifest_path is not None:
            manifest = await read_file(manifest_path, parse_json=True, dependency=name)
            main = select_main(manifest.get("main") if isinstance(manifest, dict) else None)
            if main:
                return ResolvedPath(dependency_dir / main, ResolutionSource.MANIFEST)

        # e.g. backbone 1.0 ships a manifest without a main entry
        path = await find_entry_file(name, self.base_dir)
        return ResolvedPath(path, ResolutionSource.LOCATOR)
