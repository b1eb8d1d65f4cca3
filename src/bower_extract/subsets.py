"""
Subset handlers.

A subset replaces the default file resolution of one dependency: instead of
bundling the package's main file, a handler builds or picks a reduced file
from the package folder, driven by the configuration found under
``dependencies-subset`` in the project manifest.
"""

import inspect
from abc import ABC, abstractmethod
from importlib.metadata import entry_points
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional, Union

from .error_handling import ErrorCategory, ErrorHandler, SubsetLoadError

ENTRY_POINT_GROUP = "bower_extract.subsets"

PathResult = Union[str, Path]
SubsetFunction = Callable[[Path, Any], Union[PathResult, Awaitable[PathResult]]]


class SubsetHandler(ABC):
    """Computes the file to bundle for one dependency."""

    @abstractmethod
    def resolve_path(
        self, directory: Path, config: Any
    ) -> Union[PathResult, Awaitable[PathResult]]:
        """
        Return the absolute path of the file to bundle.

        Args:
            directory: Installed folder of the dependency
            config: The dependency's entry under ``dependencies-subset``,
                passed through unmodified

        May return the path directly or an awaitable resolving to it.
        """


class FunctionSubsetHandler(SubsetHandler):
    """Adapts a plain function to the handler interface."""

    def __init__(self, func: SubsetFunction):
        self.func = func

    def resolve_path(self, directory, config):
        return self.func(directory, config)

    def __repr__(self) -> str:
        return f"FunctionSubsetHandler({getattr(self.func, '__name__', self.func)!r})"


async def call_handler(handler: SubsetHandler, directory: Path, config: Any) -> Path:
    """Invoke a handler and normalise its (possibly awaitable) result."""
    result = handler.resolve_path(directory, config)
    if inspect.isawaitable(result):
        result = await result
    return Path(result)


class SubsetRegistry:
    """Lookup table of subset handlers keyed by dependency name."""

    def __init__(self, handlers: Optional[Dict[str, Any]] = None):
        self._handlers: Dict[str, SubsetHandler] = {}
        for name, handler in (handlers or {}).items():
            self.register(name, handler)

    def register(self, name: str, handler: Union[SubsetHandler, SubsetFunction]) -> None:
        if isinstance(handler, SubsetHandler):
            self._handlers[name] = handler
        elif callable(handler):
            self._handlers[name] = FunctionSubsetHandler(handler)
        else:
            raise TypeError(
                f"Subset handler for {name} must be a SubsetHandler or callable"
            )

    def get(self, name: str) -> SubsetHandler:
        """
        Return the handler registered for ``name``.

        Raises:
            SubsetLoadError: If nothing is registered under that name
        """
        try:
            return self._handlers[name]
        except KeyError:
            raise SubsetLoadError(
                f"Cannot find subset handler for '{name}'", name
            ) from None

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self._handlers)

    def __len__(self) -> int:
        return len(self._handlers)

    def load_entry_points(
        self, error_handler: Optional[ErrorHandler] = None, group: str = ENTRY_POINT_GROUP
    ) -> int:
        """
        Register handlers published by installed distributions.

        Each entry point name is a dependency name; its object is a handler
        class, handler instance or function. Handlers already registered by
        name are kept. Entry points that fail to load are reported and
        skipped.

        Returns:
            Number of handlers added
        """
        added = 0
        for entry_point in entry_points(group=group):
            if entry_point.name in self._handlers:
                continue
            try:
                loaded = entry_point.load()
                if inspect.isclass(loaded) and issubclass(loaded, SubsetHandler):
                    loaded = loaded()
                self.register(entry_point.name, loaded)
            except Exception as e:
                if error_handler is not None:
                    error_handler.warning(
                        ErrorCategory.SUBSET,
                        f"Could not load subset handler '{entry_point.name}': {e}",
                        "subsets",
                        "load_entry_points",
                        exception=e,
                        dependency=entry_point.name,
                    )
                continue
            added += 1
        return added
