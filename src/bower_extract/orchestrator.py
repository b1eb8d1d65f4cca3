"""
Resolution orchestration.

Reads the project manifest, resolves every declared dependency concurrently
and writes the resolved files to the output stream in declaration order.
"""

import asyncio
import time
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .cli_config import ExtractOptions
from .command import PackageManagerCommand
from .dependency import Dependency, ResolvedFile
from .dependency_resolver import DependencyResolver
from .error_handling import (
    CommandError,
    ErrorHandler,
    FileReadError,
    ManifestError,
    ManifestParseError,
    get_error_handler,
)
from .file_reader import read_file
from .stream import ResolvedFileStream
from .structured_logging import (
    clear_run_context,
    get_orchestrator_logger,
    log_run_complete,
    log_run_start,
)
from .subsets import SubsetRegistry

SUBSET_KEY = "dependencies-subset"


def parse_project_manifest(
    data: Any, manifest_path: Path
) -> Tuple[List[Dependency], Dict[str, Any]]:
    """
    Extract declared dependencies and subset configs from a parsed manifest.

    A subsets entry that is not an object is logged and ignored.

    Raises:
        ManifestError: If the document does not have the expected shape
    """
    if not isinstance(data, dict):
        raise ManifestError(f"{manifest_path} must contain a JSON object")

    declared = data.get("dependencies") or {}
    if not isinstance(declared, dict):
        raise ManifestError(f"'dependencies' in {manifest_path} must be an object")

    subsets = data.get(SUBSET_KEY) or {}
    if not isinstance(subsets, dict):
        get_orchestrator_logger().warning(
            "subset_config_ignored",
            manifest=str(manifest_path),
            reason=f"'{SUBSET_KEY}' is not an object",
        )
        subsets = {}

    dependencies = [
        Dependency(name=name, declared_order=index)
        for index, name in enumerate(declared)
    ]
    return dependencies, subsets


class ResolutionOrchestrator:
    """Drives the resolution of every dependency of a project."""

    def __init__(
        self,
        options: ExtractOptions,
        subset_registry: Optional[SubsetRegistry] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.options = options
        self.error_handler = error_handler or get_error_handler()
        self.resolver = DependencyResolver(
            options.base_dir, subset_registry, self.error_handler
        )
        self._task: Optional["asyncio.Task[None]"] = None

    async def load_manifest(self) -> Tuple[List[Dependency], Dict[str, Any]]:
        """
        Read and validate the project manifest.

        Raises:
            ManifestError: If the manifest cannot be read or parsed
        """
        manifest_path = self.options.manifest_path
        try:
            data = await read_file(manifest_path, parse_json=True)
        except (FileReadError, ManifestParseError) as e:
            raise ManifestError(e.message) from e
        return parse_project_manifest(data, manifest_path)

    async def resolve_into(self, stream: ResolvedFileStream) -> None:
        """
        Resolve all dependencies and write them to ``stream``.

        The stream is always closed on return. A manifest error closes it
        with nothing written; per-dependency failures only drop that
        dependency.
        """
        logger = get_orchestrator_logger()
        try:
            try:
                dependencies, subsets = await self.load_manifest()
            except ManifestError as e:
                self.error_handler.report(e, "orchestrator", "resolve_into")
                return

            run_id = f"extract_{uuid.uuid4().hex[:12]}"
            start_time = time.monotonic()
            log_run_start(run_id, str(self.options.cwd), len(dependencies))

            results = await asyncio.gather(
                *(
                    self.resolver.resolve(dep.name, subsets.get(dep.name))
                    for dep in dependencies
                ),
                return_exceptions=True,
            )

            # completion order is irrelevant, emit in declaration order
            for dep, result in zip(dependencies, results):
                if isinstance(result, Exception):
                    self.error_handler.report(
                        result, "orchestrator", "resolve_into", dependency=dep.name
                    )
                    continue
                if isinstance(result, BaseException):
                    raise result
                if result is None:
                    logger.debug("dependency_skipped", dependency=dep.name)
                    continue
                stream.write(result)

            duration_ms = int((time.monotonic() - start_time) * 1000)
            log_run_complete(
                run_id,
                duration_ms,
                stream.written,
                len(dependencies) - stream.written,
            )
        finally:
            clear_run_context()
            stream.close()

    def run(self) -> ResolvedFileStream:
        """
        Schedule resolution on the running loop and return its stream.

        Must be called from within a running event loop. The stream is closed
        even if the background task fails; such a failure is reported on the
        error channel and re-raised by ``wait()``.
        """
        stream = ResolvedFileStream()
        self._task = asyncio.get_running_loop().create_task(self.resolve_into(stream))
        self._task.add_done_callback(self._report_task_failure)
        return stream

    def _report_task_failure(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        exception = task.exception()
        if exception is not None:
            self.error_handler.report(exception, "orchestrator", "run")

    async def wait(self) -> None:
        """Wait for the task scheduled by ``run()``, raising its failure."""
        if self._task is not None:
            await self._task

    async def collect(self) -> List[ResolvedFile]:
        """Resolve everything and return the emitted files in order."""
        stream = ResolvedFileStream()
        await self.resolve_into(stream)
        return await stream.collect()


async def extract_dependencies(
    options: ExtractOptions,
    subset_registry: Optional[SubsetRegistry] = None,
    error_handler: Optional[ErrorHandler] = None,
    run_command: bool = True,
    command_runner: Optional[PackageManagerCommand] = None,
) -> ResolvedFileStream:
    """
    Run the package manager command, then resolve the project's dependencies.

    Args:
        options: Run options
        subset_registry: Subset handlers by dependency name
        error_handler: Error channel (defaults to the global handler)
        run_command: Run ``options.command`` before resolving
        command_runner: Runner for the package manager command

    Returns:
        The closed stream of resolved files. When the command fails the
        error is reported and the stream is closed empty.
    """
    error_handler = error_handler or get_error_handler()

    if run_command:
        runner = command_runner or PackageManagerCommand()
        try:
            await runner.run(options.command, options.command_args, options.cwd)
        except CommandError as e:
            error_handler.report(e, "orchestrator", "extract_dependencies")
            stream = ResolvedFileStream()
            stream.close()
            return stream

    orchestrator = ResolutionOrchestrator(options, subset_registry, error_handler)
    stream = ResolvedFileStream()
    await orchestrator.resolve_into(stream)
    return stream
