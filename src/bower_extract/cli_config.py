"""
Configuration management for bower-extract.

Two layers: the per-run ``ExtractOptions`` (project root, install directory,
package manager command) and the tool configuration loaded from
``.bower-extract.*`` files and ``BOWER_EXTRACT_*`` environment variables.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import toml
import yaml
from rich.console import Console

console = Console(stderr=True)

DEFAULT_DIRECTORY = "./bower_components"
DEFAULT_COMMAND = "update"
BOWERRC_NAME = ".bowerrc"
PROJECT_MANIFEST_NAME = "bower.json"


@dataclass
class ExtractConfig:
    """Defaults for extraction runs."""

    directory: Optional[str] = None
    command: str = DEFAULT_COMMAND
    executable: str = "bower"
    run_command: bool = True
    command_timeout: float = 300.0


@dataclass
class LoggingConfig:
    """Diagnostic and structured log output."""

    log_level: str = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    enable_json: bool = True


@dataclass
class ComprehensiveConfig:
    """Tool configuration: extraction defaults and logging."""

    extract: ExtractConfig = field(default_factory=ExtractConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


@dataclass(frozen=True)
class ExtractOptions:
    """Immutable options for one extraction run."""

    cwd: Path
    directory: str = DEFAULT_DIRECTORY
    command: str = DEFAULT_COMMAND
    command_args: Tuple[str, ...] = ()

    @property
    def base_dir(self) -> Path:
        """Absolute path of the installed dependencies folder."""
        return (self.cwd / self.directory).resolve()

    @property
    def manifest_path(self) -> Path:
        return self.cwd / PROJECT_MANIFEST_NAME


def read_bowerrc_directory(cwd: Path) -> Optional[str]:
    """
    Read the ``directory`` key of ``<cwd>/.bowerrc``.

    A missing, unreadable or malformed rc file counts as absent.
    """
    bowerrc = cwd / BOWERRC_NAME
    if not bowerrc.is_file():
        return None

    try:
        data = json.loads(bowerrc.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return None

    if not isinstance(data, dict):
        return None

    directory = data.get("directory")
    if isinstance(directory, str) and directory:
        return directory
    return None


def resolve_extract_options(
    cwd: Optional[str] = None,
    directory: Optional[str] = None,
    command: Optional[str] = None,
    command_args: Sequence[str] = (),
    tool_config: Optional[ComprehensiveConfig] = None,
) -> ExtractOptions:
    """
    Build the options for an extraction run.

    Args:
        cwd: Project root (defaults to the process working directory)
        directory: Dependencies folder relative to ``cwd``; when omitted the
            tool config, then ``.bowerrc``, then ``./bower_components`` apply
        command: Package manager command to run before extraction
        command_args: Extra arguments passed to the command
        tool_config: Tool configuration supplying defaults

    Returns:
        ExtractOptions: Frozen options for the run
    """
    root = Path(cwd).resolve() if cwd else Path.cwd()
    extract_defaults = tool_config.extract if tool_config else ExtractConfig()

    final_directory = (
        directory
        or extract_defaults.directory
        or read_bowerrc_directory(root)
        or DEFAULT_DIRECTORY
    )
    final_command = command or extract_defaults.command or DEFAULT_COMMAND

    return ExtractOptions(
        cwd=root,
        directory=final_directory,
        command=final_command,
        command_args=tuple(command_args),
    )


# loaded lazily by get_config()
_global_config: Optional[ComprehensiveConfig] = None


def validate_config_values(config: ComprehensiveConfig) -> List[str]:
    """Problems found in ``config``, one message per invalid value."""
    errors = []

    if not config.extract.command:
        errors.append("extract.command must not be empty")
    if not config.extract.executable:
        errors.append("extract.executable must not be empty")
    timeout = config.extract.command_timeout
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        errors.append("extract.command_timeout must be positive")

    level = config.logging.log_level
    if not isinstance(level, str) or level.upper() not in (
        "DEBUG",
        "INFO",
        "WARNING",
        "ERROR",
        "CRITICAL",
    ):
        errors.append(f"logging.log_level is not a valid level: {config.logging.log_level}")

    try:
        logging.Formatter(config.logging.log_format)
    except (TypeError, ValueError):
        errors.append(
            f"logging.log_format is not a valid format string: {config.logging.log_format!r}"
        )

    return errors


def load_config_file(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load config from a JSON, YAML or TOML file."""
    if not config_path.exists():
        return None

    suffix = config_path.suffix.lower()
    try:
        with open(config_path, encoding="utf-8") as f:
            if suffix in [".yaml", ".yml"]:
                return yaml.safe_load(f)
            if suffix == ".toml":
                return toml.load(f)
            if suffix == ".json":
                return json.load(f)
    except (OSError, ValueError, yaml.YAMLError) as e:
        console.print(
            f"⚠️  Error loading config from {config_path}: {e}", style="yellow"
        )

    return None


def find_config_file() -> Optional[Path]:
    """First existing .bower-extract.* file in the working directory, then the user config dir."""
    user_dir = Path.home() / ".config" / "bower-extract"
    locations = [
        Path.cwd() / ".bower-extract.json",
        Path.cwd() / ".bower-extract.yaml",
        Path.cwd() / ".bower-extract.yml",
        Path.cwd() / ".bower-extract.toml",
        user_dir / "config.json",
        user_dir / "config.yaml",
        user_dir / "config.toml",
    ]

    for location in locations:
        if location.exists():
            return location

    return None


def load_environment_overrides(config: ComprehensiveConfig) -> None:
    """Load ``BOWER_EXTRACT_*`` environment variable overrides."""

    def get_env_bool(key: str, default: bool = False) -> bool:
        value = os.environ.get(key, "").lower()
        return value in ["true", "1", "yes", "on"] if value else default

    def get_env_float(key: str, default: Optional[float] = None) -> Optional[float]:
        try:
            return float(os.environ[key]) if key in os.environ else default
        except ValueError:
            console.print(f"⚠️  Invalid float value for {key}, using default", style="yellow")
            return default

    if directory := os.environ.get("BOWER_EXTRACT_DIRECTORY"):
        config.extract.directory = directory
    if command := os.environ.get("BOWER_EXTRACT_COMMAND"):
        config.extract.command = command
    if executable := os.environ.get("BOWER_EXTRACT_EXECUTABLE"):
        config.extract.executable = executable
    if timeout := get_env_float("BOWER_EXTRACT_COMMAND_TIMEOUT"):
        config.extract.command_timeout = timeout

    config.extract.run_command = get_env_bool(
        "BOWER_EXTRACT_RUN_COMMAND", config.extract.run_command
    )

    if log_level := os.environ.get("BOWER_EXTRACT_LOG_LEVEL"):
        config.logging.log_level = log_level.upper()


def apply_config_section(
    config: Any, section_data: Dict[str, Any], section_name: str
) -> None:
    """Copy known keys of ``section_data`` onto a config section, warning about the rest."""
    for key, value in section_data.items():
        if hasattr(config, key):
            setattr(config, key, value)
        else:
            console.print(
                f"⚠️  Unknown config key in {section_name}: {key}", style="yellow"
            )


def load_config(config_path: Optional[Path] = None) -> ComprehensiveConfig:
    """Load configuration from file and environment."""
    global _global_config

    if _global_config is not None and config_path is None:
        return _global_config

    config = ComprehensiveConfig()

    config_file = config_path or find_config_file()
    if config_file:
        file_config = load_config_file(config_file)
        if isinstance(file_config, dict):
            if isinstance(file_config.get("extract"), dict):
                apply_config_section(config.extract, file_config["extract"], "extract")
            if isinstance(file_config.get("logging"), dict):
                apply_config_section(config.logging, file_config["logging"], "logging")

    load_environment_overrides(config)

    validation_errors = validate_config_values(config)
    if validation_errors:
        console.print("⚠️  Configuration validation errors:", style="red")
        for error in validation_errors:
            console.print(f"  • {error}", style="red")
        console.print("Using default values for invalid settings.", style="yellow")
        config = _repair_invalid_values(config)

    _global_config = config
    return config


def _repair_invalid_values(config: ComprehensiveConfig) -> ComprehensiveConfig:
    defaults = ComprehensiveConfig()
    for problem in validate_config_values(config):
        # messages start with "<section>.<key>"
        section, key = problem.split(" ", 1)[0].split(".")
        setattr(getattr(config, section), key, getattr(getattr(defaults, section), key))
    return config


def get_config() -> ComprehensiveConfig:
    """Cached tool configuration, loaded on first use."""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def reset_config() -> None:
    """Drop the cached tool configuration."""
    global _global_config
    _global_config = None


def create_sample_config() -> str:
    """Generate sample configuration."""
    sample_config = {
        "extract": {
            "directory": DEFAULT_DIRECTORY,
            "command": DEFAULT_COMMAND,
            "executable": "bower",
            "run_command": True,
            "command_timeout": 300.0,
        },
        "logging": {
            "log_level": "WARNING",
            "log_format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            "enable_json": True,
        },
    }

    return json.dumps(sample_config, indent=2)
