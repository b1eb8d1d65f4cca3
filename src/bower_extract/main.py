import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    ComprehensiveConfig,
    apply_config_section,
    create_sample_config,
    get_config,
    load_config,
    load_config_file,
    resolve_extract_options,
    validate_config_values,
)
from .command import PackageManagerCommand
from .dependency import ResolvedFile
from .error_handling import ErrorContext, setup_error_handling
from .orchestrator import extract_dependencies
from .reporting import ResolutionReporter, build_json_report, dump_json_report
from .structured_logging import configure_logging
from .subsets import SubsetRegistry

__version__ = "1.0.0"

console = Console()


async def async_extract(
    cwd: Optional[str],
    directory: Optional[str],
    command: Optional[str],
    command_args: Tuple[str, ...],
    run_command: bool,
    verbose: bool,
    quiet: bool,
) -> Tuple[str, List[ResolvedFile], List[ErrorContext]]:
    """Run an extraction and collect its files and reported errors."""
    config = get_config()
    options = resolve_extract_options(
        cwd=cwd,
        directory=directory,
        command=command,
        command_args=command_args,
        tool_config=config,
    )

    log_level = logging.DEBUG if verbose else getattr(
        logging, config.logging.log_level.upper(), logging.WARNING
    )
    error_handler = setup_error_handling(
        log_level=log_level, log_format=config.logging.log_format
    )

    registry = SubsetRegistry()
    registry.load_entry_points(error_handler)

    if verbose and not quiet:
        console.print(f"📁 Project: {options.cwd}", style="blue")
        console.print(f"📂 Dependencies folder: {options.base_dir}", style="dim")
        if run_command:
            console.print(
                f"⚙️  Running: {config.extract.executable} {options.command}", style="dim"
            )

    runner = PackageManagerCommand(
        executable=config.extract.executable,
        timeout_seconds=config.extract.command_timeout,
    )
    stream = await extract_dependencies(
        options,
        subset_registry=registry,
        error_handler=error_handler,
        run_command=run_command,
        command_runner=runner,
    )
    files = await stream.collect()
    return str(options.cwd), files, error_handler.errors


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📦 bower-extract: resolve the main file of every installed dependency

    Reads bower.json, finds the single JavaScript file each dependency
    should contribute (or its configured subset) and lists them in
    declaration order.
    """
    if version:
        console.print(f"bower-extract version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--cwd",
    type=click.Path(exists=True, file_okay=False),
    help="Project root containing bower.json (default: current directory)",
)
@click.option(
    "--directory",
    "-d",
    help="Dependencies folder relative to the project root (default: .bowerrc or ./bower_components)",
)
@click.option(
    "--command",
    "-c",
    help="Package manager command to run before resolving (default: update)",
)
@click.option(
    "--no-install",
    is_flag=True,
    help="Skip the package manager command and resolve what is already installed",
)
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default="console",
    help="Output format for results",
    show_default=True,
)
@click.option(
    "--output-file",
    "-o",
    type=click.Path(dir_okay=False),
    help="Save results to file (JSON format only)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-critical output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output with additional details",
)
def resolve(
    command_args: Tuple[str, ...],
    cwd: Optional[str],
    directory: Optional[str],
    command: Optional[str],
    no_install: bool,
    output_format: str,
    output_file: Optional[str],
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Resolve the file of every dependency declared in bower.json.

    Extra arguments are passed to the package manager command.

    Examples:

      bower-extract resolve

      bower-extract resolve --no-install --output-format json

      bower-extract resolve --command install --production
    """
    if output_file and output_format != "json":
        raise click.ClickException("Output file can only be used with JSON format")

    config = load_config()
    configure_logging(
        "DEBUG" if verbose else config.logging.log_level,
        enable_json=config.logging.enable_json,
        log_format=config.logging.log_format,
    )
    run_command = config.extract.run_command and not no_install

    try:
        project_root, files, errors = asyncio.run(
            async_extract(
                cwd, directory, command, command_args, run_command, verbose, quiet
            )
        )
    except KeyboardInterrupt:
        Console(stderr=True).print("\n⚠️  Interrupted by user", style="yellow")
        sys.exit(130)

    if output_format == "json":
        json_output = dump_json_report(build_json_report(files, errors, project_root))
        if output_file:
            Path(output_file).write_text(json_output, encoding="utf-8")
            if not quiet:
                console.print(f"✅ Results saved to {output_file}", style="green")
        else:
            click.echo(json_output)
    elif not quiet:
        ResolutionReporter(console).print_results(files, errors, project_root)
    elif errors:
        Console(stderr=True).print(
            f"❌ {len(errors)} error(s) while resolving dependencies", style="red"
        )

    if errors:
        sys.exit(1)


@cli.command()
def info():
    """Show how entry files are resolved and which settings apply."""
    info_text = """
[bold blue]📋 Inputs:[/bold blue]

• [green]bower.json[/green] - project manifest: [cyan]dependencies[/cyan] and optional [cyan]dependencies-subset[/cyan]
• [green].bowerrc[/green] - [cyan]directory[/cyan] of installed dependencies (default ./bower_components)
• [green]<dependency>/bower.json[/green] or [green].bower.json[/green] - [cyan]main[/cyan] entry of a dependency

[bold blue]🔍 Entry file cascade (no usable main):[/bold blue]

1. [yellow]<name>*.js[/yellow]
2. [yellow]<name without trailing js>*.js[/yellow] (momentjs -> moment.js)
3. [yellow]<first half of name>*.js[/yellow]
4. [yellow]index*.js[/yellow]
Minified files ([yellow]*.min.js[/yellow]) are never selected.

[bold blue]🧩 Subsets:[/bold blue]

Dependencies listed under [cyan]dependencies-subset[/cyan] are resolved by a handler
registered under the [cyan]bower_extract.subsets[/cyan] entry point group.

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]BOWER_EXTRACT_DIRECTORY[/cyan] - Default dependencies folder
• [cyan]BOWER_EXTRACT_COMMAND[/cyan] - Default package manager command
• [cyan]BOWER_EXTRACT_EXECUTABLE[/cyan] - Package manager executable
• [cyan]BOWER_EXTRACT_RUN_COMMAND[/cyan] - Run the command before resolving
• [cyan]BOWER_EXTRACT_COMMAND_TIMEOUT[/cyan] - Command timeout in seconds
• [cyan]BOWER_EXTRACT_LOG_LEVEL[/cyan] - Log level

[bold blue]💡 Usage Examples:[/bold blue]

  bower-extract resolve
  bower-extract resolve --no-install --output-format json -o files.json
  bower-extract config init
"""
    console.print(
        Panel(
            info_text,
            title="[bold]bower-extract Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Manage bower-extract configuration."""


@config.command("init")
@click.option(
    "--path",
    default=".bower-extract.json",
    type=click.Path(dir_okay=False),
    help="Where to write the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)
    if config_path.exists() and not force:
        raise click.ClickException(
            f"Config file already exists: {config_path} (use --force to overwrite)"
        )

    config_path.write_text(create_sample_config(), encoding="utf-8")
    console.print(f"✅ Sample config written to {config_path}", style="green")


@config.command("show")
def config_show():
    """Show the effective configuration."""
    current = load_config()
    console.print_json(
        data={
            "extract": vars(current.extract),
            "logging": vars(current.logging),
        }
    )


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    data = load_config_file(Path(config_file))
    if not isinstance(data, dict):
        raise click.ClickException(f"Could not read configuration from {config_file}")

    candidate = ComprehensiveConfig()
    for section in ("extract", "logging"):
        if isinstance(data.get(section), dict):
            apply_config_section(getattr(candidate, section), data[section], section)

    errors = validate_config_values(candidate)
    if errors:
        console.print("❌ Configuration is invalid:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
