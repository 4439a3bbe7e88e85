import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel

from .cli_config import (
    ComprehensiveConfig,
    apply_file_config,
    create_sample_config,
    get_config,
    load_config_file,
    validate_config_values,
)
from .dependency import Category, DependencyEntry
from .dependency_codec import parse_dependency_line, render_dependency_line
from .document import BlueprintDocument
from .envvar_codec import parse_env_var_line
from .error_handling import FormatError, setup_error_handling
from .parsers import load_blueprint_file, save_blueprint_file
from .reporting import BlueprintReporter, build_check_report
from .structured_logging import configure_logging, get_cli_logger

__version__ = "0.3.0"

console = Console()
err_console = Console(stderr=True)


def load_document(path: str) -> BlueprintDocument:
    """Load a blueprint for a command, turning failures into click errors."""
    try:
        return load_blueprint_file(path)
    except ValueError as e:
        raise click.ClickException(f"Failed to load blueprint: {str(e)}")


def _setup_from_config() -> None:
    config = get_config()
    configure_logging(config.logging.log_level, config.logging.enable_json)
    setup_error_handling(
        log_level=getattr(logging, config.logging.log_level.upper(), logging.WARNING),
        mask_sensitive=config.logging.enable_sensitive_data_masking,
    )


@click.group(invoke_without_command=True)
@click.option("--version", is_flag=True, help="Show version information")
@click.pass_context
def cli(ctx, version):
    """
    📋 blueprint-codec: check and normalize blueprint build descriptions.

    Decodes the DEPEND and ENVVAR lines of a blueprint.json and reports
    every line that does not follow the blueprint line grammar.
    """
    if version:
        console.print(f"blueprint-codec version {__version__}", style="bold blue")
        ctx.exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
    else:
        _setup_from_config()


@cli.command()
@click.argument("path", type=click.Path(exists=True, readable=True))
@click.option(
    "--output-format",
    type=click.Choice(["console", "json"], case_sensitive=False),
    default=None,
    help="Output format (default from config)",
)
@click.option(
    "--case-sensitive/--case-insensitive",
    default=None,
    help="Require canonical category spelling",
)
@click.option("--quiet", "-q", is_flag=True, help="Only print rejected lines")
@click.option(
    "--fail-on-errors/--no-fail-on-errors",
    default=None,
    help="Exit with code 1 when any line is rejected",
)
def check(
    path: str,
    output_format: Optional[str],
    case_sensitive: Optional[bool],
    quiet: bool,
    fail_on_errors: Optional[bool],
):
    """Decode every DEPEND and ENVVAR line of a blueprint."""
    config = get_config()
    if output_format is None:
        output_format = config.codec.output_format
    if fail_on_errors is None:
        fail_on_errors = config.codec.fail_on_errors

    document = load_document(path)
    dependencies = document.decode_dependencies(case_sensitive=case_sensitive)
    env_vars = document.decode_env_vars()
    get_cli_logger().info(
        "check_completed",
        dependency_errors=dependencies.error_count,
        env_var_errors=env_vars.error_count,
    )

    if output_format.lower() == "json":
        report = build_check_report(document, dependencies, env_vars)
        click.echo(json.dumps(report, indent=2, ensure_ascii=False))
    else:
        BlueprintReporter(console).print_check_results(
            document, dependencies, env_vars, quiet=quiet
        )

    if fail_on_errors and not (dependencies.ok and env_vars.ok):
        sys.exit(1)


@cli.command()
@click.argument("path", type=click.Path(exists=True, readable=True))
@click.option(
    "--output-file",
    "-o",
    type=click.Path(dir_okay=False),
    help="Write the normalized blueprint here instead of stdout",
)
@click.option("--in-place", is_flag=True, help="Overwrite the source blueprint")
@click.option(
    "--case-sensitive/--case-insensitive",
    default=None,
    help="Require canonical category spelling",
)
def normalize(
    path: str,
    output_file: Optional[str],
    in_place: bool,
    case_sensitive: Optional[bool],
):
    """Rewrite DEPEND and ENVVAR lines in canonical form."""
    if output_file and in_place:
        raise click.ClickException("--output-file and --in-place cannot be combined")

    document = load_document(path)
    normalized, errors = document.normalized(case_sensitive=case_sensitive)
    get_cli_logger().info("normalize_completed", kept_invalid_lines=len(errors))

    for error in errors:
        err_console.print(
            f"⚠️  Kept invalid {error.field_name} line {error.index} unchanged ({error.kind})",
            style="yellow",
        )

    target = document.source if in_place else output_file
    if target:
        try:
            written = save_blueprint_file(normalized, target)
        except ValueError as e:
            raise click.ClickException(str(e))
        err_console.print(f"✅ Normalized blueprint written to {written}", style="green")
    else:
        click.echo(json.dumps(normalized.to_dict(), indent=2, ensure_ascii=False))


@cli.command("parse-line")
@click.argument("line")
@click.option("--env", "env_line", is_flag=True, help="Parse as a KEY=VALUE line")
@click.option(
    "--case-sensitive",
    is_flag=True,
    help="Require canonical category spelling",
)
def parse_line(line: str, env_line: bool, case_sensitive: bool):
    """Decode a single line and print it as JSON."""
    try:
        if env_line:
            entry = parse_env_var_line(line)
        else:
            entry = parse_dependency_line(line, case_sensitive=case_sensitive)
    except FormatError as e:
        raise click.ClickException(f"{e.kind.value}: {e}")

    click.echo(json.dumps(entry.to_dict(), indent=2, ensure_ascii=False))


@cli.command("render-line")
@click.option(
    "--category",
    required=True,
    type=click.Choice([c.value for c in Category], case_sensitive=False),
    help="Dependency category",
)
@click.option("--name", required=True, help="Dependency name")
@click.option("--version", "version_or_path", default="", help="Version constraint or path")
@click.option("--extra1", default=None, help="First condition (selects the extended shape)")
@click.option("--extra2", default=None, help="Second condition (selects the extended shape)")
def render_line(
    category: str,
    name: str,
    version_or_path: str,
    extra1: Optional[str],
    extra2: Optional[str],
):
    """Build one dependency line from its fields."""
    extended = extra1 is not None or extra2 is not None
    try:
        if extended:
            entry = DependencyEntry.extended(
                Category.from_token(category),
                name,
                version_or_path,
                extra1 or "",
                extra2 or "",
            )
        else:
            entry = DependencyEntry.basic(Category.from_token(category), name, version_or_path)
    except ValueError as e:
        raise click.ClickException(str(e))

    click.echo(render_dependency_line(entry))


@cli.command()
def info():
    """Show the line grammar, categories and configuration sources."""
    categories = ", ".join(f"[green]{c.value}[/green]" for c in Category)
    info_text = f"""
[bold blue]📦 Dependency lines (DEPEND):[/bold blue]

  - \\[CATEGORY] NAME \\[VERSION]
  | \\[CATEGORY] NAME \\[VERSION] {{EXTRA1}} {{EXTRA2}}

• Categories: {categories}
• Category tags are matched case-insensitively unless --case-sensitive is given
• Missing brace groups on a '|' line read as empty conditions

[bold blue]🌱 Environment lines (ENVVAR):[/bold blue]

  KEY=VALUE   (split on the first '=' only)

[bold blue]🌍 Environment Variables:[/bold blue]

• [cyan]BLUEPRINT_CODEC_CASE_SENSITIVE[/cyan] - Require canonical category spelling
• [cyan]BLUEPRINT_CODEC_FAIL_ON_ERRORS[/cyan] - Exit 1 when a line is rejected
• [cyan]BLUEPRINT_CODEC_OUTPUT_FORMAT[/cyan] - console or json
• [cyan]BLUEPRINT_CODEC_MAX_FILE_SIZE_MB[/cyan] - Largest blueprint accepted
• [cyan]BLUEPRINT_CODEC_MAX_LINE_LENGTH[/cyan] - Longest line accepted
• [cyan]BLUEPRINT_CODEC_LOG_LEVEL[/cyan] - Log level for stderr logs

[bold blue]📄 Configuration Files:[/bold blue]

• [green].blueprint-codec.json[/green] - Project-level config
• [green]~/.config/blueprint-codec/config.json[/green] - User-level config
• [green]~/.blueprint-codec.json[/green] - User home config

[bold blue]💡 Usage Examples:[/bold blue]

  blueprint-codec check blueprint.json
  blueprint-codec check . --output-format json
  blueprint-codec normalize blueprint.json --in-place
  blueprint-codec parse-line "| \\[Apt] curl \\[7.81.0] {{}} {{}}"
"""
    console.print(
        Panel(
            info_text,
            title="[bold]blueprint-codec Information[/bold]",
            border_style="blue",
        )
    )


@cli.group()
def config():
    """Configuration management commands."""
    pass


@config.command("init")
@click.option(
    "--path",
    type=click.Path(),
    default=".blueprint-codec.json",
    help="Path where to create the config file",
    show_default=True,
)
@click.option("--force", is_flag=True, help="Overwrite existing config file")
def config_init(path: str, force: bool):
    """Create a sample configuration file."""
    config_path = Path(path)

    if config_path.exists() and not force:
        console.print(f"⚠️  Config file already exists at {config_path}", style="yellow")
        console.print("Use --force to overwrite", style="dim")
        return

    try:
        with open(config_path, "w", encoding="utf-8") as f:
            f.write(create_sample_config())
    except OSError as e:
        raise click.ClickException(f"Failed to create config file: {e}")

    console.print(f"✅ Created configuration file at {config_path}", style="green")


@config.command("show")
def config_show():
    """Show current configuration settings."""
    current_config = get_config()

    console.print(Panel("[bold blue]🔧 Configuration[/bold blue]", border_style="blue"))

    console.print("\n[bold cyan]📦 Codec Settings:[/bold cyan]")
    console.print(
        f"  Case-Sensitive Categories: {current_config.codec.case_sensitive_categories}"
    )
    console.print(f"  Fail on Errors: {current_config.codec.fail_on_errors}")
    console.print(f"  Output Format: {current_config.codec.output_format}")

    console.print("\n[bold cyan]🔒 Security Settings:[/bold cyan]")
    console.print(f"  Max File Size: {current_config.security.max_file_size_mb} MB")
    console.print(f"  Max Line Length: {current_config.security.max_line_length}")
    console.print(
        f"  Allowed Extensions: {', '.join(current_config.security.allowed_file_extensions)}"
    )

    console.print("\n[bold cyan]📝 Logging Settings:[/bold cyan]")
    console.print(f"  Log Level: {current_config.logging.log_level}")
    console.print(f"  JSON Logs: {current_config.logging.enable_json}")
    console.print(
        f"  Sensitive Data Masking: {current_config.logging.enable_sensitive_data_masking}"
    )


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
def config_validate(config_file: str):
    """Validate a configuration file."""
    config_data = load_config_file(Path(config_file))
    # Unreadable, empty and non-object files all end up here
    if not isinstance(config_data, dict):
        raise click.ClickException(
            f"{config_file} does not hold a JSON or YAML configuration object"
        )

    # File values only: no env overrides, no default fallback
    candidate = ComprehensiveConfig()
    errors = apply_file_config(candidate, config_data)
    errors.extend(validate_config_values(candidate))
    if errors:
        console.print("❌ Configuration validation failed:", style="red")
        for error in errors:
            console.print(f"  • {error}", style="red")
        sys.exit(1)

    console.print(f"✅ Configuration file {config_file} is valid", style="green")


if __name__ == "__main__":
    cli()
