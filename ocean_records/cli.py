"""ocean-records CLI - inspect and export record fields."""

import logging
from pathlib import Path
from typing import Any, Optional

import numpy as np
import typer
import yaml
from rich.console import Console
from rich.table import Table

from ocean_records.aliases import SOURCE_ALIASES
from ocean_records.config import AppConfig, SettingOverride, load_config_from_env
from ocean_records.errors import ResolutionError
from ocean_records.io import load_record, record_to_dataframe, save_table
from ocean_records.models import Record
from ocean_records.resolver import AttributeResolver

app = typer.Typer(
    name="ocean-records",
    help="Inspect oceanographic records by canonical field name",
    add_completion=False,
)
console = Console()
logger = logging.getLogger(__name__)


def load_settings(config: Path | None, overrides: list[str]) -> AppConfig:
    """Load configuration from --config (or the environment) and apply --set overrides."""
    try:
        settings = AppConfig.load(config) if config is not None else load_config_from_env()
        for text in overrides:
            settings = SettingOverride.parse(text).apply_to_config(settings)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    settings.logging.apply()
    return settings


def open_record(
    path: Path, metadata: Path | None, source: str | None, settings: AppConfig
) -> tuple[Record, AttributeResolver]:
    """Load the record and build a resolver for it, exiting with code 1 on failure."""
    resolver = AttributeResolver.from_config(settings)
    extra = settings.aliases.get(source or "", {})
    # Sources defined only in the config have no built-in table
    builtin = None if source in settings.aliases and source not in SOURCE_ALIASES else source
    logger.debug(f"Opening {path} with resolver parameters {resolver.parameters}")
    try:
        record = load_record(
            path,
            metadata_path=metadata,
            source=builtin,
            extra_aliases=extra,
            resolver=resolver,
            validate=settings.resolver.validate_aliases,
        )
    except (FileNotFoundError, ValueError, ResolutionError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e
    return record, resolver


def parse_params(params: list[str]) -> dict[str, Any]:
    """Parse repeated ``--param key=value`` options."""
    parsed = {}
    for text in params:
        key, sep, value = text.partition("=")
        if not sep or not key:
            console.print(f"[bold red]Error:[/bold red] Expected key=value, got: {text}")
            raise typer.Exit(code=1)
        parsed[key.strip()] = yaml.safe_load(value)
    return parsed


def format_value(value: Any, max_items: int = 10) -> str:
    """Short printable summary of a field value."""
    if isinstance(value, np.ndarray):
        if value.size <= max_items:
            return np.array2string(value, precision=4)
        head = np.array2string(value.ravel()[:max_items], precision=4)
        return f"{head[:-1]} ...] (shape {value.shape})"
    return str(value)


MetadataOption = typer.Option(None, "--metadata", "-m", help="YAML metadata sidecar")
SourceOption = typer.Option(
    None, "--source", "-s", help="Column naming of the file (e.g., 'seabird', 'argo')"
)
ConfigOption = typer.Option(None, "--config", "-c", help="Path to configuration file")
SetOption = typer.Option([], "--set", help="Override a setting: section.key=value")


@app.command()
def names(
    path: Path = typer.Argument(..., help="CSV or Parquet file"),
    metadata: Optional[Path] = MetadataOption,
    source: Optional[str] = SourceOption,
    config: Optional[Path] = ConfigOption,
    overrides: list[str] = SetOption,
) -> None:
    """List the names a record can be asked for."""
    settings = load_settings(config, overrides)
    record, resolver = open_record(path, metadata, source, settings)

    table = Table(title=f"{path.name} ({record.kind})")
    table.add_column("Origin", style="cyan")
    table.add_column("Names", style="white")
    for origin, group in resolver.names(record).items():
        if origin == "aliases":
            group = [f"{alias} -> {record.aliases[alias]}" for alias in group]
        table.add_row(origin, ", ".join(group) or "-")

    console.print(table)


@app.command()
def get(
    path: Path = typer.Argument(..., help="CSV or Parquet file"),
    name: str = typer.Argument(..., help="Field name, alias or derived quantity"),
    metadata: Optional[Path] = MetadataOption,
    source: Optional[str] = SourceOption,
    config: Optional[Path] = ConfigOption,
    overrides: list[str] = SetOption,
    params: list[str] = typer.Option(
        [], "--param", "-p", help="Derivation parameter: key=value (e.g., referencePressure=1000)"
    ),
) -> None:
    """Print one field and where it came from."""
    settings = load_settings(config, overrides)
    record, resolver = open_record(path, metadata, source, settings)
    parameters = parse_params(params)

    try:
        value = resolver.resolve(record, name, **parameters)
        origin = resolver.source(record, name)
    except ResolutionError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[bold]{name}[/bold] [dim]({origin})[/dim]")
    console.print(format_value(value), markup=False, highlight=False)


@app.command()
def export(
    path: Path = typer.Argument(..., help="CSV or Parquet file"),
    output: Path = typer.Argument(..., help="Output .csv or .parquet file"),
    fields: list[str] = typer.Option(
        [], "--field", "-f", help="Field to export (repeatable); all stored fields if omitted"
    ),
    metadata: Optional[Path] = MetadataOption,
    source: Optional[str] = SourceOption,
    config: Optional[Path] = ConfigOption,
    overrides: list[str] = SetOption,
) -> None:
    """Write stored and derived fields to a table."""
    settings = load_settings(config, overrides)
    record, resolver = open_record(path, metadata, source, settings)

    try:
        df = record_to_dataframe(record, names=fields or None, resolver=resolver)
        save_table(df, output)
    except (ResolutionError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(code=1) from e

    console.print(f"[green]✓[/green] Wrote {len(df)} rows, {len(df.columns)} columns to {output}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
