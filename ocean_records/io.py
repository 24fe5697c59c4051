"""Build records from tables and turn records back into tables.

Only generic tabular input is handled here (pandas DataFrames, CSV, Parquet).
Columns are renamed to canonical names through an alias table, and the
original names are kept as record aliases.
"""

import logging
import re
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
import yaml

from ocean_records.aliases import AliasSpec, alias_table
from ocean_records.models import Record
from ocean_records.resolver import AttributeResolver, default_resolver

logger = logging.getLogger(__name__)


def _unique_name(name: str, taken: dict[str, Any]) -> str:
    """Number a canonical name that is already stored.

    ``temperature`` becomes ``temperature2``; a name that already carries a
    number continues from it, so ``temperature2`` becomes ``temperature3``.
    """
    if name not in taken:
        return name
    match = re.fullmatch(r"(.*?\D)(\d+)", name)
    if match:
        base, index = match.group(1), int(match.group(2)) + 1
    else:
        base, index = name, 2
    while f"{base}{index}" in taken:
        index += 1
    return f"{base}{index}"


def record_from_dataframe(
    df: pd.DataFrame,
    metadata: dict[str, Any] | None = None,
    source: str | None = None,
    kind: str = "ctd",
    extra_aliases: dict[str, str | AliasSpec] | None = None,
) -> Record:
    """Create a record from a DataFrame, one stored field per column.

    Args:
        df: Table of measurements
        metadata: Header/context information
        source: Built-in alias table to apply (e.g., 'seabird', 'argo')
        kind: Record type
        extra_aliases: Additional original -> canonical entries

    Returns:
        New Record
    """
    table = alias_table(source, extra_aliases)
    record = Record(kind=kind, metadata=dict(metadata or {}))

    for column in df.columns:
        original = str(column)
        spec = table.get(original)
        canonical = _unique_name(spec.name if spec else original, record.data)
        record.set_data(
            canonical,
            df[column].to_numpy(),
            unit=spec.to_unit() if spec else None,
            original_name=original,
        )

    record.log(f"created {kind} record with {len(record.data)} fields from table")
    logger.info(
        f"Created {kind} record: {len(df)} rows, {len(record.data)} fields, "
        f"{len(record.aliases)} aliases"
    )
    return record


def record_to_dataframe(
    record: Record,
    names: list[str] | None = None,
    resolver: AttributeResolver | None = None,
    **parameters: Any,
) -> pd.DataFrame:
    """Materialise fields of a record as DataFrame columns.

    Args:
        record: Record to read
        names: Names to include (stored, aliased or derived); all stored fields if None
        resolver: Resolver to use (default resolver if None)
        **parameters: Derivation parameter overrides

    Raises:
        FieldNotFoundError: If a requested name cannot be resolved
    """
    resolver = resolver or default_resolver()
    names = names if names is not None else list(record.data)
    columns = {name: np.asarray(resolver.resolve(record, name, **parameters)) for name in names}
    # Scalars broadcast against array columns, but alone they make a single row
    if columns and all(value.ndim == 0 for value in columns.values()):
        columns = {name: np.atleast_1d(value) for name, value in columns.items()}
    return pd.DataFrame(columns)


def load_metadata(path: str | Path) -> dict[str, Any]:
    """Load a YAML metadata sidecar.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the YAML does not hold a mapping
    """
    metadata_path = Path(path)
    if not metadata_path.exists():
        raise FileNotFoundError(f"Metadata file not found: {metadata_path}")

    with open(metadata_path) as f:
        data = yaml.safe_load(f)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Metadata in {metadata_path} must be a mapping")
    return data


def load_record(
    path: str | Path,
    metadata_path: str | Path | None = None,
    source: str | None = None,
    kind: str = "ctd",
    extra_aliases: dict[str, str | AliasSpec] | None = None,
    resolver: AttributeResolver | None = None,
    validate: bool = True,
) -> Record:
    """Read a CSV or Parquet table (and optional YAML metadata) into a record.

    Args:
        path: .csv or .parquet file
        metadata_path: YAML file with header information
        source: Built-in alias table to apply
        kind: Record type
        extra_aliases: Additional original -> canonical entries
        resolver: Resolver used to validate aliases
        validate: Check that every alias resolves

    Raises:
        FileNotFoundError: If a file doesn't exist
        ValueError: If the file type is not supported
        AliasTargetError: If ``validate`` and an alias points at an unknown name
    """
    table_path = Path(path)
    if not table_path.exists():
        raise FileNotFoundError(f"Data file not found: {table_path}")

    suffix = table_path.suffix.lower()
    if suffix == ".csv":
        df = pd.read_csv(table_path)
    elif suffix in (".parquet", ".pq"):
        df = pd.read_parquet(table_path)
    else:
        raise ValueError(f"Unsupported file type: {table_path.suffix}")

    metadata = load_metadata(metadata_path) if metadata_path is not None else {}
    metadata.setdefault("filename", str(table_path))

    record = record_from_dataframe(
        df, metadata=metadata, source=source, kind=kind, extra_aliases=extra_aliases
    )
    if validate:
        (resolver or default_resolver()).validate(record)

    logger.info(f"Loaded {table_path.name} ({len(df)} rows)")
    return record


def save_table(df: pd.DataFrame, path: str | Path) -> None:
    """Write a DataFrame as CSV or Parquet depending on the suffix.

    Raises:
        ValueError: If the file type is not supported
    """
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    suffix = out_path.suffix.lower()
    if suffix == ".csv":
        df.to_csv(out_path, index=False)
    elif suffix in (".parquet", ".pq"):
        df.to_parquet(out_path, index=False)
    else:
        raise ValueError(f"Unsupported file type: {out_path.suffix}")
