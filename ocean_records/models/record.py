"""Record model: one parsed or user-created oceanographic dataset.

A record keeps header/context information (``metadata``) apart from the bulk
measurements (``data``). Source-specific column names are kept as ``aliases``
pointing at canonical names, so differently formatted inputs converge on one
vocabulary. Derived quantities are never stored here; see
:mod:`ocean_records.resolver`.
"""

import logging
from datetime import UTC, datetime
from typing import Any

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from ocean_records.models.units import Unit

logger = logging.getLogger(__name__)


def _coerce_value(value: Any) -> Any:
    """Turn sequences (lists, tuples, pandas Series) into numpy arrays."""
    if isinstance(value, (str, bytes, np.ndarray)) or np.isscalar(value) or value is None:
        return value
    if hasattr(value, "to_numpy"):
        return value.to_numpy()
    if isinstance(value, (list, tuple)):
        return np.asarray(value)
    return value


class ProcessingLogEntry(BaseModel):
    """One step in a record's processing history."""

    time: datetime = Field(..., description="When the action happened (UTC)")
    action: str = Field(..., description="Human-readable description of the action")

    @field_validator("time", mode="before")
    @classmethod
    def parse_time(cls, v: datetime | str) -> datetime:
        """Parse ISO strings and make naive datetimes UTC-aware."""
        if isinstance(v, str):
            v = datetime.fromisoformat(v.replace("Z", "+00:00"))
        if isinstance(v, datetime) and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class Record(BaseModel):
    """Named container of metadata, stored fields, aliases, units and flags."""

    kind: str = Field(default="ctd", description="Record type (e.g., 'ctd', 'argo')")
    metadata: dict[str, Any] = Field(
        default_factory=dict, description="Header/context information (station, location, ...)"
    )
    data: dict[str, Any] = Field(
        default_factory=dict, description="Stored fields keyed by canonical name"
    )
    aliases: dict[str, str] = Field(
        default_factory=dict, description="Origin-specific name -> canonical name"
    )
    units: dict[str, Unit] = Field(
        default_factory=dict, description="Unit annotations keyed by canonical name"
    )
    flags: dict[str, Any] = Field(
        default_factory=dict, description="Quality flags keyed by canonical name"
    )
    processing_log: list[ProcessingLogEntry] = Field(
        default_factory=list, description="Ordered processing history"
    )

    @field_validator("data", "flags", mode="before")
    @classmethod
    def coerce_arrays(cls, v: dict[str, Any]) -> dict[str, Any]:
        """Store sequence values as numpy arrays."""
        if isinstance(v, dict):
            return {name: _coerce_value(value) for name, value in v.items()}
        return v

    @model_validator(mode="after")
    def check_consistency(self):
        """Reject self-referencing aliases and flags whose length differs from their field."""
        for alias, canonical in self.aliases.items():
            if alias == canonical:
                raise ValueError(f"Alias '{alias}' maps to itself")
        for name, flags in self.flags.items():
            _check_flag_shape(name, self.data.get(name), flags)
        return self

    def __getitem__(self, name: str) -> Any:
        """Resolve ``name`` with the default resolver (metadata, data, alias, derived)."""
        from ocean_records.resolver import default_resolver

        return default_resolver().resolve(self, name)

    def __contains__(self, name: object) -> bool:
        from ocean_records.resolver import default_resolver

        return isinstance(name, str) and default_resolver().has(self, name)

    def log(self, action: str) -> None:
        """Append an entry to the processing log."""
        self.processing_log.append(ProcessingLogEntry(time=datetime.now(UTC), action=action))
        logger.debug(f"[{self.kind}] {action}")

    def set_data(
        self,
        name: str,
        value: Any,
        unit: str | Unit | None = None,
        scale: str | None = None,
        original_name: str | None = None,
        note: str = "",
    ) -> None:
        """Add or overwrite a stored field.

        Args:
            name: Canonical field name
            value: Numeric array, scalar or string
            unit: Unit string or Unit annotation
            scale: Measurement scale (only used when ``unit`` is a string or None)
            original_name: Origin-specific name to register as an alias
            note: Extra text for the processing log
        """
        verb = "changed" if name in self.data else "added"
        value = _coerce_value(value)
        self.data[name] = value

        if isinstance(unit, Unit):
            self.units[name] = unit
        elif unit is not None or scale is not None:
            self.units[name] = Unit(unit=unit or "", scale=scale or "")

        action = f"{verb} data '{name}'"
        if original_name is not None and original_name != name:
            self._add_alias(original_name, name)
            action += f" (read as '{original_name}')"
        if note:
            action += f": {note}"
        self.log(action)

        flags = self.flags.get(name)
        if flags is not None:
            try:
                _check_flag_shape(name, value, flags)
            except ValueError:
                del self.flags[name]
                self.log(f"dropped flags for '{name}': shape no longer matches data")

    def set_metadata(self, name: str, value: Any, note: str = "") -> None:
        """Add or overwrite a metadata item."""
        verb = "changed" if name in self.metadata else "added"
        self.metadata[name] = value
        action = f"{verb} metadata '{name}'"
        if note:
            action += f": {note}"
        self.log(action)

    def set_alias(self, original: str, canonical: str) -> None:
        """Map an origin-specific name to a canonical name."""
        self._add_alias(original, canonical)
        self.log(f"added alias '{original}' -> '{canonical}'")

    def _add_alias(self, original: str, canonical: str) -> None:
        if original == canonical:
            raise ValueError(f"Alias '{original}' maps to itself")
        if original in self.data:
            # Stored canonical names shadow aliases of the same spelling
            logger.warning(
                f"Alias '{original}' -> '{canonical}' collides with a stored field; "
                f"lookups of '{original}' return the stored field"
            )
        self.aliases[original] = canonical

    def set_flags(self, name: str, flags: Any) -> None:
        """Attach quality flags to a stored field."""
        flags = _coerce_value(flags)
        _check_flag_shape(name, self.data.get(name), flags)
        self.flags[name] = flags
        self.log(f"set flags for '{name}'")

    def delete_data(self, name: str) -> None:
        """Remove a stored field together with its unit, flags and aliases."""
        if name not in self.data:
            raise KeyError(name)
        del self.data[name]
        self.units.pop(name, None)
        self.flags.pop(name, None)
        for alias in [a for a, canonical in self.aliases.items() if canonical == name]:
            del self.aliases[alias]
        self.log(f"deleted data '{name}'")

    def original_name(self, name: str) -> str | None:
        """Get the origin-specific name a canonical field was read under, if any."""
        for alias, canonical in self.aliases.items():
            if canonical == name:
                return alias
        return None

    class Config:
        arbitrary_types_allowed = True
        json_schema_extra = {
            "example": {
                "kind": "ctd",
                "metadata": {"station": "A1", "latitude": 44.68, "longitude": -63.64},
                "data": {"pressure": [1.0, 10.0], "temperature": [8.2, 7.9], "salinity": [31.2, 31.5]},
                "aliases": {"t090C": "temperature", "sal00": "salinity", "prDM": "pressure"},
                "units": {"temperature": {"unit": "degC", "scale": "ITS-90"}},
                "flags": {},
                "processing_log": [],
            }
        }


def _check_flag_shape(name: str, value: Any, flags: Any) -> None:
    if isinstance(value, np.ndarray) and isinstance(flags, np.ndarray):
        if flags.shape != value.shape:
            raise ValueError(
                f"Flags for '{name}' have shape {flags.shape}, data has shape {value.shape}"
            )
