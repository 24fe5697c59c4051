"""Source-format column names and the canonical names they map to.

Each table maps an origin-specific name (a manufacturer column header or a
data-centre variable name) to the canonical field name plus the unit and
scale the source uses for it.
"""

from pydantic import BaseModel, Field

from ocean_records.models import Unit


class AliasSpec(BaseModel):
    """Canonical name and unit of a source-specific column."""

    name: str = Field(..., description="Canonical field name")
    unit: str | None = Field(default=None, description="Unit used by the source")
    scale: str | None = Field(default=None, description="Measurement scale used by the source")

    def to_unit(self) -> Unit | None:
        if self.unit is None and self.scale is None:
            return None
        return Unit(unit=self.unit or "", scale=self.scale or "")


def _spec(name: str, unit: str | None = None, scale: str | None = None) -> AliasSpec:
    return AliasSpec(name=name, unit=unit, scale=scale)


SEABIRD_ALIASES: dict[str, AliasSpec] = {
    "t090C": _spec("temperature", "degC", "ITS-90"),
    "t090": _spec("temperature", "degC", "ITS-90"),
    "t068C": _spec("temperature", "degC", "IPTS-68"),
    "t068": _spec("temperature", "degC", "IPTS-68"),
    "t190C": _spec("temperature2", "degC", "ITS-90"),
    "tv290C": _spec("temperature", "degC", "ITS-90"),
    "sal00": _spec("salinity", "", "PSS-78"),
    "sal11": _spec("salinity2", "", "PSS-78"),
    "prDM": _spec("pressure", "dbar"),
    "prdM": _spec("pressure", "dbar"),
    "pr": _spec("pressure", "dbar"),
    "c0S/m": _spec("conductivity", "S/m"),
    "c0mS/cm": _spec("conductivity", "mS/cm"),
    "c1S/m": _spec("conductivity2", "S/m"),
    "depSM": _spec("depth", "m"),
    "sbeox0ML/L": _spec("oxygen", "ml/l"),
    "sbeox0Mm/L": _spec("oxygen", "umol/l"),
    "flECO-AFL": _spec("fluorescence", "mg/m^3"),
    "par": _spec("par"),
    "timeS": _spec("timeS", "s"),
    "scan": _spec("scan"),
    "latitude": _spec("latitude", "degN"),
    "longitude": _spec("longitude", "degE"),
    "flag": _spec("flag"),
}

ARGO_ALIASES: dict[str, AliasSpec] = {
    "PRES": _spec("pressure", "dbar"),
    "PRES_ADJUSTED": _spec("pressureAdjusted", "dbar"),
    "TEMP": _spec("temperature", "degC", "ITS-90"),
    "TEMP_ADJUSTED": _spec("temperatureAdjusted", "degC", "ITS-90"),
    "PSAL": _spec("salinity", "", "PSS-78"),
    "PSAL_ADJUSTED": _spec("salinityAdjusted", "", "PSS-78"),
    "DOXY": _spec("oxygen", "umol/kg"),
    "CHLA": _spec("chlorophyllA", "mg/m^3"),
    "LATITUDE": _spec("latitude", "degN"),
    "LONGITUDE": _spec("longitude", "degE"),
    "JULD": _spec("time"),
    "CYCLE_NUMBER": _spec("cycleNumber"),
    "PLATFORM_NUMBER": _spec("id"),
}

SOURCE_ALIASES: dict[str, dict[str, AliasSpec]] = {
    "seabird": SEABIRD_ALIASES,
    "argo": ARGO_ALIASES,
}


def alias_table(
    source: str | None,
    extra: dict[str, str | AliasSpec] | None = None,
) -> dict[str, AliasSpec]:
    """Build the alias table for a source, with user-supplied entries on top.

    Args:
        source: Key in SOURCE_ALIASES, or None for no built-in table
        extra: Additional original -> canonical (or AliasSpec) entries

    Raises:
        ValueError: If ``source`` is not a known source
    """
    table: dict[str, AliasSpec] = {}
    if source is not None:
        if source not in SOURCE_ALIASES:
            known = ", ".join(sorted(SOURCE_ALIASES))
            raise ValueError(f"Unknown source '{source}' (known: {known})")
        table.update(SOURCE_ALIASES[source])
    for original, spec in (extra or {}).items():
        table[original] = spec if isinstance(spec, AliasSpec) else AliasSpec(name=spec)
    return table
