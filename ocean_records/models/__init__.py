"""Pydantic models for oceanographic records."""

from ocean_records.models.record import ProcessingLogEntry, Record
from ocean_records.models.units import Unit

__all__ = [
    "Record",
    "ProcessingLogEntry",
    "Unit",
]
