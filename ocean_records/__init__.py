"""ocean-records - oceanographic records with uniform field access."""

__version__ = "0.1.0"

from ocean_records.config import AppConfig, SettingOverride, load_config_from_env
from ocean_records.derivations import DEFAULT_REGISTRY, Derivation, DerivationRegistry
from ocean_records.errors import (
    AliasTargetError,
    DerivationCycleError,
    FieldNotFoundError,
    ResolutionError,
)
from ocean_records.models import ProcessingLogEntry, Record, Unit
from ocean_records.resolver import AttributeResolver, default_resolver, resolve

__all__ = [
    "Record",
    "Unit",
    "ProcessingLogEntry",
    "AttributeResolver",
    "default_resolver",
    "resolve",
    "Derivation",
    "DerivationRegistry",
    "DEFAULT_REGISTRY",
    "ResolutionError",
    "FieldNotFoundError",
    "DerivationCycleError",
    "AliasTargetError",
    "AppConfig",
    "SettingOverride",
    "load_config_from_env",
]
