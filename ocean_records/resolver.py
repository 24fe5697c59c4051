"""Attribute resolution for records.

Lookup order for ``resolve(record, name)``, first match wins:

1. whole-container names (``metadata``, ``data``, ``aliases``, ``units``,
   ``flags``) return a snapshot of that container
2. ``name`` in the metadata store
3. ``name`` in the stored fields
4. ``name`` as an alias: the canonical name is looked up in the stored fields,
   then in the derivation registry
5. qualifier queries: ``"<field> unit"``, ``"<field> scale"``,
   ``"<field> name"`` and ``"<field>Flag"``
6. ``name`` as a registered derivation, evaluated from the currently resolved
   values of its dependencies
7. otherwise :class:`FieldNotFoundError`

Metadata takes precedence over stored fields of the same name.
"""

import copy
import logging
from functools import lru_cache
from typing import Any, Literal

import numpy as np

from ocean_records.derivations import DEFAULT_REGISTRY, Derivation, DerivationRegistry
from ocean_records.errors import (
    AliasTargetError,
    DerivationCycleError,
    FieldNotFoundError,
    ResolutionError,
)
from ocean_records.models import Record

logger = logging.getLogger(__name__)

CONTAINERS = ("metadata", "data", "aliases", "units", "flags")
QUALIFIERS = ("unit", "scale", "name")
FLAG_SUFFIX = "Flag"

Source = Literal["container", "metadata", "data", "alias", "qualifier", "derived"]


def _read_only(value: Any) -> Any:
    """Read-only view of array values handed to derivation functions."""
    if isinstance(value, np.ndarray):
        view = value.view()
        view.flags.writeable = False
        return view
    return value


class AttributeResolver:
    """Resolves field names against records.

    Args:
        registry: Derivations available to this resolver (default registry if None)
        parameters: Parameter overrides applied to every derivation that declares them
    """

    def __init__(
        self,
        registry: DerivationRegistry | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> None:
        self.registry = registry if registry is not None else DEFAULT_REGISTRY
        self.parameters = dict(parameters or {})

    @classmethod
    def from_config(cls, config, registry: DerivationRegistry | None = None) -> "AttributeResolver":
        """Build a resolver from an :class:`ocean_records.config.AppConfig`."""
        return cls(registry=registry, parameters=config.resolver.derivation_parameters())

    def resolve(self, record: Record, name: str, **parameters: Any) -> Any:
        """Get the value of ``name`` from ``record``.

        Args:
            record: Record to look in
            name: Canonical name, alias, qualifier query or derived name
            **parameters: Derivation parameter overrides for this call
                (e.g., ``referencePressure=1000``)

        Returns:
            The stored, metadata or computed value

        Raises:
            FieldNotFoundError: If the name cannot be resolved
            DerivationCycleError: If derivations depend on each other circularly
        """
        value, source = self._resolve(record, name, parameters, ())
        logger.debug(f"Resolved '{name}' from {source}")
        return value

    def get(self, record: Record, name: str, default: Any = None, **parameters: Any) -> Any:
        """Like :meth:`resolve`, but return ``default`` when the name is not found."""
        try:
            return self.resolve(record, name, **parameters)
        except FieldNotFoundError:
            return default

    def source(self, record: Record, name: str) -> Source:
        """Report where ``name`` would be resolved from, without evaluating derivations.

        Raises:
            FieldNotFoundError: If the name cannot be resolved
            DerivationCycleError: If the name is derived through a dependency cycle
        """
        if name in CONTAINERS:
            return "container"
        if name in record.metadata:
            return "metadata"
        if name in record.data:
            return "data"
        if name in record.aliases:
            canonical = record.aliases[name]
            derivation = self.registry.get(canonical)
            if canonical in record.data or (
                derivation is not None and self._derivable(record, derivation, (), strict=True)
            ):
                return "alias"
            raise FieldNotFoundError(name, f"alias of '{canonical}', which is not available")
        qualifier = self._split_qualifier(record, name)
        if qualifier is not None:
            self._qualify(record, *qualifier)
            return "qualifier"
        if name in self.registry and self._derivable(
            record, self.registry.get(name), (), strict=True
        ):
            return "derived"
        raise FieldNotFoundError(name, f"not available in {record.kind} record")

    def has(self, record: Record, name: str) -> bool:
        """Check whether ``name`` resolves for ``record``."""
        try:
            self.source(record, name)
        except ResolutionError:
            return False
        return True

    def names(self, record: Record) -> dict[str, list[str]]:
        """List what can be asked of ``record``, grouped by origin.

        Derived names are those whose required dependencies resolve and which
        are not already stored.
        """
        derived = [
            derivation.name
            for derivation in self.registry
            if derivation.name not in record.data
            and derivation.name not in record.metadata
            and self._derivable(record, derivation, ())
        ]
        return {
            "metadata": sorted(record.metadata),
            "data": sorted(record.data),
            "aliases": sorted(record.aliases),
            "derived": sorted(derived),
        }

    def validate(self, record: Record) -> None:
        """Check that every alias points at a stored field or a registered derivation.

        Raises:
            AliasTargetError: Listing every dangling alias
        """
        dangling = {
            alias: canonical
            for alias, canonical in record.aliases.items()
            if canonical not in record.data and canonical not in self.registry
        }
        if dangling:
            raise AliasTargetError(dangling)

    def _resolve(
        self,
        record: Record,
        name: str,
        parameters: dict[str, Any],
        stack: tuple[str, ...],
    ) -> tuple[Any, Source]:
        if name in CONTAINERS:
            return copy.deepcopy(getattr(record, name)), "container"

        if name in record.metadata:
            return record.metadata[name], "metadata"

        if name in record.data:
            return record.data[name], "data"

        if name in record.aliases:
            canonical = record.aliases[name]
            if canonical in record.data:
                return record.data[canonical], "alias"
            derivation = self.registry.get(canonical)
            if derivation is not None:
                return self._derive(record, derivation, parameters, stack), "alias"
            raise FieldNotFoundError(name, f"alias of '{canonical}', which is not available")

        qualifier = self._split_qualifier(record, name)
        if qualifier is not None:
            field, kind = qualifier
            return self._qualify(record, field, kind), "qualifier"

        derivation = self.registry.get(name)
        if derivation is not None:
            return self._derive(record, derivation, parameters, stack), "derived"

        raise FieldNotFoundError(name, f"not available in {record.kind} record")

    def _canonical(self, record: Record, name: str) -> str:
        if name in record.data or name in record.metadata:
            return name
        return record.aliases.get(name, name)

    def _split_qualifier(self, record: Record, name: str) -> tuple[str, str] | None:
        """Split ``"<field> unit"`` style names into (canonical field, qualifier)."""
        head, _, tail = name.rpartition(" ")
        if head and tail in QUALIFIERS:
            field = self._canonical(record, head)
            if field in record.data or field in self.registry:
                return field, tail
            return None
        if name.endswith(FLAG_SUFFIX) and len(name) > len(FLAG_SUFFIX):
            field = self._canonical(record, name[: -len(FLAG_SUFFIX)])
            if field in record.flags:
                return field, "flag"
        return None

    def _qualify(self, record: Record, field: str, kind: str) -> Any:
        if kind == "flag":
            return record.flags[field]
        if kind == "name":
            return record.original_name(field) or field

        unit = record.units.get(field)
        if unit is None and field not in record.data:
            derivation = self.registry.get(field)
            unit = derivation.unit if derivation is not None else None
        if unit is None:
            raise FieldNotFoundError(f"{field} {kind}", f"no unit recorded for '{field}'")
        return unit.unit if kind == "unit" else unit.scale

    def _derivable(
        self,
        record: Record,
        derivation: Derivation,
        stack: tuple[str, ...],
        strict: bool = False,
    ) -> bool:
        """Check that every required dependency is stored or derivable.

        A cycle makes the derivation unavailable, or raises when ``strict``.
        """
        if derivation.name in stack:
            if strict:
                raise DerivationCycleError(list(stack) + [derivation.name])
            return False
        stack = stack + (derivation.name,)
        for dependency in derivation.requires:
            if (
                dependency in record.metadata
                or dependency in record.data
                or self._canonical(record, dependency) in record.data
            ):
                continue
            nested = self.registry.get(self._canonical(record, dependency))
            if nested is None or not self._derivable(record, nested, stack, strict):
                return False
        return True

    def _derive(
        self,
        record: Record,
        derivation: Derivation,
        parameters: dict[str, Any],
        stack: tuple[str, ...],
    ) -> Any:
        if derivation.name in stack:
            raise DerivationCycleError(list(stack) + [derivation.name])
        stack = stack + (derivation.name,)

        args = []
        for dependency in derivation.requires:
            try:
                value, _ = self._resolve(record, dependency, parameters, stack)
            except FieldNotFoundError as e:
                raise FieldNotFoundError(
                    derivation.name, f"requires '{dependency}', which is not available"
                ) from e
            args.append(_read_only(value))
        for dependency in derivation.optional:
            try:
                value, _ = self._resolve(record, dependency, parameters, stack)
            except FieldNotFoundError:
                value = None
            args.append(_read_only(value))

        kwargs = {
            key: parameters.get(key, self.parameters.get(key, default))
            for key, default in derivation.parameters.items()
        }
        logger.debug(f"Deriving '{derivation.name}' with parameters {kwargs}")
        return derivation.function(*args, **kwargs)


@lru_cache(maxsize=1)
def default_resolver() -> AttributeResolver:
    """Shared resolver over the default derivation registry."""
    return AttributeResolver()


def resolve(record: Record, name: str, **parameters: Any) -> Any:
    """Resolve ``name`` in ``record`` with the default resolver."""
    return default_resolver().resolve(record, name, **parameters)
