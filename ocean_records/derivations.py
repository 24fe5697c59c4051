"""Registry of derived fields.

A derivation is a pure function of other resolvable names. The resolver
evaluates it on demand; results are never written back into the record.
"""

import logging
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ocean_records import seawater
from ocean_records.models import Unit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Derivation:
    """A named computation and the names it depends on.

    Attributes:
        name: Canonical name of the derived field
        function: Called as ``function(*required, *optional, **parameters)``
        requires: Names that must resolve for the derivation to apply
        optional: Names passed as ``None`` when they do not resolve
        parameters: Default keyword parameters (overridable per resolver or call)
        unit: Unit of the result
        description: Short human-readable description
    """

    name: str
    function: Callable[..., Any]
    requires: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    parameters: dict[str, Any] = field(default_factory=dict)
    unit: Unit | None = None
    description: str = ""

    @property
    def dependencies(self) -> tuple[str, ...]:
        """All dependency names, required first."""
        return self.requires + self.optional


class DerivationRegistry:
    """Mapping of canonical derived name -> Derivation."""

    def __init__(self, derivations: list[Derivation] | None = None) -> None:
        self._derivations: dict[str, Derivation] = {}
        for derivation in derivations or []:
            self.add(derivation)

    def add(self, derivation: Derivation, replace: bool = False) -> None:
        """Register a derivation.

        Raises:
            ValueError: If the name is already registered and ``replace`` is False
        """
        if derivation.name in self._derivations and not replace:
            raise ValueError(f"Derivation already registered: {derivation.name}")
        self._derivations[derivation.name] = derivation
        logger.debug(f"Registered derivation '{derivation.name}' <- {derivation.dependencies}")

    def register(
        self,
        name: str,
        requires: tuple[str, ...] = (),
        optional: tuple[str, ...] = (),
        parameters: dict[str, Any] | None = None,
        unit: Unit | None = None,
        description: str = "",
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Decorator form of :meth:`add`. Returns the function unchanged so it can be stacked."""

        def decorator(function: Callable[..., Any]) -> Callable[..., Any]:
            self.add(
                Derivation(
                    name=name,
                    function=function,
                    requires=tuple(requires),
                    optional=tuple(optional),
                    parameters=dict(parameters or {}),
                    unit=unit,
                    description=description or (function.__doc__ or "").strip(),
                )
            )
            return function

        return decorator

    def get(self, name: str) -> Derivation | None:
        return self._derivations.get(name)

    def remove(self, name: str) -> None:
        del self._derivations[name]

    def names(self) -> list[str]:
        return sorted(self._derivations)

    def copy(self) -> "DerivationRegistry":
        """Shallow copy, so callers can extend a registry without touching the original."""
        return DerivationRegistry(list(self._derivations.values()))

    def __contains__(self, name: object) -> bool:
        return name in self._derivations

    def __iter__(self) -> Iterator[Derivation]:
        return iter(self._derivations.values())

    def __len__(self) -> int:
        return len(self._derivations)


def _its90(temperature, scale: str | None):
    if scale and scale.upper().replace(" ", "") in ("IPTS-68", "IPTS68", "T68"):
        return seawater.t90_from_t68(temperature)
    return np.asarray(temperature, dtype=float)


_TEMPERATURE_UNIT = Unit(unit="degC", scale="ITS-90")
_DENSITY_UNIT = Unit(unit="kg/m^3")
_LENGTH_UNIT = Unit(unit="m")

DEFAULT_REGISTRY = DerivationRegistry()


@DEFAULT_REGISTRY.register(
    "potentialTemperature",
    requires=("temperature", "salinity", "pressure"),
    optional=("temperature scale",),
    parameters={"referencePressure": 0.0},
    unit=_TEMPERATURE_UNIT,
)
@DEFAULT_REGISTRY.register(
    "theta",
    requires=("temperature", "salinity", "pressure"),
    optional=("temperature scale",),
    parameters={"referencePressure": 0.0},
    unit=_TEMPERATURE_UNIT,
)
def potential_temperature(temperature, salinity, pressure, temperature_scale, referencePressure=0.0):
    """Potential temperature (UNESCO 1983) referenced to referencePressure dbar."""
    return seawater.potential_temperature(
        salinity, _its90(temperature, temperature_scale), pressure, referencePressure
    )


@DEFAULT_REGISTRY.register(
    "density",
    requires=("salinity", "temperature", "pressure"),
    optional=("temperature scale",),
    unit=_DENSITY_UNIT,
)
def in_situ_density(salinity, temperature, pressure, temperature_scale):
    """In-situ density from the EOS-80 equation of state."""
    return seawater.density(salinity, _its90(temperature, temperature_scale), pressure)


@DEFAULT_REGISTRY.register(
    "sigma0",
    requires=("salinity", "temperature", "pressure"),
    optional=("temperature scale",),
    unit=_DENSITY_UNIT,
)
@DEFAULT_REGISTRY.register(
    "sigmaTheta",
    requires=("salinity", "temperature", "pressure"),
    optional=("temperature scale",),
    unit=_DENSITY_UNIT,
)
def potential_density_anomaly(salinity, temperature, pressure, temperature_scale):
    """Potential density anomaly referenced to the surface."""
    # Always surface-referenced, whatever referencePressure theta is resolved with
    theta = seawater.potential_temperature(
        salinity, _its90(temperature, temperature_scale), pressure, 0.0
    )
    return seawater.sigma_theta(salinity, theta)


@DEFAULT_REGISTRY.register(
    "depth",
    requires=("pressure",),
    optional=("latitude",),
    parameters={"defaultLatitude": 45.0},
    unit=_LENGTH_UNIT,
)
def depth(pressure, latitude, defaultLatitude=45.0):
    """Depth below the surface from pressure and latitude."""
    if latitude is None:
        latitude = defaultLatitude
    return seawater.depth_from_pressure(pressure, latitude)


@DEFAULT_REGISTRY.register("z", requires=("depth",), unit=_LENGTH_UNIT)
def vertical_coordinate(depth):
    """Vertical coordinate, positive upward (negative depth)."""
    return -np.asarray(depth, dtype=float)
