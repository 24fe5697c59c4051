"""Exceptions raised while resolving record fields."""


class ResolutionError(Exception):
    """Base class for field resolution failures."""


class FieldNotFoundError(ResolutionError, KeyError):
    """Requested name is not metadata, stored, aliased, or derivable.

    Raised instead of returning ``None`` so callers can tell an absent field
    from a field that is present with an empty or zero value.
    """

    def __init__(self, name: str, reason: str | None = None):
        self.name = name
        self.reason = reason
        super().__init__(name)

    def __str__(self) -> str:
        if self.reason:
            return f"'{self.name}' not found: {self.reason}"
        return f"'{self.name}' not found"


class DerivationCycleError(ResolutionError):
    """A derivation depends on itself, directly or through other derivations."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__("derivation cycle: " + " -> ".join(chain))


class AliasTargetError(ResolutionError, ValueError):
    """One or more aliases point at names that are neither stored nor derivable."""

    def __init__(self, dangling: dict[str, str]):
        self.dangling = dangling
        details = ", ".join(f"{alias} -> {target}" for alias, target in sorted(dangling.items()))
        super().__init__(f"aliases with unknown targets: {details}")
