"""Configuration for method resolution.

Defaults suit most hosts. The string and flag settings are read from
``DATAPORTAL_*`` environment variables whenever a config is created without
explicit values; the non-nullable type set is code-only.
"""

import os
from dataclasses import dataclass, field

__all__ = ["DispatchConfig", "DEFAULT_NON_NULLABLE_TYPES"]

DEFAULT_NON_NULLABLE_TYPES: frozenset = frozenset({bool, int, float, complex, str, bytes})
"""Declared types that never accept ``None`` unless annotated as optional."""


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class DispatchConfig:
    """Settings controlling candidate discovery and scoring.

    Attributes:
        legacy_prefix: Method-name prefix for legacy root operations, e.g. ``DataPortal_Fetch``.
            Read from ``DATAPORTAL_LEGACY_PREFIX``.
        legacy_child_prefix: Method-name prefix for legacy child operations, e.g. ``Child_Fetch``.
            Read from ``DATAPORTAL_LEGACY_CHILD_PREFIX``.
        cache_candidates: Whether discovered candidates are cached per type and operation.
            Read from ``DATAPORTAL_CACHE_CANDIDATES``.
        non_nullable_types: Declared types for which a ``None`` criterion disqualifies a candidate.
    """

    legacy_prefix: str = field(default_factory=lambda: os.getenv("DATAPORTAL_LEGACY_PREFIX", "DataPortal_"))
    legacy_child_prefix: str = field(
        default_factory=lambda: os.getenv("DATAPORTAL_LEGACY_CHILD_PREFIX", "Child_")
    )
    cache_candidates: bool = field(default_factory=lambda: _env_flag("DATAPORTAL_CACHE_CANDIDATES", True))
    non_nullable_types: frozenset = field(default=DEFAULT_NON_NULLABLE_TYPES)

    @staticmethod
    def from_env() -> "DispatchConfig":
        """Build a config from the current environment and the built-in defaults."""
        return DispatchConfig()
