"""
ocpkit - Error Taxonomy
=======================

Every failure of a facade operation is raised synchronously as a subclass of
``KernelError``. Each error carries a machine-readable ``error_code`` and an
``ErrorCategory`` so host code can dispatch without string matching.

Usage:
    from ocpkit.errors import KernelError, FilletFailure

    try:
        shape = builder.build()
    except FilletFailure as e:
        logger.warning(f"{e.error_code}: {e}")
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Kategorien für Fehler-Klassifizierung."""
    GEOMETRY = "geometry"           # Geometrie-bezogene Fehler
    TOPOLOGY = "topology"           # Topologie-Probleme
    OPERATION = "operation"         # Builder/Boolean-spezifisch
    PROTOCOL = "protocol"           # Falsche Verwendung einer API (Iterator, Builder)


class KernelError(Exception):
    """Base class of all typed facade failures."""

    error_code = "kernel_error"
    category = ErrorCategory.OPERATION

    def __init__(self, message: str = "", context: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.error_code)
        self.context = context or {}

    def to_dict(self) -> Dict[str, Any]:
        """Serialisierung für Logging und Test-Reports."""
        return {
            "error_code": self.error_code,
            "category": self.category.value,
            "message": str(self),
            "context": self.context,
        }


class NullEntity(KernelError):
    """A handle does not reference valid kernel geometry."""
    error_code = "null_entity"
    category = ErrorCategory.GEOMETRY


class DegenerateGeometry(KernelError):
    """Collinear/coincident points, zero-length curves, zero vectors."""
    error_code = "geometry_degenerate"
    category = ErrorCategory.GEOMETRY


class InvalidParametrization(KernelError):
    """A 2D curve leaves the valid parameter domain of its surface."""
    error_code = "geometry_invalid_parametrization"
    category = ErrorCategory.GEOMETRY


class TypeMismatch(KernelError):
    """Narrowing conversion requested for the wrong variant."""
    error_code = "type_mismatch"
    category = ErrorCategory.PROTOCOL


class NonPlanarOrSelfIntersecting(KernelError):
    """A wire is not a valid closed, planar, non-self-intersecting boundary."""
    error_code = "topology_invalid_boundary"
    category = ErrorCategory.TOPOLOGY


class DisconnectedWire(KernelError):
    """A wire fragment does not share an endpoint with the current chain."""
    error_code = "topology_disconnected_wire"
    category = ErrorCategory.TOPOLOGY


class FilletFailure(KernelError):
    error_code = "fillet_failed"


class ShellFailure(KernelError):
    error_code = "shell_failed"


class LoftFailure(KernelError):
    error_code = "loft_failed"


class BooleanOpFailure(KernelError):
    error_code = "boolean_failed"


class IteratorExhausted(KernelError):
    """``next()`` called on an iterator whose ``more()`` is False."""
    error_code = "iterator_exhausted"
    category = ErrorCategory.PROTOCOL


class BuilderConsumed(KernelError):
    """A builder was used again after a successful ``build()``."""
    error_code = "builder_consumed"
    category = ErrorCategory.PROTOCOL


ERROR_TYPES = {
    cls.error_code: cls
    for cls in (
        NullEntity,
        DegenerateGeometry,
        InvalidParametrization,
        TypeMismatch,
        NonPlanarOrSelfIntersecting,
        DisconnectedWire,
        FilletFailure,
        ShellFailure,
        LoftFailure,
        BooleanOpFailure,
        IteratorExhausted,
        BuilderConsumed,
    )
}


def error_for_code(error_code: str) -> type:
    """Gibt die Exception-Klasse zu einem Error-Code zurück (KernelError wenn unbekannt)."""
    return ERROR_TYPES.get(error_code, KernelError)
