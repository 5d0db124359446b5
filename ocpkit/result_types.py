"""
ocpkit - Result Types for Kernel Operations

Structured results that differentiate between:
- SUCCESS: Operation completed as expected
- WARNING: Operation completed but the kernel result had to be healed
- EMPTY: Operation completed but produced no geometry
- ERROR: Operation failed and could not complete

The public facade raises typed errors; engines return results so that
callers who want to inspect/log the outcome can do so without try/except.

Usage:
    from ocpkit.result_types import OperationResult, ResultStatus

    result = BooleanEngine.execute(a, b, "fuse")
    if result.is_success:
        shape = result.value
    shape = result.unwrap()   # raises BooleanOpFailure on EMPTY/ERROR
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type

from loguru import logger

from ocpkit.errors import BooleanOpFailure, KernelError


class ResultStatus(Enum):
    """
    Operation outcome states for logging and test reports.

    SUCCESS  - Operation completed exactly as expected
    WARNING  - Operation completed but the result was healed
    EMPTY    - Operation completed correctly but returned no geometry
    ERROR    - Operation failed and could not complete
    """
    SUCCESS = auto()
    WARNING = auto()
    EMPTY = auto()
    ERROR = auto()


@dataclass
class OperationResult:
    """
    Unified result type for kernel operations.

    Attributes:
        status: ResultStatus indicating outcome type
        value: The result value (Shape) - None for ERROR/EMPTY
        message: Human-readable description of what happened
        details: Additional context (exception type, volumes, ...)
        warnings: List of non-fatal issues encountered
    """
    status: ResultStatus
    value: Any = None
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    # Exception type raised by unwrap() for EMPTY/ERROR
    failure_type = KernelError

    # --- Factory Methods ---

    @classmethod
    def success(cls, value: Any, message: str = "Operation completed successfully", **kwargs) -> "OperationResult":
        """Create a SUCCESS result."""
        return cls(status=ResultStatus.SUCCESS, value=value, message=message, **kwargs)

    @classmethod
    def warning(cls, value: Any, message: str, warnings: List[str] = None, **kwargs) -> "OperationResult":
        """Create a WARNING result: value is usable but something was repaired."""
        return cls(
            status=ResultStatus.WARNING,
            value=value,
            message=message,
            warnings=warnings or [],
            **kwargs
        )

    @classmethod
    def empty(cls, message: str = "No results found", reason: str = None, **kwargs) -> "OperationResult":
        """
        Create an EMPTY result for operations with no output.

        The kernel call itself succeeded, but nothing came out of it
        (e.g. intersecting two disjoint solids).
        """
        details = {}
        if reason:
            details["reason"] = reason
        return cls(status=ResultStatus.EMPTY, value=None, message=message, details=details, **kwargs)

    @classmethod
    def error(cls, message: str, exception: Exception = None,
              context: Dict[str, Any] = None, **kwargs) -> "OperationResult":
        """
        Create an ERROR result for failed operations.

        Args:
            message: Description of what went wrong
            exception: The exception that caused the failure
            context: Additional context for debugging
        """
        details = dict(context or {})
        if exception is not None:
            details["exception_type"] = type(exception).__name__
            details["exception_message"] = str(exception)
        return cls(status=ResultStatus.ERROR, value=None, message=message, details=details, **kwargs)

    # --- Properties ---

    @property
    def is_success(self) -> bool:
        """True if operation completed successfully (SUCCESS or WARNING with value)."""
        return self.status == ResultStatus.SUCCESS or (
            self.status == ResultStatus.WARNING and self.value is not None
        )

    @property
    def is_error(self) -> bool:
        return self.status == ResultStatus.ERROR

    @property
    def is_empty(self) -> bool:
        return self.status == ResultStatus.EMPTY

    @property
    def has_warnings(self) -> bool:
        return self.status == ResultStatus.WARNING or len(self.warnings) > 0

    # --- Conversion ---

    def unwrap(self, failure_type: Optional[Type[KernelError]] = None) -> Any:
        """
        Return the value or raise the typed failure.

        Args:
            failure_type: Overrides the class default ``failure_type``
        """
        if self.is_success:
            return self.value
        exc_type = failure_type or self.failure_type
        raise exc_type(self.message, context=self.to_report_dict())

    # --- Logging Integration ---

    def log(self, context: str = "") -> "OperationResult":
        """
        Log the result with appropriate log level.

        Returns:
            self for chaining
        """
        prefix = f"[{context}] " if context else ""

        if self.status == ResultStatus.SUCCESS:
            logger.success(f"{prefix}{self.message}")

        elif self.status == ResultStatus.WARNING:
            logger.warning(f"{prefix}{self.message}")
            for warn in self.warnings:
                logger.warning(f"{prefix}  - {warn}")

        elif self.status == ResultStatus.EMPTY:
            logger.info(f"{prefix}{self.message}")
            if "reason" in self.details:
                logger.debug(f"{prefix}  Reason: {self.details['reason']}")

        elif self.status == ResultStatus.ERROR:
            logger.error(f"{prefix}{self.message}")
            if "exception_type" in self.details:
                logger.error(
                    f"{prefix}  Exception: {self.details['exception_type']}: "
                    f"{self.details.get('exception_message', '')}"
                )

        return self

    # --- Report Generation ---

    def to_report_dict(self) -> Dict[str, Any]:
        """
        Generate a dictionary suitable for test reports.

        Returns:
            Dict with status, message, and relevant details
        """
        report = {
            "status": self.status.name,
            "message": self.message,
        }
        if self.details:
            report["details"] = self.details
        if self.warnings:
            report["warnings"] = self.warnings
        if self.value is not None:
            report["value_type"] = type(self.value).__name__
        return report

    def __repr__(self) -> str:
        parts = [f"{type(self).__name__}({self.status.name}"]
        if self.message:
            parts.append(f", message='{self.message[:50]}'")
        if self.has_warnings:
            parts.append(f", warnings={len(self.warnings)}")
        parts.append(")")
        return "".join(parts)


@dataclass(repr=False)
class BooleanResult(OperationResult):
    """
    Specialized result for boolean operations (fuse, subtract, intersect).

    ``history`` holds the kernel's BRepTools_History when available so hosts
    can track how faces/edges evolved through the operation.
    """
    operation_type: str = ""
    history: Any = None

    failure_type = BooleanOpFailure

    def to_report_dict(self) -> Dict[str, Any]:
        report = super().to_report_dict()
        report["operation_type"] = self.operation_type
        return report
