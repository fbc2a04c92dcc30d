"""Exception definitions for dtskit.

Only fatal conditions are raised. Structural problems in the input (unresolved
links, unknown re-export targets, missing documentation) are logged as
warnings and never reach this module.
"""

from typing import Any, Optional


class DtsError(Exception):
    """Base exception for all dtskit errors."""

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class OverlappingDeletionError(DtsError):
    """Two deletion ranges applied to one declaration intersect."""

    def __init__(
        self,
        first: tuple[int, int],
        second: tuple[int, int],
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["first"] = first
        details["second"] = second
        super().__init__("overlapping delete ranges", details)
        self.first = first
        self.second = second


class MultiVariableExportError(DtsError):
    """An exported variable statement declares more than one variable."""

    def __init__(self, position: str, details: Optional[dict[str, Any]] = None) -> None:
        details = details or {}
        details["position"] = position
        super().__init__("multi-variable exports not supported", details)
        self.position = position


class UnknownRootModuleError(DtsError):
    """A root module requested for flattening is not declared by any input."""

    def __init__(self, module: str, details: Optional[dict[str, Any]] = None) -> None:
        super().__init__(f"root module '{module}' not found", details)
        self.module = module
