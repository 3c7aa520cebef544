"""Footprint Engine Exception Hierarchy.

This module provides the exception hierarchy for the emission calculation
engine with rich error context for debugging, monitoring, and API responses.

Exception Hierarchy:
    FootprintEngineException (base)
    ├── ActivityException
    │   ├── InvalidActivity
    │   ├── UnknownActivityType
    │   └── UnsupportedCategory
    ├── FactorException
    │   ├── FactorNotFound
    │   └── InvalidFactorTable
    └── UnitException
        ├── UnitMismatch
        └── UnsupportedConversion

All exceptions include rich context:
- error_code: Unique error identifier
- context: Dictionary with error-specific details
- timestamp: When the error occurred

Example:
    >>> from footprint_engine.exceptions import UnknownActivityType
    >>> raise UnknownActivityType(
    ...     message="Unknown activityType: transport-rocket",
    ...     activity_type="transport-rocket",
    ... )
"""

import json
import re
from datetime import datetime
from typing import Any, Dict, Optional


# ==============================================================================
# Base Exception
# ==============================================================================

class FootprintEngineException(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error message
        error_code: Unique error identifier (e.g., "FPE_UNIT_UNIT_MISMATCH")
        context: Dictionary with error-specific details
        timestamp: When the error occurred
    """

    ERROR_PREFIX = "FPE"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now()

    def _generate_error_code(self) -> str:
        """Generate error code from the class name (CamelCase -> SNAKE_CASE)."""
        error_type = re.sub(r'(?<!^)(?=[A-Z])', '_', self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}')"
        )


# ==============================================================================
# Activity Exceptions
# ==============================================================================

class ActivityException(FootprintEngineException):
    """Base exception for problems with a submitted activity record."""
    ERROR_PREFIX = "FPE_ACTIVITY"


class InvalidActivity(ActivityException):
    """Activity record is missing or malformed.

    Example:
        >>> raise InvalidActivity(
        ...     message="quantity must be a non-negative number",
        ...     invalid_fields={"quantity": "negative"},
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        invalid_fields: Optional[Dict[str, str]] = None,
    ):
        """Initialize invalid activity error.

        Args:
            message: Error message
            context: Error context
            invalid_fields: Dictionary of field_name -> reason
        """
        if invalid_fields:
            context = context or {}
            context["invalid_fields"] = invalid_fields
        super().__init__(message, context=context)


class UnknownActivityType(ActivityException):
    """Activity type has no (category, subtype) mapping."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        activity_type: Optional[str] = None,
    ):
        context = context or {}
        if activity_type is not None:
            context["activity_type"] = activity_type
        super().__init__(message, context=context)


class UnsupportedCategory(ActivityException):
    """Category is mapped but has no calculation rule."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        category: Optional[str] = None,
    ):
        context = context or {}
        if category is not None:
            context["category"] = category
        super().__init__(message, context=context)


# ==============================================================================
# Factor Exceptions
# ==============================================================================

class FactorException(FootprintEngineException):
    """Base exception for emission factor lookup and loading errors."""
    ERROR_PREFIX = "FPE_FACTOR"


class FactorNotFound(FactorException):
    """Factor store exhausted its fallback chain.

    Example:
        >>> raise FactorNotFound(
        ...     message="Transport factor not found for ferry",
        ...     category="transportation",
        ...     subtype="ferry",
        ... )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        category: Optional[str] = None,
        subtype: Optional[str] = None,
        desired_units: Optional[str] = None,
    ):
        context = context or {}
        if category is not None:
            context["category"] = category
        if subtype is not None:
            context["subtype"] = subtype
        if desired_units is not None:
            context["desired_units"] = desired_units
        super().__init__(message, context=context)


class InvalidFactorTable(FactorException):
    """Factor table entry is malformed (missing fields or bad units)."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        entry: Optional[Dict[str, Any]] = None,
    ):
        context = context or {}
        if entry is not None:
            context["entry"] = entry
        super().__init__(message, context=context)


# ==============================================================================
# Unit Exceptions
# ==============================================================================

class UnitException(FootprintEngineException):
    """Base exception for unit handling errors."""
    ERROR_PREFIX = "FPE_UNIT"


class UnsupportedConversion(UnitException):
    """No whitelisted conversion rule exists between two units."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        from_unit: Optional[str] = None,
        to_unit: Optional[str] = None,
    ):
        context = context or {}
        if from_unit is not None:
            context["from_unit"] = from_unit
        if to_unit is not None:
            context["to_unit"] = to_unit
        super().__init__(message, context=context)


class UnitMismatch(UnitException):
    """Activity units cannot be converted to the factor's denominator."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        activity_units: Optional[str] = None,
        required_units: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        context = context or {}
        context["activity_units"] = activity_units
        if required_units is not None:
            context["required_units"] = required_units
        if cause:
            context["cause"] = str(cause)
            context["cause_type"] = type(cause).__name__
        super().__init__(message, context=context)


# ==============================================================================
# Exception Utilities
# ==============================================================================

def format_exception_chain(exc: BaseException) -> str:
    """Format exception chain for logging/display.

    Args:
        exc: Exception to format

    Returns:
        Formatted string with full exception chain
    """
    lines = []
    current = exc

    while current is not None:
        if isinstance(current, FootprintEngineException):
            lines.append(str(current))
            lines.append(f"  Context: {current.context}")
        else:
            lines.append(f"{type(current).__name__}: {current}")

        current = getattr(current, "__cause__", None)

    return "\n".join(lines)


def error_message(exc: BaseException) -> str:
    """Plain message for an exception, without the error code prefix."""
    if isinstance(exc, FootprintEngineException):
        return exc.message
    return str(exc)


__all__ = [
    "FootprintEngineException",
    "ActivityException",
    "InvalidActivity",
    "UnknownActivityType",
    "UnsupportedCategory",
    "FactorException",
    "FactorNotFound",
    "InvalidFactorTable",
    "UnitException",
    "UnsupportedConversion",
    "UnitMismatch",
    "format_exception_chain",
    "error_message",
]
