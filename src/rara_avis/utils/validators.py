"""
Input validation helpers for Rara Avis.

Used by the configuration loader and by the live control surface
(volume, speed, search radius).
"""

from typing import Any, Optional, Tuple


class ValidationError(Exception):
    """Raised when validation fails."""
    
    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(f"{field}: {message}" if field else message)


def _require_number(value: Any, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"must be a number, got {value!r}", field)


def validate_range(value: float, min_val: float, max_val: float, 
                   field: str = "value") -> float:
    """
    Validate that a value is within a range.
    
    Args:
        value: Value to validate
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)
        field: Field name for error messages
        
    Returns:
        The validated value
        
    Raises:
        ValidationError: If value is outside range
    """
    _require_number(value, field)
    if not min_val <= value <= max_val:
        raise ValidationError(
            f"must be between {min_val} and {max_val}, got {value}",
            field
        )
    return value


def validate_unit(value: float, field: str = "value") -> float:
    """Validate a 0.0 to 1.0 control value such as a master volume."""
    return validate_range(value, 0.0, 1.0, field)


def validate_positive(value: float, field: str = "value", 
                      allow_zero: bool = True) -> float:
    """
    Validate that a value is positive (or non-negative).
    
    Raises:
        ValidationError: If value is negative (or zero if not allowed)
    """
    _require_number(value, field)
    if allow_zero:
        if value < 0:
            raise ValidationError(f"must be non-negative, got {value}", field)
    else:
        if value <= 0:
            raise ValidationError(f"must be positive, got {value}", field)
    return value



def validate_interval(value: Any, field: str = "value") -> Tuple[float, float]:
    """
    Validate a [low, high] pair with 0 <= low <= high.
    
    Used for the random playback intervals and gain ranges.
    
    Raises:
        ValidationError: If value is not a numeric pair or is out of order
    """
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise ValidationError(f"must be a [low, high] pair, got {value!r}", field)
    low, high = value
    _require_number(low, field)
    _require_number(high, field)
    validate_range(low, 0.0, high, field)
    return (float(low), float(high))
