from __future__ import annotations

import math


class UsageValidationError(ValueError):
    pass


def validate_usage(value: float, capacity: float) -> float:
    try:
        usage = float(value)
    except (TypeError, ValueError) as exc:
        raise UsageValidationError("Usage must be a number") from exc
    if not math.isfinite(usage):
        raise UsageValidationError("Usage must be a finite number")
    if usage < 0 or usage > capacity:
        raise UsageValidationError(f"Usage must be between 0 and {capacity:g}")
    return usage
