from typing import Any, Dict, List, Optional, Type, Union

import numpy as np


def validate_type(value: Any, expected_type: Union[Type, tuple]) -> bool:
    """Validate value is of expected type."""
    return isinstance(value, expected_type)


def validate_range(value: float, min_val: Optional[float] = None,
                   max_val: Optional[float] = None, inclusive: bool = True) -> bool:
    """Validate numeric value is within range."""
    if not np.isfinite(value):
        return False
    if min_val is not None and (value < min_val if inclusive else value <= min_val):
        return False
    if max_val is not None and (value > max_val if inclusive else value >= max_val):
        return False
    return True


def validate_vector(vector: Any, size: int = 3) -> bool:
    """Validate a finite, non-zero vector of the given size."""
    arr = np.asarray(vector, dtype=float)
    if arr.shape != (size,):
        return False
    if not np.all(np.isfinite(arr)):
        return False
    return bool(np.linalg.norm(arr) > 0.0)


def validate_dict_keys(data: Dict, allowed_keys: List[str]) -> List[str]:
    """Return the keys of data that are not in allowed_keys."""
    return sorted(str(key) for key in data if key not in allowed_keys)
