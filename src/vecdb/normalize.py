from __future__ import annotations

import numbers
from typing import List, Sequence


def normalize_vector(vector: Sequence[float], dimension: int) -> List[float]:
    """Pad with ``0.0`` or truncate ``vector`` to exactly ``dimension`` items.

    Real numbers (numpy scalars included) become Python floats; NaN and
    infinity pass through. Anything else is copied as-is and left for the
    storage layer to reject.
    """
    values = [float(v) if isinstance(v, numbers.Real) else v for v in vector[:dimension]]
    if len(values) < dimension:
        values.extend([0.0] * (dimension - len(values)))
    return values
