"""Kitchen load scaling policy.

The multiplier is a step function of the number of active orders: flat
within each band of :data:`LOAD_SCALING_THRESHOLD` orders, growing by
``LOAD_SCALING_MULTIPLIER - 1`` per band and saturating at
:data:`MAX_SCALING_MULTIPLIER`.

=============  ==========
active orders  multiplier
=============  ==========
0-4            1.0
5-9            1.2
10-14          1.4
50+            3.0
=============  ==========
"""

from __future__ import annotations

LOAD_SCALING_THRESHOLD = 5
LOAD_SCALING_MULTIPLIER = 1.2
MAX_SCALING_MULTIPLIER = 3.0
HIGH_LOAD_MULTIPLIER = 2.0


def load_multiplier(active_orders: int) -> float:
    """Return the prep-time multiplier for ``active_orders``."""
    bands = max(active_orders, 0) // LOAD_SCALING_THRESHOLD
    multiplier = 1.0 + bands * (LOAD_SCALING_MULTIPLIER - 1.0)
    # Rounding keeps band values exact (1.2, 1.4, ...) despite float steps.
    return min(round(multiplier, 6), MAX_SCALING_MULTIPLIER)


def is_high_load(multiplier: float) -> bool:
    return multiplier > HIGH_LOAD_MULTIPLIER
