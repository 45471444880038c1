"""Test utilities for roost routers::

    from roost.testing import RouterClient
"""

from roost.testing.client import DispatchResult, RouterClient

__all__ = [
    "DispatchResult",
    "RouterClient",
]
