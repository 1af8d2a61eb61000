"""Test utilities for aerossr applications::

    from aerossr.testing import TestClient
"""

from aerossr.testing.client import TestClient

__all__ = ["TestClient"]
