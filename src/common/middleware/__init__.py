"""Common middleware for CiviRemote."""

from .observability import StructlogContextMiddleware

__all__ = ["StructlogContextMiddleware"]
