"""Error types raised by CartWise services."""
from __future__ import annotations


class CartWiseError(Exception):
    """Base class for CartWise errors."""


class DataAccessError(CartWiseError):
    """The price data store could not be read.

    Raised by price data providers on genuine I/O failure. A missing price
    observation is not a failure and is never reported with this error.
    """


__all__ = ["CartWiseError", "DataAccessError"]
