"""Stock and identity-transition policies"""

from enum import Enum

from .errors import StockExceededError


class StockPolicy(str, Enum):
    """What to do when a requested quantity is above current stock"""
    CLAMP = "clamp"
    REJECT = "reject"


class MergePolicy(str, Enum):
    """What happens to a guest cart when the shopper signs in"""
    DISCARD = "discard"
    MERGE = "merge"
    REPLACE = "replace"


def resolve_quantity(
    product_id: str,
    requested: int,
    available: int,
    policy: StockPolicy = StockPolicy.CLAMP,
) -> int:
    """
    Bound a requested line quantity by the units available.

    Under CLAMP the excess is dropped silently; under REJECT a
    StockExceededError is raised instead.
    """
    available = max(available, 0)
    if requested <= available:
        return requested
    if policy == StockPolicy.REJECT:
        raise StockExceededError(product_id, requested, available)
    return available
