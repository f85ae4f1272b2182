"""SQLite store for users, food listings and claims."""

from .claims import CLAIM_STATUSES, ClaimDB
from .listings import ListingDB, listing_from_row
from .schema import ensure_schema
from .users import FOOD_PREFERENCES, USER_ROLES, UserDB

__all__ = [
    "CLAIM_STATUSES",
    "ClaimDB",
    "FOOD_PREFERENCES",
    "ListingDB",
    "USER_ROLES",
    "UserDB",
    "ensure_schema",
    "listing_from_row",
]
