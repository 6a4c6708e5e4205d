"""Business rules about listing classification owned by the report layer."""

from __future__ import annotations

from typing import Any

from ..utils.coerce import to_str
from .normalizer import field_value

_RENTAL_TYPES = {"lease", "rental", "rent"}
_RENTAL_KEYWORDS = ("lease", "rental", "rent")
_KEYWORD_FIELDS = (
    "transactionType",
    "listingCategory",
    "property_type",
    "details.propertyType",
    "details.propertySubType",
)


def _has_rental_keyword(value: Any) -> bool:
    text = to_str(value).lower()
    return any(keyword in text for keyword in _RENTAL_KEYWORDS)


def is_rental_or_lease(record: Any) -> bool:
    """True when a listing is a rental or lease rather than a sale."""

    if record is None:
        return False
    if to_str(field_value(record, "type")).strip().lower() in _RENTAL_TYPES:
        return True
    if field_value(record, "leaseType"):
        return True
    if any(_has_rental_keyword(field_value(record, path)) for path in _KEYWORD_FIELDS):
        return True
    listing_class = to_str(field_value(record, "class")).lower()
    return "lease" in listing_class or "rental" in listing_class


__all__ = ["is_rental_or_lease"]
