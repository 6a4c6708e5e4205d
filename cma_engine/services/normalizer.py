"""Canonical field extraction for listing records from heterogeneous MLS feeds.

Every canonical concept is resolved through an ordered precedence table of
field paths. Declared :class:`PropertyRecord` attributes use their snake_case
names; feed-specific extras keep the feed's spelling, and nested objects are
addressed with dotted paths (``lot.acres``). The first value that coerces to a
usable number wins. Nothing here raises: a missing or malformed field resolves
to ``None`` (or ``0.0`` for :func:`price`, whose callers need a number).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from ..models.property import ListingStatus, PropertyRecord
from ..utils.coerce import positive, to_date, to_float
from ..utils.normalize import round_half_up

SQFT_PER_ACRE = 43_560.0

FieldPath = str

CLOSE_PRICE_FIELDS: Tuple[FieldPath, ...] = ("close_price", "soldPrice", "closePrice", "sold_price")
LIST_PRICE_FIELDS: Tuple[FieldPath, ...] = ("list_price", "listPrice", "price")
LIVING_AREA_FIELDS: Tuple[FieldPath, ...] = ("living_area", "sqft", "squareFeet", "sqFt")
ACRES_FIELDS: Tuple[FieldPath, ...] = ("lot_size_acres", "lot.acres", "acres", "lotAcres")
LOT_SQFT_FIELDS: Tuple[FieldPath, ...] = ("lot_size_square_feet",)
ALT_LOT_SQFT_FIELDS: Tuple[FieldPath, ...] = ("lot.squareFeet", "lotSizeSqFt", "lotSquareFeet")
PRICE_PER_SQFT_FIELDS: Tuple[FieldPath, ...] = ("pricePerSqft", "pricePerSqFt", "price_per_sqft")
PRICE_PER_ACRE_FIELDS: Tuple[FieldPath, ...] = ("pricePerAcre", "price_per_acre")
DOM_FIELDS: Tuple[FieldPath, ...] = ("simpleDaysOnMarket", "days_on_market", "dom", "cumulativeDaysOnMarket")
BEDROOM_FIELDS: Tuple[FieldPath, ...] = ("bedrooms", "bedroomsTotal", "beds")
BATHROOM_FIELDS: Tuple[FieldPath, ...] = ("bathrooms", "bathroomsTotalInteger", "bathroomsTotal", "baths")
YEAR_BUILT_FIELDS: Tuple[FieldPath, ...] = ("year_built", "details.yearBuilt")
STATUS_FIELDS: Tuple[FieldPath, ...] = ("status", "standardStatus", "lastStatus")
LIST_DATE_FIELDS: Tuple[FieldPath, ...] = ("list_date", "listingContractDate", "listDate")
CLOSE_DATE_FIELDS: Tuple[FieldPath, ...] = ("close_date", "soldDate", "closeDate")


@dataclass(frozen=True)
class NormalizedFields:
    """Canonical values for one record; ``None`` means unavailable."""

    record_id: str
    status: Optional[ListingStatus]
    price: float
    list_price: Optional[float]
    close_price: Optional[float]
    size_sqft: Optional[float]
    acres: Optional[float]
    lot_size_sqft: Optional[float]
    price_per_sqft: Optional[float]
    price_per_acre: Optional[float]
    days_on_market: Optional[float]
    bedrooms: Optional[float]
    bathrooms: Optional[float]
    year_built: Optional[float]
    list_date: Optional[date]
    close_date: Optional[date]


# ---------------------------------------------------------------------------
# Field lookup
# ---------------------------------------------------------------------------


def field_value(record: Any, path: FieldPath) -> Any:
    """Read a possibly dotted field path from a record, mapping or plain object."""

    current = record
    for part in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def first_of(record: Any, paths: Sequence[FieldPath], coerce: Callable[[Any], Any]) -> Any:
    for path in paths:
        value = coerce(field_value(record, path))
        if value is not None:
            return value
    return None


def _non_negative(value: Any) -> Optional[float]:
    result = to_float(value)
    if result is None or result < 0:
        return None
    return result


# ---------------------------------------------------------------------------
# Canonical extractors
# ---------------------------------------------------------------------------


def listing_status(record: PropertyRecord) -> Optional[ListingStatus]:
    return first_of(record, STATUS_FIELDS, ListingStatus.from_string)


def close_price(record: PropertyRecord) -> Optional[float]:
    return first_of(record, CLOSE_PRICE_FIELDS, positive)


def list_price(record: PropertyRecord) -> Optional[float]:
    return first_of(record, LIST_PRICE_FIELDS, positive)


def price(record: PropertyRecord) -> float:
    """Close price for closed sales, list price otherwise; ``0.0`` when neither exists."""

    if listing_status(record) is ListingStatus.CLOSED:
        sold = close_price(record)
        if sold is not None:
            return sold
    return list_price(record) or 0.0


def size_sqft(record: PropertyRecord) -> Optional[float]:
    return first_of(record, LIVING_AREA_FIELDS, positive)


def lot_acres(record: PropertyRecord) -> Optional[float]:
    acres = first_of(record, ACRES_FIELDS, positive)
    if acres is not None:
        return acres
    square_feet = first_of(record, LOT_SQFT_FIELDS + ALT_LOT_SQFT_FIELDS, positive)
    if square_feet is not None:
        return square_feet / SQFT_PER_ACRE
    return None


def lot_size_sqft(record: PropertyRecord) -> Optional[float]:
    square_feet = first_of(record, LOT_SQFT_FIELDS + ALT_LOT_SQFT_FIELDS, positive)
    if square_feet is not None:
        return square_feet
    acres = first_of(record, ACRES_FIELDS, positive)
    if acres is not None:
        return acres * SQFT_PER_ACRE
    return None


def _price_per_unit(record: PropertyRecord, explicit_fields: Sequence[FieldPath], units: Optional[float]) -> Optional[float]:
    explicit = first_of(record, explicit_fields, positive)
    if explicit is not None:
        return explicit
    amount = price(record)
    if not units or amount <= 0:
        return None
    result = float(round_half_up(amount / units))
    return result if result > 0 else None


def price_per_sqft(record: PropertyRecord) -> Optional[float]:
    return _price_per_unit(record, PRICE_PER_SQFT_FIELDS, size_sqft(record))


def price_per_acre(record: PropertyRecord) -> Optional[float]:
    return _price_per_unit(record, PRICE_PER_ACRE_FIELDS, lot_acres(record))


def days_on_market(record: PropertyRecord) -> Optional[float]:
    return first_of(record, DOM_FIELDS, _non_negative)


def bedrooms(record: PropertyRecord) -> Optional[float]:
    return first_of(record, BEDROOM_FIELDS, _non_negative)


def bathrooms(record: PropertyRecord) -> Optional[float]:
    return first_of(record, BATHROOM_FIELDS, _non_negative)


def year_built(record: PropertyRecord) -> Optional[float]:
    return first_of(record, YEAR_BUILT_FIELDS, positive)


def list_date(record: PropertyRecord) -> Optional[date]:
    return first_of(record, LIST_DATE_FIELDS, to_date)


def close_date(record: PropertyRecord) -> Optional[date]:
    return first_of(record, CLOSE_DATE_FIELDS, to_date)


def normalize(record: PropertyRecord) -> NormalizedFields:
    return NormalizedFields(
        record_id=record.id,
        status=listing_status(record),
        price=price(record),
        list_price=list_price(record),
        close_price=close_price(record),
        size_sqft=size_sqft(record),
        acres=lot_acres(record),
        lot_size_sqft=lot_size_sqft(record),
        price_per_sqft=price_per_sqft(record),
        price_per_acre=price_per_acre(record),
        days_on_market=days_on_market(record),
        bedrooms=bedrooms(record),
        bathrooms=bathrooms(record),
        year_built=year_built(record),
        list_date=list_date(record),
        close_date=close_date(record),
    )


__all__ = [
    "SQFT_PER_ACRE",
    "NormalizedFields",
    "field_value",
    "first_of",
    "listing_status",
    "close_price",
    "list_price",
    "price",
    "size_sqft",
    "lot_acres",
    "lot_size_sqft",
    "price_per_sqft",
    "price_per_acre",
    "days_on_market",
    "bedrooms",
    "bathrooms",
    "year_built",
    "list_date",
    "close_date",
    "normalize",
]
