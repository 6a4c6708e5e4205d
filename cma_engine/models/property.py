"""Pydantic and value models for listing records and report filter state."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Any, FrozenSet, Iterable, Mapping, Optional

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from ..utils.coerce import to_date, to_float, to_int, to_str


class ListingStatus(str, Enum):
    ACTIVE = "Active"
    ACTIVE_UNDER_CONTRACT = "Active Under Contract"
    PENDING = "Pending"
    CLOSED = "Closed"

    @classmethod
    def from_string(cls, value: Any) -> Optional["ListingStatus"]:
        """Map feed spellings and MLS short codes onto the closed status set."""

        if isinstance(value, cls):
            return value
        text = to_str(value).strip().lower().replace("_", " ").replace("-", " ")
        if not text:
            return None
        return _STATUS_ALIASES.get(" ".join(text.split()))


_STATUS_ALIASES = {
    "active": ListingStatus.ACTIVE,
    "a": ListingStatus.ACTIVE,
    "new": ListingStatus.ACTIVE,
    "active under contract": ListingStatus.ACTIVE_UNDER_CONTRACT,
    "under contract": ListingStatus.ACTIVE_UNDER_CONTRACT,
    "auc": ListingStatus.ACTIVE_UNDER_CONTRACT,
    "pending": ListingStatus.PENDING,
    "u": ListingStatus.PENDING,
    "sc": ListingStatus.PENDING,
    "closed": ListingStatus.CLOSED,
    "sold": ListingStatus.CLOSED,
    "s": ListingStatus.CLOSED,
    "c": ListingStatus.CLOSED,
}


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    ACTIVE_UNDER_CONTRACT = "active-under-contract"
    PENDING = "pending"
    CLOSED = "closed"

    @property
    def listing_status(self) -> Optional[ListingStatus]:
        return _FILTER_STATUS.get(self)

    @classmethod
    def from_string(cls, value: Any) -> "StatusFilter":
        if isinstance(value, cls):
            return value
        text = to_str(value).strip().lower().replace("_", "-").replace(" ", "-")
        text = {"sold": "closed", "under-contract": "active-under-contract", "": "all"}.get(text, text)
        return cls(text)


_FILTER_STATUS = {
    StatusFilter.ACTIVE: ListingStatus.ACTIVE,
    StatusFilter.ACTIVE_UNDER_CONTRACT: ListingStatus.ACTIVE_UNDER_CONTRACT,
    StatusFilter.PENDING: ListingStatus.PENDING,
    StatusFilter.CLOSED: ListingStatus.CLOSED,
}


class PropertyRecord(BaseModel):
    """A subject or comparable listing as delivered by an MLS feed.

    Only the common attributes are declared. Anything else a feed sends
    (``soldPrice``, ``lot.acres``, ``simpleDaysOnMarket``...) is kept as an
    extra and resolved by :mod:`cma_engine.services.normalizer`.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    id: str
    status: Optional[str] = None
    list_price: Optional[float] = None
    close_price: Optional[float] = None
    living_area: Optional[float] = None
    lot_size_square_feet: Optional[float] = None
    lot_size_acres: Optional[float] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    days_on_market: Optional[int] = None
    year_built: Optional[int] = None
    list_date: Optional[date] = None
    close_date: Optional[date] = None
    distance: Optional[float] = None
    property_type: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v):
        return to_str(v).strip()

    @field_validator(
        "list_price",
        "close_price",
        "living_area",
        "lot_size_square_feet",
        "lot_size_acres",
        "bedrooms",
        "bathrooms",
        "distance",
        mode="before",
    )
    @classmethod
    def _coerce_float(cls, v):
        return to_float(v)

    @field_validator("days_on_market", "year_built", mode="before")
    @classmethod
    def _coerce_int(cls, v):
        return to_int(v)

    @field_validator("list_date", "close_date", mode="before")
    @classmethod
    def _coerce_date(cls, v):
        return to_date(v)

    @field_validator("status", "property_type", mode="before")
    @classmethod
    def _coerce_text(cls, v):
        text = to_str(v).strip()
        return text or None

    @classmethod
    def from_feed(cls, row: Mapping[str, Any]) -> "PropertyRecord":
        """Build a record from a raw feed mapping, falling back to MLS ids."""

        payload = dict(row)
        if not to_str(payload.get("id")).strip():
            payload["id"] = payload.get("mlsNumber") or payload.get("listingId") or payload.get("listingKey") or ""
        return cls.model_validate(payload)

    def canonical_json(self) -> str:
        return json.dumps(self.model_dump(mode="json", by_alias=True), sort_keys=True, default=str)


@dataclass(frozen=True)
class FilterState:
    """Status filter plus manually excluded listing ids.

    Instances are immutable; each "mutation" returns a new state, so derived
    statistics memoised under the previous state are never served for the new one.
    """

    status_filter: StatusFilter = StatusFilter.ALL
    excluded_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_values(cls, status_filter: Any = StatusFilter.ALL, excluded_ids: Iterable[Any] = ()) -> "FilterState":
        return cls(
            status_filter=StatusFilter.from_string(status_filter),
            excluded_ids=frozenset(to_str(item) for item in excluded_ids),
        )

    def is_excluded(self, record_id: str) -> bool:
        return record_id in self.excluded_ids

    def exclude(self, record_id: str) -> "FilterState":
        return replace(self, excluded_ids=self.excluded_ids | {record_id})

    def include(self, record_id: str) -> "FilterState":
        return replace(self, excluded_ids=self.excluded_ids - {record_id})

    def toggle(self, record_id: str) -> "FilterState":
        if self.is_excluded(record_id):
            return self.include(record_id)
        return self.exclude(record_id)

    def with_status(self, status_filter: Any) -> "FilterState":
        return replace(self, status_filter=StatusFilter.from_string(status_filter))


__all__ = ["ListingStatus", "StatusFilter", "PropertyRecord", "FilterState"]
