"""Resolve the working subset of listings from a status filter and exclusions."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from ..models.property import FilterState, ListingStatus, PropertyRecord, StatusFilter
from ..utils.logging import get_logger, id_list, kv
from .normalizer import listing_status

LOGGER = get_logger("services.inclusion")

RentalPredicate = Callable[[PropertyRecord], bool]

_STATUS_FILTER = {status_filter.listing_status: status_filter for status_filter in StatusFilter if status_filter.listing_status}


def partition_by_status(
    records: Iterable[PropertyRecord],
    rental_predicate: Optional[RentalPredicate] = None,
) -> Dict[StatusFilter, List[PropertyRecord]]:
    """Split records into one list per :class:`StatusFilter`, input order kept.

    Rentals identified by ``rental_predicate`` are dropped from the closed
    partition only; they remain in ``StatusFilter.ALL``.
    """

    partitions: Dict[StatusFilter, List[PropertyRecord]] = {status_filter: [] for status_filter in StatusFilter}
    rentals: List[str] = []
    for record in records:
        partitions[StatusFilter.ALL].append(record)
        status = listing_status(record)
        if status is None:
            continue
        if status is ListingStatus.CLOSED and rental_predicate is not None and rental_predicate(record):
            rentals.append(record.id)
            continue
        partitions[_STATUS_FILTER[status]].append(record)

    if rentals:
        LOGGER.info(kv("rentals_filtered", count=len(rentals), ids=id_list(rentals)))
    return partitions


def _without_excluded(records: Iterable[PropertyRecord], filter_state: FilterState) -> List[PropertyRecord]:
    return [record for record in records if not filter_state.is_excluded(record.id)]


def resolve_included(
    records: Iterable[PropertyRecord],
    filter_state: FilterState,
    rental_predicate: Optional[RentalPredicate] = None,
) -> List[PropertyRecord]:
    """Records in the filter's status partition that are not manually excluded."""

    partitions = partition_by_status(records, rental_predicate)
    return _without_excluded(partitions[filter_state.status_filter], filter_state)


def included_closed_sales(
    records: Iterable[PropertyRecord],
    filter_state: FilterState,
    rental_predicate: Optional[RentalPredicate] = None,
) -> List[PropertyRecord]:
    """Closed, non-rental, non-excluded sales regardless of the status filter."""

    return resolve_included(records, filter_state.with_status(StatusFilter.CLOSED), rental_predicate)


def included_by_status(
    records: Iterable[PropertyRecord],
    filter_state: FilterState,
    rental_predicate: Optional[RentalPredicate] = None,
) -> Dict[StatusFilter, List[PropertyRecord]]:
    """Every partition with exclusions applied, for per-status counts."""

    partitions = partition_by_status(records, rental_predicate)
    return {status_filter: _without_excluded(rows, filter_state) for status_filter, rows in partitions.items()}


__all__ = [
    "RentalPredicate",
    "partition_by_status",
    "resolve_included",
    "included_closed_sales",
    "included_by_status",
]
