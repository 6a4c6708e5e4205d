"""Calendar-month buckets of closed sales and period-over-period change."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from ..models.property import PropertyRecord
from ..utils.normalize import pct_change
from . import normalizer


@dataclass(frozen=True)
class TrendPoint:
    month_key: str
    average_price: float
    sale_count: int
    min_price: float
    max_price: float


def sales_frame(closed_sales: Iterable[PropertyRecord]) -> pd.DataFrame:
    """One row per sale with a close date and a positive close price."""

    rows = []
    for record in closed_sales:
        closed_on = normalizer.close_date(record)
        sold_for = normalizer.close_price(record)
        if closed_on is None or sold_for is None:
            continue
        rows.append({"id": record.id, "close_date": pd.Timestamp(closed_on), "close_price": float(sold_for)})
    return pd.DataFrame(rows, columns=["id", "close_date", "close_price"])


def monthly_trend(closed_sales: Iterable[PropertyRecord]) -> List[TrendPoint]:
    """Group closed sales by close month, oldest month first.

    Sales missing a close date or a positive close price are left out of this
    aggregation only.
    """

    df = sales_frame(closed_sales)
    if df.empty:
        return []

    df["month"] = df["close_date"].dt.to_period("M")
    grouped = (
        df.groupby("month", sort=True)["close_price"]
        .agg(["mean", "count", "min", "max"])
        .sort_index()
    )
    return [
        TrendPoint(
            month_key=str(month),
            average_price=float(row["mean"]),
            sale_count=int(row["count"]),
            min_price=float(row["min"]),
            max_price=float(row["max"]),
        )
        for month, row in grouped.iterrows()
    ]


def period_change_pct(points: Sequence[TrendPoint]) -> Optional[float]:
    """Change from the first to the last bucket; ``None`` with fewer than two buckets."""

    if len(points) < 2:
        return None
    return pct_change(points[-1].average_price, points[0].average_price)


__all__ = ["TrendPoint", "sales_frame", "monthly_trend", "period_change_pct"]
