"""
Product analytics: per-product aggregation, profit derivation and ranking.

`product_analytics` is a pure function of the sale and inventory records it
is given. Every call recomputes from the full record lists.
"""

from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Optional, Sequence, get_args

from .schemas import (
    AnalyticsMetadata,
    AnalyticsResult,
    AnalyticsSummary,
    CategoryRollup,
    InventoryRecord,
    ProductMetric,
    SaleRecord,
    SortBy,
    SortOrder,
)


logger = logging.getLogger(__name__)

SORT_FIELDS: tuple[str, ...] = get_args(SortBy)
SORT_ORDERS: tuple[str, ...] = get_args(SortOrder)

SORT_KEYS: dict[str, Callable[[ProductMetric], float]] = {
    "revenue": lambda p: p.revenue,
    "quantity": lambda p: p.quantity,
    "profit": lambda p: p.profit,
    "profitMargin": lambda p: p.profit_margin,
}

LOWEST_FIRST_LABELS = {
    "quantity": "least sold",
    "revenue": "lowest revenue",
}


def round_half_away(value: float, places: int) -> float:
    """Round like a cash register: halves go away from zero."""
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def matches(value: str, needle: Optional[str]) -> bool:
    """Case-insensitive substring filter; an empty needle matches everything."""
    if not needle:
        return True
    return needle.lower() in value.lower()


def _aggregate(sales: Sequence[SaleRecord]) -> dict[str, dict]:
    # dicts keep insertion order, so products stay in first-seen order.
    grouped: dict[str, dict] = {}
    for sale in sales:
        entry = grouped.get(sale.product)
        if entry is None:
            entry = {"category": sale.category, "quantity": 0, "revenue": 0.0, "transactions": 0}
            grouped[sale.product] = entry
        elif entry["category"] != sale.category:
            logger.debug(
                "Product %r seen under categories %r and %r; keeping %r",
                sale.product,
                entry["category"],
                sale.category,
                entry["category"],
            )
        entry["quantity"] += sale.quantity
        entry["revenue"] += sale.total
        entry["transactions"] += 1
    return grouped


def _derive(product: str, entry: dict, cost: float) -> ProductMetric:
    quantity = entry["quantity"]
    revenue = entry["revenue"]
    avg_price = revenue / quantity
    profit = (avg_price - cost) * quantity
    margin = ((avg_price - cost) / avg_price) * 100 if cost > 0 and avg_price else 0.0
    return ProductMetric(
        product=product,
        category=entry["category"],
        quantity=quantity,
        revenue=revenue,
        transactions=entry["transactions"],
        avg_price=round_half_away(avg_price, 2),
        profit=round_half_away(profit, 2),
        profit_margin=round_half_away(margin, 1),
    )


def rank_products(products: Sequence[ProductMetric], sort_by: str, sort_order: str) -> list[ProductMetric]:
    """
    Order products by one metric. Python's sort is stable in both directions,
    so products with equal keys keep their first-seen order.
    """
    return sorted(products, key=SORT_KEYS[sort_by], reverse=sort_order == "desc")


def rollup_categories(products: Sequence[ProductMetric]) -> list[CategoryRollup]:
    totals: dict[str, list] = {}
    for p in products:
        bucket = totals.setdefault(p.category, [0.0, 0])
        bucket[0] += p.revenue
        bucket[1] += p.quantity
    return [
        CategoryRollup(category=category, revenue=revenue, quantity=quantity)
        for category, (revenue, quantity) in totals.items()
    ]


def best_seller_label(top: Sequence[ProductMetric], sort_by: str, sort_order: str) -> Optional[str]:
    if not top:
        return None
    name = top[0].product
    suffix = LOWEST_FIRST_LABELS.get(sort_by) if sort_order == "asc" else None
    return f"{name} ({suffix})" if suffix else name


def product_analytics(
    sales: Sequence[SaleRecord],
    inventory: Sequence[InventoryRecord],
    category: Optional[str] = None,
    top_n: int = 5,
    sort_by: str = "revenue",
    sort_order: str = "desc",
) -> AnalyticsResult:
    """
    Rank products by revenue, quantity, profit or profit margin.

    Sales are optionally narrowed by a case-insensitive category substring,
    grouped per product and joined to inventory cost by exact product name
    (cost 0 when the product is not stocked). The category rollup, totals and
    highest-margin product are computed over every grouped product, not just
    the top `top_n`. Rollup order and margin ties follow the ranked order.
    """
    if top_n < 1:
        raise ValueError(f"top_n must be >= 1, got {top_n}")
    if sort_by not in SORT_KEYS:
        raise ValueError(f"sort_by must be one of {', '.join(SORT_FIELDS)}, got {sort_by!r}")
    if sort_order not in SORT_ORDERS:
        raise ValueError(f"sort_order must be one of {', '.join(SORT_ORDERS)}, got {sort_order!r}")

    filtered = [s for s in sales if matches(s.category, category)]
    costs: dict[str, float] = {}
    for item in inventory:
        costs.setdefault(item.product, item.cost)

    products = [
        _derive(name, entry, costs.get(name, 0.0))
        for name, entry in _aggregate(filtered).items()
    ]
    ranked = rank_products(products, sort_by, sort_order)
    top_products = ranked[:top_n]

    summary = AnalyticsSummary(
        total_products=len(products),
        total_revenue=sum(p.revenue for p in products),
        best_seller=best_seller_label(top_products, sort_by, sort_order),
        highest_margin=max(ranked, key=lambda p: p.profit_margin) if ranked else None,
    )
    logger.debug(
        "Product analytics: %d sales -> %d products (category=%r, sort=%s %s)",
        len(filtered),
        len(products),
        category,
        sort_by,
        sort_order,
    )
    return AnalyticsResult(
        top_products=top_products,
        category_performance=rollup_categories(ranked),
        summary=summary,
        metadata=AnalyticsMetadata(
            sort_by=sort_by,
            sort_order=sort_order,
            is_lowest_first=sort_order == "asc",
        ),
    )
