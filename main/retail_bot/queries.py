from __future__ import annotations

import datetime as dt
from typing import Any, Optional, Sequence

from .analytics import matches, round_half_away
from .schemas import CustomerRecord, InventoryRecord, SaleRecord, StoreRecord


def _money(value: float) -> str:
    return f"{round_half_away(value, 2):.2f}"


def _within(day: dt.date, start: Optional[dt.date], end: Optional[dt.date]) -> bool:
    if start and day < start:
        return False
    if end and day > end:
        return False
    return True


def sales_data(
    sales: Sequence[SaleRecord],
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
    store: Optional[str] = None,
    product: Optional[str] = None,
    category: Optional[str] = None,
) -> dict[str, Any]:
    """Sales lines matching every given filter, plus revenue/quantity totals."""
    rows = [
        s
        for s in sales
        if _within(s.date, start_date, end_date)
        and matches(s.store, store)
        and matches(s.product, product)
        and matches(s.category, category)
    ]
    total_revenue = sum(s.total for s in rows)
    total_quantity = sum(s.quantity for s in rows)
    average = total_revenue / len(rows) if rows else 0.0
    return {
        "sales": [s.model_dump(mode="json", exclude_none=True) for s in rows],
        "summary": {
            "totalRevenue": _money(total_revenue),
            "totalQuantity": total_quantity,
            "numberOfTransactions": len(rows),
            "averageOrderValue": _money(average),
        },
    }


def department_sales(
    sales: Sequence[SaleRecord],
    day: Optional[dt.date] = None,
    store: Optional[str] = None,
) -> dict[str, Any]:
    """
    Sales rolled up per department, where a department is a product category.
    Without a day the rollup spans every recorded date.
    """
    rows = [s for s in sales if (day is None or s.date == day) and matches(s.store, store)]
    departments: dict[str, dict[str, Any]] = {}
    for s in rows:
        entry = departments.setdefault(
            s.category, {"department": s.category, "sales": 0.0, "quantity": 0, "transactions": 0}
        )
        entry["sales"] += s.total
        entry["quantity"] += s.quantity
        entry["transactions"] += 1

    ranked = sorted(departments.values(), key=lambda d: round_half_away(d["sales"], 2), reverse=True)
    total = sum(d["sales"] for d in ranked)
    return {
        "date": day.isoformat() if day else None,
        "departments": [{**d, "sales": _money(d["sales"])} for d in ranked],
        "summary": {
            "totalSales": _money(total),
            "numberOfDepartments": len(ranked),
            "topDepartment": ranked[0]["department"] if ranked else None,
        },
    }


def format_inventory_report(
    inventory: Sequence[InventoryRecord],
    low_stock: Sequence[InventoryRecord],
    total_value: float,
) -> str:
    lines = ["Inventory Status Report:", "", f"CURRENT INVENTORY ({len(inventory)} products):"]
    for item in inventory:
        lines.append(f"- {item.product} ({item.category}): {item.current_stock} units in stock")
        lines.append(
            f"    Reorder point: {item.reorder_point} | Cost: ${item.cost:.2f} each"
            f" | Value: ${item.stock_value:.2f}"
        )

    lines += ["", f"LOW STOCK ALERTS ({len(low_stock)} items):"]
    if low_stock:
        lines += [f"- {i.product}: {i.current_stock} units (reorder at {i.reorder_point})" for i in low_stock]
    else:
        lines.append("- No items currently low in stock")

    lines += [
        "",
        "INVENTORY SUMMARY:",
        f"- Total Products: {len(inventory)}",
        f"- Total Inventory Value: ${total_value:.2f}",
        f"- Items Needing Restock: {len(low_stock)}",
    ]
    return "\n".join(lines)


def inventory_status(
    inventory: Sequence[InventoryRecord],
    category: Optional[str] = None,
    low_stock_only: bool = False,
) -> dict[str, Any]:
    """
    Stock levels for the matching products. Low-stock alerts always cover the
    whole inventory so a category question still surfaces every restock need.
    """
    items = [i for i in inventory if matches(i.category, category)]
    if low_stock_only:
        items = [i for i in items if i.is_low_stock]
    low_stock = [i for i in inventory if i.is_low_stock]
    total_value = sum(i.stock_value for i in items)
    return {
        "inventory": [i.model_dump(mode="json") for i in items],
        "lowStockItems": [
            {"product": i.product, "currentStock": i.current_stock, "reorderPoint": i.reorder_point}
            for i in low_stock
        ],
        "summary": {
            "totalProducts": len(items),
            "totalValue": _money(total_value),
            "itemsNeedingRestock": len(low_stock),
        },
        "report": format_inventory_report(items, low_stock, total_value),
    }


def customer_analytics(
    customers: Sequence[CustomerRecord],
    loyalty_tier: Optional[str] = None,
    min_purchases: Optional[float] = None,
    top_n: int = 5,
) -> dict[str, Any]:
    selected = list(customers)
    if loyalty_tier:
        selected = [c for c in selected if c.loyalty_tier.lower() == loyalty_tier.lower()]
    if min_purchases is not None:
        selected = [c for c in selected if c.total_purchases >= min_purchases]

    distribution: dict[str, int] = {}
    for c in customers:
        distribution[c.loyalty_tier] = distribution.get(c.loyalty_tier, 0) + 1

    # Leaderboard spans every customer, independent of the filters above.
    top = sorted(customers, key=lambda c: c.total_purchases, reverse=True)[:top_n]
    total_revenue = sum(c.total_purchases for c in selected)
    return {
        "customers": [c.model_dump(mode="json", exclude_none=True) for c in selected],
        "analytics": {
            "totalCustomers": len(selected),
            "totalRevenue": _money(total_revenue),
            "averageCustomerValue": _money(total_revenue / len(selected) if selected else 0.0),
            "loyaltyDistribution": distribution,
            "topCustomers": [
                {"name": c.name, "totalPurchases": c.total_purchases, "tier": c.loyalty_tier} for c in top
            ],
        },
    }


def _store_report(
    store: StoreRecord,
    sales: Sequence[SaleRecord],
    start_date: Optional[dt.date],
    end_date: Optional[dt.date],
) -> tuple[float, dict[str, Any]]:
    store_sales = [s for s in sales if s.store == store.name and _within(s.date, start_date, end_date)]
    revenue = sum(s.total for s in store_sales)
    transactions = len(store_sales)

    per_product: dict[str, dict[str, Any]] = {}
    for s in store_sales:
        entry = per_product.setdefault(s.product, {"product": s.product, "quantity": 0, "revenue": 0.0})
        entry["quantity"] += s.quantity
        entry["revenue"] += s.total
    top_products = sorted(per_product.values(), key=lambda p: p["revenue"], reverse=True)[:3]

    achievement = (revenue / store.monthly_target) * 100 if store.monthly_target else 0.0
    return revenue, {
        "store": store.name,
        "manager": store.manager,
        "monthlyTarget": store.monthly_target,
        "performance": {
            "revenue": _money(revenue),
            "transactions": transactions,
            "avgTransaction": _money(revenue / transactions if transactions else 0.0),
            "targetAchievement": f"{achievement:.1f}%",
        },
        "topProducts": top_products,
    }


def store_performance(
    stores: Sequence[StoreRecord],
    sales: Sequence[SaleRecord],
    store_name: Optional[str] = None,
    start_date: Optional[dt.date] = None,
    end_date: Optional[dt.date] = None,
) -> dict[str, Any]:
    """Per-store revenue against monthly target, best performer first."""
    reports = [
        _store_report(store, sales, start_date, end_date)
        for store in stores
        if matches(store.name, store_name)
    ]
    # Ranked on the reported two-decimal revenue.
    reports.sort(key=lambda pair: round_half_away(pair[0], 2), reverse=True)
    return {
        "storePerformance": [report for _, report in reports],
        "summary": {
            "totalRevenue": _money(sum(revenue for revenue, _ in reports)),
            "bestPerformer": reports[0][1]["store"] if reports else None,
        },
    }
