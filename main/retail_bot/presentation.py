from __future__ import annotations

from typing import Any, Optional


def _number(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _currency(value: Any) -> str:
    return f"${_number(value):,.2f}"


def _margin(metric: Optional[dict[str, Any]]) -> str:
    margin = _number((metric or {}).get("profitMargin"))
    return f"{margin:.1f}%" if margin else "0%"


def best_seller_caption(metadata: Optional[dict[str, Any]]) -> str:
    metadata = metadata or {}
    if not metadata.get("isLowestFirst"):
        return "Best Seller"
    sort_by = metadata.get("sortBy")
    if sort_by == "quantity":
        return "Least Sold"
    if sort_by == "revenue":
        return "Lowest Revenue"
    return "Lowest Performer"


def ranking_heading(metadata: Optional[dict[str, Any]]) -> str:
    metadata = metadata or {}
    sort_by = metadata.get("sortBy") or "revenue"
    if metadata.get("isLowestFirst"):
        return f"Lowest Performing Products (by {sort_by})"
    return f"Top Performing Products (by {sort_by})"


def render_product_analytics_card(data: dict[str, Any], max_rows: int = 5) -> str:
    """
    Render a product analytics payload as a Markdown dashboard card.

    Works on the serialized payload, so it tolerates an error payload or
    missing fields: absent numbers show as 0 and an absent margin as "0%".
    """
    if data.get("error"):
        return f"### Product Performance Analytics\n\n_{data['error']}_"

    summary = data.get("summary") or {}
    metadata = data.get("metadata")
    products = data.get("topProducts") or []
    categories = data.get("categoryPerformance") or []

    lines = [
        "### Product Performance Analytics",
        "",
        "| Total Revenue | Products | " + best_seller_caption(metadata) + " | Highest Margin |",
        "|---|---|---|---|",
        "| {} | {} | {} | {} |".format(
            _currency(summary.get("totalRevenue")),
            int(_number(summary.get("totalProducts"))),
            summary.get("bestSeller") or "-",
            _margin(summary.get("highestMargin")),
        ),
        "",
        "#### " + ranking_heading(metadata),
        "",
    ]

    if products:
        lines += ["| # | Product | Category | Revenue | Units | Margin |", "|---|---|---|---|---|---|"]
        for rank, product in enumerate(products[:max_rows], start=1):
            lines.append(
                f"| {rank} | {product.get('product', '')} | {product.get('category', '')} "
                f"| {_currency(product.get('revenue'))} | {int(_number(product.get('quantity')))} "
                f"| {_margin(product)} |"
            )
    else:
        lines.append("_No products match this query._")

    if categories:
        lines += ["", "#### Category Performance", "", "| Category | Revenue | Units |", "|---|---|---|"]
        for row in categories:
            lines.append(
                f"| {row.get('category', '')} | {_currency(row.get('revenue'))} "
                f"| {int(_number(row.get('quantity')))} |"
            )

    return "\n".join(lines)
