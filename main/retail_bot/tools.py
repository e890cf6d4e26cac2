from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .analytics import product_analytics
from .data import DataSource, DataUnavailableError
from .queries import customer_analytics, department_sales, inventory_status, sales_data, store_performance
from .schemas import RetailDataset, SortBy, SortOrder


logger = logging.getLogger(__name__)

LOAD_ERROR = {"error": "Failed to load data"}


class _Params(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SalesDataParams(_Params):
    start_date: Optional[dt.date] = Field(default=None, alias="startDate", description="Start date (YYYY-MM-DD) - optional")
    end_date: Optional[dt.date] = Field(default=None, alias="endDate", description="End date (YYYY-MM-DD) - optional")
    store: Optional[str] = Field(default=None, description="Store name")
    product: Optional[str] = Field(default=None, description="Product name")
    category: Optional[str] = Field(default=None, description="Product category")


class DepartmentSalesParams(_Params):
    date: Optional[dt.date] = Field(
        default=None, description="Date in YYYY-MM-DD format - optional, all dates when omitted"
    )
    store: Optional[str] = Field(default=None, description="Store name")


class InventoryStatusParams(_Params):
    category: Optional[str] = Field(default=None, description="Filter by product category")
    low_stock_only: bool = Field(default=False, alias="lowStockOnly", description="Show only low stock items")


class CustomerAnalyticsParams(_Params):
    loyalty_tier: Optional[str] = Field(
        default=None, alias="loyaltyTier", description="Filter by loyalty tier (Gold, Silver, Bronze)"
    )
    min_purchases: Optional[float] = Field(
        default=None, alias="minPurchases", ge=0, description="Minimum total purchase amount"
    )


class DateRange(_Params):
    start: dt.date = Field(..., description="Start date (YYYY-MM-DD)")
    end: dt.date = Field(..., description="End date (YYYY-MM-DD)")


class StorePerformanceParams(_Params):
    store_name: Optional[str] = Field(default=None, alias="storeName", description="Specific store name")
    date_range: Optional[DateRange] = Field(default=None, alias="dateRange")


class ProductAnalyticsParams(_Params):
    category: Optional[str] = Field(default=None, description="Filter by category")
    top_n: int = Field(default=5, ge=1, alias="topN", description="Number of products to return")
    sort_by: SortBy = Field(
        default="revenue",
        alias="sortBy",
        description="Sort products by: revenue, quantity, profit, or profitMargin",
    )
    sort_order: SortOrder = Field(
        default="desc",
        alias="sortOrder",
        description="Sort order: desc for highest first, asc for lowest first",
    )


def _run_sales(data: RetailDataset, p: SalesDataParams) -> dict[str, Any]:
    return sales_data(data.sales, p.start_date, p.end_date, p.store, p.product, p.category)


def _run_departments(data: RetailDataset, p: DepartmentSalesParams) -> dict[str, Any]:
    return department_sales(data.sales, p.date, p.store)


def _run_inventory(data: RetailDataset, p: InventoryStatusParams) -> dict[str, Any]:
    return inventory_status(data.inventory, p.category, p.low_stock_only)


def _run_customers(data: RetailDataset, p: CustomerAnalyticsParams) -> dict[str, Any]:
    return customer_analytics(data.customers, p.loyalty_tier, p.min_purchases)


def _run_stores(data: RetailDataset, p: StorePerformanceParams) -> dict[str, Any]:
    start = p.date_range.start if p.date_range else None
    end = p.date_range.end if p.date_range else None
    return store_performance(data.stores, data.sales, p.store_name, start, end)


def _run_products(data: RetailDataset, p: ProductAnalyticsParams) -> dict[str, Any]:
    result = product_analytics(data.sales, data.inventory, p.category, p.top_n, p.sort_by, p.sort_order)
    return result.to_payload()


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    params: type[_Params]
    handler: Callable[[RetailDataset, Any], dict[str, Any]]

    def schema(self) -> dict[str, Any]:
        """Function-calling schema in the shape chat completion APIs expect."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.params.model_json_schema(by_alias=True),
            },
        }


TOOLS: tuple[Tool, ...] = (
    Tool(
        name="getSalesData",
        description=(
            "Get sales data with optional filters by date range, store, product, or category. "
            "If no dates provided, returns all available data."
        ),
        params=SalesDataParams,
        handler=_run_sales,
    ),
    Tool(
        name="getDepartmentSales",
        description="Get sales for every department (product category), for one date or across all dates",
        params=DepartmentSalesParams,
        handler=_run_departments,
    ),
    Tool(
        name="getInventoryStatus",
        description="Get current inventory status and identify low stock items",
        params=InventoryStatusParams,
        handler=_run_inventory,
    ),
    Tool(
        name="getCustomerAnalytics",
        description="Get customer analytics including top customers and loyalty distribution",
        params=CustomerAnalyticsParams,
        handler=_run_customers,
    ),
    Tool(
        name="getStorePerformance",
        description="Get store performance metrics and compare against targets",
        params=StorePerformanceParams,
        handler=_run_stores,
    ),
    Tool(
        name="getProductAnalytics",
        description=(
            "Analyze product performance including best/worst sellers, profit margins, "
            "and various sorting options"
        ),
        params=ProductAnalyticsParams,
        handler=_run_products,
    ),
)


class ToolRegistry:
    """Runs named retail tools against a data source, returning JSON-ready payloads."""

    def __init__(self, source: DataSource, tools: tuple[Tool, ...] = TOOLS):
        self.source = source
        self._tools = {tool.name: tool for tool in tools}

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    def execute(self, name: str, arguments: Any = None) -> dict[str, Any]:
        tool = self._tools.get(name)
        if tool is None:
            logger.warning("Unknown tool requested: %s", name)
            return {"error": f"Unknown tool: {name}"}

        try:
            params = tool.params.model_validate(arguments or {})
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}" for err in exc.errors()
            )
            logger.warning("Invalid arguments for %s: %s", name, problems)
            return {"error": f"Invalid arguments for {name}: {problems}"}

        try:
            dataset = self.source.load()
        except DataUnavailableError:
            logger.exception("Tool %s could not load the retail dataset", name)
            return dict(LOAD_ERROR)

        logger.info("Running tool %s with %s", name, params.model_dump(by_alias=True, exclude_none=True))
        return tool.handler(dataset, params)
