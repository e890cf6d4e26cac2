from __future__ import annotations

import datetime as dt
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


SortBy = Literal["revenue", "quantity", "profit", "profitMargin"]
SortOrder = Literal["asc", "desc"]


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, str_strip_whitespace=True, extra="ignore")


class SaleRecord(_Record):
    """One retail transaction line."""

    date: dt.date
    store: str = Field(..., min_length=1)
    product: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    quantity: int = Field(..., gt=0)
    total: float = Field(..., ge=0)
    customer: Optional[str] = None
    unit_price: Optional[float] = Field(default=None, ge=0)


class InventoryRecord(_Record):
    """Current stock and cost snapshot for one product."""

    product: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    cost: float = Field(default=0.0, ge=0)
    current_stock: int = Field(default=0, ge=0)
    reorder_point: int = Field(default=0, ge=0)

    @property
    def is_low_stock(self) -> bool:
        return self.current_stock <= self.reorder_point

    @property
    def stock_value(self) -> float:
        return self.current_stock * self.cost


class CustomerRecord(_Record):
    name: str = Field(..., min_length=1)
    loyalty_tier: str = Field(..., min_length=1)
    total_purchases: float = Field(default=0.0, ge=0)
    email: Optional[str] = None
    visits: Optional[int] = Field(default=None, ge=0)


class StoreRecord(_Record):
    name: str = Field(..., min_length=1)
    manager: str = ""
    monthly_target: float = Field(default=0.0, ge=0)
    location: Optional[str] = None


class RetailDataset(BaseModel):
    """Everything a data source yields in one load."""

    model_config = ConfigDict(frozen=True)

    sales: list[SaleRecord] = Field(default_factory=list)
    inventory: list[InventoryRecord] = Field(default_factory=list)
    customers: list[CustomerRecord] = Field(default_factory=list)
    stores: list[StoreRecord] = Field(default_factory=list)


# Derived analytics types. Field aliases are the names the chat layer and the
# dashboard card read, so payloads are always dumped by alias.


class _Derived(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class ProductMetric(_Derived):
    product: str
    category: str
    quantity: int
    revenue: float
    transactions: int
    avg_price: float = Field(..., alias="avgPrice")
    profit: float
    profit_margin: float = Field(..., alias="profitMargin")


class CategoryRollup(_Derived):
    category: str
    revenue: float
    quantity: int


class AnalyticsSummary(_Derived):
    total_products: int = Field(..., alias="totalProducts")
    total_revenue: float = Field(..., alias="totalRevenue")
    best_seller: Optional[str] = Field(default=None, alias="bestSeller")
    highest_margin: Optional[ProductMetric] = Field(default=None, alias="highestMargin")


class AnalyticsMetadata(_Derived):
    sort_by: SortBy = Field(..., alias="sortBy")
    sort_order: SortOrder = Field(..., alias="sortOrder")
    is_lowest_first: bool = Field(..., alias="isLowestFirst")


class AnalyticsResult(_Derived):
    top_products: list[ProductMetric] = Field(..., alias="topProducts")
    category_performance: list[CategoryRollup] = Field(..., alias="categoryPerformance")
    summary: AnalyticsSummary
    metadata: AnalyticsMetadata
