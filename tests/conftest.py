from __future__ import annotations

from pathlib import Path

import pytest

from retail_bot.schemas import CustomerRecord, InventoryRecord, RetailDataset, SaleRecord, StoreRecord


REPO_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def sample_data_path() -> Path:
    return REPO_ROOT / "data" / "sales_data.json"


@pytest.fixture
def make_sale():
    def _make(product, total, quantity=1, category="General", store="Downtown Store", date="2024-12-01", **extra):
        return SaleRecord(
            date=date,
            store=store,
            product=product,
            category=category,
            quantity=quantity,
            total=total,
            **extra,
        )

    return _make


@pytest.fixture
def make_item():
    def _make(product, cost=0.0, category="General", current_stock=10, reorder_point=5):
        return InventoryRecord(
            product=product,
            category=category,
            cost=cost,
            current_stock=current_stock,
            reorder_point=reorder_point,
        )

    return _make


@pytest.fixture
def dataset(make_sale, make_item) -> RetailDataset:
    return RetailDataset(
        sales=[
            make_sale("Winter Jacket", 269.97, 3, "Clothing", "Downtown Store", "2024-12-01"),
            make_sale("Running Shoes", 259.98, 2, "Footwear", "Mall Location", "2024-12-01"),
            make_sale("Coffee Maker", 79.99, 1, "Electronics", "Downtown Store", "2024-12-02"),
            make_sale("Winter Jacket", 359.96, 4, "Clothing", "Suburban Plaza", "2024-12-02"),
            make_sale("Denim Jeans", 164.97, 3, "Clothing", "Mall Location", "2024-12-04"),
            make_sale("Desk Lamp", 69.98, 2, "Home", "Suburban Plaza", "2024-12-05"),
        ],
        inventory=[
            make_item("Winter Jacket", 45.0, "Clothing", current_stock=12, reorder_point=15),
            make_item("Running Shoes", 65.0, "Footwear", current_stock=28, reorder_point=10),
            make_item("Coffee Maker", 42.0, "Electronics", current_stock=8, reorder_point=8),
            make_item("Denim Jeans", 24.0, "Clothing", current_stock=22, reorder_point=10),
            make_item("Throw Blanket", 18.0, "Home", current_stock=30, reorder_point=8),
        ],
        customers=[
            CustomerRecord(name="Alice Johnson", loyalty_tier="Gold", total_purchases=2450.75),
            CustomerRecord(name="Bob Smith", loyalty_tier="Silver", total_purchases=1320.40),
            CustomerRecord(name="Carol Davis", loyalty_tier="Bronze", total_purchases=540.20),
            CustomerRecord(name="David Wilson", loyalty_tier="Gold", total_purchases=3105.90),
        ],
        stores=[
            StoreRecord(name="Downtown Store", manager="Sarah Thompson", monthly_target=25000),
            StoreRecord(name="Mall Location", manager="Michael Chen", monthly_target=30000),
            StoreRecord(name="Suburban Plaza", manager="Laura Martinez", monthly_target=0),
        ],
    )
