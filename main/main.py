from __future__ import annotations

import argparse
import json

from retail_bot.config import AssistantConfig
from retail_bot.log import setup_logger
from retail_bot.presentation import render_product_analytics_card
from retail_bot.service import RetailBotAssistant


def print_json(payload: dict) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def print_debug_info(result: dict) -> None:
    debug_info = result.get("debug_info") or {}
    if not debug_info:
        print("\n[DEBUG] No debug info available.")
        return
    print("\n[DEBUG] " + json.dumps(debug_info, indent=2, ensure_ascii=True, default=str))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="RetailBot retail analytics assistant")
    parser.add_argument("--data-path", default=None, help="Sales dataset (JSON file or CSV/Excel folder)")
    parser.add_argument("--db-path", default=None, help="SQLite path for chat memory and LLM cache")
    parser.add_argument("--model", default=None, help="Mistral model name")
    parser.add_argument("--log-level", default=None, help="Logging level (DEBUG, INFO, ...)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    ask = subparsers.add_parser("ask", help="Ask a retail analytics question")
    ask.add_argument("--conversation-id", default="default")
    ask.add_argument("--question", required=True)
    ask.add_argument("--debug", action="store_true")

    interactive = subparsers.add_parser("interactive", help="Interactive chat shell")
    interactive.add_argument("--conversation-id", default="default")
    interactive.add_argument("--debug", action="store_true")

    products = subparsers.add_parser("products", help="Rank products (no LLM)")
    products.add_argument("--category", default=None)
    products.add_argument("--top-n", type=int, default=5)
    products.add_argument("--sort-by", choices=["revenue", "quantity", "profit", "profitMargin"], default="revenue")
    products.add_argument("--sort-order", choices=["asc", "desc"], default="desc")
    products.add_argument("--card", action="store_true", help="Render the dashboard card instead of JSON")

    sales = subparsers.add_parser("sales", help="Filter sales transactions (no LLM)")
    sales.add_argument("--start-date", default=None)
    sales.add_argument("--end-date", default=None)
    sales.add_argument("--store", default=None)
    sales.add_argument("--product", default=None)
    sales.add_argument("--category", default=None)

    departments = subparsers.add_parser("departments", help="Sales per department/category (no LLM)")
    departments.add_argument("--date", default=None)
    departments.add_argument("--store", default=None)

    inventory = subparsers.add_parser("inventory", help="Inventory status and low stock alerts (no LLM)")
    inventory.add_argument("--category", default=None)
    inventory.add_argument("--low-stock-only", action="store_true")

    customers = subparsers.add_parser("customers", help="Customer analytics (no LLM)")
    customers.add_argument("--loyalty-tier", default=None)
    customers.add_argument("--min-purchases", type=float, default=None)

    stores = subparsers.add_parser("stores", help="Store performance against targets (no LLM)")
    stores.add_argument("--store-name", default=None)
    stores.add_argument("--start-date", default=None)
    stores.add_argument("--end-date", default=None)

    subparsers.add_parser("clear-cache", help="Drop cached LLM answers")

    return parser


def build_config(args: argparse.Namespace) -> AssistantConfig:
    overrides = {
        "data_path": args.data_path,
        "db_path": args.db_path,
        "mistral_model": args.model,
        "log_level": args.log_level,
    }
    return AssistantConfig(**{key: value for key, value in overrides.items() if value is not None})


def _drop_none(**kwargs) -> dict:
    return {key: value for key, value in kwargs.items() if value is not None}


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    config = build_config(args)
    setup_logger(log_level=config.log_level, log_dir=config.log_dir)
    assistant = RetailBotAssistant(config)

    if args.command == "ask":
        result = assistant.ask(args.question, conversation_id=args.conversation_id, debug=args.debug)
        print(result.get("final_answer", "No answer."))
        print_json({"metrics": result.get("metrics", {})})
        if args.debug:
            print_debug_info(result)
        return

    if args.command == "interactive":
        print("RetailBot interactive mode. Type 'exit' to quit.")
        while True:
            question = input("\nAsk> ").strip()
            if question.lower() in {"exit", "quit"}:
                break
            if not question:
                continue
            result = assistant.ask(question, conversation_id=args.conversation_id, debug=args.debug)
            print(result.get("final_answer", "No answer."))
            if args.debug:
                print_debug_info(result)
        return

    if args.command == "products":
        result = assistant.run_tool(
            "getProductAnalytics",
            **_drop_none(category=args.category, topN=args.top_n, sortBy=args.sort_by, sortOrder=args.sort_order),
        )
        if args.card:
            print(render_product_analytics_card(result))
        else:
            print_json(result)
        return

    if args.command == "sales":
        print_json(
            assistant.run_tool(
                "getSalesData",
                **_drop_none(
                    startDate=args.start_date,
                    endDate=args.end_date,
                    store=args.store,
                    product=args.product,
                    category=args.category,
                ),
            )
        )
        return

    if args.command == "departments":
        print_json(assistant.run_tool("getDepartmentSales", **_drop_none(date=args.date, store=args.store)))
        return

    if args.command == "inventory":
        result = assistant.run_tool(
            "getInventoryStatus", **_drop_none(category=args.category, lowStockOnly=args.low_stock_only)
        )
        print(result.get("report") or json.dumps(result, indent=2))
        return

    if args.command == "customers":
        print_json(
            assistant.run_tool(
                "getCustomerAnalytics",
                **_drop_none(loyaltyTier=args.loyalty_tier, minPurchases=args.min_purchases),
            )
        )
        return

    if args.command == "stores":
        if bool(args.start_date) != bool(args.end_date):
            parser.error("--start-date and --end-date must be given together")
        date_range = None
        if args.start_date:
            date_range = {"start": args.start_date, "end": args.end_date}
        print_json(
            assistant.run_tool("getStorePerformance", **_drop_none(storeName=args.store_name, dateRange=date_range))
        )
        return

    if args.command == "clear-cache":
        print(f"Removed {assistant.clear_cache()} cached answer(s).")
        return


if __name__ == "__main__":
    main()
