from __future__ import annotations

import json

from retail_bot.config import AssistantConfig
from retail_bot.log import setup_logger
from retail_bot.presentation import render_product_analytics_card
from retail_bot.service import RetailBotAssistant


def main() -> None:
    config = AssistantConfig(db_path="./retail_bot_smoke.db")
    setup_logger(log_level=config.log_level)
    assistant = RetailBotAssistant(config)

    print("Running data tools...")
    for name in assistant.tools.names:
        result = assistant.run_tool(name)
        status = result.get("error", "ok")
        print(f"  {name}: {status}")

    print("\nLowest sellers by quantity:")
    lowest = assistant.run_tool("getProductAnalytics", sortBy="quantity", sortOrder="asc", topN=3)
    print(render_product_analytics_card(lowest))

    if not config.mistral_api_key:
        print("\nMISTRAL_API_KEY not set; skipping chat round.")
        return

    print("\nRunning chat...")
    answer = assistant.ask("What were our best selling products and what is running low?", conversation_id="smoke")
    print(answer.get("final_answer", ""))
    print(json.dumps({"metrics": answer.get("metrics", {})}, indent=2))


if __name__ == "__main__":
    main()
