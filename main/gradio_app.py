from __future__ import annotations

import gradio as gr

from retail_bot.config import AssistantConfig
from retail_bot.log import setup_logger
from retail_bot.presentation import render_product_analytics_card
from retail_bot.service import RetailBotAssistant


config = AssistantConfig()
setup_logger(log_level=config.log_level, log_dir=config.log_dir)
assistant = RetailBotAssistant(config)


def ask_question(conversation_id: str, question: str) -> str:
    if not question.strip():
        return "Please enter a question."
    result = assistant.ask(question=question, conversation_id=conversation_id or "default")
    return result.get("final_answer", "No answer.")


def reset_conversation(conversation_id: str) -> str:
    assistant.reset_conversation(conversation_id or "default")
    return "Conversation cleared."


def product_card(category: str, top_n: float, sort_by: str, sort_order: str) -> str:
    arguments = {"topN": int(top_n), "sortBy": sort_by, "sortOrder": sort_order}
    if category.strip():
        arguments["category"] = category.strip()
    return render_product_analytics_card(assistant.run_tool("getProductAnalytics", **arguments))


def inventory_report(category: str, low_stock_only: bool) -> str:
    arguments = {"lowStockOnly": low_stock_only}
    if category.strip():
        arguments["category"] = category.strip()
    result = assistant.run_tool("getInventoryStatus", **arguments)
    return result.get("report") or result.get("error", "No data.")


with gr.Blocks(title="RetailBot") as demo:
    gr.Markdown("# RetailBot")
    with gr.Tab("Chat"):
        chat_conversation = gr.Textbox(label="Conversation ID", value="default")
        chat_question = gr.Textbox(label="Question", placeholder="Which products sold the least last week?")
        with gr.Row():
            ask_btn = gr.Button("Ask")
            reset_btn = gr.Button("Reset conversation")
        chat_output = gr.Textbox(label="Answer", lines=12)
        ask_btn.click(ask_question, inputs=[chat_conversation, chat_question], outputs=chat_output)
        reset_btn.click(reset_conversation, inputs=chat_conversation, outputs=chat_output)

    with gr.Tab("Product Analytics"):
        product_category = gr.Textbox(label="Category filter (optional)")
        product_top_n = gr.Number(label="Top N", value=5, precision=0, minimum=1)
        product_sort_by = gr.Dropdown(
            label="Sort by", choices=["revenue", "quantity", "profit", "profitMargin"], value="revenue"
        )
        product_sort_order = gr.Radio(label="Order", choices=["desc", "asc"], value="desc")
        product_btn = gr.Button("Analyze")
        product_output = gr.Markdown()
        product_btn.click(
            product_card,
            inputs=[product_category, product_top_n, product_sort_by, product_sort_order],
            outputs=product_output,
        )

    with gr.Tab("Inventory"):
        inventory_category = gr.Textbox(label="Category filter (optional)")
        inventory_low = gr.Checkbox(label="Low stock only")
        inventory_btn = gr.Button("Check stock")
        inventory_output = gr.Textbox(label="Inventory report", lines=16)
        inventory_btn.click(inventory_report, inputs=[inventory_category, inventory_low], outputs=inventory_output)


if __name__ == "__main__":
    demo.launch()
