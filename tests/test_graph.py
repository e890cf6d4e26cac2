from __future__ import annotations

import pytest

from retail_bot.config import AssistantConfig
from retail_bot.data import DataUnavailableError, InMemoryDataSource
from retail_bot.llm import ChatTurn, ToolCall
from retail_bot.service import RetailBotAssistant


class FakeLLM:
    """Scripted stand-in for MistralClient: replays chat turns, echoes a fixed answer."""

    def __init__(self, turns, answer="Winter Jacket leads revenue at $629.93."):
        self.turns = list(turns)
        self.answer = answer
        self.chat_calls = []
        self.complete_calls = []

    def chat(self, messages, tools=None):
        self.chat_calls.append({"messages": list(messages), "tools": tools})
        if self.turns:
            return self.turns.pop(0)
        return ChatTurn(content="Done.")

    def complete(self, system_prompt, user_prompt):
        self.complete_calls.append((system_prompt, user_prompt))
        return self.answer


def _assistant(tmp_path, dataset, llm, **overrides):
    config = AssistantConfig(db_path=str(tmp_path / "bot.db"), **overrides)
    return RetailBotAssistant(config, source=InMemoryDataSource(dataset), llm=llm)


def _call(name, call_id="call_1", **arguments):
    return ToolCall(id=call_id, name=name, arguments=arguments)


def test_tool_call_round_trip(tmp_path, dataset):
    llm = FakeLLM(
        [
            ChatTurn(content="", tool_calls=[_call("getProductAnalytics", sortBy="quantity", sortOrder="asc")]),
            ChatTurn(content="Coffee Maker sold the fewest units."),
        ]
    )
    assistant = _assistant(tmp_path, dataset, llm)

    result = assistant.ask("Which product sold the least?", conversation_id="c1")

    assert result["final_answer"] == llm.answer
    (tool_result,) = result["tool_results"]
    assert tool_result["tool"] == "getProductAnalytics"
    assert tool_result["result"]["summary"]["bestSeller"] == "Coffee Maker (least sold)"
    assert result["metrics"]["tool_calls"] == 1
    assert "graph_latency_seconds" in result["metrics"]

    second_round = llm.chat_calls[1]["messages"]
    tool_message = second_round[-1]
    assert tool_message["role"] == "tool"
    assert tool_message["tool_call_id"] == "call_1"
    assert second_round[-2]["tool_calls"][0]["function"]["name"] == "getProductAnalytics"

    _, answer_prompt = llm.complete_calls[0]
    assert "Which product sold the least?" in answer_prompt
    assert "Coffee Maker (least sold)" in answer_prompt


def test_planning_prompt_lists_tools_and_data_period(tmp_path, dataset):
    llm = FakeLLM([ChatTurn(content="Hi! Ask me about sales.")])
    assistant = _assistant(tmp_path, dataset, llm)

    assistant.ask("hello")

    first = llm.chat_calls[0]
    assert first["messages"][0]["role"] == "system"
    assert "2024-12-01 to 2024-12-05" in first["messages"][0]["content"]
    assert [t["function"]["name"] for t in first["tools"]] == assistant.tools.names


def test_direct_answer_skips_tools_and_composer(tmp_path, dataset):
    llm = FakeLLM([ChatTurn(content="Hi! Ask me about sales.")])
    assistant = _assistant(tmp_path, dataset, llm)

    result = assistant.ask("hello")

    assert result["final_answer"] == "Hi! Ask me about sales."
    assert llm.complete_calls == []
    assert result.get("tool_results") in (None, [])


def test_tool_rounds_are_bounded(tmp_path, dataset):
    looping = [ChatTurn(content="", tool_calls=[_call("getSalesData", call_id=f"c{i}")]) for i in range(10)]
    llm = FakeLLM(looping)
    assistant = _assistant(tmp_path, dataset, llm, max_tool_rounds=2)

    result = assistant.ask("Show me everything")

    assert result["metrics"]["tool_calls"] == 2
    assert len(result["tool_results"]) == 2
    assert result["final_answer"] == llm.answer


def test_load_failure_reaches_answer_as_error(tmp_path, dataset):
    class Broken:
        def load(self):
            raise DataUnavailableError("gone")

    llm = FakeLLM([ChatTurn(content="", tool_calls=[_call("getInventoryStatus")])])
    config = AssistantConfig(db_path=str(tmp_path / "bot.db"))
    assistant = RetailBotAssistant(config, source=Broken(), llm=llm)

    result = assistant.ask("What is low on stock?")

    assert result["tool_results"][0]["result"] == {"error": "Failed to load data"}
    assert "Failed to load data" in llm.complete_calls[0][1]
    assert "could not be loaded" in llm.chat_calls[0]["messages"][0]["content"]


def test_conversation_memory_feeds_next_question(tmp_path, dataset):
    llm = FakeLLM([ChatTurn(content="First answer."), ChatTurn(content="Second answer.")])
    assistant = _assistant(tmp_path, dataset, llm)

    assistant.ask("first question", conversation_id="memo")
    assistant.ask("second question", conversation_id="memo")

    messages = llm.chat_calls[1]["messages"]
    assert [m["content"] for m in messages[1:]] == ["first question", "First answer.", "second question"]

    assistant.reset_conversation("memo")
    assert assistant.memory.recent_history("memo") == []


def test_debug_info_records_planning(tmp_path, dataset):
    llm = FakeLLM([ChatTurn(content="", tool_calls=[_call("getCustomerAnalytics", loyaltyTier="Gold")])])
    assistant = _assistant(tmp_path, dataset, llm)

    result = assistant.ask("Who are our gold customers?", debug=True)

    planned = result["debug_info"]["tool_planning"]
    assert planned[0]["tool_calls"][0]["name"] == "getCustomerAnalytics"
    assert result["debug_info"]["tool_results"][0]["result"]["analytics"]["totalCustomers"] == 2


def test_empty_question_is_rejected(tmp_path, dataset):
    assistant = _assistant(tmp_path, dataset, FakeLLM([]))

    with pytest.raises(ValueError):
        assistant.ask("   ")


def test_run_tool_and_config_snapshot(tmp_path, dataset):
    assistant = _assistant(tmp_path, dataset, FakeLLM([]), mistral_api_key="secret")

    assert assistant.run_tool("getProductAnalytics", topN=1)["summary"]["totalProducts"] == 5
    assert assistant.config_snapshot()["mistral_api_key"] == "***"


def test_unparseable_tool_arguments_still_get_an_answer(tmp_path, dataset):
    broken_call = ToolCall(id="call_2", name="getSalesData", arguments="store: Mall")
    llm = FakeLLM(
        [
            ChatTurn(content="", tool_calls=[_call("getProductAnalytics"), broken_call]),
            ChatTurn(content="Here is what I found."),
        ]
    )
    assistant = _assistant(tmp_path, dataset, llm)

    result = assistant.ask("How are products and the mall doing?")

    assert result["final_answer"] == llm.answer
    products, broken = result["tool_results"]
    assert products["result"]["summary"]["bestSeller"] == "Winter Jacket"
    assert broken["result"]["error"].startswith("Invalid arguments for getSalesData")
    assert result["metrics"]["tool_calls"] == 2
    assert result["metrics"]["tool_seconds"] >= 0
    assert "Invalid arguments for getSalesData" in llm.complete_calls[0][1]


def test_clear_cache_reports_removed_answers(tmp_path, dataset):
    assistant = _assistant(tmp_path, dataset, FakeLLM([]))
    assistant.cache.put("prompt", "cached answer")

    assert assistant.clear_cache() == 1
    assert assistant.cache.get("prompt") is None
