from __future__ import annotations

import json
import logging
from dataclasses import asdict
from typing import Any

from .llm import MistralClient
from .memory import ConversationMemory
from .monitoring import MetricsCollector
from .prompts import ANSWER_SYSTEM, ANSWER_TEMPLATE, NO_TOOL_RESULTS, TOOL_PLANNING_SYSTEM
from .tools import ToolRegistry


logger = logging.getLogger(__name__)


def _merge_debug(state: dict[str, Any], updates: dict[str, Any]) -> dict[str, Any]:
    merged = dict(state.get("debug_info") or {})
    merged.update(updates)
    return merged


def _dump(payload: Any) -> str:
    return json.dumps(payload, default=str, ensure_ascii=False)


def _format_results(results: list[dict[str, Any]]) -> str:
    if not results:
        return NO_TOOL_RESULTS
    return "\n\n".join(f"{r['tool']}({_dump(r['arguments'])}):\n{_dump(r['result'])}" for r in results)


class ToolPlanningAgent:
    """Asks the model which retail tools to call for the current question."""

    def __init__(self, llm: MistralClient, registry: ToolRegistry, memory: ConversationMemory, data_period: str):
        self.llm = llm
        self.registry = registry
        self.memory = memory
        self.data_period = data_period

    def _initial_messages(self, state: dict[str, Any]) -> list[dict[str, Any]]:
        question = (state.get("user_query") or "").strip()
        conversation_id = state.get("conversation_id", "default")
        return [
            {"role": "system", "content": TOOL_PLANNING_SYSTEM.format(data_period=self.data_period)},
            *self.memory.as_messages(conversation_id),
            {"role": "user", "content": question},
        ]

    def run(self, state: dict[str, Any]) -> dict[str, Any]:
        if not (state.get("user_query") or "").strip():
            raise ValueError("Question is empty.")
        messages = list(state.get("messages") or self._initial_messages(state))

        turn = self.llm.chat(messages, tools=self.registry.schemas())
        messages.append(turn.as_message())
        logger.info("Model requested tools: %s", [call.name for call in turn.tool_calls] or "none")

        update: dict[str, Any] = {
            "messages": messages,
            "pending_tool_calls": turn.tool_calls,
            "draft_answer": turn.content,
        }
        if state.get("debug"):
            planned = list((state.get("debug_info") or {}).get("tool_planning", []))
            planned.append({"content": turn.content, "tool_calls": [asdict(call) for call in turn.tool_calls]})
            update["debug_info"] = _merge_debug(state, {"tool_planning": planned})
        return update


class ToolExecutionAgent:
    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    def run(self, state: dict[str, Any]) -> dict[str, Any]:
        messages = list(state.get("messages") or [])
        results = list(state.get("tool_results") or [])
        calls = state.get("pending_tool_calls") or []
        metrics = MetricsCollector(state.get("metrics"))

        for call in calls:
            with metrics.timer("tool_seconds"):
                result = self.registry.execute(call.name, call.arguments)
            metrics.increment("tool_calls")
            results.append({"tool": call.name, "arguments": call.arguments, "result": result})
            messages.append(
                {
                    "role": "tool",
                    "name": call.name,
                    "content": _dump(result),
                    "tool_call_id": call.id,
                }
            )

        return {
            "messages": messages,
            "tool_results": results,
            "pending_tool_calls": [],
            "tool_rounds": int(state.get("tool_rounds", 0)) + 1,
            "metrics": metrics.values,
        }


class ResponseAgent:
    """Turns tool results into the plain-language answer shown to the user."""

    def __init__(self, llm: MistralClient, memory: ConversationMemory):
        self.llm = llm
        self.memory = memory

    def run(self, state: dict[str, Any]) -> dict[str, Any]:
        error = state.get("error")
        if error:
            raise RuntimeError(str(error))
        debug_enabled = bool(state.get("debug"))

        conversation_id = state.get("conversation_id", "default")
        question = state.get("user_query", "")
        results = state.get("tool_results") or []
        prompt = None

        if results or not (state.get("draft_answer") or "").strip():
            history = self.memory.recent_history(conversation_id)
            prompt = ANSWER_TEMPLATE.format(
                conversation_context="\n".join(f"{role}: {content}" for role, content in history)
                or "No prior context.",
                question=question,
                tool_results=_format_results(results),
            )
            answer = self.llm.complete(ANSWER_SYSTEM, prompt).strip()
        else:
            answer = state["draft_answer"].strip()

        if not answer:
            raise ValueError("Final answer generation returned empty text.")

        self.memory.add_turn(conversation_id, "user", question)
        self.memory.add_turn(conversation_id, "assistant", answer)

        return {
            "final_answer": answer,
            "debug_info": _merge_debug(
                state,
                {
                    "tool_results": results,
                    "final_answer_prompt": {"system": ANSWER_SYSTEM, "user": prompt},
                },
            )
            if debug_enabled
            else state.get("debug_info"),
        }
