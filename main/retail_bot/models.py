from __future__ import annotations

from typing import Any, TypedDict

from .llm import ToolCall


class ToolResult(TypedDict):
    tool: str
    arguments: dict[str, Any]
    result: dict[str, Any]


class AgentState(TypedDict, total=False):
    conversation_id: str
    debug: bool
    user_query: str
    messages: list[dict[str, Any]]
    pending_tool_calls: list[ToolCall]
    tool_results: list[ToolResult]
    tool_rounds: int
    draft_answer: str
    final_answer: str
    error: str
    metrics: dict[str, float]
    debug_info: dict[str, Any]
