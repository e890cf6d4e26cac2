from __future__ import annotations

from typing import Any

from langgraph.graph import END, StateGraph

from .models import AgentState


class RetailBotGraph:
    def __init__(self, planning_agent, execution_agent, response_agent, max_tool_rounds: int = 3):
        self.planning_agent = planning_agent
        self.execution_agent = execution_agent
        self.response_agent = response_agent
        self.max_tool_rounds = max_tool_rounds
        self._compiled = self._build_graph()

    def _build_graph(self):
        graph = StateGraph(AgentState)
        graph.add_node("tool_planning", self.planning_agent.run)
        graph.add_node("tool_execution", self.execution_agent.run)
        graph.add_node("response", self.response_agent.run)

        graph.set_entry_point("tool_planning")
        graph.add_conditional_edges(
            "tool_planning",
            self._route_after_planning,
            {
                "tools": "tool_execution",
                "answer": "response",
            },
        )
        graph.add_edge("tool_execution", "tool_planning")
        graph.add_edge("response", END)
        return graph.compile()

    def _route_after_planning(self, state: dict[str, Any]) -> str:
        if state.get("pending_tool_calls") and int(state.get("tool_rounds", 0)) < self.max_tool_rounds:
            return "tools"
        return "answer"

    def invoke(self, state: dict[str, Any]) -> dict[str, Any]:
        return self._compiled.invoke(state)
