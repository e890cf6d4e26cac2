from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any, Optional

from .agents import ResponseAgent, ToolExecutionAgent, ToolPlanningAgent
from .cache import SqlitePromptCache
from .config import AssistantConfig
from .data import DataSource, DataUnavailableError, open_data_source
from .graph import RetailBotGraph
from .llm import MistralClient
from .memory import ConversationMemory
from .monitoring import MetricsCollector
from .sqlite_utils import ensure_system_tables
from .tools import ToolRegistry


logger = logging.getLogger(__name__)


def describe_period(source: DataSource) -> str:
    """Human-readable span of the sales dates, for the planning prompt."""
    try:
        dataset = source.load()
    except DataUnavailableError:
        return "an unknown period (the dataset could not be loaded)"
    if not dataset.sales:
        return "no recorded sales"
    first = min(s.date for s in dataset.sales)
    last = max(s.date for s in dataset.sales)
    return f"{first.isoformat()} to {last.isoformat()}"


class RetailBotAssistant:
    def __init__(
        self,
        config: AssistantConfig,
        source: Optional[DataSource] = None,
        llm: Optional[MistralClient] = None,
    ):
        self.config = config
        ensure_system_tables(config.db_path)

        self.source = source or open_data_source(config.data_path)
        self.tools = ToolRegistry(self.source)
        self.cache = SqlitePromptCache(config.db_path)
        self.memory = ConversationMemory(config.db_path, max_turns=config.memory_turns)
        self._llm = llm
        self._graph: Optional[RetailBotGraph] = None

    @property
    def llm(self) -> MistralClient:
        # Built on first chat so the data commands work without an API key.
        if self._llm is None:
            self._llm = MistralClient(
                model=self.config.mistral_model,
                api_key=self.config.mistral_api_key,
                temperature=self.config.llm_temperature,
                cache=self.cache,
            )
        return self._llm

    @property
    def graph(self) -> RetailBotGraph:
        if self._graph is None:
            self._graph = RetailBotGraph(
                ToolPlanningAgent(self.llm, self.tools, self.memory, describe_period(self.source)),
                ToolExecutionAgent(self.tools),
                ResponseAgent(self.llm, self.memory),
                max_tool_rounds=self.config.max_tool_rounds,
            )
        return self._graph

    def ask(self, question: str, conversation_id: str = "default", debug: bool = False) -> dict[str, Any]:
        metrics = MetricsCollector()
        state: dict[str, Any] = {
            "conversation_id": conversation_id,
            "user_query": question,
            "tool_rounds": 0,
            "metrics": {},
            "debug": debug,
            "debug_info": {},
        }

        with metrics.timer("graph_latency_seconds"):
            result = self.graph.invoke(state)

        result_metrics = result.get("metrics", {})
        if not isinstance(result_metrics, dict):
            result_metrics = {}
        result_metrics.update(metrics.values)
        result["metrics"] = result_metrics
        logger.info(
            "Answered %r in %.2fs using %d tool call(s)",
            question[:80],
            result_metrics.get("graph_latency_seconds", 0.0),
            int(result_metrics.get("tool_calls", 0)),
        )
        return result

    def run_tool(self, name: str, **arguments: Any) -> dict[str, Any]:
        """Run one retail tool directly, bypassing the language model."""
        return self.tools.execute(name, arguments)

    def reset_conversation(self, conversation_id: str = "default") -> None:
        self.memory.clear(conversation_id)

    def clear_cache(self) -> int:
        """Drop every cached answer; returns how many were removed."""
        removed = self.cache.clear()
        logger.info("Cleared %d cached LLM answer(s)", removed)
        return removed

    def config_snapshot(self) -> dict[str, Any]:
        snapshot = asdict(self.config)
        if snapshot.get("mistral_api_key"):
            snapshot["mistral_api_key"] = "***"
        return snapshot
