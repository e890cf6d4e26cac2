from __future__ import annotations

import logging

import pytest

from retail_bot.cache import SqlitePromptCache
from retail_bot.log import setup_logger
from retail_bot.memory import ConversationMemory
from retail_bot.monitoring import MetricsCollector
from retail_bot.sqlite_utils import ensure_system_tables


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "nested" / "bot.db")
    ensure_system_tables(path)
    return path


def test_prompt_cache_round_trip(db_path):
    cache = SqlitePromptCache(db_path)

    assert cache.get("prompt") is None
    cache.put("prompt", "answer", model="mistral-medium-latest")
    assert cache.get("prompt") == "answer"
    cache.put("prompt", "newer answer")
    assert cache.get("prompt") == "newer answer"
    assert cache.clear() == 1
    assert cache.get("prompt") is None


def test_memory_keeps_most_recent_turns_in_order(db_path):
    memory = ConversationMemory(db_path, max_turns=3)
    for i in range(5):
        memory.add_turn("c1", "user" if i % 2 == 0 else "assistant", f"turn {i}")
    memory.add_turn("other", "user", "elsewhere")

    assert memory.recent_history("c1") == [("user", "turn 2"), ("assistant", "turn 3"), ("user", "turn 4")]
    assert memory.as_messages("other") == [{"role": "user", "content": "elsewhere"}]

    memory.clear("c1")
    assert memory.recent_history("c1") == []
    assert memory.recent_history("other") == [("user", "elsewhere")]


def test_metrics_collector_accumulates():
    metrics = MetricsCollector()
    with metrics.timer("latency"):
        pass
    metrics.increment("tool_calls")
    metrics.increment("tool_calls", 2)
    metrics.set_value("rows", 7)

    assert metrics.values["latency"] >= 0
    assert metrics.values["tool_calls"] == 3
    assert metrics.values["rows"] == 7


def test_setup_logger_is_idempotent(tmp_path):
    logger = setup_logger("retail_bot.test_logger", log_level="debug", log_dir=str(tmp_path / "logs"))
    again = setup_logger("retail_bot.test_logger", log_level="debug", log_dir=str(tmp_path / "logs"))

    assert logger is again
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert (tmp_path / "logs" / "retail_bot.log").exists()
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_setup_logger_falls_back_on_unknown_level():
    logger = setup_logger("retail_bot.test_unknown_level", log_level="chatty")
    try:
        assert logger.level == logging.INFO
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)


def test_metrics_collector_starts_from_earlier_values():
    earlier = {"tool_calls": 2}
    metrics = MetricsCollector(earlier)
    metrics.increment("tool_calls")

    assert metrics.values["tool_calls"] == 3
    assert earlier == {"tool_calls": 2}
