import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class AssistantConfig:
    data_path: str = os.getenv("RETAIL_DATA_PATH", "./data/sales_data.json")
    db_path: str = os.getenv("SQLITE_DB_PATH", "./retail_bot.db")
    mistral_api_key: Optional[str] = os.getenv("MISTRAL_API_KEY")
    mistral_model: str = os.getenv("MISTRAL_MODEL", "mistral-medium-latest")
    llm_temperature: float = float(os.getenv("LLM_TEMPERATURE", "0.2"))
    memory_turns: int = int(os.getenv("MEMORY_TURNS", "8"))
    max_tool_rounds: int = int(os.getenv("MAX_TOOL_ROUNDS", "3"))
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_dir: str = os.getenv("LOG_DIR", "./logs")

    @property
    def db_parent(self) -> Path:
        return Path(self.db_path).resolve().parent


DEFAULT_CONFIG = AssistantConfig()
