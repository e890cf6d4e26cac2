from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Optional

from mistralai import Mistral

from .cache import SqlitePromptCache


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCall:
    id: str
    name: str
    # Parsed JSON object, or the raw text when the model sent something else.
    arguments: Any

    @property
    def arguments_json(self) -> str:
        if isinstance(self.arguments, str):
            return self.arguments
        return json.dumps(self.arguments)


@dataclass(frozen=True)
class ChatTurn:
    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)

    def as_message(self) -> dict[str, Any]:
        """The assistant message to echo back before the matching tool results."""
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": call.arguments_json},
                }
                for call in self.tool_calls
            ]
        return message


def _text_content(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    # Chunked content: keep the text parts only.
    parts: list[str] = []
    for chunk in content:
        text = chunk.get("text") if isinstance(chunk, dict) else getattr(chunk, "text", None)
        if text:
            parts.append(text)
    return "".join(parts)


class MistralClient:
    def __init__(
        self,
        model: str,
        api_key: Optional[str],
        temperature: float,
        cache: SqlitePromptCache,
    ):
        if not api_key:
            raise ValueError("MISTRAL_API_KEY is required.")
        self.model = model
        self.temperature = temperature
        self.cache = cache
        self.client = Mistral(api_key=api_key)

    def _cache_key(self, system_prompt: str, user_prompt: str) -> str:
        return f"model={self.model}|sys={system_prompt}|usr={user_prompt}"

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        payload = self._cache_key(system_prompt, user_prompt)
        cached = self.cache.get(payload)
        if cached:
            logger.debug("Prompt cache hit for model %s", self.model)
            return cached

        response = self.client.chat.complete(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
        )
        text = _text_content(response.choices[0].message.content).strip()
        if not text:
            raise ValueError("LLM returned empty response.")
        self.cache.put(payload, text, model=self.model)
        return text

    def chat(self, messages: list[dict[str, Any]], tools: Optional[list[dict[str, Any]]] = None) -> ChatTurn:
        """One chat round; the model may answer directly or request tool calls."""
        kwargs: dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        response = self.client.chat.complete(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            **kwargs,
        )
        message = response.choices[0].message
        calls = [
            ToolCall(
                id=call.id or f"call_{index}",
                name=call.function.name,
                arguments=self._tool_arguments(call.function.name, call.function.arguments),
            )
            for index, call in enumerate(message.tool_calls or [])
        ]
        return ChatTurn(content=_text_content(message.content).strip(), tool_calls=calls)

    @classmethod
    def _tool_arguments(cls, tool_name: str, raw: Any) -> Any:
        # Unparseable arguments are passed through as-is; the tool registry
        # rejects them as an error payload for that call.
        try:
            return cls.parse_arguments(raw)
        except ValueError:
            logger.warning("Model sent unparseable arguments for %s: %.200s", tool_name, raw)
            return raw

    @staticmethod
    def parse_arguments(raw: Any) -> dict[str, Any]:
        """Tool arguments arrive as a dict or as (sometimes fenced) JSON text."""
        if isinstance(raw, dict):
            return raw
        if not raw:
            return {}
        parsed = MistralClient._extract_json(str(raw))
        if parsed is None:
            raise ValueError(f"Could not parse tool arguments: {str(raw)[:400]}")
        return parsed

    @staticmethod
    def _extract_json(text: str) -> Optional[dict[str, Any]]:
        raw = text.strip()
        candidates: list[str] = re.findall(r"```(?:json)?\s*(.*?)\s*```", raw, flags=re.DOTALL | re.IGNORECASE)
        candidates.append(raw)

        for cand in candidates:
            obj = MistralClient._try_parse_json_dict(cand)
            if obj is not None:
                return obj
            for blob in MistralClient._extract_brace_balanced_objects(cand):
                obj = MistralClient._try_parse_json_dict(blob)
                if obj is not None:
                    return obj
        return None

    @staticmethod
    def _try_parse_json_dict(s: str) -> Optional[dict[str, Any]]:
        try:
            value = json.loads(s.strip())
        except json.JSONDecodeError:
            return None
        return value if isinstance(value, dict) else None

    @staticmethod
    def _extract_brace_balanced_objects(s: str) -> list[str]:
        out: list[str] = []
        start: Optional[int] = None
        depth = 0
        in_str = False
        esc = False

        for i, ch in enumerate(s):
            if in_str:
                if esc:
                    esc = False
                elif ch == "\\":
                    esc = True
                elif ch == '"':
                    in_str = False
                continue
            if ch == '"':
                in_str = True
                continue
            if ch == "{":
                if depth == 0:
                    start = i
                depth += 1
            elif ch == "}":
                if depth > 0:
                    depth -= 1
                    if depth == 0 and start is not None:
                        out.append(s[start : i + 1])
                        start = None
        return out
