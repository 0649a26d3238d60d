"""Gemini provider implementation."""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from google import genai
from google.genai import types

from .types import GenerationConfig, LLMResponse, Message


class GeminiProvider:
    """Google Gemini provider using google-genai SDK."""

    def __init__(self, api_key: str, model: str, api_base: str = "") -> None:
        self.model = model
        # google-genai does not expose a stable api_base option; keep for future use
        _ = api_base
        self.client = genai.Client(api_key=api_key)

    async def generate(
        self,
        messages: List[Message],
        config: GenerationConfig,
    ) -> LLMResponse:
        response = await asyncio.to_thread(
            self.client.models.generate_content,
            model=self.model,
            contents=self._to_gemini_contents(messages),
            config=self._build_config(config),
        )
        return self._from_gemini_response(response)

    def _build_config(self, config: GenerationConfig) -> types.GenerateContentConfig:
        kwargs: Dict[str, Any] = {
            "system_instruction": config.system_prompt or None,
            "max_output_tokens": config.max_tokens,
            "temperature": config.temperature,
        }
        if config.json_output:
            kwargs["response_mime_type"] = "application/json"
            if config.response_schema:
                kwargs["response_schema"] = self._to_gemini_schema(config.response_schema)
        return types.GenerateContentConfig(**kwargs)

    def _from_gemini_response(self, response) -> LLMResponse:
        if not response.candidates:
            raise RuntimeError("Empty LLM response: no candidates")

        candidate = response.candidates[0]
        parts = candidate.content.parts if candidate.content else []
        text = "".join(part.text for part in parts or [] if part.text)

        usage: Optional[Dict[str, int]] = None
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = {
                "prompt_tokens": metadata.prompt_token_count or 0,
                "completion_tokens": metadata.candidates_token_count or 0,
            }

        return LLMResponse(text=text.strip(), usage=usage, raw=response)

    def _to_gemini_contents(self, messages: List[Message]) -> List[types.Content]:
        contents: List[types.Content] = []
        for msg in messages:
            role = "model" if msg.role == "assistant" else "user"
            contents.append(types.Content(role=role, parts=[types.Part.from_text(text=msg.text)]))
        return contents

    def _to_gemini_schema(self, schema_def: Dict[str, Any]) -> types.Schema:
        type_name = str(schema_def.get("type", "string") or "string").lower()
        type_map = {
            "string": types.Type.STRING,
            "integer": types.Type.INTEGER,
            "number": types.Type.NUMBER,
            "boolean": types.Type.BOOLEAN,
            "object": types.Type.OBJECT,
            "array": types.Type.ARRAY,
        }
        gemini_type = type_map.get(type_name, types.Type.STRING)

        kwargs: Dict[str, Any] = {"type": gemini_type}
        if schema_def.get("description"):
            kwargs["description"] = schema_def["description"]

        enum_values = schema_def.get("enum")
        if isinstance(enum_values, list) and enum_values:
            kwargs["enum"] = [str(v) for v in enum_values]

        if gemini_type == types.Type.OBJECT:
            kwargs["properties"] = {
                name: self._to_gemini_schema(prop)
                for name, prop in (schema_def.get("properties") or {}).items()
                if isinstance(prop, dict)
            }
            required = schema_def.get("required")
            if isinstance(required, list) and required:
                kwargs["required"] = required

        if gemini_type == types.Type.ARRAY:
            items = schema_def.get("items")
            if isinstance(items, dict):
                kwargs["items"] = self._to_gemini_schema(items)

        return types.Schema(**kwargs)
