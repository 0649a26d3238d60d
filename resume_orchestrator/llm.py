"""Completion client over the provider layer, plus YAML configuration loading."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import CompletionError, EmptyResponseError
from .observability import AgentObserver
from .providers import ChatProvider, create_provider
from .providers.types import GenerationConfig, Message
from .retry import RetryConfig, retry_with_backoff

DEFAULT_MODEL = "gemini-2.0-flash"


@dataclass
class LLMConfig:
    """Configuration for the completion backend."""

    api_key: str = ""
    provider: str = "gemini"
    model: str = DEFAULT_MODEL
    max_tokens: int = 4096
    temperature: float = 0.7
    api_base: str = ""  # Custom API endpoint (proxy)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LLMConfig":
        return cls(
            api_key=data.get("api_key", ""),
            provider=data.get("provider", "gemini"),
            model=data.get("model", DEFAULT_MODEL),
            max_tokens=int(data.get("max_tokens", 4096)),
            temperature=float(data.get("temperature", 0.7)),
            api_base=data.get("api_base", ""),
        )


class CompletionClient:
    """Single-turn completion calls shared by every agent and the orchestrator.

    The client frames one user prompt with an optional system instruction and
    optionally asks the backend for JSON output. Transient backend failures are
    retried with backoff; anything else propagates as ``CompletionError``.
    """

    def __init__(
        self,
        provider: ChatProvider,
        config: Optional[LLMConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        observer: Optional[AgentObserver] = None,
    ):
        self.provider = provider
        self.config = config or LLMConfig()
        self.retry_config = retry_config or RetryConfig()
        self.observer = observer or AgentObserver()

    @classmethod
    def from_config(
        cls,
        config: LLMConfig,
        retry_config: Optional[RetryConfig] = None,
        observer: Optional[AgentObserver] = None,
    ) -> "CompletionClient":
        provider = create_provider(
            provider=config.provider,
            api_key=config.api_key,
            model=config.model,
            api_base=config.api_base,
        )
        return cls(provider, config=config, retry_config=retry_config, observer=observer)

    @property
    def model(self) -> str:
        return getattr(self.provider, "model", self.config.model)

    async def complete(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        json_output: bool = False,
        response_schema: Optional[Dict[str, Any]] = None,
        agent_id: Optional[str] = None,
    ) -> str:
        """Send one prompt and return the reply text.

        Raises:
            CompletionError: If the backend call fails
            EmptyResponseError: If the reply is blank
        """
        generation_config = GenerationConfig(
            system_prompt=system_instruction or "",
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            json_output=json_output,
            response_schema=response_schema,
        )

        async def make_request():
            return await self.provider.generate(messages=[Message.user(prompt)], config=generation_config)

        start_time = time.time()
        try:
            response = await retry_with_backoff(make_request, self.retry_config)
        except CompletionError:
            raise
        except Exception as e:
            self.observer.log_error(
                error_type="llm_request",
                message=str(e),
                context={"model": self.model},
                agent_id=agent_id,
            )
            raise CompletionError(f"LLM request failed: {e}") from e

        self.observer.log_llm_request(
            model=self.model,
            duration_ms=(time.time() - start_time) * 1000,
            json_output=json_output,
            prompt_chars=len(prompt),
            agent_id=agent_id,
        )

        if response.is_empty:
            raise EmptyResponseError("Empty LLM response")
        return response.text


def load_raw_config(config_path: str = "config/config.local.yaml") -> dict:
    """Load raw configuration dictionary from YAML file.

    Priority order:
    1. config.local.yaml (user's local config with secrets)
    2. config.yaml (template/defaults)
    """
    repo_root = Path(__file__).resolve().parents[1]

    def _resolve(candidate: str) -> Path:
        path = Path(candidate)
        if path.exists():
            return path
        alt = repo_root / candidate
        if alt.exists():
            return alt
        return path

    def _load_yaml(path: Path) -> dict:
        if not path.exists():
            return {}
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file must be a mapping: {path}")
        return data

    def _deep_merge(base: dict, override: dict) -> dict:
        merged = dict(base)
        for key, value in override.items():
            base_value = merged.get(key)
            if isinstance(base_value, dict) and isinstance(value, dict):
                merged[key] = _deep_merge(base_value, value)
            else:
                merged[key] = value
        return merged

    target = _resolve(config_path)

    # Default behavior: load config.yaml first, then overlay config.local.yaml.
    if Path(config_path).name == "config.local.yaml":
        base = _load_yaml(_resolve(str(Path(config_path).with_name("config.yaml"))))
        merged = _deep_merge(base, _load_yaml(target))
        if not merged:
            raise FileNotFoundError(f"Config file not found: {config_path} (also missing fallback config.yaml)")
        return merged

    data = _load_yaml(target)
    if not data:
        raise FileNotFoundError(f"Config file not found: {config_path}")
    return data


def load_config(config_path: str = "config/config.local.yaml") -> LLMConfig:
    """Load LLM configuration from YAML file."""
    return LLMConfig.from_dict(load_raw_config(config_path))
