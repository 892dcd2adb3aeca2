"""
Ollama Predictors

Local LLM inference via the Ollama API, exposed as predictors the run
executor can evaluate.

Usage:
    llm = OllamaLLM(model="qwen2.5:32b")
    results = await client.run_on_dataset("qa-dataset", llm)
"""

import logging
from typing import Any, Dict, List, Optional

from ollama import AsyncClient

from ..evaluation.messages import Message
from .base import BaseChatModel, BaseLLM, Generation

logger = logging.getLogger(__name__)


def _build_options(
    temperature: float,
    max_tokens: int,
    stop: Optional[List[str]],
    seed: Optional[int],
) -> Dict[str, Any]:
    options: Dict[str, Any] = {"temperature": temperature, "num_predict": max_tokens}
    if stop:
        options["stop"] = stop
    if seed is not None:
        options["seed"] = seed
    return options


def _generation_info(response: Any) -> Dict[str, Any]:
    return {
        "prompt_tokens": response.get("prompt_eval_count", 0),
        "completion_tokens": response.get("eval_count", 0),
        "total_duration_ms": response.get("total_duration", 0) / 1_000_000,
    }


class OllamaLLM(BaseLLM):
    """
    Completion model served by Ollama (default: http://localhost:11434).
    """

    def __init__(
        self,
        model: str,
        host: str = "http://localhost:11434",
        temperature: float = 0.1,
        max_tokens: int = 2048,
        seed: Optional[int] = None,
        stop: Optional[List[str]] = None,
    ):
        super().__init__(model, stop=stop)
        self.host = host
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.seed = seed
        self._client = AsyncClient(host=host)

    async def _generate_one(self, item: str, stop: Optional[List[str]] = None) -> Generation:
        response = await self._client.generate(
            model=self.model,
            prompt=item,
            options=_build_options(self.temperature, self.max_tokens, stop, self.seed),
            stream=False,
        )
        return Generation(text=response.get("response", ""), info=_generation_info(response))


class OllamaChatModel(BaseChatModel):
    """
    Chat model served by Ollama (default: http://localhost:11434).
    """

    def __init__(
        self,
        model: str,
        host: str = "http://localhost:11434",
        temperature: float = 0.1,
        max_tokens: int = 2048,
        seed: Optional[int] = None,
        stop: Optional[List[str]] = None,
    ):
        super().__init__(model, stop=stop)
        self.host = host
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.seed = seed
        self._client = AsyncClient(host=host)

    async def _generate_one(
        self, item: List[Message], stop: Optional[List[str]] = None
    ) -> Generation:
        # Convert Message objects to Ollama format
        ollama_messages = [{"role": m.role, "content": m.content} for m in item]
        response = await self._client.chat(
            model=self.model,
            messages=ollama_messages,
            options=_build_options(self.temperature, self.max_tokens, stop, self.seed),
            stream=False,
        )
        return Generation(
            text=response.get("message", {}).get("content", ""),
            info=_generation_info(response),
        )
