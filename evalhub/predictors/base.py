"""
Base Predictor Abstractions

Defines the capability contract the run executor probes for:
- LLMs and chat models report their kind through `_model_type()` and expose
  `generate(prompts_or_message_lists, stop=None, callbacks=None)`.
- Chains report `_chain_type()` and expose `call(inputs, callbacks=None)`.

Callbacks (e.g. a RunTracer) receive on_start / on_end / on_error.

Usage:
    class EchoLLM(BaseLLM):
        async def _generate_one(self, prompt, stop=None):
            return prompt

    result = await EchoLLM(model="echo").generate(["Hello"])
    print(result.generations[0][0].text)
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from ..evaluation.messages import Message

logger = logging.getLogger(__name__)

Callbacks = Optional[Sequence[Any]]


@dataclass
class Generation:
    """A single generated text."""

    text: str
    info: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LLMResult:
    """Generations for a batch of inputs, one list per input."""

    generations: List[List[Generation]]
    llm_output: Dict[str, Any] = field(default_factory=dict)


def _notify(callbacks: Callbacks, event: str, *args: Any) -> None:
    for handler in callbacks or ():
        hook = getattr(handler, event, None)
        if callable(hook):
            hook(*args)


class _BaseModel(ABC):
    """Shared batching and callback plumbing for LLMs and chat models."""

    def __init__(self, model: str, stop: Optional[List[str]] = None):
        """
        Args:
            model: Model name/identifier.
            stop: Default stop sequences.
        """
        self.model = model
        self.stop = stop

    @abstractmethod
    def _model_type(self) -> str:
        ...

    @abstractmethod
    async def _generate_one(self, item: Any, stop: Optional[List[str]] = None) -> Generation:
        ...

    async def generate(
        self,
        items: Sequence[Any],
        stop: Optional[List[str]] = None,
        callbacks: Callbacks = None,
    ) -> LLMResult:
        """Generate one completion per item, notifying callbacks."""
        name = type(self).__name__
        _notify(callbacks, "on_start", name, list(items))
        try:
            generations = [
                [await self._generate_one(item, stop or self.stop)] for item in items
            ]
        except Exception as e:
            _notify(callbacks, "on_error", name, e)
            raise
        result = LLMResult(generations=generations, llm_output={"model": self.model})
        _notify(callbacks, "on_end", name, result)
        return result


class BaseLLM(_BaseModel):
    """Text-in, text-out language model."""

    def _model_type(self) -> str:
        return "base_llm"

    @abstractmethod
    async def _generate_one(self, item: str, stop: Optional[List[str]] = None) -> Generation:
        ...


class BaseChatModel(_BaseModel):
    """Model taking a list of Messages per input."""

    def _model_type(self) -> str:
        return "base_chat_model"

    @abstractmethod
    async def _generate_one(
        self, item: List[Message], stop: Optional[List[str]] = None
    ) -> Generation:
        ...


class BaseChain(ABC):
    """Composed multi-step predictor called with an inputs mapping."""

    @abstractmethod
    def _chain_type(self) -> str:
        ...

    @abstractmethod
    async def _call(self, inputs: Dict[str, Any], callbacks: Callbacks = None) -> Dict[str, Any]:
        ...

    async def call(self, inputs: Dict[str, Any], callbacks: Callbacks = None) -> Dict[str, Any]:
        """Run the chain on `inputs`, notifying callbacks."""
        name = self._chain_type()
        _notify(callbacks, "on_start", name, inputs)
        try:
            outputs = await self._call(inputs, callbacks)
        except Exception as e:
            _notify(callbacks, "on_error", name, e)
            raise
        _notify(callbacks, "on_end", name, outputs)
        return outputs
