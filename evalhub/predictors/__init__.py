"""
Predictors

Base classes implementing the capability contract the run executor probes,
and Ollama-backed implementations.
"""

from .base import BaseChain, BaseChatModel, BaseLLM, Generation, LLMResult
from .ollama import OllamaChatModel, OllamaLLM

__all__ = [
    "BaseLLM",
    "BaseChatModel",
    "BaseChain",
    "Generation",
    "LLMResult",
    "OllamaLLM",
    "OllamaChatModel",
]
