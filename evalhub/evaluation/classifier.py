"""
Predictor Classification

Decides how to execute an opaque predictor by probing its capabilities:
plain LLMs and chat models report their kind through `_model_type()`;
anything else is treated as a zero-argument chain factory and invoked once
to see whether it produces a chain.

The cheap, side-effect-free probes always run before the factory call.
"""

import inspect
import logging
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from utils.exceptions import UnknownPredictorTypeError

logger = logging.getLogger(__name__)


class PredictorKind(Enum):
    """Execution strategies a predictor can be run with."""

    LLM = "llm"
    CHAT_MODEL = "chat_model"
    CHAIN_FACTORY = "chain_factory"


def _model_type(subject: Any) -> Optional[str]:
    # Classes are factories; their unbound probes cannot be called
    if inspect.isclass(subject):
        return None
    probe = getattr(subject, "_model_type", None)
    if not callable(probe):
        return None
    return probe()


def is_llm(subject: Any) -> bool:
    return _model_type(subject) == "base_llm"


def is_chat_model(subject: Any) -> bool:
    return _model_type(subject) == "base_chat_model"


def is_chain(subject: Any) -> bool:
    if inspect.isclass(subject):
        return False
    probe = getattr(subject, "_chain_type", None)
    return callable(probe) and probe() is not None


async def maybe_await(value: Any) -> Any:
    """Await `value` if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


# Side-effect-free probes, tested in order
_MODEL_PROBES: List[Tuple[PredictorKind, Callable[[Any], bool]]] = [
    (PredictorKind.LLM, is_llm),
    (PredictorKind.CHAT_MODEL, is_chat_model),
]


async def classify(subject: Any) -> PredictorKind:
    """
    Classify a predictor into one of the PredictorKind strategies.

    Args:
        subject: An LLM, a chat model, or a zero-argument chain factory
            (sync or async).

    Returns:
        The matching PredictorKind.

    Raises:
        UnknownPredictorTypeError: If no probe matches, or the factory fails
            while being probed.
    """
    for kind, predicate in _MODEL_PROBES:
        if predicate(subject):
            logger.debug("Classified %s as %s", type(subject).__name__, kind.value)
            return kind

    if callable(subject):
        try:
            product = await maybe_await(subject())
        except Exception as e:
            raise UnknownPredictorTypeError(
                f"Chain factory {subject!r} failed while being probed: {e}"
            ) from e
        if is_chain(product):
            logger.debug(
                "Classified %s as %s", type(subject).__name__, PredictorKind.CHAIN_FACTORY.value
            )
            return PredictorKind.CHAIN_FACTORY

    raise UnknownPredictorTypeError(f"Unknown model or factory type: {subject!r}")
