"""
Evaluation Runs

Classifies predictors by capability and runs them concurrently over every
example of a dataset, isolating per-attempt failures.
"""

from .classifier import PredictorKind, classify, is_chain, is_chat_model, is_llm
from .messages import Message, message_from_dict, messages_from_dict
from .runner import RunConfig, RunExecutor, RunResults, stringify_error
from .tracer import RunTracer, TraceEvent

__all__ = [
    # Classification
    "PredictorKind",
    "classify",
    "is_llm",
    "is_chat_model",
    "is_chain",
    # Execution
    "RunConfig",
    "RunExecutor",
    "RunResults",
    "stringify_error",
    # Collaborators
    "RunTracer",
    "TraceEvent",
    "Message",
    "message_from_dict",
    "messages_from_dict",
]
