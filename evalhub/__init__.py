"""
EvalHub: Dataset Management and Evaluation Runs

A tenant-scoped client for managing datasets of labeled examples and running
LLMs, chat models, or chains against every example.

Main components:
- client: REST gateway, tenant discovery, dataset/example repository
- evaluation: predictor classification and the concurrent run executor
- predictors: capability contract base classes and Ollama predictors
"""

from .client import EvalHubClient

__version__ = "0.1.0"

__all__ = ["EvalHubClient", "__version__"]
