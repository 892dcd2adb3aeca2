"""
EvalHub API Client

Tenant discovery, the REST gateway, and dataset/example operations.

Usage:
    from evalhub.client import EvalHubClient

    client = await EvalHubClient.create("http://localhost:8000")
    datasets = await client.list_datasets()
"""

from .client import CallerOptions, ClientConfig, EvalHubClient
from .gateway import RestGateway
from .models import Dataset, Example, format_timestamp, parse_timestamp
from .repository import DatasetRepository
from .tenant import is_localhost, normalize_api_url, resolve_tenant, validate_api_key

__all__ = [
    # Client
    "EvalHubClient",
    "ClientConfig",
    "CallerOptions",
    # Building blocks
    "RestGateway",
    "DatasetRepository",
    "resolve_tenant",
    "is_localhost",
    "normalize_api_url",
    "validate_api_key",
    # Records
    "Dataset",
    "Example",
    "format_timestamp",
    "parse_timestamp",
]
