"""
EvalHub Client

Tenant-scoped client for the EvalHub API: dataset/example management plus
running predictors over datasets.

Usage:
    # Discover the seeded tenant
    client = await EvalHubClient.create("http://localhost:8000")

    # Or supply it directly
    client = EvalHubClient("https://evalhub.example.com", tenant_id="t-1", api_key="...")

    await client.create_dataset("qa", "Question answering")
    results = await client.run_on_dataset("qa", my_chain_factory, num_repetitions=3)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from utils.retry import AsyncCaller

from ..evaluation.runner import RunConfig, RunExecutor, RunResults
from .gateway import RestGateway
from .repository import DatasetRepository
from .tenant import normalize_api_url, resolve_tenant, validate_api_key

logger = logging.getLogger(__name__)


@dataclass
class CallerOptions:
    """Retry/concurrency settings for outbound requests."""

    max_retries: int = 6
    max_concurrency: Optional[int] = None

    def build(self) -> AsyncCaller:
        return AsyncCaller(max_retries=self.max_retries, max_concurrency=self.max_concurrency)


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings owned by one client instance."""

    api_url: str
    tenant_id: str
    api_key: Optional[str] = field(default=None, repr=False)
    timeout: float = 30.0


class EvalHubClient(DatasetRepository):
    """
    Dataset/example repository bound to one tenant, plus run orchestration.
    """

    def __init__(
        self,
        api_url: str,
        tenant_id: str,
        api_key: Optional[str] = None,
        caller_options: Optional[CallerOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        """
        Args:
            api_url: Base URL of the API.
            tenant_id: Tenant all records are scoped to.
            api_key: Bearer token; required unless api_url is a loopback host.
            caller_options: Retry/concurrency settings.
            transport: Optional httpx transport (used by tests).
            timeout: Request timeout in seconds.

        Raises:
            AuthConfigError: If api_url is hosted and no api_key is given.
        """
        validate_api_key(api_url, api_key)
        self.config = ClientConfig(
            api_url=normalize_api_url(api_url),
            tenant_id=tenant_id,
            api_key=api_key,
            timeout=timeout,
        )
        gateway = RestGateway(
            api_url=self.config.api_url,
            tenant_id=tenant_id,
            api_key=api_key,
            caller=(caller_options or CallerOptions()).build(),
            transport=transport,
            timeout=timeout,
        )
        super().__init__(gateway)

    @classmethod
    async def create(
        cls,
        api_url: str,
        api_key: Optional[str] = None,
        caller_options: Optional[CallerOptions] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ) -> "EvalHubClient":
        """Build a client for the server's seeded tenant.

        The API-key policy is checked before the tenant lookup is sent.
        """
        validate_api_key(api_url, api_key)
        tenant_id = await resolve_tenant(
            api_url,
            api_key,
            caller=(caller_options or CallerOptions()).build(),
            transport=transport,
            timeout=timeout,
        )
        return cls(
            api_url,
            tenant_id,
            api_key=api_key,
            caller_options=caller_options,
            transport=transport,
            timeout=timeout,
        )

    @property
    def api_url(self) -> str:
        return self.config.api_url

    @property
    def tenant_id(self) -> str:
        return self.config.tenant_id

    async def run_on_dataset(
        self,
        dataset_name: str,
        llm_or_chain_factory: Any,
        num_repetitions: Optional[int] = None,
        session_name: Optional[str] = None,
        config: Optional[RunConfig] = None,
    ) -> RunResults:
        """
        Run a predictor on every example of a dataset.

        Args:
            dataset_name: Dataset to evaluate on.
            llm_or_chain_factory: An LLM, a chat model, or a zero-argument
                chain factory.
            num_repetitions: Attempts per example; defaults to config.repetitions.
            session_name: Tracing session label; generated when omitted.
            config: Timeout, concurrency, and progress settings.

        Returns:
            Mapping of example id to per-repetition outcomes.
        """
        base = config or RunConfig()
        run_config = RunConfig(
            repetitions=num_repetitions if num_repetitions is not None else base.repetitions,
            timeout_seconds=base.timeout_seconds,
            max_concurrent=base.max_concurrent,
            verbose=base.verbose,
        )
        executor = RunExecutor(self, run_config)
        return await executor.run(dataset_name, llm_or_chain_factory, session_name=session_name)

    async def aclose(self) -> None:
        await self.gateway.aclose()

    async def __aenter__(self) -> "EvalHubClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
