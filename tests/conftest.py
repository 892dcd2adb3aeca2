"""
Shared test fixtures for EvalHub.

Provides an in-memory fake of the EvalHub REST API served through
httpx.MockTransport, a client wired to it, and fake predictors.
"""

import json
import re
import uuid
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import pytest

from evalhub.client import CallerOptions, EvalHubClient

LOCAL_URL = "http://localhost:1984"
TENANT_ID = "tenant-1"


class FakeEvalHubServer:
    """Minimal in-memory implementation of the endpoints the client uses."""

    def __init__(self, tenants: Optional[List[Dict[str, Any]]] = None):
        self.tenants = tenants if tenants is not None else [{"id": TENANT_ID}]
        self.datasets: Dict[str, Dict[str, Any]] = {}
        self.examples: Dict[str, Dict[str, Any]] = {}
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method = request.method
        path = request.url.path
        params = {k: v[0] for k, v in parse_qs(request.url.query.decode()).items()}

        if path == "/tenants" and method == "GET":
            return httpx.Response(200, json=self.tenants)

        if path == "/datasets/upload" and method == "POST":
            return self._upload(request)

        if path == "/datasets":
            if method == "POST":
                return self._create_dataset(json.loads(request.content))
            if method == "GET":
                found = [
                    d for d in self.datasets.values()
                    if "name" not in params or d["name"] == params["name"]
                ]
                return httpx.Response(200, json=found[: int(params.get("limit", 100))])

        match = re.fullmatch(r"/datasets/([^/]+)", path)
        if match:
            dataset = self.datasets.get(match.group(1))
            if dataset is None:
                return httpx.Response(404, json={"detail": "Dataset not found"})
            if method == "DELETE":
                del self.datasets[dataset["id"]]
            return httpx.Response(200, json=dataset)

        if path == "/examples":
            if method == "POST":
                body = json.loads(request.content)
                example = {"id": str(uuid.uuid4()), **body}
                self.examples[example["id"]] = example
                return httpx.Response(200, json=example)
            if method == "GET":
                found = [
                    e for e in self.examples.values() if e["dataset_id"] == params.get("dataset")
                ]
                return httpx.Response(200, json=found)

        match = re.fullmatch(r"/examples/([^/]+)", path)
        if match:
            example = self.examples.get(match.group(1))
            if example is None:
                return httpx.Response(404, json={"detail": "Example not found"})
            if method == "DELETE":
                del self.examples[example["id"]]
            return httpx.Response(200, json=example)

        return httpx.Response(404, json={"detail": f"No route for {method} {path}"})

    def add_dataset(self, name: str, description: str = "") -> Dict[str, Any]:
        dataset = {
            "id": str(uuid.uuid4()),
            "name": name,
            "description": description,
            "tenant_id": TENANT_ID,
        }
        self.datasets[dataset["id"]] = dataset
        return dataset

    def add_example(self, dataset_id: str, inputs: Dict[str, Any]) -> Dict[str, Any]:
        example = {
            "id": str(uuid.uuid4()),
            "dataset_id": dataset_id,
            "inputs": inputs,
            "outputs": {},
            "created_at": "2024-01-01T00:00:00.000Z",
        }
        self.examples[example["id"]] = example
        return example

    def _create_dataset(self, body: Dict[str, Any]) -> httpx.Response:
        if any(d["name"] == body["name"] for d in self.datasets.values()):
            return httpx.Response(
                400, json={"detail": f"Dataset with name {body['name']} already exists"}
            )
        dataset = self.add_dataset(body["name"], body.get("description", ""))
        return httpx.Response(200, json=dataset)

    def _upload(self, request: httpx.Request) -> httpx.Response:
        content = request.content.decode()
        file_name = re.search(r'filename="([^"]+)"', content).group(1)  # type: ignore[union-attr]
        if any(d["name"] == file_name for d in self.datasets.values()):
            return httpx.Response(
                400, json={"detail": f"Dataset with name {file_name} already exists"}
            )
        return httpx.Response(200, json=self.add_dataset(file_name))


@pytest.fixture
def fake_server() -> FakeEvalHubServer:
    return FakeEvalHubServer()


@pytest.fixture
def transport(fake_server: FakeEvalHubServer) -> httpx.MockTransport:
    return httpx.MockTransport(fake_server.handler)


@pytest.fixture
def client(transport: httpx.MockTransport) -> EvalHubClient:
    """Client for a loopback server, tenant given up front, no retries."""
    return EvalHubClient(
        LOCAL_URL,
        TENANT_ID,
        caller_options=CallerOptions(max_retries=0),
        transport=transport,
    )


# -- Fake predictors ----------------------------------------------------------


class FakeLLM:
    """LLM-shaped fake; fails on odd attempt indices per prompt when asked."""

    def __init__(self, fail_odd: bool = False):
        self.fail_odd = fail_odd
        self.calls: List[Dict[str, Any]] = []
        self._attempts: Dict[str, int] = {}

    def _model_type(self) -> str:
        return "base_llm"

    async def generate(self, prompts, stop=None, callbacks=None):
        prompt = prompts[0]
        index = self._attempts.get(prompt, 0)
        self._attempts[prompt] = index + 1
        self.calls.append({"prompts": prompts, "stop": stop, "callbacks": callbacks})
        if self.fail_odd and index % 2 == 1:
            raise RuntimeError(f"attempt {index} failed")
        return f"{prompt}:{index}"


class FakeChatModel:
    def __init__(self) -> None:
        self.calls: List[Any] = []

    def _model_type(self) -> str:
        return "base_chat_model"

    def generate(self, message_lists, stop=None, callbacks=None):
        self.calls.append(message_lists)
        return " | ".join(m.content for m in message_lists[0])


class FakeChain:
    def __init__(self, factory: "FakeChainFactory"):
        self.factory = factory

    def _chain_type(self) -> str:
        return "fake_chain"

    async def call(self, inputs, callbacks=None):
        self.factory.chain_calls.append(inputs)
        return {"answer": inputs.get("question", "").upper()}


class FakeChainFactory:
    """Zero-argument callable producing a new FakeChain per call."""

    def __init__(self) -> None:
        self.invocations = 0
        self.chain_calls: List[Dict[str, Any]] = []

    def __call__(self) -> FakeChain:
        self.invocations += 1
        return FakeChain(self)


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def chain_factory() -> FakeChainFactory:
    return FakeChainFactory()


@pytest.fixture
def flaky_llm() -> FakeLLM:
    return FakeLLM(fail_odd=True)


@pytest.fixture
def fake_chat_model() -> FakeChatModel:
    return FakeChatModel()
