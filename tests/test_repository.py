"""Tests for dataset and example operations against the fake server."""

from datetime import datetime, timezone

import httpx
import pytest

from evalhub.client import CallerOptions, EvalHubClient
from utils.exceptions import (
    DuplicateDatasetError,
    HttpError,
    InvalidArgumentError,
    NotFoundError,
    ShapeError,
)


class TestDatasetIdentifiers:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kwargs",
        [{}, {"dataset_id": "d-1", "dataset_name": "foo"}],
    )
    async def test_read_requires_exactly_one(self, client, fake_server, kwargs) -> None:
        with pytest.raises(InvalidArgumentError):
            await client.read_dataset(**kwargs)
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_delete_requires_exactly_one(self, client, fake_server) -> None:
        with pytest.raises(InvalidArgumentError):
            await client.delete_dataset()
        with pytest.raises(ValueError):
            await client.delete_dataset(dataset_id="d-1", dataset_name="foo")
        assert fake_server.requests == []

    @pytest.mark.asyncio
    async def test_examples_require_exactly_one(self, client, fake_server) -> None:
        with pytest.raises(InvalidArgumentError):
            await client.list_examples()
        with pytest.raises(InvalidArgumentError):
            await client.create_example({"a": 1}, dataset_id="d-1", dataset_name="foo")
        assert fake_server.requests == []


class TestDatasets:
    @pytest.mark.asyncio
    async def test_create_dataset(self, client, fake_server) -> None:
        dataset = await client.create_dataset("foo", "first")

        assert dataset.name == "foo"
        assert dataset.description == "first"
        assert dataset.tenant_id == "tenant-1"
        request = fake_server.requests[0]
        assert request.url.params["tenant_id"] == "tenant-1"

    @pytest.mark.asyncio
    async def test_duplicate_name_fails(self, client) -> None:
        await client.create_dataset("foo")
        with pytest.raises(DuplicateDatasetError, match="foo already exists"):
            await client.create_dataset("foo")

    @pytest.mark.asyncio
    async def test_read_by_name_normalizes_list(self, client, fake_server) -> None:
        created = fake_server.add_dataset("bar", "desc")

        dataset = await client.read_dataset(dataset_name="bar")

        assert dataset.id == created["id"]
        request = fake_server.requests[0]
        assert request.url.path == "/datasets"
        assert request.url.params["name"] == "bar"
        assert request.url.params["limit"] == "1"

    @pytest.mark.asyncio
    async def test_read_by_id(self, client, fake_server) -> None:
        created = fake_server.add_dataset("bar")
        dataset = await client.read_dataset(dataset_id=created["id"])
        assert dataset.name == "bar"
        assert fake_server.requests[0].url.path == f"/datasets/{created['id']}"

    @pytest.mark.asyncio
    async def test_read_missing_name(self, client) -> None:
        with pytest.raises(NotFoundError):
            await client.read_dataset(dataset_name="missing")

    @pytest.mark.asyncio
    async def test_read_missing_id(self, client) -> None:
        with pytest.raises(NotFoundError):
            await client.read_dataset(dataset_id="missing")

    @pytest.mark.asyncio
    async def test_list_datasets(self, client, fake_server) -> None:
        fake_server.add_dataset("a")
        fake_server.add_dataset("b")
        datasets = await client.list_datasets(limit=10)
        assert sorted(d.name for d in datasets) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_list_datasets_rejects_non_list(self) -> None:
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"items": []}))
        client = EvalHubClient(
            "http://localhost:1984",
            "tenant-1",
            caller_options=CallerOptions(max_retries=0),
            transport=transport,
        )
        with pytest.raises(ShapeError):
            await client.list_datasets()

    @pytest.mark.asyncio
    async def test_delete_by_name_resolves_first(self, client, fake_server) -> None:
        created = fake_server.add_dataset("doomed")

        await client.delete_dataset(dataset_name="doomed")

        assert [(r.method, r.url.path) for r in fake_server.requests] == [
            ("GET", "/datasets"),
            ("DELETE", f"/datasets/{created['id']}"),
        ]
        assert fake_server.datasets == {}

    @pytest.mark.asyncio
    async def test_delete_by_id_single_request(self, client, fake_server) -> None:
        created = fake_server.add_dataset("doomed")
        await client.delete_dataset(dataset_id=created["id"])
        assert len(fake_server.requests) == 1

    @pytest.mark.asyncio
    async def test_delete_unknown_id_raises(self, client) -> None:
        with pytest.raises(HttpError) as exc_info:
            await client.delete_dataset(dataset_id="nope")
        assert exc_info.value.status == 404


class TestUploadCsv:
    @pytest.mark.asyncio
    async def test_upload(self, client, fake_server) -> None:
        dataset = await client.upload_csv(
            b"question,answer\nhi,hello\n",
            "qa.csv",
            "greetings",
            ["question"],
            ["answer"],
        )

        assert dataset.name == "qa.csv"
        body = fake_server.requests[0].content.decode()
        assert 'name="input_keys"' in body
        assert "question" in body
        assert 'name="tenant_id"' in body
        assert "text/csv" in body

    @pytest.mark.asyncio
    async def test_upload_duplicate(self, client, fake_server) -> None:
        fake_server.add_dataset("qa.csv")
        with pytest.raises(DuplicateDatasetError):
            await client.upload_csv(b"q\nx\n", "qa.csv", "", ["q"], [])


class TestExamples:
    @pytest.mark.asyncio
    async def test_create_then_list(self, client, fake_server) -> None:
        dataset = await client.create_dataset("qa")
        created_at = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)

        example = await client.create_example(
            {"question": "2+2?"},
            {"answer": "4"},
            dataset_name="qa",
            created_at=created_at,
        )
        listed = await client.list_examples(dataset_id=dataset.id)

        assert example.dataset_id == dataset.id
        assert [e.id for e in listed] == [example.id]
        assert listed[0].inputs == {"question": "2+2?"}
        assert listed[0].outputs == {"answer": "4"}
        assert listed[0].created_at == created_at
        stored = fake_server.examples[example.id]
        assert stored["created_at"] == "2024-05-01T12:30:00.000Z"

    @pytest.mark.asyncio
    async def test_outputs_default_to_empty(self, client, fake_server) -> None:
        dataset = fake_server.add_dataset("qa")
        example = await client.create_example({"q": 1}, dataset_id=dataset["id"])
        assert example.outputs == {}
        assert example.created_at is not None

    @pytest.mark.asyncio
    async def test_list_sends_dataset_param(self, client, fake_server) -> None:
        dataset = fake_server.add_dataset("qa")
        await client.list_examples(dataset_id=dataset["id"])
        request = fake_server.requests[0]
        assert request.url.path == "/examples"
        assert request.url.params["dataset"] == dataset["id"]

    @pytest.mark.asyncio
    async def test_list_unknown_dataset_name(self, client) -> None:
        with pytest.raises(NotFoundError):
            await client.list_examples(dataset_name="missing")

    @pytest.mark.asyncio
    async def test_read_and_delete_example(self, client, fake_server) -> None:
        dataset = fake_server.add_dataset("qa")
        stored = fake_server.add_example(dataset["id"], {"prompt": "hi"})

        example = await client.read_example(stored["id"])
        assert example.inputs == {"prompt": "hi"}

        await client.delete_example(stored["id"])
        assert fake_server.examples == {}
        with pytest.raises(NotFoundError):
            await client.read_example(stored["id"])
