"""
Dataset and Example Repository

CRUD operations over datasets and examples, layered on the RestGateway.
Every operation accepting both a dataset id and a dataset name validates that
exactly one was given before touching the network.
"""

import logging
from datetime import datetime, timezone
from typing import IO, Any, Dict, List, Optional, Sequence, Union

from utils.exceptions import (
    DuplicateDatasetError,
    HttpError,
    InvalidArgumentError,
    NotFoundError,
    ShapeError,
)

from .gateway import RestGateway
from .models import Dataset, Example, format_timestamp

logger = logging.getLogger(__name__)

CsvFile = Union[bytes, str, IO[bytes]]


def _require_one(dataset_id: Optional[str], dataset_name: Optional[str]) -> None:
    if dataset_id is not None and dataset_name is not None:
        raise InvalidArgumentError("Must provide either dataset_name or dataset_id, not both")
    if dataset_id is None and dataset_name is None:
        raise InvalidArgumentError("Must provide dataset_name or dataset_id")


def _is_duplicate(error: HttpError) -> bool:
    return bool(error.detail) and "already exists" in error.detail


class DatasetRepository:
    """Dataset/example operations for one tenant."""

    def __init__(self, gateway: RestGateway):
        self.gateway = gateway

    # -- Datasets -------------------------------------------------------------

    async def create_dataset(self, name: str, description: str = "") -> Dataset:
        """
        Create an empty dataset.

        Raises:
            DuplicateDatasetError: If a dataset with this name already exists.
            HttpError: On any other non-2xx response.
        """
        body = {
            "name": name,
            "description": description,
            "tenant_id": self.gateway.tenant_id,
        }
        try:
            result = await self.gateway.post_json("/datasets", body)
        except HttpError as e:
            if _is_duplicate(e):
                raise DuplicateDatasetError(f"Dataset {name} already exists") from e
            raise
        logger.info("Created dataset %s", name)
        return Dataset.from_dict(result)

    async def upload_csv(
        self,
        csv_file: CsvFile,
        file_name: str,
        description: str,
        input_keys: Sequence[str],
        output_keys: Sequence[str],
    ) -> Dataset:
        """
        Create a dataset from a CSV file.

        Args:
            csv_file: CSV content (bytes, str, or a binary file object).
            file_name: Name sent with the file; the server names the dataset after it.
            description: Dataset description.
            input_keys: CSV columns to treat as example inputs.
            output_keys: CSV columns to treat as example outputs.

        Raises:
            DuplicateDatasetError: If a dataset with this name already exists.
        """
        fields = {
            "input_keys": ",".join(input_keys),
            "output_keys": ",".join(output_keys),
            "description": description,
            "tenant_id": self.gateway.tenant_id,
        }
        files = {"file": (file_name, csv_file, "text/csv")}
        try:
            result = await self.gateway.post_multipart("/datasets/upload", fields, files)
        except HttpError as e:
            if _is_duplicate(e):
                raise DuplicateDatasetError(f"Dataset {file_name} already exists") from e
            raise
        logger.info("Uploaded CSV dataset %s", file_name)
        return Dataset.from_dict(result)

    async def read_dataset(
        self,
        dataset_id: Optional[str] = None,
        dataset_name: Optional[str] = None,
    ) -> Dataset:
        """
        Fetch one dataset by id or by name.

        Raises:
            InvalidArgumentError: Unless exactly one of id/name is given.
            NotFoundError: If no dataset matches.
        """
        _require_one(dataset_id, dataset_name)

        path = "/datasets"
        params: Dict[str, Any] = {"limit": 1}
        if dataset_id is not None:
            path += f"/{dataset_id}"
        else:
            params["name"] = dataset_name

        try:
            response = await self.gateway.get(path, params)
        except HttpError as e:
            if e.status == 404:
                raise NotFoundError(
                    f"Dataset[id={dataset_id}, name={dataset_name}] not found"
                ) from e
            raise

        if isinstance(response, list):
            if not response:
                raise NotFoundError(f"Dataset[id={dataset_id}, name={dataset_name}] not found")
            response = response[0]
        return Dataset.from_dict(response)

    async def list_datasets(self, limit: int = 100) -> List[Dataset]:
        """List the tenant's datasets."""
        path = "/datasets"
        response = await self.gateway.get(path, {"limit": limit})
        if not isinstance(response, list):
            raise ShapeError(f"Expected {path} to return an array, but got {response!r}")
        return [Dataset.from_dict(d) for d in response]

    async def delete_dataset(
        self,
        dataset_id: Optional[str] = None,
        dataset_name: Optional[str] = None,
    ) -> Any:
        """
        Delete a dataset by id or by name.

        A name is first resolved to an id with read_dataset. Whether the
        dataset's examples are removed as well is up to the server.
        """
        _require_one(dataset_id, dataset_name)
        if dataset_id is None:
            dataset_id = (await self.read_dataset(dataset_name=dataset_name)).id
        result = await self.gateway.delete(f"/datasets/{dataset_id}")
        logger.info("Deleted dataset %s", dataset_id)
        return result

    # -- Examples -------------------------------------------------------------

    async def _resolve_dataset_id(
        self,
        dataset_id: Optional[str],
        dataset_name: Optional[str],
    ) -> str:
        _require_one(dataset_id, dataset_name)
        if dataset_id is not None:
            return dataset_id
        return (await self.read_dataset(dataset_name=dataset_name)).id

    async def create_example(
        self,
        inputs: Dict[str, Any],
        outputs: Optional[Dict[str, Any]] = None,
        dataset_id: Optional[str] = None,
        dataset_name: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Example:
        """
        Add an example to a dataset.

        Args:
            inputs: Example inputs.
            outputs: Reference outputs; defaults to an empty mapping.
            dataset_id: Target dataset id (exclusive with dataset_name).
            dataset_name: Target dataset name (exclusive with dataset_id).
            created_at: Creation time; defaults to now.
        """
        resolved_id = await self._resolve_dataset_id(dataset_id, dataset_name)
        data = {
            "dataset_id": resolved_id,
            "inputs": inputs,
            "outputs": outputs if outputs is not None else {},
            "created_at": format_timestamp(created_at or datetime.now(timezone.utc)),
        }
        result = await self.gateway.post_json("/examples", data)
        return Example.from_dict(result)

    async def read_example(self, example_id: str) -> Example:
        try:
            response = await self.gateway.get(f"/examples/{example_id}")
        except HttpError as e:
            if e.status == 404:
                raise NotFoundError(f"Example[id={example_id}] not found") from e
            raise
        return Example.from_dict(response)

    async def list_examples(
        self,
        dataset_id: Optional[str] = None,
        dataset_name: Optional[str] = None,
    ) -> List[Example]:
        """List all examples of a dataset given by id or by name."""
        resolved_id = await self._resolve_dataset_id(dataset_id, dataset_name)
        response = await self.gateway.get("/examples", {"dataset": resolved_id})
        if not isinstance(response, list):
            raise ShapeError(f"Expected /examples to return an array, but got {response!r}")
        return [Example.from_dict(e) for e in response]

    async def delete_example(self, example_id: str) -> Any:
        return await self.gateway.delete(f"/examples/{example_id}")
