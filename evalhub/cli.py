"""
EvalHub CLI

Command-line interface for managing datasets and running evaluations.

Usage:
    # List datasets of the seeded tenant
    python -m evalhub datasets list

    # Upload a CSV as a new dataset
    python -m evalhub datasets upload qa.csv --input-keys question --output-keys answer

    # Add examples from a JSON/YAML file
    python -m evalhub examples add --dataset-name qa --file examples.yaml

    # Run a predictor over a dataset
    python -m evalhub run qa --predictor my_project.chains:build_chain --repetitions 3
"""

import argparse
import asyncio
import importlib
import json
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Dict, List

from rich.console import Console
from rich.table import Table

import config
from utils.exceptions import ConfigError, EvalHubError
from utils.file_config import parse_file_config
from utils.logging_config import setup_logging

from .client import EvalHubClient
from .evaluation import RunConfig

console = Console()


async def _connect(args: argparse.Namespace) -> EvalHubClient:
    if args.tenant_id:
        return EvalHubClient(args.api_url, args.tenant_id, api_key=args.api_key)
    return await EvalHubClient.create(args.api_url, api_key=args.api_key)


def load_predictor(spec: str) -> Any:
    """Import a predictor given as 'package.module:attribute'."""
    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"Predictor must look like 'module:attribute', got '{spec}'")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError:
        raise ConfigError(f"Module '{module_name}' has no attribute '{attr}'") from None


def load_examples_file(path: Path) -> List[Dict[str, Any]]:
    """Load examples ({"inputs": ..., "outputs": ...}) from a JSON or YAML file."""
    data = parse_file_config(path.read_text(), str(path))
    if isinstance(data, dict):
        data = data.get("examples", [])
    if not isinstance(data, list):
        raise ConfigError(f"Expected a list of examples in {path}")
    for i, item in enumerate(data):
        if not isinstance(item, dict) or "inputs" not in item:
            raise ConfigError(f"Example #{i} in {path} has no 'inputs'")
    return data


async def cmd_datasets(args: argparse.Namespace) -> int:
    """Manage datasets."""
    async with await _connect(args) as client:
        if args.action == "list":
            datasets = await client.list_datasets(limit=args.limit)
            table = Table(title=f"Datasets (tenant {client.tenant_id})")
            table.add_column("ID", style="dim")
            table.add_column("Name", style="cyan")
            table.add_column("Description")
            for d in datasets:
                table.add_row(d.id, d.name, d.description)
            console.print(table)

        elif args.action == "create":
            dataset = await client.create_dataset(args.name, args.description)
            console.print(f"[green]Created dataset {dataset.name} ({dataset.id})[/green]")

        elif args.action == "delete":
            await client.delete_dataset(dataset_id=args.id, dataset_name=args.name)
            console.print(f"[green]Deleted dataset {args.id or args.name}[/green]")

        elif args.action == "upload":
            csv_path = Path(args.csv)
            dataset = await client.upload_csv(
                csv_path.read_bytes(),
                args.name or csv_path.name,
                args.description,
                [k.strip() for k in args.input_keys.split(",") if k.strip()],
                [k.strip() for k in args.output_keys.split(",") if k.strip()],
            )
            console.print(f"[green]Uploaded dataset {dataset.name} ({dataset.id})[/green]")

    return 0


async def cmd_examples(args: argparse.Namespace) -> int:
    """Manage examples."""
    async with await _connect(args) as client:
        if args.action == "list":
            examples = await client.list_examples(
                dataset_id=args.dataset_id, dataset_name=args.dataset_name
            )
            table = Table(title="Examples")
            table.add_column("ID", style="dim")
            table.add_column("Inputs", style="cyan")
            table.add_column("Outputs", style="green")
            table.add_column("Created")
            for e in examples:
                table.add_row(
                    e.id,
                    json.dumps(e.inputs)[:80],
                    json.dumps(e.outputs)[:80],
                    e.created_at.isoformat() if e.created_at else "-",
                )
            console.print(table)

        elif args.action == "add":
            if not args.file:
                console.print("[red]--file is required for 'examples add'[/red]")
                return 1
            items = load_examples_file(Path(args.file))
            dataset_id = args.dataset_id
            if dataset_id is None:
                dataset_id = (await client.read_dataset(dataset_name=args.dataset_name)).id
            for item in items:
                await client.create_example(
                    item["inputs"], item.get("outputs"), dataset_id=dataset_id
                )
            console.print(f"[green]Added {len(items)} examples[/green]")

    return 0


async def cmd_run(args: argparse.Namespace) -> int:
    """Run a predictor over a dataset."""
    predictor = load_predictor(args.predictor)
    run_config = RunConfig(
        repetitions=args.repetitions,
        timeout_seconds=args.timeout,
        max_concurrent=args.max_concurrent,
        verbose=True,
    )

    async with await _connect(args) as client:
        results = await client.run_on_dataset(
            args.dataset,
            predictor,
            num_repetitions=args.repetitions,
            session_name=args.session_name,
            config=run_config,
        )

    failed = sum(
        1 for outcomes in results.values() for o in outcomes
        if isinstance(o, str) and o.startswith("Error: ")
    )
    total = sum(len(outcomes) for outcomes in results.values())
    console.print(
        f"\n[bold]{len(results)}[/bold] examples, {total} attempts, "
        f"[{'red' if failed else 'green'}]{failed} failed[/]"
    )

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(results, f, indent=2, default=_to_jsonable)
        console.print(f"[green]Results saved to {output_path}[/green]")

    return 0


def _to_jsonable(obj: Any) -> Any:
    if is_dataclass(obj) and not isinstance(obj, type):
        return asdict(obj)
    return str(obj)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evalhub",
        description="Dataset management and evaluation runs",
    )
    parser.add_argument("--api-url", default=config.API_URL, help="API base URL")
    parser.add_argument("--api-key", default=config.API_KEY, help="API key (bearer token)")
    parser.add_argument(
        "--tenant-id", default=config.TENANT_ID, help="Tenant id (discovered when omitted)"
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # datasets
    ds_parser = subparsers.add_parser("datasets", help="Manage datasets")
    ds_sub = ds_parser.add_subparsers(dest="action", required=True)
    ds_list = ds_sub.add_parser("list", help="List datasets")
    ds_list.add_argument("--limit", type=int, default=100, help="Max datasets to list")
    ds_create = ds_sub.add_parser("create", help="Create an empty dataset")
    ds_create.add_argument("name", help="Dataset name")
    ds_create.add_argument("--description", default="", help="Dataset description")
    ds_delete = ds_sub.add_parser("delete", help="Delete a dataset")
    ds_delete_target = ds_delete.add_mutually_exclusive_group(required=True)
    ds_delete_target.add_argument("--id", help="Dataset id")
    ds_delete_target.add_argument("--name", help="Dataset name")
    ds_upload = ds_sub.add_parser("upload", help="Create a dataset from a CSV file")
    ds_upload.add_argument("csv", help="Path to CSV file")
    ds_upload.add_argument("--name", help="Dataset file name (defaults to the CSV file name)")
    ds_upload.add_argument("--description", default="", help="Dataset description")
    ds_upload.add_argument("--input-keys", required=True, help="Comma-separated input columns")
    ds_upload.add_argument("--output-keys", default="", help="Comma-separated output columns")

    # examples
    ex_parser = subparsers.add_parser("examples", help="Manage examples")
    ex_parser.add_argument("action", choices=["list", "add"], help="Action to perform")
    ex_target = ex_parser.add_mutually_exclusive_group(required=True)
    ex_target.add_argument("--dataset-id", help="Dataset id")
    ex_target.add_argument("--dataset-name", help="Dataset name")
    ex_parser.add_argument("--file", help="JSON/YAML file of examples (for 'add')")

    # run
    run_parser = subparsers.add_parser("run", help="Run a predictor over a dataset")
    run_parser.add_argument("dataset", help="Dataset name")
    run_parser.add_argument(
        "--predictor", "-p", required=True, help="Predictor as 'module:attribute'"
    )
    run_parser.add_argument("--repetitions", "-n", type=int, default=1, help="Attempts per example")
    run_parser.add_argument("--session-name", help="Tracing session name")
    run_parser.add_argument("--timeout", type=float, help="Per-attempt timeout in seconds")
    run_parser.add_argument("--max-concurrent", type=int, help="Max in-flight attempts")
    run_parser.add_argument("--output", "-o", help="Output path for results JSON")

    return parser


def main() -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        return 0

    config.validate_config()
    setup_logging(level=args.log_level, log_dir=config.STATE_DIR / "logs")

    commands = {
        "datasets": cmd_datasets,
        "examples": cmd_examples,
        "run": cmd_run,
    }
    try:
        return asyncio.run(commands[args.command](args))
    except EvalHubError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
