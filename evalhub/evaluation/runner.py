"""
Run Executor

Runs a predictor against every example of a dataset. Examples and the
repetitions of each example are launched concurrently on the event loop;
every attempt is its own error boundary, so a failing attempt becomes a
failure string in the results instead of aborting siblings.

Usage:
    executor = RunExecutor(client, RunConfig(repetitions=3))
    results = await executor.run("qa-dataset", my_llm)
    # {"<example-id>": [output_0, output_1, "Error: ValueError: ..."], ...}
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn

from utils.exceptions import InvalidArgumentError

from ..client.models import Example, format_timestamp
from ..client.repository import DatasetRepository
from .classifier import PredictorKind, classify, maybe_await
from .messages import messages_from_dict
from .tracer import RunTracer

logger = logging.getLogger(__name__)
console = Console(stderr=True)

RunResults = Dict[str, List[Any]]


class AttemptTimeout(Exception):
    """An attempt exceeded the run's per-attempt timeout."""


class _PredictorTimeout(Exception):
    """Carries a TimeoutError raised by the predictor itself."""

    def __init__(self, error: BaseException):
        super().__init__(str(error))
        self.error = error


@dataclass
class RunConfig:
    """Configuration for an evaluation run."""

    repetitions: int = 1  # Attempts per example
    timeout_seconds: Optional[float] = None  # Per attempt; None waits forever
    max_concurrent: Optional[int] = None  # In-flight attempts; None is unbounded
    verbose: bool = False  # Show a progress bar


def stringify_error(error: BaseException) -> str:
    """Failure record stored in place of an attempt's output."""
    return f"Error: {type(error).__name__}: {error}"


def make_session_name(dataset_name: str, predictor: Any) -> str:
    now = format_timestamp(datetime.now(timezone.utc))
    return f"{dataset_name}-{type(predictor).__name__}-{now}"


# -- Execution strategies ----------------------------------------------------


async def invoke_llm(llm: Any, example: Example, tracer: RunTracer) -> Any:
    prompt = example.inputs["prompt"]
    return await maybe_await(llm.generate([prompt], stop=None, callbacks=[tracer]))


async def invoke_chat_model(chat_model: Any, example: Example, tracer: RunTracer) -> Any:
    messages = messages_from_dict(example.inputs["messages"])
    return await maybe_await(chat_model.generate([messages], stop=None, callbacks=[tracer]))


async def invoke_chain_factory(factory: Any, example: Example, tracer: RunTracer) -> Any:
    # Fresh chain per attempt so attempts share no chain state
    chain = await maybe_await(factory())
    return await maybe_await(chain.call(example.inputs, callbacks=[tracer]))


STRATEGIES: Dict[PredictorKind, Callable[[Any, Example, RunTracer], Awaitable[Any]]] = {
    PredictorKind.LLM: invoke_llm,
    PredictorKind.CHAT_MODEL: invoke_chat_model,
    PredictorKind.CHAIN_FACTORY: invoke_chain_factory,
}


@dataclass
class _RunContext:
    kind: PredictorKind
    predictor: Any
    session_name: str
    semaphore: Optional[asyncio.Semaphore]
    progress: Progress
    task_id: Any
    failures: int = 0


class RunExecutor:
    """
    Executes evaluation runs over datasets.
    """

    def __init__(self, repository: DatasetRepository, config: Optional[RunConfig] = None):
        self.repository = repository
        self.config = config or RunConfig()
        if self.config.repetitions < 1:
            raise InvalidArgumentError(
                f"repetitions must be at least 1, got {self.config.repetitions}"
            )

    async def run(
        self,
        dataset_name: str,
        predictor: Any,
        session_name: Optional[str] = None,
    ) -> RunResults:
        """
        Run `predictor` on every example of `dataset_name`.

        Args:
            dataset_name: Dataset to evaluate on.
            predictor: An LLM, a chat model, or a zero-argument chain factory.
            session_name: Tracing session label; generated when omitted.

        Returns:
            Mapping of example id to the per-repetition outcomes, in
            repetition order. Failed attempts hold a failure string.

        Raises:
            UnknownPredictorTypeError: If the predictor cannot be classified.
            EvalHubError: If the examples cannot be fetched.
        """
        examples = await self.repository.list_examples(dataset_name=dataset_name)
        kind = await classify(predictor)
        session_name = session_name or make_session_name(dataset_name, predictor)

        logger.info(
            "Running %s (%s) on %d examples of %s, %d repetition(s), session %s",
            type(predictor).__name__,
            kind.value,
            len(examples),
            dataset_name,
            self.config.repetitions,
            session_name,
        )

        results: RunResults = {}
        semaphore = (
            asyncio.Semaphore(self.config.max_concurrent) if self.config.max_concurrent else None
        )

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=console,
            disable=not self.config.verbose,
        ) as progress:
            task_id = progress.add_task(
                f"[cyan]Evaluating on {dataset_name}...",
                total=len(examples) * self.config.repetitions,
            )
            ctx = _RunContext(
                kind=kind,
                predictor=predictor,
                session_name=session_name,
                semaphore=semaphore,
                progress=progress,
                task_id=task_id,
            )
            await asyncio.gather(*(self._run_example(ctx, ex, results) for ex in examples))

        logger.info(
            "Session %s finished: %d attempt(s), %d failed",
            session_name,
            len(examples) * self.config.repetitions,
            ctx.failures,
        )
        return results

    async def _run_example(self, ctx: _RunContext, example: Example, results: RunResults) -> None:
        tracer = RunTracer(example_id=example.id, session_name=ctx.session_name)
        outcomes = await asyncio.gather(
            *(
                self._run_attempt(ctx, example, tracer, rep)
                for rep in range(self.config.repetitions)
            )
        )
        results[example.id] = list(outcomes)

    async def _run_attempt(
        self,
        ctx: _RunContext,
        example: Example,
        tracer: RunTracer,
        repetition: int,
    ) -> Any:
        """Execute one attempt; never raises an Exception."""
        try:
            if ctx.semaphore is None:
                return await self._invoke(ctx, example, tracer)
            async with ctx.semaphore:
                return await self._invoke(ctx, example, tracer)

        except AttemptTimeout:
            ctx.failures += 1
            logger.error(
                "Example %s repetition %d timed out after %ss",
                example.id,
                repetition,
                self.config.timeout_seconds,
                extra={"example_id": example.id, "repetition": repetition},
            )
            return f"Error: TimeoutError: Timed out after {self.config.timeout_seconds}s"

        except Exception as e:
            ctx.failures += 1
            logger.error(
                "Example %s repetition %d failed: %s",
                example.id,
                repetition,
                e,
                exc_info=True,
                extra={"example_id": example.id, "repetition": repetition},
            )
            return stringify_error(e)

        finally:
            ctx.progress.advance(ctx.task_id)

    async def _invoke(self, ctx: _RunContext, example: Example, tracer: RunTracer) -> Any:
        call = STRATEGIES[ctx.kind](ctx.predictor, example, tracer)
        if self.config.timeout_seconds is None:
            return await call
        try:
            return await asyncio.wait_for(
                _wrap_timeouts(call), timeout=self.config.timeout_seconds
            )
        except asyncio.TimeoutError:
            raise AttemptTimeout(f"Timed out after {self.config.timeout_seconds}s") from None
        except _PredictorTimeout as e:
            raise e.error from None


async def _wrap_timeouts(call: Awaitable[Any]) -> Any:
    # Keeps the predictor's own TimeoutError apart from the one wait_for raises
    try:
        return await call
    except asyncio.TimeoutError as e:
        raise _PredictorTimeout(e) from e
