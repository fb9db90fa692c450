from __future__ import annotations

import functools
import logging
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable

from reqprof.config import RequestSpec, RunConfig, TimeoutConfig
from reqprof.metrics import ProfileReport, RequestResult, StatsAccumulator
from reqprof.probe.client import execute
from reqprof.storage import Storage

logger = logging.getLogger(__name__)

Executor = Callable[[RequestSpec], Awaitable[RequestResult]]
ProgressCallback = Callable[[int, int], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class RunResult:
    run_id: str
    report: ProfileReport


def _new_run_id() -> str:
    return uuid.uuid4().hex


def default_executor(timeouts: TimeoutConfig | None = None) -> Executor:
    return functools.partial(execute, timeouts=timeouts)


async def run_single(spec: RequestSpec, executor: Executor | None = None) -> RequestResult:
    executor = executor or default_executor()
    return await executor(spec)


async def run_profile(
    spec: RequestSpec,
    count: int,
    executor: Executor | None = None,
    progress: ProgressCallback | None = None,
) -> ProfileReport:
    """Run ``count`` sequential requests and aggregate them.

    Any ``ProbeError`` from the executor propagates and aborts the whole run.
    """
    if count < 1:
        msg = f"Request count must be a positive integer, got {count}"
        raise ValueError(msg)
    executor = executor or default_executor()
    stats = StatsAccumulator()
    logger.info("Profiling %s%s with %d request(s)", spec.host, spec.path, count)
    for i in range(count):
        result = await executor(spec)
        status = stats.record(result)
        logger.debug(
            "Request %d/%d: %d ms, %d bytes, status=%s (%s)",
            i + 1,
            count,
            result.elapsed_ms,
            result.byte_count,
            result.status_code,
            status.value,
        )
        if progress:
            await progress(i + 1, count)
    report = stats.report()
    logger.info("Profile complete: median %.1f ms over %d request(s)", report.median_ms, report.count)
    return report


async def run_experiment(
    config: RunConfig,
    storage: Storage,
    executor: Executor | None = None,
    progress: ProgressCallback | None = None,
) -> RunResult:
    run_id = config.run_id or _new_run_id()
    if storage.run_exists(run_id):
        msg = f"Run {run_id} already exists"
        raise ValueError(msg)
    executor = executor or default_executor(config.timeouts)
    report = await run_profile(config.spec, config.count, executor, progress)
    storage.save_run(config, run_id, report)
    return RunResult(run_id=run_id, report=report)
