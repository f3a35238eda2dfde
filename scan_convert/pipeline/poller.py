"""Poll a submitted conversion job until it reaches a terminal state.

States: Submitted → {Completed, Failed, TimedOut}. Each iteration checks the
current job before sleeping, so a job that is already complete at submission
time costs no status queries. Delays grow multiplicatively up to a ceiling.
"""
from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

from scan_convert.core.errors import ConversionTimeoutError, ProcessingFailedError
from scan_convert.ocr.base_ocr import ConversionService, Job, JobStatus

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]


async def wait_for_job(
    service: ConversionService,
    job: Job,
    *,
    timeout: float,
    initial_delay: float = 1.5,
    backoff_factor: float = 1.5,
    max_delay: float = 7.0,
    sleep: SleepFn = asyncio.sleep,
    clock: ClockFn = time.monotonic,
) -> Job:
    start = clock()
    delay = initial_delay
    polls = 0

    while True:
        if job.status is JobStatus.COMPLETED and job.result_url:
            logger.info(
                "conversion_completed",
                extra={"task_id": job.task_id, "polls": polls, "elapsed": round(clock() - start, 3)},
            )
            return job
        if job.status.is_failure:
            logger.warning(
                "conversion_failed",
                extra={"task_id": job.task_id, "status": job.status.value, "polls": polls},
            )
            raise ProcessingFailedError(job.error or f"ABBYY processing failed (status={job.status.value})")
        if clock() - start > timeout:
            logger.warning("conversion_timeout", extra={"task_id": job.task_id, "polls": polls})
            raise ConversionTimeoutError(f"ABBYY timeout after {timeout:g}s (task {job.task_id})")

        await sleep(delay)
        job = await service.get_status(job.task_id)
        polls += 1
        logger.debug(
            "conversion_poll",
            extra={"task_id": job.task_id, "status": job.status.value, "delay": delay, "poll": polls},
        )
        delay = min(delay * backoff_factor, max_delay)
