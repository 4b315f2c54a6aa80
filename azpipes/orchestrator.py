"""Sequential pipeline orchestration: trigger -> poll until terminal -> next.

Pipelines run strictly one at a time. The first trigger error, poll error or
non-succeeded result stops the sequence; later pipelines are never started.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Protocol, Sequence

from azpipes.config import PollingConfig
from azpipes.exceptions import PollError, TriggerError
from azpipes.models import (
    PipelineOutcome,
    PipelineSpec,
    RunHandle,
    SequenceResult,
    TerminalResult,
)
from azpipes.services.azure_devops import AzureDevOpsAPIError, PipelineRun

logger = logging.getLogger(__name__)

SleepFn = Callable[[float], Awaitable[None]]


class PipelineRunsAPI(Protocol):
    async def run_pipeline(self, pipeline_id: int, ref: str) -> PipelineRun: ...

    async def get_run(self, pipeline_id: int, run_id: int) -> PipelineRun: ...


class PipelineOrchestrator:
    """Runs an ordered list of pipelines against the Pipelines API."""

    def __init__(
        self,
        client: PipelineRunsAPI,
        polling: PollingConfig | None = None,
        sleep: SleepFn = asyncio.sleep,
    ):
        self.client = client
        self.polling = polling or PollingConfig()
        self._sleep = sleep

    async def trigger(self, spec: PipelineSpec) -> RunHandle:
        """Start one run of `spec`. Raises TriggerError; never retries."""
        logger.info(f"Triggering {spec}")
        try:
            run = await self.client.run_pipeline(spec.id, spec.ref)
        except AzureDevOpsAPIError as e:
            raise TriggerError(spec.name, str(e)) from e

        handle = RunHandle(
            run_id=run.id,
            pipeline_id=spec.id,
            spec_name=spec.name,
            web_url=run.web_url,
        )
        logger.info(
            f"{spec.name}: started run {handle.run_id}"
            + (f" ({handle.web_url})" if handle.web_url else "")
        )
        return handle

    async def await_completion(
        self, handle: RunHandle, outcome: PipelineOutcome | None = None
    ) -> TerminalResult:
        """Poll `handle` at a fixed interval until the run is terminal.

        Raises PollError on the first failed status call, or when
        `max_attempts` is configured and runs out first.
        """
        interval = self.polling.interval_seconds
        max_attempts = self.polling.max_attempts
        attempt = 0

        while True:
            attempt += 1
            try:
                run = await self.client.get_run(handle.pipeline_id, handle.run_id)
            except AzureDevOpsAPIError as e:
                raise PollError(
                    handle.spec_name, handle.run_id, handle.pipeline_id, str(e)
                ) from e
            finally:
                if outcome is not None:
                    outcome.polls = attempt

            if run.is_terminal:
                result = TerminalResult.from_raw(run.result)
                logger.info(
                    f"{handle.spec_name}: run {handle.run_id} completed "
                    f"with result '{result}' after {attempt} poll(s)"
                )
                return result

            if max_attempts is not None and attempt >= max_attempts:
                raise PollError(
                    handle.spec_name,
                    handle.run_id,
                    handle.pipeline_id,
                    f"still '{run.state.value}' after {attempt} polls",
                )

            logger.info(
                f"{handle.spec_name}: run {handle.run_id} is '{run.state.value}', "
                f"checking again in {interval:g}s"
            )
            await self._sleep(interval)

    async def run(
        self,
        specs: Sequence[PipelineSpec],
        start_at: str | None = None,
    ) -> SequenceResult:
        """Run `specs` in order, stopping at the first failure.

        `start_at` resumes from the named spec; earlier specs are skipped.
        """
        specs = list(specs)
        sequence = SequenceResult()

        if start_at is not None:
            names = [spec.name for spec in specs]
            if start_at not in names:
                raise ValueError(f"Unknown pipeline name: {start_at}")
            index = names.index(start_at)
            sequence.skipped = names[:index]
            specs = specs[index:]

        total = len(specs)
        logger.info(f"Running {total} pipeline(s) in sequence")

        for i, spec in enumerate(specs, 1):
            logger.info(f"[{i}/{total}] {spec.name}")
            outcome = PipelineOutcome(spec=spec)
            sequence.outcomes.append(outcome)

            try:
                handle = await self.trigger(spec)
            except TriggerError as e:
                logger.error(f"Could not start {spec.name}: {e.message}")
                outcome.error = f"trigger failed: {e.message}"
                return sequence

            outcome.run_id = handle.run_id
            outcome.web_url = handle.web_url

            try:
                outcome.result = await self.await_completion(handle, outcome)
            except PollError as e:
                logger.error(f"Lost track of {spec.name}: {e.message}")
                outcome.error = f"poll failed: {e.message}"
                return sequence

            if not outcome.result.succeeded:
                logger.error(
                    f"{spec.name} finished with result '{outcome.result}'; "
                    f"stopping sequence"
                )
                return sequence

        logger.info(f"All {total} pipeline(s) succeeded")
        return sequence
