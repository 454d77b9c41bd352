# Gönder -> durum sorgula -> bitir akışı
#
#   idle -> submitting -> polling -> succeeded | failed | error
#                     \-> error          \-> cancelled
#
# Her çalıştırma kendi CancellationToken'ı ve ProgressSynthesizer'ı ile gelir;
# iptal edilmiş bir çalıştırma store'a bir daha yazmaz.

import asyncio
import logging
from typing import Optional

from .client import PredictionClient
from .config import Settings, settings as default_settings
from .errors import JobTimeoutError, ServiceError, TattooIdeasError, ValidationError
from .progress import ProgressSynthesizer, log_task_failure
from .schemas import Job, JobPhase, StateOut
from .state import JobStateStore
from .submission import build_prompt

logger = logging.getLogger(__name__)

FAILED_MESSAGE = "Generation failed. Please try again."


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, delay: float) -> bool:
        """Wait `delay` seconds; returns True early if cancelled meanwhile."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True


class JobController:
    """Owns one session's job lifecycle and writes it into a JobStateStore."""

    def __init__(
        self,
        client: PredictionClient,
        store: Optional[JobStateStore] = None,
        settings: Settings = default_settings,
    ):
        self.client = client
        self.store = store or JobStateStore()
        self.settings = settings
        self._token: Optional[CancellationToken] = None
        self._progress: Optional[ProgressSynthesizer] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def task(self) -> Optional[asyncio.Task]:
        return self._task

    def start(self, message: str) -> Optional[asyncio.Task]:
        """Validate and schedule a run. Returns None if validation failed."""
        try:
            prompt = build_prompt(message, self.settings)
        except ValidationError as e:
            self.store.set_error(e.message)
            return None

        self.cancel()
        token = CancellationToken()
        self._token = token
        self.store.begin()
        self._task = asyncio.get_running_loop().create_task(self._run(prompt, token))
        self._task.add_done_callback(log_task_failure)
        return self._task

    async def submit(self, message: str) -> StateOut:
        task = self.start(message)
        if task is not None:
            await task
        return self.store.snapshot()

    def cancel(self) -> bool:
        """Abandon the current run, if any. Returns True if one was active."""
        token, progress = self._token, self._progress
        self._token = None
        self._progress = None
        if progress is not None:
            progress.stop()
        if token is None or token.cancelled:
            return False
        token.cancel()
        if not self.store.in_flight:
            return False
        logger.info("job cancelled by caller")
        self.store.finish(JobPhase.CANCELLED)
        return True

    # ---------------------------------------------------------------
    # Bir çalıştırma
    # ---------------------------------------------------------------
    async def _run(self, prompt: str, token: CancellationToken) -> None:
        progress = ProgressSynthesizer(
            self.settings.PROGRESS_TICK,
            on_change=lambda v: None if token.cancelled else self.store.set_progress(v),
        )
        try:
            logger.info("submitting prompt (%d chars)", len(prompt))
            job = await self.client.create_job(prompt)
            if token.cancelled:
                return
            self.store.set_job(job)
            self._progress = progress
            progress.start()
            job = await self._poll(job, token)
            if job is None:
                return
            self._finish_terminal(job, progress)
        except TattooIdeasError as e:
            if not token.cancelled:
                logger.info("job ended with %s: %s", type(e).__name__, e.message)
                self.store.finish(JobPhase.ERROR, error=e.message)
        except asyncio.CancelledError:
            if not token.cancelled:
                token.cancel()
                self.store.finish(JobPhase.CANCELLED)
            raise
        finally:
            progress.stop()
            if self._token is token:
                self._progress = None

    async def _poll(self, job: Job, token: CancellationToken) -> Optional[Job]:
        """Fetch status until terminal; None means the run was cancelled."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.POLL_MAX_WAIT
        max_attempts = self.settings.POLL_MAX_ATTEMPTS
        attempts = 0

        while not job.is_terminal:
            if loop.time() >= deadline or (max_attempts is not None and attempts >= max_attempts):
                raise JobTimeoutError()
            if await token.sleep(self.settings.POLL_INTERVAL):
                return None
            job = await self.client.get_job(job.id)
            attempts += 1
            if token.cancelled:
                return None
            logger.debug("job %s status=%s outputs=%d", job.id, job.status, len(job.output))
            try:
                self.store.set_job(job)
            except ValueError as e:
                raise ServiceError() from e
        return job

    def _finish_terminal(self, job: Job, progress: ProgressSynthesizer) -> None:
        if job.status == "succeeded":
            progress.complete()
            logger.info("job %s succeeded with %d outputs", job.id, len(job.output))
            self.store.finish(JobPhase.SUCCEEDED)
        else:
            progress.stop()
            logger.info("job %s failed: %s", job.id, job.detail)
            self.store.finish(JobPhase.FAILED, error=job.detail or FAILED_MESSAGE)
