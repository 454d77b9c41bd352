# Oturum başına tek iş durumu (arayüzün okuduğu tek kaynak)

import logging
from typing import Callable, List, Optional

from .gallery import gallery_for, placeholder_count
from .schemas import Job, JobPhase, StateOut

logger = logging.getLogger(__name__)

Listener = Callable[[StateOut], None]


class JobStateStore:
    """Holds the current job, error, in-flight flag and progress.

    Writes replace whole fields; listeners receive a complete snapshot after
    every write, in write order.
    """

    def __init__(self) -> None:
        self._phase = JobPhase.IDLE
        self._job: Optional[Job] = None
        self._error: Optional[str] = None
        self._in_flight = False
        self._progress = 0
        self._listeners: List[Listener] = []

    @property
    def phase(self) -> JobPhase:
        return self._phase

    @property
    def job(self) -> Optional[Job]:
        return self._job

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def progress(self) -> int:
        return self._progress

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def snapshot(self) -> StateOut:
        return StateOut(
            phase=self._phase,
            job=self._job,
            error=self._error,
            in_flight=self._in_flight,
            progress=self._progress,
            placeholders=placeholder_count(self._job),
            gallery=gallery_for(self._job),
        )

    # ---------------------------------------------------------------
    # Yazma işlemleri (yalnızca JobController çağırır)
    # ---------------------------------------------------------------
    def begin(self) -> None:
        """New submission: previous job and error are discarded."""
        self._phase = JobPhase.SUBMITTING
        self._job = None
        self._error = None
        self._in_flight = True
        self._progress = 0
        self._notify()

    def set_job(self, job: Job, phase: JobPhase = JobPhase.POLLING) -> None:
        if self._job is not None and self._job.id != job.id:
            raise ValueError(f"job id is immutable: {self._job.id} -> {job.id}")
        if self._job is not None and self._job.is_terminal:
            raise ValueError(f"job {job.id} already finished with {self._job.status}")
        self._job = job
        self._phase = phase
        self._notify()

    def set_progress(self, value: int) -> None:
        self._progress = max(0, min(100, value))
        self._notify()

    def set_error(self, message: str) -> None:
        """Validation failure outside of a run; the current job stays visible."""
        self._error = message
        self._notify()

    def finish(self, phase: JobPhase, error: Optional[str] = None) -> None:
        self._phase = phase
        self._error = error
        self._in_flight = False
        self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)
