"""
Queue intake: turns raw message bodies into jobs and runs them on a bounded
worker pool.

Concurrency is bounded twice. The pool runs at most `max_workers` jobs at a
time, and `dispatch` blocks once `capacity` jobs are running or waiting. The
RabbitMQ consumer sets its prefetch to `prefetch_count`, which never lets the
broker hand out more messages than there are free slots, so the broker holds
the backlog and `dispatch` never blocks the connection thread.

The prefetch window counts unacknowledged messages only. Under `at_least_once`
a message stays unacknowledged until its job ends, so the window equals the
capacity. Under `at_most_once` a message is acknowledged when a worker picks
it up, so only waiting jobs count against the window: the prefetch is
`max_pending` (at least 1) and the capacity adds the running jobs on top.

Delivery semantics are an explicit policy:

- `at_most_once`: the message is acknowledged when its job is picked up,
  before any processing. A crash or failure loses the job.
- `at_least_once`: the message is acknowledged after a successful run and
  rejected (not requeued) after a classified failure. A crash leaves it
  unacknowledged, so the broker redelivers it.

Malformed messages are rejected without requeue under both policies and
never reach the processor.
"""
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Union

from loguru import logger

from ..config.common import DELIVERY_AT_LEAST_ONCE, DELIVERY_AT_MOST_ONCE, DELIVERY_POLICIES
from ..domain.exceptions import MalformedJobError
from ..domain.job import JobDescriptor, JobOutcome
from .processor import Processor


def _noop() -> None:
    pass


class Dispatcher:
    """
    Runs one `Processor.handle_job` per valid message.

    Args:
        processor: The processor that executes jobs.
        max_workers: Jobs running at the same time.
        max_pending: Jobs accepted and waiting for a free worker. Raised to 1
                     under `at_most_once`, which needs one waiting slot.
        delivery: `at_most_once` or `at_least_once`.
        log: The loguru logger.
    """

    def __init__(
        self,
        processor: Processor,
        max_workers: int,
        max_pending: int = 0,
        delivery: str = DELIVERY_AT_MOST_ONCE,
        log=logger,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if max_pending < 0:
            raise ValueError("max_pending must not be negative")
        if delivery not in DELIVERY_POLICIES:
            raise ValueError(f"Unknown delivery policy {delivery!r}")

        if delivery == DELIVERY_AT_MOST_ONCE:
            max_pending = max(max_pending, 1)
            self.prefetch_count = max_pending
        else:
            self.prefetch_count = max_workers + max_pending

        self.processor = processor
        self.delivery = delivery
        self.capacity = max_workers + max_pending
        self.log = log
        self._slots = threading.BoundedSemaphore(self.capacity)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="job")

    def dispatch(
        self,
        body: Union[bytes, str],
        ack: Callable[[], None] = _noop,
        reject: Callable[[], None] = _noop,
    ) -> Optional["Future[JobOutcome]"]:
        """
        Parses a message body and schedules its job.

        Args:
            body: The raw message body.
            ack: Acknowledges the message; called at most once.
            reject: Rejects the message without requeue; called at most once.

        Returns:
            The future of the scheduled run, or None if the message was dropped.
        """
        try:
            job = JobDescriptor.from_message(body)
        except MalformedJobError as e:
            self.log.error(f"Dropping malformed job message: {e}")
            reject()
            return None

        self._slots.acquire()
        try:
            future = self._executor.submit(self._run, job, ack, reject)
        except RuntimeError:
            # The pool has been shut down; the message stays unsettled.
            self._slots.release()
            raise
        self.log.debug(f"Job {job.id} scheduled")
        return future

    def _run(self, job: JobDescriptor, ack: Callable[[], None], reject: Callable[[], None]) -> JobOutcome:
        try:
            if self.delivery == DELIVERY_AT_MOST_ONCE:
                ack()
            outcome = self.processor.handle_job(job)
            self.log.debug(f"Job {job.id} settled: {outcome.as_log_fields()}")
            if self.delivery == DELIVERY_AT_LEAST_ONCE:
                if outcome.succeeded:
                    ack()
                else:
                    reject()
            return outcome
        finally:
            self._slots.release()

    def shutdown(self, wait: bool = True) -> None:
        """Stops accepting jobs; with `wait`, blocks until running jobs finish."""
        self._executor.shutdown(wait=wait)
