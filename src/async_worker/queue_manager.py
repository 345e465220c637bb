"""
Job Queue for the Async Worker.

- Maintains the ordered queue of pending jobs
- Ordering: priority ASC, insertion_order ASC (stable)
- Batch selection against a weight budget
- Front re-insertion for the error-retry path

What JobQueue MUST NOT do:
- Execute jobs (the worker's responsibility)
- Decide budgets (ThrottleAdvisor's responsibility)
- Emit events
"""

import bisect
from collections import deque
from itertools import islice
from typing import Any, Callable, Iterator, Mapping, Optional

from .entities import Job


# Consumed slots are dropped once they outnumber the live ones
_COMPACT_MIN = 64


class JobQueue:
    """
    Ordered storage of pending jobs.

    Key behaviors:
    - Insertion: binary search on (priority, insertion_order)
    - Removal from the head advances an index instead of shifting the
      list, so draining n jobs stays linear
    - Requeued jobs sit in a separate front lane that always drains
      before the sorted lane, so re-insertion never disturbs the sort
    - Forward progress: drain_batch returns at least one job whenever
      the queue is non-empty
    """

    def __init__(self):
        self._front: deque[Job] = deque()
        self._jobs: list[Job] = []
        self._keys: list[tuple[int, int]] = []
        self._head = 0
        self._next_order = 0
        self.jobs_count = 0

    def __len__(self) -> int:
        return len(self._front) + len(self._jobs) - self._head

    def __bool__(self) -> bool:
        return len(self) > 0

    def __iter__(self) -> Iterator[Job]:
        return iter(self.snapshot())

    # =========================================================================
    # Insertion
    # =========================================================================

    def append(self, job: Job) -> Job:
        """
        Insert a job at its sorted position.

        Args:
            job: Job to insert

        Returns:
            The inserted job
        """
        key = job.sort_key
        index = bisect.bisect_right(self._keys, key, lo=self._head)
        self._keys.insert(index, key)
        self._jobs.insert(index, job)
        self.jobs_count += 1
        return job

    def create(
        self,
        fn: Callable[..., Any],
        args: Optional[tuple] = None,
        kwargs: Optional[Mapping[str, Any]] = None,
        weight: Any = None,
        priority: Any = None,
    ) -> Job:
        """Create a job stamped with the next insertion order and append it."""
        job = Job.create(
            fn,
            args=args,
            kwargs=kwargs,
            weight=weight,
            priority=priority,
            insertion_order=self._next_order,
        )
        self._next_order += 1
        return self.append(job)

    def requeue_front(self, job: Job) -> None:
        """
        Put a job back at the very front, ahead of its natural position.

        Only used to retry a failed job. Does not count as a new job.
        """
        self._front.appendleft(job)

    def requeue_front_many(self, jobs: list[Job]) -> None:
        """Requeue several jobs at the front, keeping their relative order."""
        for job in reversed(jobs):
            self._front.appendleft(job)

    # =========================================================================
    # Retrieval
    # =========================================================================

    def peek(self) -> Optional[Job]:
        """Return the head job without removing it."""
        if self._front:
            return self._front[0]
        if self._head < len(self._jobs):
            return self._jobs[self._head]
        return None

    def _iter_pending(self) -> Iterator[Job]:
        yield from self._front
        yield from islice(self._jobs, self._head, None)

    def snapshot(self) -> tuple[Job, ...]:
        """All pending jobs in drain order."""
        return tuple(self._iter_pending())

    def peek_weight(self, n: int) -> float:
        """Sum the weights of the first n jobs without removing them."""
        return sum((job.weight for job in islice(self._iter_pending(), max(n, 0))), 0.0)

    def _pop_head(self) -> Job:
        if self._front:
            return self._front.popleft()
        job = self._jobs[self._head]
        self._head += 1
        if self._head >= _COMPACT_MIN and self._head * 2 >= len(self._jobs):
            del self._jobs[:self._head]
            del self._keys[:self._head]
            self._head = 0
        return job

    def drain(self, n: int) -> list[Job]:
        """Remove and return the first n jobs."""
        drained: list[Job] = []
        while self and len(drained) < n:
            drained.append(self._pop_head())
        return drained

    def drain_batch(self, budget: float) -> list[Job]:
        """
        Remove the next batch of jobs that fits in the budget.

        Takes head jobs while the running weight total stays within the
        budget. The first job is always admitted, so a job heavier than
        the whole budget still runs alone instead of starving.

        Args:
            budget: Maximum cumulative weight for this batch

        Returns:
            Jobs in execution order (empty only when the queue is empty)
        """
        batch: list[Job] = []
        total = 0.0
        while self:
            head = self.peek()
            if batch and total + head.weight > budget:
                break
            batch.append(self._pop_head())
            total += head.weight
        return batch

    # =========================================================================
    # Reset
    # =========================================================================

    def clear(self) -> None:
        """Empty the queue and reset the append counter."""
        self._front.clear()
        self._jobs.clear()
        self._keys.clear()
        self._head = 0
        self._next_order = 0
        self.jobs_count = 0
