"""
Queue drainer for extmirror.

Empties a tube by reserving and deleting jobs until none is left, then drops
reservations nobody acknowledged. Used to reset the pipeline before a fresh
planning run.
"""

import logging
from typing import Optional

from ..infra.queue_client import JobQueueClient

logger = logging.getLogger(__name__)


class QueueDrainer:
    """Reserve-then-delete every job on a tube."""

    def __init__(self, queue: JobQueueClient, timeout: float = 1.0):
        """
        Args:
            queue: Queue client
            timeout: Seconds a reservation waits before the tube counts as empty
        """
        self.queue = queue
        self.timeout = timeout

    def drain(self, tube: str, timeout: Optional[float] = None) -> int:
        """
        Delete every ready and reserved job on ``tube``.

        Returns:
            Number of jobs deleted
        """
        wait = self.timeout if timeout is None else timeout
        deleted = 0
        while True:
            job = self.queue.reserve(tube, timeout=wait)
            if job is None:
                break
            logger.info(f"Deleting job #{job.id}")
            self.queue.delete(job)
            deleted += 1

        for job_id in self.queue.clear_reserved(tube):
            logger.info(f"Deleting reserved job #{job_id}")
            deleted += 1

        logger.info("Finished clearing the queue")
        return deleted
