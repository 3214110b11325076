"""
Queue client infrastructure for extmirror.

A thin FIFO broker on Redis with beanstalk-style semantics:
- enqueue puts a payload on a named tube
- reserve moves the oldest job to the tube's reserved list
- delete acknowledges a reserved job

Reservations carry a lease: a job reserved longer than ``lease_seconds``
(its worker was killed mid-job) goes back to the front of the ready list on
the next reserve. There is no retry or backoff. Connection errors propagate
to the caller.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional, Dict, Any, List

import redis

from ..domain.job import Job

logger = logging.getLogger(__name__)


@dataclass
class QueueStats:
    """Job counts for one tube."""
    tube: str
    ready: int
    reserved: int

    def to_dict(self) -> Dict[str, Any]:
        return {'tube': self.tube, 'ready': self.ready, 'reserved': self.reserved}


class JobQueueClient:
    """
    Redis-backed job queue.

    Keys, for prefix ``p`` and tube ``t``:
        p:t:ready      list of job ids waiting, oldest on the right
        p:t:reserved   list of job ids handed to a worker
        p:t:leases     sorted set of reserved job ids, scored by reserve time
        p:job:<id>     job body
        p:ids          id counter

    Example:
        queue = JobQueueClient.from_url("redis://localhost:6379/0")
        job_id = queue.enqueue("extensions", payload)
        job = queue.reserve("extensions")
        queue.delete(job)
    """

    def __init__(self, client: redis.Redis, prefix: str = "extmirror", lease_seconds: Optional[float] = 3600):
        """
        Args:
            client: Redis connection
            prefix: Key prefix
            lease_seconds: Seconds before an unacknowledged reservation is
                handed out again; 0 or None never expires reservations
        """
        self.redis = client
        self.prefix = prefix
        self.lease_seconds = lease_seconds

    @classmethod
    def from_url(cls, url: str, prefix: str = "extmirror", lease_seconds: Optional[float] = 3600) -> 'JobQueueClient':
        return cls(redis.Redis.from_url(url), prefix=prefix, lease_seconds=lease_seconds)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'JobQueueClient':
        queue = config.get('queue', {})
        return cls.from_url(
            queue.get('url', 'redis://localhost:6379/0'),
            prefix=queue.get('prefix', 'extmirror'),
            lease_seconds=queue.get('lease_seconds', 3600),
        )

    def _ready_key(self, tube: str) -> str:
        return f"{self.prefix}:{tube}:ready"

    def _reserved_key(self, tube: str) -> str:
        return f"{self.prefix}:{tube}:reserved"

    def _leases_key(self, tube: str) -> str:
        return f"{self.prefix}:{tube}:leases"

    def _job_key(self, job_id: str) -> str:
        return f"{self.prefix}:job:{job_id}"

    @staticmethod
    def _text(value) -> str:
        return value.decode('utf-8') if isinstance(value, bytes) else str(value)

    def enqueue(self, tube: str, payload: bytes) -> str:
        """Put a payload on a tube. Returns the broker-assigned job id."""
        job_id = str(self.redis.incr(f"{self.prefix}:ids"))
        pipe = self.redis.pipeline()
        pipe.set(self._job_key(job_id), payload)
        pipe.lpush(self._ready_key(tube), job_id)
        pipe.execute()
        logger.debug(f"Enqueued job #{job_id} on {tube} ({len(payload)} bytes)")
        return job_id

    def reserve(self, tube: str, timeout: Optional[float] = None) -> Optional[Job]:
        """
        Reserve the oldest job on a tube.

        Args:
            tube: Tube name
            timeout: Seconds to wait; None blocks until a job arrives,
                0 checks once without blocking

        Returns:
            The reserved Job, or None if the timeout passed without one
        """
        self.requeue_expired(tube)

        ready, reserved = self._ready_key(tube), self._reserved_key(tube)
        if timeout is None:
            # BLMOVE treats 0 as "wait forever"
            job_id = self.redis.blmove(ready, reserved, 0, src="RIGHT", dest="LEFT")
        elif timeout <= 0:
            job_id = self.redis.lmove(ready, reserved, src="RIGHT", dest="LEFT")
        else:
            job_id = self.redis.blmove(ready, reserved, timeout, src="RIGHT", dest="LEFT")
        if job_id is None:
            return None

        job_id = self._text(job_id)
        self.redis.zadd(self._leases_key(tube), {job_id: time.time()})
        payload = self.redis.get(self._job_key(job_id))
        if payload is None:
            logger.warning(f"Job #{job_id} has no body, treating payload as empty")
            payload = b""
        return Job(id=job_id, tube=tube, payload=payload)

    def requeue_expired(self, tube: str) -> List[str]:
        """
        Put reservations older than the lease back on the ready list.

        Requeued ids go to the consuming end, so they are reserved next.

        Returns:
            Ids that were requeued
        """
        if not self.lease_seconds:
            return []

        leases = self._leases_key(tube)
        cutoff = time.time() - self.lease_seconds
        requeued = []
        for raw_id in self.redis.zrangebyscore(leases, '-inf', cutoff):
            job_id = self._text(raw_id)
            # Only the client that removes the lease moves the job
            if not self.redis.zrem(leases, job_id):
                continue
            pipe = self.redis.pipeline()
            pipe.lrem(self._reserved_key(tube), 1, job_id)
            pipe.rpush(self._ready_key(tube), job_id)
            pipe.execute()
            logger.warning(f"Lease of job #{job_id} on {tube} expired, requeued")
            requeued.append(job_id)
        return requeued

    def delete(self, job: Job) -> None:
        """Acknowledge a reserved job and drop its body."""
        pipe = self.redis.pipeline()
        pipe.lrem(self._reserved_key(job.tube), 1, job.id)
        pipe.zrem(self._leases_key(job.tube), job.id)
        pipe.delete(self._job_key(job.id))
        pipe.execute()
        logger.debug(f"Deleted job #{job.id} from {job.tube}")

    def clear_reserved(self, tube: str) -> List[str]:
        """
        Drop every reserved job on a tube, acknowledged or not.

        Returns:
            Ids that were removed
        """
        reserved = self._reserved_key(tube)
        job_ids = [self._text(raw_id) for raw_id in self.redis.lrange(reserved, 0, -1)]
        pipe = self.redis.pipeline()
        for job_id in job_ids:
            pipe.lrem(reserved, 1, job_id)
            pipe.zrem(self._leases_key(tube), job_id)
            pipe.delete(self._job_key(job_id))
        pipe.execute()
        return job_ids

    def stats(self, tube: str) -> QueueStats:
        return QueueStats(
            tube=tube,
            ready=int(self.redis.llen(self._ready_key(tube))),
            reserved=int(self.redis.llen(self._reserved_key(tube))),
        )
