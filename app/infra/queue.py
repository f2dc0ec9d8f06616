"""
Job queue infrastructure

Thin wrapper around Redis Queue (RQ) so callers enqueue by dotted job path.
"""

from typing import Any, Optional

from redis import Redis
from rq import Queue
from rq.job import Job


class JobQueue:
    def __init__(self, queue: Queue):
        self.queue = queue

    @property
    def name(self) -> str:
        return self.queue.name

    def enqueue(
        self,
        func_path: str,
        *args: Any,
        job_id: Optional[str] = None,
        job_timeout: Optional[int] = None,
        **kwargs: Any,
    ) -> Job:
        """Enqueue a job by dotted path, e.g. 'app.workers.jobs.process_meeting.process_meeting'"""
        return self.queue.enqueue(
            func_path,
            *args,
            job_id=job_id,
            job_timeout=job_timeout,
            kwargs=kwargs or None,
        )

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.queue.fetch_job(job_id)


class QueueFactory:
    @staticmethod
    def get_queue(connection: Redis, name: str = "default") -> JobQueue:
        return JobQueue(Queue(name, connection=connection))
