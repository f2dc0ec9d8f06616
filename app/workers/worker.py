"""
Worker Entry Point

Starts the Redis Queue (RQ) worker that runs meeting processing jobs
when PIPELINE_BACKEND=RQ.
"""

from rq import Queue, Worker

from app.core.config import settings
from app.core.logging import get_logger, setup_logging
from app.infra.redis import get_sync_redis

logger = get_logger(__name__)


def main() -> None:
    setup_logging()

    conn = get_sync_redis()
    queues = [Queue(name, connection=conn) for name in settings.worker_queues]

    worker = Worker(queues, connection=conn)
    logger.info(f"Worker started. Listening on: {settings.worker_queues}")
    worker.work()


if __name__ == "__main__":
    main()
