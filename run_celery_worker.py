#!/usr/bin/env python3
"""
Celery worker runner for the brief generator.

Starts a worker on the 'briefs' queue. Concurrency comes from
WORKER_CONCURRENCY (default 2); each brief run is long and mostly waits
on providers.
"""

import os
import sys
import logging

from briefgen.tasks.celery_app import celery_app
from briefgen.utils.config import get_config
from briefgen.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def main():
    """Start the Celery worker."""
    config = get_config()
    setup_logging(vars(config))

    concurrency = int(os.environ.get('WORKER_CONCURRENCY', '2'))

    try:
        logger.info(f"Starting brief generator worker on 'briefs' (concurrency={concurrency})")

        worker = celery_app.Worker(
            queues=['briefs'],
            concurrency=concurrency,
            loglevel=config.LOG_LEVEL,
            hostname='brief-generator-worker@%h'
        )

        worker.start()

    except KeyboardInterrupt:
        logger.info("Worker stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Worker failed to start: {str(e)}")
        sys.exit(1)


if __name__ == '__main__':
    main()
