"""
Entry point for the workers.
"""
import asyncio
import sys
import logging

from freight_sync.core.logging import setup_logging

setup_logging()

logger = logging.getLogger(__name__)


def main():
    """Runs the worker named on the command line."""
    if len(sys.argv) < 2:
        print("Usage: python -m freight_sync.workers <worker_name>")
        print("Available workers: scheduler")
        sys.exit(1)

    worker_name = sys.argv[1]

    if worker_name == "scheduler":
        from freight_sync.workers.scheduler import scheduler_loop
        logger.info("Starting scheduler...")
        asyncio.run(scheduler_loop())
    else:
        logger.error(f"Unknown worker: {worker_name}")
        sys.exit(1)


if __name__ == "__main__":
    main()
