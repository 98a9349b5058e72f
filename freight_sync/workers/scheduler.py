"""
Scheduler that triggers the jobs endpoints on a cron schedule.

Stand-in for the external cron provider: it calls the same HTTP trigger,
with the same shared secret.
"""
import asyncio
import httpx
import logging
from datetime import datetime

from freight_sync.core.config import settings
from freight_sync.core.timezone import now_utc

logger = logging.getLogger(__name__)

JOBS = [
    {
        "name": "dlq_retry",
        "endpoint": "/jobs/dlq-retry",
        "schedule": settings.DLQ_RETRY_SCHEDULE,  # every 15 minutes by default
    },
]


def parse_cron(schedule: str) -> dict:
    """Parses a simple five-field cron expression."""
    parts = schedule.split()
    if len(parts) != 5:
        raise ValueError(f"Invalid cron: {schedule}")
    return {
        "minute": parts[0],
        "hour": parts[1],
        "day": parts[2],
        "month": parts[3],
        "weekday": parts[4],
    }


def matches_cron_field(field: str, value: int) -> bool:
    """Checks a value against one cron field."""
    if field == "*":
        return True

    # */N
    if field.startswith("*/"):
        interval = int(field[2:])
        return value % interval == 0

    # 1,2,3
    if "," in field:
        return any(matches_cron_field(part, value) for part in field.split(","))

    # 1-5
    if "-" in field:
        start, end = field.split("-", 1)
        return int(start) <= value <= int(end)

    return str(value) == field


def should_run(schedule: str, now: datetime) -> bool:
    """Checks whether a job is due at `now` (minute resolution)."""
    try:
        cron = parse_cron(schedule)
        if not matches_cron_field(cron["minute"], now.minute):
            return False
        if not matches_cron_field(cron["hour"], now.hour):
            return False
        if not matches_cron_field(cron["day"], now.day):
            return False
        if not matches_cron_field(cron["month"], now.month):
            return False

        # Python: 0=Mon..6=Sun; cron: 0=Sun..6=Sat
        if cron["weekday"] != "*":
            cron_weekday = (now.weekday() + 1) % 7
            if not matches_cron_field(cron["weekday"], cron_weekday):
                return False
    except ValueError as e:
        logger.error(f"Error parsing cron {schedule}: {e}")
        return False

    return True


def _auth_headers() -> dict:
    if not settings.CRON_SECRET:
        return {}
    return {"Authorization": f"Bearer {settings.CRON_SECRET}"}


async def execute_job(job: dict) -> bool:
    """
    Calls one job endpoint.

    Returns:
        True if the endpoint answered 200
    """
    url = f"{settings.API_BASE_URL}{job['endpoint']}"
    logger.info(f"Running job {job['name']} -> {url}")

    try:
        async with httpx.AsyncClient(timeout=60.0) as client:
            response = await client.post(url, headers=_auth_headers())
    except httpx.TimeoutException:
        logger.error(f"Timeout running job {job['name']}")
        return False
    except httpx.HTTPError as e:
        logger.error(f"Error running job {job['name']}: {e}")
        return False

    if response.status_code == 200:
        logger.info(f"Job {job['name']} finished: {response.text}")
        return True

    logger.error(f"Job {job['name']} failed: {response.status_code} - {response.text}")
    return False


async def scheduler_loop():
    """Main scheduler loop."""
    logger.info("Scheduler started")
    logger.info(f"API URL: {settings.API_BASE_URL}")
    logger.info(f"{len(JOBS)} jobs configured")

    if not settings.CRON_SECRET:
        logger.warning("CRON_SECRET not configured, job triggers will be rejected")

    last_minute = -1

    while True:
        try:
            now = now_utc()

            # Fire only at the start of each minute
            if now.minute != last_minute:
                last_minute = now.minute

                for job in JOBS:
                    if should_run(job["schedule"], now):
                        logger.info(f"Trigger: {job['name']} (schedule: {job['schedule']})")
                        await execute_job(job)

            await asyncio.sleep(1)

        except asyncio.CancelledError:
            logger.info("Scheduler stopped")
            raise
        except Exception as e:
            logger.error(f"Scheduler error: {e}", exc_info=True)
            await asyncio.sleep(10)


if __name__ == "__main__":
    asyncio.run(scheduler_loop())
