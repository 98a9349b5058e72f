"""
DLQ retry job.

Triggered every 15 minutes by the scheduler (or an external cron) with
GET or POST /jobs/dlq-retry.
"""

from fastapi import APIRouter, Depends

from freight_sync.repositories.deps import get_retry_scheduler
from freight_sync.services.webhooks.retry import RetryScheduler
from ._helpers import job_endpoint

router = APIRouter()


@router.api_route("/dlq-retry", methods=["GET", "POST"])
@job_endpoint("dlq-retry")
async def job_dlq_retry(scheduler: RetryScheduler = Depends(get_retry_scheduler)):
    """
    Runs one DLQ retry cycle.

    - Alerts once if the backlog is over the limit
    - Reprocesses every due item below its retry ceiling
    - Items left over when the time budget runs out are deferred
    """
    result = await scheduler.run()

    return {
        "status": "ok",
        "message": f"DLQ retry: {result.summary}",
        **result.to_dict(),
    }
