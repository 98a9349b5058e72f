"""
Endpoints for scheduled jobs.

Every route under /jobs requires the cron shared secret.
"""

from fastapi import APIRouter, Depends

from ._helpers import verify_cron_secret
from .dlq import router as dlq_router

router = APIRouter(prefix="/jobs", tags=["Jobs"], dependencies=[Depends(verify_cron_secret)])
router.include_router(dlq_router)
