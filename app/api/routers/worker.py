from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_use_cases
from app.infrastructure.db.retry import retry_on_transient

router = APIRouter()


@router.post(
    "/workers/payments/sweep",
    status_code=status.HTTP_200_OK,
)
async def sweep_pending_payments(
    use_cases: Annotated[dict, Depends(get_use_cases)],
) -> dict:
    """
    Runs one pending payment sweep on demand.

    Same pass the background sweeper runs on its interval; useful for cron
    driven deployments that disable the in-process worker.
    """

    async def execute_sweep():
        return await use_cases["sweep_pending_payments"].execute()

    report = await retry_on_transient(execute_sweep, max_attempts=3, base_delay=0.1)
    return report.as_dict()
