from __future__ import annotations

from fastapi import APIRouter, Depends

from salesdesk.core.metrics import request_metrics
from salesdesk.deps import get_current_username

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("")
def endpoint_metrics(_username: str = Depends(get_current_username)):
    return {"endpoints": request_metrics.snapshot()}
