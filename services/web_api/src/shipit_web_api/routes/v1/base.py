"""基础接口"""

from fastapi import APIRouter

from shipit_core.common.config import settings
from shipit_core.common.time import now_utc, to_iso
from shipit_core.domain.schemas.common import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse(status="ok", version=settings.APP_VERSION, timestamp=to_iso(now_utc()))
