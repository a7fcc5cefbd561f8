"""Login logs API routes."""
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cdmi.config import settings
from cdmi.database import get_db
from cdmi.models.login_log import LoginLog
from cdmi.schemas.common import Page
from cdmi.schemas.login_log import LoginLogCreate, LoginLogResponse

router = APIRouter(prefix="/api/login-logs", tags=["login-logs"])


@router.post("", response_model=LoginLogResponse, status_code=201)
async def create_login_log(
    body: LoginLogCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    """Record a login together with the client environment."""
    log = LoginLog(
        **body.model_dump(),
        ip=request.client.host if request.client else None,
    )
    db.add(log)
    await db.commit()
    await db.refresh(log)
    return log


@router.get("", response_model=Page[LoginLogResponse])
async def list_login_logs(
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, alias="perPage"),
    db: AsyncSession = Depends(get_db),
):
    """List login logs newest first."""
    total = await db.scalar(select(func.count()).select_from(LoginLog)) or 0
    result = await db.execute(
        select(LoginLog)
        .order_by(desc(LoginLog.created_at), desc(LoginLog.id))
        .limit(per_page)
        .offset((page - 1) * per_page)
    )
    return Page[LoginLogResponse].build(
        data=[LoginLogResponse.model_validate(log) for log in result.scalars().all()],
        total=total,
        page=page,
        per_page=per_page,
    )
