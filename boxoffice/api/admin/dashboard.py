import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlalchemy.ext.asyncio import AsyncSession

from boxoffice.api.deps import get_admin_user
from boxoffice.config import settings
from boxoffice.database import get_db
from boxoffice.services.registration_service import RegistrationService
from boxoffice.templating import templates

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/admin", response_class=HTMLResponse)
async def view_registrations(
    request: Request,
    admin_user: str = Depends(get_admin_user),
    db: AsyncSession = Depends(get_db),
):
    """Registrations listing with paid-only ticket and revenue totals."""
    service = RegistrationService(db)
    registrations = await service.list_registrations()
    stats = await service.summarize()

    logger.info(f"Admin listing viewed by {admin_user}: {stats.total_registrations} registrations")
    return templates.TemplateResponse(request, "admin.html", {
        "site_name": settings.site_name,
        "registrations": registrations,
        "stats": stats,
    })
