from typing import Optional

from fastapi import HTTPException, Header

from venue_booking.core.config import settings
from venue_booking.core.logger import logger

async def require_admin(x_admin_token: Optional[str] = Header(None)) -> bool:
    """
    Verify the admin token from the request header.
    Guards the confirm/reject/listing routes; the only question asked here is
    whether the caller is authorized.
    """
    if not settings.ADMIN_TOKEN:
        if settings.ENVIRONMENT == "development":
            logger.warning("⚠️ ADMIN_TOKEN is not set, admin routes are unprotected (development)")
            return True
        logger.error("❌ ADMIN_TOKEN is not set, refusing admin request")
        raise HTTPException(status_code=401, detail="Admin access is not configured")

    if x_admin_token != settings.ADMIN_TOKEN:
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return True
