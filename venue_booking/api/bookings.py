from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from venue_booking.core.security import require_admin
from venue_booking.models.booking import BookingRequest, BookingStatus, RejectRequest
from venue_booking.services.booking_service import BookingService
from venue_booking.services.results import OperationResult

router = APIRouter()

_booking_service: Optional[BookingService] = None

def get_booking_service() -> BookingService:
    # One instance per process: it owns the lock that serializes confirmations
    global _booking_service
    if _booking_service is None:
        _booking_service = BookingService()
    return _booking_service

def to_response(result: OperationResult, success_status: int = 200, with_count: bool = False) -> JSONResponse:
    body = {
        "success": result.success,
        "message": result.message,
    }
    if result.error:
        body["error"] = result.error.kind.value
    else:
        dumped = result.model_dump(mode="json")
        body["data"] = dumped["data"]
        if with_count:
            body["count"] = len(result.data or [])
        if result.warnings:
            body["warnings"] = dumped["warnings"]
    status_code = success_status if result.success else result.http_status
    return JSONResponse(status_code=status_code, content=body)

@router.post("/booking")
async def create_booking(
    req: BookingRequest,
    request: Request,
    service: BookingService = Depends(get_booking_service),
):
    source_address = request.client.host if request.client else None
    result = await service.submit(req, source_address=source_address)
    return to_response(result, success_status=201)

@router.get("/booking/blocked-dates")
async def get_blocked_dates(service: BookingService = Depends(get_booking_service)):
    result = await service.list_blocked_ranges()
    return to_response(result)

@router.get("/booking/all", dependencies=[Depends(require_admin)])
async def get_all_bookings(
    status: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    # Unknown status values fall back to the unfiltered list
    try:
        status_filter = BookingStatus(status) if status else None
    except ValueError:
        status_filter = None
    result = await service.list_bookings(status_filter)
    return to_response(result, with_count=True)

@router.get("/booking/pending", dependencies=[Depends(require_admin)])
async def get_pending_bookings(service: BookingService = Depends(get_booking_service)):
    result = await service.list_pending()
    return to_response(result, with_count=True)

@router.patch("/booking/{booking_id}/confirm", dependencies=[Depends(require_admin)])
async def confirm_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    result = await service.confirm(booking_id)
    return to_response(result)

@router.patch("/booking/{booking_id}/reject", dependencies=[Depends(require_admin)])
async def reject_booking(
    booking_id: str,
    req: Optional[RejectRequest] = None,
    service: BookingService = Depends(get_booking_service),
):
    result = await service.reject(booking_id, req.reason if req else None)
    return to_response(result)
