from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from datetime import date

from ..config import settings
from ..database import get_db
from ..models.user import AppUser
from ..permissions import Capability, require
from ..schemas.availability import AvailabilityRecordResponse, AvailabilityResponse
from ..services.availability_service import AvailabilityService, availability_window
from ..utils.dependencies import get_current_user
from ..utils.rate_limiter import get_rate_limit, limiter

router = APIRouter(prefix="/api/availability", tags=["Availability"])


@router.get("", response_model=AvailabilityResponse)
@router.get("/", response_model=AvailabilityResponse)
@limiter.limit(get_rate_limit("availability"))
async def get_availability(
    request: Request,
    hotel_id: str = Query(..., min_length=1),
    check_in: date = Query(...),
    nights: int = Query(1, ge=1, le=settings.max_stay_nights),
    db: Session = Depends(get_db),
    current_user: AppUser = Depends(get_current_user)
):
    """
    Free rooms per room type for every date from check_in - padding to
    check_in + nights + padding.
    """
    require(current_user, Capability.VIEW)
    records = AvailabilityService(db).compute_availability(hotel_id, check_in, nights)
    window_start, window_end = availability_window(check_in, nights)

    return AvailabilityResponse(
        hotel_id=hotel_id,
        check_in=check_in,
        nights=nights,
        window_start=window_start,
        window_end=window_end,
        records=[AvailabilityRecordResponse.model_validate(r) for r in records]
    )
