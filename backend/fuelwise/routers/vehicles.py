"""Vehicle routes plus the trips and fuelings logged against each vehicle."""

from datetime import datetime

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from fuelwise.db.dependencies import get_db
from fuelwise.models.user import User
from fuelwise.schema.permissions import USER_ANY
from fuelwise.schemas.common import ApiResponse, DeleteResult, Page
from fuelwise.schemas.fueling import FuelingCreateRequest, FuelingRead, FuelingUpdateRequest
from fuelwise.schemas.trip import TripCreateRequest, TripRead, TripUpdateRequest
from fuelwise.schemas.vehicle import (
    VehicleAccessGrantRequest,
    VehicleAuthorizationRead,
    VehicleCreateRequest,
    VehicleRead,
)
from fuelwise.security import require_permissions
from fuelwise.services import ledger
from fuelwise.services.vehicles import (
    create_vehicle,
    get_vehicle_for_user,
    grant_vehicle_access,
    list_vehicles_for_user,
)

router = APIRouter()

member = require_permissions(USER_ANY)


@router.post("/vehicles", response_model=ApiResponse[VehicleRead], status_code=201)
def post_vehicle(
    payload: VehicleCreateRequest,
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[VehicleRead]:
    vehicle = create_vehicle(db, owner_id=user.id, **payload.model_dump())
    return ApiResponse(data=VehicleRead.model_validate(vehicle))


@router.get("/vehicles", response_model=ApiResponse[list[VehicleRead]])
def get_vehicles(
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[list[VehicleRead]]:
    """Vehicles the caller owns or was granted access to."""

    return ApiResponse(data=[VehicleRead.model_validate(row) for row in list_vehicles_for_user(db, user.id)])


@router.get("/vehicles/{vehicle_id}", response_model=ApiResponse[VehicleRead])
def get_vehicle(
    vehicle_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[VehicleRead]:
    return ApiResponse(data=VehicleRead.model_validate(get_vehicle_for_user(db, vehicle_id, user.id)))


@router.post(
    "/vehicles/{vehicle_id}/authorizations",
    response_model=ApiResponse[VehicleAuthorizationRead],
    status_code=201,
)
def post_vehicle_authorization(
    payload: VehicleAccessGrantRequest,
    vehicle_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[VehicleAuthorizationRead]:
    """Let another user log trips and fuelings for this vehicle."""

    grant = grant_vehicle_access(db, vehicle_id, owner_id=user.id, user_id=payload.user_id)
    return ApiResponse(data=VehicleAuthorizationRead.model_validate(grant))


@router.get("/vehicles/{vehicle_id}/trips", response_model=ApiResponse[Page[TripRead]])
def get_trips(
    vehicle_id: int = Path(..., ge=1),
    start: datetime | None = Query(default=None),
    end: datetime | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[Page[TripRead]]:
    page = ledger.list_trips(db, vehicle_id, user_id=user.id, start=start, end=end, limit=limit, offset=offset)
    return ApiResponse(
        data=Page(
            items=[TripRead.model_validate(trip) for trip in page.items],
            total=page.total,
            limit=limit,
            offset=offset,
        )
    )


@router.post("/vehicles/{vehicle_id}/trips", response_model=ApiResponse[TripRead], status_code=201)
def post_trip(
    payload: TripCreateRequest,
    vehicle_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[TripRead]:
    """Log a trip; the vehicle's odometer and tank move in the same transaction."""

    trip = ledger.create_trip(db, vehicle_id, payload, user_id=user.id)
    return ApiResponse(data=TripRead.model_validate(trip))


@router.get("/vehicles/{vehicle_id}/trips/{trip_id}", response_model=ApiResponse[TripRead])
def get_trip(
    vehicle_id: int = Path(..., ge=1),
    trip_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[TripRead]:
    return ApiResponse(data=TripRead.model_validate(ledger.get_trip(db, vehicle_id, trip_id, user_id=user.id)))


@router.patch("/vehicles/{vehicle_id}/trips/{trip_id}", response_model=ApiResponse[TripRead])
def patch_trip(
    payload: TripUpdateRequest,
    vehicle_id: int = Path(..., ge=1),
    trip_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[TripRead]:
    trip = ledger.update_trip(db, vehicle_id, trip_id, payload, user_id=user.id)
    return ApiResponse(data=TripRead.model_validate(trip))


@router.delete("/vehicles/{vehicle_id}/trips/{trip_id}", response_model=ApiResponse[DeleteResult])
def remove_trip(
    vehicle_id: int = Path(..., ge=1),
    trip_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    """Delete a trip and reverse its effect on the vehicle."""

    ledger.delete_trip(db, vehicle_id, trip_id, user_id=user.id)
    return ApiResponse(data=DeleteResult(id=trip_id, deleted=True))


@router.get("/vehicles/{vehicle_id}/fuelings", response_model=ApiResponse[Page[FuelingRead]])
def get_fuelings(
    vehicle_id: int = Path(..., ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[Page[FuelingRead]]:
    page = ledger.list_fuelings(db, vehicle_id, user_id=user.id, limit=limit, offset=offset)
    return ApiResponse(
        data=Page(
            items=[FuelingRead.model_validate(fueling) for fueling in page.items],
            total=page.total,
            limit=limit,
            offset=offset,
        )
    )


@router.post("/vehicles/{vehicle_id}/fuelings", response_model=ApiResponse[FuelingRead], status_code=201)
def post_fueling(
    payload: FuelingCreateRequest,
    vehicle_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[FuelingRead]:
    """Log a fueling; a linked station's latest price overrides the caller's price."""

    fueling = ledger.create_fueling(db, vehicle_id, payload, user_id=user.id)
    return ApiResponse(data=FuelingRead.model_validate(fueling))


@router.get("/vehicles/{vehicle_id}/fuelings/{fueling_id}", response_model=ApiResponse[FuelingRead])
def get_fueling(
    vehicle_id: int = Path(..., ge=1),
    fueling_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[FuelingRead]:
    fueling = ledger.get_fueling(db, vehicle_id, fueling_id, user_id=user.id)
    return ApiResponse(data=FuelingRead.model_validate(fueling))


@router.patch("/vehicles/{vehicle_id}/fuelings/{fueling_id}", response_model=ApiResponse[FuelingRead])
def patch_fueling(
    payload: FuelingUpdateRequest,
    vehicle_id: int = Path(..., ge=1),
    fueling_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[FuelingRead]:
    fueling = ledger.update_fueling(db, vehicle_id, fueling_id, payload, user_id=user.id)
    return ApiResponse(data=FuelingRead.model_validate(fueling))


@router.delete("/vehicles/{vehicle_id}/fuelings/{fueling_id}", response_model=ApiResponse[DeleteResult])
def remove_fueling(
    vehicle_id: int = Path(..., ge=1),
    fueling_id: int = Path(..., ge=1),
    user: User = Depends(member),
    db: Session = Depends(get_db),
) -> ApiResponse[DeleteResult]:
    """Delete a fueling and take its volume back out of the tank."""

    ledger.delete_fueling(db, vehicle_id, fueling_id, user_id=user.id)
    return ApiResponse(data=DeleteResult(id=fueling_id, deleted=True))
