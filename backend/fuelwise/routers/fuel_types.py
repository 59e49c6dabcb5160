"""Fuel type catalogue routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fuelwise.db.dependencies import get_db
from fuelwise.models.user import User
from fuelwise.schema.permissions import FUEL_TYPE_CREATE, USER_ANY
from fuelwise.schemas.common import ApiResponse
from fuelwise.schemas.fuel_type import FuelTypeCreateRequest, FuelTypeRead
from fuelwise.security import require_permissions
from fuelwise.services.fuel_types import create_fuel_type, list_fuel_types

router = APIRouter()


@router.get("/fuel-types", response_model=ApiResponse[list[FuelTypeRead]])
def get_fuel_types(
    _: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[list[FuelTypeRead]]:
    return ApiResponse(data=[FuelTypeRead.model_validate(row) for row in list_fuel_types(db)])


@router.post("/fuel-types", response_model=ApiResponse[FuelTypeRead], status_code=201)
def post_fuel_type(
    payload: FuelTypeCreateRequest,
    _: User = Depends(require_permissions(FUEL_TYPE_CREATE)),
    db: Session = Depends(get_db),
) -> ApiResponse[FuelTypeRead]:
    """Register a new fuel type."""

    return ApiResponse(data=FuelTypeRead.model_validate(create_fuel_type(db, payload.name)))
