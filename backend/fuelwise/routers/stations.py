"""Gas station routes: reads, creation proposals, price reports and edit proposals."""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from fuelwise.db.dependencies import get_db
from fuelwise.models.user import User
from fuelwise.schema.permissions import STATION_READ_ANY, USER_ANY
from fuelwise.schema.statuses import GasStationStatus
from fuelwise.schemas.common import ApiResponse, Page
from fuelwise.schemas.proposal import ProposalRead
from fuelwise.schemas.station import (
    GasStationCreateRequest,
    GasStationEditRequest,
    GasStationRead,
    LatestStationPriceRead,
    StationCreationRead,
    StationEditRead,
    StationPriceRead,
    StationPriceReportRequest,
)
from fuelwise.security import require_permissions, user_has_permissions
from fuelwise.services.proposals import propose_station_creation, propose_station_edit, report_station_price
from fuelwise.services.stations import get_station, latest_prices_for_station, list_stations

router = APIRouter()


@router.get("/stations", response_model=ApiResponse[Page[GasStationRead]])
def get_stations(
    status: GasStationStatus | None = Query(default=None),
    name: str | None = Query(default=None, max_length=255),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[Page[GasStationRead]]:
    """List stations; only ACTIVE ones unless the caller holds station:read:any."""

    page = list_stations(
        db,
        status=status,
        name=name,
        include_all=user_has_permissions(db, user, STATION_READ_ANY),
        limit=limit,
        offset=offset,
    )
    return ApiResponse(
        data=Page(
            items=[GasStationRead.model_validate(station) for station in page.items],
            total=page.total,
            limit=limit,
            offset=offset,
        )
    )


@router.get("/stations/{station_id}", response_model=ApiResponse[GasStationRead])
def get_station_view(
    station_id: int = Path(..., ge=1),
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[GasStationRead]:
    station = get_station(db, station_id, include_all=user_has_permissions(db, user, STATION_READ_ANY))
    return ApiResponse(data=GasStationRead.model_validate(station))


@router.get("/stations/{station_id}/prices", response_model=ApiResponse[list[LatestStationPriceRead]])
def get_station_prices(
    station_id: int = Path(..., ge=1),
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[list[LatestStationPriceRead]]:
    """Latest non-rejected price per fuel type."""

    get_station(db, station_id, include_all=user_has_permissions(db, user, STATION_READ_ANY))
    rows = latest_prices_for_station(db, station_id)
    return ApiResponse(
        data=[
            LatestStationPriceRead(
                **StationPriceRead.model_validate(price).model_dump(),
                fuel_type_name=fuel_type_name,
            )
            for price, fuel_type_name in rows
        ]
    )


@router.post("/stations", response_model=ApiResponse[StationCreationRead], status_code=201)
def create_station(
    payload: GasStationCreateRequest,
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[StationCreationRead]:
    """Propose a new station together with its initial prices."""

    result = propose_station_creation(db, payload, proposer_id=user.id)
    return ApiResponse(
        data=StationCreationRead(
            station=GasStationRead.model_validate(result.station),
            proposal=ProposalRead.model_validate(result.proposal),
            prices=[StationPriceRead.model_validate(price) for price in result.prices],
            price_proposals=[ProposalRead.model_validate(proposal) for proposal in result.price_proposals],
        )
    )


@router.post("/stations/{station_id}/prices", response_model=ApiResponse[StationPriceRead], status_code=201)
def report_price(
    payload: StationPriceReportRequest,
    station_id: int = Path(..., ge=1),
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[StationPriceRead]:
    price = report_station_price(db, station_id, payload, reporter_id=user.id)
    return ApiResponse(data=StationPriceRead.model_validate(price))


@router.post("/stations/{station_id}/propose-edit", response_model=ApiResponse[StationEditRead], status_code=201)
def propose_edit(
    payload: GasStationEditRequest,
    station_id: int = Path(..., ge=1),
    user: User = Depends(require_permissions(USER_ANY)),
    db: Session = Depends(get_db),
) -> ApiResponse[StationEditRead]:
    """Propose changed station fields and price corrections for community review."""

    result = propose_station_edit(db, station_id, payload, proposer_id=user.id)
    return ApiResponse(
        data=StationEditRead(
            proposal=ProposalRead.model_validate(result.proposal) if result.proposal is not None else None,
            price_proposals=[ProposalRead.model_validate(proposal) for proposal in result.price_proposals],
        )
    )
