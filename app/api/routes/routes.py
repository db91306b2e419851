# path: tcat-route-api/app/api/routes/routes.py

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from app.models.route_models import Route, RouteCalculationFailure
from app.services.route_builder import ParseError, build_route, parse_routes

router = APIRouter(prefix="/routes", tags=["routes"])


class ParseRoutesRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    response: Dict[str, Any]
    from_name: Optional[str] = Field(default=None, alias="from")
    to_name: Optional[str] = Field(default=None, alias="to")


class ParseRoutesResponse(BaseModel):
    routes: List[Route]
    error: Optional[RouteCalculationFailure] = None


class RouteSummaryResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str
    travel_distance: float = Field(alias="travelDistance")
    total_duration: int = Field(alias="totalDuration")


@router.post("", response_model=ParseRoutesResponse)
def create_routes(request: ParseRoutesRequest) -> ParseRoutesResponse:
    try:
        routes, error = parse_routes(request.response, request.from_name, request.to_name)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))

    failure = None
    if error is not None:
        failure = RouteCalculationFailure(title=error.title, description=error.description)
    return ParseRoutesResponse(routes=routes, error=failure)


@router.post("/summary", response_model=RouteSummaryResponse)
def summarize_route(payload: Dict[str, Any]) -> RouteSummaryResponse:
    try:
        route = build_route(payload)
    except ParseError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RouteSummaryResponse(
        summary=route.summary_description,
        travel_distance=route.travel_distance,
        total_duration=route.total_duration,
    )
