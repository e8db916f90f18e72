"""HTTP routes. Thin on purpose: parse, call the service, let the error handler deal with ArenaErrors."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from src.api.models import (
    ConfigResponse,
    CreateRoomRequest,
    DisplayNameRequest,
    DisplayNameResponse,
    EndGameRequest,
    EndGameResponse,
    HealthResponse,
    JoinRoomRequest,
    MoveRequest,
    MoveResponse,
    PaymentResponse,
    PaymentStatusResponse,
    PayoutRecordResponse,
    ReactRequest,
    RoomResponse,
    SpectateRequest,
    StateResponse,
    VerifyPaymentRequest,
)
from src.core.exceptions import ArenaError
from src.services.arena_service import ArenaService

ERROR_STATUS_CODES: dict[str, int] = {
    "not_found": 404,
    "invalid_state": 409,
    "unauthorized": 403,
    "already_processed": 409,
    "collaborator_failure": 502,
    "validation_error": 422,
}

router = APIRouter()


def get_service(request: Request) -> ArenaService:
    return request.app.state.service


async def arena_error_handler(request: Request, exc: Exception) -> JSONResponse:
    kind = getattr(exc, "kind", ArenaError.kind)
    return JSONResponse(
        status_code=ERROR_STATUS_CODES.get(kind, 500),
        content={"error": kind, "detail": str(exc)},
    )


# --- ROOMS ---
@router.post("/rooms", response_model=RoomResponse)
def create_room(
    body: CreateRoomRequest, service: ArenaService = Depends(get_service)
) -> RoomResponse:
    return service.create_room(body)


@router.post("/rooms/{code}/join", response_model=RoomResponse)
def join_room(
    code: str, body: JoinRoomRequest, service: ArenaService = Depends(get_service)
) -> RoomResponse:
    return service.join_room(code, body)


@router.post("/rooms/{code}/spectate", response_model=RoomResponse)
def spectate(
    code: str, body: SpectateRequest, service: ArenaService = Depends(get_service)
) -> RoomResponse:
    return service.spectate(code, body)


@router.post("/rooms/{code}/react", response_model=StateResponse)
def react(
    code: str, body: ReactRequest, service: ArenaService = Depends(get_service)
) -> StateResponse:
    return service.react(code, body)


@router.get("/rooms/{code}", response_model=RoomResponse)
def get_room(code: str, service: ArenaService = Depends(get_service)) -> RoomResponse:
    return service.get_room(code)


@router.get("/rooms/{code}/state", response_model=StateResponse)
def get_state(code: str, service: ArenaService = Depends(get_service)) -> StateResponse:
    return service.get_state(code)


@router.get("/rooms/{code}/payments", response_model=PaymentStatusResponse)
def get_payments(
    code: str, service: ArenaService = Depends(get_service)
) -> PaymentStatusResponse:
    return service.get_payments(code)


@router.post("/rooms/{code}/move", response_model=MoveResponse)
def make_move(
    code: str, body: MoveRequest, service: ArenaService = Depends(get_service)
) -> MoveResponse:
    return service.make_move(code, body)


@router.post("/rooms/{code}/end", response_model=EndGameResponse)
def force_end(
    code: str, body: EndGameRequest, service: ArenaService = Depends(get_service)
) -> EndGameResponse:
    return service.force_end(code, body)


# --- PAYMENTS ---
@router.post("/payments/verify", response_model=PaymentResponse)
def verify_payment(
    body: VerifyPaymentRequest, service: ArenaService = Depends(get_service)
) -> PaymentResponse:
    return service.confirm_payment(body)


@router.get("/payouts", response_model=list[PayoutRecordResponse])
def list_payouts(
    room_code: Optional[str] = None, service: ArenaService = Depends(get_service)
) -> list[PayoutRecordResponse]:
    return service.list_payouts(room_code)


# --- IDENTITY ---
@router.put("/names/{address}", response_model=DisplayNameResponse)
def set_display_name(
    address: str, body: DisplayNameRequest, service: ArenaService = Depends(get_service)
) -> DisplayNameResponse:
    return service.set_display_name(address, body)


# --- READ-ONLY ---
@router.get("/config", response_model=ConfigResponse)
def get_config(service: ArenaService = Depends(get_service)) -> ConfigResponse:
    return service.config()


@router.get("/health", response_model=HealthResponse)
def health(service: ArenaService = Depends(get_service)) -> HealthResponse:
    return service.health()
