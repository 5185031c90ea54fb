import logging

from fastapi import APIRouter, Depends, HTTPException, status

from fuelsplit.core.auth import get_current_participant, get_participants
from fuelsplit.core.participants import Participants
from fuelsplit.db.mongo import get_db
from fuelsplit.repositories.ledger_repo import LedgerRepository
from fuelsplit.schemas.ledger import LedgerView, ReadingCreate, SettingsUpdate, SettlementResponse
from fuelsplit.services.ledger_service import LedgerService
from fuelsplit.utils.ledger_validation import LedgerError, NothingToUndo, StoreUnavailable
from fuelsplit.utils.settlement_message import build_share_url

logger = logging.getLogger(__name__)

router = APIRouter()

STORE_UNAVAILABLE_DETAIL = "Failed to reach the ledger store. Please try again."


def get_ledger_service(
    db = Depends(get_db),
    participants: Participants = Depends(get_participants)
) -> LedgerService:
    return LedgerService(LedgerRepository(db, participants), participants)


def to_http_error(exc: LedgerError) -> HTTPException:
    """Map a ledger error onto the HTTP status reported to the client."""
    if isinstance(exc, StoreUnavailable):
        logger.error("Ledger store unavailable: %s", exc.message)
        return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE_DETAIL)

    logger.warning("Rejected ledger operation: %s", exc.message)
    if isinstance(exc, NothingToUndo):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    # InvalidReading, InvalidSettings, UnknownParticipant
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)


@router.get("/", response_model=LedgerView)
async def get_ledger(
    current_participant: str = Depends(get_current_participant),
    service: LedgerService = Depends(get_ledger_service)
):
    """Current ledger with derived totals"""
    try:
        state = await service.get_state()
    except LedgerError as exc:
        raise to_http_error(exc)
    return LedgerView.from_state(state)


@router.post("/readings", response_model=LedgerView)
async def record_reading(
    payload: ReadingCreate,
    current_participant: str = Depends(get_current_participant),
    service: LedgerService = Depends(get_ledger_service)
):
    """Record an odometer reading; the distance is credited to the other participant"""
    try:
        state = await service.record_reading(current_participant, payload.reading)
    except LedgerError as exc:
        raise to_http_error(exc)
    return LedgerView.from_state(state)


@router.post("/undo", response_model=LedgerView)
async def undo_last_entry(
    current_participant: str = Depends(get_current_participant),
    service: LedgerService = Depends(get_ledger_service)
):
    """Remove the most recent mileage entry"""
    try:
        state = await service.undo_last()
    except LedgerError as exc:
        raise to_http_error(exc)
    return LedgerView.from_state(state)


@router.post("/reset", response_model=SettlementResponse)
async def reset_ledger(
    current_participant: str = Depends(get_current_participant),
    service: LedgerService = Depends(get_ledger_service)
):
    """Settle and zero the totals, returning the message to share"""
    try:
        settlement = await service.reset()
    except LedgerError as exc:
        raise to_http_error(exc)
    return SettlementResponse(
        message=settlement.message,
        share_url=build_share_url(settlement.message),
        ledger=LedgerView.from_state(settlement.state)
    )


@router.put("/settings", response_model=LedgerView)
async def update_settings(
    payload: SettingsUpdate,
    current_participant: str = Depends(get_current_participant),
    service: LedgerService = Depends(get_ledger_service)
):
    """Change the price per km (and the starting odometer before the first reading)"""
    try:
        state = await service.update_settings(payload.price_per_km, payload.starting_odometer)
    except LedgerError as exc:
        raise to_http_error(exc)
    return LedgerView.from_state(state)
