import asyncio
import logging

from fuelsplit.core.participants import Participants
from fuelsplit.models.ledger import LedgerState, Number
from fuelsplit.repositories.ledger_repo import LedgerRepository
from fuelsplit.services import ledger_engine
from fuelsplit.services.ledger_engine import Settlement

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Runs ledger operations against the store: load the current state, apply
    one engine operation, then commit the history delta and the aggregate
    together. Operations are serialized within the process.
    """

    _lock = asyncio.Lock()

    def __init__(self, repository: LedgerRepository, participants: Participants):
        self.repository = repository
        self.participants = participants

    async def get_state(self) -> LedgerState:
        return await self.repository.load_state()

    async def ensure_initialized(self, price_per_km: float) -> None:
        """Create the ledger on first start."""
        seeded = await self.repository.ensure_state(
            LedgerState.initial(self.participants, price_per_km)
        )
        if seeded:
            logger.info("Seeded new ledger at %s per km", price_per_km)

    async def record_reading(self, submitting_user: str, reading: Number) -> LedgerState:
        async with self._lock:
            state = await self.repository.load_state()
            new_state, entry = ledger_engine.record_reading(
                state, self.participants, submitting_user, reading
            )
            await self.repository.commit(new_state, append=entry)

        logger.info(
            "%s recorded %s km (%s, delta %s credited to %s)",
            submitting_user, entry.reading, entry.type.value, entry.delta_km, entry.attributed_to
        )
        return new_state

    async def undo_last(self) -> LedgerState:
        async with self._lock:
            state = await self.repository.load_state()
            new_state, removed = ledger_engine.undo_last(state)
            await self.repository.commit(new_state, remove=removed)

        logger.info("Undid entry %s (%s km from %s)", removed.id, removed.delta_km, removed.attributed_to)
        return new_state

    async def reset(self) -> Settlement:
        async with self._lock:
            state = await self.repository.load_state()
            settlement = ledger_engine.reset(state, self.participants)
            await self.repository.commit(settlement.state, append=settlement.entry)

        snapshot = settlement.entry.snapshot
        logger.info("Ledger reset: %s km, amount %.2f", snapshot.total_km, snapshot.total_amount)
        return settlement

    async def update_settings(self, price_per_km: Number, starting_odometer: Number) -> LedgerState:
        async with self._lock:
            state = await self.repository.load_state()
            new_state = ledger_engine.update_settings(state, price_per_km, starting_odometer)
            await self.repository.commit(new_state)

        logger.info("Settings updated: price per km %s", new_state.price_per_km)
        return new_state
