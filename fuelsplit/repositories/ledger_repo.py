"""
LedgerRepository - MongoDB store for the fuel-split ledger.

Storage layout:
1. One aggregate document (`_id` = "fuel_split_state") holding price,
   odometer, per-participant km and last-entered-by
2. One document per history entry, keyed by the entry id
3. History is read back ordered by timestamp, then id, ascending

Every driver failure is raised as StoreUnavailable.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from fuelsplit.core.config import settings
from fuelsplit.core.participants import Participants
from fuelsplit.models.ledger import Entry, LedgerState
from fuelsplit.utils.ledger_validation import StoreUnavailable

logger = logging.getLogger(__name__)

STATE_ID = "fuel_split_state"


class LedgerRepository:
    """Repository for the ledger aggregate and its history entries."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        participants: Participants,
        use_transactions: Optional[bool] = None
    ):
        self.db = db
        self.participants = participants
        self.state_collection = db[settings.STATE_COLLECTION]
        self.history_collection = db[settings.HISTORY_COLLECTION]
        if use_transactions is None:
            use_transactions = settings.MONGODB_TRANSACTIONS
        self.use_transactions = use_transactions

    async def load_state(self) -> LedgerState:
        """
        Load the aggregate plus its full history.

        Raises StoreUnavailable if Mongo cannot be reached or the aggregate
        document does not exist.
        """
        try:
            doc = await self.state_collection.find_one({"_id": STATE_ID})
            if doc is None:
                raise StoreUnavailable("No ledger state found in database")
            history_docs = await self.history_collection.find({}).sort(
                [("timestamp", 1), ("_id", 1)]
            ).to_list(None)
        except PyMongoError as exc:
            logger.error("Error loading ledger state: %s", exc)
            raise StoreUnavailable("Failed to load ledger state") from exc

        try:
            return self._state_from_documents(doc, history_docs)
        except (ValidationError, KeyError) as exc:
            logger.error("Stored ledger state is malformed: %s", exc)
            raise StoreUnavailable("Stored ledger state is malformed") from exc

    async def save_state(self, state: LedgerState, session=None) -> None:
        """Overwrite the single aggregate document. History is not written here."""
        try:
            await self.state_collection.replace_one(
                {"_id": STATE_ID},
                self._state_to_document(state),
                upsert=True,
                session=session
            )
        except PyMongoError as exc:
            logger.error("Error updating ledger state: %s", exc)
            raise StoreUnavailable("Failed to save ledger state") from exc

    async def append_history_entry(self, entry: Entry, session=None) -> None:
        """Insert an entry unless one with the same id already exists."""
        try:
            await self.history_collection.update_one(
                {"_id": entry.id},
                {"$setOnInsert": self._entry_to_document(entry)},
                upsert=True,
                session=session
            )
        except PyMongoError as exc:
            logger.error("Error adding history entry %s: %s", entry.id, exc)
            raise StoreUnavailable("Failed to add history entry") from exc

    async def remove_history_entry(self, entry_id: str, session=None) -> None:
        """Delete an entry by id; an unknown id is a no-op."""
        try:
            await self.history_collection.delete_one({"_id": entry_id}, session=session)
        except PyMongoError as exc:
            logger.error("Error removing history entry %s: %s", entry_id, exc)
            raise StoreUnavailable("Failed to remove history entry") from exc

    async def commit(
        self,
        state: LedgerState,
        append: Optional[Entry] = None,
        remove: Optional[Entry] = None
    ) -> None:
        """
        Persist a history delta together with the aggregate.

        Runs inside a transaction when transactions are enabled. Otherwise the
        history write goes first and is reverted if the aggregate save fails.
        """
        if self.use_transactions:
            async with self._transaction() as session:
                if append is not None:
                    await self.append_history_entry(append, session=session)
                if remove is not None:
                    await self.remove_history_entry(remove.id, session=session)
                await self.save_state(state, session=session)
            return

        if append is not None:
            await self.append_history_entry(append)
        if remove is not None:
            await self.remove_history_entry(remove.id)
        try:
            await self.save_state(state)
        except StoreUnavailable:
            await self._revert_history(append, remove)
            raise

    async def ensure_state(self, default: LedgerState) -> bool:
        """Seed the aggregate document if it is missing. Returns True if seeded."""
        try:
            result = await self.state_collection.update_one(
                {"_id": STATE_ID},
                {"$setOnInsert": self._state_to_document(default)},
                upsert=True
            )
        except PyMongoError as exc:
            logger.error("Error seeding ledger state: %s", exc)
            raise StoreUnavailable("Failed to seed ledger state") from exc
        return result.upserted_id is not None

    # ===== PRIVATE HELPERS =====

    async def _revert_history(self, appended: Optional[Entry], removed: Optional[Entry]) -> None:
        try:
            if appended is not None:
                await self.remove_history_entry(appended.id)
            if removed is not None:
                await self.append_history_entry(removed)
        except StoreUnavailable:
            logger.error("Could not revert history after failed save; history and totals may disagree")

    @asynccontextmanager
    async def _transaction(self):
        try:
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    yield session
        except PyMongoError as exc:
            logger.error("Ledger transaction failed: %s", exc)
            raise StoreUnavailable("Failed to commit ledger change") from exc

    def _state_to_document(self, state: LedgerState) -> dict:
        doc = state.model_dump(mode="json", by_alias=True, exclude={"history"})
        doc["_id"] = STATE_ID
        doc["updatedAt"] = datetime.now(timezone.utc)
        return doc

    def _entry_to_document(self, entry: Entry) -> dict:
        doc = entry.model_dump(mode="json", by_alias=True)
        doc["_id"] = doc.pop("id")
        return doc

    def _state_from_documents(self, doc: dict, history_docs: list) -> LedgerState:
        history = []
        for entry_doc in history_docs:
            entry_doc = dict(entry_doc)
            entry_doc["id"] = str(entry_doc.pop("_id"))
            history.append(Entry.model_validate(entry_doc))

        stored_km = doc.get("kmBy") or {}
        # Configured participants are authoritative
        km_by = {name: stored_km.get(name, 0) for name in self.participants.names}

        return LedgerState.model_validate({
            "version": doc.get("version", 1),
            "pricePerKm": doc["pricePerKm"],
            "startingOdometer": doc.get("startingOdometer", 0),
            "lastOdometer": doc.get("lastOdometer"),
            "kmBy": km_by,
            "lastEnteredBy": doc.get("lastEnteredBy"),
            "history": history,
        })
