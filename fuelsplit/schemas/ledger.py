from typing import Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from fuelsplit.models.ledger import Entry, LedgerState
from fuelsplit.services import ledger_engine

Number = Union[int, float]


class _CamelSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class ReadingCreate(_CamelSchema):
    """Request body to record an odometer reading."""
    reading: Number


class SettingsUpdate(_CamelSchema):
    """Request body to change the price per km and starting odometer."""
    price_per_km: Number
    starting_odometer: Number = 0


class LedgerView(_CamelSchema):
    """Ledger state with derived totals, history newest first."""
    version: int
    price_per_km: float
    starting_odometer: Number
    last_odometer: Optional[Number] = None
    km_by: Dict[str, Number]
    last_entered_by: Optional[str] = None
    total_km: Number
    total_amount: float
    amounts: Dict[str, float]
    can_undo: bool
    history: List[Entry]

    @classmethod
    def from_state(cls, state: LedgerState) -> "LedgerView":
        return cls(
            version=state.version,
            price_per_km=state.price_per_km,
            starting_odometer=state.starting_odometer,
            last_odometer=state.last_odometer,
            km_by=dict(state.km_by),
            last_entered_by=state.last_entered_by,
            total_km=ledger_engine.total_km(state),
            total_amount=ledger_engine.total_amount(state),
            amounts=ledger_engine.amounts(state),
            can_undo=ledger_engine.last_undoable_entry(state) is not None,
            history=ledger_engine.history_newest_first(state),
        )


class SettlementResponse(_CamelSchema):
    """Reset result: the message to share plus the zeroed ledger."""
    message: str
    share_url: str
    ledger: LedgerView
