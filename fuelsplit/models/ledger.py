"""
Ledger model - the single fuel-split aggregate and its history.

Design principles:
- Exactly one ledger, shared by the two participants
- LedgerState is replaced wholesale by every operation, never mutated
- Entries are immutable once created; only undo removes one
- History is ordered by timestamp ascending at rest

Invariant:
- sum(km_by) == sum of delta_km over `entry` records after the latest `reset`
"""

from enum import Enum
from typing import Dict, Optional, Tuple, Union

from fuelsplit.core.participants import Participants
from fuelsplit.models.base import CamelModel

Number = Union[int, float]


class EntryType(str, Enum):
    INIT = "init"
    ENTRY = "entry"
    RESET = "reset"


class Snapshot(CamelModel):
    """Frozen copy of the balances taken right before a reset zeroed them."""
    km_by: Dict[str, Number]
    price_per_km: float
    total_km: Number
    total_amount: float


class Entry(CamelModel):
    """
    Historical record.

    - init: first reading ever; credits no one
    - entry: subsequent reading; delta_km credited to attributed_to,
      who is always the other participant from entered_by
    - reset: settlement event carrying a snapshot
    """
    id: str
    type: EntryType
    timestamp: int  # epoch milliseconds
    reading: Optional[Number] = None
    delta_km: Optional[Number] = None
    attributed_to: Optional[str] = None
    entered_by: Optional[str] = None
    note: Optional[str] = None
    snapshot: Optional[Snapshot] = None

    @property
    def is_undoable(self) -> bool:
        return self.type == EntryType.ENTRY


class LedgerState(CamelModel):
    version: int = 1
    price_per_km: float
    starting_odometer: Number = 0
    last_odometer: Optional[Number] = None  # None until the first reading
    km_by: Dict[str, Number]
    last_entered_by: Optional[str] = None
    history: Tuple[Entry, ...] = ()

    @classmethod
    def initial(cls, participants: Participants, price_per_km: float) -> "LedgerState":
        """Fresh ledger awaiting its first reading."""
        return cls(price_per_km=price_per_km, km_by=participants.zero_km())

    @property
    def awaiting_initial_reading(self) -> bool:
        return self.last_odometer is None
