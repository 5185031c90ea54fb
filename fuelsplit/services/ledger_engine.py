"""
Ledger engine - pure state transitions for the fuel-split ledger.

Every function takes the current LedgerState and returns a new one; inputs
are never mutated and nothing here touches storage. Errors are raised before
any new state is built, so a failed call leaves the ledger as it was.

Attribution rule: the participant submitting a reading was riding along and
is now taking over, so the distance just covered is credited to the other
participant (the one who drove it).
"""

from typing import Dict, List, NamedTuple, Optional, Tuple

from fuelsplit.core.participants import Participants
from fuelsplit.models.base import new_entry_id, now_ms
from fuelsplit.models.ledger import Entry, EntryType, LedgerState, Number, Snapshot
from fuelsplit.utils.ledger_validation import (
    InvalidReading,
    NothingToUndo,
    UnknownParticipant,
    add_km,
    validate_reading,
    validate_settings,
)
from fuelsplit.utils.settlement_message import build_settlement_message


class Settlement(NamedTuple):
    state: LedgerState
    entry: Entry
    message: str


def record_reading(
    state: LedgerState,
    participants: Participants,
    submitting_user: str,
    reading: Number,
    timestamp_ms: Optional[int] = None
) -> Tuple[LedgerState, Entry]:
    """
    Record an odometer reading submitted by `submitting_user`.

    The first reading ever becomes an `init` entry and credits no one.
    Later readings credit `reading - last_odometer` to the other participant.
    Raises InvalidReading if the reading is invalid or lower than the last one.
    """
    if submitting_user not in participants:
        raise UnknownParticipant(f"Unknown participant: {submitting_user}")
    reading = validate_reading(reading)
    ts = now_ms() if timestamp_ms is None else timestamp_ms

    if state.last_odometer is None:
        entry = Entry(
            id=new_entry_id(ts),
            type=EntryType.INIT,
            timestamp=ts,
            reading=reading,
            entered_by=submitting_user,
            note="Initial reading set",
        )
        new_state = state.model_copy(update={
            "starting_odometer": reading,
            "last_odometer": reading,
            "last_entered_by": submitting_user,
            "history": state.history + (entry,),
        })
        return new_state, entry

    delta = add_km(reading, -state.last_odometer)
    if delta < 0:
        raise InvalidReading("Mileage cannot decrease. Please check the value.")

    credited = participants.other(submitting_user)
    km_by = dict(state.km_by)
    if delta > 0:
        km_by[credited] = add_km(km_by.get(credited, 0), delta)

    entry = Entry(
        id=new_entry_id(ts),
        type=EntryType.ENTRY,
        timestamp=ts,
        reading=reading,
        delta_km=delta,
        attributed_to=credited,
        entered_by=submitting_user,
        note="No change in km" if delta == 0 else None,
    )
    new_state = state.model_copy(update={
        "km_by": km_by,
        "last_odometer": reading,
        "last_entered_by": submitting_user,
        "history": state.history + (entry,),
    })
    return new_state, entry


def last_undoable_entry(state: LedgerState) -> Optional[Entry]:
    """Most recent `entry` record; `init` and `reset` are never undoable."""
    for entry in reversed(state.history):
        if entry.is_undoable:
            return entry
    return None


def undo_last(state: LedgerState) -> Tuple[LedgerState, Entry]:
    """
    Remove the most recent mileage entry and reverse its credit.

    last_odometer falls back to the latest remaining record carrying a
    reading (or None). last_entered_by is left as it is.
    Raises NothingToUndo when there is no `entry` record.
    """
    target = last_undoable_entry(state)
    if target is None:
        raise NothingToUndo("No entry to undo")

    history = tuple(e for e in state.history if e.id != target.id)

    km_by = dict(state.km_by)
    delta = target.delta_km or 0
    if delta > 0 and target.attributed_to:
        current = km_by.get(target.attributed_to, 0)
        km_by[target.attributed_to] = max(0, add_km(current, -delta))

    restore_to = None
    for entry in reversed(history):
        if entry.reading is not None:
            restore_to = entry.reading
            break

    new_state = state.model_copy(update={
        "km_by": km_by,
        "last_odometer": restore_to,
        "history": history,
    })
    return new_state, target


def reset(
    state: LedgerState,
    participants: Participants,
    timestamp_ms: Optional[int] = None,
    **message_options
) -> Settlement:
    """
    Settle the running totals.

    Snapshots the balances, zeroes km_by and carries last_odometer forward
    as the new starting odometer. last_odometer itself is kept. The message
    is built from the pre-reset values; `message_options` are passed to
    build_settlement_message (currency, locale, tz_name, symbol).
    """
    ts = now_ms() if timestamp_ms is None else timestamp_ms

    snapshot = Snapshot(
        km_by=dict(state.km_by),
        price_per_km=state.price_per_km,
        total_km=total_km(state),
        total_amount=total_amount(state),
    )
    message = build_settlement_message(state, participants, ts, **message_options)

    entry = Entry(
        id=new_entry_id(ts),
        type=EntryType.RESET,
        timestamp=ts,
        note="Reset & share",
        snapshot=snapshot,
    )
    starting = state.last_odometer if state.last_odometer is not None else state.starting_odometer
    new_state = state.model_copy(update={
        "starting_odometer": starting,
        "km_by": participants.zero_km(),
        "history": state.history + (entry,),
    })
    return Settlement(new_state, entry, message)


def update_settings(state: LedgerState, price_per_km: Number, starting_odometer: Number) -> LedgerState:
    """
    Change the price per km, and the starting odometer while no reading exists.

    Once driving has started the starting odometer is frozen.
    """
    price_per_km, starting_odometer = validate_settings(price_per_km, starting_odometer)
    update = {"price_per_km": price_per_km}
    if state.last_odometer is None:
        update["starting_odometer"] = starting_odometer
    return state.model_copy(update=update)


# ===== DERIVED VALUES =====

def total_km(state: LedgerState) -> Number:
    return add_km(*state.km_by.values())


def total_amount(state: LedgerState) -> float:
    return total_km(state) * state.price_per_km


def amounts(state: LedgerState) -> Dict[str, float]:
    """Per-participant amount owed at the current price."""
    return {name: km * state.price_per_km for name, km in state.km_by.items()}


def history_newest_first(state: LedgerState) -> List[Entry]:
    return list(reversed(sorted(state.history, key=lambda e: e.timestamp)))
