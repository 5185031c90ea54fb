import re

from fuelsplit.models.base import new_entry_id
from fuelsplit.models.ledger import LedgerState


def test_entry_id_format():
    assert re.fullmatch(r"1700000000000-[0-9a-z]{6}", new_entry_id(1700000000000))


def test_entry_ids_sort_in_creation_order_within_a_millisecond():
    ids = [new_entry_id(1700000000000) for _ in range(50)]

    assert sorted(ids) == ids
    assert len(set(ids)) == len(ids)


def test_initial_state(participants):
    state = LedgerState.initial(participants, 0.5)

    assert state.awaiting_initial_reading
    assert state.km_by == participants.zero_km()
    assert state.history == ()
