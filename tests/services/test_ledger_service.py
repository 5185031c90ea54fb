import pytest
from unittest.mock import AsyncMock, MagicMock

from fuelsplit.models.ledger import EntryType
from fuelsplit.services import ledger_engine
from fuelsplit.services.ledger_service import LedgerService
from fuelsplit.utils.ledger_validation import InvalidReading, NothingToUndo, StoreUnavailable

from tests.constants import AMIT, JOHN


@pytest.fixture
def mock_repository():
    repository = MagicMock()
    repository.load_state = AsyncMock()
    repository.commit = AsyncMock()
    repository.ensure_state = AsyncMock(return_value=True)
    return repository


@pytest.fixture
def started_state(initial_state, participants):
    """Ledger with an init reading at 1000."""
    state, _ = ledger_engine.record_reading(initial_state, participants, AMIT, 1000)
    return state


@pytest.mark.asyncio
async def test_record_reading_commits_entry_and_state(mock_repository, participants, started_state):
    mock_repository.load_state.return_value = started_state
    service = LedgerService(mock_repository, participants)

    new_state = await service.record_reading(JOHN, 1180)

    assert new_state.km_by == {AMIT: 180, JOHN: 0}
    mock_repository.commit.assert_called_once()
    committed_state = mock_repository.commit.call_args[0][0]
    appended = mock_repository.commit.call_args.kwargs["append"]
    assert committed_state == new_state
    assert appended.type == EntryType.ENTRY
    assert appended.attributed_to == AMIT
    assert appended == new_state.history[-1]


@pytest.mark.asyncio
async def test_record_reading_failure_persists_nothing(mock_repository, participants, started_state):
    mock_repository.load_state.return_value = started_state
    service = LedgerService(mock_repository, participants)

    with pytest.raises(InvalidReading):
        await service.record_reading(JOHN, 999)

    mock_repository.commit.assert_not_called()


@pytest.mark.asyncio
async def test_undo_last_removes_entry_by_id(mock_repository, participants, started_state):
    state, entry = ledger_engine.record_reading(started_state, participants, JOHN, 1050)
    mock_repository.load_state.return_value = state
    service = LedgerService(mock_repository, participants)

    new_state = await service.undo_last()

    assert new_state.km_by == {AMIT: 0, JOHN: 0}
    assert new_state.last_odometer == 1000
    assert mock_repository.commit.call_args.kwargs["remove"] == entry


@pytest.mark.asyncio
async def test_undo_last_with_nothing_to_undo(mock_repository, participants, started_state):
    mock_repository.load_state.return_value = started_state
    service = LedgerService(mock_repository, participants)

    with pytest.raises(NothingToUndo):
        await service.undo_last()

    mock_repository.commit.assert_not_called()


@pytest.mark.asyncio
async def test_reset_returns_message_and_commits(mock_repository, participants, started_state):
    state, _ = ledger_engine.record_reading(started_state, participants, JOHN, 1100)
    mock_repository.load_state.return_value = state
    service = LedgerService(mock_repository, participants)

    settlement = await service.reset()

    assert settlement.state.km_by == {AMIT: 0, JOHN: 0}
    assert settlement.message.startswith("Fuel split reset (")
    assert settlement.message.endswith("Please settle accordingly.")
    appended = mock_repository.commit.call_args.kwargs["append"]
    assert appended.type == EntryType.RESET
    assert appended.snapshot.km_by == {AMIT: 100, JOHN: 0}


@pytest.mark.asyncio
async def test_update_settings_commits_without_history(mock_repository, participants, initial_state):
    mock_repository.load_state.return_value = initial_state
    service = LedgerService(mock_repository, participants)

    new_state = await service.update_settings(0.75, 300)

    assert new_state.price_per_km == 0.75
    assert new_state.starting_odometer == 300
    mock_repository.commit.assert_called_once_with(new_state)


@pytest.mark.asyncio
async def test_store_failure_propagates(mock_repository, participants):
    mock_repository.load_state.side_effect = StoreUnavailable("Failed to load ledger state")
    service = LedgerService(mock_repository, participants)

    with pytest.raises(StoreUnavailable):
        await service.record_reading(AMIT, 1000)

    mock_repository.commit.assert_not_called()


@pytest.mark.asyncio
async def test_ensure_initialized_seeds_default_state(mock_repository, participants):
    service = LedgerService(mock_repository, participants)

    await service.ensure_initialized(0.5)

    seeded = mock_repository.ensure_state.call_args[0][0]
    assert seeded.price_per_km == 0.5
    assert seeded.last_odometer is None
    assert seeded.km_by == {AMIT: 0, JOHN: 0}
