"""Tests for Mutation snapshots and RemoteCall dispatch."""

import pytest

from taskly.adapters.memory import InMemoryGateway
from taskly.board.commands import Mutation, RemoteCall
from taskly.board.exceptions import SyncError
from taskly.board.models import Board, BoardState, Card, Column, EntityKind


@pytest.fixture
def state():
    board = Board(id="b-1", title="Home", owner_id="local", order=100)
    column = Column(id="col-1", board_id="b-1", title="To Do", order=100)
    card = Card(id="card-1", board_id="b-1", column_id="col-1", title="Milk", order=100)
    return BoardState(
        owner_id="local",
        boards={board.id: board},
        columns={column.id: column},
        cards={card.id: card},
    )


class TestSetFields:
    def test_records_only_changed_fields(self, state):
        card = state.cards["card-1"]
        mutation = Mutation("edit", state)
        assert mutation.set_fields(card, {"title": "Milk", "order": 50.0})
        assert card.order == 50.0
        assert mutation.remote_calls == [RemoteCall("update", EntityKind.CARD, "card-1", {"order": 50.0})]

    def test_no_change_returns_false(self, state):
        mutation = Mutation("edit", state)
        assert not mutation.set_fields(state.cards["card-1"], {"title": "Milk"})
        assert mutation.is_empty
        assert mutation.remote_calls == []

    def test_local_only_change(self, state):
        mutation = Mutation("edit", state)
        mutation.set_fields(state.columns["col-1"], {"title": "Later"}, remote=False)
        assert not mutation.is_empty
        assert mutation.remote_calls == []


class TestRestore:
    def test_restores_fields_on_live_object(self, state):
        card = state.cards["card-1"]
        mutation = Mutation("move", state)
        mutation.set_fields(card, {"column_id": "col-2", "order": 300.0})
        mutation.set_fields(card, {"order": 400.0})
        mutation.restore()
        assert state.cards["card-1"] is card
        assert (card.column_id, card.order) == ("col-1", 100)

    def test_reinserts_removed_entities(self, state):
        mutation = Mutation("delete", state)
        mutation.remove(state.cards["card-1"], remote=False)
        mutation.remove(state.columns["col-1"])
        assert state.cards == {} and state.columns == {}
        mutation.restore()
        assert state.cards["card-1"].title == "Milk"
        assert state.columns["col-1"].title == "To Do"


class TestCommit:
    @pytest.mark.asyncio
    async def test_sends_calls_in_order(self, state):
        gateway = InMemoryGateway()
        board = await gateway.create_entity(EntityKind.BOARD, "local", {"title": "Home"})
        state.boards = {board.id: board}
        mutation = Mutation("rename", state)
        mutation.set_fields(board, {"title": "House"})
        mutation.set_fields(board, {"is_archived": True})
        await mutation.commit(gateway)
        assert mutation.sent == 2
        assert gateway.get(EntityKind.BOARD, board.id).title == "House"
        assert gateway.get(EntityKind.BOARD, board.id).is_archived

    @pytest.mark.asyncio
    async def test_failure_restores_and_raises(self, state):
        gateway = InMemoryGateway(fail_on=["update"])
        card = state.cards["card-1"]
        mutation = Mutation("move", state)
        mutation.set_fields(card, {"order": 5.0})
        with pytest.raises(SyncError, match="request failed"):
            await mutation.commit(gateway)
        assert card.order == 100
        assert mutation.sent == 0

    @pytest.mark.asyncio
    async def test_unknown_operation(self):
        with pytest.raises(ValueError, match="Unknown remote operation"):
            await RemoteCall("upsert", EntityKind.CARD, "card-1").send(InMemoryGateway())
