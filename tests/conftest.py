"""Shared test configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

import pytest
import pytest_asyncio

from taskly.adapters.memory import InMemoryGateway
from taskly.board.models import Board, Card, Column
from taskly.board.store import EntityStore


@dataclass
class SampleBoard:
    board: Board
    todo: Column
    doing: Column
    done: Column
    a: Card
    b: Card
    c: Card


async def build_sample_board(store: EntityStore, title: str = "Personal Tasks") -> SampleBoard:
    """Three columns; cards A, B, C in To Do at orders 100, 200, 300."""
    board = await store.create_board(title)
    todo = await store.create_column(board.id, "To Do")
    doing = await store.create_column(board.id, "In Progress")
    done = await store.create_column(board.id, "Done")
    a = await store.create_card(todo.id, "A")
    b = await store.create_card(todo.id, "B")
    c = await store.create_card(todo.id, "C")
    return SampleBoard(board, todo, doing, done, a, b, c)


@pytest.fixture
def gateway():
    return InMemoryGateway()


@pytest.fixture
def store(gateway):
    return EntityStore(gateway)


@pytest_asyncio.fixture
async def sample(store, gateway):
    board = await build_sample_board(store)
    gateway.calls.clear()
    return board


@pytest.fixture
def clean_env(monkeypatch):
    """Drop TASKLY_* variables so config tests see only what they set."""
    for key in list(os.environ):
        if key.startswith("TASKLY_"):
            monkeypatch.delenv(key)
