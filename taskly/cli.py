"""CLI entry point for the board.

Usage:
  python -m taskly boards
  python -m taskly new-board <title>
  python -m taskly show <board_id> [--all]
  python -m taskly add-column <board_id> <title>
  python -m taskly add-card <column_id> <title> [--description TEXT] [--label L ...] [--due YYYY-MM-DD]
  python -m taskly move-card <card_id> (--to-column COLUMN_ID | --before CARD_ID)
  python -m taskly move-column <column_id> --to COLUMN_ID
  python -m taskly edit-card <card_id> [--title T] [--description TEXT] [--label L ... | --no-labels] [--due YYYY-MM-DD | --no-due]
  python -m taskly rename {board,column} <id> <title>
  python -m taskly archive-card <card_id> [--restore]
  python -m taskly archive-board <board_id> [--restore]
  python -m taskly delete {board,column,card} <id>
  python -m taskly tui [board_id]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import date

from .board.drag import DragController, DropKind, DropTarget
from .board.exceptions import SyncError, ValidationError
from .board.models import Card, EntityKind
from .board.store import EntityStore
from .config import BACKENDS, TasklyConfig, create_gateway
from .log import setup_logging


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskly", description="Personal kanban board")
    parser.add_argument("--config", default=None, help="Path to config.yaml")
    parser.add_argument("--backend", choices=BACKENDS, default=None, help="Override the configured backend")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("boards", help="List active boards")

    new_board = subparsers.add_parser("new-board", help="Create a board")
    new_board.add_argument("title")

    show = subparsers.add_parser("show", help="Show a board's columns and cards")
    show.add_argument("board_id")
    show.add_argument("--all", action="store_true", help="Include archived cards")

    add_column = subparsers.add_parser("add-column", help="Append a column to a board")
    add_column.add_argument("board_id")
    add_column.add_argument("title")

    add_card = subparsers.add_parser("add-card", help="Append a card to a column")
    add_card.add_argument("column_id")
    add_card.add_argument("title")
    add_card.add_argument("--description", default=None)
    add_card.add_argument("--label", action="append", default=[], help="Repeat for several labels")
    add_card.add_argument("--due", type=date.fromisoformat, default=None, help="Due date (YYYY-MM-DD)")

    move_card = subparsers.add_parser("move-card", help="Move a card like a drag-and-drop")
    move_card.add_argument("card_id")
    target = move_card.add_mutually_exclusive_group(required=True)
    target.add_argument("--to-column", help="Drop at the end of this column")
    target.add_argument("--before", help="Drop right before this card")

    move_column = subparsers.add_parser("move-column", help="Move a column to another column's slot")
    move_column.add_argument("column_id")
    move_column.add_argument("--to", required=True, help="Column whose position to take")

    edit_card = subparsers.add_parser("edit-card", help="Change a card's title, description, labels or due date")
    edit_card.add_argument("card_id")
    edit_card.add_argument("--title", default=None)
    edit_card.add_argument("--description", default=None, help="Empty string clears it")
    edit_card.add_argument("--label", action="append", default=None, help="Replaces all labels; repeat for several")
    edit_card.add_argument("--no-labels", action="store_true", help="Remove all labels")
    due = edit_card.add_mutually_exclusive_group()
    due.add_argument("--due", type=date.fromisoformat, default=None, help="Due date (YYYY-MM-DD)")
    due.add_argument("--no-due", action="store_true", help="Clear the due date")

    rename = subparsers.add_parser("rename", help="Rename a board or column")
    rename.add_argument("kind", choices=[EntityKind.BOARD.value, EntityKind.COLUMN.value])
    rename.add_argument("entity_id")
    rename.add_argument("title")

    archive = subparsers.add_parser("archive-card", help="Hide a card without deleting it")
    archive.add_argument("card_id")
    archive.add_argument("--restore", action="store_true", help="Unarchive instead")

    archive_board = subparsers.add_parser("archive-board", help="Hide a board without deleting it")
    archive_board.add_argument("board_id")
    archive_board.add_argument("--restore", action="store_true", help="Unarchive instead")

    delete = subparsers.add_parser("delete", help="Delete a board, column or card (cascades)")
    delete.add_argument("kind", choices=[k.value for k in EntityKind])
    delete.add_argument("entity_id")

    tui = subparsers.add_parser("tui", help="Open the interactive board")
    tui.add_argument("board_id", nargs="?", default=None)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = TasklyConfig.load(args.config)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if args.backend:
        config.backend = args.backend
    level = "DEBUG" if args.verbose else config.log_level

    if args.command == "tui":
        setup_logging(level, config.log_file, console=False)
        from taskly_tui.app import run_board

        run_board(config, board_id=args.board_id)
        return

    setup_logging(level, config.log_file)
    try:
        asyncio.run(_dispatch(args, config))
    except (ValidationError, SyncError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


async def _dispatch(args, config: TasklyConfig) -> None:
    store = EntityStore(create_gateway(config), owner_id=config.owner_id)
    await store.load()
    await _COMMANDS[args.command](store, args)


async def _boards_command(store: EntityStore, args) -> None:
    boards = store.active_boards()
    if not boards:
        print("No boards yet. Create one with: taskly new-board <title>")
        return
    for board in boards:
        columns = store.get_siblings(board.id, EntityKind.COLUMN)
        print(f"{board.id}  {board.title}  ({len(columns)} columns)")


async def _new_board_command(store: EntityStore, args) -> None:
    board = await store.create_board(args.title)
    print(f"Created board {board.id}: {board.title}")


async def _show_command(store: EntityStore, args) -> None:
    board = store.get_board(args.board_id)
    print(f"{board.title} [{board.id}]{' (archived)' if board.is_archived else ''}")
    for column in store.get_siblings(board.id, EntityKind.COLUMN):
        cards = (
            store.get_siblings(column.id, EntityKind.CARD)
            if args.all else store.visible_cards(column.id)
        )
        print(f"  {column.title} [{column.id}] ({len(cards)})")
        for card in cards:
            print(f"    - {_card_line(card)}")


def _card_line(card: Card) -> str:
    parts = [f"{card.title} [{card.id}]"]
    if card.labels:
        parts.append(" ".join(f"#{label}" for label in sorted(card.labels)))
    if card.due_date:
        parts.append(f"due {card.due_date.isoformat()}")
    if card.is_archived:
        parts.append("(archived)")
    return "  ".join(parts)


async def _add_column_command(store: EntityStore, args) -> None:
    column = await store.create_column(args.board_id, args.title)
    print(f"Created column {column.id}: {column.title}")


async def _add_card_command(store: EntityStore, args) -> None:
    card = await store.create_card(
        args.column_id,
        args.title,
        description=args.description,
        labels=args.label,
        due_date=args.due,
    )
    print(f"Created card {card.id}: {card.title}")


async def _move_card_command(store: EntityStore, args) -> None:
    if args.before:
        target = DropTarget(DropKind.CARD, args.before)
    else:
        target = DropTarget(DropKind.COLUMN_CARDS, args.to_column)
    await _drag(store, EntityKind.CARD, args.card_id, target)


async def _move_column_command(store: EntityStore, args) -> None:
    await _drag(store, EntityKind.COLUMN, args.column_id, DropTarget(DropKind.COLUMN, args.to))


async def _drag(store: EntityStore, kind: EntityKind, entity_id: str, target: DropTarget) -> None:
    controller = DragController(store)
    controller.drag_start(kind, entity_id)
    outcome = await controller.drag_end(kind, entity_id, target)
    if outcome.error is not None:
        raise outcome.error
    if not outcome.mutated:
        print(f"{kind.value.capitalize()} {entity_id} is already there")
    elif kind is EntityKind.CARD:
        print(f"Moved card {entity_id} to column {outcome.column_id}")
    else:
        print(f"Columns now: {', '.join(outcome.column_ids)}")


async def _archive_card_command(store: EntityStore, args) -> None:
    card = await store.set_card_archived(args.card_id, not args.restore)
    print(f"Card {card.id} {'archived' if card.is_archived else 'restored'}")


async def _edit_card_command(store: EntityStore, args) -> None:
    fields: dict = {}
    if args.title is not None:
        fields["title"] = args.title
    if args.description is not None:
        fields["description"] = args.description
    if args.no_labels:
        fields["labels"] = ()
    elif args.label is not None:
        fields["labels"] = args.label
    if args.no_due:
        fields["due_date"] = None
    elif args.due is not None:
        fields["due_date"] = args.due
    if not fields:
        raise ValidationError("Nothing to change: pass --title, --description, --label or --due")
    card = await store.update_card(args.card_id, **fields)
    print(f"Updated card {card.id}: {_card_line(card)}")


async def _rename_command(store: EntityStore, args) -> None:
    if args.kind == EntityKind.BOARD.value:
        entity = await store.rename_board(args.entity_id, args.title)
    else:
        entity = await store.rename_column(args.entity_id, args.title)
    print(f"Renamed {args.kind} {entity.id} to {entity.title}")


async def _archive_board_command(store: EntityStore, args) -> None:
    board = await store.set_board_archived(args.board_id, not args.restore)
    print(f"Board {board.id} {'archived' if board.is_archived else 'restored'}")


async def _delete_command(store: EntityStore, args) -> None:
    kind = EntityKind(args.kind)
    if kind is EntityKind.BOARD:
        await store.delete_board(args.entity_id)
    elif kind is EntityKind.COLUMN:
        await store.delete_column(args.entity_id)
    else:
        await store.delete_card(args.entity_id)
    print(f"Deleted {kind.value} {args.entity_id}")


_COMMANDS = {
    "boards": _boards_command,
    "new-board": _new_board_command,
    "show": _show_command,
    "add-column": _add_column_command,
    "add-card": _add_card_command,
    "move-card": _move_card_command,
    "move-column": _move_column_command,
    "edit-card": _edit_card_command,
    "rename": _rename_command,
    "archive-card": _archive_card_command,
    "archive-board": _archive_board_command,
    "delete": _delete_command,
}


if __name__ == "__main__":
    main()
