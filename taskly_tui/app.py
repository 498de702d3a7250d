"""Terminal board: columns of cards with keyboard drag-and-drop."""

from __future__ import annotations

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, Input, Static

from taskly.board.drag import DragController, DropKind, DropTarget
from taskly.board.exceptions import SyncError, ValidationError
from taskly.board.models import Card, Column, EntityKind
from taskly.board.store import EntityStore
from taskly.config import TasklyConfig, create_gateway

LABEL_COLORS = ["cyan", "green", "magenta", "yellow", "blue", "red"]


def _label_color(label: str) -> str:
    return LABEL_COLORS[sum(map(ord, label)) % len(LABEL_COLORS)]


def _card_markdown(card: Card) -> str:
    lines = [f"# {card.title}", ""]
    if card.description:
        lines += [card.description, ""]
    if card.labels:
        lines.append("Labels: " + ", ".join(sorted(card.labels)))
    if card.due_date:
        lines.append(f"Due: {card.due_date.isoformat()}")
    if card.is_archived:
        lines.append("(archived)")
    return "\n".join(lines)


class CardSelected(Message):
    def __init__(self, content: str, title: str) -> None:
        super().__init__()
        self.content = content
        self.title = title


class CardWidget(Static):
    can_focus = True

    def __init__(self, card: Card, col_index: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.card = card
        self.col_index = col_index

    def compose(self) -> ComposeResult:
        c = self.card
        badges = "".join(f" [{_label_color(label)}]#{label}[/]" for label in sorted(c.labels))
        due = f" [dim]due {c.due_date.isoformat()}[/]" if c.due_date else ""
        yield Static(f"{c.title}{badges}{due}")

    def on_focus(self) -> None:
        self.post_message(CardSelected(_card_markdown(self.card), self.card.title))


class KanbanColumn(VerticalScroll):
    can_focus = True

    def __init__(self, column: Column, cards: list[Card], col_index: int, **kwargs) -> None:
        super().__init__(**kwargs)
        self.column = column
        self.cards = cards
        self.col_index = col_index

    def compose(self) -> ComposeResult:
        yield Static(
            f"[bold underline]{self.column.title}[/] [dim]({len(self.cards)})[/]",
            classes="column-header",
        )
        if not self.cards:
            yield Static("[dim]empty[/]", classes="empty-label")
            return
        for card in self.cards:
            yield CardWidget(card, col_index=self.col_index, id=f"card-{card.id}", classes="card")


class DetailPanel(VerticalScroll):
    content_text: reactive[str] = reactive("")
    title_text: reactive[str] = reactive("Details")

    def compose(self) -> ComposeResult:
        yield Static("[dim]Select a card to view details[/]", id="detail-content")

    def watch_content_text(self, value: str) -> None:
        try:
            widget = self.query_one("#detail-content", Static)
            widget.update(value)
        except Exception:
            pass

    def watch_title_text(self, value: str) -> None:
        self.border_title = value


class TitleScreen(ModalScreen[str | None]):
    CSS = """
    TitleScreen { align: center middle; }
    #title-dialog {
        width: 50; height: auto; max-height: 12;
        border: solid $primary; background: $surface; padding: 1 2;
    }
    #title-heading { text-align: center; padding-bottom: 1; }
    #title-input { width: 100%; }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, heading: str, value: str = "", placeholder: str = "Title") -> None:
        super().__init__()
        self.heading = heading
        self.value = value
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(id="title-dialog"):
            yield Static(f"[bold]{self.heading}[/]", id="title-heading")
            yield Input(value=self.value, placeholder=self.placeholder, id="title-input")

    @on(Input.Submitted, "#title-input")
    def _on_submit(self, event: Input.Submitted) -> None:
        title = event.value.strip()
        if title:
            self.dismiss(title)

    def action_cancel(self) -> None:
        self.dismiss(None)


class KanbanApp(App):
    TITLE = "Taskly"

    CSS = """
    #main-layout { height: 1fr; width: 100%; }
    #board { width: 1fr; height: 100%; }

    KanbanColumn {
        width: 1fr;
        height: 100%;
        border-right: solid $surface-lighten-2;
        padding: 0;
    }

    KanbanColumn.active-col {
        border-right: solid $accent;
        border-left: solid $accent;
    }

    KanbanColumn.lifted { background: $warning 20%; }

    .column-header {
        text-align: center;
        background: $surface-lighten-1;
        margin-bottom: 1;
        height: 1;
    }

    .empty-label { text-align: center; color: $text-muted; }
    .card { padding: 0 1; margin: 0; }
    .card:focus { background: $surface-lighten-1; }
    .card.lifted { background: $warning 30%; }

    #detail-panel {
        width: 50;
        height: 100%;
        border-left: solid $primary;
        padding: 1 1;
        display: none;
    }
    #detail-panel.visible { display: block; }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("space", "lift_or_drop", "Lift/Drop"),
        Binding("e", "drop_at_end", "Drop at end"),
        Binding("g", "lift_column", "Grab column"),
        Binding("escape", "cancel_drag", "Cancel", show=False),
        Binding("n", "new_card", "New card"),
        Binding("t", "edit_title", "Title"),
        Binding("a", "archive_card", "Archive"),
        Binding("x", "delete_card", "Delete"),
        Binding("d", "toggle_detail", "Detail"),
        Binding("left", "col_left", "< Col", show=True),
        Binding("right", "col_right", "Col >", show=True),
        Binding("up", "card_up", "", show=False),
        Binding("down", "card_down", "", show=False),
    ]

    def __init__(self, store: EntityStore, board_id: str | None = None, load_on_mount: bool = True) -> None:
        super().__init__()
        self.store = store
        self.board_id = board_id
        self.load_on_mount = load_on_mount
        self.drag_controller = DragController(store)
        self.active_col_index: int = 0

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            yield Horizontal(id="board")
            yield DetailPanel(id="detail-panel")
        yield Footer()

    async def on_mount(self) -> None:
        if self.load_on_mount:
            try:
                await self.store.load()
            except SyncError as e:
                self.notify(f"Could not load boards: {e}", severity="error")
        await self._render_board()

    @on(CardSelected)
    def _on_card_selected(self, event: CardSelected) -> None:
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.title_text = event.title
        panel.content_text = event.content

    # -- Rendering --

    def _current_board_id(self) -> str | None:
        if self.board_id and self.board_id in self.store.state.boards:
            return self.board_id
        boards = self.store.active_boards()
        self.board_id = boards[0].id if boards else None
        return self.board_id

    async def _render_board(self, focus_card_id: str | None = None) -> None:
        board = self.query_one("#board", Horizontal)
        for child in list(board.children):
            await child.remove()

        board_id = self._current_board_id()
        if board_id is None:
            self.sub_title = "No boards"
            await board.mount(Static("[dim]No boards yet: create one with `taskly new-board`[/]"))
            return

        self.sub_title = self.store.get_board(board_id).title
        columns = self.store.get_siblings(board_id, EntityKind.COLUMN)
        for i, column in enumerate(columns):
            await board.mount(
                KanbanColumn(column, self.store.visible_cards(column.id), col_index=i, id=f"col-{column.id}")
            )
        if columns:
            self.active_col_index = min(self.active_col_index, len(columns) - 1)
        self._highlight_active_column()
        self._mark_lifted()

        if focus_card_id:
            for card in self.query(CardWidget):
                if card.card.id == focus_card_id:
                    self.active_col_index = card.col_index
                    self._highlight_active_column()
                    card.focus()
                    break

    def _get_column_widgets(self) -> list[KanbanColumn]:
        return list(self.query(KanbanColumn))

    def _active_column(self) -> KanbanColumn | None:
        cols = self._get_column_widgets()
        if 0 <= self.active_col_index < len(cols):
            return cols[self.active_col_index]
        return None

    def _highlight_active_column(self) -> None:
        for i, col in enumerate(self._get_column_widgets()):
            col.set_class(i == self.active_col_index, "active-col")

    def _mark_lifted(self) -> None:
        lifted = self.drag_controller.active
        for card in self.query(CardWidget):
            card.set_class(lifted == (EntityKind.CARD, card.card.id), "lifted")
        for col in self._get_column_widgets():
            col.set_class(lifted == (EntityKind.COLUMN, col.column.id), "lifted")

    # -- Navigation --

    def _cards_in_column(self, col_index: int) -> list[CardWidget]:
        cols = self._get_column_widgets()
        if col_index < 0 or col_index >= len(cols):
            return []
        return list(cols[col_index].query(CardWidget))

    def _move_active_column(self, step: int) -> None:
        cols = self._get_column_widgets()
        if not cols:
            return
        self.active_col_index = max(0, min(len(cols) - 1, self.active_col_index + step))
        self._highlight_active_column()
        cards = self._cards_in_column(self.active_col_index)
        if cards:
            cards[0].focus()
        else:
            cols[self.active_col_index].focus()

    def action_col_left(self) -> None:
        self._move_active_column(-1)

    def action_col_right(self) -> None:
        self._move_active_column(1)

    def _step_card(self, step: int) -> None:
        cards = self._cards_in_column(self.active_col_index)
        if not cards:
            return
        try:
            idx = cards.index(self.focused)
        except ValueError:
            (cards[0] if step > 0 else cards[-1]).focus()
            return
        new_idx = idx + step
        if 0 <= new_idx < len(cards):
            cards[new_idx].focus()

    def action_card_up(self) -> None:
        self._step_card(-1)

    def action_card_down(self) -> None:
        self._step_card(1)

    def watch_focused(self, focused) -> None:
        if isinstance(focused, (CardWidget, KanbanColumn)):
            self.active_col_index = focused.col_index
            self._highlight_active_column()

    # -- Drag and drop --

    def _focused_card(self) -> CardWidget | None:
        return self.focused if isinstance(self.focused, CardWidget) else None

    async def action_lift_or_drop(self) -> None:
        if self.drag_controller.is_dragging:
            card = self._focused_card()
            if card is not None:
                await self._drop(DropTarget(DropKind.CARD, card.card.id))
            else:
                await self.action_drop_at_end()
            return

        card = self._focused_card()
        if card is None:
            self.notify("Select a card first", severity="warning")
            return
        self.drag_controller.drag_start(EntityKind.CARD, card.card.id)
        self._mark_lifted()
        self.notify(f"Lifted '{card.card.title}': move and press space to drop, esc to cancel")

    def action_lift_column(self) -> None:
        if self.drag_controller.is_dragging:
            self.notify("Already dragging", severity="warning")
            return
        column = self._active_column()
        if column is None:
            return
        self.drag_controller.drag_start(EntityKind.COLUMN, column.column.id)
        self._mark_lifted()
        self.notify(f"Grabbed column '{column.column.title}': move and press space to drop")

    async def action_drop_at_end(self) -> None:
        if not self.drag_controller.is_dragging:
            return
        column = self._active_column()
        if column is None:
            return
        kind = self.drag_controller.active[0]
        drop_kind = DropKind.COLUMN_CARDS if kind is EntityKind.CARD else DropKind.COLUMN
        await self._drop(DropTarget(drop_kind, column.column.id))

    def action_cancel_drag(self) -> None:
        if self.drag_controller.is_dragging:
            self.drag_controller.cancel()
            self._mark_lifted()
            self.notify("Drag cancelled")

    async def _drop(self, target: DropTarget) -> None:
        kind, entity_id = self.drag_controller.active
        try:
            outcome = await self.drag_controller.drag_end(kind, entity_id, target)
        except ValidationError as e:
            self._mark_lifted()
            self.notify(str(e), severity="error")
            return
        if outcome.error is not None:
            self.notify(f"Not saved: {outcome.error.reason}", severity="error")
        await self._render_board(focus_card_id=entity_id if kind is EntityKind.CARD else None)

    # -- Card actions --

    def action_new_card(self) -> None:
        column = self._active_column()
        if column is None:
            self.notify("Add a column first", severity="warning")
            return
        column_id = column.column.id

        async def _create(title: str | None) -> None:
            if not title:
                return
            try:
                card = await self.store.create_card(column_id, title)
            except (ValidationError, SyncError) as e:
                self.notify(str(e), severity="error")
                return
            await self._render_board(focus_card_id=card.id)

        def _on_result(title: str | None) -> None:
            self.run_worker(_create(title))

        self.push_screen(
            TitleScreen(f"New card in {column.column.title}", placeholder="Card title"),
            callback=_on_result,
        )

    def action_edit_title(self) -> None:
        """Retitle the focused card, or the active column when no card has focus."""
        card = self._focused_card()
        column = self._active_column()
        if card is not None:
            entity_id, current, heading = card.card.id, card.card.title, "Card title"
        elif column is not None:
            entity_id, current, heading = column.column.id, column.column.title, "Column title"
        else:
            return

        async def _save(title: str | None) -> None:
            if not title or title == current:
                return
            try:
                if card is not None:
                    await self.store.update_card(entity_id, title=title)
                else:
                    await self.store.rename_column(entity_id, title)
            except (ValidationError, SyncError) as e:
                self.notify(str(e), severity="error")
            await self._render_board(focus_card_id=entity_id if card is not None else None)

        def _on_result(title: str | None) -> None:
            self.run_worker(_save(title))

        self.push_screen(TitleScreen(heading, value=current), callback=_on_result)

    async def action_archive_card(self) -> None:
        card = self._focused_card()
        if card is None:
            return
        try:
            await self.store.set_card_archived(card.card.id)
        except SyncError as e:
            self.notify(f"Not saved: {e.reason}", severity="error")
        await self._render_board()

    async def action_delete_card(self) -> None:
        card = self._focused_card()
        if card is None:
            return
        try:
            await self.store.delete_card(card.card.id)
        except SyncError as e:
            self.notify(f"Not saved: {e.reason}", severity="error")
        await self._render_board()

    # -- Refresh / detail --

    async def action_refresh(self) -> None:
        try:
            await self.store.refresh()
        except SyncError as e:
            self.notify(f"Refresh failed: {e.reason}", severity="error")
            return
        await self._render_board()
        self.notify("Board refreshed")

    def action_toggle_detail(self) -> None:
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.toggle_class("visible")


def run_board(config: TasklyConfig, board_id: str | None = None) -> None:
    """Entry point for ``taskly tui``."""
    store = EntityStore(create_gateway(config), owner_id=config.owner_id)
    app = KanbanApp(store, board_id=board_id)
    app.run()
