"""Common Ground TUI - a read-only terminal viewer for a room's narrative."""

from pathlib import Path

from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.widgets import Button, Footer, Header, Input, Label, Markdown, Static

from .api import LiveStatement, RoomAPI, RoomView

# Default API URL
DEFAULT_API_URL = "http://localhost:8001"

# Seconds between snapshot refreshes
DEFAULT_POLL_INTERVAL = 2.0


class LivePanel(Static):
    """Shows the statement currently being voted on."""

    def compose(self) -> ComposeResult:
        yield Label("Live statement", classes="panel-title")
        yield Static("Nothing waiting for votes.", id="live-text")
        yield Static("", id="live-tally", classes="tally")

    def show(self, live: LiveStatement | None) -> None:
        text = self.query_one("#live-text", Static)
        tally = self.query_one("#live-tally", Static)
        if live is None:
            text.update("Nothing waiting for votes.")
            tally.update("")
            return
        text.update(f"“{live.text}” by {live.created_by}")
        tally.update(
            f"agree {live.agree} · disagree {live.disagree} · waiting {live.waiting}"
        )


def format_narrative(narrative: list[str]) -> str:
    """Render the narrative as a Markdown list."""
    if not narrative:
        return "*Nothing agreed yet.*"
    return "\n".join(f"{i}. {text}" for i, text in enumerate(narrative, start=1))


class NarrativeTUI(App):
    """Common Ground Terminal Viewer."""

    CSS = """
    #room-bar {
        height: auto;
        max-height: 5;
        padding: 1;
        background: $surface;
        border-bottom: solid $primary;
    }

    #room-input {
        width: 1fr;
    }

    #watch-btn, #new-room-btn {
        width: 14;
    }

    LivePanel {
        border: solid $warning;
        margin: 1;
        padding: 1;
        height: auto;
    }

    .panel-title {
        text-style: bold;
        color: $primary;
        margin-bottom: 1;
    }

    .tally {
        color: $text-muted;
        text-style: italic;
    }

    #narrative-area {
        border: solid $success;
        margin: 1;
        padding: 1;
        height: 1fr;
    }

    #status-bar {
        height: 1;
        background: $primary;
        color: $text;
        padding: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+n", "new_room", "New room"),
        Binding("ctrl+r", "refresh", "Refresh"),
        Binding("ctrl+s", "export", "Export", priority=True),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    current_room_id: reactive[str | None] = reactive(None)

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        room_id: str | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        super().__init__()
        self.api = RoomAPI(api_url)
        self.initial_room_id = room_id
        self.poll_interval = poll_interval

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Container():
            with Horizontal(id="room-bar"):
                yield Input(placeholder="Room id to watch...", id="room-input")
                yield Button("Watch", id="watch-btn", variant="primary")
                yield Button("+ New", id="new-room-btn")
            with Vertical():
                yield LivePanel()
                with VerticalScroll(id="narrative-area"):
                    yield Label("Narrative", classes="panel-title")
                    yield Markdown(format_narrative([]), id="narrative")
        yield Static("Not watching a room", id="status-bar")
        yield Footer()

    async def on_mount(self) -> None:
        """Start polling once the app mounts."""
        if self.initial_room_id:
            self.query_one("#room-input", Input).value = self.initial_room_id
            self.current_room_id = self.initial_room_id
        self.set_interval(self.poll_interval, self.action_refresh)

    async def on_unmount(self) -> None:
        """Cleanup when app unmounts."""
        await self.api.close()

    def watch_current_room_id(self, room_id: str | None) -> None:
        if room_id:
            self.action_refresh()

    @on(Button.Pressed, "#watch-btn")
    @on(Input.Submitted, "#room-input")
    def handle_watch(self) -> None:
        """Switch to the room id typed in the input."""
        room_id = self.query_one("#room-input", Input).value.strip()
        if room_id:
            self.current_room_id = room_id

    @on(Button.Pressed, "#new-room-btn")
    async def handle_new_room(self) -> None:
        await self.action_new_room()

    async def action_new_room(self) -> None:
        """Create a room id and start watching it."""
        try:
            room_id = await self.api.create_room()
        except Exception as e:
            self.notify(f"Failed to create room: {e}", severity="error")
            return
        self.query_one("#room-input", Input).value = room_id
        self.current_room_id = room_id
        self.notify(f"Share this room id: {room_id}", severity="information")

    async def action_export(self) -> None:
        """Save the watched room's Markdown export to the working directory."""
        if not self.current_room_id:
            self.notify("Not watching a room", severity="warning")
            return
        try:
            path = await self.api.save_markdown(self.current_room_id, Path.cwd())
        except Exception as e:
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Saved {path.name}", severity="information")

    def action_refresh(self) -> None:
        if self.current_room_id:
            self.refresh_room(self.current_room_id)

    @work(exclusive=True)
    async def refresh_room(self, room_id: str) -> None:
        """Fetch and render the latest snapshot."""
        status = self.query_one("#status-bar", Static)
        try:
            view = await self.api.get_room(room_id)
        except Exception as e:
            status.update(f"Error: {e}")
            return

        if view is None:
            status.update(f"Room {room_id[:8]} is not active yet")
            self.render_room(None)
            return

        status.update(
            f"Room {room_id[:8]} · {len(view.participants)} connected · "
            f"{view.statement_count} statements · {len(view.narrative)} agreed"
        )
        self.render_room(view)

    def render_room(self, view: RoomView | None) -> None:
        self.query_one(LivePanel).show(view.live if view else None)
        self.query_one("#narrative", Markdown).update(
            format_narrative(view.narrative if view else [])
        )


def main() -> None:
    """Run the TUI app."""
    import argparse

    parser = argparse.ArgumentParser(description="Common Ground narrative viewer")
    parser.add_argument(
        "--api-url",
        default=DEFAULT_API_URL,
        help=f"API base URL (default: {DEFAULT_API_URL})",
    )
    parser.add_argument("--room", default=None, help="Room id to watch on start")
    parser.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_POLL_INTERVAL,
        help=f"Refresh interval in seconds (default: {DEFAULT_POLL_INTERVAL})",
    )
    args = parser.parse_args()

    app = NarrativeTUI(api_url=args.api_url, room_id=args.room, poll_interval=args.interval)
    app.run()


if __name__ == "__main__":
    main()
