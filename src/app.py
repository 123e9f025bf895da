"""Interactive mode picker for the installer."""

import logging
from dataclasses import dataclass

from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.widgets import Button, Input, Label, RadioButton, RadioSet, Static

from model import FilesystemMode, NetworkMode
from policy import IsolationEngine
from settings import IsolationSettings

log = logging.getLogger(__name__)

# Widget IDs
FS_MODE_SET = "fs-mode"
NET_MODE_SET = "net-mode"
HOST_PATH_INPUT = "host-path"
STATUS_PANEL = "status"
ERROR_LABEL = "error"
APPLY_BTN = "apply-btn"
CANCEL_BTN = "cancel-btn"

APP_CSS = """
Screen {
    padding: 0 1;
}
.section-title {
    text-style: bold;
    margin-top: 1;
}
RadioSet {
    width: 100%;
}
#status {
    border: round $primary;
    padding: 0 1;
    height: auto;
}
#error {
    color: $error;
}
#buttons {
    height: auto;
    margin-top: 1;
}
"""


@dataclass
class Selection:
    """Modes picked in the TUI."""

    filesystem_mode: FilesystemMode
    network_mode: NetworkMode
    host_path: str | None = None


def fs_button_id(mode: FilesystemMode) -> str:
    return f"fs-{mode.value}"


def net_button_id(mode: NetworkMode) -> str:
    return f"net-{mode.value}"


class IsolationTUI(App[Selection | None]):
    """Pick filesystem and network isolation for the environment."""

    TITLE = "Sandbox Isolation"
    ENABLE_COMMAND_PALETTE = False
    CSS = APP_CSS

    BINDINGS = [
        Binding("escape", "cancel", "Cancel", show=True),
        Binding("r", "refresh_status", "Refresh", show=True),
    ]

    def __init__(self, settings: IsolationSettings, engine: IsolationEngine | None = None) -> None:
        super().__init__()
        self.isolation_settings = settings
        self.engine = engine
        self.filesystem_mode = settings.filesystem_mode
        self.network_mode = settings.network_mode
        self.error_message = ""
        self.status_text = ""

    def compose(self) -> ComposeResult:
        with Horizontal(id="buttons"):
            yield Button("Apply", id=APPLY_BTN, variant="primary")
            yield Button("Cancel", id=CANCEL_BTN)
        yield Label("", id=ERROR_LABEL)
        with Vertical():
            yield Label("Filesystem access", classes="section-title")
            with RadioSet(id=FS_MODE_SET):
                for mode in FilesystemMode:
                    yield RadioButton(
                        mode.description, value=mode == self.filesystem_mode, id=fs_button_id(mode)
                    )
            yield Input(
                value=self.isolation_settings.host_path or "",
                placeholder="Host folder to share, e.g. C:/Users/me/shared",
                id=HOST_PATH_INPUT,
                disabled=self.filesystem_mode != FilesystemMode.LIMITED,
            )
            yield Label("Network access", classes="section-title")
            with RadioSet(id=NET_MODE_SET):
                for mode in NetworkMode:
                    yield RadioButton(
                        mode.description, value=mode == self.network_mode, id=net_button_id(mode)
                    )
            yield Static("", id=STATUS_PANEL, markup=False)

    def on_mount(self) -> None:
        self.action_refresh_status()

    @on(RadioSet.Changed, f"#{FS_MODE_SET}")
    def _on_fs_mode_changed(self, event: RadioSet.Changed) -> None:
        for mode in FilesystemMode:
            if event.pressed.id == fs_button_id(mode):
                self.filesystem_mode = mode
        self.query_one(f"#{HOST_PATH_INPUT}", Input).disabled = (
            self.filesystem_mode != FilesystemMode.LIMITED
        )
        log.debug("Filesystem mode selected: %s", self.filesystem_mode.value)

    @on(RadioSet.Changed, f"#{NET_MODE_SET}")
    def _on_net_mode_changed(self, event: RadioSet.Changed) -> None:
        for mode in NetworkMode:
            if event.pressed.id == net_button_id(mode):
                self.network_mode = mode
        log.debug("Network mode selected: %s", self.network_mode.value)

    @on(Button.Pressed, f"#{APPLY_BTN}")
    def _on_apply_pressed(self) -> None:
        self.action_apply()

    @on(Button.Pressed, f"#{CANCEL_BTN}")
    def _on_cancel_pressed(self) -> None:
        self.action_cancel()

    def action_apply(self) -> None:
        host_path = self.query_one(f"#{HOST_PATH_INPUT}", Input).value.strip() or None
        if self.filesystem_mode == FilesystemMode.LIMITED and not host_path:
            self.error_message = "Limited access needs a host folder"
            self.query_one(f"#{ERROR_LABEL}", Label).update(self.error_message)
            return
        if self.filesystem_mode != FilesystemMode.LIMITED:
            host_path = None
        self.exit(Selection(self.filesystem_mode, self.network_mode, host_path))

    def action_cancel(self) -> None:
        self.exit(None)

    def action_refresh_status(self) -> None:
        panel = self.query_one(f"#{STATUS_PANEL}", Static)
        if self.engine is None:
            self.status_text = "Current status: unknown"
        else:
            status = self.engine.inspect()
            self.status_text = "\n".join(["Current status:", *status.get_summary()])
        panel.update(self.status_text)
