"""Tests for the interactive mode picker."""

import pytest
from textual.widgets import Button, Input, RadioButton

from app import (
    APPLY_BTN,
    CANCEL_BTN,
    HOST_PATH_INPUT,
    IsolationTUI,
    Selection,
    fs_button_id,
    net_button_id,
)
from model import FilesystemMode, NetworkMode
from policy import IsolationEngine
from settings import IsolationSettings


class TestIsolationTUI:
    """Test IsolationTUI event wiring."""

    @pytest.mark.asyncio
    async def test_initial_selection_from_settings(self):
        """Radio buttons reflect the stored modes."""
        settings = IsolationSettings(network_mode=NetworkMode.OFFLINE)
        app = IsolationTUI(settings)
        async with app.run_test() as pilot:
            await pilot.pause()
            assert app.query_one(f"#{net_button_id(NetworkMode.OFFLINE)}", RadioButton).value is True
            assert app.query_one(f"#{fs_button_id(FilesystemMode.FULL)}", RadioButton).value is True
            assert app.query_one(f"#{HOST_PATH_INPUT}", Input).disabled is True

    @pytest.mark.asyncio
    async def test_select_and_apply(self):
        """Choosing modes and pressing Apply returns the selection."""
        app = IsolationTUI(IsolationSettings())
        async with app.run_test() as pilot:
            app.query_one(f"#{fs_button_id(FilesystemMode.LIMITED)}", RadioButton).value = True
            app.query_one(f"#{net_button_id(NetworkMode.LOCAL)}", RadioButton).value = True
            await pilot.pause()
            host_input = app.query_one(f"#{HOST_PATH_INPUT}", Input)
            assert host_input.disabled is False
            host_input.value = "C:/shared"
            app.query_one(f"#{APPLY_BTN}", Button).press()
            await pilot.pause()
        assert app.return_value == Selection(FilesystemMode.LIMITED, NetworkMode.LOCAL, "C:/shared")

    @pytest.mark.asyncio
    async def test_limited_requires_host_path(self):
        """Apply is refused while limited mode has no host folder."""
        app = IsolationTUI(IsolationSettings(filesystem_mode=FilesystemMode.LIMITED))
        async with app.run_test() as pilot:
            app.action_apply()
            await pilot.pause()
            assert "host folder" in app.error_message
            assert app.is_running

    @pytest.mark.asyncio
    async def test_cancel(self):
        app = IsolationTUI(IsolationSettings())
        async with app.run_test() as pilot:
            app.query_one(f"#{CANCEL_BTN}", Button).press()
            await pilot.pause()
        assert app.return_value is None

    @pytest.mark.asyncio
    async def test_status_panel(self, fake_env):
        """Status panel shows the inspected modes."""
        app = IsolationTUI(IsolationSettings(), IsolationEngine(fake_env))
        async with app.run_test() as pilot:
            await pilot.pause()
            assert "Network: full" in app.status_text
