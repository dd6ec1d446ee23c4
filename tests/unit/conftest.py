"""Shared fixtures: a fake aiosmtplib client recording every interaction."""

from typing import Any

import aiosmtplib
import pytest


class DummySMTP:
    def __init__(self, controller, **kwargs):
        self.controller = controller
        self.kwargs = kwargs
        self.hostname = kwargs.get("hostname")
        self.port = kwargs.get("port")
        self.connected = False
        self.closed = False
        self.noops = 0
        self.sent: list[Any] = []

    async def connect(self):
        if self.controller.connect_error is not None:
            raise self.controller.connect_error
        self.connected = True

    @property
    def is_connected(self):
        return self.connected

    async def noop(self):
        self.noops += 1
        if self.controller.noop_error is not None:
            raise self.controller.noop_error
        return 250, "OK"

    async def send_message(self, message):
        if self.controller.send_error is not None:
            if isinstance(self.controller.send_error, OSError):
                self.connected = False
            raise self.controller.send_error
        self.sent.append(message)
        self.controller.sent.append(message)

    async def quit(self):
        if not self.connected:
            raise aiosmtplib.SMTPServerDisconnected("Server not connected")
        self.connected = False
        self.closed = True


class SMTPController:
    """Configure and inspect the fake SMTP clients created during a test."""

    def __init__(self):
        self.created: list[DummySMTP] = []
        self.sent: list[Any] = []
        self.connect_error: Exception | None = None
        self.noop_error: Exception | None = None
        self.send_error: Exception | None = None


@pytest.fixture
def smtp(monkeypatch) -> SMTPController:
    controller = SMTPController()

    def factory(**kwargs):
        client = DummySMTP(controller, **kwargs)
        controller.created.append(client)
        return client

    monkeypatch.setattr("mail_notifier.transport.aiosmtplib.SMTP", factory)
    return controller
