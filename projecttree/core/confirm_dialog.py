# projecttree/core/confirm_dialog.py
import asyncio
import uuid
from dataclasses import dataclass
from functools import partial
from typing import Optional

from loguru import logger

from ..config.schema import OverlapPolicy
from .models import CLOSED_GATE, ConfirmGateState
from .observable import Observable


class ConfirmDialogBusyError(RuntimeError):
    """Raised when a confirmation is requested while another one is pending."""


@dataclass
class _PendingConfirm:
    token: str
    title: str
    message: str
    future: "asyncio.Future[bool]"


class ConfirmDialogController(Observable):
    """
    Single-slot asynchronous confirmation gate.

    `show_confirm_dialog` returns a future that resolves True when the user
    confirms and False on every other way out (cancel button, Escape, outside
    click, teardown). Each request carries a token so a stale dialog cannot
    resolve a newer request.
    """

    def __init__(self, policy: OverlapPolicy = OverlapPolicy.REJECT):
        super().__init__()
        self.policy = OverlapPolicy(policy)
        self._pending: Optional[_PendingConfirm] = None

    @property
    def is_open(self) -> bool:
        return self._pending is not None

    @property
    def pending_token(self) -> Optional[str]:
        return self._pending.token if self._pending else None

    @property
    def state(self) -> ConfirmGateState:
        pending = self._pending
        if pending is None:
            return CLOSED_GATE
        return ConfirmGateState(
            is_open=True,
            title=pending.title,
            message=pending.message,
            on_confirm=partial(self.confirm, pending.token),
            on_cancel=partial(self.cancel, pending.token),
            token=pending.token,
        )

    def show_confirm_dialog(self, title: str, message: str) -> "asyncio.Future[bool]":
        """Opens the gate. Must be called with a running event loop."""
        if self._pending is not None:
            if self.policy == OverlapPolicy.REJECT:
                raise ConfirmDialogBusyError(
                    f"A confirmation is already pending: '{self._pending.title}'")
            logger.warning(f"Overwriting pending confirmation '{self._pending.title}'; its result will never resolve.")

        loop = asyncio.get_running_loop()
        pending = _PendingConfirm(token=uuid.uuid4().hex, title=title, message=message, future=loop.create_future())
        pending.future.add_done_callback(partial(self._on_future_done, pending.token))
        self._pending = pending
        logger.debug(f"Confirmation requested: '{title}' (token {pending.token[:8]})")
        self._notify()
        return pending.future

    def confirm(self, token: Optional[str] = None) -> bool:
        return self._resolve(True, token)

    def cancel(self, token: Optional[str] = None) -> bool:
        return self._resolve(False, token)

    # Escape, outside click and window close all end up here
    dismiss = cancel

    def _resolve(self, value: bool, token: Optional[str]) -> bool:
        pending = self._pending
        if pending is None:
            return False
        if token is not None and token != pending.token:
            logger.debug(f"Ignoring resolution for stale confirmation token {token[:8]}.")
            return False
        self._pending = None
        if not pending.future.done():
            pending.future.set_result(value)
        logger.debug(f"Confirmation '{pending.title}' resolved: {value}")
        self._notify()
        return True

    def _on_future_done(self, token: str, future: "asyncio.Future[bool]"):
        # The awaiting caller gave up (task cancelled): free the slot
        if future.cancelled() and self._pending is not None and self._pending.token == token:
            logger.debug(f"Confirmation '{self._pending.title}' cancelled by its caller.")
            self._pending = None
            self._notify()
