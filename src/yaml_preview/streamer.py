"""
Change streamer: forwards document snapshots into a session's surface.

Trailing-edge debounce: every change inside the window restarts the timer and
only the last one sends. The payload is always the full current text, so a
dropped intermediate state heals on the next send.
"""

import asyncio
import enum
import inspect
import logging
from typing import Any, Callable, Optional

from yaml_preview.host import (
    PresentationSurface,
    Subscription,
    TextDocument,
    TextDocumentChangeEvent,
    Workspace,
)
from yaml_preview.transport.envelope import build_update_message

logger = logging.getLogger(__name__)


class DebounceState(str, enum.Enum):
    IDLE = "idle"
    PENDING = "pending"


class Debouncer:
    """IDLE/PENDING(deadline) state machine over a loop timer.

    schedule(): IDLE|PENDING -> PENDING(now + delay)
    fire():     PENDING -> IDLE, then callback
    cancel():   -> IDLE
    """

    def __init__(
        self,
        delay_ms: float,
        callback: Callable[[], None],
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._delay_s = max(0.0, delay_ms) / 1000.0
        self._callback = callback
        self._loop = loop
        self._timer: Optional[asyncio.TimerHandle] = None
        self._deadline: Optional[float] = None
        self._generation = 0
        self._disposed = False

    @property
    def state(self) -> DebounceState:
        return DebounceState.IDLE if self._deadline is None else DebounceState.PENDING

    @property
    def deadline(self) -> Optional[float]:
        return self._deadline

    @property
    def disposed(self) -> bool:
        return self._disposed

    def schedule(self) -> None:
        if self._disposed:
            return
        self._cancel_timer()
        loop = self._loop or asyncio.get_running_loop()
        self._generation += 1
        self._deadline = loop.time() + self._delay_s
        self._timer = loop.call_later(self._delay_s, self._on_timer, self._generation)

    def _on_timer(self, generation: int) -> None:
        # a superseded handle can still fire if it was already queued
        if generation != self._generation:
            return
        self.fire()

    def fire(self) -> None:
        if self._disposed or self._deadline is None:
            return
        self._timer = None
        self._deadline = None
        self._callback()

    def cancel(self) -> None:
        self._cancel_timer()
        self._generation += 1

    def dispose(self) -> None:
        self._disposed = True
        self.cancel()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._deadline = None


class ChangeStreamer:
    def __init__(
        self,
        document: TextDocument,
        surface: PresentationSurface,
        workspace: Workspace,
        delay_ms: float,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._document = document
        self._doc_id = str(document.uri)
        self._surface = surface
        self._workspace = workspace
        self._debouncer = Debouncer(delay_ms, self._send, loop=loop)
        self._subscription: Optional[Subscription] = None
        self._pending_posts: set[asyncio.Future[Any]] = set()
        self._disposed = False
        self.sent_count = 0

    @property
    def doc_id(self) -> str:
        return self._doc_id

    @property
    def debouncer(self) -> Debouncer:
        return self._debouncer

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None and not self._subscription.cancelled

    def start(self) -> None:
        """Subscribe to changes and queue the initial snapshot."""
        if self._subscription is not None:
            return
        self._subscription = self._workspace.on_did_change_text_document(self._on_change)
        self._debouncer.schedule()

    def _on_change(self, event: TextDocumentChangeEvent) -> None:
        if str(event.document.uri) != self._doc_id:
            return
        self._debouncer.schedule()

    def _send(self) -> None:
        if self._disposed:
            return
        message = build_update_message(self._document)
        try:
            result = self._surface.post_message(message)
        except Exception as e:
            logger.error("post_message failed for %s: %s", self._doc_id, e)
            return
        self.sent_count += 1
        logger.debug("Sent snapshot v%s for %s", message["payload"]["version"], self._doc_id)
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._pending_posts.add(future)
            future.add_done_callback(self._on_post_done)

    def _on_post_done(self, future: "asyncio.Future[Any]") -> None:
        self._pending_posts.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error("post_message failed for %s: %s", self._doc_id, exc)

    def cancel_pending(self) -> None:
        self._disposed = True
        self._debouncer.dispose()

    def unsubscribe(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()

    def dispose(self) -> None:
        self.cancel_pending()
        self.unsubscribe()
