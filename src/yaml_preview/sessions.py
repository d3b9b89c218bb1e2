"""
Preview sessions and the per-document session registry.

At most one live session per document URI. A session owns its surface, its
change subscription, its debounce timer and (optionally) a content server,
and releases all of them together when the surface is disposed.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
from typing import Awaitable, Callable, Iterator, Optional, Union

from yaml_preview.errors import TeardownError
from yaml_preview.host import PresentationSurface, Subscription, ViewColumn
from yaml_preview.models.source import ContentSource
from yaml_preview.policy import EmbeddingPolicy
from yaml_preview.streamer import ChangeStreamer
from yaml_preview.transport.server import ContentServer

logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Awaitable["PreviewSession"]]


class PreviewSession:
    def __init__(
        self,
        doc_id: str,
        surface: PresentationSurface,
        streamer: ChangeStreamer,
        source: ContentSource,
        policy: EmbeddingPolicy,
        server: Optional[ContentServer] = None,
    ):
        self.doc_id = doc_id
        self.surface = surface
        self.streamer = streamer
        self.source = source
        self.policy = policy
        self.server = server
        self.teardown_errors: list[TeardownError] = []
        self._on_closed: Optional[Callable[[str], None]] = None
        self._disposed = False
        self._server_stop: Optional[Union[asyncio.Task[None], concurrent.futures.Future]] = None
        self._dispose_subscription: Subscription = surface.on_did_dispose(self.dispose)

    def __repr__(self) -> str:
        return f"PreviewSession(doc_id={self.doc_id!r}, source={self.source.kind!r}, disposed={self._disposed})"

    @property
    def disposed(self) -> bool:
        return self._disposed

    def attach(self, on_closed: Callable[[str], None]) -> None:
        """Set the callback that evicts this session from its registry."""
        self._on_closed = on_closed

    def reveal(self) -> None:
        self.surface.reveal(ViewColumn.BESIDE, True)

    def close(self) -> None:
        """Close from our side: dispose the surface, which cascades into dispose()."""
        if self._disposed:
            return
        try:
            self.surface.dispose()
        finally:
            self.dispose()

    def dispose(self) -> None:
        """Tear down in order: timer, subscription, server, registry entry.

        Each step is best-effort; failures are collected in teardown_errors
        and never stop the remaining steps.
        """
        if self._disposed:
            return
        self._disposed = True
        steps = (
            ("cancel_timer", self.streamer.cancel_pending),
            ("unsubscribe", self.streamer.unsubscribe),
            ("stop_server", self._stop_server),
            ("dispose_listener", self._dispose_subscription.cancel),
        )
        for step, action in steps:
            try:
                action()
            except Exception as e:
                err = TeardownError(step, f"{step} failed for {self.doc_id}: {e}")
                self.teardown_errors.append(err)
                logger.warning("%s", err)
        if self._on_closed is not None:
            self._on_closed(self.doc_id)
        logger.debug("Preview session for %s disposed", self.doc_id)

    def _stop_server(self) -> None:
        if self.server is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None
        if loop is not None:
            self._server_stop = loop.create_task(self.server.stop())
            self._server_stop.add_done_callback(self._on_server_stopped)
            return

        # disposed from outside any running loop: stop on the loop that bound it
        owner = getattr(self.server, "loop", None)
        if owner is None or owner.is_closed():
            raise RuntimeError("no open event loop to stop the content server on")
        if owner.is_running():
            self._server_stop = asyncio.run_coroutine_threadsafe(self.server.stop(), owner)
            self._server_stop.add_done_callback(self._on_server_stopped)
        else:
            owner.run_until_complete(self.server.stop())

    def _on_server_stopped(self, task: Union["asyncio.Task[None]", concurrent.futures.Future]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            err = TeardownError("stop_server", f"stop_server failed for {self.doc_id}: {exc}")
            self.teardown_errors.append(err)
            logger.warning("%s", err)

    async def wait_closed(self) -> None:
        """Wait until the owned server (if any) has released its port."""
        stop = self._server_stop
        if isinstance(stop, concurrent.futures.Future):
            stop = asyncio.wrap_future(stop)
        if stop is not None:
            await asyncio.wait([stop])


class SessionRegistry:
    """Keyed store of live preview sessions. Not thread-safe; loop thread only."""

    def __init__(self) -> None:
        self._sessions: dict[str, PreviewSession] = {}
        self._opening: dict[str, asyncio.Future[PreviewSession]] = {}

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[PreviewSession]:
        return iter(list(self._sessions.values()))

    def get(self, doc_id: str) -> Optional[PreviewSession]:
        return self._sessions.get(doc_id)

    def doc_ids(self) -> list[str]:
        return list(self._sessions)

    async def open(self, doc_id: str, factory: SessionFactory) -> PreviewSession:
        """Reveal the live session for doc_id, or create and register one.

        Concurrent opens for the same document share one pending creation.
        Registration happens when the creation finishes, even if every caller
        waiting on it has been cancelled.
        """
        existing = self._sessions.get(doc_id)
        if existing is not None:
            existing.reveal()
            return existing

        pending = self._opening.get(doc_id)
        if pending is not None:
            session = await asyncio.shield(pending)
            if not session.disposed:
                session.reveal()
            return session

        future = asyncio.ensure_future(factory())
        self._opening[doc_id] = future
        future.add_done_callback(functools.partial(self._on_created, doc_id))
        return await asyncio.shield(future)

    def _on_created(self, doc_id: str, future: "asyncio.Future[PreviewSession]") -> None:
        if self._opening.get(doc_id) is future:
            del self._opening[doc_id]
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.debug("Preview for %s not created: %s", doc_id, exc)
            return
        session = future.result()
        if session.disposed:
            # surface closed while the session was still being built
            return
        self._sessions[doc_id] = session
        session.attach(self.on_closed)
        logger.info("Opened preview for %s (%s)", doc_id, session.source.kind)

    def on_closed(self, doc_id: str) -> None:
        if self._sessions.pop(doc_id, None) is not None:
            logger.info("Closed preview for %s", doc_id)

    def dispose_all(self) -> None:
        for session in list(self._sessions.values()):
            session.close()
