"""In-memory host fakes for preview tests."""

import asyncio
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from yaml_preview.host import PanelOptions, Subscription, ViewColumn

CSP_SOURCE = "https://fake.webview-resource.test"


class FakeDocument:
    def __init__(self, uri: str = "file:///work/app.yaml", text: str = "a: 1\n",
                 language_id: str = "yaml", version: int = 1, file_name: Optional[str] = None):
        self.uri = uri
        self.file_name = file_name or uri.replace("file://", "")
        self.language_id = language_id
        self.version = version
        self._text = text

    def get_text(self) -> str:
        return self._text


class FakeChangeEvent:
    def __init__(self, document: FakeDocument):
        self.document = document


def _subscribe(callbacks: list, callback: Callable) -> Subscription:
    callbacks.append(callback)

    def remove() -> None:
        try:
            callbacks.remove(callback)
        except ValueError:
            pass
    return Subscription(remove)


class FakeSurface:
    def __init__(self, view_type: str = "", title: str = "", options: Optional[PanelOptions] = None):
        self.view_type = view_type
        self.title = title
        self.options = options
        self.html = ""
        self.messages: list[dict[str, Any]] = []
        self.reveals: list[tuple[ViewColumn, bool]] = []
        self.disposed = False
        self._dispose_callbacks: list[Callable[[], None]] = []

    @property
    def csp_source(self) -> str:
        return CSP_SOURCE

    def as_resource_uri(self, path: Path) -> str:
        return f"{CSP_SOURCE}{path.as_posix()}"

    def post_message(self, message: dict[str, Any]) -> bool:
        self.messages.append(message)
        return True

    def reveal(self, column: ViewColumn, preserve_focus: bool) -> None:
        self.reveals.append((column, preserve_focus))

    def on_did_dispose(self, callback: Callable[[], None]) -> Subscription:
        return _subscribe(self._dispose_callbacks, callback)

    @property
    def dispose_listeners(self) -> int:
        return len(self._dispose_callbacks)

    def dispose(self) -> None:
        if self.disposed:
            return
        self.disposed = True
        for callback in list(self._dispose_callbacks):
            callback()


class FakeWorkspace:
    def __init__(self, settings: Optional[dict[str, Any]] = None):
        self.settings = settings or {}
        self.change_callbacks: list[Callable] = []

    def on_did_change_text_document(self, callback: Callable) -> Subscription:
        return _subscribe(self.change_callbacks, callback)

    def get_configuration(self, section: str) -> dict[str, Any]:
        return dict(self.settings)

    def as_relative_path(self, uri: str) -> str:
        return uri.rsplit("/", 1)[-1]

    def edit(self, document: FakeDocument, text: str) -> None:
        document._text = text
        document.version += 1
        for callback in list(self.change_callbacks):
            callback(FakeChangeEvent(document))


class FakeWindow:
    def __init__(self, active_document: Optional[FakeDocument] = None):
        self.active_document = active_document
        self.infos: list[str] = []
        self.warnings: list[str] = []
        self.panels: list[FakeSurface] = []
        self.shown: list[tuple[FakeDocument, ViewColumn, bool]] = []
        self.gate: Optional[asyncio.Event] = None

    def show_information_message(self, message: str) -> None:
        self.infos.append(message)

    def show_warning_message(self, message: str) -> None:
        self.warnings.append(message)

    async def show_text_document(self, document, column: ViewColumn, preserve_focus: bool) -> None:
        self.shown.append((document, column, preserve_focus))
        if self.gate is not None:
            await self.gate.wait()

    def create_webview_panel(self, view_type, title, column, preserve_focus, options) -> FakeSurface:
        panel = FakeSurface(view_type, title, options)
        self.panels.append(panel)
        return panel


class FakeHost:
    def __init__(self, document: Optional[FakeDocument] = None, settings: Optional[dict[str, Any]] = None):
        self.window = FakeWindow(document)
        self.workspace = FakeWorkspace(settings)
        self.commands: dict[str, Callable] = {}

    def register_command(self, command_id: str, callback: Callable) -> Subscription:
        self.commands[command_id] = callback
        return Subscription(lambda: self.commands.pop(command_id, None))


class FakeServer:
    """Stands in for ContentServer where no socket is needed."""

    def __init__(self, port: int = 54321, log: Optional[list[str]] = None):
        self.address = f"http://127.0.0.1:{port}/index.html"
        self.stopped = False
        self._log = log

    def stop(self):
        if self._log is not None:
            self._log.append("stop_server")
        return self._stop()

    async def _stop(self) -> None:
        self.stopped = True


@pytest.fixture
def document() -> FakeDocument:
    return FakeDocument()


@pytest.fixture
def surface() -> FakeSurface:
    return FakeSurface()


@pytest.fixture
def workspace() -> FakeWorkspace:
    return FakeWorkspace()
