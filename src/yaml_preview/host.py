"""
Host editor interfaces.

The preview core only needs a narrow slice of the editor: a document model, a
change-notification stream, configuration lookup, notices, and a presentation
surface (webview panel) that can host sandboxed content.
"""

from __future__ import annotations

import enum
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Protocol, Sequence


class ViewColumn(enum.IntEnum):
    BESIDE = -2
    ONE = 1


class Subscription:
    """Handle for a host callback registration. `cancel()` is idempotent."""

    __slots__ = ("_remove", "_cancelled")

    def __init__(self, remove: Callable[[], None]):
        self._remove = remove
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._remove()


class TextDocument(Protocol):
    @property
    def uri(self) -> str: ...

    @property
    def file_name(self) -> str: ...

    @property
    def language_id(self) -> str: ...

    @property
    def version(self) -> int: ...

    def get_text(self) -> str: ...


class TextDocumentChangeEvent(Protocol):
    @property
    def document(self) -> TextDocument: ...


class PanelOptions:
    __slots__ = ("enable_scripts", "retain_context_when_hidden", "local_resource_roots")

    def __init__(
        self,
        enable_scripts: bool = True,
        retain_context_when_hidden: bool = True,
        local_resource_roots: Sequence[Path] = (),
    ):
        self.enable_scripts = enable_scripts
        self.retain_context_when_hidden = retain_context_when_hidden
        self.local_resource_roots = list(local_resource_roots)

    def __repr__(self) -> str:
        return (
            f"PanelOptions(enable_scripts={self.enable_scripts!r}, "
            f"local_resource_roots={self.local_resource_roots!r})"
        )


class PresentationSurface(Protocol):
    """A visible webview panel.

    `csp_source` is the token the isolation policy uses to allow the host's
    resource scheme; `as_resource_uri` maps a local file into that scheme.
    """

    html: str

    @property
    def csp_source(self) -> str: ...

    def as_resource_uri(self, path: Path) -> str: ...

    def post_message(self, message: dict[str, Any]) -> Any: ...

    def reveal(self, column: ViewColumn, preserve_focus: bool) -> None: ...

    def on_did_dispose(self, callback: Callable[[], None]) -> Subscription: ...

    def dispose(self) -> None: ...


class Workspace(Protocol):
    def on_did_change_text_document(
        self, callback: Callable[[TextDocumentChangeEvent], None]
    ) -> Subscription: ...

    def get_configuration(self, section: str) -> Mapping[str, Any]: ...

    def as_relative_path(self, uri: str) -> str: ...


class Window(Protocol):
    @property
    def active_document(self) -> Optional[TextDocument]: ...

    def show_information_message(self, message: str) -> None: ...

    def show_warning_message(self, message: str) -> None: ...

    async def show_text_document(
        self, document: TextDocument, column: ViewColumn, preserve_focus: bool
    ) -> None: ...

    def create_webview_panel(
        self,
        view_type: str,
        title: str,
        column: ViewColumn,
        preserve_focus: bool,
        options: PanelOptions,
    ) -> PresentationSurface: ...


class Host(Protocol):
    @property
    def window(self) -> Window: ...

    @property
    def workspace(self) -> Workspace: ...

    def register_command(self, command_id: str, callback: Callable[[], Any]) -> Subscription: ...
