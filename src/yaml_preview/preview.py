"""
YamlPreview: the "open preview for active document" command and the
extension lifecycle around it.
"""

import logging
from pathlib import Path
from typing import Any, Optional

from yaml_preview.config import CONFIG_SECTION, PreviewConfig
from yaml_preview.errors import UserInputError
from yaml_preview.host import Host, PanelOptions, Subscription, TextDocument, ViewColumn
from yaml_preview.policy import build_policy, describe_source, render_surface_html
from yaml_preview.resolver import Resolution, resolve
from yaml_preview.sessions import PreviewSession, SessionRegistry
from yaml_preview.streamer import ChangeStreamer
from yaml_preview.transport.server import ContentServer, PayloadReader, file_reader

logger = logging.getLogger(__name__)

COMMAND_OPEN = "yamlIframePreview.open"
PREVIEW_VIEW_TYPE = "yamlIframePreview.preview"
DEMO_ROOT = Path(__file__).parent / "demo"
DEMO_PAGE = DEMO_ROOT / "index.html"
DEMO_PAGE_LABEL = "demo/index.html"
YAML_LANGUAGE_ID = "yaml"
YAML_EXTENSIONS = (".yml", ".yaml")

NO_ACTIVE_EDITOR = "No active editor."
NOT_YAML = "Open a YAML (.yml/.yaml) file to use this preview."


def is_yaml_document(document: TextDocument) -> bool:
    if document.language_id == YAML_LANGUAGE_ID:
        return True
    return str(document.file_name).lower().endswith(YAML_EXTENSIONS)


class YamlPreview:
    def __init__(
        self,
        host: Host,
        registry: Optional[SessionRegistry] = None,
        demo_page: Path = DEMO_PAGE,
        payload_reader: Optional[PayloadReader] = None,
    ):
        self._host = host
        self.registry = registry if registry is not None else SessionRegistry()
        self._demo_page = demo_page
        self._payload_reader = payload_reader or file_reader(demo_page)
        self._command: Optional[Subscription] = None

    def activate(self) -> None:
        self._command = self._host.register_command(COMMAND_OPEN, self.open_preview)

    def deactivate(self) -> None:
        if self._command is not None:
            self._command.cancel()
            self._command = None
        self.registry.dispose_all()

    async def open_preview(self) -> Optional[PreviewSession]:
        """Open (or reveal) the preview for the active document.

        Bad input is reported as a notice and yields None; nothing is allocated.
        """
        try:
            document = self._active_yaml_document()
        except UserInputError as e:
            logger.debug("Preview not opened: %s", e)
            if e.code == "no_active_document":
                self._host.window.show_information_message(str(e))
            else:
                self._host.window.show_warning_message(str(e))
            return None

        doc_id = str(document.uri)
        return await self.registry.open(doc_id, lambda: self._create_session(document))

    def _active_yaml_document(self) -> TextDocument:
        document = self._host.window.active_document
        if document is None:
            raise UserInputError(NO_ACTIVE_EDITOR, code="no_active_document")
        if not is_yaml_document(document):
            raise UserInputError(NOT_YAML, code="not_yaml")
        return document

    async def _create_session(self, document: TextDocument) -> PreviewSession:
        window = self._host.window
        workspace = self._host.workspace
        config = PreviewConfig.from_settings(workspace.get_configuration(CONFIG_SECTION))

        # YAML on the left, preview on the right
        await window.show_text_document(document, ViewColumn.ONE, True)
        surface = window.create_webview_panel(
            PREVIEW_VIEW_TYPE,
            f"Preview: {workspace.as_relative_path(str(document.uri))}",
            ViewColumn.BESIDE,
            True,
            PanelOptions(
                enable_scripts=True,
                retain_context_when_hidden=True,
                local_resource_roots=[self._demo_page.parent],
            ),
        )

        # the surface can be closed while the server is still binding
        closed_early = False

        def _mark_closed() -> None:
            nonlocal closed_early
            closed_early = True

        early_close = surface.on_did_dispose(_mark_closed)
        try:
            resolution = await self._resolve(config, surface.as_resource_uri(self._demo_page))
        finally:
            early_close.cancel()

        try:
            policy = build_policy(resolution.source, surface.csp_source)
            mode, detail = describe_source(resolution.source, DEMO_PAGE_LABEL)
            surface.html = render_surface_html(policy, surface.csp_source, mode, detail)
            streamer = ChangeStreamer(document, surface, workspace, config.debounce_ms)
            session = PreviewSession(
                str(document.uri),
                surface,
                streamer,
                source=resolution.source,
                policy=policy,
                server=resolution.server,
            )
        except Exception:
            if resolution.server is not None:
                await resolution.server.stop()
            surface.dispose()
            raise

        if closed_early:
            session.dispose()
            return session
        streamer.start()
        return session

    async def _resolve(self, config: PreviewConfig, bundled_address: str) -> Resolution:
        return await resolve(
            config.remote_url,
            self._start_server,
            config.allow_http,
            bundled_address,
        )

    async def _start_server(self) -> ContentServer:
        return await ContentServer.start(self._payload_reader)


def activate(host: Host, **kwargs: Any) -> YamlPreview:
    preview = YamlPreview(host, **kwargs)
    preview.activate()
    return preview
