"""
yaml-iframe-preview: live side-by-side preview of YAML documents.

Keeps an embedded frame's copy of a YAML document in sync with the editor
through a debounced one-way postMessage stream.
"""

from yaml_preview.config import PreviewConfig
from yaml_preview.errors import (
    PreviewError,
    ResolutionDegradation,
    ServeError,
    TeardownError,
    UserInputError,
)
from yaml_preview.models.snapshot import ChangeSnapshot, UpdateMessage
from yaml_preview.models.source import LocalBundledSource, LocalServedSource, RemoteSource
from yaml_preview.policy import EmbeddingPolicy, build_policy
from yaml_preview.preview import YamlPreview, activate
from yaml_preview.resolver import resolve
from yaml_preview.sessions import PreviewSession, SessionRegistry
from yaml_preview.streamer import ChangeStreamer, Debouncer
from yaml_preview.transport.server import ContentServer

__version__ = "0.1.0"
__all__ = [
    "YamlPreview",
    "activate",
    "PreviewConfig",
    "SessionRegistry",
    "PreviewSession",
    "ChangeStreamer",
    "Debouncer",
    "ContentServer",
    "resolve",
    "build_policy",
    "EmbeddingPolicy",
    "RemoteSource",
    "LocalServedSource",
    "LocalBundledSource",
    "ChangeSnapshot",
    "UpdateMessage",
    "PreviewError",
    "UserInputError",
    "ResolutionDegradation",
    "ServeError",
    "TeardownError",
]
