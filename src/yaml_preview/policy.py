"""
Embedding policy: isolation origins, message target and the outer page.

For a remote or loopback-served frame the policy pins both the frame-src
allow-list and the postMessage target to the one resolved origin. A bundled
resource has no enumerable origin, so frame-src lists the host resource
scheme and the relay posts with "*".

Exactly one inline script (the relay) may run in the outer surface; it is
authorized by a per-session nonce.
"""

import html
import json
import secrets
import string
from typing import Optional

from pydantic import BaseModel, ConfigDict

from yaml_preview.models.source import (
    ContentSource,
    LocalBundledSource,
    LocalServedSource,
    RemoteSource,
)
from yaml_preview.models.snapshot import UPDATE_MESSAGE_TYPE
from yaml_preview.resolver import origin_of

WILDCARD_ORIGIN = "*"
LEGACY_RESOURCE_SOURCE = "vscode-resource:"
NONCE_LENGTH = 32
_NONCE_ALPHABET = string.ascii_letters + string.digits


def make_nonce(length: int = NONCE_LENGTH) -> str:
    return "".join(secrets.choice(_NONCE_ALPHABET) for _ in range(length))


class EmbeddingPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    frame_address: str
    isolation_origins: list[str]
    message_target_origin: str
    nonce: str

    def content_security_policy(self, csp_source: str) -> str:
        directives = [
            "default-src 'none'",
            f"img-src {csp_source} https: data:",
            f"style-src 'unsafe-inline' {csp_source}",
            f"script-src 'nonce-{self.nonce}'",
            f"frame-src {' '.join(self.isolation_origins)}",
        ]
        return "; ".join(directives) + ";"


def build_policy(source: ContentSource, csp_source: str) -> EmbeddingPolicy:
    """Derive the isolation policy for a resolved content source."""
    if isinstance(source, (RemoteSource, LocalServedSource)):
        origin = origin_of(source.address)
        origins = [origin]
        target = origin
    elif isinstance(source, LocalBundledSource):
        origins = [csp_source, LEGACY_RESOURCE_SOURCE]
        target = WILDCARD_ORIGIN
    else:
        raise TypeError(f"Unknown content source: {source!r}")
    return EmbeddingPolicy(
        frame_address=source.address,
        isolation_origins=origins,
        message_target_origin=target,
        nonce=make_nonce(),
    )


def _esc(value: str) -> str:
    return html.escape(value, quote=True)


def _script_literal(value: str) -> str:
    # json.dumps alone would let "</script>" close the element early
    return json.dumps(value).replace("<", "\\u003c").replace(">", "\\u003e").replace("&", "\\u0026")


_SURFACE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8" />
  <meta http-equiv="Content-Security-Policy" content="{csp}" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>YAML Iframe Preview</title>
  <style>
    html, body {{ height: 100%; padding: 0; margin: 0; }}
    .wrap {{ height: 100%; display: flex; flex-direction: column; }}
    .bar {{
      padding: 8px 10px;
      font-family: system-ui, -apple-system, Segoe UI, Roboto, sans-serif;
      font-size: 12px;
      border-bottom: 1px solid rgba(127,127,127,0.2);
      display: flex;
      gap: 10px;
      align-items: center;
      justify-content: space-between;
    }}
    .muted {{ opacity: 0.75; }}
    iframe {{ flex: 1; width: 100%; border: 0; }}
    code {{ font-family: ui-monospace, SFMono-Regular, Menlo, Monaco, Consolas, monospace; }}
  </style>
</head>
<body>
  <div class="wrap">
    <div class="bar">
      <div>
        <strong>Mode:</strong>
        <code>{mode}</code>
        <span class="muted">{detail}</span>
      </div>
      <div class="muted">Forwarding YAML via <code>postMessage</code></div>
    </div>

    <iframe id="app" src="{src}"></iframe>
  </div>

  <script nonce="{nonce}">
    const iframe = document.getElementById('app');

    window.addEventListener('message', (event) => {{
      const msg = event.data;
      if (!msg || msg.type !== {message_type}) return;
      iframe?.contentWindow?.postMessage(msg, {target_origin});
    }});
  </script>
</body>
</html>
"""


def render_surface_html(
    policy: EmbeddingPolicy,
    csp_source: str,
    mode: str,
    detail: Optional[str] = None,
) -> str:
    """Render the outer page hosting the content frame and the relay script."""
    return _SURFACE_TEMPLATE.format(
        csp=_esc(policy.content_security_policy(csp_source)),
        mode=_esc(mode),
        detail=_esc(detail or ""),
        src=_esc(policy.frame_address),
        nonce=_esc(policy.nonce),
        message_type=_script_literal(UPDATE_MESSAGE_TYPE),
        target_origin=_script_literal(policy.message_target_origin),
    )


def describe_source(source: ContentSource, bundled_label: str) -> tuple[str, str]:
    """Status-bar mode and detail for a source."""
    if isinstance(source, RemoteSource):
        return "remote", source.address
    return "local", bundled_label
