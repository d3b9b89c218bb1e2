"""Embedding policy and surface HTML."""

import re

from yaml_preview.models.source import LocalBundledSource, LocalServedSource, RemoteSource
from yaml_preview.policy import (
    LEGACY_RESOURCE_SOURCE,
    NONCE_LENGTH,
    WILDCARD_ORIGIN,
    build_policy,
    describe_source,
    make_nonce,
    render_surface_html,
)

from conftest import CSP_SOURCE


def test_remote_policy_is_pinned():
    policy = build_policy(RemoteSource(address="https://ex.com/app"), CSP_SOURCE)
    assert policy.frame_address == "https://ex.com/app"
    assert policy.isolation_origins == ["https://ex.com"]
    assert policy.message_target_origin == "https://ex.com"


def test_local_served_policy_is_pinned():
    policy = build_policy(LocalServedSource(address="http://127.0.0.1:54321/index.html"), CSP_SOURCE)
    assert policy.isolation_origins == ["http://127.0.0.1:54321"]
    assert policy.message_target_origin == "http://127.0.0.1:54321"


def test_bundled_policy_uses_resource_scheme_and_wildcard():
    policy = build_policy(LocalBundledSource(address=f"{CSP_SOURCE}/demo/index.html"), CSP_SOURCE)
    assert CSP_SOURCE in policy.isolation_origins
    assert LEGACY_RESOURCE_SOURCE in policy.isolation_origins
    assert policy.message_target_origin == WILDCARD_ORIGIN


def test_nonce_is_fresh_per_build():
    source = RemoteSource(address="https://ex.com/app")
    first = build_policy(source, CSP_SOURCE).nonce
    second = build_policy(source, CSP_SOURCE).nonce
    assert first != second
    assert re.fullmatch(r"[A-Za-z0-9]{%d}" % NONCE_LENGTH, first)
    assert len(make_nonce(8)) == 8


def test_content_security_policy_directives():
    policy = build_policy(RemoteSource(address="https://ex.com/app"), CSP_SOURCE)
    csp = policy.content_security_policy(CSP_SOURCE)
    assert "default-src 'none'" in csp
    assert f"script-src 'nonce-{policy.nonce}'" in csp
    assert "frame-src https://ex.com;" in csp
    assert "unsafe-eval" not in csp


def test_surface_has_exactly_one_nonced_script():
    policy = build_policy(RemoteSource(address="https://ex.com/app"), CSP_SOURCE)
    html = render_surface_html(policy, CSP_SOURCE, "remote", "https://ex.com/app")
    assert html.count("<script") == 1
    assert f'<script nonce="{policy.nonce}">' in html
    assert 'postMessage(msg, "https://ex.com")' in html
    assert "msg.type !== \"yaml:update\"" in html


def test_bundled_surface_relays_with_wildcard():
    policy = build_policy(LocalBundledSource(address=f"{CSP_SOURCE}/demo/index.html"), CSP_SOURCE)
    html = render_surface_html(policy, CSP_SOURCE, "local", "demo/index.html")
    assert 'postMessage(msg, "*")' in html
    assert f"frame-src {CSP_SOURCE} {LEGACY_RESOURCE_SOURCE}" in html


def test_interpolated_values_are_escaped():
    source = RemoteSource(address='https://ex.com/app?a=1&b="x"')
    policy = build_policy(source, CSP_SOURCE)
    html = render_surface_html(policy, CSP_SOURCE, "remote", "<script>alert(1)</script>")
    assert 'src="https://ex.com/app?a=1&amp;b=&quot;x&quot;"' in html
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in html
    assert html.count("<script") == 1


def test_describe_source():
    assert describe_source(RemoteSource(address="https://ex.com/app"), "demo/index.html") == (
        "remote", "https://ex.com/app",
    )
    served = LocalServedSource(address="http://127.0.0.1:1/index.html")
    assert describe_source(served, "demo/index.html") == ("local", "demo/index.html")
