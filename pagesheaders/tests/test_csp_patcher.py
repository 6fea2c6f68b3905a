"""Unit tests for pagesheaders.core.csp_patcher.

Covers merging hash sources into CSP values and patching configured routes
in global and per-route modes, including wildcard route synthesis.
"""

import pytest

from pagesheaders.core import routes as route_files
from pagesheaders.core.config import CspOptions
from pagesheaders.core.csp_patcher import (
    CspHashReport,
    find_header_name,
    patch_csp_value,
    patch_routes_csp,
)
from pagesheaders.core.html_hasher import CspHashSources, hash_sha256

CSP = "Content-Security-Policy"


def quoted(value: str) -> str:
    return f"'{hash_sha256(value)}'"


@pytest.fixture
def route_options():
    return CspOptions(auto_hashes=True, mode="route")


@pytest.fixture
def wildcard_build_dir(tmp_path):
    """A build with a root page and a nested blog page."""
    (tmp_path / "index.html").write_text("<style>a{}</style>", encoding="utf-8")
    post = tmp_path / "blog" / "post"
    post.mkdir(parents=True)
    (post / "index.html").write_text("<style>p{}</style>", encoding="utf-8")
    return tmp_path


# find_header_name tests
def test_find_header_name_is_case_insensitive():
    headers = {"X-Frame-Options": "DENY", "content-security-policy": "default-src 'self'"}
    assert find_header_name(headers, "Content-Security-Policy") == "content-security-policy"
    assert find_header_name(headers, "Referrer-Policy") is None


# patch_csp_value tests
def test_patch_csp_value_defaults_style_src_to_self(csp_options):
    sources = CspHashSources(style_element_sources=["'sha256-a'"])
    patched = patch_csp_value("default-src 'self'", sources, csp_options)
    assert patched == "default-src 'self'; style-src 'self' 'sha256-a';"


def test_patch_csp_value_style_attributes_use_unsafe_hashes(csp_options):
    sources = CspHashSources(style_attribute_sources=["'sha256-b'"])
    patched = patch_csp_value("default-src 'self'", sources, csp_options)
    assert patched == "default-src 'self'; style-src-attr 'unsafe-hashes' 'sha256-b';"


def test_patch_csp_value_strips_unsafe_inline(csp_options):
    sources = CspHashSources(style_element_sources=["'sha256-a'"])
    patched = patch_csp_value(
        "default-src 'self'; style-src 'self' 'unsafe-inline'", sources, csp_options
    )
    assert patched == "default-src 'self'; style-src 'self' 'sha256-a';"


def test_patch_csp_value_keeps_unsafe_inline_when_disabled():
    options = CspOptions(auto_hashes=True, strip_unsafe_inline=False)
    sources = CspHashSources(style_element_sources=["'sha256-a'"])
    patched = patch_csp_value("style-src 'unsafe-inline'", sources, options)
    assert patched == "style-src 'unsafe-inline' 'sha256-a';"


def test_patch_csp_value_replaces_none(csp_options):
    sources = CspHashSources(style_element_sources=["'sha256-a'"])
    patched = patch_csp_value("style-src 'none'", sources, csp_options)
    assert patched == "style-src 'sha256-a';"


def test_patch_csp_value_scripts_only_when_enabled(csp_options):
    sources = CspHashSources(script_element_sources=["'sha256-c'"])
    assert patch_csp_value("default-src 'self'", sources, csp_options) == "default-src 'self'"

    options = CspOptions(auto_hashes=True, hash_inline_scripts=True)
    patched = patch_csp_value("default-src 'self'", sources, options)
    assert patched == "default-src 'self'; script-src 'self' 'sha256-c';"


def test_patch_csp_value_collapses_trailing_semicolons(csp_options):
    sources = CspHashSources(style_element_sources=["'sha256-a'"])
    patched = patch_csp_value("default-src 'self';;; ", sources, csp_options)
    assert patched == "default-src 'self'; style-src 'self' 'sha256-a';"


def test_patch_csp_value_is_idempotent(csp_options):
    sources = CspHashSources(
        style_element_sources=["'sha256-a'"], style_attribute_sources=["'sha256-b'"]
    )
    once = patch_csp_value("default-src 'self'", sources, csp_options)
    assert patch_csp_value(once, sources, csp_options) == once


def test_patch_csp_value_unchanged_without_sources(csp_options):
    raw = "default-src 'self' ;"
    assert patch_csp_value(raw, CspHashSources(), csp_options) == raw


# patch_routes_csp tests
def test_no_csp_routes_skips_scan(monkeypatch, build_dir, csp_options, log_events):
    def fail(root_dir):
        raise AssertionError("build directory should not be scanned")

    monkeypatch.setattr(route_files, "collect_html_files", fail)
    routes = {"/*": {"X-Frame-Options": "DENY"}}

    report = patch_routes_csp(routes, str(build_dir), csp_options)

    assert report == CspHashReport()
    assert routes == {"/*": {"X-Frame-Options": "DENY"}}
    events = log_events("INFO", "patch_routes_csp")
    assert events[0]["event"] == "No Content-Security-Policy headers configured"


def test_global_mode_patches_every_csp_route(build_dir, csp_options):
    routes = {
        "/*": {CSP: "default-src 'self'"},
        "/admin": {CSP: "default-src 'none'"},
        "/about": {"X-Frame-Options": "DENY"},
    }
    report = patch_routes_csp(routes, str(build_dir), csp_options)

    style_sources = " ".join(sorted([quoted("body{color:red}"), quoted("h1{color:blue}")]))
    expected_tail = (
        f"style-src 'self' {style_sources}; "
        f"style-src-attr 'unsafe-hashes' {quoted('margin:0')};"
    )
    assert routes["/*"][CSP] == f"default-src 'self'; {expected_tail}"
    assert routes["/admin"][CSP] == f"default-src 'none'; {expected_tail}"
    assert routes["/about"] == {"X-Frame-Options": "DENY"}
    assert report == CspHashReport(
        inline_style_hashes=2,
        style_attribute_hashes=1,
        inline_script_hashes=0,
        updated_csp_headers=2,
        files_processed=3,
    )


def test_route_mode_isolates_hashes(build_dir, route_options):
    routes = {
        "/": {CSP: "default-src 'self'"},
        "/about/": {"content-security-policy": "default-src 'self'"},
    }
    report = patch_routes_csp(routes, str(build_dir), route_options)

    assert routes["/"][CSP] == (
        f"default-src 'self'; style-src 'self' {quoted('body{color:red}')}; "
        f"style-src-attr 'unsafe-hashes' {quoted('margin:0')};"
    )
    assert routes["/about/"] == {
        "content-security-policy": (
            f"default-src 'self'; style-src 'self' {quoted('h1{color:blue}')};"
        )
    }
    assert report.updated_csp_headers == 2
    assert report.inline_style_hashes == 2
    assert report.files_processed == 3


def test_route_mode_exact_route_without_bucket_is_untouched(build_dir, route_options):
    routes = {"/missing": {CSP: "default-src 'self'"}}
    report = patch_routes_csp(routes, str(build_dir), route_options)
    assert routes == {"/missing": {CSP: "default-src 'self'"}}
    assert report.updated_csp_headers == 0


def test_route_mode_trailing_slash_fallback(build_dir, route_options):
    routes = {"/about": {CSP: "default-src 'self'"}}
    patch_routes_csp(routes, str(build_dir), route_options)
    assert routes == {
        "/about": {CSP: f"default-src 'self'; style-src 'self' {quoted('h1{color:blue}')};"}
    }


def test_route_mode_synthesizes_routes_from_wildcards(wildcard_build_dir, route_options):
    routes = {
        "/*": {CSP: "default-src 'self'"},
        "/blog/*": {CSP: "default-src 'none'"},
    }
    report = patch_routes_csp(routes, str(wildcard_build_dir), route_options)

    assert routes["/*"] == {CSP: "default-src 'self'"}
    assert routes["/blog/*"] == {CSP: "default-src 'none'"}
    assert routes["/"] == {CSP: f"default-src 'self'; style-src 'self' {quoted('a{}')};"}
    assert routes["/blog/post/"] == {
        CSP: f"default-src 'none'; style-src 'self' {quoted('p{}')};"
    }
    assert report.updated_csp_headers == 2


def test_route_mode_wildcard_ties_keep_declaration_order(tmp_path, route_options):
    section = tmp_path / "x"
    section.mkdir()
    (section / "y.html").write_text("<style>b{}</style>", encoding="utf-8")
    routes = {
        "/x/*": {CSP: "default-src 'self'"},
        "/*/y": {CSP: "default-src 'none'"},
    }
    patch_routes_csp(routes, str(tmp_path), route_options)
    assert routes["/x/y"] == {CSP: f"default-src 'self'; style-src 'self' {quoted('b{}')};"}


def test_route_mode_reuses_exact_route_without_csp(wildcard_build_dir, route_options):
    routes = {
        "/*": {"content-security-policy": "default-src 'self'"},
        "/": {"X-Frame-Options": "DENY"},
    }
    patch_routes_csp(routes, str(wildcard_build_dir), route_options)

    assert list(routes["/"]) == ["X-Frame-Options", "content-security-policy"]
    assert routes["/"]["content-security-policy"] == (
        f"default-src 'self'; style-src 'self' {quoted('a{}')};"
    )


def test_route_mode_skips_built_routes_without_hashes(build_dir, route_options):
    routes = {"/*": {CSP: "default-src 'self'"}}
    patch_routes_csp(routes, str(build_dir), route_options)
    assert "/404" not in routes
    assert set(routes) == {"/*", "/", "/about/"}


def test_route_mode_explicit_csp_wins_over_wildcard(build_dir, route_options):
    routes = {
        "/*": {CSP: "default-src 'none'"},
        "/about/": {CSP: "default-src 'self'"},
    }
    patch_routes_csp(routes, str(build_dir), route_options)
    assert routes["/about/"][CSP].startswith("default-src 'self';")


def test_route_mode_wildcard_literal_segments_are_escaped(tmp_path, route_options):
    for section, style in (("v1.0", "a{}"), ("v1x0", "b{}")):
        (tmp_path / section).mkdir()
        (tmp_path / section / "a.html").write_text(
            f"<style>{style}</style>", encoding="utf-8"
        )
    routes = {"/v1.0/*": {CSP: "default-src 'self'"}}

    report = patch_routes_csp(routes, str(tmp_path), route_options)

    assert routes["/v1.0/a"] == {
        CSP: f"default-src 'self'; style-src 'self' {quoted('a{}')};"
    }
    assert "/v1x0/a" not in routes
    assert report.updated_csp_headers == 1
