import logging
from typing import Any, Dict, List

import pytest

from pagesheaders.core.config import CspOptions


def get_log_events(
    caplog: pytest.LogCaptureFixture, level: str, operation: str = None
) -> List[Dict[str, Any]]:
    """Return the structlog event dicts captured at ``level``.

    structlog hands the event dict to the stdlib record as ``record.msg``.
    """
    events = []
    for record in caplog.records:
        if record.levelname != level or not isinstance(record.msg, dict):
            continue
        if operation is not None and record.msg.get("operation") != operation:
            continue
        events.append(record.msg)
    return events


@pytest.fixture
def log_events(caplog):
    caplog.set_level(logging.DEBUG)

    def _events(level: str, operation: str = None) -> List[Dict[str, Any]]:
        return get_log_events(caplog, level, operation)

    return _events


@pytest.fixture
def csp_options():
    return CspOptions(auto_hashes=True)


@pytest.fixture
def build_dir(tmp_path):
    """A small build output with a root page, a directory page and a flat page."""
    (tmp_path / "index.html").write_text(
        "<html><head><style>body{color:red}</style></head>"
        '<body><p style="margin:0">home</p></body></html>',
        encoding="utf-8",
    )
    about = tmp_path / "about"
    about.mkdir()
    (about / "index.html").write_text(
        "<html><head><style>h1{color:blue}</style></head><body></body></html>",
        encoding="utf-8",
    )
    (tmp_path / "404.html").write_text("<html><body>missing</body></html>", encoding="utf-8")
    (tmp_path / "app.js").write_text("console.log('x');", encoding="utf-8")
    return tmp_path
