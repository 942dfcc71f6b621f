"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

import httpx
import pytest

from conftest import make_calendar, make_vevent, mock_client
from servers.ical_aggregator.__main__ import build_parser, main


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_serve_defaults():
    args = build_parser().parse_args(["serve"])
    assert (args.host, args.port) == ("127.0.0.1", 7134)


def test_sources_lists_builtin_table(capsys, monkeypatch):
    monkeypatch.delenv("ICAL_SOURCES_FILE", raising=False)

    assert main(["sources"]) == 0

    names = [s["name"] for s in json.loads(capsys.readouterr().out)]
    assert "freeport_library" in names
    assert len(names) == 5


def test_one_renders_feed(capsys):
    url = "https://example.org/cal.ics"
    routes = {url: httpx.Response(200, text=make_calendar(make_vevent("Storytime", "20261022T100000")))}

    with patch("servers.ical_aggregator.server.create_client", side_effect=lambda **kw: mock_client(routes)), \
            patch("servers.ical_aggregator.server.validate_feed_url", side_effect=lambda u, **kw: u):
        assert main(["one", url, "--town", "Freeport"]) == 0

    out = capsys.readouterr().out
    assert '"Storytime"' in out
    assert '"Freeport"' in out


def test_errors_reported_on_stderr(capsys):
    assert main(["one", "http://localhost/cal.ics"]) == 1
    assert "Error:" in capsys.readouterr().err
