# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for the Click CLI."""

from unittest.mock import MagicMock, patch

from click.testing import CliRunner


def test_serve_runs_uvicorn(host):
    with patch("uvicorn.run") as mock_run:
        result = CliRunner().invoke(host.cli, ["serve", "--port", "19000"])

    assert result.exit_code == 0, result.output
    mock_run.assert_called_once_with(
        "docuflow_wopi.server:app", host="0.0.0.0", port=19000, reload=False
    )


def test_ping_prints_reply(host):
    client = MagicMock()
    client.ping.return_value = "pong"
    with patch("docuflow_wopi.http_client.WopiHostClient", return_value=client) as cls:
        result = CliRunner().invoke(host.cli, ["ping", "--url", "http://wopi:18000"])

    assert result.exit_code == 0
    assert result.output.strip() == "pong"
    cls.assert_called_once_with("http://wopi:18000", wopi_prefix="/wopi")


def test_ping_unreachable(host):
    client = MagicMock()
    client.ping.side_effect = OSError("connection refused")
    with patch("docuflow_wopi.http_client.WopiHostClient", return_value=client):
        result = CliRunner().invoke(host.cli, ["ping"])

    assert result.exit_code != 0
    assert "unreachable" in result.output
