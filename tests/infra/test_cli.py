"""Tests for the ``tessera`` command line."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from tessera.infra.fastapi.cli import (
    APP_IMPORT_PATH,
    DEFAULT_HOST,
    DEFAULT_PORT,
    build_parser,
    main,
)


@pytest.mark.unit
class TestParser:
    def test_serve_defaults(self) -> None:
        args = build_parser().parse_args(["serve"])
        assert args.host == DEFAULT_HOST == "0.0.0.0"
        assert args.port == DEFAULT_PORT == 3000
        assert args.log_level == "info"

    def test_serve_overrides(self) -> None:
        args = build_parser().parse_args(["serve", "--host", "127.0.0.1", "--port", "8080"])
        assert args.host == "127.0.0.1"
        assert args.port == 8080

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            build_parser().parse_args(["--version"])
        assert exc_info.value.code == 0
        assert capsys.readouterr().out.startswith("tessera ")


@pytest.mark.unit
class TestMain:
    def test_serve_runs_uvicorn(self) -> None:
        with patch("uvicorn.run") as mock_run:
            assert main(["serve", "--port", "4000"]) == 0
        mock_run.assert_called_once_with(
            APP_IMPORT_PATH, host="0.0.0.0", port=4000, log_level="info"
        )
