"""
Unit tests for the server entry point.

Tests that ``main`` starts uvicorn on the configured bind address and logs
the listening URL.
"""

from unittest.mock import patch

from src.consent_server import main as main_module
from src.consent_server.config import ServerConfig


class TestMain:
    """Test cases for the consent-server entry point."""

    @patch('uvicorn.run')
    def test_runs_uvicorn_with_configured_address(self, mock_run):
        config = ServerConfig(host="127.0.0.1", port=8088, hydra_admin_url="http://hydra.test:4445")

        with patch.object(main_module.app.state, "config", config), \
                patch.object(main_module.logger, "log_startup") as mock_startup:
            main_module.main()

        mock_run.assert_called_once_with(main_module.app, host="127.0.0.1", port=8088)
        url, info = mock_startup.call_args.args
        assert url == "http://127.0.0.1:8088"
        assert info["hydra_admin_url"] == "http://hydra.test:4445"

    @patch('uvicorn.run')
    def test_ipv6_host_bracketed_in_startup_url(self, mock_run):
        config = ServerConfig(host="::", port=3000)

        with patch.object(main_module.app.state, "config", config), \
                patch.object(main_module.logger, "log_startup") as mock_startup:
            main_module.main()

        mock_run.assert_called_once_with(main_module.app, host="::", port=3000)
        assert mock_startup.call_args.args[0] == "http://[::]:3000"
