"""Tests for the server lifecycle and command-line entry point."""

import socket

import httpx
import pytest

from ocproxy.cli import build_parser, main, settings_from_args
from ocproxy.config_loader import ProxySettings
from ocproxy.core import ConfigurationError
from ocproxy.main import create_app
from ocproxy.server import ProxyServer, check_transport
from ocproxy.testing import FakeBackend


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestCheckTransport:
    """Tests for the listener capability check."""

    def test_free_port(self):
        check_transport("127.0.0.1", _free_port())

    def test_occupied_port(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen(1)
            port = sock.getsockname()[1]

            with pytest.raises(ConfigurationError, match="Cannot listen"):
                check_transport("127.0.0.1", port)

    def test_unresolvable_host(self):
        with pytest.raises(ConfigurationError):
            check_transport("no-such-host.invalid", 4040)


class TestProxyServer:
    """Tests for ProxyServer start/stop."""

    @pytest.mark.asyncio
    async def test_start_serves_and_stop_closes(self):
        settings = ProxySettings(port=_free_port())
        backend = FakeBackend()
        server = ProxyServer(create_app(settings, backend), settings)

        await server.start()
        try:
            assert server.started
            async with httpx.AsyncClient(base_url=settings.base_url, trust_env=False) as client:
                response = await client.get("/health")
            assert response.status_code == 200
        finally:
            await server.stop()

        assert not server.started
        assert backend.closed is True

    @pytest.mark.asyncio
    async def test_start_on_occupied_port_fails(self):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen(1)
            settings = ProxySettings(port=sock.getsockname()[1])
            server = ProxyServer(create_app(settings, FakeBackend()), settings)

            with pytest.raises(ConfigurationError):
                await server.start()
        assert not server.started

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        settings = ProxySettings()
        server = ProxyServer(create_app(settings, FakeBackend()), settings)
        await server.stop()


class TestCli:
    """Tests for the ocproxy command line."""

    def test_server_openai_flags(self, clean_proxy_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("proxy_settings:\n  port: 5050\n", encoding="utf-8")
        args = build_parser().parse_args([
            "server-openai",
            "-p", "7070",
            "--api-key", "secret",
            "--timeout", "1500",
            "--backend", "mock",
            "--config", str(config_file),
        ])

        settings = settings_from_args(args)

        assert settings.port == 7070
        assert settings.api_key == "secret"
        assert settings.timeout_ms == 1500
        assert settings.backend == "mock"

    def test_unset_flags_fall_back_to_config(self, clean_proxy_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("proxy_settings:\n  port: 5050\n", encoding="utf-8")
        args = build_parser().parse_args(["server-openai", "--config", str(config_file)])

        assert settings_from_args(args).port == 5050

    def test_invalid_backend_choice(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["server-openai", "--backend", "nope"])

    def test_configuration_error_exits_1(self, clean_proxy_env, tmp_path):
        assert main(["server-openai", "--config", str(tmp_path / "missing.yaml")]) == 1

    def test_unknown_log_level_exits_1(self, clean_proxy_env):
        assert main(["server-openai", "--backend", "mock", "--log-level", "FOO"]) == 1

    def test_occupied_port_exits_1(self, clean_proxy_env):
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            sock.listen(1)
            port = sock.getsockname()[1]

            assert main(["server-openai", "--backend", "mock", "-p", str(port)]) == 1
