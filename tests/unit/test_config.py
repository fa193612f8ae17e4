"""
Unit tests for configuration and the command line.
"""

import pytest

from webpipe import ServerConfig, create_app
from webpipe.__main__ import build_parser, config_from_args
from webpipe.interceptors import AccessLogInterceptor, StaticFileInterceptor, StaticEntry


class TestServerConfig:
    """Tests for ServerConfig."""

    def test_defaults(self):
        config = ServerConfig()

        assert config.port == 8080
        assert config.static_dir is None
        assert config.static_url_prefix == "/static"
        assert config.static_cache_max_age == 300
        assert config.index_files == ["index.html"]
        config.validate()

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("HTTP_PORT", "9000")
        monkeypatch.setenv("HTTP_URL_ROOT", "/shop")
        monkeypatch.setenv("HTTP_STATIC_ROOT", "/srv/shop/")
        monkeypatch.setenv("HTTP_STATIC_DIR", "public")
        monkeypatch.setenv("HTTP_STATIC_MAX_AGE", "60")
        monkeypatch.setenv("HTTP_INDEX_FILES", "index.html, index.htm,")

        config = ServerConfig.from_env()

        assert config.port == 9000
        assert config.url_root == "/shop"
        assert config.static_root == "/srv/shop/"
        assert config.static_dir == "public"
        assert config.static_cache_max_age == 60
        assert config.index_files == ["index.html", "index.htm"]

    def test_from_env_defaults(self, monkeypatch):
        for name in ("HTTP_STATIC_DIR", "HTTP_INDEX_FILES", "HTTP_PORT"):
            monkeypatch.delenv(name, raising=False)

        config = ServerConfig.from_env()

        assert config.static_dir is None
        assert config.index_files == ["index.html"]

    @pytest.mark.parametrize("overrides", [
        {"port": 0},
        {"port": 70000},
        {"min_workers": 0},
        {"min_workers": 8, "max_workers": 4},
        {"buffer_size": 512},
        {"timeout": 0},
        {"static_cache_max_age": -1},
        {"log_format": "xml"},
        {"url_root": "shop"},
    ])
    def test_validate_rejects(self, overrides):
        with pytest.raises(ValueError):
            ServerConfig(**overrides).validate()

    def test_no_static_interceptor_by_default(self):
        assert ServerConfig().build_static_interceptor() is None

    def test_build_static_interceptor(self):
        config = ServerConfig(
            static_dir="public/",
            static_url_prefix="/assets/",
            static_cache_max_age=60,
            index_files=["index.html", "index.htm"],
        )

        interceptor = config.build_static_interceptor()

        assert interceptor.entries == (StaticEntry("/assets/", "public/"),)
        assert interceptor.default_filenames == ("index.html", "index.htm")
        assert interceptor.cache_max_age == 60


class TestCreateApp:
    """Tests for the stock pipeline."""

    def test_access_log_only(self, config):
        server = create_app(config)
        interceptors = list(server.app.pipeline)

        assert len(interceptors) == 1
        assert isinstance(interceptors[0], AccessLogInterceptor)

    def test_with_static(self, config):
        config.url_root = "/shop"
        config.static_root = "/srv/shop/"
        config.static_dir = "public"

        server = create_app(config)
        interceptors = list(server.app.pipeline)

        assert isinstance(interceptors[1], StaticFileInterceptor)
        assert server.app.url_root == "/shop"
        assert server.app.static_root_path == "/srv/shop/"

    def test_invalid_config_raises(self):
        with pytest.raises(ValueError):
            create_app(ServerConfig(port=0))


class TestCommandLine:
    """Tests for argument parsing."""

    def test_flags_override(self, monkeypatch):
        monkeypatch.delenv("HTTP_PORT", raising=False)
        args = build_parser().parse_args([
            "--port", "9001",
            "--static", "./site",
            "--prefix", "/",
            "--index", "index.html",
            "--index", "index.htm",
            "--max-age", "0",
            "--workers", "3",
        ])

        config = config_from_args(args)

        assert config.port == 9001
        assert config.static_dir == "./site"
        assert config.static_url_prefix == "/"
        assert config.index_files == ["index.html", "index.htm"]
        assert config.static_cache_max_age == 0
        assert config.min_workers == 3
        assert config.max_workers == 6

    def test_env_kept_when_flag_absent(self, monkeypatch):
        monkeypatch.setenv("HTTP_STATIC_DIR", "from-env")

        config = config_from_args(build_parser().parse_args([]))

        assert config.static_dir == "from-env"
