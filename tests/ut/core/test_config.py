"""Config 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest

import binify.core.config as cfgmod
from binify.core.config import Config
from binify.core.exceptions import ConfigError
from binify.core.models import DEFAULT_PLATFORMS, PlatformKind, PlatformVersion


class TestConfig:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.staging_root == "/tmp/swift-binify-dylibs"
        assert cfg.max_workers == 1
        assert cfg.fallback_platforms() == list(DEFAULT_PLATFORMS)

    def test_missing_file_gives_defaults(self, tmp_path: Path) -> None:
        cfg = Config.from_file(str(tmp_path / "none.yml"))
        assert cfg.configuration == "release"

    def test_from_file(self, tmp_path: Path) -> None:
        f = tmp_path / "binify.yml"
        f.write_text(
            "staging_root: /opt/dylibs\n"
            "max_workers: 4\n"
            "default_platforms:\n"
            "  - [tvos, '15.0']\n"
            "team: infra\n",
            encoding="utf-8",
        )
        cfg = Config.from_file(str(f))
        assert cfg.staging_root == "/opt/dylibs"
        assert cfg.max_workers == 4
        assert cfg.extra == {"team": "infra"}
        assert cfg.fallback_platforms() == [PlatformVersion(PlatformKind.TVOS, "15.0")]

    def test_output_dir(self) -> None:
        cfg = Config(staging_root="/tmp/x")
        assert cfg.output_dir("kingfisher") == Path("/tmp/x/kingfisher")

    @pytest.mark.parametrize("kwargs", [
        {"configuration": "profile"},
        {"max_workers": 0},
        {"archive_chunk_size": 0},
        {"default_platforms": [["linux", "1.0"]]},
        {"default_platforms": [["ios"]]},
    ])
    def test_validate_rejects(self, kwargs: dict) -> None:
        with pytest.raises(ConfigError):
            Config(**kwargs).validate()

    def test_invalid_file_raises(self, tmp_path: Path) -> None:
        f = tmp_path / "binify.yml"
        f.write_text("max_workers: 0\n", encoding="utf-8")
        with pytest.raises(ConfigError):
            Config.from_file(str(f))

    def test_to_dict(self) -> None:
        assert Config().to_dict()["configuration"] == "release"


class TestGlobalConfig:
    def test_init_replaces_current(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        f = tmp_path / "binify.yml"
        f.write_text("configuration: debug\n", encoding="utf-8")
        cfgmod.init_config(str(f))
        assert cfgmod.get_config().configuration == "debug"

    def test_get_config_lazily_creates(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        assert cfgmod.get_config() is cfgmod.get_config()
