"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖（CLI 参数）。
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path

from binify.core.exceptions import ConfigError
from binify.core.models import DEFAULT_PLATFORMS, PlatformKind, PlatformVersion
from binify.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """全局配置"""

    # 目录: 预编译产物与生成包的根目录，依赖的预编译产物也在此查找
    staging_root: str = "/tmp/swift-binify-dylibs"

    # 构建
    configuration: str = "release"
    max_workers: int = 1
    build_timeout: int = 3600

    # 外部工具
    xcodebuild: str = "xcodebuild"
    swift: str = "swift"

    # 打包
    archive_chunk_size: int = 1024 * 1024

    # 未声明 platforms 时的默认平台
    default_platforms: list[list[str]] = field(
        default_factory=lambda: [[p.platform.value, p.version] for p in DEFAULT_PLATFORMS],
    )

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    @classmethod
    def from_file(cls, path: str = "binify.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        matched = {k: v for k, v in data.items() if k in known}
        extra = {k: v for k, v in data.items() if k not in known}
        cfg = cls(**matched)
        cfg.extra = extra
        cfg.validate()
        return cfg

    def validate(self) -> None:
        """校验字段取值，非法时抛 ConfigError"""
        if self.configuration.lower() not in ("debug", "release"):
            raise ConfigError(f"configuration 只支持 debug/release: {self.configuration}")
        if self.max_workers < 1:
            raise ConfigError(f"max_workers 必须 >= 1: {self.max_workers}")
        if self.archive_chunk_size < 1:
            raise ConfigError(f"archive_chunk_size 必须 >= 1: {self.archive_chunk_size}")
        self.fallback_platforms()

    def fallback_platforms(self) -> list[PlatformVersion]:
        """解析 default_platforms 为 PlatformVersion 列表"""
        result: list[PlatformVersion] = []
        for entry in self.default_platforms:
            try:
                name, version = entry
                result.append(PlatformVersion(PlatformKind(str(name).lower()), str(version)))
            except (TypeError, ValueError) as e:
                raise ConfigError(f"default_platforms 条目无效: {entry!r}") from e
        return result

    def output_dir(self, package_identity: str) -> Path:
        """某个包的输出目录 <staging_root>/<identity>"""
        return Path(self.staging_root) / package_identity

    def to_dict(self) -> dict:
        return asdict(self)


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "binify.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
