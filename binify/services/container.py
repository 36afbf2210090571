"""服务容器 — 统一依赖注入

各阶段服务通过容器获取，同一容器内共享 Config 和 CommandExecutor。
测试时注入伪造的 executor 即可替换全部外部工具调用。

用法:
    container = ServiceContainer(config=cfg, executor=fake)
    descriptor = container.analyzer.analyze(path)
    builder = container.builder(path, identity, descriptor)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from binify.core.config import Config, get_config
from binify.utils.shell import CommandExecutor, get_executor

if TYPE_CHECKING:
    from binify.core.analyzer import PackageAnalyzer
    from binify.core.models import PackageDescriptor
    from binify.services.archiver import BundleArchiver
    from binify.services.builder import BuildOrchestrator
    from binify.services.bundler import BundleAssembler
    from binify.services.generator import PackageGenerator

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(
        self, config: Config | None = None, executor: CommandExecutor | None = None,
    ) -> None:
        self._instances: dict[str, object] = {}
        self._config = config or get_config()
        self._executor = executor or get_executor()

    @property
    def config(self) -> Config:
        return self._config

    @property
    def executor(self) -> CommandExecutor:
        return self._executor

    @property
    def analyzer(self) -> PackageAnalyzer:
        if "analyzer" not in self._instances:
            from binify.core.analyzer import PackageAnalyzer
            self._instances["analyzer"] = PackageAnalyzer(
                executor=self._executor,
                swift=self._config.swift,
                xcodebuild=self._config.xcodebuild,
                fallback_platforms=self._config.fallback_platforms(),
            )
        return self._instances["analyzer"]  # type: ignore[return-value]

    @property
    def assembler(self) -> BundleAssembler:
        if "assembler" not in self._instances:
            from binify.services.bundler import BundleAssembler
            self._instances["assembler"] = BundleAssembler(
                executor=self._executor, xcodebuild=self._config.xcodebuild,
            )
        return self._instances["assembler"]  # type: ignore[return-value]

    @property
    def archiver(self) -> BundleArchiver:
        if "archiver" not in self._instances:
            from binify.services.archiver import BundleArchiver
            self._instances["archiver"] = BundleArchiver(
                chunk_size=self._config.archive_chunk_size,
            )
        return self._instances["archiver"]  # type: ignore[return-value]

    @property
    def generator(self) -> PackageGenerator:
        if "generator" not in self._instances:
            from binify.services.generator import PackageGenerator
            self._instances["generator"] = PackageGenerator()
        return self._instances["generator"]  # type: ignore[return-value]

    def builder(
        self, package_path: str | Path, package_identity: str,
        descriptor: PackageDescriptor, configuration: str = "",
    ) -> BuildOrchestrator:
        """每次构建一个新的编排器（与包绑定，不缓存）"""
        from binify.services.builder import BuildOrchestrator
        return BuildOrchestrator(
            package_path, package_identity,
            descriptor.platform_kinds, descriptor.dependencies,
            configuration=configuration,
            executor=self._executor,
            assembler=self.assembler,
            config=self._config,
        )
