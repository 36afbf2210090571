"""binify 主流水线

  1. analyze   — dump-package + xcodebuild -list → PackageDescriptor
  2. build     — 改写清单 → 切片构建 → 合成 xcframework → 恢复清单
  3. archive   — (release) zip + checksum
  4. generate  — Package.swift (+ release 模式的 README.md)

结果判定:
  - 一个目标都没构建成功 → NoTargetsBuilt（非零退出）
  - 部分成功 → 报告成功与失败列表；local 模式正常退出，release 模式非零退出
  - 目标已合成但缺少切片 → 同部分成功处理
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from binify.core.exceptions import ConfigError, NoTargetsBuilt
from binify.core.models import (
    BuildOutcome,
    OutputMode,
    PackageDescriptor,
    ReleaseInfo,
    ZippedArtifact,
)
from binify.services.container import ServiceContainer
from binify.services.readme import ReadmeInfo, owner_from_url, write_readme

logger = logging.getLogger(__name__)


@dataclass
class BinifyRequest:
    """一次 binify 调用的参数"""

    package_path: str
    mode: OutputMode = OutputMode.LOCAL
    configuration: str = ""
    url_base: str = ""
    tag: str = ""
    source_url: str = ""
    binary_url: str = ""

    @property
    def package_dir(self) -> Path:
        return Path(self.package_path).expanduser().resolve()

    @property
    def package_identity(self) -> str:
        return self.package_dir.name.lower()

    def release_info(self) -> ReleaseInfo | None:
        if self.mode != OutputMode.RELEASE:
            return None
        if not self.url_base or not self.tag:
            raise ConfigError("release 模式需要 --url-base 和 --tag")
        return ReleaseInfo(url_base=self.url_base, tag=self.tag)


@dataclass
class RunSummary:
    """流水线执行汇总"""

    request: BinifyRequest
    descriptor: PackageDescriptor | None = None
    outcome: BuildOutcome | None = None
    output_dir: str = ""
    manifest_path: str = ""
    zipped: list[ZippedArtifact] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return self.outcome.succeeded if self.outcome else []

    @property
    def failed(self) -> list[str]:
        return self.outcome.failed if self.outcome else []

    @property
    def partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)

    @property
    def degraded(self) -> list[str]:
        return self.outcome.degraded if self.outcome else []

    @property
    def exit_code(self) -> int:
        if self.outcome is None:
            return 0
        if not self.succeeded:
            return 1
        if self.request.mode == OutputMode.RELEASE and (self.partial or self.degraded):
            return 1
        return 0


class BinifyPipeline:
    """analyze → build → archive → generate"""

    def __init__(self, container: ServiceContainer | None = None) -> None:
        self.c = container or ServiceContainer()

    def run(self, request: BinifyRequest) -> RunSummary:
        release = request.release_info()
        summary = RunSummary(request=request)

        descriptor = self.c.analyzer.analyze(request.package_dir)
        summary.descriptor = descriptor
        if not descriptor.build_targets:
            logger.warning("没有可构建的目标: %s", descriptor.name)
            return summary

        output_dir = self.c.config.output_dir(request.package_identity)
        summary.output_dir = str(output_dir)

        builder = self.c.builder(
            request.package_dir, request.package_identity, descriptor,
            configuration=request.configuration,
        )
        outcome = builder.build_all(descriptor.target_names)
        summary.outcome = outcome

        if not outcome.succeeded:
            raise NoTargetsBuilt(
                f"没有任何目标构建成功: {', '.join(outcome.failed)}"
            )
        if outcome.failed:
            logger.warning(
                "部分成功: %d 成功, %d 失败 (%s)",
                len(outcome.succeeded), len(outcome.failed), ", ".join(outcome.failed),
            )
        if outcome.degraded:
            logger.warning("缺少切片的目标: %s", ", ".join(outcome.degraded))

        if release is not None:
            summary.zipped = self.c.archiver.archive_all(output_dir, outcome.succeeded)

        manifest = self.c.generator.write(
            descriptor, outcome.succeeded, output_dir,
            release=release, zipped=summary.zipped,
        )
        summary.manifest_path = str(manifest)

        if release is not None and request.source_url:
            write_readme(ReadmeInfo(
                source_repo_url=request.source_url,
                binary_repo_url=request.binary_url or request.source_url,
                package_name=descriptor.name,
                source_owner=owner_from_url(request.source_url),
                tag=request.tag,
            ), output_dir)

        return summary
