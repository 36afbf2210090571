"""构建编排器 — 多目标 × 多平台切片构建

对每个请求的目标、每个平台、每个切片调用一次 xcodebuild，
在候选路径中定位单架构 .framework，再合成为目标的 .xcframework。

约束:
  - 全部子进程（构建 + 合成）都在同一个 manifest_transaction 内启动
  - 每个切片使用独立的 derivedDataPath，并行时互不覆盖
  - 目标 / 切片级失败只记录，不中断批次；清单恢复失败直接上抛
  - 本次运行的 staging 目录独占，结束时（成功或失败）删除
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

from binify.core.config import Config, get_config
from binify.core.exceptions import (
    ArtifactNotFound,
    BinifyError,
    BundleAssemblyFailed,
    ToolchainInvocationFailed,
)
from binify.core.models import (
    BuildOutcome,
    BuildSlice,
    Dependency,
    PlatformKind,
    TargetFailure,
    configuration_name,
)
from binify.core.platforms import slices_for
from binify.core.rewriter import prebuilt_substitutions, rewrite_manifest
from binify.services.bundler import BundleAssembler
from binify.services.manifest import MANIFEST_NAME, manifest_transaction
from binify.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SliceJob:
    """一次 xcodebuild 调用"""

    target: str
    slice: BuildSlice
    derived_data: Path


class BuildOrchestrator:
    """按 (目标, 切片) 调用 xcodebuild 并合成 xcframework"""

    def __init__(
        self,
        package_path: str | Path,
        package_identity: str,
        platforms: list[PlatformKind],
        dependencies: list[Dependency],
        *,
        configuration: str = "",
        executor: CommandExecutor | None = None,
        assembler: BundleAssembler | None = None,
        config: Config | None = None,
    ) -> None:
        self.config = config or get_config()
        self.package_path = Path(package_path)
        self.package_identity = package_identity
        self.platforms = platforms
        self.dependencies = dependencies
        self.configuration = configuration or self.config.configuration
        self.executor = executor or get_executor()
        self.assembler = assembler or BundleAssembler(self.executor, self.config.xcodebuild)
        self.output_dir = self.config.output_dir(package_identity)

    # ---- 入口 ----

    def build_all(self, targets: list[str]) -> BuildOutcome:
        """构建全部目标，返回 目标名 → xcframework 路径 以及失败记录"""
        outcome = BuildOutcome(requested=list(targets))
        self.output_dir.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(
            prefix=f".build-{self.package_identity}-", dir=self.config.staging_root,
        ))
        start = time.monotonic()
        try:
            substitutions = prebuilt_substitutions(self.dependencies, self.config.staging_root)
            with manifest_transaction(
                self.package_path / MANIFEST_NAME,
                lambda text: rewrite_manifest(text, substitutions),
            ):
                slice_artifacts = self._build_slices(targets, staging, outcome)
                self._assemble_all(targets, slice_artifacts, outcome)
        finally:
            shutil.rmtree(staging, ignore_errors=True)

        logger.info(
            "构建结束: %d 成功, %d 失败 (%.1fs)",
            len(outcome.succeeded), len(outcome.failed), time.monotonic() - start,
        )
        return outcome

    # ---- 切片构建 ----

    def _jobs(self, targets: list[str], staging: Path) -> list[SliceJob]:
        jobs: list[SliceJob] = []
        for target in targets:
            for platform in self.platforms:
                for sl in slices_for(platform):
                    jobs.append(SliceJob(target, sl, staging / target / sl.sdk))
        return jobs

    def _build_slices(
        self, targets: list[str], staging: Path, outcome: BuildOutcome,
    ) -> dict[str, list[str]]:
        """执行全部切片构建，返回 目标名 → 已定位的切片产物路径"""
        jobs = self._jobs(targets, staging)
        results: dict[str, list[str]] = {t: [] for t in targets}

        if self.config.max_workers == 1:
            for job in jobs:
                self._collect(job, self._run_job(job), results, outcome)
            return results

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
            futures = [pool.submit(self._run_job, job) for job in jobs]
            try:
                for job, future in zip(jobs, futures):
                    self._collect(job, future.result(), results, outcome)
            except BaseException:
                # 致命错误 / Ctrl-C: 取消排队中的切片，只等待已启动的
                logger.error("构建中止，取消剩余切片")
                pool.shutdown(wait=True, cancel_futures=True)
                raise
        return results

    @staticmethod
    def _collect(
        job: SliceJob, result: str | BinifyError,
        results: dict[str, list[str]], outcome: BuildOutcome,
    ) -> None:
        if isinstance(result, BinifyError):
            logger.error("%s", result)
            outcome.failures.append(TargetFailure(
                target=job.target, reason=str(result),
                code=result.code, slice_name=job.slice.display_name,
            ))
            return
        results[job.target].append(result)

    def _run_job(self, job: SliceJob) -> str | BinifyError:
        """构建单个切片；目标级失败以异常对象返回，交由 _collect 记录"""
        try:
            return self.build_slice(job.target, job.slice, job.derived_data)
        except (ToolchainInvocationFailed, ArtifactNotFound) as e:
            return e

    def build_slice(self, target: str, sl: BuildSlice, derived_data: Path) -> str:
        """调用一次 xcodebuild 并定位产物"""
        derived_data.mkdir(parents=True, exist_ok=True)
        cmd = [
            self.config.xcodebuild, "build",
            "-scheme", target,
            "-configuration", configuration_name(self.configuration),
            "-sdk", sl.sdk,
            "-destination", sl.destination,
            "-derivedDataPath", str(derived_data),
            "SKIP_INSTALL=NO",
            "BUILD_LIBRARY_FOR_DISTRIBUTION=YES",
        ]
        logger.info("构建 %s [%s]", target, sl.display_name)
        r = self.executor.execute(
            cmd, cwd=str(self.package_path), timeout=self.config.build_timeout,
        )
        if not r.success:
            raise ToolchainInvocationFailed(target, sl.display_name, r.returncode, r.tail())

        artifact = self.locate_artifact(target, sl, derived_data)
        if artifact is None:
            raise ArtifactNotFound(target, sl.display_name)
        logger.info("  产物: %s [%s] -> %s", target, sl.display_name, artifact)
        return str(artifact)

    def candidate_paths(self, target: str, sl: BuildSlice, derived_data: Path) -> list[Path]:
        """产物候选路径，按优先级排列"""
        products = derived_data / "Build" / "Products" / sl.products_dir(self.configuration)
        return [
            products / f"{target}.framework",
            products / "PackageFrameworks" / f"{target}.framework",
        ]

    def locate_artifact(self, target: str, sl: BuildSlice, derived_data: Path) -> Path | None:
        for candidate in self.candidate_paths(target, sl, derived_data):
            if candidate.exists():
                return candidate
        return None

    # ---- 合成 ----

    def _assemble_all(
        self, targets: list[str], slice_artifacts: dict[str, list[str]],
        outcome: BuildOutcome,
    ) -> None:
        for target in targets:
            artifacts = slice_artifacts.get(target) or []
            if not artifacts:
                logger.warning("%s 没有任何切片构建成功，跳过合成", target)
                continue
            bundle = self.output_dir / f"{target}.xcframework"
            try:
                self.assembler.assemble(target, artifacts, bundle)
            except BundleAssemblyFailed as e:
                logger.error("%s", e)
                outcome.failures.append(TargetFailure(
                    target=target, reason=str(e), code=e.code,
                ))
                continue
            outcome.artifacts[target] = str(bundle)
