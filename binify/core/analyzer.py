"""包分析 — dump-package 报告解码 + 构建目标推导

流程:
  1. swift package dump-package → JSON → PackageDescriptor 各字段（严格 schema）
  2. xcodebuild -list → 可用 scheme 集合
  3. 非 static 库产品 × 可用 scheme → BuildTarget 列表（首见去重）

任一步失败都抛 AnalysisError，此时尚未改动任何清单。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from binify.core.exceptions import AnalysisError, ExecutionError
from binify.core.models import (
    DEFAULT_PLATFORMS,
    BranchRequirement,
    BuildTarget,
    Dependency,
    ExactRequirement,
    LinkageKind,
    PackageDescriptor,
    PlatformKind,
    PlatformVersion,
    Product,
    RangeRequirement,
    RevisionRequirement,
    VersionRequirement,
)
from binify.utils.shell import CommandExecutor, CommandResult, get_executor, run_cmd

logger = logging.getLogger(__name__)

DEFAULT_TOOLS_VERSION = "5.9"


# =========================================================================
# dump-package 解码
# =========================================================================


def _first(value: Any) -> Any:
    """dump-package 中大量字段是单元素数组，取第一个元素"""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def decode_products(raw: Any) -> list[Product]:
    """解码库产品；可执行文件 / 插件等非库产品被丢弃"""
    if not isinstance(raw, list):
        raise AnalysisError("dump-package 报告缺少 products 列表")
    products: list[Product] = []
    for item in raw:
        if not isinstance(item, dict) or not isinstance(item.get("name"), str):
            raise AnalysisError(f"无效的 product 条目: {item!r}")
        ptype = item.get("type") or {}
        if not isinstance(ptype, dict) or "library" not in ptype:
            continue
        kind = _first(ptype.get("library"))
        try:
            linkage = LinkageKind(kind) if kind else LinkageKind.AUTOMATIC
        except ValueError:
            linkage = LinkageKind.AUTOMATIC
        targets = [t for t in item.get("targets") or [] if isinstance(t, str)]
        products.append(Product(name=item["name"], targets=targets, linkage=linkage))
    return products


def decode_platforms(raw: Any, fallback: list[PlatformVersion] | None = None) -> list[PlatformVersion]:
    """解码平台要求；未声明任何平台时返回默认组合"""
    result: list[PlatformVersion] = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        name = str(item.get("platformName", "")).lower()
        try:
            kind = PlatformKind(name)
        except ValueError:
            logger.warning("忽略未知平台: %s", name)
            continue
        result.append(PlatformVersion(kind, str(item.get("version", ""))))
    if result or raw:
        return result
    return list(fallback if fallback is not None else DEFAULT_PLATFORMS)


def decode_requirement(raw: Any) -> VersionRequirement | None:
    """版本要求 tagged union 解码；无法识别的形状返回 None"""
    if not isinstance(raw, dict):
        return None
    if "range" in raw:
        rng = _first(raw["range"])
        if isinstance(rng, dict) and rng.get("lowerBound"):
            return RangeRequirement(
                lower=str(rng["lowerBound"]), upper=str(rng.get("upperBound") or ""),
            )
        return None
    if "exact" in raw and _first(raw["exact"]):
        return ExactRequirement(str(_first(raw["exact"])))
    if "branch" in raw and _first(raw["branch"]):
        return BranchRequirement(str(_first(raw["branch"])))
    if "revision" in raw and _first(raw["revision"]):
        return RevisionRequirement(str(_first(raw["revision"])))
    return None


def _decode_location(raw: Any) -> str | None:
    if isinstance(raw, str):
        return raw
    if not isinstance(raw, dict):
        return None
    remote = _first(raw.get("remote"))
    if isinstance(remote, str):
        return remote
    if isinstance(remote, dict) and isinstance(remote.get("urlString"), str):
        return remote["urlString"]
    return None


def decode_dependencies(raw: Any) -> list[Dependency]:
    """解码源码控制依赖；fileSystem / registry 依赖不参与改写"""
    deps: list[Dependency] = []
    for item in raw or []:
        if not isinstance(item, dict):
            continue
        sc = _first(item.get("sourceControl"))
        if not isinstance(sc, dict) or not isinstance(sc.get("identity"), str):
            continue
        deps.append(Dependency(
            identity=sc["identity"],
            url=_decode_location(sc.get("location")),
            requirement=decode_requirement(sc.get("requirement")),
        ))
    return deps


def decode_tools_version(raw: Any) -> str:
    if isinstance(raw, dict) and isinstance(raw.get("_version"), str):
        return raw["_version"]
    return DEFAULT_TOOLS_VERSION


# =========================================================================
# scheme 列表 / 目标推导
# =========================================================================


def parse_scheme_listing(output: str) -> set[str]:
    """从 xcodebuild -list 输出中提取 Schemes: 段"""
    schemes: set[str] = set()
    in_section = False
    for line in output.splitlines():
        stripped = line.strip()
        if stripped == "Schemes:":
            in_section = True
            continue
        if in_section:
            if not stripped or stripped.endswith(":"):
                break
            schemes.add(stripped)
    return schemes


def derive_build_targets(products: list[Product], schemes: set[str] | frozenset[str]) -> list[BuildTarget]:
    """推导需要构建的目标

    遍历非 static 产品的目标，按首次出现顺序去重，
    只保留有对应 scheme 的目标；归属于第一个引用它的产品。
    """
    targets: list[BuildTarget] = []
    seen: set[str] = set()
    for product in products:
        if product.linkage == LinkageKind.STATIC:
            continue
        for name in product.targets:
            if name in seen or name not in schemes:
                continue
            seen.add(name)
            targets.append(BuildTarget(name=name, product_name=product.name))
    return targets


def build_descriptor(
    dump: dict[str, Any], schemes: set[str],
    fallback_platforms: list[PlatformVersion] | None = None,
) -> PackageDescriptor:
    """由已解析的 dump-package 字典和 scheme 集合构造 PackageDescriptor"""
    if not isinstance(dump, dict) or not isinstance(dump.get("name"), str):
        raise AnalysisError("dump-package 报告缺少 name 字段")
    products = decode_products(dump.get("products"))
    return PackageDescriptor(
        name=dump["name"],
        tools_version=decode_tools_version(dump.get("toolsVersion")),
        products=products,
        platforms=decode_platforms(dump.get("platforms"), fallback_platforms),
        dependencies=decode_dependencies(dump.get("dependencies")),
        build_targets=derive_build_targets(products, schemes),
        available_schemes=frozenset(schemes),
    )


# =========================================================================
# 分析器
# =========================================================================


class PackageAnalyzer:
    """调用 swift / xcodebuild 分析源码包"""

    def __init__(
        self,
        executor: CommandExecutor | None = None,
        swift: str = "swift",
        xcodebuild: str = "xcodebuild",
        fallback_platforms: list[PlatformVersion] | None = None,
    ) -> None:
        self.executor = executor or get_executor()
        self.swift = swift
        self.xcodebuild = xcodebuild
        self.fallback_platforms = fallback_platforms

    def analyze(self, package_path: str | Path) -> PackageDescriptor:
        """分析包，返回不可变的 PackageDescriptor"""
        path = Path(package_path)
        if not (path / "Package.swift").is_file():
            raise AnalysisError(f"不是 Swift 包目录（缺少 Package.swift）: {path}")
        dump = self.dump_package(path)
        schemes = self.list_schemes(path)
        descriptor = build_descriptor(dump, schemes, self.fallback_platforms)
        logger.info(
            "包分析完成: %s (产品 %d, 目标 %d, 依赖 %d)",
            descriptor.name, len(descriptor.products),
            len(descriptor.build_targets), len(descriptor.dependencies),
        )
        return descriptor

    def dump_package(self, path: Path) -> dict[str, Any]:
        r = self._run([self.swift, "package", "dump-package"], path, "dump-package")
        try:
            data = json.loads(r.stdout)
        except json.JSONDecodeError as e:
            raise AnalysisError(f"dump-package 输出不是合法 JSON: {e}") from e
        if not isinstance(data, dict):
            raise AnalysisError("dump-package 输出不是 JSON 对象")
        return data

    def list_schemes(self, path: Path) -> set[str]:
        r = self._run([self.xcodebuild, "-list"], path, "xcodebuild -list")
        schemes = parse_scheme_listing(r.stdout)
        if not schemes:
            raise AnalysisError(f"未找到任何 scheme: {path}")
        return schemes

    def _run(self, cmd: list[str], path: Path, label: str) -> CommandResult:
        """分析阶段的子进程失败统一归为 AnalysisError"""
        try:
            return run_cmd(cmd, cwd=str(path), label=label, executor=self.executor)
        except ExecutionError as e:
            raise AnalysisError(str(e)) from e
