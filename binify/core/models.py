"""核心数据模型

所有领域数据类集中定义，analyzer / builder / generator 统一从此处导入。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

# =========================================================================
# 平台
# =========================================================================


class PlatformKind(str, Enum):
    """Apple 平台（封闭集合）"""
    IOS = "ios"
    MACOS = "macos"
    TVOS = "tvos"
    WATCHOS = "watchos"
    VISIONOS = "visionos"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def swift_name(self) -> str:
        """Package.swift 中的平台名，如 .iOS"""
        return f".{_DISPLAY_NAMES[self]}"


_DISPLAY_NAMES = {
    PlatformKind.IOS: "iOS",
    PlatformKind.MACOS: "macOS",
    PlatformKind.TVOS: "tvOS",
    PlatformKind.WATCHOS: "watchOS",
    PlatformKind.VISIONOS: "visionOS",
}


def version_identifier(version: str) -> str:
    """版本号转 SwiftPM 版本枚举

    "12.0" -> ".v12", "13.4" -> ".v13_4", "10.15" -> ".v10_15", "14" -> ".v14"
    只看第二段是否字面等于 "0"。
    """
    parts = [p for p in version.split(".") if p]
    if len(parts) >= 2:
        major, minor = parts[0], parts[1]
        if minor == "0":
            return f".v{major}"
        return f".v{major}_{minor}"
    if len(parts) == 1:
        return f".v{parts[0]}"
    return f".v{version.replace('.', '_')}"


@dataclass(frozen=True)
class PlatformVersion:
    """平台最低版本要求"""

    platform: PlatformKind
    version: str

    @property
    def swift_declaration(self) -> str:
        """如 .iOS(.v13)"""
        return f"{self.platform.swift_name}({version_identifier(self.version)})"


DEFAULT_PLATFORMS = (
    PlatformVersion(PlatformKind.IOS, "13.0"),
    PlatformVersion(PlatformKind.MACOS, "10.15"),
)


@dataclass(frozen=True)
class BuildSlice:
    """单架构单 SDK 的构建切片（真机 / 模拟器）"""

    sdk: str
    destination: str
    display_name: str

    def products_dir(self, configuration: str) -> str:
        """xcodebuild 的 Build/Products 子目录名

        macOS 没有 SDK 后缀: Release；其余为 Release-iphoneos 这种形式。
        """
        config_dir = configuration_name(configuration)
        if self.sdk == "macosx":
            return config_dir
        return f"{config_dir}-{self.sdk}"


def configuration_name(configuration: str) -> str:
    """release -> Release, debug -> Debug"""
    return "Debug" if configuration.lower() == "debug" else "Release"


# =========================================================================
# 包描述
# =========================================================================


class LinkageKind(str, Enum):
    """库产品链接类型"""
    STATIC = "static"
    DYNAMIC = "dynamic"
    AUTOMATIC = "automatic"


@dataclass(frozen=True)
class Product:
    """库产品"""

    name: str
    targets: list[str] = field(default_factory=list)
    linkage: LinkageKind = LinkageKind.AUTOMATIC


@dataclass(frozen=True)
class RangeRequirement:
    lower: str
    upper: str = ""


@dataclass(frozen=True)
class ExactRequirement:
    version: str


@dataclass(frozen=True)
class BranchRequirement:
    name: str


@dataclass(frozen=True)
class RevisionRequirement:
    revision: str


VersionRequirement = Union[
    RangeRequirement, ExactRequirement, BranchRequirement, RevisionRequirement,
]


@dataclass(frozen=True)
class Dependency:
    """外部源码依赖

    是否有预编译产物不在此存储，由 prebuilt_substitutions() 在改写时实时判定。
    """

    identity: str
    url: str | None = None
    requirement: VersionRequirement | None = None


@dataclass(frozen=True)
class BuildTarget:
    """需要构建的目标 — name 用于 -scheme，product_name 为所属产品"""

    name: str
    product_name: str


@dataclass(frozen=True)
class PackageDescriptor:
    """一次调用内不可变的包描述"""

    name: str
    tools_version: str
    products: list[Product]
    platforms: list[PlatformVersion]
    dependencies: list[Dependency]
    build_targets: list[BuildTarget]
    available_schemes: frozenset[str] = frozenset()

    @property
    def platform_kinds(self) -> list[PlatformKind]:
        """去重后的平台列表，保持声明顺序"""
        seen: list[PlatformKind] = []
        for pv in self.platforms:
            if pv.platform not in seen:
                seen.append(pv.platform)
        return seen

    @property
    def target_names(self) -> list[str]:
        return [t.name for t in self.build_targets]


# =========================================================================
# 构建 / 发布结果
# =========================================================================


class OutputMode(str, Enum):
    """生成 Package.swift 的模式"""
    LOCAL = "local"        # 本地 path 引用
    RELEASE = "release"    # 远程 url + checksum 引用


@dataclass(frozen=True)
class ReleaseInfo:
    """release 模式的下载地址信息"""

    url_base: str
    tag: str

    def archive_url(self, target: str) -> str:
        return f"{self.url_base.rstrip('/')}/{self.tag}/{target}.xcframework.zip"


@dataclass(frozen=True)
class ZippedArtifact:
    """xcframework 的 zip 包及其 SHA-256"""

    name: str
    zip_path: str
    checksum: str


@dataclass
class TargetFailure:
    """目标级失败记录（不中断批次）"""

    target: str
    reason: str
    code: str = "UNKNOWN"
    slice_name: str = ""


@dataclass
class BuildOutcome:
    """一次 build_all 的结果

    artifacts 只包含成功产出 xcframework 的目标，不会出现空值。
    """

    requested: list[str] = field(default_factory=list)
    artifacts: dict[str, str] = field(default_factory=dict)
    failures: list[TargetFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> list[str]:
        return [t for t in self.requested if t in self.artifacts]

    @property
    def failed(self) -> list[str]:
        return [t for t in self.requested if t not in self.artifacts]

    @property
    def degraded(self) -> list[str]:
        """已合成但缺少部分切片的目标"""
        missing = {f.target for f in self.failures if f.slice_name}
        return [t for t in self.succeeded if t in missing]
