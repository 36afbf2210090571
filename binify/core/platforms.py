"""平台 → 构建切片映射

固定的领域知识：macOS 只有一个切片，其余平台均为 真机 + 模拟器 两个切片。
"""

from __future__ import annotations

from binify.core.models import BuildSlice, PlatformKind

_SLICES: dict[PlatformKind, tuple[BuildSlice, ...]] = {
    PlatformKind.MACOS: (
        BuildSlice("macosx", "generic/platform=macOS", "macOS"),
    ),
    PlatformKind.IOS: (
        BuildSlice("iphoneos", "generic/platform=iOS", "iOS"),
        BuildSlice("iphonesimulator", "generic/platform=iOS Simulator", "iOS Simulator"),
    ),
    PlatformKind.TVOS: (
        BuildSlice("appletvos", "generic/platform=tvOS", "tvOS"),
        BuildSlice("appletvsimulator", "generic/platform=tvOS Simulator", "tvOS Simulator"),
    ),
    PlatformKind.WATCHOS: (
        BuildSlice("watchos", "generic/platform=watchOS", "watchOS"),
        BuildSlice("watchsimulator", "generic/platform=watchOS Simulator", "watchOS Simulator"),
    ),
    PlatformKind.VISIONOS: (
        BuildSlice("xros", "generic/platform=visionOS", "visionOS"),
        BuildSlice("xrsimulator", "generic/platform=visionOS Simulator", "visionOS Simulator"),
    ),
}


def slices_for(platform: PlatformKind) -> list[BuildSlice]:
    """返回平台对应的构建切片列表"""
    return list(_SLICES[platform])
