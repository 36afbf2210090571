"""生成二进制包的 Package.swift

两种模式:
  - local:   .binaryTarget(name: "T", path: "T.xcframework")
  - release: .binaryTarget(name: "T", url: "<base>/<tag>/T.xcframework.zip", checksum: "...")

release 模式下每个已构建目标都必须有对应的 ZippedArtifact，否则抛 MissingChecksum。
"""

from __future__ import annotations

import logging
from pathlib import Path

from binify.core.exceptions import MissingChecksum
from binify.core.models import LinkageKind, PackageDescriptor, ReleaseInfo, ZippedArtifact
from binify.services.manifest import MANIFEST_NAME
from binify.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

_INDENT = "    "


class PackageGenerator:
    """Package.swift 生成器"""

    def generate(
        self,
        descriptor: PackageDescriptor,
        built_targets: list[str],
        release: ReleaseInfo | None = None,
        zipped: list[ZippedArtifact] | None = None,
    ) -> str:
        """生成清单文本"""
        checksums = {z.name: z.checksum for z in zipped or []}
        built = [t.name for t in descriptor.build_targets if t.name in built_targets]
        # 兜底：不在 descriptor 中的目标按传入顺序追加
        built += [t for t in built_targets if t not in built]

        binary_targets = [self._binary_target(t, release, checksums) for t in built]

        lines = [
            f"// swift-tools-version: {descriptor.tools_version}",
            "import PackageDescription",
            "",
            "let package = Package(",
            f'{_INDENT}name: "{descriptor.name}",',
        ]
        if descriptor.platforms:
            lines.append(f"{_INDENT}platforms: [")
            lines += _join_items([pv.swift_declaration for pv in descriptor.platforms], 2)
            lines.append(f"{_INDENT}],")
        lines.append(f"{_INDENT}products: [")
        lines += _join_items(self._products(descriptor, built), 2)
        lines.append(f"{_INDENT}],")
        lines.append(f"{_INDENT}targets: [")
        lines += _join_items(binary_targets, 2)
        lines.append(f"{_INDENT}]")
        lines.append(")")
        return "\n".join(lines) + "\n"

    def write(
        self,
        descriptor: PackageDescriptor,
        built_targets: list[str],
        output_dir: str | Path,
        release: ReleaseInfo | None = None,
        zipped: list[ZippedArtifact] | None = None,
    ) -> Path:
        """生成并写入 <output_dir>/Package.swift"""
        content = self.generate(descriptor, built_targets, release, zipped)
        path = Path(output_dir) / MANIFEST_NAME
        atomic_write(path, content)
        logger.info("已生成 %s", path)
        return path

    @staticmethod
    def _products(descriptor: PackageDescriptor, built: list[str]) -> list[str]:
        """每个至少有一个已构建目标的非 static 产品生成一个 .library"""
        items: list[str] = []
        for product in descriptor.products:
            if product.linkage == LinkageKind.STATIC:
                continue
            targets = [t for t in product.targets if t in built]
            if not targets:
                continue
            quoted = ", ".join(f'"{t}"' for t in targets)
            items.append(f'.library(name: "{product.name}", targets: [{quoted}])')
        if not items and built:
            # descriptor 中没有可用产品时，每个目标单独成一个产品
            items = [f'.library(name: "{t}", targets: ["{t}"])' for t in built]
        return items

    @staticmethod
    def _binary_target(
        target: str, release: ReleaseInfo | None, checksums: dict[str, str],
    ) -> str:
        if release is None:
            return f'.binaryTarget(name: "{target}", path: "{target}.xcframework")'
        checksum = checksums.get(target)
        if not checksum:
            raise MissingChecksum(target)
        return (
            f'.binaryTarget(\n'
            f'{_INDENT * 3}name: "{target}",\n'
            f'{_INDENT * 3}url: "{release.archive_url(target)}",\n'
            f'{_INDENT * 3}checksum: "{checksum}"\n'
            f'{_INDENT * 2})'
        )


def _join_items(items: list[str], depth: int) -> list[str]:
    """逗号分隔的数组元素，最后一个不带逗号"""
    prefix = _INDENT * depth
    return [
        f"{prefix}{item}{',' if i < len(items) - 1 else ''}"
        for i, item in enumerate(items)
    ]
