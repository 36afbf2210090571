"""XCFramework 打包 + SHA-256 校验和

zip 必须确定性: 同样的 bundle 内容 → 同样的 zip 字节，下游 checksum 才能在重跑时保持稳定。
因此不直接遍历目录写入，而是:
  - 按路径排序遍历
  - 固定时间戳 1980-01-01
  - 权限归一化为 0644 / 0755
  - 保留父目录作为 zip 根 (T.xcframework/...)
  - 符号链接按链接存储（framework 的 Versions/Current 依赖它）
"""

from __future__ import annotations

import hashlib
import logging
import os
import shutil
import stat
import zipfile
from pathlib import Path

from binify.core.exceptions import ArchiveError
from binify.core.models import ZippedArtifact

logger = logging.getLogger(__name__)

_FIXED_DATE = (1980, 1, 1, 0, 0, 0)
DEFAULT_CHUNK_SIZE = 1024 * 1024


def sha256_file(path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """流式计算文件 SHA-256，返回小写十六进制"""
    sha256 = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            sha256.update(chunk)
    return sha256.hexdigest()


def _entries(root: Path) -> list[Path]:
    """root 本身及其下全部条目，按相对路径排序；不跟随目录符号链接"""
    found = [root]
    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        base = Path(dirpath)
        for name in dirnames + filenames:
            found.append(base / name)
    return sorted(found, key=lambda p: p.relative_to(root.parent).as_posix())


def _zip_info(arcname: str, mode: int) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(arcname, date_time=_FIXED_DATE)
    info.create_system = 3  # unix，external_attr 高 16 位为 st_mode
    info.external_attr = mode << 16
    return info


def write_deterministic_zip(source: Path, destination: Path) -> None:
    """将 source 目录（含目录本身）写入 destination"""
    with zipfile.ZipFile(destination, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path in _entries(source):
            arcname = path.relative_to(source.parent).as_posix()
            if path.is_symlink():
                info = _zip_info(arcname, stat.S_IFLNK | 0o755)
                zf.writestr(info, os.readlink(path))
            elif path.is_dir():
                info = _zip_info(arcname + "/", stat.S_IFDIR | 0o755)
                zf.writestr(info, b"")
            else:
                executable = path.stat().st_mode & 0o111
                info = _zip_info(arcname, stat.S_IFREG | (0o755 if executable else 0o644))
                info.compress_type = zipfile.ZIP_DEFLATED
                with open(path, "rb") as src, zf.open(info, "w") as dst:
                    shutil.copyfileobj(src, dst, DEFAULT_CHUNK_SIZE)


class BundleArchiver:
    """xcframework → zip + checksum"""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def archive(self, bundle_path: str | Path) -> ZippedArtifact:
        """打包单个 xcframework，zip 放在 bundle 旁边"""
        bundle = Path(bundle_path)
        if not bundle.is_dir():
            raise ArchiveError(f"xcframework 不存在: {bundle}")
        name = bundle.name.removesuffix(".xcframework")
        zip_path = bundle.with_name(f"{bundle.name}.zip")
        zip_path.unlink(missing_ok=True)
        try:
            write_deterministic_zip(bundle, zip_path)
        except (OSError, zipfile.BadZipFile) as e:
            zip_path.unlink(missing_ok=True)
            raise ArchiveError(f"创建 zip 失败: {zip_path}: {e}") from e

        checksum = sha256_file(zip_path, self.chunk_size)
        logger.info("已打包 %s (checksum: %s...)", zip_path.name, checksum[:16])
        return ZippedArtifact(name=name, zip_path=str(zip_path), checksum=checksum)

    def archive_all(self, output_dir: str | Path, target_names: list[str]) -> list[ZippedArtifact]:
        """打包输出目录中的全部目标，缺失的 xcframework 跳过并告警"""
        results: list[ZippedArtifact] = []
        for target in target_names:
            bundle = Path(output_dir) / f"{target}.xcframework"
            if not bundle.is_dir():
                logger.warning("未找到 xcframework: %s", bundle.name)
                continue
            results.append(self.archive(bundle))
        return results
