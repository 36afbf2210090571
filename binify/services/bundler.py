"""XCFramework 合成

将同一目标的多个单架构 .framework 合成为一个 .xcframework:

    xcodebuild -create-xcframework -framework A -framework B -output T.xcframework
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from binify.core.exceptions import BundleAssemblyFailed
from binify.utils.shell import CommandExecutor, get_executor

logger = logging.getLogger(__name__)


class BundleAssembler:
    """多架构 bundle 合成器"""

    def __init__(self, executor: CommandExecutor | None = None, xcodebuild: str = "xcodebuild") -> None:
        self.executor = executor or get_executor()
        self.xcodebuild = xcodebuild

    def assemble(self, target: str, artifact_paths: list[str], output_path: str | Path) -> Path:
        """合成 xcframework，失败抛 BundleAssemblyFailed（仅影响该目标）"""
        out = Path(output_path)
        _remove_existing(out)
        out.parent.mkdir(parents=True, exist_ok=True)

        cmd = [self.xcodebuild, "-create-xcframework"]
        for artifact in artifact_paths:
            cmd += ["-framework", str(artifact)]
        cmd += ["-output", str(out)]

        logger.info("合成 %s (%d 个切片) -> %s", target, len(artifact_paths), out)
        r = self.executor.execute(cmd, cwd=str(out.parent))
        if not r.success:
            raise BundleAssemblyFailed(target, r.returncode, r.tail())
        return out


def _remove_existing(path: Path) -> None:
    """删除已有产物，不存在时忽略"""
    try:
        if path.is_symlink() or path.is_file():
            path.unlink()
        else:
            shutil.rmtree(path)
    except FileNotFoundError:
        pass
