"""Package.swift 改写事务

清单文件是所有 xcodebuild 子进程共享的可变状态，因此以作用域资源的方式管理:

    with manifest_transaction(path, transform):
        ...  # 全部子进程调用都在此区间内

  - 进入: 读取原始字节，计算改写结果，仅在有变化时写入
  - 退出: 无论成功、异常还是 KeyboardInterrupt，原始字节都恰好写回一次
  - 恢复失败抛 ManifestIOFailed，不重试
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from binify.core.exceptions import ManifestIOFailed
from binify.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Package.swift"


@contextmanager
def manifest_transaction(
    manifest_path: str | Path, transform: Callable[[str], str],
) -> Iterator[str]:
    """改写清单并保证退出时恢复，yield 改写后的文本"""
    path = Path(manifest_path)
    try:
        original = path.read_bytes()
    except OSError as e:
        raise ManifestIOFailed(f"读取清单失败: {path}: {e}") from e

    try:
        original_text = original.decode("utf-8")
    except UnicodeDecodeError as e:
        raise ManifestIOFailed(f"清单不是 UTF-8 文本: {path}: {e}") from e

    rewritten = transform(original_text)
    try:
        if rewritten != original_text:
            try:
                atomic_write(path, rewritten)
            except OSError as e:
                raise ManifestIOFailed(f"写入改写后的清单失败: {path}: {e}") from e
            logger.info("清单已改写: %s", path)
        else:
            logger.info("清单无需改写: %s", path)
        yield rewritten
    finally:
        _restore(path, original)


def _restore(path: Path, original: bytes) -> None:
    try:
        atomic_write(path, original)
    except OSError as e:
        logger.critical("恢复清单失败，请手动检查: %s", path)
        raise ManifestIOFailed(f"恢复清单失败: {path}: {e}") from e
    logger.info("清单已恢复: %s", path)
