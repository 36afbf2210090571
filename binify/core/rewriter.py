"""Package.swift 文本改写

基于锚定正则的纯文本变换，不解析 Swift 语法，未匹配的区域原样保留:

  - rewrite_dependencies: 已有预编译产物的依赖 .package(url: ...) → .package(path: ...)
  - force_dynamic:        .library(...) 强制为 type: .dynamic

两个变换都是全函数（无匹配时原样返回）且可重复执行。
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable

from binify.core.models import Dependency

logger = logging.getLogger(__name__)

# .library(name: "X", targets: ...): 紧跟 targets: 说明没有 type 子句
_LIBRARY_WITHOUT_TYPE_RE = re.compile(
    r'(\.library\s*\(\s*name:\s*"[^"]+"\s*,)(\s*)(targets:)'
)

# .library(name: "X", type: .static, ...)
_LIBRARY_STATIC_RE = re.compile(
    r'(\.library\s*\(\s*name:\s*"[^"]+"\s*,\s*type:\s*)\.static\b'
)


def _url_pattern(identity: str) -> str:
    return r'url:\s*"[^"]*[/:]' + re.escape(identity) + r'(?:\.git)?/?"'


def _dependency_pattern(identity: str) -> re.Pattern[str]:
    """匹配指向 identity 的 .package 声明

    url 可以是任意协议/主机前缀，末尾可带 .git；版本子句允许一层嵌套括号
    (如 .upToNextMajor(from: "1.0.0"))，但不会越过声明自身的右括号。
    更深的嵌套 (如 from: Version(1, 0, 0)) 不匹配，声明保持原样。
    """
    return re.compile(
        r'\.package\s*\(\s*'
        r'(?:name:\s*"[^"]*"\s*,\s*)?'
        + _url_pattern(identity) +
        r'(?:[^()]|\([^()]*\))*'
        r'\)',
        re.IGNORECASE,
    )


def prebuilt_substitutions(
    dependencies: Iterable[Dependency], staging_root: str | Path,
) -> dict[str, str]:
    """为存在预编译产物的依赖计算 identity → 本地路径

    每个依赖单独检查 <staging_root>/<identity> 是否存在，不依赖任何缓存结果。
    """
    result: dict[str, str] = {}
    for dep in dependencies:
        path = Path(staging_root) / dep.identity
        if path.exists():
            result[dep.identity] = str(path)
        else:
            logger.debug("依赖无预编译产物，保持源码引用: %s", dep.identity)
    return result


def rewrite_dependencies(text: str, substitutions: dict[str, str]) -> str:
    """将依赖声明改写为本地 path 引用，丢弃版本子句"""
    result = text
    for identity, local_path in substitutions.items():
        replacement = f'.package(path: "{local_path}")'
        result, count = _dependency_pattern(identity).subn(lambda _m: replacement, result)
        if count:
            logger.info("依赖改写为本地产物: %s -> %s (%d 处)", identity, local_path, count)
        elif re.search(_url_pattern(identity), result, re.IGNORECASE):
            logger.warning("依赖声明无法改写（版本子句嵌套过深），保持源码引用: %s", identity)
    return result


def force_dynamic(text: str) -> str:
    """将库产品强制为动态库

    - 无 type 子句的声明: 在 name 之后插入 type: .dynamic
    - 显式 type: .static 的声明: 原地改为 .dynamic
    已带 type 子句的声明不会再次插入。
    """
    result = _LIBRARY_WITHOUT_TYPE_RE.sub(r"\1 type: .dynamic,\2\3", text)
    return _LIBRARY_STATIC_RE.sub(r"\1.dynamic", result)


def rewrite_manifest(text: str, substitutions: dict[str, str]) -> str:
    """依赖改写 + 动态库强制"""
    return force_dynamic(rewrite_dependencies(text, substitutions))
