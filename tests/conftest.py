"""测试共享 fixture — 伪造 swift / xcodebuild 执行器

FakeExecutor 实现 CommandExecutor 协议，按命令类型模拟外部工具:

  swift package dump-package    → 返回预置 JSON
  xcodebuild -list              → 返回预置 scheme 列表
  xcodebuild build ...          → 在 derivedDataPath 下生成 <T>.framework
  xcodebuild -create-xcframework → 在 -output 处生成 xcframework 目录

每次 build 调用时记录 Package.swift 的内容，用于断言子进程看到的是改写后的清单。
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

import pytest

import binify.core.config as cfgmod
from binify.core.config import Config
from binify.utils.shell import CommandResult

SAMPLE_MANIFEST = """// swift-tools-version: 5.9
import PackageDescription

let package = Package(
    name: "Demo",
    platforms: [.iOS(.v13)],
    products: [
        .library(name: "Demo", targets: ["Demo"]),
    ],
    dependencies: [
        .package(url: "https://github.com/apple/swift-log.git", from: "1.5.0"),
    ],
    targets: [
        .target(name: "Demo", dependencies: [.product(name: "Logging", package: "swift-log")]),
        .target(name: "Unused"),
    ]
)
"""


def make_dump(
    name: str = "Demo",
    products: list[dict[str, Any]] | None = None,
    platforms: list[dict[str, str]] | None = None,
    dependencies: list[dict[str, Any]] | None = None,
) -> dict[str, Any]:
    """构造 dump-package 风格的字典"""
    return {
        "name": name,
        "toolsVersion": {"_version": "5.9.0"},
        "products": products if products is not None else [
            {"name": "Demo", "targets": ["Demo"], "type": {"library": ["automatic"]}},
        ],
        "platforms": platforms if platforms is not None else [
            {"platformName": "ios", "version": "13.0"},
        ],
        "dependencies": dependencies or [],
    }


def _arg(args: list[str], flag: str) -> str:
    return args[args.index(flag) + 1]


class FakeExecutor:
    """可编程的伪造命令执行器"""

    def __init__(
        self,
        dump: dict[str, Any] | None = None,
        schemes: list[str] | None = None,
        *,
        fail: set[tuple[str, str]] | None = None,
        missing: set[tuple[str, str]] | None = None,
        nested: bool = False,
        bundle_fail: set[str] | None = None,
        raise_on: str = "",
        delay: float = 0.0,
    ) -> None:
        self.dump = dump if dump is not None else make_dump()
        self.schemes = schemes if schemes is not None else ["Demo"]
        self.fail = fail or set()
        self.missing = missing or set()
        self.nested = nested
        self.bundle_fail = bundle_fail or set()
        self.raise_on = raise_on
        self.delay = delay
        self.calls: list[list[str]] = []
        self.seen_manifests: list[str] = []

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> CommandResult:
        args = cmd.split() if isinstance(cmd, str) else list(cmd)
        self.calls.append(args)
        if args[1:3] == ["package", "dump-package"]:
            return CommandResult(0, json.dumps(self.dump), "")
        if args[1:] == ["-list"]:
            listing = "Information about workspace \"Demo\":\n    Schemes:\n"
            listing += "".join(f"        {s}\n" for s in self.schemes)
            return CommandResult(0, listing, "")
        if args[1] == "build":
            return self._build(args, Path(cwd))
        if args[1] == "-create-xcframework":
            return self._bundle(args)
        return CommandResult(127, "", f"unknown command: {args}")

    @property
    def build_calls(self) -> list[list[str]]:
        return [c for c in self.calls if c[1] == "build"]

    @property
    def bundle_calls(self) -> list[list[str]]:
        return [c for c in self.calls if c[1] == "-create-xcframework"]

    def _build(self, args: list[str], cwd: Path) -> CommandResult:
        scheme, sdk = _arg(args, "-scheme"), _arg(args, "-sdk")
        self.seen_manifests.append((cwd / "Package.swift").read_text(encoding="utf-8"))
        if scheme == self.raise_on:
            raise RuntimeError(f"toolchain crashed on {scheme}")
        if self.delay:
            time.sleep(self.delay)
        if (scheme, sdk) in self.fail:
            return CommandResult(65, "", "error: compile failed\n** BUILD FAILED **")
        if (scheme, sdk) not in self.missing:
            config = _arg(args, "-configuration")
            products_dir = config if sdk == "macosx" else f"{config}-{sdk}"
            products = Path(_arg(args, "-derivedDataPath")) / "Build" / "Products" / products_dir
            if self.nested:
                products = products / "PackageFrameworks"
            framework = products / f"{scheme}.framework"
            framework.mkdir(parents=True, exist_ok=True)
            (framework / scheme).write_bytes(f"{scheme}-{sdk}".encode())
        return CommandResult(0, "** BUILD SUCCEEDED **", "")

    def _bundle(self, args: list[str]) -> CommandResult:
        output = Path(_arg(args, "-output"))
        target = output.name.removesuffix(".xcframework")
        if target in self.bundle_fail:
            return CommandResult(1, "", "error: invalid framework")
        output.mkdir(parents=True)
        frameworks = [args[i + 1] for i, a in enumerate(args) if a == "-framework"]
        (output / "Info.plist").write_text("\n".join(sorted(frameworks)), encoding="utf-8")
        return CommandResult(0, "xcframework successfully written out", "")


@pytest.fixture()
def config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Config:
    """独立的 staging 目录，并替换全局配置"""
    cfg = Config(staging_root=str(tmp_path / "staging"))
    monkeypatch.setattr(cfgmod, "_current", cfg)
    return cfg


@pytest.fixture()
def swift_package(tmp_path: Path) -> Path:
    """带 Package.swift 的源码包目录"""
    pkg = tmp_path / "Demo"
    pkg.mkdir()
    (pkg / "Package.swift").write_text(SAMPLE_MANIFEST, encoding="utf-8")
    return pkg


@pytest.fixture()
def make_executor():
    """FakeExecutor 工厂 — 测试中直接调用 make_executor(fail={...})"""
    return FakeExecutor


@pytest.fixture()
def dump_factory():
    """dump-package 字典工厂"""
    return make_dump


@pytest.fixture()
def sample_manifest() -> str:
    """swift_package 中 Package.swift 的原始内容"""
    return SAMPLE_MANIFEST
