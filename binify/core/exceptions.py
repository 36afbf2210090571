"""统一异常体系

所有业务异常继承 BinifyError，CLI 层据此输出友好提示并返回非零退出码。

按作用域划分:
  - 分析阶段异常 (AnalysisError): 致命，发生在任何清单改写之前
  - 目标级异常 (ToolchainInvocationFailed / ArtifactNotFound / BundleAssemblyFailed):
    仅使单个目标失败，批次继续
  - 清单级异常 (ManifestIOFailed): 致命且不可恢复，立即上抛
  - 生成阶段异常 (MissingChecksum): 仅使 release 模式的清单生成失败
"""

from __future__ import annotations


class BinifyError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(self, message: str) -> None:
        super().__init__(message)


class ConfigError(BinifyError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class AnalysisError(BinifyError):
    """包分析失败（dump-package 输出无效、scheme 列表为空等）"""

    code = "ANALYSIS_ERROR"


class ExecutionError(BinifyError):
    """外部命令执行失败"""

    code = "EXECUTION_ERROR"


class ToolchainInvocationFailed(BinifyError):
    """单个 (目标, 切片) 的工具链调用返回非零状态"""

    code = "TOOLCHAIN_FAILED"

    def __init__(self, target: str, slice_name: str, exit_status: int, output: str) -> None:
        self.target = target
        self.slice_name = slice_name
        self.exit_status = exit_status
        self.output = output[:500]
        super().__init__(
            f"{target} [{slice_name}] 构建失败 (rc={exit_status}):\n{self.output}"
        )


class ArtifactNotFound(BinifyError):
    """构建成功但所有候选路径下都找不到产物"""

    code = "ARTIFACT_NOT_FOUND"

    def __init__(self, target: str, slice_name: str) -> None:
        self.target = target
        self.slice_name = slice_name
        super().__init__(f"{target} [{slice_name}] 未找到构建产物")


class BundleAssemblyFailed(BinifyError):
    """xcframework 合成失败"""

    code = "BUNDLE_FAILED"

    def __init__(self, target: str, exit_status: int, output: str) -> None:
        self.target = target
        self.exit_status = exit_status
        self.output = output[:500]
        super().__init__(f"{target} 合成 xcframework 失败 (rc={exit_status}):\n{self.output}")


class ManifestIOFailed(BinifyError):
    """Package.swift 读写失败（恢复阶段失败不可恢复）"""

    code = "MANIFEST_IO_FAILED"


class ArchiveError(BinifyError):
    """xcframework 打包 zip 失败"""

    code = "ARCHIVE_ERROR"


class MissingChecksum(BinifyError):
    """release 模式下已构建目标缺少对应的 zip 校验和"""

    code = "MISSING_CHECKSUM"

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"目标 {target} 缺少 zip 校验和，无法生成 release 清单")


class NoTargetsBuilt(BinifyError):
    """一个目标都没有构建成功"""

    code = "NO_TARGETS_BUILT"
