"""binify 命令行接口

CLI 按功能拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os
from typing import Any

import click

from binify import __version__
from binify.utils.logger import setup_logging


def _load_config(config_path: str, **overrides: Any) -> Any:
    """加载配置文件并应用命令行覆盖（None 表示未指定）"""
    from binify.core import config as cfgmod
    from binify.core.exceptions import ConfigError

    try:
        cfg = cfgmod.init_config(config_path) if config_path else cfgmod.get_config()
        for key, value in overrides.items():
            if value is not None:
                setattr(cfg, key, value)
        cfg.validate()
    except ConfigError as e:
        raise click.ClickException(str(e)) from e
    return cfg


def _container(config: Any) -> Any:
    from binify.services.container import ServiceContainer
    return ServiceContainer(config=config)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """binify - 将 Swift 包预编译为动态 XCFramework"""
    setup_logging(
        level=os.getenv("BINIFY_LOG_LEVEL", "INFO"),
        json_output=os.getenv("BINIFY_LOG_JSON", "") == "1",
    )


# 注册各子命令
from binify.cli.cmd_build import register as _reg_build  # noqa: E402
from binify.cli.cmd_analyze import register as _reg_analyze  # noqa: E402

_reg_build(main)
_reg_analyze(main)
