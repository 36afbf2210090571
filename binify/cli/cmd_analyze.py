"""CLI — 分析命令"""

from __future__ import annotations

from pathlib import Path

import click

from binify.cli import _container, _load_config


def register(group: click.Group) -> None:
    group.add_command(analyze)


@click.command()
@click.argument("package_path", type=click.Path(exists=True, file_okay=False))
@click.option("--config", "-c", "config_path", default="", help="配置文件路径")
def analyze(package_path: str, config_path: str) -> None:
    """分析包: 平台、待构建目标、依赖"""
    from binify.core.exceptions import BinifyError

    cfg = _load_config(config_path)
    path = Path(package_path).expanduser().resolve()
    try:
        d = _container(cfg).analyzer.analyze(path)
    except BinifyError as e:
        raise click.ClickException(str(e)) from e

    click.echo(f"Name:      {d.name}")
    click.echo(f"Identity:  {path.name.lower()}")
    click.echo(f"Tools:     {d.tools_version}")
    click.echo(f"Platforms: {', '.join(pv.swift_declaration for pv in d.platforms)}")
    click.echo(f"Targets:   {', '.join(d.target_names) or '(无)'}")
    if d.dependencies:
        click.echo(f"Deps:      {', '.join(dep.identity for dep in d.dependencies)}")
