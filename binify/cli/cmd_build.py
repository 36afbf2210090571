"""CLI — 构建命令"""

from __future__ import annotations

import click

from binify.cli import _container, _load_config


def register(group: click.Group) -> None:
    group.add_command(build)


@click.command()
@click.argument("package_path", type=click.Path(exists=True, file_okay=False))
@click.option("--configuration", type=click.Choice(["debug", "release"]), default=None, help="构建配置")
@click.option("--mode", type=click.Choice(["local", "release"]), default="local", help="生成 Package.swift 的模式")
@click.option("--url-base", default="", help="release 模式: zip 下载地址前缀")
@click.option("--tag", default="", help="release 模式: 版本 tag")
@click.option("--source-url", default="", help="release 模式: 原始仓库 URL（用于生成 README）")
@click.option("--binary-url", default="", help="release 模式: 二进制仓库 URL（用于生成 README）")
@click.option("--jobs", "-j", type=int, default=None, help="并行构建的切片数")
@click.option("--staging-root", default=None, help="产物根目录")
@click.option("--config", "-c", "config_path", default="", help="配置文件路径")
def build(
    package_path: str, configuration: str | None, mode: str,
    url_base: str, tag: str, source_url: str, binary_url: str,
    jobs: int | None, staging_root: str | None, config_path: str,
) -> None:
    """构建 Swift 包的全部动态库产品为 xcframework

    产物输出到 <staging-root>/<包目录名>/，并生成可直接替换源码依赖的 Package.swift。
    """
    from binify.core.exceptions import BinifyError
    from binify.core.models import OutputMode
    from binify.services.pipeline import BinifyPipeline, BinifyRequest

    cfg = _load_config(
        config_path, configuration=configuration,
        max_workers=jobs, staging_root=staging_root,
    )
    request = BinifyRequest(
        package_path=package_path, mode=OutputMode(mode),
        configuration=cfg.configuration,
        url_base=url_base, tag=tag,
        source_url=source_url, binary_url=binary_url,
    )
    click.echo(f"Package: {request.package_dir}")

    try:
        summary = BinifyPipeline(_container(cfg)).run(request)
    except BinifyError as e:
        raise click.ClickException(str(e)) from e

    if summary.outcome is None:
        click.echo("没有可构建的目标")
        return

    for target in summary.succeeded:
        click.echo(f"  ✓ {target} -> {summary.outcome.artifacts[target]}")
    for target in summary.failed:
        click.echo(f"  ✗ {target}")
    for failure in summary.outcome.failures:
        where = f" [{failure.slice_name}]" if failure.slice_name else ""
        click.echo(f"    {failure.target}{where}: {failure.code}")

    click.echo(f"Package.swift: {summary.manifest_path}")
    if summary.partial:
        click.echo(
            f"部分成功: {len(summary.succeeded)} 成功, {len(summary.failed)} 失败 "
            f"({', '.join(summary.failed)})"
        )
    if summary.degraded:
        click.echo(f"缺少切片: {', '.join(summary.degraded)}")
    if not summary.partial and not summary.degraded:
        click.echo(f"完成: 共构建 {len(summary.succeeded)} 个 xcframework")

    if request.mode == OutputMode.LOCAL:
        click.echo("在项目中将")
        click.echo('    .package(url: "...", ...)')
        click.echo("替换为")
        click.echo(f'    .package(path: "{summary.output_dir}")')

    if summary.exit_code:
        raise SystemExit(summary.exit_code)
