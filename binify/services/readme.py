"""二进制仓库 README 生成"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from binify.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)


@dataclass
class ReadmeInfo:
    """README 所需信息"""

    source_repo_url: str     # 原始源码仓库 URL
    binary_repo_url: str     # 二进制仓库 URL
    package_name: str
    source_owner: str        # 原仓库所有者，如 onevcat
    tag: str

    @property
    def clean_source_url(self) -> str:
        return self.source_repo_url.removesuffix(".git")

    @property
    def binary_package_identity(self) -> str:
        return f"{self.source_owner}_{self.package_name}"


def owner_from_url(url: str) -> str:
    """https://github.com/onevcat/Kingfisher.git -> onevcat"""
    parts = [p for p in url.removesuffix(".git").replace(":", "/").split("/") if p]
    return parts[-2] if len(parts) >= 2 else ""


def render_readme(info: ReadmeInfo) -> str:
    src = info.clean_source_url
    name = info.package_name
    return f"""# {name} (Binary)

Pre-built binary xcframeworks for [{name}]({src}).

## Usage

**1. Update your package dependency:**

```swift
// Before (builds from source)
.package(url: "{src}", from: "{info.tag}")

// After (uses pre-built binaries)
.package(url: "{info.binary_repo_url}", from: "{info.tag}")
```

**2. Update your target dependency** (package name changes):

```swift
// Before
.product(name: "{name}", package: "{name}")

// After
.product(name: "{name}", package: "{info.binary_package_identity}")
```

## License

See [LICENSE](LICENSE) - sourced from the original repository.

## Original Repository

For documentation and source code, visit the original repo:
- README: {src}#readme
- Source: {src}
"""


def write_readme(info: ReadmeInfo, output_dir: str | Path) -> Path:
    path = Path(output_dir) / "README.md"
    atomic_write(path, render_readme(info))
    logger.info("已生成 %s", path)
    return path
