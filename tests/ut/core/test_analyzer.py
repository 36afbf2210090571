"""包分析单元测试"""

from __future__ import annotations

import pytest

from binify.core.analyzer import (
    PackageAnalyzer,
    build_descriptor,
    decode_dependencies,
    decode_platforms,
    decode_products,
    decode_requirement,
    derive_build_targets,
    parse_scheme_listing,
)
from binify.core.exceptions import AnalysisError
from binify.core.models import (
    DEFAULT_PLATFORMS,
    BranchRequirement,
    BuildTarget,
    ExactRequirement,
    LinkageKind,
    PlatformKind,
    PlatformVersion,
    Product,
    RangeRequirement,
    RevisionRequirement,
)

XCODEBUILD_LIST = """Command line invocation:
    /usr/bin/xcodebuild -list

Information about workspace "Demo":
    Schemes:
        Demo
        Demo-Package
        DemoExtras

"""


class TestDeriveBuildTargets:
    def test_first_seen_order_and_attribution(self) -> None:
        products = [
            Product("P1", ["A", "B"]),
            Product("P2", ["B", "C"]),
        ]
        targets = derive_build_targets(products, {"A", "B", "C"})
        assert targets == [
            BuildTarget("A", "P1"),
            BuildTarget("B", "P1"),
            BuildTarget("C", "P2"),
        ]

    def test_static_products_excluded(self) -> None:
        products = [
            Product("S", ["A"], LinkageKind.STATIC),
            Product("D", ["B"], LinkageKind.DYNAMIC),
        ]
        assert [t.name for t in derive_build_targets(products, {"A", "B"})] == ["B"]

    def test_targets_without_scheme_dropped(self) -> None:
        products = [Product("P", ["A", "Internal"])]
        assert [t.name for t in derive_build_targets(products, {"A"})] == ["A"]

    def test_target_only_in_static_product_not_built(self) -> None:
        products = [
            Product("S", ["Shared"], LinkageKind.STATIC),
            Product("D", ["Shared"]),
        ]
        assert derive_build_targets(products, {"Shared"}) == [BuildTarget("Shared", "D")]


class TestParseSchemeListing:
    def test_extracts_schemes(self) -> None:
        assert parse_scheme_listing(XCODEBUILD_LIST) == {"Demo", "Demo-Package", "DemoExtras"}

    def test_stops_at_next_section(self) -> None:
        out = "    Schemes:\n        A\n    Targets:\n        B\n"
        assert parse_scheme_listing(out) == {"A"}

    def test_no_section(self) -> None:
        assert parse_scheme_listing("nothing here\n") == set()


class TestDecodeProducts:
    def test_library_kinds(self) -> None:
        raw = [
            {"name": "A", "targets": ["A"], "type": {"library": ["automatic"]}},
            {"name": "B", "targets": ["B"], "type": {"library": ["static"]}},
            {"name": "C", "targets": ["C"], "type": {"library": ["dynamic"]}},
        ]
        assert [p.linkage for p in decode_products(raw)] == [
            LinkageKind.AUTOMATIC, LinkageKind.STATIC, LinkageKind.DYNAMIC,
        ]

    def test_non_library_products_dropped(self) -> None:
        raw = [
            {"name": "tool", "targets": ["tool"], "type": {"executable": None}},
            {"name": "A", "targets": ["A"], "type": {"library": ["automatic"]}},
        ]
        assert [p.name for p in decode_products(raw)] == ["A"]

    def test_missing_products_raises(self) -> None:
        with pytest.raises(AnalysisError):
            decode_products(None)

    def test_invalid_entry_raises(self) -> None:
        with pytest.raises(AnalysisError):
            decode_products([{"targets": ["A"]}])


class TestDecodePlatforms:
    def test_declared_platforms(self) -> None:
        raw = [
            {"platformName": "ios", "version": "15.0"},
            {"platformName": "macos", "version": "12.0"},
        ]
        assert decode_platforms(raw) == [
            PlatformVersion(PlatformKind.IOS, "15.0"),
            PlatformVersion(PlatformKind.MACOS, "12.0"),
        ]

    def test_empty_uses_defaults(self) -> None:
        assert decode_platforms([]) == list(DEFAULT_PLATFORMS)
        assert decode_platforms(None) == list(DEFAULT_PLATFORMS)

    def test_custom_fallback(self) -> None:
        fallback = [PlatformVersion(PlatformKind.TVOS, "15.0")]
        assert decode_platforms([], fallback) == fallback

    def test_unknown_platform_ignored(self) -> None:
        raw = [
            {"platformName": "linux", "version": "1.0"},
            {"platformName": "ios", "version": "13.0"},
        ]
        assert decode_platforms(raw) == [PlatformVersion(PlatformKind.IOS, "13.0")]


class TestDecodeRequirement:
    def test_range(self) -> None:
        raw = {"range": [{"lowerBound": "1.5.0", "upperBound": "2.0.0"}]}
        assert decode_requirement(raw) == RangeRequirement("1.5.0", "2.0.0")

    def test_exact(self) -> None:
        assert decode_requirement({"exact": ["1.0.0"]}) == ExactRequirement("1.0.0")

    def test_branch(self) -> None:
        assert decode_requirement({"branch": ["main"]}) == BranchRequirement("main")

    def test_revision(self) -> None:
        assert decode_requirement({"revision": ["abc123"]}) == RevisionRequirement("abc123")

    def test_unknown_shape_is_none(self) -> None:
        assert decode_requirement({"registry": ["1.0.0"]}) is None
        assert decode_requirement("1.0.0") is None


class TestDecodeDependencies:
    def test_source_control(self) -> None:
        raw = [
            {"sourceControl": [{
                "identity": "swift-log",
                "location": {"remote": [{"urlString": "https://github.com/apple/swift-log.git"}]},
                "requirement": {"range": [{"lowerBound": "1.5.0", "upperBound": "2.0.0"}]},
            }]},
            {"fileSystem": [{"identity": "local", "path": "/tmp/local"}]},
        ]
        deps = decode_dependencies(raw)
        assert len(deps) == 1
        assert deps[0].identity == "swift-log"
        assert deps[0].url == "https://github.com/apple/swift-log.git"
        assert deps[0].requirement == RangeRequirement("1.5.0", "2.0.0")

    def test_plain_remote_string(self) -> None:
        raw = [{"sourceControl": [{
            "identity": "kingfisher",
            "location": {"remote": ["https://github.com/onevcat/Kingfisher"]},
            "requirement": {"branch": ["master"]},
        }]}]
        dep = decode_dependencies(raw)[0]
        assert dep.url == "https://github.com/onevcat/Kingfisher"
        assert dep.requirement == BranchRequirement("master")


class TestBuildDescriptor:
    def test_full_dump(self, dump_factory) -> None:
        d = build_descriptor(dump_factory(), {"Demo"})
        assert d.name == "Demo"
        assert d.tools_version == "5.9.0"
        assert d.target_names == ["Demo"]
        assert d.platform_kinds == [PlatformKind.IOS]

    def test_missing_name_raises(self, dump_factory) -> None:
        dump = dump_factory()
        del dump["name"]
        with pytest.raises(AnalysisError, match="name"):
            build_descriptor(dump, {"Demo"})

    def test_missing_tools_version_defaults(self, dump_factory) -> None:
        dump = dump_factory()
        del dump["toolsVersion"]
        assert build_descriptor(dump, {"Demo"}).tools_version == "5.9"


class TestPackageAnalyzer:
    def test_analyze(self, swift_package, make_executor, dump_factory) -> None:
        dump = dump_factory(products=[
            {"name": "Demo", "targets": ["Demo", "Unused"], "type": {"library": ["automatic"]}},
        ])
        fake = make_executor(dump, schemes=["Demo", "Demo-Package"])
        d = PackageAnalyzer(executor=fake).analyze(swift_package)
        assert d.target_names == ["Demo"]
        assert d.available_schemes == frozenset({"Demo", "Demo-Package"})
        assert [c[:2] for c in fake.calls] == [["swift", "package"], ["xcodebuild", "-list"]]

    def test_not_a_package(self, tmp_path, make_executor) -> None:
        with pytest.raises(AnalysisError, match="Package.swift"):
            PackageAnalyzer(executor=make_executor()).analyze(tmp_path)

    def test_empty_scheme_listing_raises(self, swift_package, make_executor) -> None:
        with pytest.raises(AnalysisError, match="scheme"):
            PackageAnalyzer(executor=make_executor(schemes=[])).analyze(swift_package)

    def test_invalid_json_raises(self, swift_package) -> None:
        from binify.utils.shell import CommandResult

        class BrokenExecutor:
            def execute(self, cmd, *, cwd=".", env=None, timeout=None):
                return CommandResult(0, "error: not json", "")

        with pytest.raises(AnalysisError, match="JSON"):
            PackageAnalyzer(executor=BrokenExecutor()).analyze(swift_package)

    def test_subprocess_failure_raises(self, swift_package) -> None:
        from binify.utils.shell import CommandResult

        class FailingExecutor:
            def execute(self, cmd, *, cwd=".", env=None, timeout=None):
                return CommandResult(1, "", "error: manifest parse failed")

        with pytest.raises(AnalysisError, match="dump-package失败 \\(rc=1\\)") as exc_info:
            PackageAnalyzer(executor=FailingExecutor()).analyze(swift_package)
        assert "manifest parse failed" in str(exc_info.value)

    def test_manifest_untouched(self, swift_package, make_executor) -> None:
        before = (swift_package / "Package.swift").read_bytes()
        PackageAnalyzer(executor=make_executor()).analyze(swift_package)
        assert (swift_package / "Package.swift").read_bytes() == before
