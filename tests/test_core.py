"""
Core functionality tests for blueprint-codec.
Tests the dependency line codec, the env var codec and the entry types.
"""

import pytest

from blueprint_codec.dependency import Category, DependencyEntry, EnvVarEntry, RowShape
from blueprint_codec.dependency_codec import (
    DependencyCodec,
    parse_dependency_line,
    render_dependency_line,
)
from blueprint_codec.envvar_codec import EnvVarCodec, parse_env_var_line, render_env_var_line
from blueprint_codec.error_handling import (
    EmptyKeyError,
    FormatError,
    FormatErrorKind,
    MalformedDependencyError,
    MissingSeparatorError,
    UnknownCategoryError,
    UnknownPrefixError,
)


class TestDependencyRoundTrip:
    """Canonical lines survive parse then render unchanged."""

    @pytest.mark.parametrize(
        "line",
        [
            "- [PyPI] numpy [1.26.4]",
            "| [Apt] curl [7.81.0] {} {}",
            "- [PYTHON] python [3.11]",
            "- [DockerHub] nginx [1.25-alpine]",
            "| [LOCAL] ./vendor/lib [v2] {offline} {deployable}",
            "- [LOCAL] ./data [some path with spaces]",
            "- [PyPI] torch []",
        ],
    )
    def test_canonical_lines_round_trip(self, line):
        assert render_dependency_line(parse_dependency_line(line)) == line

    def test_whitespace_runs_are_tolerated(self):
        entry = parse_dependency_line("  -   [ PyPI ]   numpy   [ 1.26.4 ]  ")

        assert entry == DependencyEntry.basic(Category.PYPI, "numpy", "1.26.4")
        assert render_dependency_line(entry) == "- [PyPI] numpy [1.26.4]"

    def test_internal_whitespace_is_preserved(self):
        entry = parse_dependency_line("| [LOCAL] lib [ /opt/my  lib ] { needs  net } {}")

        assert entry.version_or_path == "/opt/my  lib"
        assert entry.extra1 == "needs  net"

    def test_parse_of_render_is_idempotent(self):
        entries = [
            parse_dependency_line("- [PyPI] numpy [>=1.26, <2]"),
            parse_dependency_line("| [Apt] curl [7.81.0]"),
            parse_dependency_line("| [DockerHub] redis [7] {mirror.local} {}"),
        ]
        for entry in entries:
            assert parse_dependency_line(render_dependency_line(entry)) == entry


class TestRowShape:
    """The prefix alone decides the row shape."""

    def test_basic_shape(self):
        entry = parse_dependency_line("- [LOCAL] ./vendor/lib [v2]")

        assert entry.shape is RowShape.BASIC
        assert entry.extra1 is None
        assert entry.extra2 is None

    def test_extended_shape(self):
        entry = parse_dependency_line("| [LOCAL] ./vendor/lib [v2] {offline} {}")

        assert entry.shape is RowShape.EXTENDED
        assert entry.extra1 == "offline"
        assert entry.extra2 == ""

    def test_extended_without_brace_groups(self):
        entry = parse_dependency_line("| [Apt] curl [7.81.0]")

        assert entry.shape is RowShape.EXTENDED
        assert (entry.extra1, entry.extra2) == ("", "")
        assert render_dependency_line(entry) == "| [Apt] curl [7.81.0] {} {}"

    def test_extended_with_one_brace_group(self):
        entry = parse_dependency_line("| [Apt] curl [7.81.0] {mirror}")

        assert (entry.extra1, entry.extra2) == ("mirror", "")

    def test_basic_line_rejects_brace_groups(self):
        with pytest.raises(MalformedDependencyError):
            parse_dependency_line("- [PyPI] numpy [1.0] {x} {y}")

    def test_partial_shape_entry_is_rejected(self):
        with pytest.raises(ValueError, match="both"):
            DependencyEntry(Category.APT, "curl", "1", extra1="x")


class TestCategories:
    """Category tags come from one closed set."""

    def test_unknown_category(self):
        with pytest.raises(UnknownCategoryError) as excinfo:
            parse_dependency_line("- [Conda] numpy [1.0]")

        assert excinfo.value.kind is FormatErrorKind.UNKNOWN_CATEGORY
        assert excinfo.value.value == "Conda"

    @pytest.mark.parametrize("token", ["pypi", "PyPi", "PYPI", "PyPI"])
    def test_category_case_insensitive_by_default(self, token):
        entry = parse_dependency_line(f"- [{token}] numpy [1.0]")

        assert entry.category is Category.PYPI
        assert render_dependency_line(entry) == "- [PyPI] numpy [1.0]"

    def test_case_sensitive_requires_canonical_spelling(self):
        with pytest.raises(UnknownCategoryError):
            parse_dependency_line("- [PyPi] numpy [1.0]", case_sensitive=True)

        entry = parse_dependency_line("- [PyPI] numpy [1.0]", case_sensitive=True)
        assert entry.category is Category.PYPI

    def test_every_category_round_trips(self):
        for category in Category:
            line = f"- [{category.value}] pkg [1]"
            assert parse_dependency_line(line).category is category
            assert render_dependency_line(parse_dependency_line(line)) == line

    def test_from_token_unknown(self):
        assert Category.from_token("Conda") is None


class TestMalformedDependencies:
    """Malformed lines raise typed errors, never a best guess."""

    @pytest.mark.parametrize("line", ["garbage", "", "   ", "* [PyPI] a [1]", "[PyPI] a [1]"])
    def test_unknown_prefix(self, line):
        with pytest.raises(UnknownPrefixError) as excinfo:
            parse_dependency_line(line)

        assert excinfo.value.kind is FormatErrorKind.UNKNOWN_PREFIX

    def test_unknown_prefix_is_a_malformed_dependency(self):
        with pytest.raises(MalformedDependencyError):
            parse_dependency_line("garbage")

    @pytest.mark.parametrize(
        "line",
        [
            "- [PyPI] numpy",
            "- [PyPI] num py [1.0]",
            "- PyPI numpy 1.0",
            "- [PyPI] numpy [1.0",
            "- [] numpy [1.0]",
            "- [PyPI] [1.0]",
            "| [Apt] curl [1] {a} {b} {c}",
            "| [Apt] curl [1] {a",
            "- [PyPI] numpy [1.0] trailing",
        ],
    )
    def test_malformed(self, line):
        with pytest.raises(MalformedDependencyError) as excinfo:
            parse_dependency_line(line)

        assert excinfo.value.kind is FormatErrorKind.MALFORMED_DEPENDENCY
        assert excinfo.value.line == line

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            parse_dependency_line("- [Conda] numpy [1.0]")


class TestDependencyEntry:
    def test_invalid_name_rejected(self):
        with pytest.raises(ValueError):
            DependencyEntry.basic(Category.PYPI, "two words", "1")
        with pytest.raises(ValueError):
            DependencyEntry.basic(Category.PYPI, "", "1")

    def test_unrenderable_fields_rejected(self):
        with pytest.raises(ValueError):
            DependencyEntry.basic(Category.PYPI, "numpy", "1]")
        with pytest.raises(ValueError):
            DependencyEntry.extended(Category.APT, "curl", "1", "a}b", "")

    def test_render_extended_with_empty_extras(self):
        entry = DependencyEntry.extended(Category.APT, "curl", "7.81.0")

        assert render_dependency_line(entry) == "| [Apt] curl [7.81.0] {} {}"

    def test_to_dict(self):
        entry = parse_dependency_line("| [LOCAL] ./vendor/lib [v2] {offline} {}")

        assert entry.to_dict() == {
            "category": "LOCAL",
            "name": "./vendor/lib",
            "version_or_path": "v2",
            "extra1": "offline",
            "extra2": "",
            "shape": "EXTENDED",
        }

    def test_codec_object(self):
        codec = DependencyCodec(case_sensitive=True)
        with pytest.raises(UnknownCategoryError):
            codec.parse("- [pypi] numpy [1]")
        assert codec.render(codec.parse("- [PyPI] numpy [1]")) == "- [PyPI] numpy [1]"


class TestEnvVarCodec:
    """KEY=VALUE lines split on the first '=' only."""

    def test_split_on_first_separator(self):
        entry = parse_env_var_line("PATH=/usr/bin=/usr/local/bin")

        assert entry.key == "PATH"
        assert entry.value == "/usr/bin=/usr/local/bin"
        assert render_env_var_line(entry) == "PATH=/usr/bin=/usr/local/bin"

    @pytest.mark.parametrize("line", ["DEBUG=", "A=b", "X= spaced value ", "K==v"])
    def test_round_trip(self, line):
        assert render_env_var_line(parse_env_var_line(line)) == line

    def test_empty_value(self):
        assert parse_env_var_line("FLAG=") == EnvVarEntry("FLAG", "")

    def test_missing_separator(self):
        with pytest.raises(MissingSeparatorError) as excinfo:
            parse_env_var_line("NO_SEPARATOR")

        assert excinfo.value.kind is FormatErrorKind.MISSING_SEPARATOR

    def test_empty_key(self):
        with pytest.raises(EmptyKeyError) as excinfo:
            parse_env_var_line("=value")

        assert isinstance(excinfo.value, FormatError)

    def test_render_is_total(self):
        assert render_env_var_line(EnvVarEntry("", "value")) == "=value"
        assert render_env_var_line(EnvVarEntry("key", "")) == "key="

    def test_codec_object(self):
        codec = EnvVarCodec()
        assert codec.render(codec.parse("A=1")) == "A=1"
