# SPDX-License-Identifier: MIT
"""Unit and property tests for package name and version validation."""

from hypothesis import given, strategies as st

from repub_pubspec import (
    MAX_PACKAGE_NAME_LENGTH,
    is_valid_package_name,
    is_valid_version,
    validate_required_fields,
)


class TestPackageName:
    """Tests for is_valid_package_name."""

    def test_valid_names(self):
        assert is_valid_package_name("pkgA") is True
        assert is_valid_package_name("http") is True
        assert is_valid_package_name("_private_tool") is True
        assert is_valid_package_name("flutter_bloc2") is True

    def test_invalid_names(self):
        assert is_valid_package_name("") is False
        assert is_valid_package_name("9lives") is False
        assert is_valid_package_name("my-package") is False
        assert is_valid_package_name("my.package") is False
        assert is_valid_package_name("päckage") is False
        assert is_valid_package_name("has space") is False

    def test_length_limit(self):
        assert is_valid_package_name("a" * MAX_PACKAGE_NAME_LENGTH) is True
        assert is_valid_package_name("a" * (MAX_PACKAGE_NAME_LENGTH + 1)) is False

    @given(st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,63}", fullmatch=True))
    def test_identifier_names_accepted(self, name: str):
        assert is_valid_package_name(name) is True

    @given(st.from_regex(r"[0-9][A-Za-z0-9_]{0,20}", fullmatch=True))
    def test_leading_digit_rejected(self, name: str):
        assert is_valid_package_name(name) is False


class TestVersion:
    """Tests for is_valid_version."""

    def test_valid_versions(self):
        assert is_valid_version("1.0.0") is True
        assert is_valid_version("0.0.1") is True
        assert is_valid_version("10.20.30") is True
        assert is_valid_version("1.0.0-dev") is True
        assert is_valid_version("1.0.0-beta.2") is True
        assert is_valid_version("1.0.0+build.123") is True
        assert is_valid_version("2.0.0-nullsafety.0+1") is True
        assert is_valid_version("1.2.3.4") is True

    def test_invalid_versions(self):
        assert is_valid_version("") is False
        assert is_valid_version("1") is False
        assert is_valid_version("1.0") is False
        assert is_valid_version("v1.0.0") is False
        assert is_valid_version("1..0") is False
        assert is_valid_version("1.0.x") is False
        assert is_valid_version("1.0.0.") is False

    def test_suffix_segments_are_permissive(self):
        """Segments containing '-' or '+' skip the leading-digit check."""
        assert is_valid_version("1.0.x-dev") is True

    @given(
        st.integers(min_value=0, max_value=999),
        st.integers(min_value=0, max_value=999),
        st.integers(min_value=0, max_value=999),
        st.one_of(st.none(), st.from_regex(r"[a-z]+(\.[0-9]+)?", fullmatch=True)),
    )
    def test_numeric_versions_accepted(self, major, minor, patch, prerelease):
        version = f"{major}.{minor}.{patch}"
        if prerelease:
            version += f"-{prerelease}"
        assert is_valid_version(version) is True

    @given(st.lists(st.integers(min_value=0, max_value=99), min_size=1, max_size=2))
    def test_fewer_than_three_segments_rejected(self, parts):
        assert is_valid_version(".".join(str(p) for p in parts)) is False


class TestValidateRequiredFields:
    """Tests for validate_required_fields."""

    def test_valid(self):
        assert validate_required_fields({"name": "pkgA", "version": "1.0.0"}) == []

    def test_missing_both(self):
        errors = validate_required_fields({})
        assert [e.field for e in errors] == ["name", "version"]
        assert errors[0].message == "package name is required"
        assert errors[1].message == "package version is required"

    def test_empty_values(self):
        errors = validate_required_fields({"name": "", "version": ""})
        assert len(errors) == 2

    def test_non_string_version(self):
        errors = validate_required_fields({"name": "pkgA", "version": 1.0})
        assert len(errors) == 1
        assert errors[0].field == "version"
        assert "must be a string" in errors[0].message

    def test_invalid_formats(self):
        errors = validate_required_fields({"name": "bad-name", "version": "1.0"})
        assert errors[0].message == "invalid package name format: bad-name"
        assert errors[1].message == "invalid version format: 1.0"
        assert errors[1].value == "1.0"
