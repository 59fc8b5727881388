"""
Tests for the package descriptor codec and download URL derivation.
"""

import json

import httpx
import pytest
from pydantic import ValidationError

from ept.errors import FormatError, UrlError
from ept.package import Package, download_url, format_package, parse


@pytest.fixture
def libfoo():
    return Package(name="libfoo", version="1.2.0", author="alice", types="lib")


class TestParse:
    """Tests for reading the underline format."""

    def test_parse_four_segments(self, libfoo):
        package = Package.parse("libfoo_1.2.0_alice_lib")

        assert package.name == "libfoo"
        assert package.version == "1.2.0"
        assert package.author == "alice"
        assert package.types == "lib"
        assert package == libfoo

    def test_extra_segments_are_ignored(self):
        package = parse("a_b_c_d_extra")

        assert package == Package(name="a", version="b", author="c", types="d")

    @pytest.mark.parametrize(
        "text, length",
        [
            ("", 1),
            ("nodelimiter", 1),
            ("onlytwo_segments", 2),
            ("a_b_c", 3),
        ],
    )
    def test_too_few_segments(self, text, length):
        with pytest.raises(FormatError) as exc_info:
            Package.parse(text)

        assert exc_info.value.raw == text
        assert exc_info.value.length == length

    def test_empty_segments_still_count(self):
        package = Package.parse("___")

        assert package == Package(name="", version="", author="", types="")


class TestFormat:
    """Tests for writing the underline format."""

    def test_to_underline(self, libfoo):
        assert libfoo.to_underline() == "libfoo_1.2.0_alice_lib"
        assert format_package(libfoo) == "libfoo_1.2.0_alice_lib"
        assert str(libfoo) == "libfoo_1.2.0_alice_lib"

    def test_round_trip(self, libfoo):
        assert Package.parse(libfoo.to_underline()) == libfoo

    def test_delimiter_inside_field_breaks_round_trip(self):
        package = Package(name="lib_foo", version="1.0", author="bob", types="lib")

        parsed = Package.parse(package.to_underline())

        assert parsed != package
        assert parsed.name == "lib"
        assert parsed.version == "foo"


class TestModel:
    """Tests for the value semantics of Package."""

    def test_immutable(self, libfoo):
        with pytest.raises(ValidationError):
            libfoo.name = "other"

    def test_hashable_by_value(self, libfoo):
        same = Package(name="libfoo", version="1.2.0", author="alice", types="lib")

        assert hash(same) == hash(libfoo)
        assert len({same, libfoo}) == 1

    def test_json_form(self, libfoo):
        data = json.loads(libfoo.model_dump_json())

        assert data == {"name": "libfoo", "version": "1.2.0", "author": "alice", "types": "lib"}
        assert Package.model_validate(data) == libfoo

    def test_archive_name_leaves_out_types(self, libfoo):
        assert libfoo.archive_name == "libfoo_1.2.0_alice.7z"


class TestDownloadUrl:
    """Tests for resolving the archive URL against a base URL."""

    def test_base_with_trailing_slash(self, libfoo):
        url = libfoo.download_url("https://example.com/pkgs/")

        assert isinstance(url, httpx.URL)
        assert str(url) == "https://example.com/pkgs/lib/libfoo_1.2.0_alice.7z"

    def test_base_without_trailing_slash_replaces_last_segment(self, libfoo):
        url = libfoo.download_url("https://example.com/pkgs")

        assert str(url) == "https://example.com/lib/libfoo_1.2.0_alice.7z"

    def test_base_host_only(self, libfoo):
        url = download_url(libfoo, "http://mirror.local:8080")

        assert str(url) == "http://mirror.local:8080/lib/libfoo_1.2.0_alice.7z"

    @pytest.mark.parametrize(
        "base_url, expected",
        [
            ("s3://bucket/pkgs/", "s3://bucket/pkgs/lib/libfoo_1.2.0_alice.7z"),
            ("git+https://example.com/pkgs/", "git+https://example.com/pkgs/lib/libfoo_1.2.0_alice.7z"),
            ("ipfs://cid/pkgs", "ipfs://cid/lib/libfoo_1.2.0_alice.7z"),
        ],
    )
    def test_other_hierarchical_schemes(self, libfoo, base_url, expected):
        url = libfoo.download_url(base_url)

        assert url.is_absolute_url
        assert str(url) == expected

    def test_deterministic(self, libfoo):
        base = "https://example.com/pkgs/"

        assert libfoo.download_url(base) == libfoo.download_url(base)

    @pytest.mark.parametrize(
        "base_url",
        [
            "",
            "not a url",
            "example.com/pkgs/",
            "/pkgs/",
            "http://",
        ],
    )
    def test_invalid_base_url(self, libfoo, base_url):
        with pytest.raises(UrlError) as exc_info:
            libfoo.download_url(base_url)

        assert exc_info.value.base_url == base_url
