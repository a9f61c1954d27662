"""
Tests for service path normalization.
"""

import pytest

from service_kernel import ROOT_PATH, join_path, normalize_path, strip_slashes


class TestNormalizePath:
    """Test path canonicalization."""

    @pytest.mark.parametrize("path", ["/a/b/", "a/b", "/a/b", "//a/b//"])
    def test_separator_variants_share_a_key(self, path):
        assert normalize_path(path) == "a/b"

    def test_normalization_is_idempotent(self):
        for path in ["a/b", "/", "messages", "api/v1/users"]:
            assert normalize_path(normalize_path(path)) == normalize_path(path)

    @pytest.mark.parametrize("path", ["", "/", "///"])
    def test_empty_path_is_root(self, path):
        assert normalize_path(path) == ROOT_PATH

    def test_strip_slashes_keeps_inner_separators(self):
        assert strip_slashes("/api/v1/") == "api/v1"


class TestJoinPath:
    """Test joining mount prefixes and sub paths."""

    def test_join_prefix_and_sub_path(self):
        assert join_path("api", "items") == "api/items"

    def test_join_root_sub_path_maps_to_prefix(self):
        assert join_path("api", ROOT_PATH) == "api"

    def test_join_under_root_prefix(self):
        assert join_path(ROOT_PATH, "items") == "items"
