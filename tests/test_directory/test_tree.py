"""Tests for materialized tree paths."""

import pytest

from orglogin.directory.tree import ROOT_PATH, ancestor_ids, child_tree_path, top_node_id


def test_root_path_has_no_ancestors():
    assert ancestor_ids(ROOT_PATH) == []
    assert top_node_id(ROOT_PATH) is None


def test_ancestors_are_root_first():
    assert ancestor_ids("/1/5/9/") == [1, 5, 9]
    assert top_node_id("/1/5/9/") == 1


def test_empty_or_missing_path():
    assert ancestor_ids("") == []
    assert ancestor_ids(None) == []
    assert top_node_id(None) is None


def test_tolerates_missing_slashes():
    assert ancestor_ids("1/5") == [1, 5]


def test_invalid_segment_raises():
    with pytest.raises(ValueError, match="abc"):
        ancestor_ids("/1/abc/")


def test_child_tree_path():
    assert child_tree_path(ROOT_PATH, 1) == "/1/"
    assert child_tree_path("/1/", 5) == "/1/5/"
    assert child_tree_path("/1", 5) == "/1/5/"
    assert top_node_id(child_tree_path(child_tree_path(ROOT_PATH, 1), 5)) == 1
