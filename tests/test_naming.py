"""
Tests for table-to-moniker mapping and relationship stems.
"""

from unittest import TestCase

import pytest

from schema_loader.domain.naming import (
    default_moniker,
    relationship_name_from_column,
    table_to_moniker,
)


@pytest.mark.parametrize("table,moniker", [
    ("mysql_loader_test1", "MysqlLoaderTest1"),
    ("cd", "Cd"),
    ("artist", "Artist"),
    ("ARTIST_UNDOR", "ArtistUndor"),
    ("order-items", "OrderItems"),
    ("__loader__test", "LoaderTest"),
])
def test_default_moniker(table, moniker):
    assert default_moniker(table) == moniker


class TestTableToMoniker(TestCase):
    """Test cases for table_to_moniker overrides"""

    def test_without_map(self):
        assert table_to_moniker("track_note") == "TrackNote"

    def test_dict_map_used_verbatim(self):
        moniker_map = {"cd": "CD"}
        assert table_to_moniker("cd", moniker_map) == "CD"
        assert table_to_moniker("artist", moniker_map) == "Artist"

    def test_callable_map(self):
        assert table_to_moniker("tbl_user", lambda name: name.replace("tbl_", "").title()) == "User"

    def test_callable_returning_none_falls_back(self):
        assert table_to_moniker("tbl_user", lambda name: None) == "TblUser"

    def test_empty_override_falls_back(self):
        assert table_to_moniker("cd", {"cd": ""}) == "Cd"

    def test_non_string_rejected(self):
        with pytest.raises(TypeError):
            default_moniker(42)


class TestRelationshipNameFromColumn(TestCase):
    """Test cases for relationship_name_from_column"""

    def test_strips_id_suffix(self):
        assert relationship_name_from_column("customer_id") == "customer"
        assert relationship_name_from_column("backup_dept_id") == "backup_dept"

    def test_plain_column_unchanged(self):
        assert relationship_name_from_column("artist") == "artist"

    def test_bare_id_suffix_kept(self):
        assert relationship_name_from_column("_id") == "_id"
        assert relationship_name_from_column("id") == "id"

