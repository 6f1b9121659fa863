"""
Tests for the in-memory registration runtime.
"""

from unittest import TestCase

import pytest

from schema_loader.domain.models import ColumnInfo, RelationshipKind
from schema_loader.runtime import ResultSource, Schema


def make_source(name="Artist"):
    cls = type(name, (ResultSource,), {})
    cls.table(name.lower())
    cls.add_columns("id", ("name", ColumnInfo(name="name", data_type="varchar", size=100)))
    return cls


class TestResultSource(TestCase):
    """Test cases for class declarations on ResultSource"""

    def test_declarations(self):
        cls = make_source()
        cls.set_primary_key("id")
        cls.add_unique_constraint("artist_name", ["name"])

        assert cls.table_name() == "artist"
        assert cls.columns() == ["id", "name"]
        assert cls.column_info("name").size == 100
        assert cls.column_info("id").data_type is None
        assert cls.primary_columns() == ["id"]
        assert cls.unique_constraints() == {"artist_name": ["name"]}

    def test_declarations_are_per_class(self):
        artist = make_source("Artist")
        cd = make_source("Cd")
        cd.add_columns("title")
        assert "title" not in artist.columns()

    def test_unknown_primary_key_column(self):
        cls = make_source()
        with pytest.raises(ValueError):
            cls.set_primary_key("artistid")

    def test_relationships_last_declaration_wins(self):
        cls = make_source()
        cls.has_many("cds", "Cd", {"foreign.artist_id": "self.id"})
        cls.has_many("cds", "Cds", {"foreign.artist": "self.id"})

        assert cls.relationships() == ["cds"]
        info = cls.relationship_info("cds")
        assert info["kind"] is RelationshipKind.HAS_MANY
        assert info["target"] == "Cds"
        assert info["condition"] == {"foreign.artist": "self.id"}

    def test_empty_accessor(self):
        cls = make_source()
        with pytest.raises(ValueError):
            cls.belongs_to("", "Cd", {"id": "cd_id"})

    def test_accessor_need_not_be_identifier(self):
        cls = make_source()
        cls.has_many("cd-items", "CdItem", {"foreign.artist_id": "self.id"})
        cls.belongs_to("class", "Class", {"id": "class_id"})
        assert cls.relationships() == ["cd-items", "class"]
        assert cls.relationship_info("cd-items")["target"] == "CdItem"

    def test_instances(self):
        cls = make_source()
        cls.set_primary_key("id")
        artist = cls(id=1, name="Caterwauler McCrae")
        assert artist.name == "Caterwauler McCrae"
        assert repr(artist) == "<Artist(id=1)>"
        assert cls(id=2).name is None

        with pytest.raises(TypeError):
            cls(id=3, genre="rock")


class TestSchema(TestCase):
    """Test cases for the Schema registry"""

    def test_register_and_lookup(self):
        schema = Schema()
        artist = make_source("Artist")
        schema.register_class("Artist", artist)

        assert schema.source("Artist") is artist
        assert artist.schema is schema
        assert "Artist" in schema
        assert len(schema) == 1
        assert schema.monikers == ["Artist"]

    def test_register_replaces(self):
        schema = Schema()
        schema.register_class("Artist", make_source("Artist"))
        replacement = make_source("Artist")
        schema.register_class("Artist", replacement)
        assert schema.source("Artist") is replacement
        assert schema.sources() == ["Artist"]

    def test_missing_source(self):
        schema = Schema()
        with pytest.raises(KeyError, match="Can't find source for Cd"):
            schema.source("Cd")

    def test_unregister(self):
        schema = Schema()
        schema.register_class("Artist", make_source("Artist"))
        schema.unregister("Artist")
        assert "Artist" not in schema
