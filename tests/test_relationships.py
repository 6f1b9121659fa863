"""
Tests for RelationshipBuilder

Covers accessor naming, join conditions, disambiguation of multiple
foreign keys between the same pair of tables and collision handling.
"""

from unittest import TestCase

import pytest

from schema_loader.domain.models import (
    ColumnInfo,
    ForeignKeyRef,
    RelationshipKind,
    TableMetadata,
)
from schema_loader.domain.relationships import RelationshipBuilder
from schema_loader.exceptions import RelationshipNameCollision, SchemaInconsistency
from schema_loader.inflection import Inflector


def make_table(name, columns, primary_key=("id",)):
    return TableMetadata(
        name=name,
        columns=[ColumnInfo(name=col) for col in columns],
        primary_key=list(primary_key),
    )


def by_accessor(bindings):
    return {binding.accessor_name: binding for binding in bindings}


class TestArtistCd(TestCase):
    """One foreign key: cd.artist_id -> artist.id"""

    def setUp(self):
        self.tables = {
            "Artist": make_table("artist", ["id", "name"]),
            "Cd": make_table("cd", ["id", "artist_id", "title"]),
        }
        self.fk_info = {
            "Artist": [],
            "Cd": [ForeignKeyRef("cd", ["artist_id"], "Artist", ["id"], name="cd_artist_fk")],
        }
        self.bindings = RelationshipBuilder(self.tables, self.fk_info).generate()

    def test_belongs_to_on_referencing_class(self):
        (binding,) = self.bindings["Cd"]
        assert binding.kind is RelationshipKind.BELONGS_TO
        assert binding.accessor_name == "artist"
        assert binding.target_entity == "Artist"
        assert binding.condition_map == {"id": "artist_id"}

    def test_belongs_to_strips_id_suffix(self):
        tables = {
            "Customer": make_table("customer", ["id", "name"]),
            "Invoice": make_table("invoice", ["id", "customer_id"]),
        }
        fk_info = {"Customer": [], "Invoice": [ForeignKeyRef("invoice", ["customer_id"], "Customer", ["id"])]}
        bindings = RelationshipBuilder(tables, fk_info).generate()

        (belongs_to,) = bindings["Invoice"]
        assert belongs_to.accessor_name == "customer"
        assert belongs_to.condition_map == {"id": "customer_id"}
        (has_many,) = bindings["Customer"]
        assert has_many.accessor_name == "invoices"

    def test_has_many_on_referenced_class(self):
        (binding,) = self.bindings["Artist"]
        assert binding.kind is RelationshipKind.HAS_MANY
        assert binding.accessor_name == "cds"
        assert binding.target_entity == "Cd"
        assert binding.condition_map == {"foreign.artist_id": "self.id"}

    def test_describe(self):
        (binding,) = self.bindings["Cd"]
        assert binding.describe() == "Cd.belongs_to('artist', 'Artist', {'id': 'artist_id'})"

    def test_generate_is_deterministic(self):
        again = RelationshipBuilder(self.tables, self.fk_info).generate()
        assert again == self.bindings


class TestMultipleForeignKeysToSameTable(TestCase):
    """employee.dept_id and employee.backup_dept_id both reference dept"""

    def setUp(self):
        self.tables = {
            "Dept": make_table("dept", ["id", "name"]),
            "Employee": make_table("employee", ["id", "dept_id", "backup_dept_id"]),
        }
        self.fk_info = {
            "Employee": [
                ForeignKeyRef("employee", ["dept_id"], "Dept", ["id"]),
                ForeignKeyRef("employee", ["backup_dept_id"], "Dept", ["id"]),
            ],
        }

    def test_has_many_names_include_local_columns(self):
        bindings = RelationshipBuilder(self.tables, self.fk_info).generate()
        reverse = by_accessor(bindings["Dept"])
        assert set(reverse) == {"employee_dept_ids", "employee_backup_dept_ids"}
        assert reverse["employee_backup_dept_ids"].condition_map == {
            "foreign.backup_dept_id": "self.id"
        }

    def test_belongs_to_names_follow_columns(self):
        bindings = RelationshipBuilder(self.tables, self.fk_info).generate()
        forward = by_accessor(bindings["Employee"])
        assert set(forward) == {"dept", "backup_dept"}
        assert forward["backup_dept"].condition_map == {"id": "backup_dept_id"}

    def test_disambiguation_counts_per_pair(self):
        self.tables["Office"] = make_table("office", ["id"])
        self.fk_info["Employee"].append(ForeignKeyRef("employee", ["office_id"], "Office", ["id"]))
        bindings = RelationshipBuilder(self.tables, self.fk_info).generate()
        assert [b.accessor_name for b in bindings["Office"]] == ["employees"]


class TestRelationshipBuilderEdgeCases(TestCase):
    """Edge cases of foreign key resolution"""

    def test_remote_columns_default_to_primary_key(self):
        tables = {
            "Cd": make_table("cd", ["cdid", "title"], primary_key=["cdid"]),
            "Track": make_table("track", ["trackid", "cd"], primary_key=["trackid"]),
        }
        fk_info = {"Track": [ForeignKeyRef("track", ["cd"], "Cd", [])]}
        bindings = RelationshipBuilder(tables, fk_info).generate()

        (forward,) = bindings["Track"]
        assert forward.accessor_name == "cd"
        assert forward.condition_map == {"cdid": "cd"}
        (reverse,) = bindings["Cd"]
        assert reverse.accessor_name == "tracks"
        assert reverse.condition_map == {"foreign.cd": "self.cdid"}

    def test_column_count_mismatch(self):
        tables = {
            "Parent": make_table("parent", ["a", "b"], primary_key=["a", "b"]),
            "Child": make_table("child", ["id", "parent_a"]),
        }
        fk_info = {"Child": [ForeignKeyRef("child", ["parent_a"], "Parent", [])]}
        with pytest.raises(SchemaInconsistency) as excinfo:
            RelationshipBuilder(tables, fk_info).generate()
        assert "Column count mismatch" in excinfo.value.message

    def test_multi_column_belongs_to_named_after_remote_table(self):
        tables = {
            "Cds": make_table("cds", ["artist", "title"], primary_key=["artist", "title"]),
            "Track": make_table("track", ["id", "cd_artist", "cd_title"]),
        }
        fk_info = {
            "Track": [ForeignKeyRef("track", ["cd_artist", "cd_title"], "Cds", ["artist", "title"])]
        }
        bindings = RelationshipBuilder(tables, fk_info).generate()
        (forward,) = bindings["Track"]
        assert forward.accessor_name == "cd"
        assert forward.condition == (("artist", "cd_artist"), ("title", "cd_title"))
        (reverse,) = bindings["Cds"]
        assert reverse.condition == (
            ("foreign.cd_artist", "self.artist"),
            ("foreign.cd_title", "self.title"),
        )

    def test_self_referential_foreign_key(self):
        tables = {"Employee": make_table("employee", ["id", "manager_id"])}
        fk_info = {"Employee": [ForeignKeyRef("employee", ["manager_id"], "Employee", ["id"])]}
        bindings = RelationshipBuilder(tables, fk_info).generate()
        accessors = by_accessor(bindings["Employee"])
        assert accessors["manager"].kind is RelationshipKind.BELONGS_TO
        assert accessors["employees"].kind is RelationshipKind.HAS_MANY

    def test_unknown_remote_moniker(self):
        tables = {"Cd": make_table("cd", ["id", "artist_id"])}
        fk_info = {"Cd": [ForeignKeyRef("cd", ["artist_id"], "Artist", ["id"])]}
        with pytest.raises(SchemaInconsistency):
            RelationshipBuilder(tables, fk_info).generate()

    def test_synthetic_names_do_not_leak(self):
        tables = {
            "Artist": make_table("artist", ["id"]),
            "Cd": make_table("cd", ["id", "artist_id"]),
        }
        fk_info = {
            "Cd": [ForeignKeyRef("cd", ["artist_id"], "Artist", ["id"], name="__fk", is_synthetic_name=True)]
        }
        for pair in RelationshipBuilder(tables, fk_info).build_pairs():
            for binding in (pair.forward, pair.reverse):
                assert "__fk" not in binding.accessor_name

    def test_inflection_overrides_apply(self):
        tables = {
            "Person": make_table("person", ["id"]),
            "Address": make_table("address", ["id", "person_id"]),
        }
        fk_info = {"Address": [ForeignKeyRef("address", ["person_id"], "Person", ["id"])]}
        inflector = Inflector(plural_overrides={"address": "addresses_list"})
        bindings = RelationshipBuilder(tables, fk_info, inflector=inflector).generate()
        assert [b.accessor_name for b in bindings["Person"]] == ["addresses_list"]


class TestAccessorCollisions(TestCase):
    """Two bindings on one class with the same accessor name"""

    def setUp(self):
        # Tables "cd" and "cds" both reference artist; both has-many
        # accessors on Artist pluralize to "cds".
        self.tables = {
            "Artist": make_table("artist", ["id"]),
            "Cd": make_table("cd", ["id", "artist_id"]),
            "Cds": make_table("cds", ["id", "artist_id"]),
        }
        self.fk_info = {
            "Cd": [ForeignKeyRef("cd", ["artist_id"], "Artist", ["id"])],
            "Cds": [ForeignKeyRef("cds", ["artist_id"], "Artist", ["id"])],
        }

    def test_collisions_kept_in_order_by_default(self):
        bindings = RelationshipBuilder(self.tables, self.fk_info).generate()
        artist = bindings["Artist"]
        assert [b.accessor_name for b in artist] == ["cds", "cds"]
        # The later binding is the one that survives when applied
        assert artist[-1].target_entity == "Cds"

    def test_strict_mode_raises(self):
        builder = RelationshipBuilder(self.tables, self.fk_info, strict=True)
        with pytest.raises(RelationshipNameCollision) as excinfo:
            builder.generate()
        assert excinfo.value.context["owner"] == "Artist"
        assert excinfo.value.context["accessor"] == "cds"
        assert isinstance(excinfo.value, SchemaInconsistency)
