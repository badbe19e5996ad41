"""
Integration tests for Model operations against an in-memory SQLite store.
"""

from __future__ import annotations

from unittest import mock

import pytest

from rowkit.exceptions import InvalidIdentifier, InvalidOperator, ReservedColumn, RowkitError
from rowkit.infrastructure.database import Database
from rowkit.model import Model

SEEDED_ROWS = 3
ALICE_AGE = 30


class TestModelCreation:
    def test_creates_table_with_primary_key(self, db: Database):
        Model(db, "widgets", {"label": "text"})
        columns = [row["name"] for row in db.query("PRAGMA table_info(widgets)")]
        assert columns == ["id", "label"]

    def test_reopening_existing_table_keeps_rows(self, db: Database):
        first = Model(db, "widgets", {"label": "text"})
        first.insert({"label": "a"})
        again = Model(db, "widgets", {"label": "text"})
        assert again.tally() == 1

    def test_rejects_invalid_names_before_touching_store(self, db: Database):
        with mock.patch.object(db, "execute", wraps=db.execute) as spy:
            with pytest.raises(InvalidIdentifier):
                Model(db, "bad table", {"label": "text"})
            with pytest.raises(InvalidIdentifier):
                Model(db, "widgets", {"label;": "text"})
            spy.assert_not_called()

    def test_rejects_explicit_id_column(self, db: Database):
        with pytest.raises(ReservedColumn):
            Model(db, "widgets", {"id": "integer", "label": "text"})

    def test_schema_is_read_only(self, users: Model):
        assert users.columns == ("id", "name", "age", "active")
        with pytest.raises(TypeError):
            users.schema["email"] = "text"  # type: ignore[index]


class TestInsertAndRead:
    def test_round_trip(self, users: Model):
        created = users.insert({"name": "Alice", "age": ALICE_AGE})
        fetched = users.get(created.id)
        assert fetched is not None
        assert fetched.name == "Alice"
        assert fetched.age == ALICE_AGE
        assert fetched == created

    def test_insert_assigns_increasing_ids(self, users: Model):
        a = users.insert({"name": "a"})
        b = users.insert({"name": "b"})
        assert b.id > a.id

    def test_insert_stores_booleans_as_integers(self, users: Model):
        record = users.insert({"name": "Alice", "active": True})
        assert record.active == 1

    def test_insert_quotes_hostile_values(self, users: Model):
        hostile = "x'); DROP TABLE users; --"
        record = users.insert({"name": hostile})
        assert record.name == hostile
        assert users.tally() == 1

    def test_insert_with_no_attrs_uses_defaults(self, users: Model):
        record = users.insert({})
        assert record.name is None

    def test_insert_rejects_bad_column(self, users: Model):
        with pytest.raises(InvalidIdentifier):
            users.insert({"name); --": "x"})
        assert users.tally() == 0

    def test_get_missing_returns_none(self, users: Model):
        assert users.get(999) is None

    def test_list_returns_rows_in_insert_order(self, seeded_users: Model):
        assert [r.name for r in seeded_users.list()] == ["Alice", "Bob", "Carol"]

    def test_where(self, seeded_users: Model):
        adults = seeded_users.where({"age >=": 18})
        assert [r.name for r in adults] == ["Alice", "Carol"]
        assert seeded_users.where({"name": "Nobody"}) == []
        assert seeded_users.where({"name LIKE": "%o%", "active": True}) == [
            seeded_users.first({"name": "Carol"})
        ]

    def test_where_without_conditions_returns_everything(self, seeded_users: Model):
        assert len(seeded_users.where()) == SEEDED_ROWS
        assert len(seeded_users.where({})) == SEEDED_ROWS

    def test_first(self, seeded_users: Model):
        assert seeded_users.first({"age <": 20}).name == "Bob"
        assert seeded_users.first({"age >": 100}) is None

    def test_pluck(self, seeded_users: Model):
        assert seeded_users.pluck("name") == ["Alice", "Bob", "Carol"]
        with pytest.raises(InvalidIdentifier):
            seeded_users.pluck("name, age")

    def test_injection_attempt_fails_without_executing(self, seeded_users: Model, db: Database):
        with mock.patch.object(db, "query", wraps=db.query) as spy:
            with pytest.raises(InvalidIdentifier):
                seeded_users.where({"name; DROP TABLE users --": "x"})
            spy.assert_not_called()
        assert seeded_users.tally() == SEEDED_ROWS

    def test_invalid_operator(self, seeded_users: Model):
        with pytest.raises(InvalidOperator):
            seeded_users.where({"age IN": "(1, 2)"})

    def test_is_null_conditions(self, users: Model):
        users.insert({"name": "Alice"})
        users.insert({"name": "Bob", "age": 5})
        assert [r.name for r in users.where({"age IS": None})] == ["Alice"]
        assert [r.name for r in users.where({"age IS NOT": None})] == ["Bob"]


class TestAggregates:
    def test_tally_lifecycle(self, users: Model):
        assert users.tally() == 0
        for name in ("a", "b", "c"):
            users.insert({"name": name})
        assert users.tally() == SEEDED_ROWS
        assert users.destroy({}) == SEEDED_ROWS
        assert users.tally() == 0

    def test_tally_with_conditions(self, seeded_users: Model):
        assert seeded_users.tally({"active": True}) == 2

    def test_exists(self, users: Model):
        assert users.exists({"age >=": 999}) is False
        users.insert({"name": "Old", "age": 1000})
        assert users.exists({"age >=": 999}) is True

    def test_for_each_visits_every_record_in_order(self, seeded_users: Model):
        seen = []
        assert seeded_users.for_each(lambda r: seen.append(r.name)) is None
        assert seen == ["Alice", "Bob", "Carol"]

    def test_for_each_propagates_callback_errors(self, seeded_users: Model):
        def boom(record):
            raise RuntimeError(record.name)

        with pytest.raises(RuntimeError, match="Alice"):
            seeded_users.for_each(boom)

    def test_collect(self, seeded_users: Model):
        assert seeded_users.collect(lambda r: r.age) == [30, 17, 45]


class TestBulkChanges:
    def test_destroy_with_conditions(self, seeded_users: Model):
        assert seeded_users.destroy({"age <": 18}) == 1
        assert seeded_users.pluck("name") == ["Alice", "Carol"]

    def test_destroy_without_conditions_removes_all(self, seeded_users: Model):
        assert seeded_users.destroy() == SEEDED_ROWS

    def test_update_all(self, seeded_users: Model):
        assert seeded_users.update_all({"active": True}, {"age": 50, "name": "X'Y"}) == 2
        assert seeded_users.where({"age": 50}) == seeded_users.where({"name": "X'Y"})
        assert seeded_users.first({"name": "Bob"}).age == 17

    def test_update_all_with_empty_attrs_is_noop(self, seeded_users: Model, db: Database):
        with mock.patch.object(db, "execute", wraps=db.execute) as spy:
            assert seeded_users.update_all({"active": True}, {}) == 0
            spy.assert_not_called()

    def test_update_all_rejects_bad_attr_key(self, seeded_users: Model):
        with pytest.raises(InvalidIdentifier):
            seeded_users.update_all({"name": "Alice"}, {"age = 0 --": 1})
        assert seeded_users.first({"name": "Alice"}).age == ALICE_AGE


class TestReservedColumns:
    @pytest.mark.parametrize(
        "column",
        ["keys", "get", "annotations", "save", "delete", "reload", "to_dict", "is_deleted", "table", "_fields"],
    )
    def test_rejects_columns_shadowing_record_attributes(self, db: Database, column: str):
        with mock.patch.object(db, "execute", wraps=db.execute) as spy:
            with pytest.raises(ReservedColumn):
                Model(db, "notes", {"body": "text", column: "text"})
            spy.assert_not_called()
        assert not db.has_table("notes")

    def test_rejects_search_annotation_prefix(self, db: Database):
        with pytest.raises(ReservedColumn):
            Model(db, "notes", {"_fts_rank": "real"})


class TestValuesRoundTrip:
    def test_text_with_nul_can_be_queried(self, users: Model):
        stored = users.insert({"name": "a\x00b"})
        assert stored.name == "a\x00b"
        assert users.where({"name": "a\x00b"}) == [stored]
        assert users.first({"name": "a\x00b"}) == stored
        assert users.exists({"name": "a\x00b"}) is True
        assert users.update_all({"name": "a\x00b"}, {"age": 1}) == 1
        assert users.destroy({"name": "a\x00b"}) == 1

    def test_integers_beyond_64_bits_behave_alike_on_every_path(self, users: Model):
        stored = users.insert({"name": "big", "age": 2**70})
        assert stored.age == float(2**70)
        assert users.where({"age": 2**70}) == [stored]
        assert users.update_all({"age": 2**70}, {"age": 2**71}) == 1
        assert users.tally({"age": 2**71}) == 1


class TestValidationBeforeStore:
    """Invalid names and operators must fail before any statement is sent."""

    @pytest.mark.parametrize(
        ("method", "call"),
        [
            ("execute", lambda m: m.insert({"name); --": "x"})),
            ("execute", lambda m: m.destroy({"name; DROP TABLE users --": "x"})),
            ("execute", lambda m: m.destroy({"age =>": 1})),
            ("execute", lambda m: m.update_all({"name": "Alice"}, {"age = 0 --": 1})),
            ("execute", lambda m: m.update_all({"bad key!": "Alice"}, {"age": 1})),
            ("query_scalar", lambda m: m.tally({"1age": 1})),
            ("query_scalar", lambda m: m.exists({"age BETWEEN": 1})),
            ("query_row", lambda m: m.first({"name;": "x"})),
            ("query", lambda m: m.pluck("name, age")),
        ],
    )
    def test_no_statement_reaches_store(self, seeded_users: Model, db: Database, method, call):
        with mock.patch.object(db, method, wraps=getattr(db, method)) as spy:
            with pytest.raises((InvalidIdentifier, InvalidOperator)):
                call(seeded_users)
            spy.assert_not_called()
        assert seeded_users.tally() == SEEDED_ROWS


def test_insert_raises_when_row_cannot_be_read_back(users: Model):
    with mock.patch.object(users, "get", return_value=None):
        with pytest.raises(RowkitError, match="could not be read back"):
            users.insert({"name": "Ghost", "age": 1})
