"""
Domain types for rows returned by a model.

`Record` is a mutable snapshot of one row that can persist itself.
`SearchAnnotations` carries the transient values a full-text search adds to
a hit (rank, snippet, highlighted columns); it lives beside the record's
fields and never reaches the save path.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterator, Mapping, Optional

from pydantic import BaseModel, Field

from rowkit.exceptions import RecordDeleted, ReservedColumn
from rowkit.sql import statements
from rowkit.sql.statements import PRIMARY_KEY
from rowkit.utils.logging import get_logger

if TYPE_CHECKING:
    from rowkit.infrastructure.database import Database

log = get_logger(__name__)


class SearchAnnotations(BaseModel):
    """
    Values computed by a full-text query for a single hit.
    """

    rank: float = Field(..., description="bm25 score; lower is a better match.")
    snippet: Optional[str] = Field(None, description="Excerpt around the match, when requested.")
    highlights: Dict[str, str] = Field(
        default_factory=dict, description="Column name to highlighted text, when requested."
    )

    model_config = {
        "frozen": True,
    }


class Record:
    """
    One row of a model's table.

    Records are produced by `Model` queries and inserts; they hold a copy of
    the row's fields and a handle to the database they came from. Editing a
    field changes only this copy until `save()` is called.

    Example:
        ```python
        user = users.insert({"name": "Alice", "age": 30})
        user.age = 31
        user.save()

        user["name"]        # "Alice"
        user.to_dict()      # {"id": 1, "name": "Alice", "age": 31}
        user.delete()
        ```
    """

    # Never written back by save()
    RESERVED: FrozenSet[str] = frozenset({PRIMARY_KEY})
    # Instance state kept outside the field mapping
    INTERNAL: FrozenSet[str] = frozenset({"_db", "_table", "_fields", "_annotations", "_deleted"})

    @classmethod
    def shadows_attribute(cls, name: str) -> bool:
        """True when a column called `name` could not be reached as `record.name`."""
        return name in cls.INTERNAL or hasattr(cls, name)

    def __init__(
        self,
        db: "Database",
        table: str,
        fields: Mapping[str, Any],
        annotations: Optional[SearchAnnotations] = None,
    ):
        if PRIMARY_KEY not in fields:
            raise ValueError(f"Row from {table} has no '{PRIMARY_KEY}' column")
        object.__setattr__(self, "_db", db)
        object.__setattr__(self, "_table", table)
        object.__setattr__(self, "_fields", dict(fields))
        object.__setattr__(self, "_annotations", annotations)
        object.__setattr__(self, "_deleted", False)

    # -- field access ------------------------------------------------------

    @property
    def id(self) -> Any:
        return self._fields[PRIMARY_KEY]

    @property
    def table(self) -> str:
        return self._table

    @property
    def annotations(self) -> Optional[SearchAnnotations]:
        """Search rank/snippet/highlights when this record is a search hit."""
        return self._annotations

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    def __getattr__(self, name: str) -> Any:
        # only called when normal lookup fails
        fields = self.__dict__.get("_fields", {})
        if name in fields:
            return fields[name]
        raise AttributeError(f"{type(self).__name__} from {self.__dict__.get('_table')!r} has no field {name!r}")

    def __setattr__(self, name: str, value: Any) -> None:
        if name != PRIMARY_KEY and self.shadows_attribute(name):
            raise ReservedColumn(f"{type(self).__name__}.{name} is not a field and cannot be assigned")
        self[name] = value

    def __getitem__(self, name: str) -> Any:
        return self._fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        if name == PRIMARY_KEY:
            raise ReservedColumn(f"'{PRIMARY_KEY}' of a record cannot be changed")
        if name not in self._fields:
            raise AttributeError(f"{self._table} has no column {name!r}")
        self._fields[name] = value

    def __contains__(self, name: object) -> bool:
        return name in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self._fields.get(name, default)

    def keys(self):
        return self._fields.keys()

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._fields)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Record):
            return NotImplemented
        return self._table == other._table and self._fields == other._fields

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        state = " deleted" if self._deleted else ""
        return f"Record({self._table}{state} {self._fields})"

    # -- persistence -------------------------------------------------------

    def _ensure_alive(self, action: str) -> None:
        if self._deleted:
            raise RecordDeleted(f"Cannot {action} {self._table} #{self.id}: record was deleted")

    def persisted_fields(self) -> Dict[str, Any]:
        """Fields written by save(): every column except reserved ones."""
        return {k: v for k, v in self._fields.items() if k not in self.RESERVED}

    def save(self) -> "Record":
        """
        Write every field back to the row with this record's id.

        Last write wins: the row is not checked for concurrent changes, and
        saving a record whose row was removed elsewhere updates nothing.
        """
        self._ensure_alive("save")
        attrs = self.persisted_fields()
        if not attrs:
            return self
        stmt = statements.update_by_id(self._table, attrs, self.id)
        affected = self._db.execute(stmt.sql, stmt.params)
        log.debug("Saved record", extra={"table": self._table, "id": self.id, "affected": affected})
        return self

    def delete(self) -> None:
        """
        Remove this record's row. The record is marked deleted; its fields can
        still be read but save()/delete()/reload() will raise RecordDeleted.
        """
        self._ensure_alive("delete")
        stmt = statements.delete_by_id(self._table, self.id)
        self._db.execute(stmt.sql, stmt.params)
        object.__setattr__(self, "_deleted", True)
        log.debug("Deleted record", extra={"table": self._table, "id": self.id})

    def reload(self) -> bool:
        """Refresh fields from the store. Returns False if the row no longer exists."""
        self._ensure_alive("reload")
        stmt = statements.select_by_id(self._table, self.id)
        row = self._db.query_row(stmt.sql, stmt.params)
        if row is None:
            return False
        self._fields.update(row)
        return True


__all__ = ["Record", "SearchAnnotations"]
