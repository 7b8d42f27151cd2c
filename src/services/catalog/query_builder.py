"""Backend-agnostic query builder for document store collections."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Literal

from src.services.catalog.errors import ConfigurationError

Direction = Literal["asc", "desc"]

EQUALITY_OPERATORS = frozenset({"==", "in"})
RANGE_OPERATORS = frozenset({"<", "<=", ">", ">="})

# Highest code point in the Basic Multilingual Plane private use area; every
# string sharing a prefix sorts before prefix + this character.
PREFIX_SENTINEL = "\uf8ff"

# Firestore caps a query at 30 disjunctions, counting the product of its "in" lists.
MAX_IN_VALUES = 30


@dataclass(frozen=True)
class Predicate:
    field: str
    op: str
    value: Any

    @property
    def is_equality(self) -> bool:
        return self.op in EQUALITY_OPERATORS


@dataclass(frozen=True)
class Ordering:
    field: str
    direction: Direction = "asc"


@dataclass(frozen=True)
class CompiledQuery:
    """Immutable query ready for execution by a ``DocumentStore``.

    Predicates are stored equality-first, then range; the store applies
    ``order_by`` after all predicates and the limit last.
    """

    collection: str
    predicates: tuple[Predicate, ...] = ()
    order_by: tuple[Ordering, ...] = ()
    limit: int | None = None

    @property
    def equality_predicates(self) -> tuple[Predicate, ...]:
        return tuple(p for p in self.predicates if p.is_equality)

    @property
    def range_predicates(self) -> tuple[Predicate, ...]:
        return tuple(p for p in self.predicates if not p.is_equality)

    @property
    def range_field(self) -> str | None:
        ranges = self.range_predicates
        return ranges[0].field if ranges else None

    def with_limit(self, limit: int | None) -> CompiledQuery:
        return CompiledQuery(
            collection=self.collection,
            predicates=self.predicates,
            order_by=self.order_by,
            limit=limit,
        )

    def required_index(self) -> tuple[tuple[str, Direction], ...] | None:
        """Return the composite index this query needs, or ``None``.

        Queries touching a single field are served by the store's automatic
        single-field indexes. Anything else needs a composite index made of
        the equality fields followed by the ordering (and range) fields.
        Provisioning those indexes is an operational task; the builder only
        reports them.
        """
        equality_fields = sorted({p.field for p in self.equality_predicates})
        ordered: list[tuple[str, Direction]] = [
            (o.field, o.direction) for o in self.order_by
        ]
        range_field = self.range_field
        if range_field and range_field not in {f for f, _ in ordered}:
            ordered.append((range_field, "asc"))

        fields = {*equality_fields, *(f for f, _ in ordered)}
        if len(fields) <= 1:
            return None

        index: list[tuple[str, Direction]] = [(f, "asc") for f in equality_fields]
        index.extend(entry for entry in ordered if entry[0] not in equality_fields)
        return tuple(index)


class QueryBuilder:
    """Fluent accumulator of predicates, ordering and limit.

    ``None`` values and empty sequences are skipped so callers can pass
    optional filters straight through. Nothing is executed here.
    """

    def __init__(self, collection: str) -> None:
        self.collection = collection
        self._predicates: list[Predicate] = []
        self._order_by: list[Ordering] = []
        self._limit: int | None = None

    def where(self, field_name: str, op: str, value: Any) -> QueryBuilder:
        if op not in EQUALITY_OPERATORS and op not in RANGE_OPERATORS:
            raise ConfigurationError(f"Unsupported operator {op!r} on {field_name}")
        if value is None:
            return self
        if isinstance(value, (list, tuple, set, frozenset)):
            if not value:
                return self
            if op != "in":
                raise ConfigurationError(
                    f"Operator {op!r} on {field_name} does not accept a list"
                )
            if len(value) > MAX_IN_VALUES:
                raise ConfigurationError(
                    f"Filter on {field_name} has {len(value)} values; "
                    f"at most {MAX_IN_VALUES} are supported"
                )
            value = tuple(value)
        elif op == "in":
            value = (value,)

        self._predicates.append(Predicate(field=field_name, op=op, value=value))
        return self

    def where_prefix(self, field_name: str, term: str | None) -> QueryBuilder:
        """Match values of ``field_name`` that start with ``term``."""
        if not term:
            return self
        self.where(field_name, ">=", term)
        self.where(field_name, "<=", term + PREFIX_SENTINEL)
        return self

    def order_by(self, field_name: str, direction: Direction = "asc") -> QueryBuilder:
        if direction not in ("asc", "desc"):
            raise ConfigurationError(f"Unsupported sort direction {direction!r}")
        self._order_by.append(Ordering(field=field_name, direction=direction))
        return self

    def limit(self, limit: int | None) -> QueryBuilder:
        if limit is not None and limit > 0:
            self._limit = limit
        return self

    def build(self) -> CompiledQuery:
        """Compile the accumulated state, failing fast on shapes the store rejects."""
        range_fields = {p.field for p in self._predicates if not p.is_equality}
        if len(range_fields) > 1:
            raise ConfigurationError(
                "Range filters on more than one field cannot be combined: "
                + ", ".join(sorted(range_fields))
            )

        disjunctions = math.prod(len(p.value) for p in self._predicates if p.op == "in")
        if disjunctions > MAX_IN_VALUES:
            raise ConfigurationError(
                f"Combined \"in\" filters expand to {disjunctions} disjunctions; "
                f"at most {MAX_IN_VALUES} are supported"
            )

        equality = [p for p in self._predicates if p.is_equality]
        ranges = [p for p in self._predicates if not p.is_equality]
        return CompiledQuery(
            collection=self.collection,
            predicates=tuple(equality + ranges),
            order_by=tuple(self._order_by),
            limit=self._limit,
        )


def create_query_builder(collection: str) -> QueryBuilder:
    """Helper mirroring the store-facing collection name."""
    return QueryBuilder(collection=collection)


def describe_index(index: Sequence[tuple[str, str]]) -> str:
    return ", ".join(f"{name} {direction}" for name, direction in index)
