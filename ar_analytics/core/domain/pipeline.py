"""
Typed aggregation stage descriptors.

Pipelines are built from these value objects and lowered into a concrete wire
format by the executor adapters, so the builder never touches store-specific
documents.
"""

from dataclasses import dataclass
from typing import Any, Tuple, Union


# Expressions

@dataclass(frozen=True)
class FieldRef:
    name: str


@dataclass(frozen=True)
class Literal:
    value: Any


@dataclass(frozen=True)
class Substr:
    """Leading slice of the string form of an operand."""
    operand: "Expression"
    start: int
    length: int


@dataclass(frozen=True)
class Arithmetic:
    """Left-folded arithmetic over two or more operands."""
    op: str  # add | subtract | multiply | divide
    operands: Tuple["Expression", ...]

    OPERATORS = ("add", "subtract", "multiply", "divide")

    def __post_init__(self):
        if self.op not in self.OPERATORS:
            raise ValueError(f"Unsupported arithmetic operator: {self.op}")
        if len(self.operands) < 2:
            raise ValueError("Arithmetic needs at least two operands")


Expression = Union[FieldRef, Literal, Substr, Arithmetic]


@dataclass(frozen=True)
class Average:
    """Group accumulator: mean of an expression, ignoring missing values."""
    operand: Expression


# Predicates

@dataclass(frozen=True)
class Between:
    """Inclusive range."""
    field: str
    low: Any
    high: Any


@dataclass(frozen=True)
class In:
    field: str
    values: Tuple[Any, ...]


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any


Predicate = Union[Between, In, Equals]


# Stages

@dataclass(frozen=True)
class Match:
    predicates: Tuple[Predicate, ...]


@dataclass(frozen=True)
class Project:
    fields: Tuple[Tuple[str, Expression], ...]

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.fields)


@dataclass(frozen=True)
class Group:
    """Group by ``keys``; output rows carry the key fields flattened plus the accumulators."""
    keys: Tuple[Tuple[str, Expression], ...]
    accumulators: Tuple[Tuple[str, Average], ...]


@dataclass(frozen=True)
class Sort:
    """Ascending sort on the listed fields, in order."""
    keys: Tuple[str, ...]


Stage = Union[Match, Project, Group, Sort]


def field_refs(*names: str) -> Tuple[Tuple[str, FieldRef], ...]:
    """Pass-through projection entries for the given fields."""
    return tuple((name, FieldRef(name)) for name in names)
