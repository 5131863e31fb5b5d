"""
In-process adapter evaluating typed pipelines with pandas.
Used for development, tests and small deployments seeded from JSON files.
"""

from typing import Any, Dict, Iterable, List, Sequence, Tuple
import asyncio
import json
import logging
import operator

import pandas as pd

from ...core.domain.pipeline import (
    Arithmetic,
    Between,
    Equals,
    FieldRef,
    Group,
    In,
    Literal,
    Match,
    Project,
    Sort,
    Stage,
    Substr,
)
from ...core.ports.exceptions import RepositoryError
from ...core.ports.pipeline_executor import PipelineExecutor


_OPERATORS = {
    "add": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "divide": operator.truediv,
}


def _as_text(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class MemoryPipelineExecutor(PipelineExecutor):
    """PipelineExecutor over documents held in memory, keyed by (database, collection)."""

    def __init__(self, documents: Dict[Tuple[str, str], List[dict]] = None):
        self._documents: Dict[Tuple[str, str], List[dict]] = {}
        self.logger = logging.getLogger(__name__)
        for (database, collection), docs in (documents or {}).items():
            self.insert(database, collection, docs)

    def insert(self, database: str, collection: str, documents: Iterable[dict]) -> int:
        docs = [dict(document) for document in documents]
        self._documents.setdefault((database, collection), []).extend(docs)
        return len(docs)

    def clear(self, database: str = None, collection: str = None) -> None:
        if database is None:
            self._documents.clear()
            return
        self._documents.pop((database, collection), None)

    @classmethod
    def from_json_file(cls, path: str, database: str, collections: Sequence[str]) -> "MemoryPipelineExecutor":
        """Load a JSON array of metric sample documents into each of ``collections``."""
        with open(path, encoding="utf-8") as handle:
            documents = json.load(handle)
        return cls({(database, collection): documents for collection in collections})

    async def execute_pipeline(
        self,
        database: str,
        collection: str,
        stages: Sequence[Stage]
    ) -> List[Dict[str, Any]]:
        documents = list(self._documents.get((database, collection), []))
        try:
            rows = await asyncio.to_thread(self._run, documents, stages)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.error(f"Error executing pipeline on {database}.{collection}: {e}")
            raise RepositoryError(f"Failed to execute pipeline on {database}.{collection}", e)
        self.logger.debug(f"Pipeline on {database}.{collection} returned {len(rows)} rows")
        return rows

    async def health_check(self) -> bool:
        return True

    def _run(self, documents: List[dict], stages: Sequence[Stage]) -> List[Dict[str, Any]]:
        frame = pd.DataFrame(documents)
        for stage in stages:
            if frame.empty:
                return []
            if isinstance(stage, Match):
                frame = frame[self._mask(frame, stage)]
            elif isinstance(stage, Project):
                frame = self._project(frame, stage.fields)
            elif isinstance(stage, Group):
                frame = self._group(frame, stage)
            elif isinstance(stage, Sort):
                keys = [key for key in stage.keys if key in frame.columns]
                if keys:
                    frame = frame.sort_values(by=keys, kind="mergesort", na_position="first")
            else:
                raise TypeError(f"Unsupported stage: {stage!r}")

        if frame.empty:
            return []
        frame = frame.astype(object).where(frame.notna(), None)
        return frame.to_dict("records")

    def _mask(self, frame: pd.DataFrame, stage: Match) -> pd.Series:
        mask = pd.Series(True, index=frame.index)
        for predicate in stage.predicates:
            if predicate.field not in frame.columns:
                return pd.Series(False, index=frame.index)
            column = frame[predicate.field]
            if isinstance(predicate, Between):
                numeric = pd.to_numeric(column, errors="coerce")
                mask &= numeric.between(predicate.low, predicate.high)
            elif isinstance(predicate, In):
                mask &= column.isin(list(predicate.values))
            elif isinstance(predicate, Equals):
                mask &= column == predicate.value
            else:
                raise TypeError(f"Unsupported predicate: {predicate!r}")
        return mask

    def _project(self, frame: pd.DataFrame, fields) -> pd.DataFrame:
        projected = pd.DataFrame(index=frame.index)
        for name, expr in fields:
            projected[name] = self._evaluate(frame, expr)
        return projected

    def _group(self, frame: pd.DataFrame, stage: Group) -> pd.DataFrame:
        keys = [name for name, _ in stage.keys]
        working = self._project(frame, stage.keys)
        for name, accumulator in stage.accumulators:
            working[name] = self._numeric(frame, accumulator.operand)
        grouped = working.groupby(keys, dropna=False, sort=False)[[name for name, _ in stage.accumulators]]
        return grouped.mean().reset_index()

    def _evaluate(self, frame: pd.DataFrame, expr):
        if isinstance(expr, FieldRef):
            if expr.name in frame.columns:
                return frame[expr.name]
            return pd.Series([None] * len(frame), index=frame.index, dtype=object)
        if isinstance(expr, Literal):
            return expr.value
        if isinstance(expr, Substr):
            values = self._evaluate(frame, expr.operand)
            end = expr.start + expr.length
            return values.map(lambda value: None if pd.isna(value) else _as_text(value)[expr.start:end])
        if isinstance(expr, Arithmetic):
            operands = [self._numeric(frame, operand) for operand in expr.operands]
            result = operands[0]
            for operand in operands[1:]:
                result = _OPERATORS[expr.op](result, operand)
            return result
        raise TypeError(f"Unsupported expression: {expr!r}")

    def _numeric(self, frame: pd.DataFrame, expr) -> pd.Series:
        value = self._evaluate(frame, expr)
        if isinstance(value, pd.Series):
            return pd.to_numeric(value, errors="coerce").astype(float)
        return pd.Series(float(value), index=frame.index)
