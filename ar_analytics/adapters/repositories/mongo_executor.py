"""
MongoDB adapter for aggregation pipelines.
This implements the PipelineExecutor port using pymongo.
"""

from typing import Any, Dict, List, Sequence
import asyncio
import logging

from pymongo import MongoClient
from pymongo.errors import PyMongoError

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


class MongoPipelineExecutor(PipelineExecutor):
    """
    MongoDB adapter that implements the PipelineExecutor port.
    Lowers typed stages into aggregation documents and runs them with pymongo.
    """

    def __init__(self, uri: str, client: MongoClient = None, timeout_ms: int = 5000):
        """
        Initialize the executor.

        Args:
            uri: MongoDB connection string (e.g. 'mongodb://localhost:27017')
            client: Pre-built client, mainly for tests
            timeout_ms: Server selection timeout in milliseconds
        """
        self.uri = uri
        self.logger = logging.getLogger(__name__)
        self.client = client or MongoClient(uri, serverSelectionTimeoutMS=timeout_ms)

    async def execute_pipeline(
        self,
        database: str,
        collection: str,
        stages: Sequence[Stage]
    ) -> List[Dict[str, Any]]:
        pipeline = self.lower(stages)
        self.logger.info(f"Executing pipeline on {database}.{collection}: {pipeline}")

        try:
            rows = await asyncio.to_thread(self._aggregate, database, collection, pipeline)
        except PyMongoError as e:
            self.logger.error(f"Error executing pipeline on {database}.{collection}: {e}")
            raise RepositoryError(f"Failed to execute pipeline on {database}.{collection}", e)

        self.logger.info(f"Pipeline returned {len(rows)} rows")
        return rows

    def _aggregate(self, database: str, collection: str, pipeline: List[dict]) -> List[Dict[str, Any]]:
        cursor = self.client[database][collection].aggregate(pipeline)
        rows = []
        for document in cursor:
            document.pop("_id", None)
            rows.append(document)
        return rows

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self.client.admin.command, "ping")
            return True
        except PyMongoError as e:
            self.logger.warning(f"MongoDB health check failed: {e}")
            return False

    def close(self):
        """Close the MongoDB client connection."""
        if self.client:
            self.client.close()
            self.logger.info("MongoDB client connection closed")

    # Lowering

    @classmethod
    def lower(cls, stages: Sequence[Stage]) -> List[dict]:
        """Translate typed stages into MongoDB aggregation documents."""
        pipeline: List[dict] = []
        for stage in stages:
            if isinstance(stage, Match):
                pipeline.append({"$match": cls._lower_match(stage)})
            elif isinstance(stage, Project):
                projection = {"_id": 0}
                projection.update({name: cls._lower_expression(expr) for name, expr in stage.fields})
                pipeline.append({"$project": projection})
            elif isinstance(stage, Group):
                group = {"_id": {name: cls._lower_expression(expr) for name, expr in stage.keys}}
                for name, accumulator in stage.accumulators:
                    group[name] = {"$avg": cls._lower_expression(accumulator.operand)}
                # flatten the compound _id so later stages see plain fields
                flatten = {"_id": 0}
                flatten.update({name: f"$_id.{name}" for name, _ in stage.keys})
                flatten.update({name: 1 for name, _ in stage.accumulators})
                pipeline.append({"$group": group})
                pipeline.append({"$project": flatten})
            elif isinstance(stage, Sort):
                pipeline.append({"$sort": {key: 1 for key in stage.keys}})
            else:
                raise TypeError(f"Unsupported stage: {stage!r}")
        return pipeline

    @staticmethod
    def _lower_match(stage: Match) -> dict:
        query: Dict[str, Any] = {}
        for predicate in stage.predicates:
            if isinstance(predicate, Between):
                query[predicate.field] = {"$gte": predicate.low, "$lte": predicate.high}
            elif isinstance(predicate, In):
                query[predicate.field] = {"$in": list(predicate.values)}
            elif isinstance(predicate, Equals):
                query[predicate.field] = predicate.value
            else:
                raise TypeError(f"Unsupported predicate: {predicate!r}")
        return query

    @classmethod
    def _lower_expression(cls, expr) -> Any:
        if isinstance(expr, FieldRef):
            return f"${expr.name}"
        if isinstance(expr, Literal):
            if isinstance(expr.value, str):
                return {"$literal": expr.value}
            return expr.value
        if isinstance(expr, Substr):
            return {"$substr": [cls._lower_expression(expr.operand), expr.start, expr.length]}
        if isinstance(expr, Arithmetic):
            operands = [cls._lower_expression(operand) for operand in expr.operands]
            operator = f"${expr.op}"
            if expr.op in ("add", "multiply"):
                return {operator: operands}
            # $subtract and $divide take exactly two arguments
            lowered = operands[0]
            for operand in operands[1:]:
                lowered = {operator: [lowered, operand]}
            return lowered
        raise TypeError(f"Unsupported expression: {expr!r}")
