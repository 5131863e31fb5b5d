"""
Unit tests for the MongoDB pipeline executor.
"""

import pytest
from unittest.mock import MagicMock
from pymongo.errors import PyMongoError, ServerSelectionTimeoutError

from ar_analytics.adapters.repositories.mongo_executor import MongoPipelineExecutor
from ar_analytics.core.domain.filters import AvailabilityQuery, build_filter
from ar_analytics.core.domain.pipeline import (
    Arithmetic,
    Average,
    FieldRef,
    Group,
    Literal,
    Project,
    Sort,
    Substr
)
from ar_analytics.core.ports.exceptions import RepositoryError
from ar_analytics.core.services.pipeline_builder import PipelineBuilder


@pytest.fixture
def mock_client():
    return MagicMock()


@pytest.fixture
def executor(mock_client):
    return MongoPipelineExecutor("mongodb://localhost:27017", client=mock_client)


def _filter(granularity=None, **kwargs):
    return build_filter(AvailabilityQuery(
        start_time="2015-06-20T12:00:00Z",
        end_time="2015-06-26T23:00:00Z",
        granularity=granularity,
        **kwargs
    ))


class TestLowering:
    """Test cases for translating typed stages into aggregation documents."""

    def test_daily_pipeline(self):
        pipeline = MongoPipelineExecutor.lower(PipelineBuilder().build(_filter(profiles=("ap1",))))

        assert pipeline[0] == {"$match": {
            "date": {"$gte": 20150620, "$lte": 20150626},
            "profile": {"$in": ["ap1"]},
            "infrastructure": "Production",
            "certification": "Certified",
            "production": "Y",
            "monitored": "Y",
        }}
        projection = pipeline[1]["$project"]
        assert projection["_id"] == 0
        assert projection["date"] == {"$substr": ["$date", 0, 8]}
        assert projection["site"] == "$site"
        assert pipeline[2] == {"$sort": {"profile": 1, "supergroup": 1, "ngi": 1, "site": 1, "date": 1}}

    def test_monthly_pipeline(self):
        pipeline = MongoPipelineExecutor.lower(PipelineBuilder().build(_filter(granularity="monthly")))
        stages = [next(iter(stage)) for stage in pipeline]

        assert stages == ["$match", "$group", "$project", "$project", "$sort"]
        assert pipeline[0]["$match"]["date"] == {"$gte": 20150600, "$lte": 20150699}

        group = pipeline[1]["$group"]
        assert group["_id"]["date"] == {"$substr": ["$date", 0, 6]}
        assert group["_id"]["supergroup"] == "$supergroup"
        assert group["uptime"] == {"$avg": "$uptime"}
        assert group["weight"] == {"$avg": "$weight"}

        flatten = pipeline[2]["$project"]
        assert flatten["date"] == "$_id.date"
        assert flatten["uptime"] == 1

        projection = pipeline[3]["$project"]
        assert projection["availability"] == {"$multiply": [
            {"$divide": ["$uptime", {"$subtract": [1.00000001, "$unknown"]}]},
            100,
        ]}
        assert projection["reliability"] == {"$multiply": [
            {"$divide": [
                "$uptime",
                {"$subtract": [{"$subtract": [1.00000001, "$unknown"]}, "$downtime"]},
            ]},
            100,
        ]}

    def test_string_literal_is_escaped(self):
        pipeline = MongoPipelineExecutor.lower((Project((("kind", Literal("$site")),)),))
        assert pipeline[0]["$project"]["kind"] == {"$literal": "$site"}

    def test_binary_operators_fold_left(self):
        expr = Arithmetic("subtract", (FieldRef("a"), FieldRef("b"), FieldRef("c")))
        pipeline = MongoPipelineExecutor.lower((Project((("x", expr),)),))

        assert pipeline[0]["$project"]["x"] == {"$subtract": [{"$subtract": ["$a", "$b"]}, "$c"]}

    def test_variadic_operators_stay_flat(self):
        expr = Arithmetic("add", (FieldRef("a"), FieldRef("b"), Literal(1)))
        pipeline = MongoPipelineExecutor.lower((Project((("x", expr),)),))

        assert pipeline[0]["$project"]["x"] == {"$add": ["$a", "$b", 1]}

    def test_group_lowering(self):
        stage = Group((("month", Substr(FieldRef("date"), 0, 6)),), (("up", Average(FieldRef("uptime"))),))
        pipeline = MongoPipelineExecutor.lower((stage, Sort(("month",))))

        assert pipeline == [
            {"$group": {"_id": {"month": {"$substr": ["$date", 0, 6]}}, "up": {"$avg": "$uptime"}}},
            {"$project": {"_id": 0, "month": "$_id.month", "up": 1}},
            {"$sort": {"month": 1}},
        ]

    def test_unsupported_stage(self):
        with pytest.raises(TypeError):
            MongoPipelineExecutor.lower(("bogus",))


class TestMongoPipelineExecutor:
    """Test cases for executing pipelines through pymongo."""

    @pytest.mark.asyncio
    async def test_execute_pipeline(self, executor, mock_client):
        collection = mock_client["argo_egi"]["sites"]
        collection.aggregate.return_value = iter([{"_id": "x", "site": "ST01", "date": "20150622"}])

        rows = await executor.execute_pipeline("argo_egi", "sites", PipelineBuilder().build(_filter()))

        assert rows == [{"site": "ST01", "date": "20150622"}]
        pipeline = collection.aggregate.call_args[0][0]
        assert "$match" in pipeline[0]

    @pytest.mark.asyncio
    async def test_store_fault_raises_repository_error(self, executor, mock_client):
        mock_client["argo_egi"]["sites"].aggregate.side_effect = PyMongoError("connection refused")

        with pytest.raises(RepositoryError) as exc_info:
            await executor.execute_pipeline("argo_egi", "sites", PipelineBuilder().build(_filter()))

        assert "connection refused" in exc_info.value.details

    @pytest.mark.asyncio
    async def test_health_check(self, executor, mock_client):
        assert await executor.health_check() is True
        mock_client.admin.command.assert_called_once_with("ping")

    @pytest.mark.asyncio
    async def test_health_check_failure(self, executor, mock_client):
        mock_client.admin.command.side_effect = ServerSelectionTimeoutError("timeout")
        assert await executor.health_check() is False

    def test_close(self, executor, mock_client):
        executor.close()
        mock_client.close.assert_called_once()
