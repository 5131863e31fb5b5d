"""
Unit tests for the typed pipeline builder.
"""

import pytest

from ar_analytics.core.domain.filters import AvailabilityQuery, build_filter
from ar_analytics.core.domain.pipeline import (
    Arithmetic,
    Average,
    Between,
    Equals,
    FieldRef,
    Group,
    In,
    Literal,
    Match,
    Project,
    Sort,
    Substr
)
from ar_analytics.core.domain.results import EntityLevel
from ar_analytics.core.services.availability_calculations import AvailabilityCalculations
from ar_analytics.core.services.pipeline_builder import (
    AVERAGED_FIELDS,
    DAILY_SORT,
    IDENTITY_FIELDS,
    MONTHLY_SORT,
    PipelineBuilder
)


@pytest.fixture
def builder():
    return PipelineBuilder()


def _filter(granularity=None, level=EntityLevel.SUPERGROUP, **kwargs):
    query = AvailabilityQuery(
        start_time="2015-06-20T12:00:00Z",
        end_time="2015-06-26T23:00:00Z",
        granularity=granularity,
        **kwargs
    )
    return build_filter(query, level)


class TestMatchStage:
    """Test cases for the match stage."""

    def test_minimal_match_carries_range_and_fixed_constraints(self, builder):
        match = builder.match(_filter())

        assert match.predicates == (
            Between("date", 20150620, 20150626),
            Equals("infrastructure", "Production"),
            Equals("certification", "Certified"),
            Equals("production", "Y"),
            Equals("monitored", "Y"),
        )

    def test_optional_predicates(self, builder):
        match = builder.match(_filter(
            level=EntityLevel.GROUP,
            profiles=("ap1",),
            namespaces=("ns1", "ns0"),
            group_names=("NGI_A",),
            report="Report_A",
            production="false"
        ))

        assert In("profile", ("ap1",)) in match.predicates
        assert In("namespace", ("ns0", "ns1")) in match.predicates
        assert In("ngi", ("NGI_A",)) in match.predicates
        assert Equals("report", "Report_A") in match.predicates
        assert Equals("production", "N") in match.predicates

    def test_monthly_match_uses_month_bounds(self, builder):
        match = builder.match(_filter(granularity="monthly"))
        assert match.predicates[0] == Between("date", 20150600, 20150699)


class TestDailyPipeline:
    """Test cases for the daily pipeline."""

    def test_stage_shapes(self, builder):
        stages = builder.build(_filter())

        assert [type(stage) for stage in stages] == [Match, Project, Sort]
        project = stages[1]
        assert project.fields[0] == ("date", Substr(FieldRef("date"), 0, 8))
        for name in IDENTITY_FIELDS + ("availability", "reliability", "weight"):
            assert (name, FieldRef(name)) in project.fields
        assert stages[2] == Sort(DAILY_SORT)

    def test_sort_order(self):
        assert DAILY_SORT == ("profile", "supergroup", "ngi", "site", "date")


class TestMonthlyPipeline:
    """Test cases for the monthly pipeline."""

    def test_stage_shapes(self, builder):
        stages = builder.build(_filter(granularity="monthly"))

        assert [type(stage) for stage in stages] == [Match, Group, Project, Sort]
        assert stages[3] == Sort(MONTHLY_SORT)

    def test_group_keys_and_accumulators(self, builder):
        group = builder.build(_filter(granularity="monthly"))[1]

        assert group.keys[0] == ("date", Substr(FieldRef("date"), 0, 6))
        assert [name for name, _ in group.keys[1:]] == list(IDENTITY_FIELDS)
        assert group.accumulators == tuple((name, Average(FieldRef(name))) for name in AVERAGED_FIELDS)

    def test_projection_computes_formulas(self, builder):
        project = builder.build(_filter(granularity="monthly"))[2]
        fields = dict(project.fields)

        assert fields["availability"] == AvailabilityCalculations.availability_expression()
        assert fields["reliability"] == AvailabilityCalculations.reliability_expression()
        assert "weight" in project.names

    def test_availability_expression_shape(self):
        expression = AvailabilityCalculations.availability_expression()

        assert expression == Arithmetic("multiply", (
            Arithmetic("divide", (
                FieldRef("uptime"),
                Arithmetic("subtract", (Literal(1.00000001), FieldRef("unknown"))),
            )),
            Literal(100),
        ))

    def test_sort_order(self):
        assert MONTHLY_SORT == ("namespace", "profile", "supergroup", "ngi", "site", "date")


class TestArithmeticValidation:
    """Test cases for expression validation."""

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            Arithmetic("power", (Literal(1), Literal(2)))

    def test_single_operand(self):
        with pytest.raises(ValueError):
            Arithmetic("add", (Literal(1),))
