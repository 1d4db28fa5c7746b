"""
Tests for AnalysisSession state handling.
"""

import asyncio

import pytest

from datacopilot.core.types import CategoryTally
from datacopilot.services.insights import InsightParseError, InsightService
from datacopilot.services.session import AnalysisSession, InsightsPendingError, build_snapshot

VALID_REPLY = '{"overview": "o", "keyFindings": "k", "recommendations": "r"}'


class GatedProvider:
    """Provider whose reply is held until the test releases it."""

    name = "gated"
    model = "gated-model"

    def __init__(self, reply: str = VALID_REPLY):
        self.reply = reply
        self.release = asyncio.Event()
        self.calls = 0

    async def complete(self, system_prompt: str, user_prompt: str):
        self.calls += 1
        await self.release.wait()
        return self.reply


def test_load_file_builds_snapshot(sample_csv: bytes):
    session = AnalysisSession()
    snapshot = session.load_file("people.csv", sample_csv)

    assert snapshot.file_name == "people.csv"
    assert snapshot.profile.summary.row_count == 3
    assert snapshot.categorical_columns == ["city"]
    assert session.selected_column == "city"
    assert session.chart_data == [CategoryTally("Oslo", 2), CategoryTally("Bergen", 1)]


def test_load_file_without_string_columns_has_no_chart():
    session = AnalysisSession()
    session.load_file("nums.csv", b"a,b\n1,2\n3,4\n")
    assert session.selected_column == ""
    assert session.chart_data == []


def test_select_category_column(sample_csv: bytes):
    session = AnalysisSession()
    session.load_file("people.csv", sample_csv)

    tally = session.select_category_column("age")
    assert CategoryTally("(empty)", 1) in tally

    assert session.select_category_column("") == []
    assert session.select_category_column("missing") == []


def test_select_before_upload_is_empty():
    assert AnalysisSession().select_category_column("city") == []


@pytest.mark.asyncio
async def test_generate_insights(make_service, sample_csv: bytes):
    service, provider = make_service(reply=VALID_REPLY)
    session = AnalysisSession(insight_service=service)
    session.load_file("people.csv", sample_csv)

    result = await session.generate_insights()

    assert result is not None and result.overview == "o"
    assert session.insights == result
    assert session.insights_pending is False
    assert '"age"' in provider.calls[0]["user"]


@pytest.mark.asyncio
async def test_generate_insights_without_data_is_noop(make_service):
    service, provider = make_service(reply=VALID_REPLY)
    assert await AnalysisSession(insight_service=service).generate_insights() is None
    assert provider.calls == []


@pytest.mark.asyncio
async def test_second_request_while_pending_is_refused(sample_csv: bytes):
    provider = GatedProvider()
    session = AnalysisSession(insight_service=InsightService(provider))
    session.load_file("people.csv", sample_csv)

    first = asyncio.create_task(session.generate_insights())
    await asyncio.sleep(0)
    assert session.insights_pending is True

    with pytest.raises(InsightsPendingError):
        await session.generate_insights()

    provider.release.set()
    await first
    assert provider.calls == 1
    assert session.insights_pending is False


@pytest.mark.asyncio
async def test_new_upload_clears_insights_and_discards_stale_result(sample_csv: bytes):
    provider = GatedProvider()
    session = AnalysisSession(insight_service=InsightService(provider))
    session.load_file("first.csv", sample_csv)

    pending = asyncio.create_task(session.generate_insights())
    await asyncio.sleep(0)

    session.load_file("second.csv", b"x,y\n1,a\n")
    provider.release.set()

    assert await pending is None
    assert session.insights is None
    assert session.snapshot.file_name == "second.csv"


@pytest.mark.asyncio
async def test_failure_is_recorded(make_service, sample_csv: bytes):
    service, _ = make_service(reply="not json")
    session = AnalysisSession(insight_service=service)
    session.load_file("people.csv", sample_csv)

    with pytest.raises(InsightParseError):
        await session.generate_insights()

    assert session.insights_error == "Failed to parse model response"
    assert session.insights_pending is False


def test_build_snapshot_preselects_first_string_column(sample_csv: bytes):
    snapshot = build_snapshot("people.csv", sample_csv)

    assert snapshot.selected_column == "city"
    assert snapshot.chart_data == [CategoryTally("Oslo", 2), CategoryTally("Bergen", 1)]
    data = snapshot.to_dict()
    assert data["selectedCategoryColumn"] == "city"
    assert data["totalDataRows"] == 3
    assert data["truncated"] is False
    assert data["chartData"][0] == {"category": "Oslo", "count": 2}


def test_build_snapshot_without_string_columns():
    data = build_snapshot("nums.csv", b"a,b\n1,2\n3,4\n").to_dict()
    assert data["selectedCategoryColumn"] is None
    assert data["chartData"] == []
    assert data["categoricalColumns"] == []


def test_load_file_uses_build_snapshot(sample_csv: bytes):
    session = AnalysisSession()
    loaded = session.load_file("people.csv", sample_csv)
    assert loaded.to_dict() == build_snapshot("people.csv", sample_csv).to_dict()
