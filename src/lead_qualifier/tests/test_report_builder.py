# src/lead_qualifier/tests/test_report_builder.py
"""
Unit tests for summary report generation.

Tests cover:
- EmptyInput for zero records
- Stable descending score sort
- Rounded average and band counts
- Key need surfaced for single-record reports only
- Rescored marking
- Email subjects and bodies for single, compact and detailed reports
- CSV export through the classifier
"""
from datetime import datetime, timedelta, timezone

import pytest

from lead_qualifier.errors import EmptyInput
from lead_qualifier.models import PotentialBand, QualificationRecord
from lead_qualifier.report_builder import SummaryReportGenerator, mark_rescored


BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_record(name, score, days=0, key_need=None, summary=""):
    return QualificationRecord(
        owner_id="user-1",
        company_name=name,
        industry="Retail",
        annual_revenue="$1M-$5M",
        score=score,
        summary=summary,
        key_need=key_need,
        created_at=BASE_TIME + timedelta(days=days),
    )


@pytest.fixture
def generator():
    return SummaryReportGenerator()


@pytest.fixture
def four_records():
    return [
        make_record("Alpha", 90, 0),
        make_record("Bravo", 55, 1),
        make_record("Charlie", 70, 2),
        make_record("Delta", 81, 3),
    ]


class TestSummarize:
    """Tests for summarize()."""

    @pytest.mark.unit
    def test_empty_input(self, generator):
        with pytest.raises(EmptyInput):
            generator.summarize([])

    @pytest.mark.unit
    def test_aggregates(self, generator, four_records):
        report = generator.summarize(four_records)

        assert [row.score for row in report.rows] == [90, 81, 70, 55]
        assert report.total_count == 4
        assert report.average_score == 74
        assert report.high_count == 2
        assert report.medium_count == 1
        assert report.low_count == 1
        assert report.key_need is None
        assert report.is_single() is False

    @pytest.mark.unit
    def test_stable_sort_on_ties(self, generator):
        records = [make_record("First", 70), make_record("Second", 70), make_record("Top", 95)]

        report = generator.summarize(records)

        assert [row.name for row in report.rows] == ["Top", "First", "Second"]

    @pytest.mark.unit
    def test_average_rounds_half_up(self, generator):
        report = generator.summarize([make_record("A", 73), make_record("B", 74)])

        assert report.average_score == 74

    @pytest.mark.unit
    def test_row_fields(self, generator):
        record = make_record("Alpha", 85, key_need="Finance")

        row = generator.summarize([record]).rows[0]

        assert row.record_id == record.id
        assert row.name == "Alpha"
        assert row.band == PotentialBand.HIGH
        assert row.key_need == "Finance"
        assert row.date == record.created_at

    @pytest.mark.unit
    def test_single_record_surfaces_key_need(self, generator):
        record = make_record("Solo", 65, summary="Hiring and retention issues")

        report = generator.summarize([record])

        assert report.is_single() is True
        assert report.key_need == "Talent"

    @pytest.mark.unit
    def test_input_not_mutated(self, generator, four_records):
        before = [r.id for r in four_records]

        generator.summarize(four_records)

        assert [r.id for r in four_records] == before


class TestMarkRescored:
    """Tests for mark_rescored()."""

    @pytest.mark.unit
    def test_newer_duplicates_marked(self):
        original = make_record("Acme", 60, days=0)
        rescore = make_record("acme ", 75, days=5)
        other = make_record("Globex", 80, days=2)

        assert mark_rescored([rescore, other, original]) == {rescore.id}

    @pytest.mark.unit
    def test_rows_flagged(self, generator):
        original = make_record("Acme", 60, days=0)
        rescore = make_record("Acme", 75, days=5)

        report = generator.summarize([rescore, original])

        flags = {row.record_id: row.is_rescored for row in report.rows}
        assert flags == {rescore.id: True, original.id: False}


class TestBuildEmail:
    """Tests for email building."""

    @pytest.mark.unit
    def test_compact_summary(self, generator, four_records):
        report = generator.summarize(four_records)

        message = generator.build_email(report, "me@example.com")

        assert message.to_email == "me@example.com"
        assert message.subject == "Lead Qualifications Summary (4 leads)"
        assert "<table" in message.html_content
        assert "Key Need" in message.html_content
        assert "Average score: 74/100" in message.text_content

    @pytest.mark.unit
    def test_detailed_summary(self, generator, four_records):
        report = generator.summarize(four_records)

        message = generator.build_email(report, "me@example.com", include_details=True)

        assert message.subject == "Detailed Lead Qualification Reports (4 leads)"
        assert "<table" not in message.html_content
        assert message.html_content.count("Key Need:") == 4

    @pytest.mark.unit
    def test_single_record_email(self, generator):
        record = make_record("Solo Inc", 82, summary="Great fit")

        message = generator.build_single_email(record, "me@example.com")

        assert message.subject == "Lead Qualification Summary: Solo Inc"
        assert "High Potential" in message.html_content
        assert "Great fit" in message.html_content


class TestBuildCsv:
    """Tests for CSV export."""

    @pytest.mark.unit
    def test_csv_rows_in_given_order(self, generator):
        records = [make_record("Zeta", 40, days=1), make_record("Eta", 90, days=0, key_need="Strategy")]

        lines = generator.build_csv(records).split("\n")

        assert lines[0] == "Company Name,Industry,Key Need,Score,Employee Count,Annual Revenue,Date Added"
        assert lines[1] == '"Zeta","Retail","Growth","40","","$1M-$5M","2024-03-02"'
        assert lines[2] == '"Eta","Retail","Strategy","90","","$1M-$5M","2024-03-01"'
