# report_builder.py
"""Summary report generation for qualification records.

This module provides the SummaryReportGenerator class which aggregates
qualification records into a SummaryReport and renders it into an
EmailMessage for the mail-dispatch collaborator.
"""

from typing import Dict, Optional, Sequence, Set

from .errors import EmptyInput
from .key_need import KeyNeedClassifier
from .logging_utils import get_logger
from .models import (
    EmailMessage,
    PotentialBand,
    QualificationRecord,
    ReportRow,
    SummaryReport,
    round_half_up,
)
from .report_templates import (
    format_date,
    render_csv,
    render_single_html,
    render_summary_html,
    render_summary_text,
)


def mark_rescored(records: Sequence[QualificationRecord]) -> Set[str]:
    """Return the ids of records that are re-scores of an earlier record.

    A record counts as rescored when an older record exists for the same
    company name (compared case-insensitively).
    """
    oldest: Dict[str, QualificationRecord] = {}
    for record in records:
        key = record.company_name.strip().lower()
        current = oldest.get(key)
        if current is None or record.created_at < current.created_at:
            oldest[key] = record

    return {
        record.id
        for record in records
        if oldest[record.company_name.strip().lower()].id != record.id
    }


class SummaryReportGenerator:
    """Aggregates qualification records into a rendering-ready report.

    This class does not deliver anything: build_email() produces an
    EmailMessage that a mailer sends.

    Attributes:
        classifier: KeyNeedClassifier used for records without a stored key need.
    """

    def __init__(self, classifier: Optional[KeyNeedClassifier] = None):
        self.logger = get_logger(__name__)
        self.classifier = classifier or KeyNeedClassifier()

    def summarize(self, records: Sequence[QualificationRecord]) -> SummaryReport:
        """Aggregate records into a SummaryReport.

        Rows are sorted by score, highest first; ties keep their input order.

        Args:
            records: The records to summarize.

        Returns:
            SummaryReport with counts, rounded average and band counts.

        Raises:
            EmptyInput: If no records are given.
        """
        if not records:
            raise EmptyInput("Cannot summarize zero qualification records")

        rescored_ids = mark_rescored(records)
        ordered = sorted(records, key=lambda r: r.score, reverse=True)
        rows = [self._build_row(record, record.id in rescored_ids) for record in ordered]

        bands = [row.band for row in rows]
        total = len(rows)
        report = SummaryReport(
            rows=rows,
            total_count=total,
            average_score=round_half_up(sum(row.score for row in rows) / total),
            high_count=bands.count(PotentialBand.HIGH),
            medium_count=bands.count(PotentialBand.MEDIUM),
            low_count=bands.count(PotentialBand.LOW),
            key_need=rows[0].key_need if total == 1 else None,
        )

        self.logger.info(
            "Summary report built",
            extra={
                "total_count": report.total_count,
                "average_score": report.average_score,
                "high_count": report.high_count,
                "medium_count": report.medium_count,
                "low_count": report.low_count,
            }
        )
        return report

    def build_email(
        self,
        report: SummaryReport,
        to_email: str,
        include_details: bool = False,
    ) -> EmailMessage:
        """Render a report into an EmailMessage.

        A single-record report always uses the single-record layout.

        Args:
            report: The report to render.
            to_email: Destination address.
            include_details: Render one detailed section per record instead
                            of the compact table.
        """
        if report.is_single():
            row = report.rows[0]
            subject = f"Lead Qualification Summary: {row.name}"
            html_content = render_single_html(report)
        else:
            if include_details:
                subject = f"Detailed Lead Qualification Reports ({report.total_count} leads)"
            else:
                subject = f"Lead Qualifications Summary ({report.total_count} leads)"
            html_content = render_summary_html(report, include_details=include_details)

        return EmailMessage(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            text_content=render_summary_text(report, include_details=include_details),
        )

    def build_single_email(self, record: QualificationRecord, to_email: str) -> EmailMessage:
        """Render one record as a single-qualification email."""
        return self.build_email(self.summarize([record]), to_email)

    def build_csv(self, records: Sequence[QualificationRecord]) -> str:
        """Render records, in the given order, as a CSV export."""
        rows = [
            [
                record.company_name,
                record.industry,
                self.classifier.classify(record),
                record.score,
                record.employee_count,
                record.annual_revenue,
                format_date(record.created_at),
            ]
            for record in records
        ]
        return render_csv(rows)

    def _build_row(self, record: QualificationRecord, is_rescored: bool) -> ReportRow:
        return ReportRow(
            record_id=record.id,
            name=record.company_name or "Unknown",
            industry=record.industry or "Unknown",
            annual_revenue=record.annual_revenue,
            score=record.score,
            band=PotentialBand.for_score(record.score),
            key_need=self.classifier.classify(record),
            date=record.created_at,
            is_rescored=is_rescored,
            summary=record.summary,
            insights=list(record.insights),
            recommendations=list(record.recommendations),
        )
