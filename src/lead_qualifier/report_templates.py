# report_templates.py
"""Rendering of qualification reports as HTML, plain text and CSV.

All user-supplied text is HTML-escaped before it is placed in markup.
"""

import csv
import io
from datetime import datetime
from html import escape
from typing import Iterable, List, Optional, Sequence

from .models import PotentialBand, ReportRow, SummaryReport, Verdict

BAND_COLORS = {
    PotentialBand.HIGH: "#34D399",
    PotentialBand.MEDIUM: "#FBBF24",
    PotentialBand.LOW: "#EF4444",
}

CSV_HEADERS = [
    "Company Name",
    "Industry",
    "Key Need",
    "Score",
    "Employee Count",
    "Annual Revenue",
    "Date Added",
]

DATE_FORMAT = "%Y-%m-%d"

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
  <head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <style>
      body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 800px; margin: 0 auto; padding: 20px; }}
    </style>
  </head>
  <body>
    <div style="text-align: center; margin-bottom: 30px;">
      <h1 style="margin-bottom: 10px;">{title}</h1>
      <p style="font-size: 16px; color: #666;">{subtitle}</p>
    </div>
{body}
    <div style="text-align: center; color: #666; font-size: 12px; margin-top: 40px; padding-top: 20px; border-top: 1px solid #eee;">
      <p>This is an automated summary generated by your lead qualification tool.</p>
    </div>
  </body>
</html>
"""

CELL_STYLE = "padding: 10px; border-bottom: 1px solid #eee;"
HEADER_CELL_STYLE = "padding: 12px 10px; border-bottom: 2px solid #ddd;"


def format_date(value: Optional[datetime]) -> str:
    """Format a timestamp for display, or N/A."""
    if value is None:
        return "N/A"
    return value.strftime(DATE_FORMAT)


def score_badge(score: int, band: PotentialBand) -> str:
    return (
        '<span style="display: inline-block; padding: 4px 8px; border-radius: 4px; '
        f'background-color: {BAND_COLORS[band]}; color: white; font-weight: bold;">'
        f"{score}/100</span>"
    )


def _html_list(items: Sequence[str], empty_text: str) -> str:
    if not items:
        return f"<li>{escape(empty_text)}</li>"
    return "".join(
        f'<li style="margin-bottom: 8px;">{escape(item)}</li>' for item in items
    )


def render_page(title: str, subtitle: str, body: str) -> str:
    """Wrap report body markup in the standard email page."""
    return PAGE_TEMPLATE.format(
        title=escape(title),
        subtitle=escape(subtitle),
        body=body,
    )


def render_aggregate_html(report: SummaryReport) -> str:
    """The aggregate block: totals, average and band counts."""
    return (
        '    <div style="background-color: #f9fafb; border-radius: 8px; padding: 15px; margin-bottom: 20px;">\n'
        f"      <p><strong>Total leads:</strong> {report.total_count}</p>\n"
        f"      <p><strong>Average score:</strong> {report.average_score}/100</p>\n"
        f"      <p><strong>{PotentialBand.HIGH.label}:</strong> {report.high_count} &middot; "
        f"<strong>{PotentialBand.MEDIUM.label}:</strong> {report.medium_count} &middot; "
        f"<strong>{PotentialBand.LOW.label}:</strong> {report.low_count}</p>\n"
        "    </div>\n"
    )


def render_table_html(rows: Iterable[ReportRow]) -> str:
    """Compact table of report rows."""
    headers = ["Company", "Industry", "Revenue", "Score", "Key Need", "Date"]
    header_html = "".join(
        f'<th style="{HEADER_CELL_STYLE}">{name}</th>' for name in headers
    )

    body_rows: List[str] = []
    for row in rows:
        name = escape(row.name)
        if row.is_rescored:
            name += ' <em style="color: #666;">(rescored)</em>'
        body_rows.append(
            "<tr>"
            f'<td style="{CELL_STYLE}">{name}</td>'
            f'<td style="{CELL_STYLE}">{escape(row.industry)}</td>'
            f'<td style="{CELL_STYLE}">{escape(row.annual_revenue or "N/A")}</td>'
            f'<td style="{CELL_STYLE} text-align: center;">{score_badge(row.score, row.band)}</td>'
            f'<td style="{CELL_STYLE}">{escape(row.key_need)}</td>'
            f'<td style="{CELL_STYLE}">{format_date(row.date)}</td>'
            "</tr>"
        )

    return (
        '    <div style="margin-bottom: 30px; overflow-x: auto;">\n'
        '      <table style="width: 100%; border-collapse: collapse; font-family: Arial, sans-serif; min-width: 600px;">\n'
        f'        <thead><tr style="background-color: #f9fafb; text-align: left;">{header_html}</tr></thead>\n'
        f"        <tbody>{''.join(body_rows)}</tbody>\n"
        "      </table>\n"
        "    </div>\n"
    )


def render_detail_html(row: ReportRow) -> str:
    """One detailed per-record section."""
    return (
        '    <div style="background-color: #f9f9f9; border-radius: 8px; padding: 20px; margin-bottom: 30px;">\n'
        f'      <h2 style="margin: 0; font-size: 20px;">{escape(row.name)}</h2>\n'
        f'      <p style="font-size: 14px; color: #666;">{escape(row.industry)} &middot; '
        f"{score_badge(row.score, row.band)} &middot; {row.band.label}</p>\n"
        f'      <p style="font-size: 14px; color: #666;">Date: {format_date(row.date)} &middot; '
        f"Revenue: {escape(row.annual_revenue or 'Unknown')}</p>\n"
        '      <div style="background-color: #F3E8FF; border-radius: 6px; padding: 15px; margin: 20px 0;">\n'
        f'        <h3 style="margin-top: 0; color: #7E22CE; font-size: 16px;">Key Need: {escape(row.key_need)}</h3>\n'
        "      </div>\n"
        '      <h3 style="border-bottom: 1px solid #ddd; padding-bottom: 8px; font-size: 16px;">Summary</h3>\n'
        f"      <p>{escape(row.summary or 'No summary available')}</p>\n"
        '      <h3 style="border-bottom: 1px solid #ddd; padding-bottom: 8px; font-size: 16px;">Key Insights</h3>\n'
        f'      <ul style="padding-left: 20px;">{_html_list(row.insights, "No insights available")}</ul>\n'
        '      <h3 style="border-bottom: 1px solid #ddd; padding-bottom: 8px; font-size: 16px;">Recommendations</h3>\n'
        f'      <ul style="padding-left: 20px;">{_html_list(row.recommendations, "No recommendations available")}</ul>\n'
        "    </div>\n"
    )


def render_summary_html(report: SummaryReport, include_details: bool = False) -> str:
    """Full HTML page for a multi-record report.

    Compact mode renders the aggregate block and the table; detailed mode
    renders one section per record after the aggregate block.
    """
    title = (
        "Detailed Lead Qualification Reports"
        if include_details
        else "Lead Qualifications Summary"
    )
    subtitle = f"A summary of all your qualified leads ({report.total_count} total)"

    body = render_aggregate_html(report)
    if include_details:
        body += "".join(render_detail_html(row) for row in report.rows)
    else:
        body += render_table_html(report.rows)

    return render_page(title, subtitle, body)


def render_single_html(report: SummaryReport) -> str:
    """Full HTML page for a single-record report, key need shown prominently."""
    row = report.rows[0]
    return render_page(
        "Lead Qualification Summary",
        f"{row.name}: {row.band.label}",
        render_detail_html(row),
    )


def render_summary_text(report: SummaryReport, include_details: bool = False) -> str:
    """Plain-text alternative body for a report email."""
    if report.is_single():
        title = f"Lead Qualification Summary: {report.rows[0].name}"
    else:
        title = f"Lead Qualifications Summary ({report.total_count} leads)"
    lines = [
        title,
        f"Average score: {report.average_score}/100",
        (
            f"High: {report.high_count}  Medium: {report.medium_count}  "
            f"Low: {report.low_count}"
        ),
    ]
    if report.key_need:
        lines.append(f"Key need: {report.key_need}")
    lines.append("")

    for row in report.rows:
        marker = " (rescored)" if row.is_rescored else ""
        lines.append(
            f"- {row.name}{marker} | {row.industry} | {row.score}/100 "
            f"({row.band.label}) | {row.key_need} | {format_date(row.date)}"
        )
        if include_details or report.is_single():
            if row.summary:
                lines.append(f"  {row.summary}")
            for insight in row.insights:
                lines.append(f"  * {insight}")
            for rec in row.recommendations:
                lines.append(f"  > {rec}")

    return "\n".join(lines)


def render_verdict_text(company_name: str, verdict: Verdict) -> str:
    """Render one verdict as a downloadable plain-text report.

    Insights and recommendations are numbered from 1.
    """
    lines = [
        f"LEAD QUALIFICATION REPORT: {company_name}",
        f"Score: {verdict.score}/100 ({verdict.band.label})",
        "",
        "SUMMARY",
        verdict.summary,
        "",
        "KEY INSIGHTS",
    ]
    lines.extend(f"{i}. {insight}" for i, insight in enumerate(verdict.insights, start=1))
    lines.append("")
    lines.append("RECOMMENDATIONS")
    lines.extend(f"{i}. {rec}" for i, rec in enumerate(verdict.recommendations, start=1))
    return "\n".join(lines) + "\n"


def render_csv(rows: Iterable[Sequence[object]]) -> str:
    """Render CSV with the standard header line and fully quoted data rows."""
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADERS)
    csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n").writerows(rows)
    return buffer.getvalue().rstrip("\n")
