#!/usr/bin/env python3
"""CLI entry point for the lead qualifier.

Usage:
    lead-qualifier --owner user-1 analyze --profile profile.json --lead lead.json
    lead-qualifier --owner user-1 list
    lead-qualifier --owner user-1 email --to me@example.com --details
    lead-qualifier --owner user-1 export-csv --output leads.csv
    lead-qualifier --owner user-1 ask 3f2b... "What should our first call cover?"

Profile and lead files are JSON objects with the QualifyingBusinessProfile
and LeadSubmission fields.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .config import config
from .errors import LeadQualifierError, ServiceUnavailable
from .logging_utils import setup_logging
from .models import LeadSubmission, QualificationRecord, QualifyingBusinessProfile
from .report_templates import format_date
from .service import LeadQualificationService


def load_json_file(path: str) -> Dict[str, Any]:
    """Load a JSON object from a file.

    Raises:
        ValueError: If the file does not hold a JSON object.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a JSON object")
    return data


def write_output(content: str, output: Optional[str]) -> None:
    """Write content to a file, or to stdout when no file is given."""
    if output:
        Path(output).write_text(content, encoding="utf-8")
        print(f"Saved to: {output}")
    else:
        print(content)


def print_record(record: QualificationRecord, verbose: bool = False) -> None:
    """Print a qualification record."""
    print(f"{record.id}  {record.score:>3}/100  {record.verdict.band.label:<16} "
          f"{record.company_name}  ({format_date(record.created_at)})")
    if verbose:
        print(f"    Key need: {record.key_need or '-'}")
        print(f"    {record.summary}")
        for insight in record.insights:
            print(f"    * {insight}")
        for rec in record.recommendations:
            print(f"    > {rec}")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="lead-qualifier",
        description="Score business leads with a language model and report on them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--owner",
        required=True,
        help="ID of the user who owns the qualification records",
    )

    output = parser.add_argument_group("output options")
    output.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    output.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Qualify a lead and store the result")
    analyze.add_argument("--profile", required=True, help="Qualifying business JSON file")
    analyze.add_argument("--lead", help="Lead JSON file (optional with --rescore)")
    analyze.add_argument(
        "--rescore",
        metavar="RECORD_ID",
        help="Re-run the analysis for a stored record and store a new result",
    )
    analyze.add_argument("--api-key", help="Caller-scoped generation API key")

    subparsers.add_parser("list", help="List stored qualifications, newest first")

    delete = subparsers.add_parser("delete", help="Delete a stored qualification")
    delete.add_argument("record_id")

    email = subparsers.add_parser("email", help="Email a qualification report")
    email.add_argument("--to", required=True, dest="to_email", help="Recipient address")
    email.add_argument(
        "--record",
        metavar="RECORD_ID",
        help="Email a single qualification instead of the summary",
    )
    email.add_argument(
        "--details",
        action="store_true",
        help="Include a detailed section per qualification",
    )

    export_csv = subparsers.add_parser("export-csv", help="Export qualifications as CSV")
    export_csv.add_argument("--output", "-o", help="Output file (default: stdout)")

    export_text = subparsers.add_parser(
        "export-text", help="Export one qualification as a text report"
    )
    export_text.add_argument("record_id")
    export_text.add_argument("--output", "-o", help="Output file (default: stdout)")

    ask = subparsers.add_parser("ask", help="Ask a question about a qualification")
    ask.add_argument("record_id")
    ask.add_argument("question")
    ask.add_argument("--api-key", help="Caller-scoped generation API key")

    return parser


def run_command(args: argparse.Namespace, service: LeadQualificationService) -> int:
    """Dispatch a parsed command to the service.

    Returns:
        Exit code (0 for success, 1 for failure).
    """
    owner = args.owner

    if args.command == "analyze":
        profile = QualifyingBusinessProfile(**load_json_file(args.profile))
        lead = LeadSubmission(**load_json_file(args.lead)) if args.lead else None
        if args.rescore:
            record = service.rescore(owner, args.rescore, profile, lead, api_key=args.api_key)
        elif lead is None:
            print("Error: --lead is required unless --rescore is given", file=sys.stderr)
            return 1
        else:
            record = service.qualify(owner, profile, lead, api_key=args.api_key)
        print_record(record, verbose=True)

    elif args.command == "list":
        records: List[QualificationRecord] = service.list(owner)
        if not records:
            print("No qualifications found.")
        for record in records:
            print_record(record, verbose=args.verbose)

    elif args.command == "delete":
        service.delete(owner, args.record_id)
        print(f"Deleted {args.record_id}")

    elif args.command == "email":
        if args.record:
            result = service.email_qualification(owner, args.record, args.to_email)
        else:
            result = service.email_summary(owner, args.to_email, include_details=args.details)
        print(f"Email sent to {result.to_email} (status {result.status_code})")

    elif args.command == "export-csv":
        write_output(service.export_csv(owner), args.output)

    elif args.command == "export-text":
        write_output(service.export_text(owner, args.record_id), args.output)

    elif args.command == "ask":
        print(service.ask(owner, args.record_id, args.question, api_key=args.api_key))

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.debug else ("INFO" if args.verbose else config.LOG_LEVEL)
    logger = setup_logging(level=level, stream=sys.stderr)

    try:
        with LeadQualificationService() as service:
            return run_command(args, service)

    except ServiceUnavailable as e:
        logger.error(f"Generation service failed: {e}")
        print(f"Error: {e.user_message}", file=sys.stderr)
        return 1
    except LeadQualifierError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError, ValidationError) as e:
        print(f"Error: Invalid input: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled by user.", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
