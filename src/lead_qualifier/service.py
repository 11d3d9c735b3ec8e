# service.py
"""Lead qualification service.

Ties the analysis pipeline, the record store, report generation and mail
delivery together into the operations a caller (CLI, web handler) needs.
"""

from typing import List, Optional

from .analysis import AnalysisPipeline
from .key_need import KeyNeedClassifier
from .logging_utils import LogContext, get_logger
from .mailer import ReportMailer, SendResult
from .models import (
    LeadSubmission,
    QualificationRecord,
    QualifyingBusinessProfile,
    SummaryReport,
)
from .report_builder import SummaryReportGenerator
from .report_templates import render_verdict_text
from .store import QualificationStore


class LeadQualificationService:
    """Owner-scoped lead qualification operations.

    Every operation takes the caller's owner id; records belonging to any
    other owner are invisible.

    Attributes:
        pipeline: AnalysisPipeline used to score leads.
        store: QualificationStore holding the records.
        report_generator: SummaryReportGenerator for summaries and exports.
        mailer: ReportMailer used to deliver report emails.
    """

    def __init__(
        self,
        pipeline: Optional[AnalysisPipeline] = None,
        store: Optional[QualificationStore] = None,
        report_generator: Optional[SummaryReportGenerator] = None,
        mailer: Optional[ReportMailer] = None,
        classifier: Optional[KeyNeedClassifier] = None,
    ):
        self.logger = get_logger(__name__)

        self._pipeline = pipeline
        self._owns_pipeline = pipeline is None
        self._store = store
        self._mailer = mailer

        self.classifier = classifier or KeyNeedClassifier()
        self.report_generator = report_generator or SummaryReportGenerator(self.classifier)

    @property
    def pipeline(self) -> AnalysisPipeline:
        """Get or create the analysis pipeline."""
        if self._pipeline is None:
            self._pipeline = AnalysisPipeline()
        return self._pipeline

    @property
    def store(self) -> QualificationStore:
        """Get or create the qualification store."""
        if self._store is None:
            self._store = QualificationStore()
        return self._store

    @property
    def mailer(self) -> ReportMailer:
        """Get or create the report mailer."""
        if self._mailer is None:
            self._mailer = ReportMailer()
        return self._mailer

    def qualify(
        self,
        owner_id: str,
        profile: QualifyingBusinessProfile,
        lead: LeadSubmission,
        api_key: Optional[str] = None,
    ) -> QualificationRecord:
        """Analyze a lead and store the result with its key need.

        Raises:
            Unauthenticated: If no owner id is given.
            ConfigurationError: If no generation credential is available.
            ServiceUnavailable: If the generation call fails.
            UnparsableResponse: If the model output holds no valid verdict.
        """
        owner_id = QualificationStore.require_owner(owner_id)

        with LogContext(owner_id=owner_id):
            verdict = self.pipeline.analyze(profile, lead, api_key=api_key)
            key_need = self.classifier.classify_verdict(verdict)
            record = self.store.create(owner_id, lead, verdict, key_need=key_need)

        self.logger.info(
            "Lead qualified",
            extra={
                "record_id": record.id,
                "company_name": record.company_name,
                "score": record.score,
                "key_need": key_need,
            }
        )
        return record

    def rescore(
        self,
        owner_id: str,
        record_id: str,
        profile: QualifyingBusinessProfile,
        updated_lead: Optional[LeadSubmission] = None,
        api_key: Optional[str] = None,
    ) -> QualificationRecord:
        """Re-run the analysis for a stored lead and store a new record.

        The original record is left untouched.

        Args:
            owner_id: The authenticated user.
            record_id: The record to re-score.
            profile: The qualifying business.
            updated_lead: Changed lead data; defaults to the stored lead.
            api_key: Optional caller-scoped generation credential.

        Raises:
            NotFound: If the record is absent or owned by someone else.
        """
        original = self.store.get(owner_id, record_id)
        lead = updated_lead or original.lead

        self.logger.info(
            "Rescoring lead",
            extra={"record_id": record_id, "company_name": lead.company_name}
        )
        return self.qualify(owner_id, profile, lead, api_key=api_key)

    def list(self, owner_id: str) -> List[QualificationRecord]:
        """List the owner's records, most recent first."""
        return self.store.list(owner_id)

    def get(self, owner_id: str, record_id: str) -> QualificationRecord:
        return self.store.get(owner_id, record_id)

    def delete(self, owner_id: str, record_id: str) -> None:
        """Delete one of the owner's records."""
        self.store.delete(owner_id, record_id)

    def summarize(self, owner_id: str) -> SummaryReport:
        """Summarize all of the owner's records.

        Raises:
            EmptyInput: If the owner has no records.
        """
        return self.report_generator.summarize(self.store.list(owner_id))

    def email_summary(
        self,
        owner_id: str,
        to_email: str,
        include_details: bool = False,
    ) -> SendResult:
        """Email a summary of all of the owner's records."""
        report = self.summarize(owner_id)
        message = self.report_generator.build_email(
            report, to_email, include_details=include_details
        )
        return self.mailer.send(message)

    def email_qualification(self, owner_id: str, record_id: str, to_email: str) -> SendResult:
        """Email the report for a single record."""
        record = self.store.get(owner_id, record_id)
        message = self.report_generator.build_single_email(record, to_email)
        return self.mailer.send(message)

    def export_csv(self, owner_id: str) -> str:
        """Export the owner's records as CSV, most recent first."""
        return self.report_generator.build_csv(self.store.list(owner_id))

    def export_text(self, owner_id: str, record_id: str) -> str:
        """Export one record's verdict as a plain-text report."""
        record = self.store.get(owner_id, record_id)
        return render_verdict_text(record.company_name, record.verdict)

    def ask(
        self,
        owner_id: str,
        record_id: str,
        question: str,
        api_key: Optional[str] = None,
    ) -> str:
        """Ask the model a follow-up question about a stored record."""
        record = self.store.get(owner_id, record_id)
        return self.pipeline.answer_question(record, question, api_key=api_key)

    def close(self) -> None:
        """Release resources held by owned components."""
        if self._owns_pipeline and self._pipeline is not None:
            self._pipeline.close()
            self._pipeline = None

    def __enter__(self) -> "LeadQualificationService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
