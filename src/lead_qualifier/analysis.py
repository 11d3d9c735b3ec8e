# analysis.py
"""Lead analysis pipeline.

Runs one qualification end to end, strictly in the order
extract -> compose -> generate -> parse.
"""

from typing import Optional

from .errors import ConfigurationError, ServiceUnavailable, UnparsableResponse
from .llm_client import LLMClient
from .logging_utils import get_logger
from .models import (
    LeadSubmission,
    QualificationRecord,
    QualifyingBusinessProfile,
    Verdict,
    WebsiteExcerpt,
)
from .prompt_composer import PromptComposer
from .verdict_parser import VerdictParser
from .website_extractor import WebsiteTextExtractor


class AnalysisPipeline:
    """Orchestrates website extraction, prompting and verdict parsing.

    Collaborators are injected for testing and created lazily otherwise.
    Only the website step degrades gracefully; every other failure is
    raised to the caller as a typed error.
    """

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        extractor: Optional[WebsiteTextExtractor] = None,
        composer: Optional[PromptComposer] = None,
        parser: Optional[VerdictParser] = None,
    ):
        self.logger = get_logger(__name__)

        self._llm_client = llm_client
        self._owns_client = llm_client is None
        self._extractor = extractor
        self._owns_extractor = extractor is None

        self.composer = composer or PromptComposer()
        self.parser = parser or VerdictParser()

    @property
    def llm_client(self) -> LLMClient:
        """Get or create the LLM client."""
        if self._llm_client is None:
            self._llm_client = LLMClient()
        return self._llm_client

    @property
    def extractor(self) -> WebsiteTextExtractor:
        """Get or create the website extractor."""
        if self._extractor is None:
            self._extractor = WebsiteTextExtractor()
        return self._extractor

    def analyze(
        self,
        profile: QualifyingBusinessProfile,
        lead: LeadSubmission,
        api_key: Optional[str] = None,
    ) -> Verdict:
        """Qualify a lead against the qualifying business.

        Args:
            profile: The qualifying business.
            lead: The lead to qualify.
            api_key: Optional caller-scoped generation credential.

        Returns:
            The parsed Verdict.

        Raises:
            ConfigurationError: If no generation credential is available.
            ServiceUnavailable: If the generation call fails.
            UnparsableResponse: If the model output holds no valid verdict.
        """
        self.logger.info(
            "Analyzing lead",
            extra={"company_name": lead.company_name, "has_website": bool(lead.website)}
        )

        excerpt = self._fetch_excerpt(lead)
        prompt = self.composer.compose(profile, lead, excerpt)

        try:
            raw_text = self.llm_client.complete(prompt, api_key=api_key)
        except (ConfigurationError, ServiceUnavailable) as e:
            self.logger.error(
                f"Generation call failed: {e}",
                extra={"company_name": lead.company_name, "error_type": type(e).__name__}
            )
            raise

        try:
            verdict = self.parser.parse(raw_text)
        except UnparsableResponse:
            self.logger.error(
                "Analysis produced no usable verdict",
                extra={"company_name": lead.company_name}
            )
            raise

        self.logger.info(
            "Lead analyzed",
            extra={
                "company_name": lead.company_name,
                "score": verdict.score,
                "band": verdict.band.value,
                "used_website": excerpt is not None,
            }
        )
        return verdict

    def answer_question(
        self,
        record: QualificationRecord,
        question: str,
        api_key: Optional[str] = None,
    ) -> str:
        """Answer a free-text question about a stored qualification.

        Raises:
            ValueError: If the question is blank.
            ConfigurationError: If no generation credential is available.
            ServiceUnavailable: If the generation call fails.
        """
        question = (question or "").strip()
        if not question:
            raise ValueError("question must not be blank")

        prompt = self.composer.compose_question(record, question)
        answer = self.llm_client.complete(prompt, api_key=api_key)

        self.logger.info(
            "Answered qualification question",
            extra={"record_id": record.id, "answer_length": len(answer)}
        )
        return answer.strip()

    def _fetch_excerpt(self, lead: LeadSubmission) -> Optional[WebsiteExcerpt]:
        """Fetch website text, or None when there is none to use."""
        if not lead.website:
            return None

        excerpt = self.extractor.extract(lead.website)
        if not excerpt.success:
            self.logger.warning(
                "Website extraction failed, continuing without excerpt",
                extra={"url": lead.website, "error": excerpt.error}
            )
            return None
        return excerpt

    def close(self) -> None:
        """Close owned clients."""
        if self._owns_client and self._llm_client is not None:
            self._llm_client.close()
            self._llm_client = None
        if self._owns_extractor and self._extractor is not None:
            self._extractor.close()
            self._extractor = None

    def __enter__(self) -> "AnalysisPipeline":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
