# src/lead_qualifier/tests/test_analysis.py
"""
Unit tests for the analysis pipeline.

Tests cover:
- Step order: extract -> compose -> generate -> parse
- Website step skipped when no website is given
- Website failure degrades to no excerpt
- Caller credential passed through to the generation call
- ConfigurationError, ServiceUnavailable and UnparsableResponse propagation
- Follow-up questions
- Resource cleanup
"""
from unittest.mock import MagicMock, call

import pytest

from lead_qualifier.analysis import AnalysisPipeline
from lead_qualifier.errors import ConfigurationError, ServiceUnavailable, UnparsableResponse
from lead_qualifier.models import (
    LeadSubmission,
    QualificationRecord,
    QualifyingBusinessProfile,
    Verdict,
    WebsiteExcerpt,
)
from lead_qualifier.prompt_composer import WEBSITE_SECTION_TITLE


VALID_RESPONSE = (
    '{"score": 84, "summary": "Strong fit", '
    '"insights": ["Expanding"], "recommendations": ["Call this week"]}'
)


@pytest.fixture
def profile():
    return QualifyingBusinessProfile(company_name="Northwind", industry="Consulting")


@pytest.fixture
def lead_with_site():
    return LeadSubmission(company_name="Acme", industry="Retail", website="acme.example")


@pytest.fixture
def lead_without_site():
    return LeadSubmission(company_name="Acme", industry="Retail")


@pytest.fixture
def mock_llm_client():
    client = MagicMock()
    client.complete.return_value = VALID_RESPONSE
    return client


@pytest.fixture
def mock_extractor():
    extractor = MagicMock()
    extractor.extract.return_value = WebsiteExcerpt(
        url="https://acme.example", content="Acme sells hardware nationwide."
    )
    return extractor


@pytest.fixture
def pipeline(mock_llm_client, mock_extractor):
    return AnalysisPipeline(llm_client=mock_llm_client, extractor=mock_extractor)


class TestAnalyze:
    """Tests for analyze()."""

    @pytest.mark.unit
    def test_returns_verdict(self, pipeline, profile, lead_without_site):
        verdict = pipeline.analyze(profile, lead_without_site)

        assert verdict == Verdict(
            score=84,
            summary="Strong fit",
            insights=["Expanding"],
            recommendations=["Call this week"],
        )

    @pytest.mark.unit
    def test_no_website_skips_extractor(self, pipeline, mock_extractor, mock_llm_client,
                                        profile, lead_without_site):
        pipeline.analyze(profile, lead_without_site)

        mock_extractor.extract.assert_not_called()
        prompt = mock_llm_client.complete.call_args[0][0]
        assert WEBSITE_SECTION_TITLE not in prompt

    @pytest.mark.unit
    def test_website_excerpt_included(self, pipeline, mock_extractor, mock_llm_client,
                                      profile, lead_with_site):
        pipeline.analyze(profile, lead_with_site)

        mock_extractor.extract.assert_called_once_with("acme.example")
        prompt = mock_llm_client.complete.call_args[0][0]
        assert WEBSITE_SECTION_TITLE in prompt
        assert "Acme sells hardware nationwide." in prompt

    @pytest.mark.unit
    def test_website_failure_continues(self, pipeline, mock_extractor, mock_llm_client,
                                       profile, lead_with_site):
        mock_extractor.extract.return_value = WebsiteExcerpt.failure(
            "https://acme.example", "Request timed out after 15s"
        )

        verdict = pipeline.analyze(profile, lead_with_site)

        assert verdict.score == 84
        prompt = mock_llm_client.complete.call_args[0][0]
        assert WEBSITE_SECTION_TITLE not in prompt

    @pytest.mark.unit
    def test_step_order(self, mock_llm_client, mock_extractor, profile, lead_with_site):
        manager = MagicMock()
        composer = MagicMock()
        composer.compose.return_value = "PROMPT"
        parser = MagicMock()
        parser.parse.return_value = Verdict(score=1)
        manager.attach_mock(mock_extractor.extract, "extract")
        manager.attach_mock(composer.compose, "compose")
        manager.attach_mock(mock_llm_client.complete, "complete")
        manager.attach_mock(parser.parse, "parse")

        pipeline = AnalysisPipeline(
            llm_client=mock_llm_client,
            extractor=mock_extractor,
            composer=composer,
            parser=parser,
        )
        pipeline.analyze(profile, lead_with_site)

        assert [c[0] for c in manager.mock_calls] == ["extract", "compose", "complete", "parse"]
        assert manager.mock_calls[2] == call.complete("PROMPT", api_key=None)

    @pytest.mark.unit
    def test_caller_key_passed(self, pipeline, mock_llm_client, profile, lead_without_site):
        pipeline.analyze(profile, lead_without_site, api_key="caller-key")

        assert mock_llm_client.complete.call_args[1]["api_key"] == "caller-key"

    @pytest.mark.unit
    def test_configuration_error_propagates(self, pipeline, mock_llm_client,
                                            profile, lead_without_site):
        mock_llm_client.complete.side_effect = ConfigurationError("no key")

        with pytest.raises(ConfigurationError):
            pipeline.analyze(profile, lead_without_site)

    @pytest.mark.unit
    def test_service_unavailable_propagates(self, pipeline, mock_llm_client,
                                            profile, lead_without_site):
        mock_llm_client.complete.side_effect = ServiceUnavailable("down", status_code=503)

        with pytest.raises(ServiceUnavailable):
            pipeline.analyze(profile, lead_without_site)
        assert mock_llm_client.complete.call_count == 1

    @pytest.mark.unit
    def test_unparsable_response_propagates(self, pipeline, mock_llm_client,
                                            profile, lead_without_site):
        mock_llm_client.complete.return_value = "I cannot help with that."

        with pytest.raises(UnparsableResponse) as exc_info:
            pipeline.analyze(profile, lead_without_site)

        assert exc_info.value.raw_text == "I cannot help with that."


class TestAnswerQuestion:
    """Tests for answer_question()."""

    @pytest.mark.unit
    def test_answers(self, pipeline, mock_llm_client, lead_without_site):
        record = QualificationRecord.from_analysis(
            "user-1", lead_without_site, Verdict(score=70, summary="Decent")
        )
        mock_llm_client.complete.return_value = "  Lead with the ROI story.  "

        answer = pipeline.answer_question(record, "How should we open?", api_key="k")

        assert answer == "Lead with the ROI story."
        prompt = mock_llm_client.complete.call_args[0][0]
        assert "How should we open?" in prompt
        assert mock_llm_client.complete.call_args[1]["api_key"] == "k"

    @pytest.mark.unit
    def test_blank_question_rejected(self, pipeline, mock_llm_client, lead_without_site):
        record = QualificationRecord.from_analysis("user-1", lead_without_site, Verdict(score=70))

        with pytest.raises(ValueError):
            pipeline.answer_question(record, "   ")
        mock_llm_client.complete.assert_not_called()


class TestLifecycle:
    """Tests for cleanup."""

    @pytest.mark.unit
    def test_injected_clients_not_closed(self, pipeline, mock_llm_client, mock_extractor):
        pipeline.close()

        mock_llm_client.close.assert_not_called()
        mock_extractor.close.assert_not_called()
