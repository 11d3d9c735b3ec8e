"""Prompt construction for lead qualification."""

from typing import Optional

from .models import (
    LeadSubmission,
    QualificationRecord,
    QualifyingBusinessProfile,
    WebsiteExcerpt,
)

WEBSITE_SECTION_TITLE = "Website Analysis"

RESPONSE_FORMAT_INSTRUCTION = """Provide a JSON response with this exact format:
{
  "score": number between 0-100,
  "summary": "brief qualification summary",
  "insights": ["insight1", "insight2", "insight3"],
  "recommendations": ["rec1", "rec2", "rec3"]
}"""


class PromptComposer:
    """Renders qualification prompts from business data.

    Output is a pure function of the inputs. The closing JSON instruction is
    what VerdictParser relies on, so it is always the last part of the prompt.
    """

    def compose(
        self,
        profile: QualifyingBusinessProfile,
        lead: LeadSubmission,
        excerpt: Optional[WebsiteExcerpt] = None,
    ) -> str:
        """Build the qualification prompt.

        Args:
            profile: The qualifying business (the tool user's company).
            lead: The lead being qualified.
            excerpt: Website excerpt; included only if the fetch succeeded.

        Returns:
            Prompt text ending with the JSON response instruction.
        """
        sections = [
            "As an expert business analyst, analyze this lead in the context "
            "of the qualifying business.",
            self._format_profile(profile),
            self._format_lead(lead),
        ]

        if excerpt is not None and excerpt.has_content:
            sections.append(self._format_excerpt(excerpt))

        sections.append(
            "Consider factors like industry alignment, business size compatibility, "
            "potential synergies between our services and their needs, and whether "
            "we can address their challenges. Also analyze any relevant information "
            "found from their website."
        )
        sections.append(RESPONSE_FORMAT_INSTRUCTION)

        return "\n\n".join(sections)

    def compose_question(self, record: QualificationRecord, question: str) -> str:
        """Build a follow-up question prompt about a stored qualification."""
        return (
            "You are a business lead qualification expert. I'm going to provide you "
            "with information about a qualified business lead and then ask you a "
            "question about it.\n\n"
            f"Here is the lead qualification information:\n{self.format_record_context(record)}\n\n"
            f"Based on this information, please answer the following question:\n{question}\n\n"
            "Provide a concise, professional response focused on actionable insights. "
            "Limit your response to 3-4 sentences."
        )

    @staticmethod
    def format_record_context(record: QualificationRecord) -> str:
        """Describe a stored qualification as plain text."""
        lines = [
            f"Company: {record.company_name}",
            f"Industry: {record.industry}",
            f"Employees: {record.employee_count}",
            f"Annual Revenue: {record.annual_revenue}",
            f"Main Challenges: {record.challenges}",
            f"Qualification Score: {record.score}/100",
            f"Summary: {record.summary}",
            "Insights:",
            *[f"- {insight}" for insight in record.insights],
            "Recommendations:",
            *[f"- {rec}" for rec in record.recommendations],
        ]
        return "\n".join(lines)

    @staticmethod
    def _format_profile(profile: QualifyingBusinessProfile) -> str:
        return (
            "Qualifying Business:\n"
            f"Company: {profile.company_name}\n"
            f"Industry: {profile.industry}\n"
            f"Size: {profile.employee_count}\n"
            f"Revenue: {profile.annual_revenue}\n"
            f"Services: {profile.business_services}"
        )

    @staticmethod
    def _format_lead(lead: LeadSubmission) -> str:
        return (
            "Lead to Qualify:\n"
            f"Company: {lead.company_name}\n"
            f"Industry: {lead.industry}\n"
            f"Employees: {lead.employee_count}\n"
            f"Annual Revenue: {lead.annual_revenue}\n"
            f"Website: {lead.website or 'Not provided'}\n"
            f"Main Challenges: {lead.challenges}"
        )

    @staticmethod
    def _format_excerpt(excerpt: WebsiteExcerpt) -> str:
        return (
            f"{WEBSITE_SECTION_TITLE}:\n"
            f"Source: {excerpt.url}\n"
            f"Found Content: {excerpt.content}"
        )
