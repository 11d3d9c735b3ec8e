# key_need.py
"""Key-need classification for qualified leads.

Maps the free text of a qualification (summary, insights and
recommendations) onto one of the fixed KeyNeedCategory labels by counting
keyword hits. The result is a pure function of the text.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from .logging_utils import get_logger
from .models import KeyNeedCategory, QualificationRecord, Verdict

# Keywords are matched as lowercase substrings. Table order is the
# tie-break order: an earlier category keeps the lead on equal counts.
NEED_KEYWORDS: List[Tuple[KeyNeedCategory, Tuple[str, ...]]] = [
    (KeyNeedCategory.GROWTH, (
        "growth", "scale", "expand", "acquisition", "customer", "revenue",
        "sales", "market share",
    )),
    (KeyNeedCategory.MARKETING, (
        "marketing", "branding", "advertising", "visibility", "promotion",
        "awareness",
    )),
    (KeyNeedCategory.FINANCE, (
        "finance", "funding", "cash flow", "investment", "budget", "cost",
        "profit", "pricing",
    )),
    (KeyNeedCategory.OPERATIONS, (
        "operations", "efficiency", "process", "workflow", "productivity",
        "logistics",
    )),
    (KeyNeedCategory.TALENT, (
        "talent", "hiring", "recruitment", "staff", "employee", "retention",
        "team", "workforce",
    )),
    (KeyNeedCategory.TECHNOLOGY, (
        "technology", "digital", "software", "automation", "integration",
        "infrastructure",
    )),
    (KeyNeedCategory.COMPETITION, (
        "competition", "competitive", "market", "industry", "disruption",
    )),
    (KeyNeedCategory.INNOVATION, (
        "innovation", "product", "development", "r&d", "creative", "design",
    )),
    (KeyNeedCategory.COMPLIANCE, (
        "compliance", "regulation", "legal", "policy", "standard",
    )),
    (KeyNeedCategory.STRATEGY, (
        "strategy", "planning", "direction", "vision", "mission", "pivot",
    )),
]

DEFAULT_KEY_NEED = KeyNeedCategory.GROWTH


def build_need_text(
    summary: str,
    insights: Iterable[str],
    recommendations: Iterable[str],
) -> str:
    """Join the verdict text fields the way the classifier reads them."""
    return " ".join([
        summary or "",
        " ".join(insights or []),
        " ".join(recommendations or []),
    ])


class KeyNeedClassifier:
    """Keyword-scoring classifier over the fixed key-need table."""

    def __init__(self, keywords: Optional[List[Tuple[KeyNeedCategory, Tuple[str, ...]]]] = None):
        self.logger = get_logger(__name__)
        self.keywords = keywords if keywords is not None else NEED_KEYWORDS

    def classify(self, record: QualificationRecord) -> str:
        """Return the key need for a record.

        A precomputed ``key_need`` on the record is returned unchanged.
        """
        if record.key_need:
            return record.key_need
        return self.classify_verdict(record.verdict)

    def classify_verdict(self, verdict: Verdict) -> str:
        """Classify the text of a verdict that has not been stored yet."""
        text = build_need_text(verdict.summary, verdict.insights, verdict.recommendations)
        return self.classify_text(text)

    def classify_text(self, text: str) -> str:
        """Classify free text.

        The category with the strictly highest keyword count wins. With no
        matches at all the default category is returned.
        """
        counts = self.score_text(text)

        best = DEFAULT_KEY_NEED
        highest = 0
        for category, _ in self.keywords:
            if counts[category.value] > highest:
                highest = counts[category.value]
                best = category

        self.logger.debug(
            "Key need classified",
            extra={"key_need": best.value, "matches": highest}
        )
        return best.value.capitalize()

    def score_text(self, text: str) -> Dict[str, int]:
        """Count how many keywords of each category appear in the text.

        Each keyword counts at most once, however often it occurs.
        """
        lower_text = (text or "").lower()
        return {
            category.value: sum(1 for keyword in keywords if keyword in lower_text)
            for category, keywords in self.keywords
        }
