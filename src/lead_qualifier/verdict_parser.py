"""Tolerant extraction of a Verdict from raw model output.

The generation service is asked for pure JSON but does not always comply.
Parsing runs an ordered list of strategies and stops at the first one that
yields a valid Verdict:

1. parse the whole text as JSON;
2. parse the greedy ``{...}`` span found in the text.

No JSON repair is attempted. When every strategy fails, UnparsableResponse
is raised with the original text attached for diagnostics.
"""

import json
import re
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from .errors import UnparsableResponse
from .logging_utils import get_logger
from .models import Verdict

# Greedy: from the first "{" to the last "}"
JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")

Strategy = Callable[[str], Optional[Verdict]]


class VerdictParser:
    """Extracts a structured Verdict from unstructured model output."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.strategies: List[Tuple[str, Strategy]] = [
            ("direct", self._parse_direct),
            ("embedded_object", self._parse_embedded_object),
        ]

    def parse(self, raw_text: str) -> Verdict:
        """Parse raw model output into a Verdict.

        Args:
            raw_text: Text returned by the generation service.

        Returns:
            The parsed Verdict.

        Raises:
            UnparsableResponse: If no strategy produced a valid Verdict.
        """
        text = raw_text or ""
        for name, strategy in self.strategies:
            verdict = strategy(text)
            if verdict is not None:
                self.logger.debug(
                    "Verdict parsed",
                    extra={"strategy": name, "score": verdict.score},
                )
                return verdict

        self.logger.error(
            "Could not parse AI response",
            extra={"response_length": len(text)},
        )
        self.logger.debug("Unparsable AI response", extra={"content": text[:500]})
        raise UnparsableResponse(raw_text=text)

    def _parse_direct(self, text: str) -> Optional[Verdict]:
        return self._load_verdict(text.strip())

    def _parse_embedded_object(self, text: str) -> Optional[Verdict]:
        match = JSON_OBJECT_RE.search(text)
        if match is None:
            return None
        return self._load_verdict(match.group(0))

    def _load_verdict(self, candidate: str) -> Optional[Verdict]:
        """Decode a JSON object and validate it as a Verdict, or return None."""
        if not candidate:
            return None
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            return None

        if not isinstance(data, dict):
            return None

        try:
            return Verdict.model_validate(data)
        except ValidationError as e:
            self.logger.debug(
                "JSON did not match verdict shape",
                extra={"errors": e.error_count()},
            )
            return None


def parse_verdict(raw_text: str) -> Verdict:
    """Parse raw model output with a default VerdictParser."""
    return VerdictParser().parse(raw_text)
