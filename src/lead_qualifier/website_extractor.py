"""Website text extraction for lead enrichment.

Fetches a prospect's web page with a single GET and reduces the HTML to a
bounded plain-text excerpt suitable for inclusion in a prompt.
"""

import re
from typing import Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from .config import config
from .logging_utils import get_logger
from .models import MAX_EXCERPT_CHARS, WebsiteExcerpt

# Content types we know how to reduce to text
HTML_CONTENT_TYPES = ("text/html", "application/xhtml+xml")
TEXT_CONTENT_TYPES = ("text/plain",)

WHITESPACE_RE = re.compile(r"\s+")

MAX_RESPONSE_BYTES = 2 * 1024 * 1024
CHUNK_SIZE = 64 * 1024


class WebsiteTextExtractor:
    """Fetch a URL and reduce it to visible plain text.

    Failures never raise: a failed fetch is returned as a WebsiteExcerpt
    with success=False and a human-readable error, so the caller can carry
    on without website context.

    Attributes:
        timeout: Request timeout in seconds.
        max_redirects: Maximum redirects followed before giving up.
        max_chars: Maximum length of the returned excerpt.
        max_bytes: Maximum number of response bytes read.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[int] = None,
        max_redirects: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        """Initialize the extractor.

        Args:
            session: Optional requests session. Created lazily if omitted.
            timeout: Request timeout override (seconds).
            max_redirects: Redirect cap override. Applied only to the session
                the extractor creates; an injected session keeps its own.
            user_agent: User-Agent header override.
        """
        self.logger = get_logger(__name__)

        self.timeout = timeout if timeout is not None else config.WEBSITE_FETCH_TIMEOUT_SECONDS
        self.max_redirects = (
            max_redirects if max_redirects is not None else config.WEBSITE_MAX_REDIRECTS
        )
        self.user_agent = user_agent or config.WEBSITE_USER_AGENT
        self.max_chars = MAX_EXCERPT_CHARS
        self.max_bytes = MAX_RESPONSE_BYTES

        self._session = session
        self._owns_session = session is None

    def _get_session(self) -> requests.Session:
        """Get or create the requests session."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({
                "User-Agent": self.user_agent,
                "Accept": "text/html,application/xhtml+xml,text/plain;q=0.9",
                "Accept-Language": "en-US,en;q=0.9",
            })
            self._session.max_redirects = self.max_redirects
        return self._session

    @staticmethod
    def normalize_url(url: str) -> str:
        """Add an https:// scheme to bare host names."""
        url = url.strip()
        if url and "://" not in url:
            url = f"https://{url}"
        return url

    def extract(self, url: str) -> WebsiteExcerpt:
        """Fetch a URL and return its visible text as an excerpt.

        Args:
            url: The page to fetch. A missing scheme defaults to https.

        Returns:
            WebsiteExcerpt with the text, or with success=False and an error.
        """
        if not url or not url.strip():
            return WebsiteExcerpt.failure(url or "", "No URL provided")

        target = self.normalize_url(url)
        parsed = urlparse(target)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            return WebsiteExcerpt.failure(target, f"Unsupported URL: {url}")

        self.logger.info("Fetching website", extra={"url": target})

        try:
            response = self._get_session().get(
                target,
                timeout=self.timeout,
                allow_redirects=True,
                stream=True,
            )
        except requests.exceptions.TooManyRedirects:
            return self._failure(target, f"Too many redirects (limit {self.max_redirects})")
        except requests.exceptions.Timeout:
            return self._failure(target, f"Request timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            return self._failure(target, f"Failed to fetch website: {e}")

        try:
            if response.status_code >= 400:
                return self._failure(target, f"Website returned HTTP {response.status_code}")

            content_type = response.headers.get("Content-Type", "").split(";")[0].strip().lower()
            if content_type not in HTML_CONTENT_TYPES + TEXT_CONTENT_TYPES:
                return self._failure(
                    target, f"Non-text response ({content_type or 'unknown content type'})"
                )

            try:
                body = self._read_body(response)
            except requests.exceptions.RequestException as e:
                return self._failure(target, f"Failed to read website: {e}")
        finally:
            response.close()

        if content_type in HTML_CONTENT_TYPES:
            text = self.html_to_text(body)
        else:
            text = self.collapse_whitespace(body)

        excerpt = WebsiteExcerpt(url=target, content=text[:self.max_chars])

        self.logger.info(
            "Website text extracted",
            extra={"url": target, "chars": len(excerpt.content)},
        )
        return excerpt

    def _read_body(self, response: requests.Response) -> str:
        """Read at most max_bytes of the body and decode it."""
        body = bytearray()
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            body.extend(chunk)
            if len(body) >= self.max_bytes:
                self.logger.debug("Website body truncated", extra={"max_bytes": self.max_bytes})
                break
        raw = bytes(body[:self.max_bytes])
        try:
            return raw.decode(response.encoding or "utf-8", errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")

    @classmethod
    def html_to_text(cls, html: str) -> str:
        """Strip script/style content and return collapsed visible text."""
        soup = BeautifulSoup(html, "html.parser")
        for element in soup(["script", "style"]):
            element.decompose()

        root = soup.body or soup
        return cls.collapse_whitespace(root.get_text(" "))

    @staticmethod
    def collapse_whitespace(text: str) -> str:
        """Collapse runs of whitespace into single spaces."""
        return WHITESPACE_RE.sub(" ", text).strip()

    def _failure(self, url: str, reason: str) -> WebsiteExcerpt:
        self.logger.warning("Website fetch failed", extra={"url": url, "reason": reason})
        return WebsiteExcerpt.failure(url, reason)

    def close(self) -> None:
        """Close the HTTP session if this extractor created it."""
        if self._owns_session and self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "WebsiteTextExtractor":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
