"""Title lookup used to sanity check answers (fail-closed)."""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import requests

from initials.errors import ValidationLookupFailure

logger = logging.getLogger(__name__)

VALID = 'valid'
INVALID = 'invalid'


@dataclass(frozen=True)
class LookupResult:
    found: bool
    canonical_url: Optional[str] = None

    @property
    def status(self) -> str:
        return VALID if self.found else INVALID


class TitleLookup:
    def __init__(self, base_url: str, page_url: str, timeout: float = 5.0,
                 user_agent: Optional[str] = None, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.page_url = page_url.rstrip('/')
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            base_url=config.get('LOOKUP_BASE_URL'),
            page_url=config.get('LOOKUP_PAGE_URL'),
            timeout=float(config.get('LOOKUP_TIMEOUT_SEC', 5)),
            user_agent=config.get('LOOKUP_USER_AGENT'),
        )

    def fetch(self, title: str) -> LookupResult:
        """Query the service; raises ValidationLookupFailure on transport or payload errors."""
        headers = {'Accept': 'application/json'}
        if self.user_agent:
            headers['User-Agent'] = self.user_agent
        url = f"{self.base_url}/{quote(title, safe='')}"
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as exc:
            raise ValidationLookupFailure(str(exc)) from exc
        if response.status_code == 404:
            return LookupResult(found=False)
        if not response.ok:
            raise ValidationLookupFailure(f'HTTP {response.status_code}')
        try:
            data = response.json()
        except ValueError as exc:
            raise ValidationLookupFailure('invalid JSON payload') from exc
        page = ((data or {}).get('content_urls') or {}).get('desktop', {}).get('page')
        return LookupResult(found=True, canonical_url=page or f"{self.page_url}/{quote(title, safe='')}")

    def lookup_title(self, title: str) -> LookupResult:
        """Like fetch(), but every failure counts as not found."""
        title = (title or '').strip()
        if not title:
            return LookupResult(found=False)
        try:
            result = self.fetch(title)
        except ValidationLookupFailure as exc:
            logger.warning(f"[lookup-fail] title={title!r} error={exc}")
            return LookupResult(found=False)
        logger.info(f"[lookup] title={title!r} found={result.found}")
        return result
