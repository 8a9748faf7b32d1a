"""
robots.txt compliance gate.

Fetches robots.txt once per host, parses the ``User-agent``/``Allow``/
``Disallow`` subset and answers allow/deny per URL path. Hosts whose
robots.txt cannot be fetched are allowed entirely (fail-open).
"""

import asyncio
from dataclasses import dataclass, field
from urllib.parse import urlparse

import httpx

from webwarden.crawler.cancellation import CancellationToken
from webwarden.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RobotsRule:
    """One Allow/Disallow prefix inside a matching user-agent block."""

    allow: bool
    prefix: str


@dataclass(frozen=True)
class RobotsRules:
    """
    Ordered rule set for one host.

    Rules are evaluated in file order and the last matching prefix
    decides. Paths matched by no rule are allowed.
    """

    rules: tuple[RobotsRule, ...] = field(default_factory=tuple)
    agent_matched: bool = False

    @classmethod
    def allow_all(cls) -> "RobotsRules":
        return cls()

    @classmethod
    def parse(cls, text: str, user_agent: str) -> "RobotsRules":
        """
        Parse a robots.txt body for the given crawler user agent.

        A ``User-agent`` line switches rule collection on when its value is
        ``*`` or a substring of ``user_agent``, and off otherwise.

        Args:
            text: robots.txt content
            user_agent: Configured crawler user agent
        """
        rules: list[RobotsRule] = []
        active = False
        matched = False

        for raw_line in text.splitlines():
            line = raw_line.split("#", 1)[0].strip()
            if ":" not in line:
                continue

            directive, _, value = line.partition(":")
            directive = directive.strip().lower()
            value = value.strip()

            if directive == "user-agent":
                # An empty value names no crawler; it does not act as a wildcard
                active = value == "*" or (bool(value) and value in user_agent)
                matched = matched or active
            elif active and directive in ("allow", "disallow") and value:
                rules.append(RobotsRule(allow=directive == "allow", prefix=value))

        return cls(rules=tuple(rules), agent_matched=matched)

    def is_allowed(self, path: str) -> bool:
        """Check a URL path (without query) against the rules."""
        path = path or "/"
        allowed = True
        for rule in self.rules:
            if path.startswith(rule.prefix):
                allowed = rule.allow
        return allowed


class RobotsChecker:
    """
    Checks URLs against robots.txt rules.

    Caches one rule set per host for the lifetime of the checker; the
    first lookup for a host fetches robots.txt while concurrent lookups
    for the same host wait for that fetch instead of repeating it.

    Example:
        >>> checker = RobotsChecker(client, user_agent="WebWarden Crawler 2.0")
        >>> await checker.is_allowed("https://example.com/page")
        True
        >>> await checker.is_allowed("https://example.com/admin")
        False
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        user_agent: str = "WebWarden Crawler 2.0",
        timeout_seconds: float = 10.0,
        token: CancellationToken | None = None,
    ) -> None:
        """
        Initialize robots.txt checker.

        Args:
            client: Shared HTTP client
            user_agent: User agent string for robots.txt matching
            timeout_seconds: Timeout for fetching robots.txt
            token: Stop signal aborting in-flight robots fetches
        """
        self.client = client
        self.user_agent = user_agent
        self.timeout_seconds = timeout_seconds
        self._token = token or CancellationToken()
        self._rules: dict[str, RobotsRules] = {}
        self._host_locks: dict[str, asyncio.Lock] = {}
        self._fetch_errors: set[str] = set()

    def _get_domain_key(self, url: str) -> str:
        """Get scheme://host[:port] key for caching."""
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}"

    async def _fetch_robots(self, domain_key: str) -> RobotsRules:
        """Fetch and parse robots.txt for a host, failing open."""
        robots_url = f"{domain_key}/robots.txt"

        try:
            response = await self._token.run(
                self.client.get(
                    robots_url,
                    headers={"User-Agent": self.user_agent},
                    timeout=self.timeout_seconds,
                )
            )
        except httpx.HTTPError as e:
            logger.warning(f"Error fetching robots.txt from {robots_url}: {e}")
            self._fetch_errors.add(domain_key)
            return RobotsRules.allow_all()

        if not response.is_success:
            logger.debug(
                f"No usable robots.txt at {robots_url} ({response.status_code})")
            return RobotsRules.allow_all()

        logger.debug(f"Loaded robots.txt from {robots_url}")
        return RobotsRules.parse(response.text, self.user_agent)

    async def get_rules(self, url: str) -> RobotsRules:
        """
        Get the cached rule set for a URL's host, fetching on first use.

        Raises:
            CrawlCancelledError: If the crawl stops during the fetch
        """
        domain_key = self._get_domain_key(url)

        rules = self._rules.get(domain_key)
        if rules is not None:
            return rules

        lock = self._host_locks.setdefault(domain_key, asyncio.Lock())
        async with lock:
            rules = self._rules.get(domain_key)
            if rules is None:
                rules = await self._fetch_robots(domain_key)
                self._rules[domain_key] = rules
        return rules

    async def is_allowed(self, url: str) -> bool:
        """
        Check if URL is allowed by robots.txt.

        Args:
            url: URL to check

        Returns:
            True if allowed, False if blocked
        """
        rules = await self.get_rules(url)
        allowed = rules.is_allowed(urlparse(url).path)

        if not allowed:
            logger.debug(f"Blocked by robots.txt: {url}")

        return allowed

    @property
    def cached_hosts(self) -> list[str]:
        """Hosts with a cached rule set."""
        return list(self._rules)

    @property
    def fetch_error_hosts(self) -> list[str]:
        """Hosts whose robots.txt fetch failed (treated as allow-all)."""
        return sorted(self._fetch_errors)
