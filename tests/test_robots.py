"""
Tests for robots.txt handling.

Tests rule parsing, last-match evaluation, fail-open behavior and
per-host caching.
"""

import asyncio

import httpx
import pytest

from webwarden.crawler import RobotsChecker, RobotsRules

USER_AGENT = "WebWarden Crawler 2.0"


class TestRobotsRules:
    """Tests for RobotsRules parsing and evaluation."""

    def test_disallow_for_wildcard(self):
        """Wildcard block rules apply to every crawler."""
        rules = RobotsRules.parse("User-agent: *\nDisallow: /admin\n", USER_AGENT)

        assert rules.agent_matched
        assert not rules.is_allowed("/admin")
        assert not rules.is_allowed("/admin/users")
        assert rules.is_allowed("/")
        assert rules.is_allowed("/about")

    def test_default_allow(self):
        """Paths matched by no rule are allowed."""
        text = "User-agent: *\nDisallow: /admin\nAllow: /public\n"
        rules = RobotsRules.parse(text, USER_AGENT)

        assert not rules.is_allowed("/admin/x")
        assert rules.is_allowed("/public/x")
        assert rules.is_allowed("/other")

    def test_last_match_wins_allow(self):
        """A later Allow overrides an earlier matching Disallow."""
        text = "User-agent: *\nDisallow: /private\nAllow: /private/public\n"
        rules = RobotsRules.parse(text, USER_AGENT)

        assert not rules.is_allowed("/private/secret")
        assert rules.is_allowed("/private/public/page")

    def test_last_match_wins_disallow(self):
        """Rule order decides, not prefix length."""
        text = "User-agent: *\nAllow: /private/public\nDisallow: /private\n"
        rules = RobotsRules.parse(text, USER_AGENT)

        assert not rules.is_allowed("/private/public/page")

    def test_other_agent_ignored(self):
        """Blocks for other crawlers should not apply."""
        text = "User-agent: BadBot\nDisallow: /\n"
        rules = RobotsRules.parse(text, USER_AGENT)

        assert not rules.agent_matched
        assert rules.is_allowed("/anything")

    def test_agent_substring_match(self):
        """A User-agent value contained in our agent string applies."""
        text = "User-agent: WebWarden\nDisallow: /reports\n"
        rules = RobotsRules.parse(text, USER_AGENT)

        assert not rules.is_allowed("/reports/2025")

    def test_block_switching(self):
        """Rules after a non-matching User-agent line are not collected."""
        text = (
            "User-agent: *\n"
            "Disallow: /tmp\n"
            "User-agent: OtherBot\n"
            "Disallow: /docs\n"
        )
        rules = RobotsRules.parse(text, USER_AGENT)

        assert not rules.is_allowed("/tmp/file")
        assert rules.is_allowed("/docs")

    def test_comments_and_empty_values(self):
        """Comments are stripped and empty Disallow allows everything."""
        text = (
            "# robots for example.com\n"
            "User-agent: *  # everyone\n"
            "Disallow:\n"
            "Disallow: /cgi-bin # scripts\n"
        )
        rules = RobotsRules.parse(text, USER_AGENT)

        assert len(rules.rules) == 1
        assert not rules.is_allowed("/cgi-bin/run")
        assert rules.is_allowed("/")

    def test_allow_all(self):
        """An empty rule set allows everything."""
        assert RobotsRules.allow_all().is_allowed("/admin")


class TestRobotsChecker:
    """Tests for RobotsChecker."""

    @pytest.mark.asyncio
    async def test_blocked_and_allowed(self, fake_site):
        """Checker should apply the host's rules."""
        site = fake_site(robots="User-agent: *\nDisallow: /admin\n")

        async with httpx.AsyncClient(transport=site.transport) as client:
            checker = RobotsChecker(client, user_agent=USER_AGENT)

            assert await checker.is_allowed("https://example.com/page")
            assert not await checker.is_allowed("https://example.com/admin/panel")

        assert site.count("https://example.com/robots.txt") == 1
        assert checker.cached_hosts == ["https://example.com"]

    @pytest.mark.asyncio
    async def test_missing_robots_allows_all(self, fake_site):
        """A 404 robots.txt allows every path."""
        site = fake_site(robots=None)

        async with httpx.AsyncClient(transport=site.transport) as client:
            checker = RobotsChecker(client, user_agent=USER_AGENT)

            assert await checker.is_allowed("https://example.com/admin")

        assert checker.fetch_error_hosts == []

    @pytest.mark.asyncio
    async def test_network_error_fails_open(self):
        """An unreachable robots.txt allows every path."""
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            checker = RobotsChecker(client, user_agent=USER_AGENT)

            assert await checker.is_allowed("https://example.com/admin")

        assert checker.fetch_error_hosts == ["https://example.com"]

    @pytest.mark.asyncio
    async def test_fetched_once_per_host(self):
        """Concurrent lookups for one host should share a single fetch."""
        fetches: list[str] = []

        async def handler(request: httpx.Request) -> httpx.Response:
            fetches.append(str(request.url))
            await asyncio.sleep(0.05)
            return httpx.Response(200, text="User-agent: *\nDisallow: /private\n")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            checker = RobotsChecker(client, user_agent=USER_AGENT)
            results = await asyncio.gather(*(
                checker.is_allowed(f"https://example.com/page{i}") for i in range(5)
            ), checker.is_allowed("https://example.com/private/x"))

        assert fetches == ["https://example.com/robots.txt"]
        assert results == [True] * 5 + [False]

    @pytest.mark.asyncio
    async def test_hosts_cached_separately(self, fake_site):
        """Each host gets its own robots.txt."""
        site = fake_site(robots="User-agent: *\nDisallow: /x\n")

        async with httpx.AsyncClient(transport=site.transport) as client:
            checker = RobotsChecker(client, user_agent=USER_AGENT)
            await checker.is_allowed("https://a.example.com/")
            await checker.is_allowed("https://b.example.com/")
            await checker.is_allowed("https://a.example.com/other")

        assert sorted(checker.cached_hosts) == [
            "https://a.example.com",
            "https://b.example.com",
        ]
        assert len(site.requests) == 2
