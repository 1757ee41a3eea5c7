"""Tests for the browser session lifecycle."""

import pytest

from site_checker import orchestrator
from site_checker.browser import BrowserSession
from site_checker.errors import BrowserLaunchError
from site_checker.models import BasicAuth


class TestBrowserSession:
    """Test cases for BrowserSession."""

    @pytest.mark.asyncio
    async def test_launch_failure_is_fatal_and_cleans_up(self, fake_playwright):
        fake_playwright.launch_error = RuntimeError("Executable doesn't exist")
        session = BrowserSession()

        with pytest.raises(BrowserLaunchError, match="Executable doesn't exist"):
            await session.start()

        assert fake_playwright.stop_calls == 1
        assert session.debug_port is None

    @pytest.mark.asyncio
    async def test_stop_twice_closes_once(self, fake_playwright):
        session = BrowserSession()
        await session.start()

        await session.stop()
        await session.stop()

        assert fake_playwright.browser.close_calls == 1
        assert fake_playwright.stop_calls == 1

    @pytest.mark.asyncio
    async def test_context_manager_closes_on_error(self, fake_playwright):
        with pytest.raises(RuntimeError):
            async with BrowserSession():
                raise RuntimeError("analysis blew up")

        assert fake_playwright.browser.close_calls == 1
        assert fake_playwright.stop_calls == 1

    @pytest.mark.asyncio
    async def test_page_context_closed_when_body_raises(self, fake_playwright):
        async with BrowserSession() as session:
            with pytest.raises(ValueError):
                async with session.page():
                    raise ValueError("bad page")

        assert [context.closed for context in fake_playwright.browser.contexts] == [True]

    @pytest.mark.asyncio
    async def test_credentials_only_when_complete(self, fake_playwright):
        async with BrowserSession() as session:
            async with session.page(BasicAuth("user", "secret")):
                pass
            async with session.page(BasicAuth("user", "")):
                pass

        with_auth, without_auth = fake_playwright.browser.contexts
        assert with_auth.options["http_credentials"] == {"username": "user", "password": "secret"}
        assert "http_credentials" not in without_auth.options

    @pytest.mark.asyncio
    async def test_free_debug_port_per_session(self, fake_playwright):
        async with BrowserSession(remote_debugging_port=0, expose_debug_port=True) as session:
            port = session.debug_port

        assert port is not None and port > 0
        assert f"--remote-debugging-port={port}" in fake_playwright.launch_args
        assert session.debug_port is None

    @pytest.mark.asyncio
    async def test_fixed_debug_port(self, fake_playwright):
        async with BrowserSession(remote_debugging_port=9333, expose_debug_port=True) as session:
            assert session.debug_port == 9333

    @pytest.mark.asyncio
    async def test_debug_port_disabled(self, fake_playwright):
        async with BrowserSession(remote_debugging_port=9333, expose_debug_port=False) as session:
            assert session.debug_port is None

        assert not any(arg.startswith("--remote-debugging-port") for arg in fake_playwright.launch_args)

    def test_explicit_zero_timeout_is_kept(self):
        assert BrowserSession(page_load_timeout=0).page_load_timeout == 0


class TestSessionOwnership:
    """Top-level operations close their session on every exit path."""

    @pytest.mark.asyncio
    async def test_analyze_single_page_closes_session_on_error(self, fake_playwright, monkeypatch):
        async def failing_analyze(self, url, auth=None):
            raise RuntimeError("checker crashed")

        monkeypatch.setattr(orchestrator.PageChecker, "analyze_page", failing_analyze)

        with pytest.raises(RuntimeError, match="checker crashed"):
            await orchestrator.analyze_single_page("https://example.com/")

        assert fake_playwright.browser.close_calls == 1
        assert fake_playwright.stop_calls == 1
