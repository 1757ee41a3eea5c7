"""Tests for breadth-first link discovery."""

import pytest

from site_checker.crawler import LinkDiscoverer

from conftest import FakeSession, FakeSite

ROOT = "https://example.com/"


def site() -> FakeSession:
    return FakeSession({
        ROOT: FakeSite(links=[
            "https://example.com/about",
            "https://example.com/blog/",
            "https://other.com/partner",
            "https://example.com/files/menu.pdf",
            "https://example.com/about#team",
            "https://example.com/wp-admin/",
        ]),
        "https://example.com/about": FakeSite(links=[
            ROOT,
            "https://example.com/contact?ref=about",
            "https://example.com/category/news/",
        ]),
        "https://example.com/blog": FakeSite(fail=True),
        "https://example.com/contact": FakeSite(links=["https://example.com/about/"]),
    })


class TestLinkDiscoverer:
    """Test cases for LinkDiscoverer."""

    @pytest.mark.asyncio
    async def test_breadth_first_same_host(self):
        session = site()
        urls = await LinkDiscoverer(session, max_pages=0).discover("https://example.com")

        assert urls == [
            "https://example.com/",
            "https://example.com/about",
            "https://example.com/blog",
            "https://example.com/contact",
        ]
        assert len(set(urls)) == len(urls)

    @pytest.mark.asyncio
    async def test_each_page_visited_once(self):
        session = site()
        await LinkDiscoverer(session, max_pages=0).discover(ROOT)

        assert sorted(session.navigations) == sorted(set(session.navigations))

    @pytest.mark.asyncio
    async def test_failing_page_is_still_listed(self):
        urls = await LinkDiscoverer(site(), max_pages=0).discover(ROOT)
        assert "https://example.com/blog" in urls

    @pytest.mark.asyncio
    async def test_max_pages_cap(self):
        session = site()
        urls = await LinkDiscoverer(session, max_pages=2).discover(ROOT)

        assert urls == ["https://example.com/", "https://example.com/about"]
        assert len(session.navigations) == 2

    @pytest.mark.asyncio
    async def test_unreachable_start_url(self):
        urls = await LinkDiscoverer(FakeSession(), max_pages=5).discover("https://down.example.com/")
        assert urls == ["https://down.example.com/"]

    @pytest.mark.asyncio
    async def test_plan_pages(self):
        plan = await LinkDiscoverer(site(), max_pages=3).plan_pages(ROOT)

        assert plan.total_pages == 3
        assert plan.to_dict() == {
            "totalPages": 3,
            "urls": ["https://example.com/", "https://example.com/about", "https://example.com/blog"],
        }
