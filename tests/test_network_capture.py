"""
Testes para o módulo streamfinder.core.network_capture.
"""

import asyncio

import pytest
from streamfinder.core.network_capture import (
    ROUTE_PATTERN,
    CandidateDetector,
    InterceptorStats,
    RequestInterceptor,
)
from streamfinder.core.policy import ResourcePolicy

from browser_fakes import FakeContext, FakeRequest, FakeRoute


def _route(url, resource_type="other", fail=False):
    return FakeRoute(FakeRequest(url, resource_type), fail=fail)


# ---------------------------------------------------------------------------
# CandidateDetector
# ---------------------------------------------------------------------------

def test_detector_starts_empty():
    detector = CandidateDetector()
    assert detector.peek() is None
    assert not detector.has_match()


def test_detector_records_first_match():
    detector = CandidateDetector()
    assert detector.offer("https://cdn.example/video/abc.m3u8") is True
    assert detector.peek() == "https://cdn.example/video/abc.m3u8"
    assert detector.has_match()


def test_detector_is_write_once():
    detector = CandidateDetector()
    detector.offer("https://cdn.example/first.m3u8")
    assert detector.offer("https://cdn.example/second.mp4") is False
    assert detector.peek() == "https://cdn.example/first.m3u8"


def test_detector_ignores_non_matching():
    detector = CandidateDetector()
    assert detector.offer("https://cdn.example/loader.mp4") is False
    assert detector.offer("https://cdn.example/player.js") is False
    assert detector.peek() is None


def test_detector_custom_predicate():
    detector = CandidateDetector(predicate=lambda url: "manifest" in url)
    detector.offer("https://cdn.example/abc.m3u8")
    detector.offer("https://cdn.example/manifest.mpd")
    assert detector.peek() == "https://cdn.example/manifest.mpd"


# ---------------------------------------------------------------------------
# RequestInterceptor
# ---------------------------------------------------------------------------

def _interceptor(preset="visual"):
    detector = CandidateDetector()
    return RequestInterceptor(ResourcePolicy.from_preset(preset), detector), detector


def test_interceptor_attaches_catch_all_route():
    interceptor, _ = _interceptor()
    context = FakeContext()
    asyncio.run(interceptor.attach(context))
    assert context.route_patterns == [ROUTE_PATTERN]
    assert context.handlers == [interceptor.handle_route]


def test_interceptor_continues_allowed_requests():
    interceptor, detector = _interceptor()
    route = _route("https://cdn.example/player.js", "script")
    asyncio.run(interceptor.handle_route(route))
    assert route.outcome == "continue"
    assert interceptor.stats.allowed == 1
    assert detector.peek() is None


def test_interceptor_aborts_blocked_requests():
    interceptor, _ = _interceptor()
    route = _route("https://cdn.example/poster.jpg", "image")
    asyncio.run(interceptor.handle_route(route))
    assert route.outcome == "abort"
    assert interceptor.stats.aborted == 1


def test_interceptor_aborts_and_records_candidates():
    interceptor, detector = _interceptor()
    route = _route("https://cdn.example/video/abc.m3u8", "xhr")
    asyncio.run(interceptor.handle_route(route))
    assert route.outcome == "abort"
    assert interceptor.stats.candidates == 1
    assert detector.peek() == "https://cdn.example/video/abc.m3u8"


def test_interceptor_candidate_wins_over_block_set():
    interceptor, detector = _interceptor("aggressive")
    route = _route("https://cdn.example/movie.mp4", "media")
    asyncio.run(interceptor.handle_route(route))
    assert interceptor.stats.candidates == 1
    assert interceptor.stats.aborted == 0
    assert detector.peek() == "https://cdn.example/movie.mp4"


def test_interceptor_keeps_first_candidate():
    interceptor, detector = _interceptor()

    async def run():
        await interceptor.handle_route(_route("https://cdn.example/a.m3u8"))
        await interceptor.handle_route(_route("https://cdn.example/b.m3u8"))

    asyncio.run(run())
    assert interceptor.stats.candidates == 2
    assert detector.peek() == "https://cdn.example/a.m3u8"


def test_interceptor_resolves_every_route_once():
    interceptor, _ = _interceptor()
    routes = [
        _route("https://embed.example/", "document"),
        _route("https://cdn.example/app.css", "stylesheet"),
        _route("https://cdn.example/app.js", "script"),
        _route("https://cdn.example/abc.m3u8", "xhr"),
    ]

    async def run():
        for route in routes:
            await interceptor.handle_route(route)

    asyncio.run(run())
    assert all(route.resolutions == 1 for route in routes)
    assert interceptor.stats.total == len(routes)


def test_interceptor_policy_failure_allows_request():
    def broken_predicate(url):
        raise RuntimeError("boom")

    detector = CandidateDetector()
    interceptor = RequestInterceptor(ResourcePolicy(predicate=broken_predicate), detector)
    route = _route("https://cdn.example/app.js", "script")
    asyncio.run(interceptor.handle_route(route))
    assert route.outcome == "continue"


def test_interceptor_swallows_closed_page_errors():
    interceptor, _ = _interceptor()
    route = _route("https://cdn.example/app.js", "script", fail=True)
    asyncio.run(interceptor.handle_route(route))
    assert route.resolutions == 1
    assert interceptor.stats.unresolved_errors == 1


def test_interceptor_stats_total():
    stats = InterceptorStats(allowed=2, aborted=3, candidates=1)
    assert stats.total == 6
