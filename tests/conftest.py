"""
Pytest fixtures for Cart Check tests: fake signal providers, a small whitelist,
and a FastAPI TestClient wired to them through dependency overrides.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from cartcheck_agent.history import RecentAudits
from cartcheck_agent.models import ProductSignals, SignalReport, Source
from cartcheck_agent.pipeline import ResolutionPipeline
from cartcheck_agent.whitelist import WhitelistRegistry

FIXED_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class FakeProvider:
    """Signal provider double: returns a canned report or raises a canned error."""

    def __init__(self, report: SignalReport | None = None, exc: BaseException | None = None, delay_s: float = 0.0):
        self.report = report
        self.exc = exc
        self.delay_s = delay_s
        self.calls: list[str] = []

    async def fetch_signals(self, url: str) -> SignalReport:
        self.calls.append(url)
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.exc is not None:
            raise self.exc
        assert self.report is not None
        return self.report


def make_signals(**overrides) -> ProductSignals:
    """Clean baseline listing; override fields to trigger individual rules."""
    fields = {
        "price_ratio_to_market": 1.0,
        "rating": 4.2,
        "review_count": 200,
        "seller_name": "GlobalElectronicsCo",
        "description_text": "Ships in 2 days",
        "discount_claim_percent": None,
    }
    fields.update(overrides)
    return ProductSignals(**fields)


@pytest.fixture
def signals_factory():
    return make_signals


@pytest.fixture
def clean_signals() -> ProductSignals:
    return make_signals()


@pytest.fixture
def scam_signals() -> ProductSignals:
    return make_signals(
        price_ratio_to_market=0.4,
        rating=4.8,
        review_count=8,
        seller_name="XJH_2231",
        description_text="100% original, guaranteed, free gift",
        discount_claim_percent=90,
    )


@pytest.fixture
def whitelist() -> WhitelistRegistry:
    return WhitelistRegistry(["apple.com", "samsung.com"])


@pytest.fixture
def clean_report(clean_signals) -> SignalReport:
    return SignalReport(
        signals=clean_signals,
        sources=[Source(title="Market price survey", uri="https://example.org/prices")],
    )


@pytest.fixture
def make_pipeline(whitelist):
    def _make(provider=None, timeout_s: float = 5.0) -> ResolutionPipeline:
        return ResolutionPipeline(
            whitelist=whitelist,
            provider=provider,
            provider_timeout_s=timeout_s,
            clock=lambda: FIXED_NOW,
        )

    return _make


@pytest.fixture
def recent_audits() -> RecentAudits:
    return RecentAudits()


@pytest.fixture
def api_client(make_pipeline, recent_audits):
    """FastAPI TestClient factory; each call installs a pipeline built around the given provider."""
    from fastapi.testclient import TestClient

    from cartcheck_agent.main import app, get_pipeline, get_recent_audits

    def _client(provider=None) -> TestClient:
        pipeline = make_pipeline(provider)
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        app.dependency_overrides[get_recent_audits] = lambda: recent_audits
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()
