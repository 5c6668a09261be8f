"""
Tiered resolution of a product audit.

WHITELIST -> PROVIDER (signals scored by the rule table) -> FALLBACK (URL heuristics).
Every path ends in exactly one AnalysisResult, except QuotaExceeded which is raised
to the caller so it can back off.
"""
from __future__ import annotations

import asyncio
import logging
import re
import time
from datetime import datetime, timezone
from typing import Callable

from . import fallback
from .config import DEFAULT_PROVIDER_TIMEOUT_S
from .errors import AuditValidationError, ProviderUnavailable, QuotaExceeded
from .models import AnalysisResult, RiskBreakdown, SignalReport
from .scoring import final_message_for, score_signals
from .signal_provider import SignalProvider
from .whitelist import WhitelistRegistry

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z\d+.-]*://")

WHITELIST_REASON = "Manufacturer-direct domain in the verified registry; listing scoring was skipped"
WHITELIST_MESSAGE = "Official store. This domain belongs to a verified manufacturer."
NO_RISK_REASON = "No significant risk signals identified"


def normalize_url(raw: str | None) -> str:
    value = (raw or "").strip()
    if not value:
        raise AuditValidationError("Please provide a URL.")
    value = value.lower()
    if not _SCHEME_RE.match(value):
        value = "https://" + value
    return value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _whitelist_result(url: str, now: datetime) -> AnalysisResult:
    return AnalysisResult(
        risk_score=100,
        verdict="SAFE",
        reasons=[WHITELIST_REASON],
        final_message=WHITELIST_MESSAGE,
        breakdown=RiskBreakdown.uniform(100),
        sources=[],
        url=url,
        timestamp=now,
        resolution_tier="WHITELIST",
    )


def _provider_result(url: str, report: SignalReport, now: datetime) -> AnalysisResult:
    assessment = score_signals(report.signals)
    return AnalysisResult(
        risk_score=assessment.risk_score,
        verdict=assessment.verdict,
        reasons=list(assessment.reasons) or [NO_RISK_REASON],
        final_message=final_message_for(assessment.verdict),
        breakdown=assessment.breakdown,
        sources=list(report.sources),
        url=url,
        timestamp=now,
        resolution_tier="PROVIDER",
    )


class ResolutionPipeline:
    def __init__(
        self,
        whitelist: WhitelistRegistry,
        provider: SignalProvider | None = None,
        provider_timeout_s: float = DEFAULT_PROVIDER_TIMEOUT_S,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._whitelist = whitelist
        self._provider = provider
        self._provider_timeout_s = provider_timeout_s
        self._clock = clock

    async def audit(self, raw_url: str | None) -> AnalysisResult:
        url = normalize_url(raw_url)
        t0 = time.perf_counter()

        if self._whitelist.is_whitelisted(url):
            logger.info("audit url=%s tier=WHITELIST", url)
            return _whitelist_result(url, self._clock())

        if self._provider is None:
            logger.info("audit url=%s tier=FALLBACK (no provider configured)", url)
            return fallback.score_url(url, now=self._clock())

        try:
            report = await asyncio.wait_for(
                self._provider.fetch_signals(url), timeout=self._provider_timeout_s
            )
        except QuotaExceeded as e:
            logger.warning("audit url=%s provider quota exceeded: %s", url, e)
            raise
        except ProviderUnavailable as e:
            logger.warning("audit url=%s provider unavailable, using fallback: %s", url, e)
            return fallback.score_url(url, now=self._clock())
        except asyncio.TimeoutError:
            logger.warning(
                "audit url=%s provider timed out after %.1fs, using fallback", url, self._provider_timeout_s
            )
            return fallback.score_url(url, now=self._clock())
        except Exception:
            logger.exception("audit url=%s provider failed unexpectedly, using fallback", url)
            return fallback.score_url(url, now=self._clock())

        result = _provider_result(url, report, self._clock())
        logger.info(
            "audit url=%s tier=PROVIDER risk=%d verdict=%s took_ms=%d",
            url,
            result.risk_score,
            result.verdict,
            int((time.perf_counter() - t0) * 1000),
        )
        return result
