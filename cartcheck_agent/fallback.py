"""
URL-only heuristic scoring used when the signal provider cannot be reached.

This has no access to price, rating, review or description signals, so results are
coarse and lower-confidence than provider-backed scoring. Every result says so in its
reasons and carries resolutionTier=FALLBACK.
"""
from __future__ import annotations

from datetime import datetime, timezone

from .models import AnalysisResult, RiskBreakdown
from .scoring import classify_verdict

TRUSTED_MARKETPLACE_TOKENS: tuple[str, ...] = (
    "amazon",
    "flipkart",
    "myntra",
    "apple",
    "nike",
    "adidas",
    "samsung",
    "bestbuy",
    "walmart",
    "target",
    "ebay",
    "meesho",
    "ajio",
    "tatacliq",
    "jiomart",
    "zara",
    "h&m",
    "uniqlo",
)

SCAM_PATTERN_TOKENS: tuple[str, ...] = (
    "free",
    "giveaway",
    "winner",
    "70-off",
    "80-off",
    "90-off",
    "lucky-draw",
    "wheel-spin",
    "claim-now",
    "urgent",
    "limited-time",
    "store",
    "shop",
    "discount",
)

# Safety-polarity anchors (higher is safer); results report 100 - safety as risk.
TRUSTED_SAFETY = 95
SCAM_SAFETY = 15
NEUTRAL_SAFETY = 55

LOW_CONFIDENCE_NOTE = "Limited analysis: live listing signals were unavailable, so only the URL was checked"


def _matches(url_lower: str, tokens: tuple[str, ...]) -> list[str]:
    return [t for t in tokens if t in url_lower]


def score_url(url: str, now: datetime | None = None) -> AnalysisResult:
    url_lower = (url or "").lower()
    trusted = _matches(url_lower, TRUSTED_MARKETPLACE_TOKENS)
    scam = [] if trusted else _matches(url_lower, SCAM_PATTERN_TOKENS)

    if trusted:
        safety = TRUSTED_SAFETY
        reasons = ["Verified marketplace domain signature"]
        message = "Trusted retailer. This marketplace is known and generally secure for shopping."
    elif scam:
        safety = SCAM_SAFETY
        reasons = [
            "URL matches known scam/counterfeit patterns",
            "Keyword anomaly in URL: " + ", ".join(scam),
        ]
        message = "High risk detected. The URL matches known scam or counterfeit signatures."
    else:
        safety = NEUTRAL_SAFETY
        reasons = ["Domain is not in the verified marketplace registry"]
        message = "Caution: this domain has no verifiable trust history."
    reasons.append(LOW_CONFIDENCE_NOTE)

    risk_score = 100 - safety
    return AnalysisResult(
        risk_score=risk_score,
        verdict=classify_verdict(risk_score),
        reasons=reasons,
        final_message=message,
        breakdown=RiskBreakdown.uniform(safety),
        sources=[],
        url=url,
        timestamp=now or datetime.now(timezone.utc),
        resolution_tier="FALLBACK",
    )
