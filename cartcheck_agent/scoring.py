from __future__ import annotations

from dataclasses import dataclass, field

from .models import ProductSignals, RiskBreakdown, Verdict
from .rules import CATEGORIES, RULE_TABLE, Rule

SAFE_MAX = 30
RISKY_MAX = 70

_FINAL_MESSAGES: dict[str, str] = {
    "SAFE": "Safe to buy. No significant fraud signals were detected for this listing.",
    "RISKY": "Caution advised: the audit found an unverified seller or pricing anomalies.",
    "FAKE": "Avoid buying: this listing matches high-risk counterfeit patterns.",
}


@dataclass(frozen=True)
class RiskAssessment:
    risk_score: int
    verdict: Verdict
    reasons: tuple[str, ...]
    breakdown: RiskBreakdown
    fired: dict[str, int] = field(default_factory=dict)


def _clamp_score(score: float) -> int:
    return max(0, min(100, int(score)))


def classify_verdict(score: int) -> Verdict:
    if score <= SAFE_MAX:
        return "SAFE"
    if score <= RISKY_MAX:
        return "RISKY"
    return "FAKE"


def final_message_for(verdict: Verdict) -> str:
    return _FINAL_MESSAGES[verdict]


def score_signals(signals: ProductSignals, rules: tuple[Rule, ...] = RULE_TABLE) -> RiskAssessment:
    """Apply the rule table to one listing's signals.

    Weights of every fired rule are summed and the total clamped to [0, 100]; that
    total is the risk score. Each breakdown category reports 100 minus the (clamped)
    risk its own rules contributed, so 100 means "nothing suspicious in this area".
    """
    total = 0
    reasons: list[str] = []
    fired: dict[str, int] = {}
    per_category: dict[str, int] = {c: 0 for c in CATEGORIES}

    for rule in rules:
        weight = rule.weigh(signals)
        if weight <= 0:
            continue
        total += weight
        fired[rule.key] = weight
        per_category[rule.category] += weight
        reasons.append(rule.reason(signals))

    risk_score = _clamp_score(total)
    breakdown = RiskBreakdown(
        price_score=100 - _clamp_score(per_category["price"]),
        seller_score=100 - _clamp_score(per_category["seller"]),
        content_score=100 - _clamp_score(per_category["content"]),
        technical_score=100 - _clamp_score(per_category["technical"]),
    )
    return RiskAssessment(
        risk_score=risk_score,
        verdict=classify_verdict(risk_score),
        reasons=tuple(reasons),
        breakdown=breakdown,
        fired=fired,
    )
