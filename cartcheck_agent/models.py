from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Verdict = Literal["SAFE", "RISKY", "FAKE"]
ResolutionTier = Literal["WHITELIST", "PROVIDER", "FALLBACK"]
LegacyStatus = Literal["REAL", "SUSPICIOUS", "FAKE"]

_LEGACY_STATUS: dict[str, LegacyStatus] = {
    "SAFE": "REAL",
    "RISKY": "SUSPICIOUS",
    "FAKE": "FAKE",
}


class _CamelModel(BaseModel):
    # Wire payloads use camelCase keys; Python code uses the snake_case names.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class AuditRequest(BaseModel):
    # Optional so a missing url reaches the handler and is rejected with a 400.
    url: str | None = None


class ProductSignals(_CamelModel):
    # Strict: provider payloads are not coerced ("8" is not a review count, true is not a rating).
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True, extra="ignore", strict=True
    )

    price_ratio_to_market: float = Field(..., gt=0)
    rating: float = Field(..., ge=0, le=5)
    review_count: int = Field(..., ge=0)
    seller_name: str = Field(...)
    description_text: str = Field(...)
    discount_claim_percent: int | None = Field(None, ge=0, le=100)


class RiskBreakdown(_CamelModel):
    price_score: float = Field(..., ge=0, le=100)
    seller_score: float = Field(..., ge=0, le=100)
    content_score: float = Field(..., ge=0, le=100)
    technical_score: float = Field(..., ge=0, le=100)

    @classmethod
    def uniform(cls, value: float) -> RiskBreakdown:
        return cls(price_score=value, seller_score=value, content_score=value, technical_score=value)


class Source(_CamelModel):
    title: str
    uri: str


class SignalReport(BaseModel):
    """What a signal provider hands back for one URL."""

    model_config = ConfigDict(frozen=True)

    signals: ProductSignals
    sources: list[Source] = Field(default_factory=list)


class SafetyView(_CamelModel):
    """Safety-polarity rendition of an AnalysisResult (higher is safer)."""

    safety_score: int = Field(..., ge=0, le=100)
    status: LegacyStatus
    reason: str
    reasons: list[str]
    final_message: str
    url: str
    timestamp: datetime
    resolution_tier: ResolutionTier


class AnalysisResult(_CamelModel):
    risk_score: int = Field(..., ge=0, le=100)
    verdict: Verdict
    reasons: list[str]
    final_message: str
    breakdown: RiskBreakdown
    sources: list[Source] = Field(default_factory=list)
    url: str
    timestamp: datetime
    resolution_tier: ResolutionTier

    @model_validator(mode="after")
    def _check_verdict(self) -> AnalysisResult:
        from .scoring import classify_verdict

        if self.resolution_tier == "WHITELIST":
            if self.risk_score != 100 or self.verdict != "SAFE":
                raise ValueError("whitelisted results must carry riskScore=100 and verdict=SAFE")
        elif self.verdict != classify_verdict(self.risk_score):
            raise ValueError(
                f"verdict {self.verdict} does not match riskScore {self.risk_score}"
            )
        return self

    def to_safety_view(self) -> SafetyView:
        # Whitelisted results already carry the "fully verified" 100.
        if self.resolution_tier == "WHITELIST":
            safety = 100
        else:
            safety = 100 - self.risk_score
        return SafetyView(
            safety_score=safety,
            status=_LEGACY_STATUS[self.verdict],
            reason=". ".join(self.reasons),
            reasons=list(self.reasons),
            final_message=self.final_message,
            url=self.url,
            timestamp=self.timestamp,
            resolution_tier=self.resolution_tier,
        )
