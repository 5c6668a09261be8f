"""
Weighted fraud-risk rules for product listings.

Each rule inspects a ProductSignals instance independently and returns the risk it
adds (0 when it does not fire). Table order is the order reasons are reported in.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from .models import ProductSignals

Category = Literal["price", "seller", "content", "technical"]

CATEGORIES: tuple[Category, ...] = ("price", "seller", "content", "technical")

SPAM_KEYWORDS: tuple[str, ...] = (
    "100% original",
    "best quality",
    "limited offer",
    "cheap price",
    "guaranteed",
    "lowest price",
    "no return",
    "free gift",
)

DISCOUNT_ANCHORS: tuple[str, ...] = ("90% off", "80% off")

# A structured discount claim at or above this is treated like an anchor phrase.
DISCOUNT_ANCHOR_MIN_PERCENT = 80


@dataclass(frozen=True)
class Rule:
    key: str
    category: Category
    weigh: Callable[[ProductSignals], int]
    reason: Callable[[ProductSignals], str]


def found_spam_keywords(text: str) -> list[str]:
    lowered = (text or "").lower()
    return [k for k in SPAM_KEYWORDS if k in lowered]


def _strong_mismatch(s: ProductSignals) -> bool:
    return s.rating > 4.5 and s.review_count < 20


def _price_low(s: ProductSignals) -> int:
    return 30 if s.price_ratio_to_market < 0.5 else 0


def _price_moderate(s: ProductSignals) -> int:
    return 20 if 0.5 <= s.price_ratio_to_market < 0.7 else 0


def _rating_mismatch_strong(s: ProductSignals) -> int:
    return 20 if _strong_mismatch(s) else 0


def _rating_mismatch_weak(s: ProductSignals) -> int:
    if _strong_mismatch(s):
        return 0
    return 15 if s.rating > 4.0 and s.review_count < 10 else 0


def _review_volume(s: ProductSignals) -> int:
    if s.review_count < 5:
        return 25
    if s.review_count < 20:
        return 15
    if s.review_count < 50:
        return 8
    return 0


def _seller_pattern(s: ProductSignals) -> int:
    name = s.seller_name or ""
    if any(ch.isdigit() or not ch.isalnum() for ch in name):
        return 15
    return 0


def _seller_length(s: ProductSignals) -> int:
    return 10 if len(s.seller_name or "") < 4 else 0


def _spam_keywords(s: ProductSignals) -> int:
    return 5 * len(found_spam_keywords(s.description_text))


def _discount_anchor(s: ProductSignals) -> int:
    lowered = (s.description_text or "").lower()
    if any(a in lowered for a in DISCOUNT_ANCHORS):
        return 20
    if s.discount_claim_percent is not None and s.discount_claim_percent >= DISCOUNT_ANCHOR_MIN_PERCENT:
        return 20
    return 0


def _quality_baseline(s: ProductSignals) -> int:
    if s.rating < 2.5:
        return 30
    if s.rating < 3.5:
        return 15
    return 0


def _spam_reason(s: ProductSignals) -> str:
    found = found_spam_keywords(s.description_text)
    quoted = ", ".join(f'"{k}"' for k in found)
    return f"Description uses {len(found)} spam phrase(s): {quoted}"


def _discount_reason(s: ProductSignals) -> str:
    if s.discount_claim_percent is not None and s.discount_claim_percent >= DISCOUNT_ANCHOR_MIN_PERCENT:
        return f"Extreme discount claim ({s.discount_claim_percent}% off) is a common scam anchor"
    return "Extreme discount claim (80-90% off) is a common scam anchor"


RULE_TABLE: tuple[Rule, ...] = (
    Rule(
        key="price_low",
        category="price",
        weigh=_price_low,
        reason=lambda s: f"Price is {s.price_ratio_to_market:.0%} of the market price (below 50%)",
    ),
    Rule(
        key="price_moderate",
        category="price",
        weigh=_price_moderate,
        reason=lambda s: f"Price is {s.price_ratio_to_market:.0%} of the market price (below 70%)",
    ),
    Rule(
        key="rating_mismatch_strong",
        category="technical",
        weigh=_rating_mismatch_strong,
        reason=lambda s: f"Rating {s.rating:.1f} is implausibly high for only {s.review_count} reviews",
    ),
    Rule(
        key="rating_mismatch_weak",
        category="technical",
        weigh=_rating_mismatch_weak,
        reason=lambda s: f"Rating {s.rating:.1f} is high for only {s.review_count} reviews",
    ),
    Rule(
        key="review_volume",
        category="technical",
        weigh=_review_volume,
        reason=lambda s: f"Low review volume ({s.review_count} reviews)",
    ),
    Rule(
        key="seller_pattern",
        category="seller",
        weigh=_seller_pattern,
        reason=lambda s: f'Seller name "{s.seller_name}" contains digits or special characters',
    ),
    Rule(
        key="seller_length",
        category="seller",
        weigh=_seller_length,
        reason=lambda s: f'Seller name "{s.seller_name}" is unusually short',
    ),
    Rule(
        key="spam_keywords",
        category="content",
        weigh=_spam_keywords,
        reason=_spam_reason,
    ),
    Rule(
        key="discount_anchor",
        category="price",
        weigh=_discount_anchor,
        reason=_discount_reason,
    ),
    Rule(
        key="quality_baseline",
        category="technical",
        weigh=_quality_baseline,
        reason=lambda s: f"Low product rating ({s.rating:.1f} out of 5)",
    ),
)
