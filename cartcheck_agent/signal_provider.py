"""
Signal providers: turn a product URL into typed ProductSignals.

Two providers are available:
- GeminiSignalProvider asks Gemini (with Google Search grounding) to look the listing up
  and report its signals as JSON.
- HttpSignalProvider posts the URL to an external signal service.

Both validate the payload strictly and classify failures at this boundary, so callers
only ever see a SignalReport, QuotaExceeded, or ProviderUnavailable (incl. SchemaMismatch).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from .config import DEFAULT_GEMINI_MODEL
from .errors import ProviderUnavailable, QuotaExceeded, SchemaMismatch
from .models import ProductSignals, SignalReport, Source

logger = logging.getLogger(__name__)


class SignalProvider(Protocol):
    async def fetch_signals(self, url: str) -> SignalReport: ...


_SYSTEM_INSTRUCTION = """You are the Verify Your Cart signal extractor. Given a product listing URL,
use search to find the listing, the seller, and the current market price for the same product.

Report ONLY what you observe. Do not score or judge the listing.

Respond with ONLY valid JSON (no markdown, no code blocks):

{
  "priceRatioToMarket": <listing price divided by typical market price, positive number>,
  "rating": <average star rating 0-5>,
  "reviewCount": <number of reviews, integer>,
  "sellerName": "<seller or store name as shown on the listing>",
  "descriptionText": "<the listing title and description text>",
  "discountClaimPercent": <advertised discount percent as integer, or null>
}"""


def _build_prompt(url: str) -> str:
    return f"Extract the listing signals for this product URL:\n{url}"


def _strip_json_fences(text: str) -> str:
    text = text.strip()
    if text.startswith("```json"):
        text = text[7:]
    elif text.startswith("```"):
        text = text[3:]
    if text.endswith("```"):
        text = text[:-3]
    return text.strip()


def _parse_json_text(text: str) -> Any:
    try:
        return json.loads(_strip_json_fences(text))
    except ValueError as e:
        raise SchemaMismatch(f"Provider response is not valid JSON: {e}") from e


def _parse_sources(raw: Any) -> list[Source]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SchemaMismatch("Provider sources must be a list")
    try:
        return [Source.model_validate(item) for item in raw]
    except ValidationError as e:
        raise SchemaMismatch(f"Provider sources failed validation: {e}") from e


def parse_signal_payload(raw: Any, sources: list[Source] | None = None) -> SignalReport:
    if not isinstance(raw, dict):
        raise SchemaMismatch(f"Provider payload must be a JSON object, got {type(raw).__name__}")
    try:
        signals = ProductSignals.model_validate(raw)
    except ValidationError as e:
        raise SchemaMismatch(f"Provider payload failed validation: {e}") from e
    return SignalReport(signals=signals, sources=sources or [])


def _sources_from_grounding(resp: Any) -> list[Source]:
    """Collect web citations from Gemini grounding metadata, if any."""
    candidates = getattr(resp, "candidates", None) or []
    if not candidates:
        return []
    meta = getattr(candidates[0], "grounding_metadata", None)
    chunks = getattr(meta, "grounding_chunks", None) or []
    out: list[Source] = []
    seen: set[str] = set()
    for chunk in chunks:
        web = getattr(chunk, "web", None)
        uri = getattr(web, "uri", None)
        if not uri or uri in seen:
            continue
        seen.add(uri)
        out.append(Source(title=getattr(web, "title", None) or uri, uri=uri))
    return out


def _is_quota_error(e: genai_errors.APIError) -> bool:
    return getattr(e, "code", None) == 429 or getattr(e, "status", None) == "RESOURCE_EXHAUSTED"


def _parse_retry_after(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return max(0, int(float(value)))
    except ValueError:
        return None


class GeminiSignalProvider:
    def __init__(self, api_key: str | None, model: str = DEFAULT_GEMINI_MODEL, client: Any | None = None):
        self._api_key = api_key
        self._model = model
        self._client = client

    def _get_client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise ProviderUnavailable("GEMINI_API_KEY is not configured")
            self._client = genai.Client(api_key=self._api_key)
        return self._client

    async def fetch_signals(self, url: str) -> SignalReport:
        client = self._get_client()

        config = types.GenerateContentConfig(
            system_instruction=_SYSTEM_INSTRUCTION,
            tools=[types.Tool(google_search=types.GoogleSearch())],
            response_mime_type="application/json",
            temperature=0.2,
            max_output_tokens=2048,
        )

        try:
            resp = await client.aio.models.generate_content(
                model=self._model,
                contents=_build_prompt(url),
                config=config,
            )
        except genai_errors.APIError as e:
            if _is_quota_error(e):
                raise QuotaExceeded(f"Gemini quota exceeded: {e}") from e
            raise ProviderUnavailable(f"Gemini call failed: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Gemini unreachable: {e}") from e

        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise SchemaMismatch("Gemini returned an empty response")

        payload = _parse_json_text(text)
        return parse_signal_payload(payload, sources=_sources_from_grounding(resp))


class HttpSignalProvider:
    """Client for an external signal service exposing ``POST /signals``.

    The service answers ``{"signals": {...ProductSignals...}, "sources": [...]}``.
    """

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout_s = timeout_s
        self._transport = transport

    async def fetch_signals(self, url: str) -> SignalReport:
        headers = {"accept": "application/json"}
        if self._token:
            headers["authorization"] = f"Bearer {self._token}"

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout_s,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                res = await client.post("/signals", json={"url": url}, headers=headers)
        except httpx.HTTPError as e:
            raise ProviderUnavailable(f"Signal service unreachable: {e}") from e

        if res.status_code == 429:
            raise QuotaExceeded(
                "Signal service rate limit reached",
                retry_after_s=_parse_retry_after(res.headers.get("retry-after")),
            )
        if res.status_code >= 400:
            raise ProviderUnavailable(f"Signal service returned HTTP {res.status_code}")

        try:
            payload = res.json()
        except ValueError as e:
            raise SchemaMismatch(f"Signal service response is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise SchemaMismatch("Signal service response must be a JSON object")

        return parse_signal_payload(payload.get("signals"), sources=_parse_sources(payload.get("sources")))


def build_signal_provider(
    signal_service_url: str | None,
    signal_service_token: str | None,
    gemini_api_key: str | None,
    gemini_model: str = DEFAULT_GEMINI_MODEL,
    timeout_s: float = 30.0,
) -> SignalProvider | None:
    """Pick a provider from config; None means every audit resolves via fallback."""
    if signal_service_url:
        logger.info("Using HTTP signal service at %s", signal_service_url)
        return HttpSignalProvider(signal_service_url, token=signal_service_token, timeout_s=timeout_s)
    if gemini_api_key:
        logger.info("Using Gemini signal provider (model=%s)", gemini_model)
        return GeminiSignalProvider(gemini_api_key, model=gemini_model)
    logger.warning("No signal provider configured; audits will use URL heuristics only")
    return None
