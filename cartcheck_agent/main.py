from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .config import load_settings
from .errors import AuditValidationError, QuotaExceeded
from .history import RecentAudits
from .models import AnalysisResult, AuditRequest, SafetyView
from .pipeline import ResolutionPipeline
from .signal_provider import build_signal_provider
from .whitelist import load_whitelist

# Load environment variables from the repo root .env (so GEMINI_API_KEY works in local dev)
_HERE = Path(__file__).resolve()
_AGENT_ROOT = _HERE.parents[1]
load_dotenv(_AGENT_ROOT / ".env", override=False)

settings = load_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Cart Check Agent", version="0.1.0")

_pipeline = ResolutionPipeline(
    whitelist=load_whitelist(settings.whitelist_domains, settings.whitelist_path),
    provider=build_signal_provider(
        settings.signal_service_url,
        settings.signal_service_token,
        settings.gemini_api_key,
        gemini_model=settings.gemini_model,
        timeout_s=settings.provider_timeout_s,
    ),
    provider_timeout_s=settings.provider_timeout_s,
)
_recent_audits = RecentAudits()


def get_pipeline() -> ResolutionPipeline:
    return _pipeline


def get_recent_audits() -> RecentAudits:
    return _recent_audits


# For local dev, this defaults to allowing http://localhost:3000.
# In production, set CARTCHECK_CORS_ORIGINS to your deployed frontend origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/audit", response_model=AnalysisResult | SafetyView)
@app.post("/analyze", response_model=AnalysisResult | SafetyView, include_in_schema=False)
async def audit_endpoint(
    req: AuditRequest,
    view: Literal["risk", "safety"] = "risk",
    pipeline: ResolutionPipeline = Depends(get_pipeline),
    recent: RecentAudits = Depends(get_recent_audits),
):
    try:
        result = await pipeline.audit(req.url)
    except AuditValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except QuotaExceeded as e:
        retry_after = e.retry_after_s if e.retry_after_s is not None else 30
        raise HTTPException(
            status_code=429,
            detail="Verification quota reached. Please wait a moment and retry.",
            headers={"Retry-After": str(retry_after)},
        )

    recent.record(result.url)
    if view == "safety":
        return result.to_safety_view()
    return result


@app.get("/audits/recent")
def recent_audits_endpoint(recent: RecentAudits = Depends(get_recent_audits)):
    return {"urls": recent.snapshot()}
