"""Financial health analysis endpoints"""

import time
import logging
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from finhealth_gateway.api.v1.schemas import AnalysisResponse, SnapshotRequest
from finhealth_gateway.api.dependencies import get_analyzer, get_request_id
from finhealth_gateway.domain.models import FinancialSnapshot
from finhealth_gateway.infrastructure.database.session import get_db
from finhealth_gateway.infrastructure.database.repositories import SnapshotRepository
from finhealth_gateway.infrastructure.observability.logging import log_analysis
from finhealth_gateway.services.health_analysis import FinancialHealthAnalyzer

router = APIRouter()


async def _run_analysis(
    analyzer: FinancialHealthAnalyzer,
    snapshot: FinancialSnapshot,
    request_id: str,
    user_id: Optional[str],
) -> AnalysisResponse:
    start_time = time.time()
    try:
        result = await analyzer.analyze(snapshot)
    except Exception as e:
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_analysis(request_id, user_id, result.source, result.provider, result.health_score, duration_ms)
    return AnalysisResponse.from_domain(result)


@router.post("/analysis", response_model=AnalysisResponse)
async def analyze_snapshot(
    request_body: SnapshotRequest,
    request: Request,
    analyzer: FinancialHealthAnalyzer = Depends(get_analyzer),
):
    """
    Analyze a financial snapshot supplied in the request body.

    Always returns a populated result: when every AI provider fails or its
    answer is unusable, the result is computed offline and says so.
    """
    return await _run_analysis(analyzer, request_body.to_domain(), get_request_id(request), None)


@router.get("/users/{user_id}/analysis", response_model=AnalysisResponse)
async def analyze_user(
    user_id: str,
    request: Request,
    db: Session = Depends(get_db),
    analyzer: FinancialHealthAnalyzer = Depends(get_analyzer),
):
    """
    Analyze the accounts and transactions stored for a user.

    Flow:
    1. Load the user's snapshot from the database
    2. Run AI analysis with provider fallback
    3. Fall back to offline analysis on any AI-path failure
    """
    request_id = get_request_id(request)
    try:
        snapshot = SnapshotRepository(db).get_financial_snapshot(user_id)
    except Exception as e:
        logging.error(f"Snapshot load failed: {e}", extra={"request_id": request_id, "user_id": user_id})
        raise HTTPException(status_code=503, detail="Financial data unavailable")

    return await _run_analysis(analyzer, snapshot, request_id, user_id)
