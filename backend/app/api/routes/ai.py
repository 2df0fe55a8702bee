"""AI assistant routes: chat, activity analysis and cross-data insights."""
from __future__ import annotations

import logging
from time import perf_counter
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from app.api.schemas.ai import (
    AnalysisRequest,
    AnalysisResponse,
    ChatRequest,
    ChatResponse,
    InsightRequest,
    InsightResponse,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.services.ai.assistant import (
    CHAT_FAILURE_MESSAGE,
    NotEnoughAICreditsError,
    run_analysis,
    run_chat,
    run_insight,
)
from app.services.ai.gateway import LLMGateway, LLMGatewayError, get_llm_gateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])


def _payment_required(exc: NotEnoughAICreditsError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_402_PAYMENT_REQUIRED, detail=str(exc))


@router.post("/chat", response_model=ChatResponse)
def chat(
    payload: ChatRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    gateway: LLMGateway = Depends(get_llm_gateway),
):
    request_id = getattr(http_request.state, "request_id", None)
    if payload.user_id is not None and payload.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="user_id does not match token")

    start = perf_counter()
    try:
        outcome = run_chat(db, gateway, user_id, payload.message, payload.context, request_id=request_id)
        db.commit()
    except NotEnoughAICreditsError as exc:
        db.rollback()
        raise _payment_required(exc) from exc
    except LLMGatewayError as exc:
        db.rollback()
        logger.warning("Chat request failed: %s", exc)
        log_metric("ai.chat.failure", 1)
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={
                "response": CHAT_FAILURE_MESSAGE,
                "suggestion": None,
                "error": True,
                "request_id": request_id or "",
            },
        )
    except Exception:
        db.rollback()
        raise

    log_metric("ai.chat.latency_ms", (perf_counter() - start) * 1000)
    log_metric("ai.chat.suggestion", 1 if outcome.suggestion else 0)
    return ChatResponse(
        response=outcome.response,
        suggestion=outcome.suggestion,
        error=False,
        credits_remaining=outcome.credits_remaining,
        request_id=request_id or "",
    )


@router.post("/analysis", response_model=AnalysisResponse)
def analysis(
    http_request: Request,
    payload: Optional[AnalysisRequest] = Body(default=None),
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    gateway: LLMGateway = Depends(get_llm_gateway),
) -> AnalysisResponse:
    """Markdown productivity analysis; a static report is returned when the model fails."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        outcome = run_analysis(db, gateway, user_id, language=payload.language if payload else None, request_id=request_id)
        db.commit()
    except NotEnoughAICreditsError as exc:
        db.rollback()
        raise _payment_required(exc) from exc
    except Exception:
        db.rollback()
        raise

    return AnalysisResponse(
        analysis=outcome.analysis,
        stats=outcome.stats,
        error=outcome.error,
        credits_remaining=outcome.credits_remaining,
        request_id=request_id or "",
    )


@router.post("/insights", response_model=InsightResponse)
def insights(
    payload: InsightRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    gateway: LLMGateway = Depends(get_llm_gateway),
) -> InsightResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        outcome = run_insight(db, gateway, user_id, payload.type, request_id=request_id)
        db.commit()
    except NotEnoughAICreditsError as exc:
        db.rollback()
        raise _payment_required(exc) from exc
    except LLMGatewayError as exc:
        db.rollback()
        log_metric("ai.insight.failure", 1, metadata={"type": payload.type})
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="AI service unavailable") from exc
    except Exception:
        db.rollback()
        raise

    log_metric("ai.insight.success", 1, metadata={"type": payload.type})
    return InsightResponse(
        type=outcome.type,
        result=outcome.result,
        generated_at=outcome.generated_at,
        credits_remaining=outcome.credits_remaining,
        request_id=request_id or "",
    )
