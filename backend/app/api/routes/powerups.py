"""Power-up shop routes."""
from __future__ import annotations

from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.powerup import (
    ActivePowerUpsResponse,
    ActivePowerUpSummary,
    ChestRewardPayload,
    PowerUpActivateRequest,
    PowerUpActivateResponse,
    PowerUpCatalogItem,
    PowerUpCatalogResponse,
)
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import annotate, trace
from app.services.activity import on_activity
from app.services.gamification.powerups import (
    InsufficientCreditsError,
    PowerUpUnavailableError,
    UnknownPowerUpError,
    activate_powerup,
    list_catalog,
)
from app.services.gamification.rewards import active_xp_multiplier, get_active_powerups, has_streak_protection

router = APIRouter()


@router.get("/powerups/catalog", response_model=PowerUpCatalogResponse, tags=["powerups"])
def get_catalog(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
) -> PowerUpCatalogResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("powerups.catalog", user_id=str(user_id), request_id=request_id):
        items = [PowerUpCatalogItem(**definition.to_dict()) for definition in list_catalog()]
    return PowerUpCatalogResponse(items=items, request_id=request_id or "")


@router.get("/powerups/active", response_model=ActivePowerUpsResponse, tags=["powerups"])
def get_active(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ActivePowerUpsResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("powerups.active", user_id=str(user_id), request_id=request_id):
        active = get_active_powerups(db, user_id)
        multiplier = active_xp_multiplier(db, user_id)
        protected = has_streak_protection(db, user_id)
    return ActivePowerUpsResponse(
        active=[ActivePowerUpSummary.model_validate(powerup) for powerup in active],
        xp_multiplier=multiplier,
        streak_protected=protected,
        request_id=request_id or "",
    )


@router.post("/powerups/activate", response_model=PowerUpActivateResponse, tags=["powerups"])
def activate(
    payload: PowerUpActivateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> PowerUpActivateResponse:
    """Buy a power-up with player credits and apply its reward."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace(
            "powerups.activate",
            metadata={"powerup_type": payload.powerup_type},
            user_id=str(user_id),
            request_id=request_id,
        ) as span:
            resolution = activate_powerup(db, user_id, payload.powerup_type, request_id=request_id)
            db.commit()
            annotate(span, reward_type=resolution.reward_type, credits_balance=resolution.credits_balance)
    except UnknownPowerUpError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except PowerUpUnavailableError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except InsufficientCreditsError as exc:
        db.rollback()
        log_metric("powerups.activate.insufficient_credits", 1, metadata={"powerup_type": payload.powerup_type})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    if resolution.xp_granted or resolution.unlocked_item:
        on_activity(db, user_id, "player_profiles")
    log_metric(
        "powerups.activate.success",
        1,
        metadata={"powerup_type": payload.powerup_type, "reward_type": resolution.reward_type},
    )

    return PowerUpActivateResponse(
        powerup_type=resolution.powerup_type,
        reward_type=resolution.reward_type,
        credits_spent=resolution.credits_spent,
        credits_balance=resolution.credits_balance,
        ai_credits_balance=resolution.ai_credits_balance,
        ai_credits_granted=resolution.ai_credits_granted,
        credits_granted=resolution.credits_granted,
        xp_granted=resolution.xp_granted,
        level=resolution.level,
        leveled_up=resolution.leveled_up,
        unlocked_item=resolution.unlocked_item,
        multiplier=resolution.multiplier,
        expires_at=resolution.expires_at,
        chest=ChestRewardPayload(**asdict(resolution.chest)) if resolution.chest else None,
        request_id=request_id or "",
    )
