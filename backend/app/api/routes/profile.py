"""Player profile routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.profile import AvatarUpdateRequest, ProfileResponse, ProfileUpdateRequest
from app.core.security import get_current_user_id
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.activity import on_activity
from app.services.profile_service import AvatarItemLockedError, profile_snapshot, update_avatar, update_profile
from app.services.user_service import ensure_player_profile

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse, tags=["profile"])
def get_profile(
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("profile.get", metadata={"route": "/profile"}, user_id=str(user_id), request_id=request_id):
            bundle = ensure_player_profile(db, user_id)
            db.commit()
    except Exception:
        db.rollback()
        raise
    return ProfileResponse(**profile_snapshot(bundle), request_id=request_id or "")


@router.patch("/profile", response_model=ProfileResponse, tags=["profile"])
def patch_profile(
    payload: ProfileUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("profile.update", metadata={"language": payload.language}, user_id=str(user_id), request_id=request_id):
            bundle = update_profile(
                db,
                user_id,
                display_name=payload.display_name,
                language=payload.language,
                request_id=request_id,
            )
            db.commit()
    except Exception:
        db.rollback()
        raise

    log_metric("profile.update.success", 1)
    return ProfileResponse(**profile_snapshot(bundle), request_id=request_id or "")


@router.patch("/profile/avatar", response_model=ProfileResponse, tags=["profile"])
def patch_avatar(
    payload: AvatarUpdateRequest,
    http_request: Request,
    user_id: UUID = Depends(get_current_user_id),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Equip avatar items; only default or unlocked items are accepted."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace("profile.avatar", metadata=payload.model_dump(), user_id=str(user_id), request_id=request_id):
            bundle = update_avatar(db, user_id, payload.model_dump(), request_id=request_id)
            db.commit()
    except AvatarItemLockedError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    on_activity(db, user_id, "player_profiles")
    log_metric("profile.avatar.success", 1)
    return ProfileResponse(**profile_snapshot(bundle), request_id=request_id or "")
