"""Account API router — the caller's profile and plan, plus user admin."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.exc import IntegrityError

from healthconsultant.accounts.schemas import (
    PlanChangeRequest,
    PlanChangeResponse,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from healthconsultant.common.config import get_settings
from healthconsultant.common.exceptions import UserNotFoundError, ValidationError
from healthconsultant.common.security import Identity, require_admin, require_identity

router = APIRouter()


def _get_service():
    from healthconsultant.deps import get_account_service
    return get_account_service()


def _get_plans():
    from healthconsultant.deps import get_plan_catalog
    return get_plan_catalog()


def _get_db():
    from healthconsultant.deps import get_db
    return get_db()


@router.get("/user/profile", response_model=UserResponse)
async def get_profile(identity: Identity = Depends(require_identity)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.get_by_email(session, identity.email)
        if user is None:
            raise UserNotFoundError()
        return UserResponse.model_validate(user)


@router.put("/user/plan", response_model=PlanChangeResponse)
async def change_plan(
    body: PlanChangeRequest,
    identity: Identity = Depends(require_identity),
):
    svc = _get_service()
    plans = _get_plans()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.get_by_email(session, identity.email)
        if user is None:
            raise UserNotFoundError()
        plan = await plans.get_by_title(session, body.plan)
        if plan is None or not plan.is_active:
            raise ValidationError(f"Unknown plan '{body.plan}'")
        user = await svc.change_plan(session, user, plan, actor=identity.email)
        return PlanChangeResponse(message="Plan updated successfully", plan=user.plan)


# ── Admin ──

@router.get("/admin/users", response_model=list[UserResponse])
async def list_users(
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    _: Identity = Depends(require_admin),
):
    settings = get_settings()
    limit = min(limit or settings.default_page_size, settings.max_page_size)
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        users = await svc.list_users(session, limit=limit, offset=offset)
        return [UserResponse.model_validate(u) for u in users]


@router.post("/admin/users", response_model=UserResponse, status_code=201)
async def create_user(body: UserCreate, _: Identity = Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            user = await svc.create_user(
                session, body.email,
                first_name=body.first_name,
                plan=body.plan,
                is_admin=body.is_admin,
            )
            return UserResponse.model_validate(user)
    except IntegrityError:
        raise HTTPException(status_code=409, detail="A user with this email already exists")


@router.patch("/admin/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    admin: Identity = Depends(require_admin),
):
    svc = _get_service()
    plans = _get_plans()
    db = _get_db()
    async with db.get_session() as session:
        updates = body.model_dump(exclude_unset=True)
        new_plan = updates.pop("plan", None)
        user = await svc.update_user(session, user_id, **updates)
        if user is None:
            raise HTTPException(status_code=404, detail="User not found")
        if new_plan:
            plan = await plans.get_by_title(session, new_plan)
            if plan is None:
                raise ValidationError(f"Unknown plan '{new_plan}'")
            user = await svc.change_plan(session, user, plan, actor=admin.email)
        return UserResponse.model_validate(user)


@router.delete("/admin/users/{user_id}", status_code=204)
async def delete_user(user_id: str, _: Identity = Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        deleted = await svc.delete_user(session, user_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="User not found")
