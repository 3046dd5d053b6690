"""Plan catalogue API router."""

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.exc import IntegrityError

from healthconsultant.common.security import Identity, require_admin
from healthconsultant.plans.schemas import PlanCreate, PlanResponse, PlanUpdate

router = APIRouter()


def _get_service():
    from healthconsultant.deps import get_plan_catalog
    return get_plan_catalog()


def _get_db():
    from healthconsultant.deps import get_db
    return get_db()


@router.get("/plans", response_model=list[PlanResponse])
async def list_active_plans(response: Response):
    response.headers["Cache-Control"] = "no-store"
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        plans = await svc.list_active_plans(session)
        return [PlanResponse.model_validate(p) for p in plans]


# ── Admin ──

@router.get("/admin/plans", response_model=list[PlanResponse])
async def list_plans(_: Identity = Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        plans = await svc.list_plans(session)
        return [PlanResponse.model_validate(p) for p in plans]


@router.post("/admin/plans", response_model=PlanResponse, status_code=201)
async def create_plan(body: PlanCreate, _: Identity = Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            plan = await svc.create_plan(session, **body.model_dump())
            return PlanResponse.model_validate(plan)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=f"Plan '{body.title}' already exists")


@router.patch("/admin/plans/{plan_id}", response_model=PlanResponse)
async def update_plan(
    plan_id: str, body: PlanUpdate, _: Identity = Depends(require_admin),
):
    svc = _get_service()
    db = _get_db()
    try:
        async with db.get_session() as session:
            plan = await svc.update_plan(session, plan_id, **body.model_dump(exclude_unset=True))
            if plan is None:
                raise HTTPException(status_code=404, detail="Plan not found")
            return PlanResponse.model_validate(plan)
    except IntegrityError:
        raise HTTPException(status_code=409, detail=f"Plan '{body.title}' already exists")


@router.delete("/admin/plans/{plan_id}", status_code=204)
async def delete_plan(plan_id: str, _: Identity = Depends(require_admin)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        deleted = await svc.delete_plan(session, plan_id)
        if not deleted:
            raise HTTPException(status_code=404, detail="Plan not found")
