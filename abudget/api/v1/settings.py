"""GET/PUT /v1/settings - bucket percentage targets"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from abudget.api.v1.schemas import SettingsSchema
from abudget.api.dependencies import get_request_id, validation_failed
from abudget.infrastructure.database.session import get_db
from abudget.infrastructure.database.repositories import SettingsRepository
from abudget.domain.models import UserSettings
from abudget.domain.exceptions import PersistenceError, ValidationError
from abudget.domain import validation

router = APIRouter()


def _settings_schema(user_settings: UserSettings) -> SettingsSchema:
    return SettingsSchema(
        needs_percentage=user_settings.needs_percentage,
        wants_percentage=user_settings.wants_percentage,
        savings_percentage=user_settings.savings_percentage,
        last_viewed_budget_period_id=user_settings.last_viewed_budget_period_id,
    )


@router.get("/settings", response_model=SettingsSchema)
def get_settings(db: Session = Depends(get_db)):
    """Current targets; defaults are created on first access"""
    return _settings_schema(SettingsRepository(db).get_or_create())


@router.put("/settings", response_model=SettingsSchema)
def update_settings(body: SettingsSchema, request: Request, db: Session = Depends(get_db)):
    """Replace targets; needs + wants + savings must be exactly 100"""
    repo = SettingsRepository(db)
    current = repo.get_or_create()
    updated = UserSettings(
        id=current.id,
        needs_percentage=body.needs_percentage,
        wants_percentage=body.wants_percentage,
        savings_percentage=body.savings_percentage,
        last_viewed_budget_period_id=body.last_viewed_budget_period_id,
    )

    try:
        validation.validate_percentages(updated)
    except ValidationError as e:
        logging.warning(f"Settings rejected: {e}", extra={"request_id": get_request_id(request)})
        raise validation_failed([e])

    try:
        return _settings_schema(repo.update(updated))
    except PersistenceError as e:
        logging.error(f"Settings update failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Could not save settings")


@router.post("/settings/reset", response_model=SettingsSchema)
def reset_settings(request: Request, db: Session = Depends(get_db)):
    """Back to the configured 50/30/20 targets"""
    try:
        return _settings_schema(SettingsRepository(db).reset_to_defaults())
    except PersistenceError as e:
        logging.error(f"Settings reset failed: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Could not reset settings")
