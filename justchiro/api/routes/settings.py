"""
Site settings routes
"""
from fastapi import APIRouter, Depends, Path, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from justchiro.api.deps import envelope, get_current_admin, get_pipeline
from justchiro.core.database import get_db
from justchiro.models.audit_log import AuditAction
from justchiro.schemas.settings import setting_create_rules, setting_update_rules, settings_bulk_rules
from justchiro.services.auth_service import Identity
from justchiro.services.pipeline import MutationOutcome, MutationPipeline
from justchiro.services.settings_service import SettingsService

router = APIRouter()

ENTITY = "setting"
BULK_ENTITY = "settings"


@router.get("")
async def get_public_settings(db: AsyncSession = Depends(get_db)):
    """Non-sensitive settings as a flat key -> value map."""
    return envelope({"settings": await SettingsService(db).public()})


@router.get("/all")
async def get_all_settings(
    _admin: Identity = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    return envelope({"settings": await SettingsService(db).list_all()})


@router.post("/bulk")
async def bulk_update_settings(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
    """Update many settings in one transaction with one audit entry."""

    async def mutate(data, identity):
        old, new, updated = await SettingsService(pipeline.db).bulk_update(data["settings"])
        return MutationOutcome(entity_id=None, old_snapshot=old, new_snapshot=new, result=updated)

    outcome = await pipeline.run(
        request,
        action=AuditAction.BULK_UPDATE,
        entity_type=BULK_ENTITY,
        rules=settings_bulk_rules,
        mutate=mutate,
    )
    return envelope(
        {"updated": outcome.result},
        message=f"Updated {len(outcome.result)} settings successfully",
    )


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_setting(request: Request, pipeline: MutationPipeline = Depends(get_pipeline)):
    async def mutate(data, identity):
        setting = await SettingsService(pipeline.db).create(data)
        return MutationOutcome(entity_id=setting.id, new_snapshot=setting.to_dict())

    outcome = await pipeline.run(
        request,
        action=AuditAction.CREATE,
        entity_type=ENTITY,
        rules=setting_create_rules,
        mutate=mutate,
    )
    return envelope({"setting": outcome.new_snapshot}, message="Setting created successfully")


@router.put("/{key}")
async def update_setting(
    request: Request,
    key: str = Path(..., max_length=255),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    async def mutate(data, identity):
        previous, setting = await SettingsService(pipeline.db).update_value(key, data.get("value"))
        return MutationOutcome(
            entity_id=setting.id,
            old_snapshot={"setting_value": previous},
            new_snapshot={"setting_value": setting.setting_value},
            result={"key": setting.setting_key, "value": setting.setting_value},
        )

    outcome = await pipeline.run(
        request,
        action=AuditAction.UPDATE,
        entity_type=ENTITY,
        rules=setting_update_rules,
        mutate=mutate,
    )
    return envelope({"setting": outcome.result}, message="Setting updated successfully")


@router.delete("/{key}")
async def delete_setting(
    request: Request,
    key: str = Path(..., max_length=255),
    pipeline: MutationPipeline = Depends(get_pipeline),
):
    """Delete a setting. Core settings are protected."""

    async def mutate(data, identity):
        setting_id, before = await SettingsService(pipeline.db).delete(key)
        return MutationOutcome(entity_id=setting_id, old_snapshot=before)

    await pipeline.run(request, action=AuditAction.DELETE, entity_type=ENTITY, mutate=mutate)
    return envelope(message="Setting deleted successfully")
