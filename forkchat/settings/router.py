"""FastAPI routes for completion settings."""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, ValidationError

from forkchat.models import ApiSettings
from forkchat.settings.service import SettingsService

router = APIRouter(prefix="/api/settings", tags=["settings"])


class PatchSettingsRequest(BaseModel):
    """Only fields present in the request body are changed."""

    model: str | None = None
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, ge=1)
    system_prompt: str | None = None


def get_settings_service() -> SettingsService:
    """Dependency placeholder, overridden in the app lifespan."""
    raise RuntimeError("SettingsService not initialized")


@router.get("")
async def get_settings(
    service: SettingsService = Depends(get_settings_service),
) -> ApiSettings:
    return await service.get()


@router.patch("")
async def update_settings(
    request: PatchSettingsRequest,
    service: SettingsService = Depends(get_settings_service),
) -> ApiSettings:
    try:
        return await service.update(request.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))
