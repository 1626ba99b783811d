from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from usage_monitor.core.errors import dashboard_error
from usage_monitor.core.usage import CapacityMode
from usage_monitor.core.usage.types import MonitorSettings
from usage_monitor.dependencies import SettingsContext, get_settings_context
from usage_monitor.modules.accounts.service import NotSignedInError
from usage_monitor.modules.settings.schemas import SettingsResponse, SettingsUpdateRequest
from usage_monitor.modules.settings.service import SettingsValidationError

router = APIRouter(prefix="/api/settings", tags=["dashboard"])


def _to_response(settings: MonitorSettings) -> SettingsResponse:
    return SettingsResponse(
        capacity_mode=settings.capacity_mode,
        x2_mode=settings.x2_mode,
        capacity=settings.capacity,
        account_names={number: settings.name_for(number) for number in settings.accounts},
    )


@router.get("", response_model=SettingsResponse)
async def get_settings(
    context: SettingsContext = Depends(get_settings_context),
) -> SettingsResponse:
    return _to_response(await context.service.get_settings())


@router.put("", response_model=SettingsResponse)
async def update_settings(
    payload: SettingsUpdateRequest = Body(...),
    context: SettingsContext = Depends(get_settings_context),
) -> SettingsResponse | JSONResponse:
    capacity_mode = payload.capacity_mode
    if capacity_mode is None and payload.x2_mode is not None:
        capacity_mode = CapacityMode.DOUBLED if payload.x2_mode else CapacityMode.NORMAL
    try:
        updated = await context.service.update_settings(
            capacity_mode=capacity_mode,
            account_names=payload.account_names,
        )
    except NotSignedInError:
        return JSONResponse(status_code=401, content=dashboard_error("authentication_required", "Sign in required"))
    except SettingsValidationError as exc:
        return JSONResponse(status_code=400, content=dashboard_error("invalid_settings", str(exc)))
    return _to_response(updated)
