from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from ..permissions import check_all_permissions, generate_permission_guidance
from ..runtime import RuntimeContext, get_runtime
from ..schemas import PermissionsOut, PermissionStatusOut

router = APIRouter(
    prefix="/api/v1/permissions",
    tags=["permissions"],
)


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=PermissionsOut,
    summary="Check Permissions",
    description=(
        "Run the data-access and automation probes concurrently and return both "
        "statuses with remediation guidance for the ones that failed."
    ),
    responses={200: {"description": "Probe results"}},
)
async def read_permissions(runtime: RuntimeContext = Depends(get_runtime)) -> PermissionsOut:
    """
    Report the state of both OS permissions. Never fails on a denied permission.
    """
    permissions = await check_all_permissions(await runtime.helper_path(), runtime.settings, runtime.runner)
    return PermissionsOut(
        event_kit=PermissionStatusOut(**asdict(permissions.event_kit)),
        apple_script=PermissionStatusOut(**asdict(permissions.apple_script)),
        all_granted=permissions.all_granted,
        guidance=generate_permission_guidance(permissions),
    )
