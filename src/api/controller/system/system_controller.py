"""
System controller: public view of runtime feature flags.
"""

from fastapi import APIRouter, Depends

from src.api.controller.system.dto.output_dto import SubmissionsStatusResponseDto
from src.core.dependencies import get_feature_flag_service
from src.core.service.system.feature_flags import FeatureFlagService

router = APIRouter(prefix="/system", tags=["System"])


@router.get("/submissions-status", response_model=SubmissionsStatusResponseDto)
async def submissions_status(feature_flags: FeatureFlagService = Depends(get_feature_flag_service)):
    enabled = await feature_flags.get_submissions_enabled()
    state = "enabled" if enabled else "disabled"
    return SubmissionsStatusResponseDto(
        areSubmissionsEnabled=enabled,
        message=f"Submissions are currently {state}"
    )
