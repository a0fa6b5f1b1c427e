"""AI edit charging router."""

from fastapi import APIRouter

from src.api.core.dependencies import CurrentAccountDep, EditCreditServiceDep
from src.api.core.messages import APIResponse, MessageCode
from src.database.models import EditAction
from src.api.edits.schemas import (
    EditPermissionModel,
    EditPermissionResponse,
    EditPreviewModel,
    EditPreviewRequest,
    EditPreviewResponse,
    RecordedEditModel,
    RecordedEditResponse,
    RecordEditRequest,
)

router = APIRouter(prefix="/edits", tags=["edits"])


@router.get("/permission", response_model=EditPermissionResponse)
async def check_edit_permission(
    action: EditAction,
    account: CurrentAccountDep,
    service: EditCreditServiceDep,
) -> EditPermissionResponse:
    """Whether the next edit of ``action`` is free, affordable or blocked."""
    permission = await service.check_edit_permission(account.account_id, action)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=EditPermissionModel(
            action=action,
            can_edit=permission.can_edit,
            required_credits=permission.required_credits,
            current_balance=permission.current_balance,
            edit_count=permission.edit_count,
            is_free=permission.is_free,
            message=permission.message,
        ),
    )


@router.post("/preview", response_model=EditPreviewResponse)
async def preview_edit_costs(
    body: EditPreviewRequest,
    account: CurrentAccountDep,
    service: EditCreditServiceDep,
) -> EditPreviewResponse:
    """Price the next ``count`` edits without charging anything."""
    preview = await service.calculate_multiple_edit_credits(
        account.account_id, body.action, body.count
    )
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=EditPreviewModel.model_validate(preview),
    )


@router.post("/record", response_model=RecordedEditResponse)
async def record_edit(
    body: RecordEditRequest,
    account: CurrentAccountDep,
    service: EditCreditServiceDep,
) -> RecordedEditResponse:
    """Record a completed edit, charging it when the free quota is used up."""
    result = await service.record_successful_edit(
        account.account_id, body.story_id, body.action, body.metadata
    )
    return APIResponse.success(
        message_code=MessageCode.EDIT_RECORDED,
        data=RecordedEditModel(
            id=result.edit.id,
            story_id=result.edit.story_id,
            action=body.action,
            requested_at=result.edit.requested_at,
            credits_charged=result.credits_charged,
            balance=result.balance_after,
            edit_count=result.edit_count,
        ),
    )
