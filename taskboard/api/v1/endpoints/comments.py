"""
Comment Endpoints Module

Anyone with access to the project may comment. Only the author may edit or
delete a comment, and only shortly after posting it.
"""
from fastapi import APIRouter, Depends

from taskboard.api import deps
from taskboard.schemas.task import (
    AddCommentRequest,
    DeleteCommentRequest,
    EditCommentRequest,
    MutationResponse,
)
from taskboard.services.gateway import TaskGateway

router = APIRouter()


@router.post("/add-comment", response_model=MutationResponse)
def add_comment(
    body: AddCommentRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.add_comment(
        body.project_id,
        body.task_id,
        body.comment_text,
        user_id,
        user_name=body.user_name,
        avatar_url=body.avatar_url,
    )
    return MutationResponse(version=result.version, task=result.task, comment=result.comment)


@router.put("/edit-comment", response_model=MutationResponse)
def edit_comment(
    body: EditCommentRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    """
    Replace the text of a comment.

    Raises:
        403: caller is not the author or the edit window has closed
        404: project, task or comment not found
    """
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.edit_comment(
        body.project_id,
        body.task_id,
        body.comment_id,
        body.new_content,
        user_id,
    )
    return MutationResponse(version=result.version, task=result.task, comment=result.comment)


@router.delete("/delete-comment", response_model=MutationResponse)
def delete_comment(
    body: DeleteCommentRequest,
    gateway: TaskGateway = Depends(deps.get_gateway),
    current_user_id: str = Depends(deps.get_current_user_id),
):
    user_id = deps.check_body_user(body.user_id, current_user_id)
    result = gateway.delete_comment(body.project_id, body.task_id, body.comment_id, user_id)
    return MutationResponse(version=result.version, task=result.task)
