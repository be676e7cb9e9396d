"""
Completion state API routes.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError

from todocal.api.auth import get_current_user
from todocal.api.context import AppContext, check_db_available, get_context
from todocal.models.completion import CompletionsRequest
from todocal.models.task import OperationResponse
from todocal.models.user import AuthenticatedUser

logger = logging.getLogger(__name__)

router = APIRouter()


def _is_missing(value: Any) -> bool:
    # Empty objects and lists are valid completion maps; falsy scalars are not
    if isinstance(value, (dict, list)):
        return False
    return not value


@router.post("/completions", response_model=OperationResponse)
def save_completions(
    request: CompletionsRequest | None = None,
    user: AuthenticatedUser = Depends(get_current_user),
    context: AppContext = Depends(get_context),
) -> OperationResponse:
    """Replace the user's completion map (last write wins)."""
    if request is None or _is_missing(request.completions):
        raise HTTPException(status_code=400, detail="completions data is required")

    check_db_available(context)

    try:
        with context.unit_of_work() as uow:
            uow.completions.upsert(user.id, request.completions)
            uow.commit()
    except SQLAlchemyError:
        logger.exception("Error updating completions")
        raise HTTPException(status_code=500, detail="Failed to update completions")

    return OperationResponse(message="Completions updated successfully")
