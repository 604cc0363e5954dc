"""
Shopping list export route.
"""

import logging

from fastapi import APIRouter, Depends, Query

from . import export_response, get_formatter, get_repository_factory
from ..auth import get_current_user
from ...exceptions import NotFoundError, create_error_context
from ...export import ExportKind, ShoppingListDocument, parse_export_kind

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/shopping-lists", tags=["shopping"])


@router.get("/{list_id}/export")
async def export_shopping_list(
    list_id: int,
    format: str = Query("text"),
    user: dict = Depends(get_current_user),
):
    """Download a shopping list as text (default), CSV or JSON."""
    kind = parse_export_kind(format, default=ExportKind.TEXT)
    repo = await get_repository_factory().get_shopping_list_repository()
    shopping_list = await repo.get_list(user["user_id"], list_id)
    if shopping_list is None:
        raise NotFoundError(
            message=f"Shopping list {list_id} not found",
            error_code="SHOPPING_LIST_NOT_FOUND",
            context=create_error_context(operation="export_shopping_list", user_id=user["user_id"]),
            user_message="Shopping list not found",
        )

    result = get_formatter().format(ShoppingListDocument(shopping_list), kind)
    return export_response(result)
