from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from classquiz.api.dependencies import require_user
from classquiz.models.principal import Principal
from classquiz.repos.registry import notification_repo
from classquiz.schemas import NotificationOut, NotificationPage

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPage)
def list_notifications(
    principal: Annotated[Principal, Depends(require_user)],
    limit: Annotated[int, Query(ge=1, le=100)] = 20,
    offset: Annotated[int, Query(ge=0)] = 0,
) -> NotificationPage:
    items = notification_repo.list_for_user(
        principal.user_id, limit=limit, offset=offset
    )
    return NotificationPage(
        notifications=[
            NotificationOut(
                id=n.id,
                type=n.type,
                message=n.message,
                link=n.link,
                is_read=n.is_read,
                created_at=n.created_at,
            )
            for n in items
        ],
        unread_count=notification_repo.unread_count(principal.user_id),
    )


@router.put("/read-all")
def mark_all_read(
    principal: Annotated[Principal, Depends(require_user)],
) -> dict:
    updated = notification_repo.mark_all_read(principal.user_id)
    return {"updated": updated}


@router.put("/{notification_id}/read")
def mark_read(
    notification_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> dict:
    if not notification_repo.mark_read(principal.user_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"id": notification_id, "isRead": True}


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    principal: Annotated[Principal, Depends(require_user)],
) -> Response:
    if not notification_repo.delete(principal.user_id, notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
