"""
Notification API router.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, Header

from geofeed.api.dependencies import get_notification_service
from geofeed.models.schemas import ApiResponse
from geofeed.services.notifications import NotificationService

router = APIRouter(prefix="/post", tags=["notifications"])


@router.get(
    "/comment-notifications",
    response_model=ApiResponse,
    summary="Get Comment Notifications",
    description="""
    Comment activity relevant to the requester over the notification window:
    comments on their posts, replies to their comments, and replies from
    others in threads they replied in. Newest first.
    """,
)
async def get_comment_notifications(
    x_user_id: UUID = Header(..., alias="X-User-ID", description="Requesting user"),
    notification_service: NotificationService = Depends(get_notification_service),
) -> ApiResponse:
    """Get comment notifications endpoint."""
    events = await notification_service.get_notifications(x_user_id)
    return ApiResponse(
        success=True,
        message="Comment notifications retrieved successfully",
        data=events,
    )
