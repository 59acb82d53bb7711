"""Notification schemas"""
import json
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import Field, field_validator

from .base import BaseSchema

NotificationType = Literal["success", "error", "info", "warning"]


class NotificationCreate(BaseSchema):
    """Schema for creating a notification"""
    message: str = Field(..., min_length=1)
    type: NotificationType
    title: Optional[str] = Field(None, max_length=255)
    duration: Optional[int] = Field(None, ge=0)
    action_url: Optional[str] = Field(None, max_length=1000)
    action_text: Optional[str] = Field(None, max_length=255)
    metadata: Optional[dict[str, Any]] = None


class NotificationUpdate(BaseSchema):
    """Schema for updating a notification"""
    read: bool = True


class NotificationResponse(BaseSchema):
    """Schema for notification response"""
    id: str
    type: str
    title: Optional[str] = None
    message: str
    read: bool = Field(..., validation_alias="is_read")
    read_at: Optional[datetime] = None
    duration: Optional[int] = None
    action_url: Optional[str] = None
    action_text: Optional[str] = None
    metadata: Optional[dict[str, Any]] = Field(None, validation_alias="metadata_json")
    created_at: datetime
    updated_at: datetime

    @field_validator("metadata", mode="before")
    @classmethod
    def _parse_metadata(cls, value):
        if isinstance(value, str):
            return json.loads(value)
        return value


class Pagination(BaseSchema):
    """ページネーション情報"""
    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int
    has_next_page: bool
    has_prev_page: bool


class NotificationListResponse(BaseSchema):
    """通知一覧レスポンス"""
    notifications: list[NotificationResponse]
    pagination: Pagination
