"""Shared Pydantic request/response models for OpenAPI."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Machine-readable error code")
    detail: Optional[str | Dict[str, Any]] = Field(
        None, description="Human-readable or structured error detail"
    )


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: str
    uptime_seconds: float
    degraded_mode: bool = False
    provider_modes: Dict[str, str] = Field(default_factory=dict)
    database_ready: Optional[bool] = None


# Accounts


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: Optional[str] = Field(default=None, max_length=128)
    creator_id: Optional[str] = None
    role: Literal["creator", "editor"] = "creator"


class SigninRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    creator_id: Optional[str] = None
    settings: Dict[str, Any] = Field(default_factory=dict)
    youtube_connected: bool = False
    created_at: Optional[str] = None


class SignupResponse(BaseModel):
    message: str
    user: UserResponse


class SigninResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class EditorSignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    name: Optional[str] = Field(default=None, max_length=128)
    token: Optional[str] = Field(default=None, max_length=128)


class UserSettings(BaseModel):
    """User preferences; missing keys fall back to defaults."""

    ai_auto_suggest: bool = True
    ai_thumbnail_gen: bool = True
    content_moderation: Literal["low", "medium", "high"] = "medium"
    default_style: str = Field(default="modern", max_length=64)
    email_notifications: bool = True
    push_notifications: bool = False


class UserSettingsUpdate(BaseModel):
    ai_auto_suggest: Optional[bool] = None
    ai_thumbnail_gen: Optional[bool] = None
    content_moderation: Optional[Literal["low", "medium", "high"]] = None
    default_style: Optional[str] = Field(default=None, max_length=64)
    email_notifications: Optional[bool] = None
    push_notifications: Optional[bool] = None


class SettingsUpdateRequest(BaseModel):
    settings: UserSettingsUpdate


class SettingsResponse(BaseModel):
    message: str = "Settings fetched"
    settings: UserSettings


# Invites


class InviteRequest(BaseModel):
    email: EmailStr


class InviteResponse(BaseModel):
    message: str
    invite_link: str


class InviteVerifyResponse(BaseModel):
    message: str
    email: str
    creator_id: str


# Rooms


class RoomCreateRequest(BaseModel):
    name: str = Field(..., max_length=128)


class RoomJoinRequest(BaseModel):
    token: str = Field(..., min_length=1, max_length=128)


class RoomResponse(BaseModel):
    id: str
    name: str
    owner_id: str
    invite_token: str
    created_at: Optional[str] = None


class RoomPerson(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None


class RoomMemberResponse(RoomPerson):
    role: str
    joined_at: Optional[str] = None


class RoomDetailResponse(RoomResponse):
    owner: Optional[RoomPerson] = None
    members: List[RoomMemberResponse] = Field(default_factory=list)


class RoomVerifyResponse(BaseModel):
    valid: bool
    room_id: str
    room_name: str
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None


class RoomJoinResponse(BaseModel):
    message: str
    room: RoomResponse


# Videos


class CommentResponse(BaseModel):
    id: str
    sender_id: str
    sender_name: Optional[str] = None
    sender_email: Optional[str] = None
    text: str
    created_at: Optional[str] = None


class VideoResponse(BaseModel):
    id: str
    file_url: Optional[str] = None
    raw_file_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None
    creator_id: Optional[str] = None
    editor_id: Optional[str] = None
    room_id: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    has_raw_video: bool = False
    editor_review_status: str
    editor_rejection_reason: Optional[str] = None
    youtube_id: Optional[str] = None
    publish_error: Optional[str] = None
    edit_settings: Dict[str, float] = Field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class VideoDetailResponse(VideoResponse):
    creator_name: Optional[str] = None
    creator_email: Optional[str] = None
    editor_name: Optional[str] = None
    editor_email: Optional[str] = None
    comments: List[CommentResponse] = Field(default_factory=list)


class VideoUploadResponse(BaseModel):
    message: str
    video: VideoResponse


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=2000)


class RawReviewRequest(BaseModel):
    action: Literal["accept", "reject"]
    reason: Optional[str] = Field(default=None, max_length=2000)


class EditSettingsRequest(BaseModel):
    brightness: Optional[float] = Field(default=None, ge=0, le=200)
    contrast: Optional[float] = Field(default=None, ge=0, le=200)
    saturation: Optional[float] = Field(default=None, ge=0, le=200)
    grayscale: Optional[float] = Field(default=None, ge=0, le=100)
    sepia: Optional[float] = Field(default=None, ge=0, le=100)
    trim_start: Optional[float] = Field(default=None, ge=0)
    trim_end: Optional[float] = Field(default=None, ge=0)


class CommentRequest(BaseModel):
    text: str = Field(..., max_length=5000)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment text is required")
        return v


class YouTubeStatusResponse(BaseModel):
    connected: bool
    updated_at: Optional[str] = None


class YouTubeTokensRequest(BaseModel):
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


# Feedback


class FeedbackRequest(BaseModel):
    name: Optional[str] = Field(default=None, max_length=128)
    role: Optional[str] = Field(default=None, max_length=128)
    rating: int = Field(..., ge=1, le=5)
    message: str = Field(..., min_length=1, max_length=5000)
    avatar_url: Optional[str] = Field(default=None, max_length=1024)


class FeedbackResponse(BaseModel):
    id: str
    name: str
    role: str
    rating: int
    message: str
    avatar_url: Optional[str] = None
    created_at: Optional[str] = None
