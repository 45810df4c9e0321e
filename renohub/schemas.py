"""
Pydantic schemas for write requests and realtime events
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Dict, Literal


class CreateCategoryRequest(BaseModel):
    """Forum category creation request"""
    name: str = Field(..., min_length=1, max_length=100)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9-]+$")
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: int = 0


class CreatePostRequest(BaseModel):
    """Forum post creation request"""
    category_id: str
    title: str = Field(..., max_length=300)
    content: str
    tags: List[str] = Field(default_factory=list, max_length=30)
    media_urls: List[str] = Field(default_factory=list, max_length=10)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if len(v.strip()) < 3:
            raise ValueError("Title must be at least 3 characters")
        return v.strip()

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if len(v.strip()) < 10:
            raise ValueError("Content must be at least 10 characters")
        return v

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: List[str]) -> List[str]:
        seen = []
        for tag in v:
            tag = tag.strip().lstrip("#")
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class UpdatePostRequest(BaseModel):
    """Forum post update request; only provided fields are written"""
    title: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = None
    tags: Optional[List[str]] = Field(None, max_length=30)
    media_urls: Optional[List[str]] = Field(None, max_length=10)

    def to_row(self) -> Dict[str, object]:
        """Build the column update mapping"""
        row: Dict[str, object] = {}
        if self.title is not None:
            row["title"] = self.title
        if self.content is not None:
            row["content"] = self.content
        if self.tags is not None:
            row["tags"] = self.tags
        if self.media_urls is not None:
            row["media_urls"] = self.media_urls
        return row


class CreateCommentRequest(BaseModel):
    """Comment creation request"""
    post_id: str
    content: str = Field(..., min_length=1, max_length=5000)
    parent_id: Optional[str] = None
    media_urls: List[str] = Field(default_factory=list, max_length=10)


class CreateMessageRequest(BaseModel):
    """Private message request"""
    receiver_id: str
    content: str = Field(..., min_length=1, max_length=5000)
    media_urls: List[str] = Field(default_factory=list, max_length=10)


class CreateReviewRequest(BaseModel):
    """Provider review request"""
    provider_id: str
    overall_rating: float = Field(..., ge=1, le=5)
    ratings_breakdown: Dict[str, float] = Field(default_factory=dict)
    review_text: Optional[str] = Field(None, max_length=5000)
    project_type: Optional[str] = None

    @field_validator("ratings_breakdown")
    @classmethod
    def validate_breakdown(cls, v: Dict[str, float]) -> Dict[str, float]:
        allowed = {"quality", "communication", "timeliness", "value"}
        unknown = set(v) - allowed
        if unknown:
            raise ValueError(f"Unknown rating dimensions: {', '.join(sorted(unknown))}")
        for key, score in v.items():
            if not 0 <= score <= 5:
                raise ValueError(f"Rating '{key}' must be between 0 and 5")
        return v


USERNAME_PATTERN = r"^[A-Za-z0-9_.]+$"


class UsernameRequest(BaseModel):
    """Username availability check"""
    username: str = Field(..., min_length=3, max_length=30, pattern=USERNAME_PATTERN)


class UpdateProfileRequest(BaseModel):
    """User profile update request; only provided fields are written"""
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=USERNAME_PATTERN)
    full_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = None
    website: Optional[str] = None
    company_name: Optional[str] = None
    avatar_url: Optional[str] = None

    def to_row(self) -> Dict[str, object]:
        return self.model_dump(exclude_none=True)


# Provider write side
class UpdateProviderProfileRequest(BaseModel):
    """Provider profile update; ``price_range`` and ``social_links`` are stored as JSON"""
    company_name: Optional[str] = Field(None, min_length=1, max_length=200)
    bio: Optional[str] = None
    price_range: Optional[Dict[str, object]] = None
    social_links: Optional[Dict[str, Optional[str]]] = None
    team_size: Optional[int] = Field(None, ge=0)
    founded_year: Optional[int] = Field(None, ge=1800)
    experience_years: Optional[int] = Field(None, ge=0)
    completed_projects: Optional[int] = Field(None, ge=0)
    is_approved: Optional[bool] = None

    def to_row(self) -> Dict[str, object]:
        return self.model_dump(exclude_none=True)


class CreateServiceRequest(BaseModel):
    service_name: str = Field(..., min_length=1, max_length=100)
    service_key: str = Field(..., min_length=1, max_length=100)
    display_order: int = 0


class CreateProviderPortfolioRequest(BaseModel):
    """Portfolio entry shown on a provider profile"""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    project_type: Optional[str] = None
    project_year: Optional[int] = Field(None, ge=1900, le=2100)
    display_order: int = 0


# Portfolios
class CreatePortfolioRequest(BaseModel):
    """Portfolio creation request"""
    title: str = Field(..., min_length=1, max_length=200)
    address: Optional[str] = None
    area_sqft: Optional[float] = Field(None, gt=0)
    total_cost: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    description: Optional[str] = None


class UpdatePortfolioRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    address: Optional[str] = None
    area_sqft: Optional[float] = Field(None, gt=0)
    total_cost: Optional[float] = Field(None, ge=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: Optional[Literal["pending", "approved", "rejected"]] = None
    is_featured: Optional[bool] = None

    def to_row(self) -> Dict[str, object]:
        return self.model_dump(exclude_none=True)


class AddPortfolioImageRequest(BaseModel):
    portfolio_id: str
    image_url: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    display_order: int = 0
    file_type: Literal["image", "video"] = "image"


# Realtime event schemas
class FeedEvent(BaseModel):
    """Change notification for an inspiration item"""
    event_type: Literal["insert", "update", "delete"]
    item_id: str
