"""
Domain models - Core business entities
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class SortOption(str, Enum):
    """Inspiration feed orderings, each with its own pagination state"""
    NEWEST = "newest"
    POPULAR = "popular"
    PERSONALIZED = "personalized"


class LikeTarget(str, Enum):
    """Forum entities that can be liked"""
    POST = "post"
    COMMENT = "comment"


# Inspiration feed

@dataclass
class InspirationStats:
    """Aggregate counters of an inspiration item"""
    collects: int = 0
    likes: int = 0


@dataclass
class InspirationProvider:
    """Provider summary embedded in an inspiration item"""
    id: str
    company_name: str = ""
    username: Optional[str] = None
    logo_url: Optional[str] = None
    avatar_url: Optional[str] = None
    rating: float = 0.0
    review_count: int = 0
    is_sponsored: bool = False
    is_verified: bool = False
    is_following: bool = False


@dataclass
class InspirationItem:
    """Promotional post from a provider.

    ``is_collected``, ``is_liked`` and ``provider.is_following`` are relative
    to the viewer the item was fetched for.
    """
    id: str
    provider_id: str
    title: str
    hero_image: str
    provider: InspirationProvider
    description: Optional[str] = None
    gallery: List[str] = field(default_factory=list)
    project_type: Optional[str] = None
    location: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    currency: str = "USD"
    tags: List[str] = field(default_factory=list)
    pinned: bool = False
    featured: bool = False
    created_at: Optional[datetime] = None
    stats: InspirationStats = field(default_factory=InspirationStats)
    is_collected: bool = False
    is_liked: bool = False
    personalization_score: Optional[float] = None


@dataclass
class InspirationFilters:
    """Feed filters; applied server-side on fetch and client-side on realtime inserts"""
    type: Optional[str] = None
    location: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    rating_min: Optional[float] = 0
    tag: Optional[str] = None

    def matches(self, item: InspirationItem) -> bool:
        """Check whether an item would be returned by a fetch with these filters"""
        if self.type and item.project_type != self.type:
            return False
        if self.location and item.location != self.location:
            return False
        if self.price_min is not None:
            if item.price_min is None or item.price_min < self.price_min:
                return False
        if self.price_max is not None:
            if item.price_max is None or item.price_max > self.price_max:
                return False
        if self.rating_min is not None and item.provider.rating < self.rating_min:
            return False
        if self.tag:
            needle = self.tag.lower()
            if not any(needle in tag.lower() for tag in item.tags):
                in_title = needle in item.title.lower()
                in_description = needle in (item.description or "").lower()
                if not in_title and not in_description:
                    return False
        return True


@dataclass
class InspirationPage:
    """One page of the inspiration feed"""
    items: List[InspirationItem]
    has_more: bool
    next_page: Optional[int] = None
    total: Optional[int] = None


@dataclass
class InteractionFlags:
    """Viewer-relative flags resolved for one row"""
    is_collected: bool = False
    is_liked: bool = False
    is_following: bool = False
    personalization_score: Optional[float] = None


# Forum

@dataclass
class Category:
    """Forum category"""
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    icon: Optional[str] = None
    display_order: int = 0
    is_active: bool = True
    created_at: Optional[datetime] = None


@dataclass
class Post:
    """Forum post"""
    id: str
    user_id: str
    category_id: str
    title: str
    content: str
    tags: List[str] = field(default_factory=list)
    media_urls: List[str] = field(default_factory=list)
    like_count: int = 0
    comment_count: int = 0
    repost_count: int = 0
    bookmark_count: int = 0
    view_count: int = 0
    is_pinned: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    user_avatar: Optional[str] = None
    user_full_name: Optional[str] = None
    category_name: Optional[str] = None
    category_slug: Optional[str] = None
    is_liked: Optional[bool] = None
    is_bookmarked: Optional[bool] = None
    is_reposted: Optional[bool] = None


@dataclass
class Comment:
    """Forum comment; ``replies`` is filled by the tree reconstruction pass"""
    id: str
    post_id: str
    user_id: str
    content: str
    parent_id: Optional[str] = None
    media_urls: List[str] = field(default_factory=list)
    like_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    user_avatar: Optional[str] = None
    user_full_name: Optional[str] = None
    is_liked: Optional[bool] = None
    replies: List["Comment"] = field(default_factory=list)


@dataclass
class Like:
    """Like on a post or comment"""
    id: str
    user_id: str
    target_id: str
    target_type: LikeTarget
    created_at: Optional[datetime] = None


@dataclass
class Follow:
    """Follow relationship between two users"""
    id: str
    follower_id: str
    followed_id: str
    created_at: Optional[datetime] = None


@dataclass
class Repost:
    """Repost of a forum post"""
    id: str
    user_id: str
    original_post_id: str
    comment: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Bookmark:
    """Bookmarked forum post"""
    id: str
    user_id: str
    post_id: str
    created_at: Optional[datetime] = None


@dataclass
class Message:
    """Private message"""
    id: str
    sender_id: str
    receiver_id: str
    content: str
    media_urls: List[str] = field(default_factory=list)
    is_read: bool = False
    created_at: Optional[datetime] = None
    sender_username: Optional[str] = None
    sender_avatar: Optional[str] = None
    receiver_username: Optional[str] = None
    receiver_avatar: Optional[str] = None

    def is_participant(self, user_id: str) -> bool:
        """Check if the given user sent or received this message"""
        return user_id in (self.sender_id, self.receiver_id)


@dataclass
class UserProfile:
    """Public user profile with follow statistics"""
    id: str
    username: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0
    is_following: bool = False

    def is_owner(self, user_id: Optional[str]) -> bool:
        """Check if the given user_id is the owner of this profile"""
        return self.id == user_id


# Provider directory

@dataclass
class PriceRange:
    """Provider price range"""
    min: float = 0
    max: float = 0
    currency: str = "HKD"


@dataclass
class SocialLinks:
    """Provider contact and social links"""
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    facebook: Optional[str] = None
    instagram: Optional[str] = None
    youtube: Optional[str] = None


@dataclass
class RatingsBreakdown:
    """Per-dimension review ratings"""
    quality: float = 0
    communication: float = 0
    timeliness: float = 0
    value: float = 0


@dataclass
class ProviderService:
    """Service offered by a provider"""
    id: str
    name: str = ""
    key: str = ""


@dataclass
class PortfolioSummary:
    """Portfolio entry shown on a provider profile"""
    id: str
    title: str = ""
    image_url: str = ""
    project_type: Optional[str] = None
    project_year: Optional[int] = None


@dataclass
class ProviderSummary:
    """Provider directory card"""
    id: str
    user_id: Optional[str]
    company_name: str
    logo_url: Optional[str] = None
    bio: Optional[str] = None
    price_range: PriceRange = field(default_factory=PriceRange)
    overall_rating: float = 0
    total_reviews: int = 0
    completed_projects: int = 0
    experience_years: int = 0
    team_size: int = 0
    founded_year: Optional[int] = None
    is_approved: bool = False


@dataclass
class ProviderProfile:
    """Full provider profile"""
    id: str
    username: str
    company_name: str
    logo_url: Optional[str] = None
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    price_range: PriceRange = field(default_factory=PriceRange)
    social_links: SocialLinks = field(default_factory=SocialLinks)
    team_size: int = 0
    founded_year: Optional[int] = None
    experience_years: int = 0
    completed_projects: int = 0
    overall_rating: float = 0
    total_reviews: int = 0
    ratings_breakdown: RatingsBreakdown = field(default_factory=RatingsBreakdown)
    services: List[ProviderService] = field(default_factory=list)
    portfolios: List[PortfolioSummary] = field(default_factory=list)
    is_approved: bool = True


@dataclass
class ProviderReview:
    """Review of a provider"""
    id: str
    provider_id: str
    reviewer_id: str
    reviewer_name: str
    overall_rating: float
    reviewer_avatar: Optional[str] = None
    ratings_breakdown: RatingsBreakdown = field(default_factory=RatingsBreakdown)
    review_text: Optional[str] = None
    project_type: Optional[str] = None
    is_verified: bool = False
    created_at: Optional[datetime] = None


# Provider portfolios

@dataclass
class PortfolioImage:
    """Image or video attached to a portfolio"""
    id: str
    portfolio_id: str
    image_url: str
    description: Optional[str] = None
    category_id: Optional[str] = None
    display_order: int = 0
    file_type: str = "image"


@dataclass
class Portfolio:
    """Renovation project showcased by a provider"""
    id: str
    user_id: str
    title: str
    address: Optional[str] = None
    area_sqft: Optional[float] = None
    total_cost: Optional[float] = None
    currency: str = "HKD"
    description: Optional[str] = None
    cover_image_url: Optional[str] = None
    status: str = "pending"
    collects_count: int = 0
    impressions_count: int = 0
    is_featured: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    username: Optional[str] = None
    company_name: Optional[str] = None
    logo_url: Optional[str] = None
    images: List[PortfolioImage] = field(default_factory=list)


# Profile collections

@dataclass
class CollectedImage:
    """Portfolio the user collected"""
    bookmark_id: str
    portfolio_id: str
    title: str = ""
    cover_image_url: Optional[str] = None
    provider_id: Optional[str] = None
    provider_name: Optional[str] = None
    provider_logo: Optional[str] = None
    collected_at: Optional[datetime] = None


@dataclass
class FollowedCompany:
    """Provider the user follows"""
    follow_id: str
    company_id: str
    username: str = ""
    company_name: str = ""
    logo_url: Optional[str] = None
    bio: Optional[str] = None
    portfolios_count: int = 0
    avg_rating: float = 0
    followed_at: Optional[datetime] = None
