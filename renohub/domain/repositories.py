"""
Repository interfaces - Define contracts for data access

Every method returns a Result and never raises for backend failures.
"""
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..schemas import (
    AddPortfolioImageRequest,
    CreateCategoryRequest,
    CreateCommentRequest,
    CreateMessageRequest,
    CreatePortfolioRequest,
    CreatePostRequest,
    CreateProviderPortfolioRequest,
    CreateReviewRequest,
    CreateServiceRequest,
    UpdatePortfolioRequest,
    UpdatePostRequest,
    UpdateProfileRequest,
    UpdateProviderProfileRequest,
)
from .models import (
    Category,
    CollectedImage,
    Comment,
    FollowedCompany,
    InspirationFilters,
    InspirationItem,
    InspirationPage,
    LikeTarget,
    Message,
    Portfolio,
    PortfolioImage,
    Post,
    ProviderProfile,
    ProviderReview,
    ProviderSummary,
    SortOption,
    UserProfile,
)
from .result import Result


class IInspirationRepository(ABC):
    """Inspiration feed repository interface"""

    @abstractmethod
    async def fetch_feed(
        self,
        filters: Optional[InspirationFilters],
        page: int,
        sort: SortOption,
        viewer_id: Optional[str] = None,
    ) -> Result[InspirationPage]:
        """Fetch one page of the feed with viewer flags resolved"""
        pass

    @abstractmethod
    async def fetch_item(
        self, item_id: str, viewer_id: Optional[str] = None
    ) -> Result[Optional[InspirationItem]]:
        """Fetch a single item by ID"""
        pass

    @abstractmethod
    async def fetch_categories(self) -> Result[List[str]]:
        """Fetch the project types present in the feed"""
        pass

    @abstractmethod
    async def toggle_collect(
        self, item_id: str, viewer_id: str, should_collect: bool
    ) -> Result[bool]:
        """Set the viewer's collect state for an item"""
        pass

    @abstractmethod
    async def toggle_like(
        self, item_id: str, viewer_id: str, should_like: bool
    ) -> Result[bool]:
        """Set the viewer's like state for an item"""
        pass

    @abstractmethod
    async def toggle_follow(
        self, provider_id: str, viewer_id: str, should_follow: bool
    ) -> Result[bool]:
        """Set the viewer's follow state for a provider"""
        pass


class IForumRepository(ABC):
    """Forum repository interface"""

    @abstractmethod
    async def get_categories(self) -> Result[List[Category]]:
        pass

    @abstractmethod
    async def create_category(self, request: CreateCategoryRequest) -> Result[Category]:
        pass

    @abstractmethod
    async def get_posts(
        self, category_id: Optional[str] = None, limit: int = 20, offset: int = 0
    ) -> Result[List[Post]]:
        pass

    @abstractmethod
    async def get_post(self, post_id: str) -> Result[Optional[Post]]:
        pass

    @abstractmethod
    async def create_post(self, user_id: str, request: CreatePostRequest) -> Result[Post]:
        pass

    @abstractmethod
    async def update_post(self, post_id: str, request: UpdatePostRequest) -> Result[Post]:
        pass

    @abstractmethod
    async def delete_post(self, post_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def get_comments(self, post_id: str) -> Result[List[Comment]]:
        """Fetch a post's comments as threads"""
        pass

    @abstractmethod
    async def create_comment(
        self, user_id: str, request: CreateCommentRequest
    ) -> Result[Comment]:
        pass

    @abstractmethod
    async def delete_comment(self, comment_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def like_target(
        self, user_id: str, target_id: str, target_type: LikeTarget
    ) -> Result[bool]:
        pass

    @abstractmethod
    async def unlike_target(
        self, user_id: str, target_id: str, target_type: LikeTarget
    ) -> Result[bool]:
        pass

    @abstractmethod
    async def has_liked(
        self, user_id: str, target_id: str, target_type: LikeTarget
    ) -> Result[bool]:
        pass

    @abstractmethod
    async def follow_user(self, follower_id: str, followed_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def unfollow_user(self, follower_id: str, followed_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def bookmark_post(self, user_id: str, post_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def unbookmark_post(self, user_id: str, post_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def get_bookmarked_posts(self, user_id: str) -> Result[List[Post]]:
        pass

    @abstractmethod
    async def repost_post(
        self, user_id: str, post_id: str, comment: Optional[str] = None
    ) -> Result[bool]:
        pass

    @abstractmethod
    async def unrepost_post(self, user_id: str, post_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def upload_media(self, data: bytes, filename: str, user_id: str) -> Result[str]:
        """Upload an attachment and return its public URL"""
        pass


class IMessageRepository(ABC):
    """Private message repository interface"""

    @abstractmethod
    async def get_conversations(self, user_id: str) -> Result[List[Message]]:
        pass

    @abstractmethod
    async def get_conversation(
        self, user_id: str, other_user_id: str
    ) -> Result[List[Message]]:
        pass

    @abstractmethod
    async def send_message(
        self, sender_id: str, request: CreateMessageRequest
    ) -> Result[Message]:
        pass

    @abstractmethod
    async def mark_as_read(self, message_ids: List[str]) -> Result[bool]:
        pass

    @abstractmethod
    async def delete_message(self, message_id: str, user_id: str) -> Result[bool]:
        pass


class IProfileRepository(ABC):
    """User profile repository interface"""

    @abstractmethod
    async def get_profile(
        self, user_id: str, viewer_id: Optional[str] = None
    ) -> Result[Optional[UserProfile]]:
        pass

    @abstractmethod
    async def get_user_posts(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[Post]]:
        pass

    @abstractmethod
    async def get_followers(self, user_id: str) -> Result[List[UserProfile]]:
        pass

    @abstractmethod
    async def get_following(self, user_id: str) -> Result[List[UserProfile]]:
        pass

    @abstractmethod
    async def is_username_available(self, username: str) -> Result[bool]:
        pass

    @abstractmethod
    async def update_profile(
        self,
        user_id: str,
        request: UpdateProfileRequest,
        avatar: Optional[Tuple[bytes, str]] = None,
    ) -> Result[UserProfile]:
        """Update profile fields, uploading ``(data, filename)`` as the new avatar"""
        pass

    @abstractmethod
    async def upload_avatar(self, user_id: str, data: bytes, filename: str) -> Result[str]:
        pass

    @abstractmethod
    async def get_collected_images(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[CollectedImage]]:
        pass

    @abstractmethod
    async def get_followed_companies(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[FollowedCompany]]:
        pass


class IProviderRepository(ABC):
    """Provider directory repository interface"""

    @abstractmethod
    async def list_providers(
        self,
        limit: int = 20,
        offset: int = 0,
        is_approved: Optional[bool] = None,
        min_rating: Optional[float] = None,
    ) -> Result[List[ProviderSummary]]:
        pass

    @abstractmethod
    async def get_full_profile(self, provider_id: str) -> Result[Optional[ProviderProfile]]:
        pass

    @abstractmethod
    async def get_reviews(
        self, provider_id: str, limit: int = 20, offset: int = 0
    ) -> Result[List[ProviderReview]]:
        pass

    @abstractmethod
    async def create_review(
        self, reviewer_id: str, request: CreateReviewRequest
    ) -> Result[bool]:
        pass

    @abstractmethod
    async def update_profile(
        self, provider_id: str, request: UpdateProviderProfileRequest
    ) -> Result[ProviderProfile]:
        pass

    @abstractmethod
    async def upload_logo(self, provider_id: str, data: bytes, filename: str) -> Result[str]:
        """Upload a logo and store its URL on the provider"""
        pass

    @abstractmethod
    async def upload_portfolio_image(
        self, provider_id: str, data: bytes, filename: str
    ) -> Result[str]:
        pass

    @abstractmethod
    async def add_service(self, provider_id: str, request: CreateServiceRequest) -> Result[bool]:
        pass

    @abstractmethod
    async def remove_service(self, service_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def add_portfolio(
        self, provider_id: str, image_url: str, request: CreateProviderPortfolioRequest
    ) -> Result[bool]:
        pass

    @abstractmethod
    async def remove_portfolio(self, portfolio_id: str) -> Result[bool]:
        pass


class IPortfolioRepository(ABC):
    """Portfolio repository interface"""

    @abstractmethod
    async def create_portfolio(
        self, user_id: str, request: CreatePortfolioRequest
    ) -> Result[Portfolio]:
        pass

    @abstractmethod
    async def update_portfolio(
        self, portfolio_id: str, request: UpdatePortfolioRequest
    ) -> Result[Portfolio]:
        pass

    @abstractmethod
    async def get_portfolio(self, portfolio_id: str) -> Result[Optional[Portfolio]]:
        pass

    @abstractmethod
    async def get_portfolios(
        self,
        user_id: Optional[str] = None,
        status: Optional[str] = None,
        is_featured: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Result[List[Portfolio]]:
        pass

    @abstractmethod
    async def delete_portfolio(self, portfolio_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def add_image(self, request: AddPortfolioImageRequest) -> Result[PortfolioImage]:
        pass

    @abstractmethod
    async def delete_image(self, image_id: str) -> Result[bool]:
        pass

    @abstractmethod
    async def upload_file(self, data: bytes, filename: str, user_id: str) -> Result[str]:
        pass

    @abstractmethod
    async def record_impression(
        self, portfolio_id: str, user_id: Optional[str] = None
    ) -> Result[bool]:
        """Count a view of a portfolio, anonymous when no user is given"""
        pass
