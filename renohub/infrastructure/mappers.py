"""
Row mappers - Convert backend rows (snake_case, nullable columns) to domain models
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
import json
import logging
import re

from ..domain.models import (
    Bookmark,
    Category,
    CollectedImage,
    Comment,
    Follow,
    FollowedCompany,
    InspirationItem,
    InspirationProvider,
    InspirationStats,
    InteractionFlags,
    Like,
    LikeTarget,
    Message,
    Portfolio,
    PortfolioImage,
    PortfolioSummary,
    Post,
    PriceRange,
    ProviderProfile,
    ProviderReview,
    ProviderService,
    ProviderSummary,
    RatingsBreakdown,
    Repost,
    SocialLinks,
    UserProfile,
)

logger = logging.getLogger(__name__)

Row = Mapping[str, Any]

FRACTION_PATTERN = re.compile(r"\.(\d+)")


class ListEncoding(str, Enum):
    """Physical encodings seen for list-valued columns"""
    NATIVE = "native"
    JSON_TEXT = "json_text"
    ABSENT = "absent"


def classify_list_column(value: Any) -> ListEncoding:
    if isinstance(value, list):
        return ListEncoding.NATIVE
    if isinstance(value, str):
        return ListEncoding.JSON_TEXT
    return ListEncoding.ABSENT


def _string_entries(values: List[Any]) -> List[str]:
    return [entry for entry in values if isinstance(entry, str) and entry]


def parse_string_list(value: Any, fallback: List[str], column: str = "list") -> List[str]:
    """
    Parse a list-of-strings column stored as a native list, a JSON-encoded
    string, or not at all.

    Malformed JSON (or JSON that is not a list) yields ``fallback`` and is
    logged, never raised.
    """
    encoding = classify_list_column(value)

    if encoding is ListEncoding.NATIVE:
        return _string_entries(value)

    if encoding is ListEncoding.JSON_TEXT:
        try:
            decoded = json.loads(value)
        except ValueError as e:
            logger.warning(f"Failed to parse {column} column: {e}")
            return list(fallback)
        if isinstance(decoded, list):
            return _string_entries(decoded)
        logger.warning(f"Expected a JSON array in {column} column, got {type(decoded).__name__}")
        return list(fallback)

    return list(fallback)


def parse_gallery(value: Any, hero_image: str) -> List[str]:
    """Gallery images, falling back to the hero image alone"""
    fallback = [hero_image] if hero_image else []
    return parse_string_list(value, fallback, column="gallery_images")


def parse_tags(value: Any) -> List[str]:
    return parse_string_list(value, [], column="tags")


def _pad_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp column.

    Postgres trims trailing zeros from fractional seconds, so the fraction
    is padded to microseconds before parsing.
    """
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        normalized = FRACTION_PATTERN.sub(_pad_fraction, value.replace("Z", "+00:00"), count=1)
        try:
            return datetime.fromisoformat(normalized)
        except ValueError:
            logger.warning(f"Invalid timestamp value: {value!r}")
    return None


def to_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return to_float(value)


def _as_mapping(value: Any) -> Dict[str, Any]:
    """JSON object columns may arrive decoded or as text"""
    if isinstance(value, dict):
        return value
    if isinstance(value, str) and value:
        try:
            decoded = json.loads(value)
        except ValueError as e:
            logger.warning(f"Failed to parse JSON object column: {e}")
            return {}
        return decoded if isinstance(decoded, dict) else {}
    return {}


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    return value if isinstance(value, str) else None


class InspirationMapper:
    """Maps ``inspiration_feed`` rows to InspirationItem"""

    @staticmethod
    def to_domain(
        row: Row,
        flags: InteractionFlags,
        default_currency: str = "USD",
    ) -> InspirationItem:
        hero_image = row.get("image_url") or ""
        provider_id = row["provider_id"]

        return InspirationItem(
            id=row["id"],
            provider_id=provider_id,
            title=row.get("title") or "",
            description=row.get("description"),
            hero_image=hero_image,
            gallery=parse_gallery(row.get("gallery_images"), hero_image),
            project_type=row.get("project_type"),
            location=row.get("location"),
            price_min=to_optional_float(row.get("price_min")),
            price_max=to_optional_float(row.get("price_max")),
            currency=row.get("currency_code") or default_currency,
            tags=parse_tags(row.get("tags")),
            pinned=bool(row.get("pinned")),
            featured=bool(row.get("is_featured")),
            created_at=parse_timestamp(row.get("created_at")),
            stats=InspirationStats(
                collects=to_int(row.get("collect_count")),
                likes=to_int(row.get("like_count")),
            ),
            provider=InspirationProvider(
                id=provider_id,
                company_name=row.get("company_name") or "",
                username=row.get("username"),
                logo_url=row.get("logo_url"),
                avatar_url=row.get("avatar_url"),
                rating=to_float(row.get("overall_rating")),
                review_count=to_int(row.get("total_reviews")),
                is_sponsored=bool(row.get("is_sponsored")),
                is_verified=bool(row.get("is_verified")),
                is_following=flags.is_following,
            ),
            is_collected=flags.is_collected,
            is_liked=flags.is_liked,
            personalization_score=flags.personalization_score,
        )


class ForumMapper:
    """Maps forum rows (categories, posts, comments, messages, relations)"""

    @staticmethod
    def to_category(row: Row) -> Category:
        return Category(
            id=row["id"],
            name=row["name"],
            slug=row["slug"],
            description=row.get("description"),
            icon=row.get("icon"),
            display_order=to_int(row.get("display_order")),
            is_active=bool(row.get("is_active", True)),
            created_at=parse_timestamp(row.get("created_at")),
        )

    @staticmethod
    def to_post(row: Row) -> Post:
        return Post(
            id=row["id"],
            user_id=row["user_id"],
            category_id=row.get("category_id") or "",
            title=row.get("title") or "",
            content=row.get("content") or "",
            tags=parse_tags(row.get("tags")),
            media_urls=parse_string_list(row.get("media_urls"), [], column="media_urls"),
            like_count=to_int(row.get("like_count")),
            comment_count=to_int(row.get("comment_count")),
            repost_count=to_int(row.get("repost_count")),
            bookmark_count=to_int(row.get("bookmark_count")),
            view_count=to_int(row.get("view_count")),
            is_pinned=bool(row.get("is_pinned")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            username=row.get("username"),
            user_avatar=row.get("user_avatar"),
            user_full_name=row.get("user_full_name"),
            category_name=row.get("category_name"),
            category_slug=row.get("category_slug"),
        )

    @staticmethod
    def to_comment(row: Row) -> Comment:
        return Comment(
            id=row["id"],
            post_id=row["post_id"],
            user_id=row["user_id"],
            parent_id=row.get("parent_id"),
            content=row.get("content") or "",
            media_urls=parse_string_list(row.get("media_urls"), [], column="media_urls"),
            like_count=to_int(row.get("like_count")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            username=row.get("username"),
            user_avatar=row.get("user_avatar"),
            user_full_name=row.get("user_full_name"),
        )

    @staticmethod
    def to_like(row: Row) -> Like:
        return Like(
            id=row["id"],
            user_id=row["user_id"],
            target_id=row["target_id"],
            target_type=LikeTarget(row["target_type"]),
            created_at=parse_timestamp(row.get("created_at")),
        )

    @staticmethod
    def to_follow(row: Row) -> Follow:
        return Follow(
            id=row["id"],
            follower_id=row["follower_id"],
            followed_id=row["followed_id"],
            created_at=parse_timestamp(row.get("created_at")),
        )

    @staticmethod
    def to_repost(row: Row) -> Repost:
        return Repost(
            id=row["id"],
            user_id=row["user_id"],
            original_post_id=row.get("original_post_id") or row.get("post_id"),
            comment=row.get("comment"),
            created_at=parse_timestamp(row.get("created_at")),
        )

    @staticmethod
    def to_bookmark(row: Row) -> Bookmark:
        return Bookmark(
            id=row["id"],
            user_id=row["user_id"],
            post_id=row["post_id"],
            created_at=parse_timestamp(row.get("created_at")),
        )

    @staticmethod
    def to_message(row: Row) -> Message:
        sender = row.get("sender") or {}
        receiver = row.get("receiver") or {}
        return Message(
            id=row["id"],
            sender_id=row["sender_id"],
            receiver_id=row["receiver_id"],
            content=row.get("content") or "",
            media_urls=parse_string_list(row.get("media_urls"), [], column="media_urls"),
            is_read=bool(row.get("is_read")),
            created_at=parse_timestamp(row.get("created_at")),
            sender_username=sender.get("username"),
            sender_avatar=sender.get("avatar_url"),
            receiver_username=receiver.get("username"),
            receiver_avatar=receiver.get("avatar_url"),
        )


class ProfileMapper:
    """Maps ``app_users`` rows and stats RPC rows"""

    @staticmethod
    def to_user_profile(
        row: Row,
        stats: Optional[Row] = None,
        is_following: bool = False,
    ) -> UserProfile:
        stats = stats or {}
        return UserProfile(
            id=row["id"],
            username=row.get("username") or "",
            email=row.get("email"),
            full_name=row.get("full_name"),
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            follower_count=to_int(stats.get("follower_count")),
            following_count=to_int(stats.get("following_count")),
            post_count=to_int(stats.get("post_count")),
            is_following=is_following,
        )

    @staticmethod
    def to_collected_image(row: Row) -> CollectedImage:
        return CollectedImage(
            bookmark_id=row["bookmark_id"],
            portfolio_id=row["portfolio_id"],
            title=row.get("title") or "",
            cover_image_url=row.get("cover_image_url"),
            provider_id=row.get("provider_id"),
            provider_name=row.get("provider_name"),
            provider_logo=row.get("provider_logo"),
            collected_at=parse_timestamp(row.get("collected_at")),
        )

    @staticmethod
    def to_followed_company(row: Row) -> FollowedCompany:
        return FollowedCompany(
            follow_id=row["follow_id"],
            company_id=row["company_id"],
            username=row.get("username") or "",
            company_name=row.get("company_name") or "",
            logo_url=row.get("logo_url"),
            bio=row.get("bio"),
            portfolios_count=to_int(row.get("portfolios_count")),
            avg_rating=to_float(row.get("avg_rating")),
            followed_at=parse_timestamp(row.get("followed_at")),
        )


class ProviderMapper:
    """Maps provider directory, profile RPC and review rows"""

    @staticmethod
    def to_price_range(data: Any, default_currency: str = "HKD") -> PriceRange:
        values = _as_mapping(data)
        if not values:
            return PriceRange(currency=default_currency)
        currency = values.get("currency")
        return PriceRange(
            min=to_float(values.get("min")),
            max=to_float(values.get("max")),
            currency=currency if isinstance(currency, str) else default_currency,
        )

    @staticmethod
    def to_social_links(data: Any) -> SocialLinks:
        values = _as_mapping(data)
        return SocialLinks(
            phone=_optional_str(values, "phone"),
            email=_optional_str(values, "email"),
            website=_optional_str(values, "website"),
            facebook=_optional_str(values, "facebook"),
            instagram=_optional_str(values, "instagram"),
            youtube=_optional_str(values, "youtube"),
        )

    @staticmethod
    def to_ratings_breakdown(data: Any) -> RatingsBreakdown:
        values = _as_mapping(data)
        return RatingsBreakdown(
            quality=to_float(values.get("quality")),
            communication=to_float(values.get("communication")),
            timeliness=to_float(values.get("timeliness")),
            value=to_float(values.get("value")),
        )

    @staticmethod
    def to_services(data: Any) -> List[ProviderService]:
        if not isinstance(data, list):
            return []
        return [
            ProviderService(
                id=str(item.get("id")),
                name=_optional_str(item, "name") or "",
                key=_optional_str(item, "key") or "",
            )
            for item in data
            if isinstance(item, dict)
        ]

    @staticmethod
    def to_portfolios(data: Any) -> List[PortfolioSummary]:
        if not isinstance(data, list):
            return []
        portfolios = []
        for item in data:
            if not isinstance(item, dict):
                continue
            year = item.get("projectYear")
            portfolios.append(PortfolioSummary(
                id=str(item.get("id")),
                title=_optional_str(item, "title") or "",
                image_url=_optional_str(item, "imageUrl") or "",
                project_type=_optional_str(item, "projectType"),
                project_year=year if isinstance(year, int) else None,
            ))
        return portfolios

    @classmethod
    def to_provider_profile(cls, row: Row, default_currency: str = "HKD") -> ProviderProfile:
        return ProviderProfile(
            id=row["id"],
            username=row.get("username") or "",
            company_name=row.get("company_name") or "",
            logo_url=row.get("logo_url"),
            avatar_url=row.get("avatar_url"),
            bio=row.get("bio"),
            price_range=cls.to_price_range(row.get("price_range"), default_currency),
            social_links=cls.to_social_links(row.get("social_links")),
            team_size=to_int(row.get("team_size")),
            founded_year=row.get("founded_year"),
            experience_years=to_int(row.get("experience_years")),
            completed_projects=to_int(row.get("completed_projects")),
            overall_rating=to_float(row.get("overall_rating")),
            total_reviews=to_int(row.get("total_reviews")),
            ratings_breakdown=cls.to_ratings_breakdown(row.get("ratings_breakdown")),
            services=cls.to_services(row.get("services")),
            portfolios=cls.to_portfolios(row.get("portfolios")),
            is_approved=bool(row.get("is_approved", True)),
        )

    @staticmethod
    def to_provider_summary(row: Row, default_currency: str = "HKD") -> ProviderSummary:
        return ProviderSummary(
            id=row["id"],
            user_id=row.get("user_id"),
            company_name=row.get("company_name") or "",
            logo_url=row.get("logo_url"),
            bio=row.get("bio"),
            price_range=PriceRange(
                min=to_float(row.get("price_min")),
                max=to_float(row.get("price_max")),
                currency=row.get("currency") or default_currency,
            ),
            overall_rating=to_float(row.get("overall_rating")),
            total_reviews=to_int(row.get("total_reviews")),
            completed_projects=to_int(row.get("completed_projects")),
            experience_years=to_int(row.get("experience_years")),
            team_size=to_int(row.get("team_size")),
            founded_year=row.get("founded_year"),
            is_approved=bool(row.get("is_approved")),
        )

    @classmethod
    def to_provider_review(cls, row: Row) -> ProviderReview:
        reviewer = row.get("reviewer") or {}
        return ProviderReview(
            id=row["id"],
            provider_id=row["provider_id"],
            reviewer_id=row["reviewer_id"],
            reviewer_name=reviewer.get("username") or "Anonymous",
            reviewer_avatar=reviewer.get("avatar_url"),
            overall_rating=to_float(row.get("overall_rating")),
            ratings_breakdown=cls.to_ratings_breakdown(row.get("ratings_breakdown")),
            review_text=row.get("review_text"),
            project_type=row.get("project_type"),
            is_verified=bool(row.get("is_verified")),
            created_at=parse_timestamp(row.get("created_at")),
        )


class PortfolioMapper:
    """Maps ``portfolios`` / ``portfolio_feed`` and ``portfolio_images`` rows"""

    @staticmethod
    def to_image(row: Row) -> PortfolioImage:
        return PortfolioImage(
            id=str(row["id"]),
            portfolio_id=str(row.get("portfolio_id") or ""),
            image_url=row.get("image_url") or "",
            description=row.get("description"),
            category_id=row.get("category_id"),
            display_order=to_int(row.get("display_order")),
            file_type=row.get("file_type") or "image",
        )

    @classmethod
    def to_portfolio(cls, row: Row, default_currency: str = "HKD") -> Portfolio:
        images = row.get("images")
        return Portfolio(
            id=row["id"],
            user_id=row["user_id"],
            title=row.get("title") or "",
            address=row.get("address"),
            area_sqft=to_optional_float(row.get("area_sqft")),
            total_cost=to_optional_float(row.get("total_cost")),
            currency=row.get("currency") or default_currency,
            description=row.get("description"),
            cover_image_url=row.get("cover_image_url"),
            status=row.get("status") or "pending",
            collects_count=to_int(row.get("collects_count")),
            impressions_count=to_int(row.get("impressions_count")),
            is_featured=bool(row.get("is_featured")),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
            username=row.get("username"),
            company_name=row.get("company_name"),
            logo_url=row.get("logo_url"),
            images=[
                cls.to_image(image) for image in images or []
                if isinstance(image, Mapping) and image.get("id")
            ] if isinstance(images, list) else [],
        )
