from collections.abc import Iterable

from skillswap.models.skill_listing import SkillListing
from skillswap.models.user import User


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


def _overlaps(left: str, right: str) -> bool:
    return _contains(left, right) or _contains(right, left)


def is_potential_match(viewer: User, listing: SkillListing) -> bool:
    """A listing matches when it teaches something the viewer wants and its owner
    wants something the viewer offers. Plain case-insensitive substring tests."""
    wanted = [term for term in (viewer.skills_wanted or []) if term]
    offered = [term for term in (viewer.skills_offered or []) if term]
    if not wanted or not offered:
        return False

    teaches_wanted = any(
        _contains(listing.title, term) or _contains(listing.description, term)
        for term in wanted
    )
    if not teaches_wanted:
        return False

    return any(
        _overlaps(listing_wants, viewer_offers)
        for listing_wants in (listing.skills_wanted or [])
        if listing_wants
        for viewer_offers in offered
    )


def find_potential_matches(viewer: User, listings: Iterable[SkillListing]) -> set[int]:
    return {
        listing.id
        for listing in listings
        if listing.user_id != viewer.id and is_potential_match(viewer, listing)
    }
