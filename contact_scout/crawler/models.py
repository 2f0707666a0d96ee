# contact_scout/crawler/models.py
"""
Data models for the ContactScout crawler.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional

from contact_scout.utils import dedupe_casefold, remove_duplicates


@dataclass(slots=True)
class FetchResult:
    """Outcome of one HTTP request that produced a response."""

    ok: bool
    status: int
    final_url: str
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SocialHandles:
    """Social-media signals grouped by network, each list de-duplicated."""

    twitter: List[str] = field(default_factory=list)
    facebook: List[str] = field(default_factory=list)
    instagram: List[str] = field(default_factory=list)
    linkedin: List[str] = field(default_factory=list)

    def merge(self, *others: SocialHandles) -> SocialHandles:
        """Union of this bundle and *others*, first-seen order kept."""
        bundles = (self, *others)
        return SocialHandles(
            twitter=remove_duplicates(v for b in bundles for v in b.twitter),
            facebook=remove_duplicates(v for b in bundles for v in b.facebook),
            instagram=remove_duplicates(v for b in bundles for v in b.instagram),
            linkedin=remove_duplicates(v for b in bundles for v in b.linkedin),
        )

    def is_empty(self) -> bool:
        return not (self.twitter or self.facebook or self.instagram or self.linkedin)

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "twitter": list(self.twitter),
            "facebook": list(self.facebook),
            "instagram": list(self.instagram),
            "linkedin": list(self.linkedin),
        }


@dataclass(slots=True)
class ContactRecord:
    """Contact signals gathered from one site crawl."""

    exact_website_url: str
    emails: List[str] = field(default_factory=list)
    social_media: SocialHandles = field(default_factory=SocialHandles)
    contact_url: Optional[str] = None
    about_url: Optional[str] = None
    external_links: List[str] = field(default_factory=list)

    @classmethod
    def empty(cls, url: Any) -> ContactRecord:
        """Record without signals; *url* is kept as the website URL."""
        return cls(exact_website_url=url if isinstance(url, str) else "")

    @classmethod
    def build(
        cls,
        exact_website_url: str,
        emails: Iterable[str],
        socials: Iterable[SocialHandles],
        contact_url: Optional[str] = None,
        about_url: Optional[str] = None,
        external_links: Iterable[str] = (),
    ) -> ContactRecord:
        """Assemble a record, de-duplicating every collection."""
        return cls(
            exact_website_url=exact_website_url,
            emails=dedupe_casefold(emails),
            social_media=SocialHandles().merge(*socials),
            contact_url=contact_url,
            about_url=about_url,
            external_links=remove_duplicates(external_links),
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready mapping used in item ``contactInfo`` and reports."""
        return {
            "emails": list(self.emails),
            "socialMedia": self.social_media.to_dict(),
            "contactUrl": self.contact_url,
            "aboutUrl": self.about_url,
            "exactWebsiteUrl": self.exact_website_url,
            "externalLinks": list(self.external_links),
        }
