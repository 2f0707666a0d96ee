# tests/test_social.py
import pytest

from contact_scout.parser.html_parser import parse_html
from contact_scout.parser.social import (
    extract_social_media,
    facebook_url_from_href,
    instagram_url_from_href,
    linkedin_url_from_href,
    twitter_handle_from_href,
    twitter_handles_in_text,
)


@pytest.mark.parametrize(
    "href,expected",
    [
        ("https://twitter.com/realhandle", "@realhandle"),
        ("https://x.com/realhandle/", "@realhandle"),
        ("//twitter.com/real_handle", "@real_handle"),
        ("https://mobile.twitter.com/realhandle", "@realhandle"),
        ("https://twitter.com/share?text=hi", None),
        ("https://twitter.com/intent/tweet?url=x", None),
        ("https://twitter.com/hashtag/launch", None),
        ("https://twitter.com/", None),
        ("https://twitter.com/this_handle_is_way_too_long", None),
        ("https://evil.example/twitter.com/realhandle", None),
    ],
)
def test_twitter_handle_from_href(href, expected):
    assert twitter_handle_from_href(href) == expected


def test_twitter_handles_in_text():
    text = "Follow @acme_io or mail a@b.io, not @this_handle_is_too_long"
    assert twitter_handles_in_text(text) == ["@acme_io"]
    assert twitter_handles_in_text("@start and end @finish") == ["@start", "@finish"]
    assert twitter_handles_in_text("") == []


def test_facebook_urls():
    assert facebook_url_from_href("https://www.facebook.com/sharer/sharer.php?u=x") is None
    assert facebook_url_from_href("https://www.facebook.com/dialog/share") is None
    assert facebook_url_from_href("https://facebook.com/") is None
    assert facebook_url_from_href("https://www.facebook.com/acmewidgets?ref=nav") == (
        "https://www.facebook.com/acmewidgets"
    )


def test_instagram_urls():
    assert instagram_url_from_href("https://instagram.com/p/Cx12ab/") is None
    assert instagram_url_from_href("https://www.instagram.com/explore/tags/x") is None
    assert instagram_url_from_href("https://instagram.com/acmewidgets/") == "https://instagram.com/acmewidgets"


def test_linkedin_urls():
    assert linkedin_url_from_href("https://www.linkedin.com/company/acme-widgets/") == (
        "https://www.linkedin.com/company/acme-widgets/"
    )
    assert linkedin_url_from_href("https://www.linkedin.com/in/ada-lovelace?trk=x") == (
        "https://www.linkedin.com/in/ada-lovelace"
    )
    assert linkedin_url_from_href("https://www.linkedin.com/sharing/share-offsite/?url=x") is None
    assert linkedin_url_from_href("https://www.linkedin.com/feed/") is None


def test_extract_social_media_page():
    page = parse_html(
        """
        <html><body>
          <p>Ping us: @acmewidgets</p>
          <a href="https://twitter.com/share?text=launch">Tweet this</a>
          <a href="https://twitter.com/realhandle">Twitter</a>
          <a href="https://www.facebook.com/sharer/sharer.php?u=acme">Share</a>
          <a href="https://www.facebook.com/acmewidgets">Facebook</a>
          <a href="https://instagram.com/p/Cx12ab/">Post</a>
          <a href="https://instagram.com/acmewidgets">Instagram</a>
          <a href="https://www.linkedin.com/company/acme-widgets">LinkedIn</a>
          <script>var h = " @scripthandle ";</script>
        </body></html>
        """,
        "https://acme-widgets.io/",
    )
    socials = extract_social_media(page.soup)
    assert socials.twitter == ["@acmewidgets", "@realhandle"]
    assert socials.facebook == ["https://www.facebook.com/acmewidgets"]
    assert socials.instagram == ["https://instagram.com/acmewidgets"]
    assert socials.linkedin == ["https://www.linkedin.com/company/acme-widgets"]


def test_icon_outside_link_reads_parent_text():
    page = parse_html('<span><i class="fa fa-twitter"></i> @iconhandle</span>')
    assert extract_social_media(page.soup).twitter == ["@iconhandle"]


def test_social_duplicates_are_merged():
    page = parse_html(
        '<a href="https://twitter.com/acme">a</a><a href="https://x.com/acme">b</a><p>@acme</p>'
    )
    assert extract_social_media(page.soup).twitter == ["@acme"]
