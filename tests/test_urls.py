# File: tests/test_urls.py
import pytest

from tumblr_mirror.crawler.urls import authority_of, canonicalize, split_url


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("http://foo.tumblr.com/post/123/some-descriptive-slug?x=1#y", "http://foo.tumblr.com/post/123"),
        ("http://foo.tumblr.com/tagged/cats%20and%20dogs", "http://foo.tumblr.com/tagged/cats-and-dogs"),
        ("http://foo.tumblr.com/post/42", "http://foo.tumblr.com/post/42"),
        ("http://foo.tumblr.com/post/7abc", "http://foo.tumblr.com/post/7"),
        ("http://foo.tumblr.com/archive?before_time=1#top", "http://foo.tumblr.com/archive"),
        ("https://foo.tumblr.com:8080/page/2", "https://foo.tumblr.com:8080/page/2"),
        ("http://foo.tumblr.com", "http://foo.tumblr.com"),
        ("http://foo.tumblr.com/posts/123/slug", "http://foo.tumblr.com/posts/123/slug"),
        ("http://foo.tumblr.com/x/post/9/slug", "http://foo.tumblr.com/x/post/9/slug"),
    ],
)
def test_canonicalize(raw, expected):
    assert canonicalize(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        "not a url",
        "/relative/path",
        "mailto:someone@example.com",
        "http://[::1/broken",
        "",
    ],
)
def test_malformed_url_is_returned_unchanged(raw):
    assert canonicalize(raw) == raw


@pytest.mark.parametrize(
    "raw",
    [
        "http://foo.tumblr.com/post/123/slug?x=1#y",
        "http://foo.tumblr.com/tagged/a%20b%20c",
        "http://foo.tumblr.com/tagged/%2520",
        "http://foo.tumblr.com/",
        "garbage %20 here",
        "https://foo.tumblr.com/image.png?size=large",
    ],
)
def test_canonicalize_is_idempotent(raw):
    once = canonicalize(raw)
    assert canonicalize(once) == once


def test_split_url_rejects_missing_authority():
    assert split_url("http:///path") is None
    assert split_url("http://foo.tumblr.com/a").netloc == "foo.tumblr.com"


def test_authority_of():
    assert authority_of("http://foo.tumblr.com:81/post/1") == "foo.tumblr.com:81"
    assert authority_of("javascript:void(0)") is None


def test_scheme_is_part_of_the_key():
    http_key = canonicalize("http://foo.tumblr.com/post/1/slug")
    https_key = canonicalize("https://foo.tumblr.com/post/1/other-slug")
    assert http_key == "http://foo.tumblr.com/post/1"
    assert https_key == "https://foo.tumblr.com/post/1"
    assert http_key != https_key
    # but both share one authority for link following
    assert authority_of(http_key) == authority_of(https_key)
