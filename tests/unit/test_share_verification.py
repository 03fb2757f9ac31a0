import pytest

from final10.services.share_verification import verify_share


@pytest.mark.parametrize(
    "share_type,platform,url",
    [
        ("app", "twitter", "https://x.com/someone/status/12345"),
        ("product", "facebook", "https://m.facebook.com/story.php?id=1"),
        ("social", "instagram", "https://www.instagram.com/p/abc?caption=%23stayearning"),
        ("app", "YouTube", "https://youtu.be/share/xyz"),
    ],
)
def test_accepted_shares(share_type, platform, url):
    assert verify_share(share_type, platform, url) == (True, "")


def test_unknown_platform():
    assert verify_share("app", "myspace", "https://myspace.com/post/1") == (False, "Unsupported platform")


def test_lookalike_domain_is_rejected():
    ok, reason = verify_share("app", "twitter", "https://twitter.com.evil.io/status/1")
    assert ok is False
    assert reason == "URL does not belong to twitter"


def test_social_post_requires_hashtag():
    ok, reason = verify_share("social", "tiktok", "https://www.tiktok.com/@me/video/1")
    assert (ok, reason) == (False, "Social posts must include our hashtags")


def test_plain_profile_link_is_not_a_post():
    ok, reason = verify_share("app", "linkedin", "https://www.linkedin.com/in/someone")
    assert (ok, reason) == (False, "URL does not look like a shared post")
