import types

from app.utils.policies import user_is_not_job_poster, can_view_bid


def make_job(owner_id):
    return types.SimpleNamespace(user_id=owner_id)


def test_poster_cannot_bid_on_own_job():
    assert user_is_not_job_poster("owner-1", make_job("owner-1")) is False


def test_other_user_can_bid():
    assert user_is_not_job_poster("pro-1", make_job("owner-1")) is True


def test_anonymous_viewer_cannot_bid():
    assert user_is_not_job_poster(None, make_job("owner-1")) is False


def test_bid_visible_to_bidder_and_job_poster_only():
    job = make_job("owner-1")
    assert can_view_bid("pro-1", "pro-1", job)
    assert can_view_bid("owner-1", "pro-1", job)
    assert not can_view_bid("pro-2", "pro-1", job)
