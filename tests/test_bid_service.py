import asyncio

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.models.bid import BidStatusEnum
from app.models.job import JobStatusEnum
from app.models.user import UserRoleEnum
from app.repositories.bid_repo import BidRepository
from app.repositories.job_repo import JobRepository
from app.schemas.bid_schema import BidCreate
from app.services.bid_service import BidService

from factories import add_user, add_job, add_bid


async def _job_with_three_bids(session):
    owner = await add_user(session, role=UserRoleEnum.job_poster, full_name="Olivia Owner")
    pros = [await add_user(session, full_name=f"Pro {i}") for i in range(3)]
    job = await add_job(session, owner)
    bids = [await add_bid(session, job, pro, amount=10000 * (i + 1)) for i, pro in enumerate(pros)]
    # rollback 之後物件屬性會失效，先記下 ID
    return owner, pros, job.job_id, [b.bid_id for b in bids]


async def _statuses(session_factory, job_id):
    async with session_factory() as session:
        job = await JobRepository(session).get_job_by_id_with_bids(job_id)
        return job.status, {b.bid_id: b.status for b in job.bids}


def test_accept_bid_rejects_siblings_and_starts_job(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner, _, job_id, bids = await _job_with_three_bids(session)
            result = await BidService(session).accept_bid(job_id, bids[1], owner)
            returned = {b.bid_id: b.status for b in result.bids}
            return job_id, bids, result.status, returned

    job_id, bids, returned_status, returned_bids = asyncio.run(scenario())

    assert returned_status == JobStatusEnum.in_progress
    assert returned_bids[bids[1]] == BidStatusEnum.accepted
    assert returned_bids[bids[0]] == BidStatusEnum.rejected
    assert returned_bids[bids[2]] == BidStatusEnum.rejected

    # 另開 session 確認已寫入資料庫
    job_status, stored = asyncio.run(_statuses(session_factory, job_id))
    assert job_status == JobStatusEnum.in_progress
    assert list(stored.values()).count(BidStatusEnum.accepted) == 1
    assert stored[bids[1]] == BidStatusEnum.accepted


def test_accepting_another_bid_keeps_single_accepted(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner, _, job_id, bids = await _job_with_three_bids(session)
            service = BidService(session)
            await service.accept_bid(job_id, bids[0], owner)
            await service.accept_bid(job_id, bids[2], owner)
            return job_id, bids

    job_id, bids = asyncio.run(scenario())
    _, stored = asyncio.run(_statuses(session_factory, job_id))
    assert stored[bids[2]] == BidStatusEnum.accepted
    assert stored[bids[0]] == BidStatusEnum.rejected
    assert list(stored.values()).count(BidStatusEnum.accepted) == 1


def test_reject_after_accept_in_same_session(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner, _, job_id, bids = await _job_with_three_bids(session)
            service = BidService(session)
            await service.accept_bid(job_id, bids[0], owner)
            # bids[1] 已被連帶拒絕，再拒絕一次不應報錯
            rejected = await service.reject_bid(bids[1], owner)
            return job_id, bids, rejected.status

    job_id, bids, rejected_status = asyncio.run(scenario())
    assert rejected_status == BidStatusEnum.rejected

    job_status, stored = asyncio.run(_statuses(session_factory, job_id))
    assert job_status == JobStatusEnum.in_progress
    assert stored[bids[0]] == BidStatusEnum.accepted
    assert stored[bids[1]] == BidStatusEnum.rejected


def test_accept_bid_rolls_back_when_a_step_fails(session_factory, monkeypatch):
    async def broken_set_status(self, job_id, status):
        raise OperationalError("UPDATE jobs", {}, Exception("connection lost"))

    async def seed():
        async with session_factory() as session:
            owner, _, job_id, bids = await _job_with_three_bids(session)
            return owner, job_id, bids

    owner, job_id, bids = asyncio.run(seed())
    monkeypatch.setattr(JobRepository, "set_status", broken_set_status)

    async def scenario():
        async with session_factory() as session:
            await BidService(session).accept_bid(job_id, bids[1], owner)

    with pytest.raises(OperationalError):
        asyncio.run(scenario())

    # 出價狀態的更新已執行過，必須一起被 rollback
    job_status, stored = asyncio.run(_statuses(session_factory, job_id))
    assert job_status == JobStatusEnum.open
    assert set(stored.values()) == {BidStatusEnum.pending}


def test_accept_bid_by_non_owner_changes_nothing(session_factory):
    async def scenario():
        async with session_factory() as session:
            _, pros, job_id, bids = await _job_with_three_bids(session)
            with pytest.raises(HTTPException) as exc:
                await BidService(session).accept_bid(job_id, bids[0], pros[0])
            return exc.value, job_id

    error, job_id = asyncio.run(scenario())
    assert error.status_code == 403

    job_status, stored = asyncio.run(_statuses(session_factory, job_id))
    assert job_status == JobStatusEnum.open
    assert set(stored.values()) == {BidStatusEnum.pending}


def test_accept_bid_from_another_job_is_not_found(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner, pros, job_id, _ = await _job_with_three_bids(session)
            other_job = await add_job(session, owner, title="Paint fence")
            other_bid = await add_bid(session, other_job, pros[0])
            with pytest.raises(HTTPException) as exc:
                await BidService(session).accept_bid(job_id, other_bid.bid_id, owner)
            return exc.value

    assert asyncio.run(scenario()).status_code == 404


def test_reject_bid_is_idempotent_and_leaves_others_alone(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner, _, job_id, bids = await _job_with_three_bids(session)
            service = BidService(session)
            first = await service.reject_bid(bids[0], owner)
            second = await service.reject_bid(bids[0], owner)
            return job_id, bids, first.status, second.status

    job_id, bids, first, second = asyncio.run(scenario())
    assert first == BidStatusEnum.rejected
    assert second == BidStatusEnum.rejected

    job_status, stored = asyncio.run(_statuses(session_factory, job_id))
    assert job_status == JobStatusEnum.open
    assert stored[bids[1]] == BidStatusEnum.pending
    assert stored[bids[2]] == BidStatusEnum.pending


def test_job_poster_cannot_bid_on_own_job(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner = await add_user(session, role=UserRoleEnum.job_poster)
            job = await add_job(session, owner)
            with pytest.raises(HTTPException) as exc:
                await BidService(session).submit_bid(job.job_id, owner, BidCreate(amount=5000))
            remaining = await BidRepository(session).get_bids_by_job_id(job.job_id)
            return exc.value, remaining

    error, remaining = asyncio.run(scenario())
    assert error.status_code == 403
    assert remaining == []


def test_submit_bid_fills_contact_from_profile_and_rejects_duplicates(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner = await add_user(session, role=UserRoleEnum.job_poster)
            pro = await add_user(session, full_name="Pat Plumber", phone="555-0100")
            job = await add_job(session, owner)
            service = BidService(session)
            bid = await service.submit_bid(
                job.job_id, pro,
                BidCreate(hourly_rate=5000, estimated_hours=8, bank_account_number="123-456")
            )
            with pytest.raises(HTTPException) as exc:
                await service.submit_bid(job.job_id, pro, BidCreate(amount=1000))
            detail = await service.get_payment_detail(bid.bid_id, pro)
            return pro, bid, exc.value, detail

    pro, bid, duplicate_error, detail = asyncio.run(scenario())
    assert bid.amount == 40000
    assert bid.status == BidStatusEnum.pending
    assert bid.bidder_id == pro.user_id
    assert bid.bidder_name == "Pat Plumber"
    assert bid.bidder_phone == "555-0100"
    assert bid.bidder_email == pro.email
    assert duplicate_error.status_code == 400
    assert detail.bank_account_number == "123-456"


def test_payment_detail_only_visible_to_bidder(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner = await add_user(session, role=UserRoleEnum.job_poster)
            pro = await add_user(session)
            job = await add_job(session, owner)
            service = BidService(session)
            bid = await service.submit_bid(job.job_id, pro, BidCreate(amount=1000, bank_account_number="999"))
            with pytest.raises(HTTPException) as exc:
                await service.get_payment_detail(bid.bid_id, owner)
            return exc.value

    assert asyncio.run(scenario()).status_code == 403


def test_bids_for_job_hide_other_bidders(session_factory):
    async def scenario():
        async with session_factory() as session:
            owner, pros, job_id, _ = await _job_with_three_bids(session)
            service = BidService(session)
            as_owner = await service.get_bids_for_job(job_id, owner)
            as_pro = await service.get_bids_for_job(job_id, pros[0])
            return pros, as_owner, as_pro

    pros, as_owner, as_pro = asyncio.run(scenario())
    assert len(as_owner) == 3
    assert [b.bidder_id for b in as_pro] == [pros[0].user_id]
