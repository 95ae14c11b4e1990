import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import InterfaceError, OperationalError, SQLAlchemyError

from app.core.database import get_db, get_session_factory
from app.core.security import get_current_user, get_optional_user, get_current_user_from_websocket_token
from app.main import app
from app.models.bid import BidStatusEnum
from app.models.user import UserRoleEnum

from factories import add_user, add_job, add_bid, add_conversation, add_message


@pytest.fixture
def api(session_factory):
    """
    TestClient + 切換登入者：api["as"](user) 之後的請求都以該使用者身分送出
    """
    state = {"user": None}

    async def override_get_db():
        async with session_factory() as session:
            yield session

    def override_current_user():
        return state["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    app.dependency_overrides[get_optional_user] = override_current_user
    app.dependency_overrides[get_current_user_from_websocket_token] = override_current_user
    app.dependency_overrides[get_session_factory] = lambda: session_factory

    def login_as(user):
        state["user"] = user

    with TestClient(app) as client:
        yield {"client": client, "as": login_as}

    app.dependency_overrides.clear()


@pytest.fixture
def people(session_factory):
    async def seed():
        async with session_factory() as session:
            poster = await add_user(session, role=UserRoleEnum.job_poster, full_name="Hannah Homeowner")
            pro_one = await add_user(session, full_name="Pro One", phone="555-0101")
            pro_two = await add_user(session, full_name="Pro Two")
            return poster, pro_one, pro_two

    return asyncio.run(seed())


JOB_PAYLOAD = {
    "title": "Replace bathroom faucet",
    "description": "Old faucet leaks, new one already bought",
    "category": "Plumbing",
    "location": "Portland, OR",
    "budget_min": 15000,
    "budget_max": 30000,
    "budget_type": "range",
}


def test_root(api):
    response = api["client"].get("/")
    assert response.status_code == 200


def test_bid_lifecycle_over_http(api, people):
    client, login_as = api["client"], api["as"]
    poster, pro_one, pro_two = people

    # 刊登工作
    login_as(poster)
    response = client.post("/jobs/", json=JOB_PAYLOAD)
    assert response.status_code == 201
    job = response.json()
    assert job["status"] == "open"
    assert job["homeowner_name"] == "Hannah Homeowner"
    assert job["budget_display"] == "$150 - $300"
    job_id = job["job_id"]

    listed = client.get("/jobs/", params={"category": "Plumbing", "location": "portland"}).json()
    assert [j["job_id"] for j in listed] == [job_id]

    # 刊登者不能對自己的工作出價
    response = client.post(f"/jobs/{job_id}/bids", json={"amount": 1000})
    assert response.status_code == 403

    login_as(pro_one)
    response = client.post(f"/jobs/{job_id}/bids", json={"hourly_rate": 5000, "estimated_hours": 8})
    assert response.status_code == 201
    first_bid = response.json()
    assert first_bid["amount"] == 40000
    assert first_bid["bidder_name"] == "Pro One"
    assert first_bid["status"] == "pending"

    detail = client.get(f"/jobs/{job_id}").json()
    assert detail["can_bid"] is True
    assert detail["bid_count"] == 1

    login_as(pro_two)
    response = client.post(f"/jobs/{job_id}/bids", json={"amount": 35000, "message": "Can do it Friday"})
    assert response.status_code == 201
    second_bid = response.json()

    # 出價者只看到自己的出價
    visible = client.get(f"/jobs/{job_id}/bids").json()
    assert [b["bid_id"] for b in visible] == [second_bid["bid_id"]]

    # 接受出價
    login_as(poster)
    assert client.get(f"/jobs/{job_id}").json()["can_bid"] is False

    response = client.post(f"/jobs/{job_id}/bids/{second_bid['bid_id']}/accept")
    assert response.status_code == 200
    accepted = response.json()
    assert accepted["status"] == "in-progress"
    statuses = {b["bid_id"]: b["status"] for b in accepted["bids"]}
    assert statuses == {first_bid["bid_id"]: "rejected", second_bid["bid_id"]: "accepted"}

    my_jobs = client.get("/jobs/my").json()
    assert len(my_jobs) == 1
    assert len(my_jobs[0]["bids"]) == 2

    login_as(pro_two)
    assigned = client.get("/jobs/assigned").json()
    assert [a["job_id"] for a in assigned] == [job_id]
    assert assigned[0]["bid_amount"] == 35000

    # 角色限定的頁面
    assert client.get("/jobs/my").status_code == 403

    # 只有刊登者能變更狀態
    assert client.patch(f"/jobs/{job_id}/status", json={"status": "completed"}).status_code == 403

    login_as(poster)
    assert client.get("/jobs/assigned").status_code == 403
    assert client.patch(f"/jobs/{job_id}/status", json={"status": "archived"}).status_code == 422
    response = client.patch(f"/jobs/{job_id}/status", json={"status": "completed"})
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    # 工作已不是 open，不會出現在公開列表
    assert client.get("/jobs/").json() == []


def test_reject_bid_twice_over_http(api, session_factory, people):
    poster, pro_one, _ = people

    async def seed():
        async with session_factory() as session:
            job = await add_job(session, poster)
            bid = await add_bid(session, job, pro_one)
            return bid.bid_id

    bid_id = asyncio.run(seed())
    api["as"](poster)
    first = api["client"].post(f"/bids/{bid_id}/reject")
    second = api["client"].post(f"/bids/{bid_id}/reject")
    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["status"] == "rejected"

    api["as"](pro_one)
    my_bids = api["client"].get("/bids/my").json()
    assert my_bids[0]["status"] == "rejected"
    assert my_bids[0]["job"]["title"] == "Fix leaking sink"


def test_conversation_requires_accepted_bid(api, session_factory, people):
    client, login_as = api["client"], api["as"]
    poster, pro_one, pro_two = people

    async def seed():
        async with session_factory() as session:
            job = await add_job(session, poster)
            await add_bid(session, job, pro_one, status=BidStatusEnum.accepted)
            await add_bid(session, job, pro_two, status=BidStatusEnum.rejected)
            return job.job_id

    job_id = asyncio.run(seed())
    triple = {"job_id": job_id, "job_poster_id": poster.user_id, "professional_id": pro_one.user_id}

    login_as(pro_two)
    response = client.post("/messages/conversations", json={**triple, "professional_id": pro_two.user_id})
    assert response.status_code == 403

    login_as(pro_one)
    response = client.post("/messages/conversations", json=triple)
    assert response.status_code == 200
    conversation = response.json()
    assert conversation["other_participant"]["full_name"] == "Hannah Homeowner"

    # 重複開啟回傳同一個對話
    again = client.post("/messages/conversations", json=triple).json()
    assert again["conversation_id"] == conversation["conversation_id"]

    response = client.post(
        f"/messages/conversations/{conversation['conversation_id']}/messages",
        json={"content": "I'll bring the parts"}
    )
    assert response.status_code == 201
    assert response.json()["recipient_id"] == poster.user_id

    login_as(poster)
    unread = client.get("/messages/unread-count", params=triple).json()
    assert unread["unread_count"] == 1

    history = client.get(f"/messages/conversations/{conversation['conversation_id']}/messages").json()
    assert [m["content"] for m in history] == ["I'll bring the parts"]
    assert client.get("/messages/unread-count", params=triple).json()["unread_count"] == 0


def test_unread_count_websocket(api, session_factory, people):
    client, login_as = api["client"], api["as"]
    poster, pro_one, _ = people

    async def seed():
        async with session_factory() as session:
            job = await add_job(session, poster)
            conversation = await add_conversation(session, job, pro_one)
            return job.job_id, conversation

    job_id, conversation = asyncio.run(seed())

    login_as(poster)
    url = (
        f"/messages/ws/unread?job_id={job_id}"
        f"&job_poster_id={poster.user_id}&professional_id={pro_one.user_id}&token=ignored"
    )
    with client.websocket_connect(url) as websocket:
        assert websocket.receive_json() == {"type": "unread_count", "unread_count": 0}

        async def new_message():
            async with session_factory() as session:
                await add_message(session, conversation, pro_one.user_id, "On my way")

        asyncio.run(new_message())
        websocket.send_text("refresh")
        assert websocket.receive_json() == {"type": "unread_count", "unread_count": 1}


def test_chat_and_unread_sockets_receive_pushed_events(api, session_factory, people):
    client, login_as = api["client"], api["as"]
    poster, pro_one, _ = people

    async def seed():
        async with session_factory() as session:
            job = await add_job(session, poster)
            conversation = await add_conversation(session, job, pro_one)
            return job.job_id, conversation.conversation_id

    job_id, conversation_id = asyncio.run(seed())

    login_as(poster)
    unread_url = (
        f"/messages/ws/unread?job_id={job_id}"
        f"&job_poster_id={poster.user_id}&professional_id={pro_one.user_id}&token=ignored"
    )
    with client.websocket_connect("/messages/ws?token=ignored") as chat, client.websocket_connect(unread_url) as badge:
        assert badge.receive_json() == {"type": "unread_count", "unread_count": 0}

        # 對方透過 REST 送出訊息，兩個連線都會收到推送
        login_as(pro_one)
        response = client.post(f"/messages/conversations/{conversation_id}/messages", json={"content": "hi"})
        assert response.status_code == 201

        event = chat.receive_json()
        assert event["type"] == "message_created"
        assert event["conversation_id"] == conversation_id
        assert event["job_id"] == job_id
        assert event["message"]["content"] == "hi"
        assert event["message"]["recipient_id"] == poster.user_id
        assert badge.receive_json() == {"type": "unread_count", "unread_count": 1}

        # 從 WebSocket 送出的訊息也會回推給自己
        chat.send_json({"conversation_id": conversation_id, "content": "See you at 9"})
        echo = chat.receive_json()
        assert echo["type"] == "message_created"
        assert echo["message"]["sender_id"] == poster.user_id
        assert echo["message"]["recipient_id"] == pro_one.user_id

        chat.send_json({"conversation_id": conversation_id, "content": "   "})
        assert chat.receive_json() == {"type": "error", "detail": "訊息內容不可為空"}

        chat.send_json({"content": "no conversation"})
        assert chat.receive_json() == {"type": "error", "detail": "缺少 conversation_id"}


def test_database_errors_map_to_503_and_500(api):
    client = api["client"]

    def failing_db(error):
        async def override():
            raise error
        return override

    app.dependency_overrides[get_db] = failing_db(
        OperationalError("SELECT 1", {}, Exception("connection refused"))
    )
    response = client.get("/jobs/")
    assert response.status_code == 503
    assert response.json() == {"detail": "服務暫時無法使用，請稍後再試"}

    app.dependency_overrides[get_db] = failing_db(
        InterfaceError("SELECT 1", {}, Exception("connection closed"))
    )
    assert client.get("/jobs/").status_code == 503

    app.dependency_overrides[get_db] = failing_db(SQLAlchemyError("boom"))
    response = client.get("/jobs/")
    assert response.status_code == 500
    assert response.json() == {"detail": "資料庫錯誤，請稍後再試"}
