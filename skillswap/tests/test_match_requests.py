import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.models.match import Match, MatchValidationError
from skillswap.models.match_request import MatchRequest, MatchRequestStatus
from skillswap.models.user import User
from skillswap.services import match_request_service
from skillswap.services.match_request_service import MatchRequestService

from .test_utils import create_listing, create_test_user, send_request


async def _pair(async_client: AsyncClient, sender_data: dict, receiver_data: dict):
    sender = await create_test_user(async_client, sender_data)
    receiver = await create_test_user(async_client, receiver_data)
    return sender, receiver


async def _match_count(session: AsyncSession) -> int:
    result = await session.execute(select(func.count(Match.id)))
    return result.scalar_one()


class TestSendRequest:
    @pytest.mark.asyncio
    async def test_send_request(self, async_client: AsyncClient, test_user_data, second_user_data):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)

        response = await send_request(
            async_client,
            sender["headers"],
            receiver["user"]["id"],
            skill_offered="  Python ",
            message="Happy to trade!",
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["message"] == "Match request sent successfully"
        request = data["request"]
        assert request["status"] == "pending"
        assert request["skill_offered"] == "Python"
        assert request["message"] == "Happy to trade!"
        assert request["sender"]["id"] == sender["user"]["id"]
        assert request["receiver"]["id"] == receiver["user"]["id"]
        assert request["sender"]["name"] == test_user_data["name"]
        assert "linkedin_profile" in request["receiver"]

    @pytest.mark.asyncio
    async def test_cannot_send_to_self(self, async_client: AsyncClient, test_user_data):
        sender = await create_test_user(async_client, test_user_data)

        response = await send_request(async_client, sender["headers"], sender["user"]["id"])

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Cannot send request to yourself"

    @pytest.mark.asyncio
    async def test_receiver_must_exist(self, async_client: AsyncClient, test_user_data):
        sender = await create_test_user(async_client, test_user_data)

        response = await send_request(async_client, sender["headers"], 999999)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["message"] == "User not found"

    @pytest.mark.asyncio
    async def test_receiver_must_be_active(
        self, async_client: AsyncClient, async_session: AsyncSession, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        user = await async_session.get(User, receiver["user"]["id"])
        assert user is not None
        user.is_active = False
        await async_session.commit()

        response = await send_request(async_client, sender["headers"], receiver["user"]["id"])

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_duplicate_pending_request(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        first = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        assert first.status_code == status.HTTP_201_CREATED

        response = await send_request(async_client, sender["headers"], receiver["user"]["id"])

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Request already sent for this skill combination"

        other_combo = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], skill_wanted="Piano"
        )
        assert other_combo.status_code == status.HTTP_201_CREATED

    @pytest.mark.asyncio
    async def test_resend_after_decline_is_a_duplicate(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]
        declined = await async_client.put(
            f"/api/match-requests/{request_id}/decline", headers=receiver["headers"]
        )
        assert declined.status_code == status.HTTP_200_OK

        response = await send_request(async_client, sender["headers"], receiver["user"]["id"])

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Duplicate request detected"
        assert response.json()["error"] == "DUPLICATE_REQUEST"

    @pytest.mark.asyncio
    async def test_cannot_request_existing_match_partner(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        accepted = await async_client.put(
            f"/api/match-requests/{sent.json()['request']['id']}/accept",
            headers=receiver["headers"],
        )
        assert accepted.status_code == status.HTTP_200_OK

        # Either direction counts as already matched.
        response = await send_request(
            async_client, receiver["headers"], sender["user"]["id"], skill_offered="Drums"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Already matched with this user"

    @pytest.mark.asyncio
    async def test_validation(self, async_client: AsyncClient, test_user_data, second_user_data):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)

        blank_skill = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], skill_offered="   "
        )
        long_message = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], message="x" * 501
        )

        assert blank_skill.status_code == status.HTTP_400_BAD_REQUEST
        assert long_message.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_out_of_range_receiver(self, async_client: AsyncClient, test_user_data):
        sender = await create_test_user(async_client, test_user_data)

        response = await send_request(async_client, sender["headers"], 2**64)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "VALIDATION_ERROR"


class TestListRequests:
    @pytest.mark.asyncio
    async def test_received_defaults_to_pending(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        first = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        second = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], skill_wanted="Piano"
        )
        _ = await async_client.put(
            f"/api/match-requests/{first.json()['request']['id']}/decline",
            headers=receiver["headers"],
        )

        response = await async_client.get("/api/match-requests/received", headers=receiver["headers"])

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [item["id"] for item in data["items"]] == [second.json()["request"]["id"]]
        assert data["pagination"] == {"current": 1, "pages": 1, "total": 1}
        assert "skills_offered" in data["items"][0]["sender"]

        declined = await async_client.get(
            "/api/match-requests/received",
            params={"status": "declined"},
            headers=receiver["headers"],
        )
        assert [item["id"] for item in declined.json()["items"]] == [first.json()["request"]["id"]]

    @pytest.mark.asyncio
    async def test_sent_lists_all_statuses_newest_first(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        first = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        second = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], skill_wanted="Piano"
        )
        _ = await async_client.put(
            f"/api/match-requests/{first.json()['request']['id']}/decline",
            headers=receiver["headers"],
        )

        response = await async_client.get("/api/match-requests/sent", headers=sender["headers"])

        items = response.json()["items"]
        assert [item["id"] for item in items] == [
            second.json()["request"]["id"],
            first.json()["request"]["id"],
        ]
        assert [item["status"] for item in items] == ["pending", "declined"]

        received_by_sender = await async_client.get(
            "/api/match-requests/received", headers=sender["headers"]
        )
        assert received_by_sender.json()["items"] == []

    @pytest.mark.asyncio
    async def test_pagination(self, async_client: AsyncClient, test_user_data, second_user_data):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        for skill in ("Piano", "Drums", "Violin"):
            _ = await send_request(
                async_client, sender["headers"], receiver["user"]["id"], skill_wanted=skill
            )

        response = await async_client.get(
            "/api/match-requests/sent", params={"page": 2, "limit": 2}, headers=sender["headers"]
        )

        data = response.json()
        assert data["pagination"] == {"current": 2, "pages": 2, "total": 3}
        assert [item["skill_wanted"] for item in data["items"]] == ["Piano"]

    @pytest.mark.asyncio
    async def test_count(self, async_client: AsyncClient, test_user_data, second_user_data):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        first = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        _ = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], skill_wanted="Piano"
        )

        before = await async_client.get("/api/match-requests/count", headers=receiver["headers"])
        assert before.json() == {"count": 2}

        _ = await async_client.put(
            f"/api/match-requests/{first.json()['request']['id']}/decline",
            headers=receiver["headers"],
        )
        after = await async_client.get("/api/match-requests/count", headers=receiver["headers"])
        assert after.json() == {"count": 1}

        sender_count = await async_client.get("/api/match-requests/count", headers=sender["headers"])
        assert sender_count.json() == {"count": 0}

    @pytest.mark.asyncio
    async def test_lists_require_auth(self, async_client: AsyncClient):
        for path in ("/api/match-requests/received", "/api/match-requests/sent", "/api/match-requests/count"):
            response = await async_client.get(path)
            assert response.status_code == status.HTTP_401_UNAUTHORIZED, path


class TestAcceptRequest:
    @pytest.mark.asyncio
    async def test_accept_creates_match_and_links_users(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(
            async_client, sender["headers"], receiver["user"]["id"], "Python", "Guitar"
        )
        request_id = sent.json()["request"]["id"]

        response = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["message"] == "Match request accepted successfully"
        assert data["request"]["status"] == "accepted"
        match = data["match"]
        assert match["user1"]["id"] == sender["user"]["id"]
        assert match["user2"]["id"] == receiver["user"]["id"]
        assert match["initiated_by_id"] == sender["user"]["id"]
        assert match["status"] == "accepted"
        assert match["notes"] == "Skill exchange: Python for Guitar"
        assert match["skill_offered"] == "Python"
        assert match["skill_wanted"] == "Guitar"
        assert match["skill_listing"] is None

        sender_me = await async_client.get("/api/auth/me", headers=sender["headers"])
        receiver_me = await async_client.get("/api/auth/me", headers=receiver["headers"])
        assert sender_me.json()["matches"] == [receiver["user"]["id"]]
        assert receiver_me.json()["matches"] == [sender["user"]["id"]]

    @pytest.mark.asyncio
    async def test_accept_with_existing_match_reuses_it(
        self,
        async_client: AsyncClient,
        async_session: AsyncSession,
        test_user_data,
        second_user_data,
        test_listing_data,
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        listing = await create_listing(async_client, receiver["headers"], test_listing_data)
        existing = await async_client.post(
            "/api/matches", json={"skill_listing_id": listing["id"]}, headers=sender["headers"]
        )
        assert existing.status_code == status.HTTP_201_CREATED

        response = await async_client.put(
            f"/api/match-requests/{sent.json()['request']['id']}/accept",
            headers=receiver["headers"],
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["request"]["status"] == "accepted"
        assert response.json()["match"]["id"] == existing.json()["match"]["id"]
        assert await _match_count(async_session) == 1

        sender_me = await async_client.get("/api/auth/me", headers=sender["headers"])
        assert sender_me.json()["matches"] == [receiver["user"]["id"]]

    @pytest.mark.asyncio
    async def test_only_receiver_can_accept(
        self, async_client: AsyncClient, test_user_data, second_user_data, third_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        outsider = await create_test_user(async_client, third_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]

        for headers in (sender["headers"], outsider["headers"]):
            response = await async_client.put(
                f"/api/match-requests/{request_id}/accept", headers=headers
            )
            assert response.status_code == status.HTTP_403_FORBIDDEN
            assert response.json()["error"] == "NOT_AUTHORIZED"

    @pytest.mark.asyncio
    async def test_accept_missing_request(self, async_client: AsyncClient, test_user_data):
        user = await create_test_user(async_client, test_user_data)

        response = await async_client.put("/api/match-requests/424242/accept", headers=user["headers"])

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["error"] == "REQUEST_NOT_FOUND"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "bad_id", ["abc", "0", "12abc", "-3", "9223372036854775808", "99999999999999999999999"]
    )
    async def test_malformed_id(self, async_client: AsyncClient, test_user_data, bad_id):
        user = await create_test_user(async_client, test_user_data)

        for action in ("accept", "decline"):
            response = await async_client.put(
                f"/api/match-requests/{bad_id}/{action}", headers=user["headers"]
            )
            assert response.status_code == status.HTTP_400_BAD_REQUEST
            assert response.json()["error"] == "INVALID_ID_FORMAT"

    @pytest.mark.asyncio
    async def test_cannot_accept_twice(
        self, async_client: AsyncClient, async_session: AsyncSession, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        url = f"/api/match-requests/{sent.json()['request']['id']}/accept"

        first = await async_client.put(url, headers=receiver["headers"])
        second = await async_client.put(url, headers=receiver["headers"])

        assert first.status_code == status.HTTP_200_OK
        assert second.status_code == status.HTTP_400_BAD_REQUEST
        assert second.json()["message"] == "Request already accepted"
        assert second.json()["error"] == "ALREADY_PROCESSED"
        assert await _match_count(async_session) == 1

    @pytest.mark.asyncio
    async def test_cannot_accept_declined(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]
        _ = await async_client.put(
            f"/api/match-requests/{request_id}/decline", headers=receiver["headers"]
        )

        response = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Request already declined"

    @pytest.mark.asyncio
    async def test_store_failure_reverts_request_to_pending(
        self,
        async_client: AsyncClient,
        async_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
        test_user_data,
        second_user_data,
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]

        async def failing_create(self, match_request):
            raise SQLAlchemyError("simulated store failure")

        monkeypatch.setattr(MatchRequestService, "_create_match_for_request", failing_create)

        response = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.json()["error"] == "MATCH_CREATION_ERROR"

        received = await async_client.get("/api/match-requests/received", headers=receiver["headers"])
        assert [item["id"] for item in received.json()["items"]] == [request_id]
        assert received.json()["items"][0]["status"] == "pending"
        assert await _match_count(async_session) == 0

        monkeypatch.undo()
        retry = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )
        assert retry.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_validation_failure_reports_match_validation_error(
        self,
        async_client: AsyncClient,
        monkeypatch: pytest.MonkeyPatch,
        test_user_data,
        second_user_data,
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]

        async def invalid_create(self, match_request):
            raise MatchValidationError("Users cannot match with themselves")

        monkeypatch.setattr(MatchRequestService, "_create_match_for_request", invalid_create)

        response = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "MATCH_VALIDATION_ERROR"
        count = await async_client.get("/api/match-requests/count", headers=receiver["headers"])
        assert count.json() == {"count": 1}

    @pytest.mark.asyncio
    async def test_accept_loses_to_concurrent_decline(
        self,
        async_client: AsyncClient,
        async_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
        test_user_data,
        second_user_data,
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]

        original_lookup = match_request_service.find_match_between

        # Another writer declines after the pending lookup and before the transition.
        async def decline_then_lookup(db, user_a, user_b, skill_listing_id=None):
            _ = await db.execute(
                update(MatchRequest)
                .where(MatchRequest.id == request_id)
                .values(status=MatchRequestStatus.declined)
                .execution_options(synchronize_session=False)
            )
            await db.commit()
            return await original_lookup(db, user_a, user_b, skill_listing_id)

        monkeypatch.setattr(match_request_service, "find_match_between", decline_then_lookup)

        response = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "message": "Request already declined",
            "error": "ALREADY_PROCESSED",
        }
        assert await _match_count(async_session) == 0

        sender_row = await async_session.get(User, sender["user"]["id"], populate_existing=True)
        assert sender_row.matches == []

    @pytest.mark.asyncio
    async def test_request_found_pending_on_second_read_is_accepted(
        self,
        async_client: AsyncClient,
        async_session: AsyncSession,
        monkeypatch: pytest.MonkeyPatch,
        test_user_data,
        second_user_data,
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]

        async def missed_lookup(self, request_id, receiver_id):
            return None

        monkeypatch.setattr(MatchRequestService, "_find_pending", missed_lookup)

        response = await async_client.put(
            f"/api/match-requests/{request_id}/accept", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["request"]["status"] == "accepted"
        assert data["request"]["sender"]["name"] == sender["user"]["name"]
        assert await _match_count(async_session) == 1


class TestDeclineRequest:
    @pytest.mark.asyncio
    async def test_decline(
        self, async_client: AsyncClient, async_session: AsyncSession, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        request_id = sent.json()["request"]["id"]

        response = await async_client.put(
            f"/api/match-requests/{request_id}/decline", headers=receiver["headers"]
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"] == "Match request declined"
        assert response.json()["request"]["status"] == "declined"
        assert "match" not in response.json()
        assert await _match_count(async_session) == 0

        sender_me = await async_client.get("/api/auth/me", headers=sender["headers"])
        assert sender_me.json()["matches"] == []

    @pytest.mark.asyncio
    async def test_decline_twice(self, async_client: AsyncClient, test_user_data, second_user_data):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])
        url = f"/api/match-requests/{sent.json()['request']['id']}/decline"

        _ = await async_client.put(url, headers=receiver["headers"])
        response = await async_client.put(url, headers=receiver["headers"])

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "Request already declined"

    @pytest.mark.asyncio
    async def test_sender_cannot_decline(
        self, async_client: AsyncClient, test_user_data, second_user_data
    ):
        sender, receiver = await _pair(async_client, test_user_data, second_user_data)
        sent = await send_request(async_client, sender["headers"], receiver["user"]["id"])

        response = await async_client.put(
            f"/api/match-requests/{sent.json()['request']['id']}/decline",
            headers=sender["headers"],
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
