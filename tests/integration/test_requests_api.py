import pytest

from tests.factories import loan_disbursement_payload

API = "/api/v1/requests"


async def create(client, auth_headers, seeded, username="member", **overrides):
    response = await client.post(API, json=loan_disbursement_payload(seeded, **overrides),
                                 headers=auth_headers(username))
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def put_status(client, auth_headers, request_id, username, status, **extra):
    return await client.put(f"{API}/{request_id}", json={"status": status, **extra},
                            headers=auth_headers(username))


@pytest.mark.asyncio
class TestCreateAndRead:
    """Test request endpoints"""

    async def test_create_returns_envelope(self, client, seeded, auth_headers):
        response = await client.post(API, json=loan_disbursement_payload(seeded),
                                     headers=auth_headers("member"))

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "success"
        assert body["message"] == "Request created successfully"
        data = body["data"]
        assert data["status"] == "PENDING"
        assert data["next_approval_level"] == 1
        assert data["initiator_id"] == seeded.users["member"]
        assert [s["approver_role"] for s in data["approval_steps"]] == ["ADMIN", "TREASURER"]
        assert response.headers.get("X-Request-Id")

    async def test_create_requires_authentication(self, client, seeded):
        response = await client.post(API, json=loan_disbursement_payload(seeded))

        assert response.status_code == 401
        assert response.json() == {
            "status": "error", "code": "UNAUTHENTICATED", "message": "Not authenticated"
        }

    async def test_invalid_token(self, client, seeded):
        response = await client.get(f"{API}/user", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401

    async def test_malformed_body_uses_error_envelope(self, client, seeded, auth_headers):
        response = await client.post(API, json={"type": "TIME_TRAVEL", "module": "LOAN", "content": {}},
                                     headers=auth_headers("member"))

        assert response.status_code == 422
        body = response.json()
        assert body["status"] == "error"
        assert body["code"] == "VALIDATION_ERROR"
        assert "type" in body["message"]

    async def test_invalid_content(self, client, seeded, auth_headers):
        response = await client.post(API, json=loan_disbursement_payload(seeded, content={"amount": -1}),
                                     headers=auth_headers("member"))
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_dangling_linkage(self, client, seeded, auth_headers):
        response = await client.post(API, json=loan_disbursement_payload(seeded, loan_id=4242),
                                     headers=auth_headers("member"))
        assert response.status_code == 422
        assert response.json()["code"] == "LINKAGE_ERROR"

    async def test_get_request(self, client, seeded, auth_headers):
        created = await create(client, auth_headers, seeded)

        response = await client.get(f"{API}/{created['id']}", headers=auth_headers("member"))

        assert response.status_code == 200
        assert response.json()["data"]["id"] == created["id"]

    async def test_get_unknown_request(self, client, seeded, auth_headers):
        response = await client.get(f"{API}/does-not-exist", headers=auth_headers("admin"))

        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    async def test_other_member_cannot_view(self, client, seeded, auth_headers):
        created = await create(client, auth_headers, seeded)

        response = await client.get(f"{API}/{created['id']}", headers=auth_headers("member2"))

        assert response.status_code == 403
        assert response.json()["code"] == "UNAUTHORIZED_ACTION"

    async def test_list_requires_staff(self, client, seeded, auth_headers):
        await create(client, auth_headers, seeded)

        denied = await client.get(API, headers=auth_headers("member"))
        allowed = await client.get(API, params={"status": "PENDING", "limit": 5},
                                   headers=auth_headers("admin"))

        assert denied.status_code == 403
        assert allowed.status_code == 200
        assert allowed.json()["meta"] == {"total": 1, "page": 1, "limit": 5, "totalPages": 1}

    async def test_user_requests(self, client, seeded, auth_headers):
        await create(client, auth_headers, seeded)

        mine = await client.get(f"{API}/user", headers=auth_headers("member"))
        theirs = await client.get(f"{API}/user", headers=auth_headers("member2"))

        assert mine.json()["meta"]["total"] == 1
        assert theirs.json()["meta"]["total"] == 0


@pytest.mark.asyncio
class TestStatusUpdates:
    async def test_two_level_scenario(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        response = await put_status(client, auth_headers, request_id, "admin", "APPROVED", level=1)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "REVIEWED"
        assert response.json()["data"]["next_approval_level"] == 2

        response = await put_status(client, auth_headers, request_id, "treasurer", "APPROVED", level=2)
        assert response.json()["data"]["status"] == "APPROVED"
        assert response.json()["data"]["next_approval_level"] is None

        response = await put_status(client, auth_headers, request_id, "treasurer", "COMPLETED",
                                    notes="Paid out")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "COMPLETED"
        assert response.json()["message"] == "Request completed successfully"

    async def test_review_then_reviewed_alias(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        review = await put_status(client, auth_headers, request_id, "admin", "IN_REVIEW")
        assert review.json()["data"]["status"] == "IN_REVIEW"

        signed = await put_status(client, auth_headers, request_id, "admin", "REVIEWED")
        assert signed.json()["data"]["status"] == "REVIEWED"

    async def test_stale_level_conflict(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]
        await put_status(client, auth_headers, request_id, "admin", "APPROVED", level=1)

        response = await put_status(client, auth_headers, request_id, "admin2", "APPROVED", level=1)

        assert response.status_code == 409
        assert response.json()["code"] == "STALE_STATE"

    async def test_wrong_level_is_forbidden(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]
        await put_status(client, auth_headers, request_id, "admin", "APPROVED")

        response = await put_status(client, auth_headers, request_id, "admin2", "APPROVED")

        assert response.status_code == 403
        assert "Insufficient approval level" in response.json()["message"]

    async def test_reject_then_approve_is_invalid(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        rejected = await put_status(client, auth_headers, request_id, "admin", "REJECTED",
                                    notes="insufficient documentation")
        assert rejected.json()["data"]["status"] == "REJECTED"
        assert [s["status"] for s in rejected.json()["data"]["approval_steps"]] == ["REJECTED", "SKIPPED"]

        response = await put_status(client, auth_headers, request_id, "treasurer", "APPROVED", level=2)
        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    async def test_reject_without_reason(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        response = await put_status(client, auth_headers, request_id, "admin", "REJECTED")

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_complete_before_approval(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        response = await put_status(client, auth_headers, request_id, "treasurer", "COMPLETED")

        assert response.status_code == 400

    async def test_back_to_pending_is_invalid(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        response = await put_status(client, auth_headers, request_id, "admin", "PENDING")

        assert response.status_code == 400
        assert response.json()["code"] == "INVALID_STATUS_TRANSITION"

    async def test_cancel_by_initiator(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        response = await put_status(client, auth_headers, request_id, "member", "CANCELLED")

        assert response.status_code == 200
        assert response.json()["data"]["status"] == "CANCELLED"
        assert response.json()["data"]["notes"] == "Request cancelled by user"


@pytest.mark.asyncio
class TestApproverViews:
    async def test_pending_and_count(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        pending = await client.get(f"{API}/pending", headers=auth_headers("admin"))
        count = await client.get(f"{API}/pending-count", headers=auth_headers("admin"))
        treasurer_count = await client.get(f"{API}/pending-count", headers=auth_headers("treasurer"))

        assert [r["id"] for r in pending.json()["data"]] == [request_id]
        assert count.json()["data"] == {"count": 1}
        assert treasurer_count.json()["data"] == {"count": 0}

    async def test_statistics(self, client, seeded, auth_headers):
        await create(client, auth_headers, seeded)

        response = await client.get(f"{API}/statistics", headers=auth_headers("chairman"))

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["pending"] == 1
        assert data["by_type"] == {"LOAN_DISBURSEMENT": 1}

    async def test_statistics_require_staff(self, client, seeded, auth_headers):
        response = await client.get(f"{API}/statistics", headers=auth_headers("member"))
        assert response.status_code == 403


@pytest.mark.asyncio
class TestDelete:
    async def test_only_super_admin_deletes(self, client, seeded, auth_headers):
        request_id = (await create(client, auth_headers, seeded))["id"]

        denied = await client.delete(f"{API}/{request_id}", headers=auth_headers("chairman"))
        assert denied.status_code == 403

        deleted = await client.delete(f"{API}/{request_id}", headers=auth_headers("superadmin"))
        assert deleted.status_code == 200
        assert deleted.json() == {"status": "success", "message": "Request deleted successfully", "data": None}

        gone = await client.get(f"{API}/{request_id}", headers=auth_headers("superadmin"))
        assert gone.status_code == 404
