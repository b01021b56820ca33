import datetime as dt
import uuid

import pytest

from license_server.models import LicenseKey, LicenseKeyStatus, Subscription, SubscriptionStatus


pytestmark = pytest.mark.asyncio


async def _register(client, password: str = "Owner#123") -> tuple[dict, dict]:
    email = f"owner_{uuid.uuid4().hex[:6]}@example.com"
    resp = await client.post("/api/auth/register", json={"email": email, "password": password})
    assert resp.status_code == 201, resp.text
    body = resp.json()
    return body["user"], {"Authorization": f"Bearer {body['token']}"}


async def _validate(client, key):
    return await client.post("/api/validate-license", json={"licenseKey": key})


async def test_subscribe_issue_validate_flow(client, create_admin, auth_header_factory):
    user, headers = await _register(client)

    sub_resp = await client.post(
        "/api/user/subscription",
        json={"userCount": 10, "billingInterval": "year"},
        headers=headers,
    )
    assert sub_resp.status_code == 200
    assert sub_resp.json()["totalPrice"] == "540.00"
    assert sub_resp.json()["hasOnCallSupport"] is True

    issue_resp = await client.post("/api/user/license-keys", headers=headers)
    assert issue_resp.status_code == 200
    issued = issue_resp.json()
    key = issued["key"]
    assert key.startswith("QB-QBYT-")
    assert issued["seatCount"] == 10
    assert issued["status"] == "active"
    assert issued["usageCount"] == 0

    for n in range(1, 4):
        resp = await _validate(client, key)
        assert resp.status_code == 200
        body = resp.json()
        assert body["valid"] is True
        assert body["license"]["usageCount"] == n
        assert body["license"]["lastUsed"] is not None
        assert body["user"]["email"] == user["email"]
        assert body["subscription"]["userCount"] == 10

    # Owner listing is masked
    list_resp = await client.get("/api/user/license-keys", headers=headers)
    assert list_resp.status_code == 200
    items = list_resp.json()["items"]
    assert len(items) == 1
    assert items[0]["key"] is None
    assert items[0]["keyPreview"] == f"QB-QBYT-****-****-{key[-4:]}"
    assert items[0]["usageCount"] == 3

    # Explicit reveal returns the full key
    reveal_resp = await client.get(f"/api/user/license-keys/{issued['id']}/reveal", headers=headers)
    assert reveal_resp.status_code == 200
    assert reveal_resp.json()["key"] == key

    # Admin revokes, validation fails like an unknown key
    admin, admin_password = await create_admin()
    admin_headers = await auth_header_factory(admin.email, admin_password)

    revoke_resp = await client.delete(f"/api/admin/license-keys/{issued['id']}", headers=admin_headers)
    assert revoke_resp.status_code == 200
    assert revoke_resp.json()["license"]["status"] == "revoked"

    revoked = await _validate(client, key)
    unknown = await _validate(client, "QB-QBYT-0000-0000-0000")
    assert revoked.status_code == 404
    assert revoked.json() == unknown.json() == {"valid": False, "message": "License key not found or inactive"}

    # Revoking again is idempotent
    again = await client.delete(f"/api/admin/license-keys/{issued['id']}", headers=admin_headers)
    assert again.status_code == 200

    reactivate_resp = await client.patch(
        f"/api/admin/license-keys/{issued['id']}/reactivate", headers=admin_headers
    )
    assert reactivate_resp.status_code == 200
    assert reactivate_resp.json()["message"] == "License key reactivated successfully"

    resp = await _validate(client, key)
    assert resp.status_code == 200
    assert resp.json()["license"]["usageCount"] == 4


async def test_second_key_for_same_owner_rejected(client):
    _, headers = await _register(client)
    await client.post("/api/user/subscription/trial", headers=headers)

    first = await client.post("/api/user/license-keys", headers=headers)
    assert first.status_code == 200
    assert first.json()["seatCount"] == 100

    second = await client.post("/api/user/license-keys", headers=headers)
    assert second.status_code == 400
    assert second.json()["detail"] == "Only one license key per subscription allowed"
    assert await LicenseKey.all().count() == 1


async def test_issue_without_subscription_rejected(client):
    _, headers = await _register(client)
    resp = await client.post("/api/user/license-keys", headers=headers)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "No active subscription found"


@pytest.mark.parametrize("payload", [{}, {"licenseKey": ""}, {"licenseKey": "   "}])
async def test_validate_requires_key(client, payload):
    resp = await client.post("/api/validate-license", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "licenseKey is required"


async def test_validate_elapsed_trial(client):
    user, headers = await _register(client)
    trial = await client.post("/api/user/subscription/trial", headers=headers)
    assert trial.status_code == 200
    key = (await client.post("/api/user/license-keys", headers=headers)).json()["key"]

    # Move the trial window into the past
    await Subscription.filter(id=trial.json()["id"]).update(
        trial_ends_at=dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=1)
    )

    resp = await _validate(client, key)
    assert resp.status_code == 403
    assert resp.json() == {"valid": False, "message": "Trial period has expired", "trialExpired": True}

    sub = await Subscription.get(id=trial.json()["id"])
    lk = await LicenseKey.get(key=key)
    assert sub.status == SubscriptionStatus.EXPIRED
    assert lk.status == LicenseKeyStatus.ACTIVE

    # The trial signal is repeated, not downgraded to a generic miss
    resp = await _validate(client, key)
    assert resp.status_code == 403
    assert resp.json()["trialExpired"] is True

    current = await client.get("/api/user/subscription", headers=headers)
    assert current.json()["status"] == "expired"


async def test_upgrade_after_elapsed_trial_keeps_key_working(client):
    _, headers = await _register(client)
    trial = (await client.post("/api/user/subscription/trial", headers=headers)).json()
    key = (await client.post("/api/user/license-keys", headers=headers)).json()["key"]

    # Window closes without any validation or sweep touching the trial
    await Subscription.filter(id=trial["id"]).update(
        trial_ends_at=dt.datetime.now(dt.timezone.utc) - dt.timedelta(minutes=1)
    )

    paid = await client.post("/api/user/subscription", json={"userCount": 3}, headers=headers)
    assert paid.status_code == 200
    assert paid.json()["status"] == "active"
    assert (await Subscription.get(id=trial["id"])).status == SubscriptionStatus.EXPIRED

    resp = await _validate(client, key)
    assert resp.status_code == 200
    assert resp.json()["subscription"]["userCount"] == 3

    # Still one key per owner
    again = await client.post("/api/user/license-keys", headers=headers)
    assert again.status_code == 400


async def test_reveal_other_owners_key_forbidden(client):
    _, owner_headers = await _register(client)
    await client.post("/api/user/subscription", json={"userCount": 2}, headers=owner_headers)
    issued = (await client.post("/api/user/license-keys", headers=owner_headers)).json()

    _, other_headers = await _register(client)
    resp = await client.get(f"/api/user/license-keys/{issued['id']}/reveal", headers=other_headers)
    assert resp.status_code == 403


async def test_admin_license_key_listing_is_masked(client, create_admin, auth_header_factory):
    user, headers = await _register(client)
    await client.post("/api/user/subscription", json={"userCount": 3}, headers=headers)
    key = (await client.post("/api/user/license-keys", headers=headers)).json()["key"]

    admin, admin_password = await create_admin()
    admin_headers = await auth_header_factory(admin.email, admin_password)

    resp = await client.get("/api/admin/license-keys", headers=admin_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    item = body["items"][0]
    assert item["key"] is None
    assert key not in resp.text
    assert item["keyPreview"].endswith(key[-4:])
    assert item["user"]["email"] == user["email"]
    assert item["subscription"]["userCount"] == 3
    assert item["subscription"]["billingInterval"] == "month"


async def test_admin_key_actions(client, create_admin, auth_header_factory):
    _, headers = await _register(client)
    await client.post("/api/user/subscription", json={"userCount": 1}, headers=headers)
    issued = (await client.post("/api/user/license-keys", headers=headers)).json()

    # Owners cannot revoke their own key through the admin surface
    resp = await client.delete(f"/api/admin/license-keys/{issued['id']}", headers=headers)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "FORBIDDEN_ADMIN_ONLY"

    admin, admin_password = await create_admin()
    admin_headers = await auth_header_factory(admin.email, admin_password)

    missing = await client.delete(f"/api/admin/license-keys/{uuid.uuid4()}", headers=admin_headers)
    assert missing.status_code == 404
    malformed = await client.patch("/api/admin/license-keys/not-a-uuid/reactivate", headers=admin_headers)
    assert malformed.status_code == 404

    # A key whose subscription was canceled stays revoked
    await client.delete(f"/api/admin/license-keys/{issued['id']}", headers=admin_headers)
    cancel = await client.post("/api/user/subscription/cancel", headers=headers)
    assert cancel.status_code == 200
    refused = await client.patch(f"/api/admin/license-keys/{issued['id']}/reactivate", headers=admin_headers)
    assert refused.status_code == 409
