"""Integration tests for the usage API router."""

from healthconsultant.usage.periods import today_utc


class TestRecordUsage:
    async def test_record(self, client, user_headers):
        resp = await client.post("/usage/record", headers=user_headers, json={"prompts": 3})
        assert resp.status_code == 200
        assert resp.json() == {"message": "Usage recorded successfully"}

        resp = await client.get("/usage/me", headers=user_headers)
        records = resp.json()
        assert len(records) == 1
        assert records[0]["interactions"] == 1
        assert records[0]["prompts"] == 3
        assert records[0]["date"] == today_utc().isoformat()
        assert records[0]["userEmail"] == "patient@example.com"

    async def test_record_defaults_to_one_prompt(self, client, user_headers):
        await client.post("/usage/record", headers=user_headers, json={})
        await client.post("/usage/record", headers=user_headers, json={})
        records = (await client.get("/usage/me", headers=user_headers)).json()
        assert records[0]["interactions"] == 2
        assert records[0]["prompts"] == 2

    async def test_record_requires_session(self, client):
        resp = await client.post("/usage/record", json={"prompts": 1})
        assert resp.status_code == 401

    async def test_record_rejects_zero_prompts(self, client, user_headers):
        resp = await client.post("/usage/record", headers=user_headers, json={"prompts": 0})
        assert resp.status_code == 422

    async def test_usage_me_bad_date(self, client, user_headers):
        resp = await client.get(
            "/usage/me", headers=user_headers, params={"startDate": "last-week"},
        )
        assert resp.status_code == 400
        assert resp.json()["code"] == "INVALID_INPUT"


class TestAdminUsage:
    async def test_requires_admin(self, client, user_headers):
        resp = await client.get("/admin/usage", headers=user_headers)
        assert resp.status_code == 403
        assert resp.json()["code"] == "FORBIDDEN"

    async def test_requires_session(self, client):
        resp = await client.get("/admin/usage")
        assert resp.status_code == 401

    async def test_global_stats(self, client, user_headers, admin_headers):
        await client.post("/usage/record", headers=user_headers, json={"prompts": 2})
        await client.post("/usage/record", headers=user_headers, json={"prompts": 1})
        await client.post("/usage/record", headers=admin_headers, json={"prompts": 1})

        today = today_utc().isoformat()
        resp = await client.get(
            "/admin/usage", headers=admin_headers,
            params={"startDate": today, "endDate": today},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["stats"]["uniqueUsers"] == 2
        assert data["stats"]["totalInteractions"] == 3
        assert data["stats"]["totalPrompts"] == 4
        assert data["stats"]["chartData"] == [
            {"date": today, "interactions": 3, "prompts": 4, "uniqueUsers": 2},
        ]
        assert len(data["records"]) == 2

    async def test_range_excludes_other_days(self, client, user_headers, admin_headers):
        await client.post("/usage/record", headers=user_headers, json={})
        resp = await client.get(
            "/admin/usage", headers=admin_headers,
            params={"startDate": "2000-01-01", "endDate": "2000-01-31"},
        )
        data = resp.json()
        assert data["stats"]["totalInteractions"] == 0
        assert data["records"] == []


class TestStoreFailure:
    async def test_record_failure_is_500(self, client, user_headers, monkeypatch):
        from healthconsultant.common.exceptions import PersistenceError
        from healthconsultant.deps import get_usage_ledger

        async def broken_record(*args, **kwargs):
            raise PersistenceError()

        monkeypatch.setattr(get_usage_ledger(), "record", broken_record)
        resp = await client.post("/usage/record", headers=user_headers, json={"prompts": 1})
        assert resp.status_code == 500
        assert resp.json() == {
            "message": "Storage unavailable, please try again later",
            "code": "PERSISTENCE_ERROR",
        }
