"""Integration tests for the plan catalogue API router."""


class TestPublicPlans:
    async def test_lists_active_plans(self, client):
        resp = await client.get("/plans")
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"
        plans = resp.json()
        assert [p["title"] for p in plans] == ["Free", "Basic", "Premium"]
        assert plans[0]["interactionsLimit"] == 3
        assert plans[2]["interactionsLimit"] is None


class TestAdminPlans:
    async def test_requires_admin(self, client, user_headers):
        resp = await client.post("/admin/plans", headers=user_headers, json={"title": "Clinic"})
        assert resp.status_code == 403

    async def test_create_update_delete(self, client, admin_headers):
        resp = await client.post(
            "/admin/plans", headers=admin_headers,
            json={"title": "Clinic", "monthlyPrice": 49, "interactionsLimit": 500},
        )
        assert resp.status_code == 201
        plan = resp.json()
        assert plan["interactionsLimit"] == 500

        resp = await client.patch(
            f"/admin/plans/{plan['id']}", headers=admin_headers, json={"unlimited": True},
        )
        assert resp.status_code == 200
        assert resp.json()["interactionsLimit"] is None

        resp = await client.delete(f"/admin/plans/{plan['id']}", headers=admin_headers)
        assert resp.status_code == 204

        resp = await client.patch(
            f"/admin/plans/{plan['id']}", headers=admin_headers, json={"title": "Gone"},
        )
        assert resp.status_code == 404

    async def test_duplicate_title(self, client, admin_headers):
        resp = await client.post("/admin/plans", headers=admin_headers, json={"title": "Basic"})
        assert resp.status_code == 409

    async def test_admin_list_includes_inactive(self, client, admin_headers):
        await client.post(
            "/admin/plans", headers=admin_headers, json={"title": "Legacy", "isActive": False},
        )
        titles = [p["title"] for p in (await client.get("/admin/plans", headers=admin_headers)).json()]
        assert "Legacy" in titles
        public = [p["title"] for p in (await client.get("/plans")).json()]
        assert "Legacy" not in public

    async def test_rename_to_existing_title_conflicts(self, client, admin_headers):
        resp = await client.post("/admin/plans", headers=admin_headers, json={"title": "Clinic"})
        plan_id = resp.json()["id"]

        resp = await client.patch(
            f"/admin/plans/{plan_id}", headers=admin_headers, json={"title": "Premium"},
        )
        assert resp.status_code == 409
        assert resp.json()["detail"] == "Plan 'Premium' already exists"

        titles = [p["title"] for p in (await client.get("/plans")).json()]
        assert titles.count("Premium") == 1
        assert "Clinic" in titles
