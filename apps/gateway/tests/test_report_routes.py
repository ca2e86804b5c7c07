"""报表与联系人路由测试"""

from datetime import UTC, datetime, timedelta

from followthrough.core.models import TaskStatus


class TestScorecard:
    """积分榜"""

    async def test_vendor_excluded_and_ranked(self, client, owners, seed_task):
        await seed_task(days_ago=1, owner_ids=["sam", "acme"])
        await seed_task(days_ago=30, owner_ids=["lee"])
        await seed_task(days_ago=2, owner_ids=["lee"], status=TaskStatus.CLOSED)

        resp = await client.get("/api/scorecard", headers={"X-Owner-Id": "lee"})
        scores = resp.json()["scores"]
        assert [(s["owner_id"], s["reliability_score"], s["rank_badge"]) for s in scores] == [
            ("sam", 100, "🥇"),
            ("lee", 50, "🥈"),
        ]
        assert scores[1]["is_me"] is True
        assert scores[1]["tasks_completed"] == 1

    async def test_empty(self, client):
        assert (await client.get("/api/scorecard")).json() == {"scores": []}


class TestProjectHealth:
    """项目健康度"""

    async def test_critical_project_first(self, client, owners, seed_task):
        soon = (datetime.now(UTC).date() + timedelta(days=10)).isoformat()
        for project_id, deadline in (("calm", None), ("urgent", soon)):
            resp = await client.post(
                "/api/projects",
                json={"project_id": project_id, "name": project_id, "deadline": deadline},
            )
            assert resp.status_code == 201
        await seed_task(days_ago=20, project_id="urgent", owner_ids=["sam"])

        projects = (await client.get("/api/projects/health")).json()["projects"]
        assert [p["project_id"] for p in projects] == ["urgent", "calm"]
        assert projects[0]["health_status"] == "critical"
        assert projects[0]["at_risk_tasks"][0]["risk_level"] == "critical"
        assert projects[1]["health_status"] == "no-deadline"


class TestOwners:
    """联系人"""

    async def test_create_variants_and_private_visibility(self, client):
        employee = await client.post(
            "/api/owners",
            json={"owner_id": "ann", "contact": {"kind": "employee", "name": "Ann", "companies": ["up"]}},
        )
        assert employee.status_code == 201
        assert employee.json()["owner"]["company_tags"] == ["up"]

        await client.post(
            "/api/owners",
            json={"contact": {"kind": "personal", "name": "Plumber", "account_id": "ann"}},
        )

        public_view = (await client.get("/api/owners")).json()["owners"]
        assert [o["name"] for o in public_view] == ["Ann"]
        ann_view = (await client.get("/api/owners", headers={"X-Owner-Id": "ann"})).json()["owners"]
        assert {o["name"] for o in ann_view} == {"Ann", "Plumber"}

    async def test_employee_without_company_rejected(self, client):
        resp = await client.post(
            "/api/owners",
            json={"contact": {"kind": "employee", "name": "Ann", "companies": []}},
        )
        assert resp.status_code == 422
