"""行动清单路由测试

测试内容：
1. 每日行动清单排序与推荐动作
2. 可见性：管理员 / 普通用户 / 无 owner 的调用者
3. 专注批次与已处理任务
"""

from followthrough.core.models import Gate

ADMIN = {"X-Admin": "true"}


class TestDailyActions:
    """每日行动清单"""

    async def test_sorted_with_actions(self, client, owners, seed_task):
        await seed_task(days_ago=9, owner_ids=["sam"], next_step="Email the architect")
        await seed_task(
            days_ago=20,
            owner_ids=["lee"],
            gates=[Gate(owner_name="Sam")],
            is_blocked=True,
            blocker_description="signature",
        )
        await seed_task(days_ago=2, owner_ids=["sam"])

        resp = await client.get("/api/actions/daily", headers=ADMIN)
        body = resp.json()
        assert body["all_caught_up"] is False
        items = body["items"]
        assert [i["days_overdue"] for i in items] == [13, 2]
        assert items[0]["action"]["text"] == "Contact Sam — signature"
        assert items[0]["gate_person"] == "Sam"
        assert items[1]["action"]["text"] == "Email the architect"

    async def test_non_admin_sees_own(self, client, owners, seed_task):
        await seed_task(days_ago=9, owner_ids=["sam"])
        await seed_task(days_ago=9, owner_ids=["lee"])
        items = (await client.get("/api/actions/daily", headers={"X-Owner-Id": "lee"})).json()["items"]
        assert len(items) == 1
        assert items[0]["owner_ids"] == ["lee"]

    async def test_caller_without_owner_sees_nothing(self, client, owners, seed_task):
        await seed_task(days_ago=30, owner_ids=["sam"])
        daily = (await client.get("/api/actions/daily")).json()
        focus = (await client.post("/api/actions/focus", json={})).json()
        assert daily == {"items": [], "all_caught_up": True}
        assert focus == {"batch": [], "all_caught_up": True}


class TestFocusBatch:
    """专注批次"""

    async def test_clusters_by_gate_contact(self, client, owners, seed_task):
        for days in (40, 39, 38):
            await seed_task(days_ago=days, owner_ids=["sam"], gates=[Gate(owner_name=f"P{days}")])
        sams = [
            await seed_task(days_ago=days, owner_ids=["sam"], gates=[Gate(owner_name="Sam")])
            for days in (20, 19, 18, 17)
        ]

        batch = (await client.post("/api/actions/focus", headers=ADMIN)).json()["batch"]
        assert [i["task_id"] for i in batch] == [t.task_id for t in sams[:3]]

        handled = [i["task_id"] for i in batch]
        batch = (
            await client.post("/api/actions/focus", json={"handled_task_ids": handled}, headers=ADMIN)
        ).json()["batch"]
        assert len(batch) == 3
        assert not set(handled) & {i["task_id"] for i in batch}
