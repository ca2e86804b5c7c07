"""Gate 编辑路由测试"""

from followthrough.core.models import Gate


async def _gated_task(seed_task, *owners_on_gates: str, **kwargs):
    gates = [Gate(name=f"Gate {i + 1}", owner_name=o) for i, o in enumerate(owners_on_gates)]
    return await seed_task(days_ago=kwargs.pop("days_ago", 10), gates=gates, is_blocked=True, **kwargs)


class TestCompleteGate:
    """完成 Gate"""

    async def test_complete_unblocks_and_restarts(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam", "", cadence=5)
        resp = await client.post(
            f"/api/tasks/{task.task_id}/gates/0/complete",
            json={"clock": {"mode": "confirm"}},
        )
        body = resp.json()["task"]
        assert body["gates"][0]["completed"] is True
        assert body["is_blocked"] is False
        assert body["fu_cadence_days"] == 5

        detail = (await client.get(f"/api/tasks/{task.task_id}")).json()
        assert [e["type"] for e in detail["events"]] == ["GATES_UPDATED", "CLOCK_RESTARTED"]
        assert detail["events"][0]["payload"]["operation"] == "complete"

    async def test_complete_without_body_skips_clock(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam", "Lee")
        resp = await client.post(f"/api/tasks/{task.task_id}/gates/0/complete")
        body = resp.json()["task"]
        assert body["is_blocked"] is True
        detail = (await client.get(f"/api/tasks/{task.task_id}")).json()
        assert [e["type"] for e in detail["events"]] == ["GATES_UPDATED"]

    async def test_complete_on_task_without_gates(self, client, seed_task):
        task = await seed_task(days_ago=1)
        resp = await client.post(f"/api/tasks/{task.task_id}/gates/0/complete")
        assert resp.status_code == 422
        assert resp.json()["error"]["field"] == "gates"

    async def test_index_out_of_range(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam")
        resp = await client.post(f"/api/tasks/{task.task_id}/gates/5/complete")
        error = resp.json()["error"]
        assert resp.status_code == 422
        assert error["field"] == "gate_index"
        assert error["valid_range"] == [0, 0]


class TestEditGates:
    """插入 / 删除 / 移动 / 保存"""

    async def test_insert_relabels(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam", "Lee")
        resp = await client.post(
            f"/api/tasks/{task.task_id}/gates",
            json={"gate": {"owner_name": "Kim"}, "position": 0},
        )
        gates = resp.json()["task"]["gates"]
        assert [g["owner_name"] for g in gates] == ["Kim", "Sam", "Lee"]
        assert [g["name"] for g in gates] == ["Gate 1", "Gate 2", "Gate 3"]

    async def test_remove_last_gate(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam")
        resp = await client.delete(f"/api/tasks/{task.task_id}/gates/0")
        body = resp.json()["task"]
        assert body["gates"] == []
        assert body["is_blocked"] is False

    async def test_move_down(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam", "Lee")
        resp = await client.post(f"/api/tasks/{task.task_id}/gates/0/move", json={"direction": 1})
        assert [g["owner_name"] for g in resp.json()["task"]["gates"]] == ["Lee", "Sam"]

    async def test_set_gate_pads_and_trims(self, client, seed_task):
        task = await seed_task(days_ago=1)
        resp = await client.put(f"/api/tasks/{task.task_id}/gates/2", json={"owner_name": "Sam"})
        gates = resp.json()["task"]["gates"]
        assert len(gates) == 3
        assert gates[2]["owner_name"] == "Sam"

        resp = await client.put(f"/api/tasks/{task.task_id}/gates/2", json={"owner_name": ""})
        assert resp.json()["task"]["gates"] == []

    async def test_toggle_back_to_incomplete_ignores_clock(self, client, seed_task):
        task = await _gated_task(seed_task, "Sam", cadence=5)
        url = f"/api/tasks/{task.task_id}/gates/0/toggle"
        await client.post(url)
        resp = await client.post(url, json={"clock": {"mode": "confirm", "days": 30}})
        body = resp.json()["task"]
        assert body["gates"][0]["completed"] is False
        assert body["is_blocked"] is True
        assert body["fu_cadence_days"] == 5
