"""SQLite Store 测试

测试内容：
1. Task 读写（gates JSON、owner 顺序、备注）
2. list_tasks 的状态 / 项目 / owner 筛选
3. 联系人与项目读写
4. 事件 task_seq
"""

from datetime import date, timedelta

import pytest
import pytest_asyncio
from followthrough.core.models import Event, EventType, Gate, Note, Owner, Project, TaskStatus
from followthrough.core.store.transaction import save_directory


@pytest_asyncio.fixture
async def seeded(store_group, make_owner):
    await save_directory(
        store_group.conn,
        store_group.owner_store,
        store_group.project_store,
        owners=[make_owner("a"), make_owner("b"), make_owner("c")],
        projects=[Project(project_id="P1", name="Tower", deadline=date(2025, 6, 1))],
    )
    return store_group


class TestTaskStore:
    """Task 读写"""

    async def test_create_and_get_roundtrip(self, seeded, make_task, now):
        gates = [Gate(name="Gate 1", owner_name="Sam", completed=True, completed_at=now), Gate(name="Gate 2", owner_name="Lee")]
        task = make_task(days_ago=3, owner_ids=["b", "a"], gates=gates, is_blocked=True, project_id="P1")
        await seeded.task_store.create_task(task)
        await seeded.conn.commit()

        loaded = await seeded.task_store.get_task(task.task_id)
        assert loaded.owner_ids == ["b", "a"]
        assert loaded.gates == gates
        assert loaded.is_blocked is True
        assert loaded.last_movement_at == task.last_movement_at
        assert loaded.project_id == "P1"

    async def test_get_missing_returns_none(self, seeded):
        assert await seeded.task_store.get_task("missing") is None

    async def test_list_filters(self, seeded, make_task):
        tasks = [
            make_task(days_ago=1, owner_ids=["a"], task_id="t1", project_id="P1"),
            make_task(days_ago=5, owner_ids=["b"], task_id="t2"),
            make_task(days_ago=9, owner_ids=["a", "b"], task_id="t3", status=TaskStatus.CLOSED),
        ]
        for t in tasks:
            await seeded.task_store.create_task(t)
        await seeded.conn.commit()

        all_tasks = await seeded.task_store.list_tasks()
        # 停滞最久的在前
        assert [t.task_id for t in all_tasks] == ["t3", "t2", "t1"]

        open_tasks = await seeded.task_store.list_tasks(status="open")
        assert {t.task_id for t in open_tasks} == {"t1", "t2"}

        multi = await seeded.task_store.list_tasks(status=["open", "closed"], owner_id="a")
        assert [t.task_id for t in multi] == ["t3", "t1"]
        # owner 筛选后仍返回完整 owner 列表
        assert multi[0].owner_ids == ["a", "b"]

        assert [t.task_id for t in await seeded.task_store.list_tasks(project_id="P1")] == ["t1"]

    async def test_update_fields(self, seeded, make_task, now):
        task = make_task(days_ago=10, owner_ids=["a"])
        await seeded.task_store.create_task(task)
        await seeded.task_store.update_task(
            task.task_id,
            {
                "gates": [Gate(name="Gate 1", owner_name="Sam")],
                "is_blocked": True,
                "last_movement_at": now,
                "fu_cadence_days": 3,
                "status": TaskStatus.CLOSE_REQUESTED,
                "close_requested_at": now,
                "next_step": "Call",
                "owner_ids": ["c", "a"],
            },
        )
        await seeded.conn.commit()

        loaded = await seeded.task_store.get_task(task.task_id)
        assert loaded.gates[0].owner_name == "Sam"
        assert loaded.is_blocked is True
        assert loaded.last_movement_at == now
        assert loaded.fu_cadence_days == 3
        assert loaded.status == TaskStatus.CLOSE_REQUESTED
        assert loaded.close_requested_at == now
        assert loaded.next_step == "Call"
        assert loaded.owner_ids == ["c", "a"]

    async def test_update_rejects_unknown_field(self, seeded, make_task):
        task = make_task()
        await seeded.task_store.create_task(task)
        with pytest.raises(ValueError):
            await seeded.task_store.update_task(task.task_id, {"task_id": "other"})

    async def test_notes_loaded_in_order(self, seeded, make_task, now):
        task = make_task(owner_ids=["a"])
        await seeded.task_store.create_task(task)
        for i, offset in enumerate((2, 1)):
            await seeded.note_store.append_note(
                Note(
                    note_id=f"N{i}",
                    task_id=task.task_id,
                    author_id="a",
                    content=f"note {i}",
                    created_at=now - timedelta(hours=offset),
                )
            )
        await seeded.conn.commit()

        loaded = await seeded.task_store.get_task(task.task_id)
        assert [n.note_id for n in loaded.notes] == ["N0", "N1"]
        listed = await seeded.note_store.list_notes_for_task(task.task_id)
        assert [n.content for n in listed] == ["note 0", "note 1"]

    async def test_list_many_tasks_loads_owners_and_notes(self, seeded, make_task, now):
        tasks = [make_task(days_ago=1, owner_ids=["a", "b"], task_id=f"T{i:05d}") for i in range(1201)]
        for t in tasks:
            await seeded.task_store.create_task(t)
        await seeded.note_store.append_note(
            Note(note_id="N-last", task_id="T01200", author_id="a", content="late", created_at=now)
        )
        await seeded.conn.commit()

        listed = await seeded.task_store.list_tasks()
        assert len(listed) == 1201
        assert all(t.owner_ids == ["a", "b"] for t in listed)
        by_id = {t.task_id: t for t in listed}
        assert [n.note_id for n in by_id["T01200"].notes] == ["N-last"]
        assert by_id["T00000"].notes == []


class TestDirectoryStores:
    """联系人与项目"""

    async def test_owner_upsert(self, store_group):
        owner = Owner(owner_id="o1", name="Ann", company_tags=["bp"], is_third_party_vendor=True)
        await save_directory(store_group.conn, store_group.owner_store, store_group.project_store, owners=[owner])
        renamed = owner.model_copy(update={"name": "Annie"})
        await save_directory(store_group.conn, store_group.owner_store, store_group.project_store, owners=[renamed])

        loaded = await store_group.owner_store.get_owner("o1")
        assert loaded == renamed
        assert len(await store_group.owner_store.list_owners()) == 1

    async def test_project_roundtrip(self, seeded):
        [project] = await seeded.project_store.list_projects()
        assert project.deadline == date(2025, 6, 1)
        assert project.buffer_days == 7


class TestEventStore:
    """事件序号"""

    async def test_task_seq_increments(self, seeded, make_task, now):
        task = make_task()
        await seeded.task_store.create_task(task)
        assert await seeded.event_store.get_next_task_seq(task.task_id) == 1

        for seq in (1, 2):
            await seeded.event_store.append_event(
                Event(
                    event_id=f"E{seq}",
                    task_id=task.task_id,
                    task_seq=seq,
                    ts=now,
                    type=EventType.TASK_UPDATED,
                    payload={"fields": ["next_step"]},
                )
            )
        await seeded.conn.commit()

        assert await seeded.event_store.get_next_task_seq(task.task_id) == 3
        events = await seeded.event_store.get_events_for_task(task.task_id)
        assert [e.task_seq for e in events] == [1, 2]
        assert events[0].payload == {"fields": ["next_step"]}
