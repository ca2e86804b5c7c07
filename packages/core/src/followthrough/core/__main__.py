"""CLI 入口模块 -- python -m followthrough.core <command>

支持的命令：
  daily-actions [--owner ID] [--admin]  输出每日行动清单
  scorecard [--owner ID]                输出团队积分榜
  project-health                        输出项目健康度汇总

报表以 JSON 输出到 stdout。
"""

import asyncio
import json
import sys
from datetime import UTC, datetime

from .clock import tag_tasks
from .config import EngineConfig, get_db_path, load_engine_config
from .health import build_project_health
from .models import TaskStatus, Viewer
from .prioritizer import build_daily_list
from .scoring import build_scorecard

COMMANDS = ("daily-actions", "scorecard", "project-health")

_USAGE = """用法: python -m followthrough.core <command> [--owner ID] [--admin]
命令:
  daily-actions   每日行动清单
  scorecard       团队积分榜
  project-health  项目健康度汇总"""


def parse_viewer(args: list[str]) -> Viewer:
    """从 --owner / --admin 参数构造调用者上下文"""
    owner_id = None
    if "--owner" in args:
        i = args.index("--owner")
        if i + 1 >= len(args):
            raise ValueError("--owner 需要一个 owner_id")
        owner_id = args[i + 1]
    return Viewer(owner_id=owner_id, is_admin="--admin" in args)


async def build_report(
    store_group,
    command: str,
    viewer: Viewer,
    now: datetime,
    config: EngineConfig,
) -> list[dict]:
    """生成指定报表（JSON 可序列化）"""
    if command == "daily-actions":
        tasks = await store_group.task_store.list_tasks(status=TaskStatus.OPEN.value)
        items = build_daily_list(tag_tasks(tasks, now), viewer)
        return [i.model_dump(mode="json") for i in items]

    if command == "scorecard":
        tasks = await store_group.task_store.list_tasks()
        owners = await store_group.owner_store.list_owners()
        scores = build_scorecard(
            tasks,
            owners,
            now,
            viewer_owner_id=viewer.owner_id,
            streak_window_days=config.streak_window_days,
            completed_window_days=config.completed_window_days,
        )
        return [s.model_dump(mode="json") for s in scores]

    if command == "project-health":
        projects = await store_group.project_store.list_projects()
        tasks = await store_group.task_store.list_tasks()
        return [s.model_dump(mode="json") for s in build_project_health(projects, tasks, now)]

    raise ValueError(f"未知命令: {command}")


async def run(command: str, viewer: Viewer) -> list[dict]:
    from .store import create_store_group

    store_group = await create_store_group(get_db_path())
    try:
        return await build_report(
            store_group, command, viewer, datetime.now(UTC), load_engine_config()
        )
    finally:
        await store_group.conn.close()


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2 or sys.argv[1] not in COMMANDS:
        if len(sys.argv) >= 2:
            print(f"未知命令: {sys.argv[1]}")
        print(_USAGE)
        sys.exit(1)

    command = sys.argv[1]
    try:
        viewer = parse_viewer(sys.argv[2:])
    except ValueError as e:
        print(str(e))
        sys.exit(1)

    report = asyncio.run(run(command, viewer))
    print(json.dumps(report, ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
