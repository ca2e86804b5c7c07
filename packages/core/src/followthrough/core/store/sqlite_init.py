"""SQLite 数据库初始化

PRAGMA 配置 + 表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# owners 表 DDL
_OWNERS_DDL = """
CREATE TABLE IF NOT EXISTS owners (
    owner_id              TEXT PRIMARY KEY,
    name                  TEXT NOT NULL,
    company_tags          TEXT NOT NULL DEFAULT '[]',
    is_third_party_vendor INTEGER NOT NULL DEFAULT 0,
    is_private            INTEGER NOT NULL DEFAULT 0,
    private_owner_id      TEXT
);
"""

# projects 表 DDL
_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    project_id    TEXT PRIMARY KEY,
    name          TEXT NOT NULL,
    customer_name TEXT,
    deadline      TEXT,
    buffer_days   INTEGER NOT NULL DEFAULT 7
);
"""

# tasks 表 DDL -- gates 以 JSON 数组整体存储，顺序即列表顺序
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    task_id             TEXT PRIMARY KEY,
    task_number         TEXT,
    description         TEXT NOT NULL DEFAULT '',
    status              TEXT NOT NULL DEFAULT 'open',
    project_id          TEXT,
    fu_cadence_days     INTEGER NOT NULL CHECK (fu_cadence_days >= 1),
    last_movement_at    TEXT NOT NULL,
    created_at          TEXT NOT NULL,
    is_blocked          INTEGER NOT NULL DEFAULT 0,
    blocker_description TEXT,
    next_step           TEXT,
    gates               TEXT NOT NULL DEFAULT '[]',
    close_requested_at  TEXT,
    closed_at           TEXT,

    FOREIGN KEY (project_id) REFERENCES projects(project_id)
);
"""

_TASKS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(project_id);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_last_movement ON tasks(last_movement_at ASC);",
]

# task_owners 关联表 DDL
_TASK_OWNERS_DDL = """
CREATE TABLE IF NOT EXISTS task_owners (
    task_id   TEXT NOT NULL,
    owner_id  TEXT NOT NULL,
    position  INTEGER NOT NULL DEFAULT 0,

    PRIMARY KEY (task_id, owner_id),
    FOREIGN KEY (task_id) REFERENCES tasks(task_id),
    FOREIGN KEY (owner_id) REFERENCES owners(owner_id)
);
"""

_TASK_OWNERS_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_task_owners_owner ON task_owners(owner_id);",
]

# notes 表 DDL -- append-only
_NOTES_DDL = """
CREATE TABLE IF NOT EXISTS notes (
    note_id     TEXT PRIMARY KEY,
    task_id     TEXT NOT NULL,
    author_id   TEXT,
    content     TEXT NOT NULL,
    created_at  TEXT NOT NULL,

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_NOTES_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_notes_task_ts ON notes(task_id, created_at);",
]

# events 表 DDL -- append-only 活动记录
_EVENTS_DDL = """
CREATE TABLE IF NOT EXISTS events (
    event_id  TEXT PRIMARY KEY,
    task_id   TEXT NOT NULL,
    task_seq  INTEGER NOT NULL,
    ts        TEXT NOT NULL,
    type      TEXT NOT NULL,
    actor_id  TEXT,
    payload   TEXT NOT NULL DEFAULT '{}',

    FOREIGN KEY (task_id) REFERENCES tasks(task_id)
);
"""

_EVENTS_INDEXES = [
    # 任务内事件序号唯一约束（确保 task_seq 严格单调递增）
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_events_task_seq ON events(task_id, task_seq);",
]


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表（被引用的表在前）
    for ddl in (_OWNERS_DDL, _PROJECTS_DDL, _TASKS_DDL, _TASK_OWNERS_DDL, _NOTES_DDL, _EVENTS_DDL):
        await conn.execute(ddl)

    # 创建索引
    for idx_sql in _TASKS_INDEXES + _TASK_OWNERS_INDEXES + _NOTES_INDEXES + _EVENTS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()
