"""Lifespan 测试 -- 启动时按环境变量初始化 DB 与引擎配置"""

from pathlib import Path

from followthrough.gateway.main import create_app, lifespan


class TestLifespan:
    async def test_lifespan_initializes_state(self, tmp_path: Path, monkeypatch):
        db_path = tmp_path / "nested" / "app.db"
        monkeypatch.setenv("FOLLOWTHROUGH_DB_PATH", str(db_path))
        monkeypatch.setenv("FOLLOWTHROUGH_FOCUS_BATCH_SIZE", "2")

        app = create_app()
        async with lifespan(app):
            assert app.state.store_group is not None
            assert app.state.engine_config.focus_batch_size == 2
            assert db_path.exists()
