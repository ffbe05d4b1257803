"""模式存储

按站点域名保存学习到的模式。学习模式只依赖 PatternStore 接口，
默认后端为本地 SQLite，测试与临时运行可使用进程内存储。
"""

from __future__ import annotations

import abc
import asyncio
import json
import sqlite3
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..config import StorageConfig, config
from ..exceptions import ConfigError, PatternStoreError
from ..logger import get_logger

logger = get_logger(__name__)


class StoredPattern(BaseModel):
    """存储层中的一条模式记录"""

    id: int | None = Field(default=None, description="存储分配的 ID")
    name: str = Field(..., description="模式名")
    description: str = Field(default="", description="描述")
    selectors: list[str] = Field(default_factory=list, description="主选择器列表")
    sample_data: dict[str, Any] = Field(default_factory=dict, description="完整模式的序列化数据")
    success_count: int = Field(default=0, description="成功应用次数")
    created_at: str | None = None
    updated_at: str | None = None


class PatternStore(abc.ABC):
    """模式存储接口"""

    @abc.abstractmethod
    async def save_pattern(self, domain: str, pattern: StoredPattern) -> int:
        """保存模式，返回存储 ID"""

    @abc.abstractmethod
    async def get_patterns(self, domain: str) -> list[StoredPattern]:
        """获取站点的全部模式，按成功次数、更新时间倒序"""

    @abc.abstractmethod
    async def delete_pattern(self, domain: str, name: str) -> int:
        """按名称删除站点的模式，返回删除条数

        Raises:
            PatternStoreError: 站点不存在或没有同名模式时
        """

    @abc.abstractmethod
    async def increment_pattern_success(self, pattern_id: int) -> None:
        """成功次数 +1"""

    async def close(self) -> None:
        """释放资源"""


# ============================================================================
# SQLite
# ============================================================================

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sites (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    domain TEXT UNIQUE NOT NULL,
    name TEXT DEFAULT '',
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS patterns (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    site_id INTEGER NOT NULL,
    pattern_name TEXT NOT NULL,
    description TEXT DEFAULT '',
    selectors TEXT DEFAULT '[]',
    sample_data TEXT DEFAULT '{}',
    success_count INTEGER DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (site_id) REFERENCES sites(id)
);

CREATE INDEX IF NOT EXISTS idx_patterns_site ON patterns(site_id);
"""


class SQLitePatternStore(PatternStore):
    """SQLite 模式存储

    sqlite3 是同步接口，读写放到线程中执行，避免阻塞事件循环。
    """

    def __init__(self, db_path: str = "browser_patterns.db"):
        self.db_path = db_path
        self.conn: sqlite3.Connection | None = None

    def connect(self) -> None:
        if self.conn is not None:
            return
        try:
            self.conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.executescript(_SCHEMA)
            self.conn.commit()
        except sqlite3.Error as e:
            raise PatternStoreError("connect", str(e)) from e
        logger.info(f"[SQLitePatternStore] 已连接数据库: {self.db_path}")

    def _require_conn(self) -> sqlite3.Connection:
        if self.conn is None:
            self.connect()
        return self.conn  # type: ignore[return-value]

    def _get_site_id(self, domain: str, create: bool = True) -> int | None:
        conn = self._require_conn()
        row = conn.execute("SELECT id FROM sites WHERE domain = ?", (domain,)).fetchone()
        if row:
            return row["id"]
        if not create:
            return None
        cursor = conn.execute("INSERT INTO sites (domain, name) VALUES (?, ?)", (domain, domain))
        conn.commit()
        return cursor.lastrowid

    def _save_pattern(self, domain: str, pattern: StoredPattern) -> int:
        conn = self._require_conn()
        site_id = self._get_site_id(domain)
        cursor = conn.execute(
            """INSERT INTO patterns
               (site_id, pattern_name, description, selectors, sample_data)
               VALUES (?, ?, ?, ?, ?)""",
            (
                site_id,
                pattern.name,
                pattern.description,
                json.dumps(pattern.selectors, ensure_ascii=False),
                json.dumps(pattern.sample_data, ensure_ascii=False),
            ),
        )
        conn.commit()
        return cursor.lastrowid

    def _get_patterns(self, domain: str) -> list[StoredPattern]:
        conn = self._require_conn()
        site_id = self._get_site_id(domain, create=False)
        if site_id is None:
            return []
        rows = conn.execute(
            """SELECT * FROM patterns WHERE site_id = ?
               ORDER BY success_count DESC, updated_at DESC, id DESC""",
            (site_id,),
        ).fetchall()
        return [
            StoredPattern(
                id=row["id"],
                name=row["pattern_name"],
                description=row["description"] or "",
                selectors=json.loads(row["selectors"] or "[]"),
                sample_data=json.loads(row["sample_data"] or "{}"),
                success_count=row["success_count"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    def _delete_pattern(self, domain: str, name: str) -> int:
        conn = self._require_conn()
        site_id = self._get_site_id(domain, create=False)
        if site_id is None:
            raise PatternStoreError("delete", f"站点不存在: {domain}")
        cursor = conn.execute(
            "DELETE FROM patterns WHERE site_id = ? AND pattern_name = ?",
            (site_id, name),
        )
        conn.commit()
        if cursor.rowcount == 0:
            raise PatternStoreError("delete", f"站点 {domain} 下没有模式 {name}")
        return cursor.rowcount

    def _increment_pattern_success(self, pattern_id: int) -> None:
        conn = self._require_conn()
        conn.execute(
            """UPDATE patterns
               SET success_count = success_count + 1, updated_at = CURRENT_TIMESTAMP
               WHERE id = ?""",
            (pattern_id,),
        )
        conn.commit()

    async def _run(self, operation: str, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except sqlite3.Error as e:
            logger.error(f"[SQLitePatternStore] {operation} 失败: {e}")
            raise PatternStoreError(operation, str(e)) from e

    async def save_pattern(self, domain: str, pattern: StoredPattern) -> int:
        pattern_id = await self._run("save", self._save_pattern, domain, pattern)
        logger.info(f"[SQLitePatternStore] 模式已保存: {pattern.name} ({domain}) -> {pattern_id}")
        return pattern_id

    async def get_patterns(self, domain: str) -> list[StoredPattern]:
        return await self._run("get", self._get_patterns, domain)

    async def delete_pattern(self, domain: str, name: str) -> int:
        deleted = await self._run("delete", self._delete_pattern, domain, name)
        logger.info(f"[SQLitePatternStore] 已删除模式: {name} ({domain})")
        return deleted

    async def increment_pattern_success(self, pattern_id: int) -> None:
        await self._run("increment", self._increment_pattern_success, pattern_id)

    async def close(self) -> None:
        if self.conn:
            self.conn.close()
            self.conn = None


# ============================================================================
# 内存
# ============================================================================


class MemoryPatternStore(PatternStore):
    """进程内模式存储"""

    def __init__(self):
        self._patterns: dict[str, list[StoredPattern]] = {}
        self._next_id = 1
        # 单调递增的写入序号，用于同一时间戳内的稳定排序
        self._touched: dict[int, int] = {}
        self._clock = 0

    def _touch(self, pattern_id: int) -> str:
        self._clock += 1
        self._touched[pattern_id] = self._clock
        return datetime.now().isoformat()

    async def save_pattern(self, domain: str, pattern: StoredPattern) -> int:
        pattern_id = self._next_id
        self._next_id += 1
        now = self._touch(pattern_id)
        stored = pattern.model_copy(
            update={"id": pattern_id, "success_count": 0, "created_at": now, "updated_at": now},
            deep=True,
        )
        self._patterns.setdefault(domain, []).append(stored)
        return pattern_id

    async def get_patterns(self, domain: str) -> list[StoredPattern]:
        patterns = self._patterns.get(domain, [])
        ordered = sorted(
            patterns,
            key=lambda p: (p.success_count, self._touched.get(p.id, 0)),
            reverse=True,
        )
        return [p.model_copy(deep=True) for p in ordered]

    async def delete_pattern(self, domain: str, name: str) -> int:
        if domain not in self._patterns:
            raise PatternStoreError("delete", f"站点不存在: {domain}")
        before = self._patterns[domain]
        kept = [p for p in before if p.name != name]
        deleted = len(before) - len(kept)
        if deleted == 0:
            raise PatternStoreError("delete", f"站点 {domain} 下没有模式 {name}")
        self._patterns[domain] = kept
        return deleted

    async def increment_pattern_success(self, pattern_id: int) -> None:
        for patterns in self._patterns.values():
            for index, pattern in enumerate(patterns):
                if pattern.id == pattern_id:
                    now = self._touch(pattern_id)
                    patterns[index] = pattern.model_copy(
                        update={"success_count": pattern.success_count + 1, "updated_at": now}
                    )
                    return


def create_pattern_store(storage_config: StorageConfig | None = None) -> PatternStore:
    """按配置创建模式存储"""
    storage_config = storage_config or config.storage
    backend = storage_config.backend.lower()

    if backend == "sqlite":
        store = SQLitePatternStore(storage_config.db_path)
        store.connect()
        return store
    if backend == "memory":
        return MemoryPatternStore()
    raise ConfigError(f"不支持的模式存储后端: {storage_config.backend}")
