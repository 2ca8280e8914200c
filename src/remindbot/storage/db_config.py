from pathlib import Path

import aiosqlite

from remindbot.logger import logger

_SQL_DIR = Path(__file__).with_name("sql")

# 当前数据库结构版本, 对应 PRAGMA user_version
SCHEMA_VERSION = 1


async def init_db(db_path: str) -> aiosqlite.Connection:
    """打开数据库并按 user_version 逐步升级表结构"""
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(db_path)

    async with conn.execute("PRAGMA user_version") as cursor:
        row = await cursor.fetchone()
        user_version = row[0]

    if user_version < 1:
        init_sql = (_SQL_DIR / "db_init_v1.sql").read_text(encoding="utf-8")
        await conn.executescript(init_sql)
        await conn.execute("PRAGMA user_version = 1")
        logger.info(f"数据库已初始化: {db_path}")

    # 数据库升级逻辑可以在这里继续添加
    await conn.commit()
    logger.debug(f"数据库已连接: {db_path}, schema v{SCHEMA_VERSION}")
    return conn


async def close_db(conn: aiosqlite.Connection | None) -> None:
    if conn is not None:
        await conn.close()
        logger.info("数据库连接已关闭")


__all__ = ["init_db", "close_db", "SCHEMA_VERSION"]
