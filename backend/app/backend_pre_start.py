"""
启动前等待数据库

容器编排时数据库可能比 API 晚就绪，这里循环执行 SELECT 1，
直到数据库可连接或超过最大等待时间（5 分钟）。

部署时在启动 API 之前依次执行：
    python -m app.backend_pre_start
    python -m app.initial_data
"""
import logging

from sqlalchemy import Engine
from sqlmodel import Session, select
from tenacity import after_log, before_log, retry, stop_after_attempt, wait_fixed

from app.core.db import engine

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

max_tries = 60 * 5  # 每秒一次，最多 5 分钟
wait_seconds = 1


@retry(
    stop=stop_after_attempt(max_tries),
    wait=wait_fixed(wait_seconds),
    before=before_log(logger, logging.INFO),
    after=after_log(logger, logging.WARN),
)
def wait_for_db(db_engine: Engine) -> None:
    """
    检查数据库是否可连接

    Raises:
        Exception: 连接失败时抛出，由 tenacity 重试
    """
    try:
        with Session(db_engine) as session:
            session.exec(select(1))
    except Exception as e:
        logger.error(f"Database not ready: {e}")
        raise


def main() -> None:
    logger.info("Waiting for database")
    wait_for_db(engine)
    logger.info("Database is ready")


if __name__ == "__main__":  # pragma: no cover
    main()
