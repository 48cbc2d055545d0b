"""
客房工作流服务主入口
"""
from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from housekeeping.config import settings
from housekeeping.routers import rooms, tasks, audit_logs, notifications
from housekeeping.services.context import HousekeepingContext

logger = logging.getLogger(__name__)


def create_app(context: Optional[HousekeepingContext] = None) -> FastAPI:
    """
    创建应用

    Args:
        context: 预先组装好的上下文（测试时注入），未提供时在启动阶段使用 SQL 仓储组装
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        # 启动时执行
        logging.basicConfig(
            level=settings.LOG_LEVEL,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )

        ctx = context
        if ctx is None:
            from housekeeping.database import SessionLocal, init_db
            from housekeeping.services.context import build_context
            init_db()
            ctx = build_context(settings, session_factory=SessionLocal)

        app.state.context = ctx
        ctx.start()
        logger.info(f"{settings.APP_NAME} started with {len(ctx.registry)} rooms")

        yield

        # 关闭时执行
        ctx.stop()

    app = FastAPI(
        title=f"{settings.APP_NAME} - 客房工作流",
        description="房态转换、任务计时与审计日志",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(rooms.router)
    app.include_router(tasks.router)
    app.include_router(audit_logs.router)
    app.include_router(notifications.router)

    @app.get("/health")
    def health_check():
        """健康检查"""
        return {"status": "ok", "app": settings.APP_NAME}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
