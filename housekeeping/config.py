"""
应用配置
从环境变量 / .env 读取配置
"""
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用设置"""

    # 应用基础配置
    APP_NAME: str = "Housekeeping"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # 数据库配置
    DATABASE_URL: str = "sqlite:///./housekeeping.db"

    # 任务计时器刷新周期（秒）
    TIMER_TICK_SECONDS: float = 1.0

    # 站内通知保留条数
    NOTIFICATION_LIMIT: int = 50

    # 查房合格分数线
    INSPECTION_PASS_SCORE: int = 80

    # 员工名单（JSON 文件路径）
    STAFF_ROSTER_FILE: Optional[str] = None

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


# 全局设置实例
settings = Settings()
