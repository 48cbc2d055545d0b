"""
housekeeping - 客房清洁/查房/维修工作流

- models: 领域对象、持久化表、API 模式
- domain: 房态转换表与任务映射规则
- repositories: 仓储接口及内存 / SQLAlchemy 实现
- services: 房间注册表、工作流引擎、查房评分、计时刷新
- routers: FastAPI 路由
"""
