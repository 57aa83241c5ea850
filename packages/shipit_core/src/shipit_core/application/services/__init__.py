"""
应用服务层

- projects: 项目创建与查询
- deployments: 部署编排与状态迁移
- logs: 日志查询
"""
