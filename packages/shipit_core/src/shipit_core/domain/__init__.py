"""
Domain 模块

- models: Tortoise ORM 模型与枚举
- schemas: Pydantic 请求/响应模型与跨进程数据结构
"""
