"""
Infrastructure 模块

- db: Tortoise ORM
- redis: 连接、键命名、Streams
- storage: 日志存储、S3、构建产物
- launcher: 构建执行器启动
- aws: AWS 会话与客户端配置
"""
