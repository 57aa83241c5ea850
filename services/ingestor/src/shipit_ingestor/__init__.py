"""
ShipIt Ingestor 日志摄取服务

- 从日志消息流批量消费构建日志并写入日志存储
- 消费构建执行器的状态上报并更新部署状态
"""

__version__ = "0.1.0"
