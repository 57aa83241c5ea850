"""
ShipIt Web API

部署分发、日志查询与实时日志 WebSocket 接口。
"""

__version__ = "0.1.0"
