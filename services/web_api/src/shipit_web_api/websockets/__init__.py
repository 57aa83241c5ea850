"""实时日志 WebSocket 支持"""

from shipit_web_api.websockets.connection_manager import (
    GROUP_PREFIX,
    LogConnectionManager,
    group_name,
)
from shipit_web_api.websockets.relay_bridge import RelayBridge

__all__ = ["GROUP_PREFIX", "LogConnectionManager", "RelayBridge", "group_name"]
