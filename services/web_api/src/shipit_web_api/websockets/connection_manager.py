"""
WebSocket 日志连接管理

按部署分组管理观察者连接。广播尽力而为：没有积压也不回放，
发送失败的连接直接移出分组。
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime

from fastapi import WebSocket
from loguru import logger

GROUP_PREFIX = "logs:"


def group_name(deployment_id: str) -> str:
    return f"{GROUP_PREFIX}{deployment_id}"


@dataclass
class ConnectionStats:
    """连接统计"""
    joins: int = 0
    messages_sent: int = 0
    dropped: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class LogConnectionManager:
    """部署日志分组"""

    def __init__(self):
        self._groups: dict[str, set[WebSocket]] = defaultdict(set)
        self.stats = ConnectionStats()

    async def join(self, websocket: WebSocket, deployment_id: str) -> None:
        """加入部署分组并回复确认；此后的广播才会收到"""
        self._groups[deployment_id].add(websocket)
        self.stats.joins += 1
        await websocket.send_text(f"Joined {group_name(deployment_id)}")
        logger.debug(f"WebSocket 加入分组: {group_name(deployment_id)}")

    def leave(self, websocket: WebSocket, deployment_id: str | None = None) -> None:
        """离开分组，未指定部署时离开全部分组"""
        targets = [deployment_id] if deployment_id else list(self._groups)
        for target in targets:
            members = self._groups.get(target)
            if not members:
                continue
            members.discard(websocket)
            if not members:
                del self._groups[target]

    async def broadcast(self, deployment_id: str, text: str) -> int:
        """向分组内所有连接发送一行日志，返回送达数量"""
        members = self._groups.get(deployment_id)
        if not members:
            return 0

        delivered = 0
        for websocket in list(members):
            try:
                await websocket.send_text(text)
                delivered += 1
            except Exception as e:
                logger.debug(f"WebSocket 发送失败，移出分组 {group_name(deployment_id)}: {e}")
                self.stats.dropped += 1
                self.leave(websocket, deployment_id)
        self.stats.messages_sent += delivered
        return delivered

    def group_size(self, deployment_id: str) -> int:
        return len(self._groups.get(deployment_id, ()))

    def get_stats(self) -> dict:
        return {
            "groups": len(self._groups),
            "connections": sum(len(m) for m in self._groups.values()),
            "joins": self.stats.joins,
            "messages_sent": self.stats.messages_sent,
            "dropped": self.stats.dropped,
            "started_at": self.stats.started_at.isoformat(),
        }


__all__ = ["GROUP_PREFIX", "LogConnectionManager", "group_name"]
