"""WebSocket 实时日志接口

两种加入方式：
- 直接连接 /ws/deployments/{deployment_id}/logs
- 连接 /ws/logs 后发送 {"type": "subscribe", "channel": "logs:<id>"}
"""

import contextlib

import ujson
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from loguru import logger

from shipit_core.common.ids import normalize_uuid
from shipit_web_api.deps import ConnectionManagerDep
from shipit_web_api.websockets.connection_manager import GROUP_PREFIX

router = APIRouter()


def _resolve_deployment_id(value: str) -> str:
    return normalize_uuid(value) or value


@router.websocket("/deployments/{deployment_id}/logs")
async def deployment_logs_endpoint(
    websocket: WebSocket,
    deployment_id: str,
    manager: ConnectionManagerDep,
):
    deployment_id = _resolve_deployment_id(deployment_id)
    await websocket.accept()
    try:
        await manager.join(websocket, deployment_id)
        # 客户端消息不做处理，只用来感知断开
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"WebSocket 客户端断开连接: {deployment_id}")
    finally:
        manager.leave(websocket, deployment_id)


@router.websocket("/logs")
async def logs_subscribe_endpoint(websocket: WebSocket, manager: ConnectionManagerDep):
    await websocket.accept()
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = ujson.loads(raw)
            except ValueError:
                await websocket.send_text(ujson.dumps({"type": "error", "message": "消息必须是 JSON"}))
                continue

            channel = message.get("channel") if isinstance(message, dict) else None
            if (
                not isinstance(message, dict)
                or message.get("type") != "subscribe"
                or not isinstance(channel, str)
                or not channel.startswith(GROUP_PREFIX)
                or len(channel) == len(GROUP_PREFIX)
            ):
                await websocket.send_text(
                    ujson.dumps({"type": "error", "message": "仅支持 subscribe logs:<deployment_id>"})
                )
                continue

            await manager.join(websocket, _resolve_deployment_id(channel[len(GROUP_PREFIX):]))
    except WebSocketDisconnect:
        logger.debug("WebSocket 订阅客户端断开连接")
    except Exception:
        logger.exception("WebSocket 处理失败")
        with contextlib.suppress(Exception):
            await websocket.close(code=4000, reason="Internal error")
    finally:
        manager.leave(websocket)
