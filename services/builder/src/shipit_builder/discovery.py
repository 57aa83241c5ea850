"""
构建产物发现

用 os.scandir 迭代遍历产物目录，按批次产出常规文件。
目录本身不作为上传单元，符号链接不跟随。
无法读取的子目录或条目记录警告后跳过；产物根目录不可读时抛出 OSError。
"""

import mimetypes
import os
from collections.abc import Iterator
from dataclasses import dataclass

from loguru import logger

DEFAULT_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True)
class UploadUnit:
    """单个待上传文件，relative_path 使用 POSIX 分隔符"""
    relative_path: str
    absolute_path: str
    content_type: str


def guess_content_type(filename: str) -> str:
    content_type, _ = mimetypes.guess_type(filename)
    return content_type or DEFAULT_CONTENT_TYPE


def iter_upload_batches(root: str, batch_size: int = 50) -> Iterator[list[UploadUnit]]:
    """按批次遍历目录树，每批最多 batch_size 个上传单元"""
    batch_size = max(1, batch_size)
    root_path = os.path.abspath(root)
    pending_dirs = [root_path]
    batch: list[UploadUnit] = []

    while pending_dirs:
        current = pending_dirs.pop()
        try:
            entries = list(os.scandir(current))
        except OSError as e:
            # 根目录不可读时向上抛出，子目录只跳过
            if current == root_path:
                raise
            logger.warning(f"跳过无法读取的目录: {current}, 错误: {e}")
            continue

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    pending_dirs.append(entry.path)
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
            except OSError as e:
                logger.warning(f"跳过无法读取的条目: {entry.path}, 错误: {e}")
                continue

            relative = os.path.relpath(entry.path, root_path).replace(os.sep, "/")
            batch.append(
                UploadUnit(
                    relative_path=relative,
                    absolute_path=entry.path,
                    content_type=guess_content_type(entry.name),
                )
            )
            if len(batch) >= batch_size:
                yield batch
                batch = []

    if batch:
        yield batch


def discover_upload_units(root: str, batch_size: int = 50) -> list[UploadUnit]:
    """收集产物目录下的全部常规文件，按相对路径排序

    Raises:
        FileNotFoundError: 目录不存在
        OSError: 根目录无法读取
    """
    if not os.path.isdir(root):
        raise FileNotFoundError(f"产物目录不存在: {root}")

    units: list[UploadUnit] = []
    for batch in iter_upload_batches(root, batch_size):
        units.extend(batch)
    units.sort(key=lambda unit: unit.relative_path)
    return units


__all__ = ["UploadUnit", "discover_upload_units", "guess_content_type", "iter_upload_batches"]
