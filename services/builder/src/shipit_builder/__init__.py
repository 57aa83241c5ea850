"""
ShipIt Builder 构建执行器

在隔离的短生命周期运行时中执行一次部署：
拉取源码 -> 执行构建命令 -> 有界并发上传构建产物。
"""

__version__ = "0.1.0"
