"""
ShipIt Core Package

共享核心包，包含：
- common: 通用模块（配置、日志、异常、ID生成、时间工具、命令执行）
- application: 应用层编排服务（项目、部署、日志查询）
- infrastructure: 基础设施适配（数据库、Redis、存储、执行器启动）
- domain: 领域层（模型、Schema）
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "common",
    "application",
    "infrastructure",
    "domain",
]


def __getattr__(name: str):
    if name in ("common", "application", "infrastructure", "domain"):
        import importlib

        module = importlib.import_module(f"shipit_core.{name}")
        globals()[name] = module
        return module
    raise AttributeError(f"module 'shipit_core' has no attribute '{name}'")
