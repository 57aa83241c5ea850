"""测试全局配置：在导入 settings 之前固定测试环境"""

import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DATABASE_URL", "sqlite://:memory:")
os.environ.setdefault("LOG_SINK_BACKEND", "local")
os.environ.setdefault("EXECUTOR_LAUNCH_BACKEND", "local")
os.environ.setdefault("REDIS_NAMESPACE", "shipit")
