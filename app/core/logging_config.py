# app/core/logging_config.py
import logging
import sys
import json
from pathlib import Path
from logging.handlers import TimedRotatingFileHandler
from datetime import datetime, timezone

from app.core.config.settings import settings

# --- 自定义 JSON 日志格式化器 ---
# 输出 JSON 格式的日志，方便机器解析和收集
class JsonFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        # 转换为本地时区的 ISO 8601 (毫秒精度)
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        timestamp_str = dt.astimezone().isoformat(timespec='milliseconds')

        log_entry = {
            "timestamp": timestamp_str,
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "environment": settings.ENVIRONMENT,
            "pathname": record.pathname,
            "lineno": record.lineno,
            "funcName": record.funcName,
            "exception": self.formatException(record.exc_info) if record.exc_info else None,
            **(record.__dict__.get("extra_data", {})),
        }
        log_entry = {k: v for k, v in log_entry.items() if v is not None}
        return json.dumps(log_entry, ensure_ascii=False)

# --- 日志配置函数 ---
def setup_logging():
    """配置应用程序的日志记录"""
    log_level_str = settings.LOG_LEVEL.upper()
    log_level = getattr(logging, log_level_str, logging.INFO)

    # --- 创建格式化器 ---
    console_formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    json_formatter = JsonFormatter()

    # --- 创建处理器 ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    console_handler.setLevel(log_level)

    log_dir = Path(settings.LOG_DIR)
    log_dir.mkdir(exist_ok=True)
    file_handler = TimedRotatingFileHandler(
        filename=log_dir / "app.log",
        when="midnight",
        interval=1,
        backupCount=30,
        encoding='utf-8',
        delay=True
    )
    file_handler.setFormatter(json_formatter)
    file_handler.setLevel(log_level)

    # --- 配置根 Logger ---
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # 检查并避免重复添加处理器
    handler_types = {type(h) for h in root_logger.handlers}
    if console_handler.__class__ not in handler_types:
        root_logger.addHandler(console_handler)
    if file_handler.__class__ not in handler_types:
        root_logger.addHandler(file_handler)

    # --- 配置特定库的日志级别 ---
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if settings.DATABASE_ECHO else logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"日志系统配置完成。根日志级别: {log_level_str}")
    logger.info(f"文件日志级别: {logging.getLevelName(file_handler.level)}, 文件路径: {file_handler.baseFilename}")
