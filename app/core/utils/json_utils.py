# app/core/utils/json_utils.py
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel

logger = logging.getLogger(__name__)


def _default(obj: Any) -> Any:
    """json.dumps 的 default 钩子：支持时间、Decimal、枚举和 pydantic 模型"""
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, BaseModel):
        return obj.model_dump(by_alias=True, mode="json")
    raise TypeError(f"Type {type(obj)} not serializable")


def safe_serialize(data: Any, fallback: str = "{}") -> str:
    """序列化为 JSON 字符串，失败时记录错误并返回 fallback"""
    try:
        return json.dumps(data, default=_default, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.error(f"序列化错误: {e}")
        return fallback


def safe_deserialize(json_str: Any) -> Any:
    """反序列化 JSON 字符串，失败返回 None"""
    if json_str is None:
        return None
    if isinstance(json_str, bytes):
        json_str = json_str.decode("utf-8", errors="replace")
    try:
        return json.loads(json_str)
    except (json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning(f"JSON 反序列化错误: {e} for input: {str(json_str)[:100]}...")
        return None
