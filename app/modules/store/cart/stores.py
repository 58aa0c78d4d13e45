"""
购物车持久化使用的键值存储

接口与浏览器 localStorage 一致：值都是字符串，写入同步完成。
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """字符串键值存储协议"""

    def get_item(self, key: str) -> Optional[str]:
        """不存在时返回 None"""
        ...

    def set_item(self, key: str, value: str) -> None:
        """写入失败时抛出 OSError"""
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryKeyValueStore:
    """进程内存储，主要用于测试和服务端渲染"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileKeyValueStore:
    """
    以单个 JSON 对象文件保存全部键值。

    每次写入都重写整个文件 (先写临时文件再替换)，文件损坏时按空存储处理。
    多个进程同时写同一个文件时后写者覆盖先写者。
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            logger.error(f"读取存储文件 '{self.path}' 失败: {e}")
            return {}
        try:
            data = json.loads(raw) if raw.strip() else {}
        except ValueError as e:
            logger.warning(f"存储文件 '{self.path}' 不是有效的 JSON，按空存储处理: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"存储文件 '{self.path}' 内容不是 JSON 对象，按空存储处理。")
            return {}
        return {str(k): v if isinstance(v, str) else json.dumps(v, ensure_ascii=False) for k, v in data.items()}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=str(self.path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
