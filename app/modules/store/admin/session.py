"""
管理员会话

AdminSession 是一次已验证登录的显式表示，服务端由依赖项 get_current_admin 注入，
客户端 (AdminApiClient) 则保存在 SessionContext 中。
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

SessionListener = Callable[[Optional["AdminSession"]], None]


@dataclass(frozen=True)
class AdminSession:
    """已登录管理员的会话信息"""
    username: str
    token: str
    expires_at: Optional[datetime] = None

    @property
    def is_expired(self) -> bool:
        if self.expires_at is None:
            return False
        return datetime.now(timezone.utc) >= self.expires_at


class SessionContext:
    """
    保存当前管理员会话并通知订阅者。

    subscribe() 返回取消订阅函数；作为上下文管理器使用时，退出时清除全部订阅者。
    """

    def __init__(self, session: Optional[AdminSession] = None):
        self._session = session
        self._listeners: List[SessionListener] = []

    @property
    def session(self) -> Optional[AdminSession]:
        return self._session

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None and not self._session.is_expired

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_session(self, session: Optional[AdminSession]) -> None:
        self._session = session
        self._notify()

    def clear(self) -> None:
        """退出登录"""
        if self._session is None:
            return
        self._session = None
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._session)
            except Exception as e:
                logger.error(f"会话监听器执行失败: {e}", exc_info=True)

    def __enter__(self) -> "SessionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._listeners.clear()
