"""
首页轮播调度

每进入一张幻灯片都会生成新的推进令牌 (token)，定时器和视频事件回调携带令牌，
令牌过期的回调直接忽略，因此任意时刻最多只有一次有效的自动推进。

- 图片：interval_ms 后推进
- 视频：静音自动播放；先设置保守的兜底定时器 max(10000, 2 × interval_ms) + 250 ms，
  拿到时长后改为 时长 + 250 ms；播放结束或定时器触发，先到者推进
"""
import asyncio
import logging
import math
from typing import Any, Callable, List, Optional, Protocol, Sequence
from urllib.parse import urlsplit

from app.core.config.settings import settings

logger = logging.getLogger(__name__)

VIDEO_EXTENSIONS = (".mp4", ".webm")
MIN_VIDEO_FALLBACK_MS = 10000
ADVANCE_GRACE_MS = 250


def is_video_url(url: str) -> bool:
    """URL 路径以视频扩展名结尾 (忽略大小写、查询参数和锚点)"""
    return urlsplit(url or "").path.lower().endswith(VIDEO_EXTENSIONS)


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class TimerSource(Protocol):
    """与 asyncio 事件循环的 call_later 一致"""
    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class VideoPlayer(Protocol):
    """视频播放控制"""

    def load(self, url: str, ticket: "SlideTicket") -> None:
        """从头开始静音自动播放；播放结束调用 ticket.ended()，拿到时长调用 ticket.metadata_loaded()"""
        ...

    def pause(self, url: str) -> None:
        ...


class SlideTicket:
    """某一次进入幻灯片的凭证，视频播放器通过它回报事件"""

    def __init__(self, carousel: "MediaCarousel", token: int, index: int, url: str):
        self._carousel = carousel
        self.token = token
        self.index = index
        self.url = url

    @property
    def is_current(self) -> bool:
        return self._carousel.token == self.token

    def ended(self) -> None:
        self._carousel._advance(self.token)

    def metadata_loaded(self, duration_s: Optional[float]) -> None:
        self._carousel._on_metadata(self.token, duration_s)


class MediaCarousel:
    """
    轮播状态机。

    Args:
        slides: 幻灯片 URL 列表
        interval_ms: 图片停留时间，默认取 settings.CAROUSEL_INTERVAL_MS
        timers: 提供 call_later 的对象，默认使用当前运行的 asyncio 事件循环
        player: 视频播放器，未提供时视频幻灯片只依赖兜底定时器
        on_change: 当前索引变化时回调 on_change(index)
    """

    def __init__(
        self,
        slides: Sequence[str],
        interval_ms: Optional[int] = None,
        timers: Optional[TimerSource] = None,
        player: Optional[VideoPlayer] = None,
        on_change: Optional[Callable[[int], None]] = None,
    ):
        self.slides: List[str] = list(slides)
        self.interval_ms = interval_ms if interval_ms is not None else settings.CAROUSEL_INTERVAL_MS
        self.player = player
        self.on_change = on_change
        self._timers = timers
        self._index = 0
        self._token = 0
        self._handle: Optional[TimerHandle] = None
        self._ticket: Optional[SlideTicket] = None
        self._advanced = False
        self._running = False

    @property
    def index(self) -> int:
        return self._index

    @property
    def token(self) -> int:
        return self._token

    @property
    def current_slide(self) -> Optional[str]:
        return self.slides[self._index] if self.slides else None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def has_pending_advance(self) -> bool:
        return self._handle is not None

    @property
    def conservative_fallback_ms(self) -> int:
        return max(MIN_VIDEO_FALLBACK_MS, 2 * self.interval_ms) + ADVANCE_GRACE_MS

    def start(self) -> None:
        """开始自动轮播 (少于两张时不设置任何定时器)"""
        self._running = True
        self._enter(self._index)

    def stop(self) -> None:
        """停止轮播，取消定时器并暂停当前视频"""
        self._running = False
        self._leave()
        self._token += 1

    def next(self) -> None:
        if self.slides:
            self.go_to((self._index + 1) % len(self.slides))

    def prev(self) -> None:
        if self.slides:
            self.go_to((self._index - 1) % len(self.slides))

    def go_to(self, index: int) -> None:
        """手动切换，取消当前的等待并重新计时"""
        if not 0 <= index < len(self.slides):
            raise IndexError(f"幻灯片索引超出范围: {index}")
        self._leave()
        self._set_index(index)
        if self._running:
            self._enter(index)

    def _timer_source(self) -> TimerSource:
        if self._timers is None:
            self._timers = asyncio.get_running_loop()
        return self._timers

    def _set_index(self, index: int) -> None:
        changed = index != self._index
        self._index = index
        if changed and self.on_change:
            self.on_change(index)

    def _arm(self, delay_ms: float, token: int) -> None:
        self._cancel_timer()
        self._handle = self._timer_source().call_later(delay_ms / 1000.0, self._advance, token)

    def _cancel_timer(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _enter(self, index: int) -> None:
        self._token += 1
        self._advanced = False
        url = self.slides[index] if self.slides else ""
        self._ticket = SlideTicket(self, self._token, index, url)
        if len(self.slides) <= 1:
            return

        if is_video_url(url):
            self._arm(self.conservative_fallback_ms, self._token)
            if self.player is not None:
                self.player.load(url, self._ticket)
        else:
            self._arm(self.interval_ms, self._token)

    def _leave(self) -> None:
        self._cancel_timer()
        ticket, self._ticket = self._ticket, None
        if ticket is not None and self.player is not None and is_video_url(ticket.url):
            try:
                self.player.pause(ticket.url)
            except Exception as e:
                logger.debug(f"暂停视频失败: {ticket.url} - {e}")

    def _advance(self, token: int) -> None:
        if token != self._token or self._advanced or not self._running:
            return
        self._advanced = True
        next_index = (self._index + 1) % len(self.slides)
        self._leave()
        self._set_index(next_index)
        self._enter(next_index)

    def _on_metadata(self, token: int, duration_s: Optional[float]) -> None:
        if token != self._token or self._advanced:
            return
        if duration_s is None or not math.isfinite(duration_s) or duration_s <= 0:
            return
        self._arm(duration_s * 1000 + ADVANCE_GRACE_MS, token)
