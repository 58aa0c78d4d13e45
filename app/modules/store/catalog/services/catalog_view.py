"""
店面商品列表视图状态

CatalogView 持有最近一次加载的商品与当前筛选条件，并给出展示状态。
并发刷新时只接受最后一次发出的请求结果，较早请求的响应直接丢弃。
"""
import itertools
import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from app.modules.store.catalog.dtos import FilterCriteriaDto
from app.modules.store.catalog.enums import CatalogViewState
from app.modules.store.catalog.services.catalog_filter import filter_by_criteria, resolve_view_state

logger = logging.getLogger(__name__)


class RequestSequencer:
    """单调递增的请求令牌，只有最新令牌对应的响应有效"""

    def __init__(self):
        self._counter = itertools.count(1)
        self._latest = 0

    def issue(self) -> int:
        self._latest = next(self._counter)
        return self._latest

    def is_latest(self, token: int) -> bool:
        return token == self._latest

    @property
    def latest(self) -> int:
        return self._latest


class CatalogView:
    """
    商品列表视图。

    Args:
        fetch: 无参异步函数，返回全部商品 (例如 CatalogClient.list_products)
        criteria: 初始筛选条件
    """

    def __init__(self, fetch: Callable[[], Awaitable[Sequence[Any]]], criteria: Optional[FilterCriteriaDto] = None):
        self._fetch = fetch
        self._sequencer = RequestSequencer()
        self._products: List[Any] = []
        self._loading = True
        self._failed = False
        self.error: Optional[str] = None
        self.criteria = criteria or FilterCriteriaDto()

    async def refresh(self) -> bool:
        """
        重新加载商品。

        Returns:
            响应被采用时返回 True；已被更新的请求取代时返回 False
        """
        token = self._sequencer.issue()
        self._loading = True
        try:
            products = await self._fetch()
        except Exception as e:
            if not self._sequencer.is_latest(token):
                logger.debug(f"丢弃过期的商品加载失败结果: token={token}")
                return False
            logger.error(f"加载商品失败: {e}")
            self._loading = False
            self._failed = True
            self.error = str(e)
            return True

        if not self._sequencer.is_latest(token):
            logger.debug(f"丢弃过期的商品加载结果: token={token}, latest={self._sequencer.latest}")
            return False

        self._products = list(products)
        self._loading = False
        self._failed = False
        self.error = None
        return True

    def update_criteria(self, **changes) -> FilterCriteriaDto:
        """按字段名更新筛选条件，例如 update_criteria(search="ring", sort="price-asc")"""
        self.criteria = self.criteria.model_copy(update=changes)
        return self.criteria

    @property
    def products(self) -> List[Any]:
        return list(self._products)

    @property
    def items(self) -> List[Any]:
        """当前条件下的筛选结果；加载中或失败时为空"""
        if self._loading or self._failed:
            return []
        return filter_by_criteria(self._products, self.criteria)

    @property
    def state(self) -> CatalogViewState:
        if self._loading:
            return CatalogViewState.LOADING
        if self._failed:
            return CatalogViewState.FAILED
        return resolve_view_state(self._products, self.items)
