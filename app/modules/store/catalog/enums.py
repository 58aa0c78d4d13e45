"""
商品目录枚举
"""
from enum import Enum


class SortOption(str, Enum):
    """商品列表排序方式"""
    NEWEST = "newest"          # 按创建时间倒序 (默认)
    PRICE_ASC = "price-asc"    # 价格从低到高
    PRICE_DESC = "price-desc"  # 价格从高到低
    NAME_ASC = "name-asc"      # 名称 A → Z
    NAME_DESC = "name-desc"    # 名称 Z → A

    @classmethod
    def parse(cls, value) -> "SortOption":
        """未知的排序值回退为 NEWEST"""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


class CatalogViewState(str, Enum):
    """店面商品列表的展示状态"""
    LOADING = "loading"              # 正在加载
    FAILED = "failed"                # 加载失败
    EMPTY_CATALOG = "empty_catalog"  # 目录中还没有任何商品
    NO_MATCHES = "no_matches"        # 有商品，但没有符合筛选条件的
    RESULTS = "results"              # 有筛选结果


ALL_CATEGORIES = "all"
