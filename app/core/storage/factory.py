# app/core/storage/factory.py
import logging
from functools import lru_cache
from typing import Optional

from app.core.config.settings import settings
from app.core.storage.base import IStorageService, StorageProviderType

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def get_storage_service(provider_type_str: Optional[str] = None) -> Optional[IStorageService]:
    """
    获取指定类型的存储服务实例。
    使用 LRU 缓存来复用服务实例，具体实现类在函数内部导入。
    """
    if provider_type_str is None:
        provider_type_str = settings.STORAGE_PROVIDER
        logger.debug(f"未指定存储提供者，使用配置值: {provider_type_str}")

    provider_lower = provider_type_str.strip().lower()
    if provider_lower == "none":
        logger.info("存储提供者配置为 'None'，不创建存储服务实例。")
        return None
    if provider_lower == "local":
        provider_type = StorageProviderType.LOCAL
    elif provider_lower in ("s3", "r2"):
        provider_type = StorageProviderType.S3
    else:
        logger.error(f"不支持的存储提供程序: {provider_type_str}")
        raise ValueError(f"不支持的存储提供程序: {provider_type_str}")

    logger.info(f"准备创建 '{provider_type.value}' 存储服务实例...")

    if provider_type == StorageProviderType.LOCAL:
        from app.core.storage.local_storage import LocalStorageService
        return LocalStorageService()

    from app.core.storage.s3_storage import S3StorageService
    return S3StorageService()
