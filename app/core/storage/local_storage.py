# app/core/storage/local_storage.py
import io
import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from app.core.config.settings import settings
from app.core.storage.base import IStorageService, PresignedUpload
from app.core.exceptions import StorageException

logger = logging.getLogger(__name__)

class LocalStorageService(IStorageService):
    """
    将文件存储在本地文件系统的服务实现 (开发环境使用)。
    """
    def __init__(self, base_path: Optional[str] = None, base_url: Optional[str] = None):
        self.base_path = Path(base_path or settings.LOCAL_STORAGE_PATH)
        self.base_url = base_url if base_url is not None else settings.LOCAL_STORAGE_BASE_URL

        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            logger.info(f"本地存储目录 '{self.base_path}' 已确保存在。")
        except OSError as e:
            logger.error(f"创建本地存储目录 '{self.base_path}' 失败: {e}", exc_info=True)
            raise RuntimeError(f"无法创建本地存储目录: {e}") from e

        if not self.base_url:
            logger.warning("本地存储的 BASE_URL 未配置，get_url 将返回相对路径。")

    def _resolve(self, file_key: str) -> Path:
        """清理 key 并防止路径遍历"""
        safe_file_key = file_key.lstrip('/').lstrip('\\')
        if ".." in safe_file_key:
            logger.error(f"检测到潜在的路径遍历尝试: {file_key}")
            raise StorageException("无效的文件路径", code=400)
        return self.base_path.joinpath(safe_file_key)

    async def upload_async(
        self,
        file_stream: Union[io.BytesIO, io.BufferedReader, bytes],
        file_key: str,
        content_type: str # 本地存储不使用 content_type，保留接口一致性
    ) -> str:
        """异步上传文件到本地存储"""
        target_path = self._resolve(file_key)

        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            logger.info(f"正在上传文件到本地: {target_path}")

            if isinstance(file_stream, bytes):
                with open(target_path, "wb") as f:
                    f.write(file_stream)
            elif hasattr(file_stream, 'read'):
                if hasattr(file_stream, 'seek') and file_stream.seekable():
                    file_stream.seek(0)
                with open(target_path, "wb") as f:
                    shutil.copyfileobj(file_stream, f)
            else:
                logger.error(f"不支持的文件流类型: {type(file_stream)}")
                raise StorageException("无效的文件流类型", code=400)

            return self.get_url(file_key.lstrip('/'))

        except OSError as e:
            logger.error(f"写入本地文件 '{target_path}' 时发生 OS 错误: {e}", exc_info=True)
            # 删除可能已创建的不完整文件
            if target_path.exists():
                try:
                    target_path.unlink()
                except OSError:
                    logger.warning(f"删除不完整上传文件 '{target_path}' 失败。")
            raise StorageException(f"上传文件失败 (IO Error): {e}") from e

    def get_url(self, file_key: str) -> str:
        """获取本地存储文件的 URL"""
        url_safe_key = file_key.replace('\\', '/').lstrip('/')
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{url_safe_key}"
        return f"/{url_safe_key}"

    async def delete_async(self, file_key: str) -> bool:
        """异步删除本地存储的文件"""
        try:
            target_path = self._resolve(file_key)
        except StorageException:
            return False

        try:
            if target_path.is_file():
                target_path.unlink()
                logger.info(f"本地文件已删除: {target_path}")
                return True
            logger.warning(f"尝试删除的文件不存在或不是文件: {target_path}")
            return False
        except OSError as e:
            logger.error(f"删除本地文件 '{target_path}' 时发生 OS 错误: {e}", exc_info=True)
            return False

    async def presign_upload_async(self, file_key: str, expires_in: int, content_type: Optional[str] = None) -> PresignedUpload:
        raise StorageException("本地存储不支持预签名直传，请使用 /api/admin/upload", code=400)
