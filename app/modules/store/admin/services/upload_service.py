"""
商品图片上传服务
"""
import logging
import mimetypes
import uuid
from typing import List, Optional

from fastapi import UploadFile

from app.core.config.settings import Settings
from app.core.exceptions import StorageException, ValidationException
from app.core.storage.base import IStorageService
from app.core.utils.file_validator import validate_image_batch
from app.modules.store.admin.dtos import PresignRequestDto, PresignResultDto, UploadResultDto

logger = logging.getLogger(__name__)


def file_extension(file_name: Optional[str], content_type: Optional[str] = None) -> str:
    """取文件扩展名 (小写，不含点)；文件名没有扩展名时按 MIME 类型推断，默认 bin"""
    if file_name and "." in file_name:
        ext = file_name.rsplit(".", 1)[-1].strip().lower()
        if ext and ext.isalnum():
            return ext
    if content_type:
        guessed = mimetypes.guess_extension(content_type.split(";")[0].strip())
        if guessed:
            return guessed.lstrip(".")
    return "bin"


class UploadService:
    """校验图片并写入对象存储，key 形如 products/<uuid>.<ext>"""

    def __init__(self, storage_service: Optional[IStorageService], settings: Settings):
        self.storage_service = storage_service
        self.settings = settings

    def build_key(self, file_name: Optional[str], content_type: Optional[str] = None) -> str:
        prefix = self.settings.S3_KEY_PREFIX.strip("/")
        key = f"{uuid.uuid4().hex}.{file_extension(file_name, content_type)}"
        return f"{prefix}/{key}" if prefix else key

    def _require_storage(self) -> IStorageService:
        if self.storage_service is None:
            logger.error("存储服务未配置，无法上传图片。")
            raise StorageException("服务器未配置图片上传")
        return self.storage_service

    async def upload_images_async(self, files: List[UploadFile]) -> UploadResultDto:
        """
        上传 1 到 UPLOAD_MAX_FILES 张图片，全部校验通过才开始上传。

        Returns:
            与上传顺序一致的公开 URL 列表
        """
        is_valid, error_message = validate_image_batch(
            files, max_files=self.settings.UPLOAD_MAX_FILES, max_size_mb=self.settings.UPLOAD_MAX_SIZE_MB
        )
        if not is_valid:
            raise ValidationException(error_message)

        storage = self._require_storage()
        urls: List[str] = []
        for file in files:
            key = self.build_key(file.filename, file.content_type)
            content = await file.read()
            url = await storage.upload_async(content, key, file.content_type)
            logger.info(f"图片已上传: name='{file.filename}', key='{key}', size={len(content)}")
            urls.append(url)
        return UploadResultDto(urls=urls)

    async def presign_upload_async(self, dto: PresignRequestDto) -> PresignResultDto:
        """生成客户端直传使用的预签名 PUT URL"""
        if not dto.content_type.lower().startswith("image/"):
            raise ValidationException(f"文件 {dto.file_name} 不是图片")

        storage = self._require_storage()
        key = self.build_key(dto.file_name, dto.content_type)
        expires_in = self.settings.S3_PRESIGN_EXPIRATION
        presigned = await storage.presign_upload_async(key, expires_in, dto.content_type)
        logger.info(f"已生成预签名上传地址: key='{key}', expires_in={expires_in}s")
        return PresignResultDto(
            upload_url=presigned.upload_url,
            public_url=presigned.public_url,
            key=presigned.key,
            expires_in=expires_in,
        )
