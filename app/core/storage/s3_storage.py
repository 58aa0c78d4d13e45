# app/core/storage/s3_storage.py
import asyncio
import io
import logging
from typing import Optional, Union

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config.settings import settings
from app.core.exceptions import StorageException
from app.core.storage.base import IStorageService, PresignedUpload

logger = logging.getLogger(__name__)


class S3StorageService(IStorageService):
    """
    S3 兼容对象存储 (AWS S3 / Cloudflare R2 / MinIO) 的服务实现。
    boto3 客户端是同步的，I/O 调用通过 asyncio.to_thread 执行。
    """
    def __init__(self, client=None):
        self.bucket_name = settings.S3_BUCKET_NAME
        self.public_base_url = settings.S3_PUBLIC_BASE_URL

        if client is not None:
            self.client = client
        else:
            missing = [
                name for name, value in (
                    ("S3_ENDPOINT_URL", settings.S3_ENDPOINT_URL),
                    ("S3_ACCESS_KEY_ID", settings.S3_ACCESS_KEY_ID),
                    ("S3_SECRET_ACCESS_KEY", settings.S3_SECRET_ACCESS_KEY),
                    ("S3_PUBLIC_BASE_URL", settings.S3_PUBLIC_BASE_URL),
                ) if not value
            ]
            if missing:
                logger.error(f"S3 存储缺少必要配置: {', '.join(missing)}")
                raise StorageException("服务器未配置图片上传")

            self.client = boto3.client(
                "s3",
                endpoint_url=settings.S3_ENDPOINT_URL,
                aws_access_key_id=settings.S3_ACCESS_KEY_ID.strip(),
                aws_secret_access_key=settings.S3_SECRET_ACCESS_KEY.strip(),
                region_name=settings.S3_REGION,
                # R2 只支持 path-style，且不接受可选的校验和头
                config=Config(
                    s3={"addressing_style": "path"},
                    request_checksum_calculation="when_required",
                    response_checksum_validation="when_required",
                ),
            )
        logger.info(f"S3 存储服务已就绪，bucket='{self.bucket_name}'")

    async def upload_async(
        self,
        file_stream: Union[io.BytesIO, io.BufferedReader, bytes],
        file_key: str,
        content_type: str
    ) -> str:
        """上传对象并返回公开 URL"""
        key = file_key.lstrip('/')
        if isinstance(file_stream, bytes):
            body = file_stream
        elif hasattr(file_stream, 'read'):
            if hasattr(file_stream, 'seek') and file_stream.seekable():
                file_stream.seek(0)
            body = file_stream.read()
        else:
            raise StorageException("无效的文件流类型", code=400)

        logger.info(f"正在上传对象到 S3: bucket={self.bucket_name}, key={key}, size={len(body)}")
        try:
            await asyncio.to_thread(
                self.client.put_object,
                Bucket=self.bucket_name,
                Key=key,
                Body=body,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"上传对象 '{key}' 失败: {e}", exc_info=True)
            raise StorageException(f"上传文件失败: {e}") from e

        return self.get_url(key)

    def get_url(self, file_key: str) -> str:
        """公开访问地址: {S3_PUBLIC_BASE_URL}/{key}"""
        key = file_key.replace('\\', '/').lstrip('/')
        if not self.public_base_url:
            return f"/{key}"
        return f"{self.public_base_url}/{key}"

    async def delete_async(self, file_key: str) -> bool:
        key = file_key.lstrip('/')
        try:
            await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket_name, Key=key)
            logger.info(f"S3 对象已删除: {key}")
            return True
        except (BotoCoreError, ClientError) as e:
            logger.error(f"删除 S3 对象 '{key}' 失败: {e}")
            return False

    async def presign_upload_async(self, file_key: str, expires_in: int, content_type: Optional[str] = None) -> PresignedUpload:
        key = file_key.lstrip('/')
        params = {"Bucket": self.bucket_name, "Key": key}
        if content_type:
            params["ContentType"] = content_type
        try:
            upload_url = await asyncio.to_thread(
                self.client.generate_presigned_url,
                "put_object",
                Params=params,
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error(f"生成预签名 URL 失败, key={key}: {e}")
            raise StorageException(f"生成上传地址失败: {e}") from e

        logger.info(f"已生成预签名上传 URL: {key}")
        return PresignedUpload(upload_url=upload_url, public_url=self.get_url(key), key=key)
