# app/core/storage/base.py
from typing import Protocol, runtime_checkable, Union, Optional
from abc import abstractmethod
from dataclasses import dataclass
import io
from enum import Enum

# 定义支持的存储提供者类型枚举
class StorageProviderType(str, Enum):
    LOCAL = "Local"
    S3 = "S3"
    NONE = "None"


@dataclass
class PresignedUpload:
    """预签名上传结果：客户端直接 PUT 到 upload_url，完成后通过 public_url 访问"""
    upload_url: str
    public_url: str
    key: str


@runtime_checkable # 允许运行时检查一个类是否实现了这个协议
class IStorageService(Protocol):
    """
    对象存储服务的接口协议。

    定义了所有存储服务实现（本地存储、S3 兼容存储）必须提供的方法签名。
    """

    @abstractmethod
    async def upload_async(
        self,
        file_stream: Union[io.BytesIO, io.BufferedReader, bytes],
        file_key: str,
        content_type: str
    ) -> str:
        """
        异步上传文件到存储服务。

        Args:
            file_stream: 包含文件内容的字节流或字节对象。
                         实现者应注意流可能需要被重置（seek(0)）如果之前被读取过。
            file_key: 文件在存储服务中的唯一标识符 (通常是相对路径 + 文件名)。
            content_type: 文件的 MIME 类型 (例如 'image/jpeg')。

        Returns:
            上传成功后文件的可公开访问 URL。

        Raises:
            StorageException: 配置缺失或上传失败。
        """
        ...

    @abstractmethod
    def get_url(self, file_key: str) -> str:
        """根据配置的公开地址和 key 构造可访问 URL，不涉及 I/O"""
        ...

    @abstractmethod
    async def delete_async(self, file_key: str) -> bool:
        """
        异步从存储服务删除文件。

        Returns:
            删除是否成功。
        """
        ...

    @abstractmethod
    async def presign_upload_async(self, file_key: str, expires_in: int, content_type: Optional[str] = None) -> PresignedUpload:
        """
        生成客户端直传使用的预签名 PUT URL。

        Raises:
            StorageException: 当前存储不支持直传或配置缺失。
        """
        ...
