# app/core/utils/file_validator.py
import logging
from typing import List, Optional, Tuple
from fastapi import UploadFile

logger = logging.getLogger(__name__)


def _file_size(file: UploadFile) -> Optional[int]:
    """优先使用 UploadFile.size，缺失时通过底层文件对象计算"""
    if file.size is not None:
        return file.size
    stream = getattr(file, "file", None)
    if stream is None or not hasattr(stream, "seek"):
        return None
    position = stream.tell()
    stream.seek(0, 2)
    size = stream.tell()
    stream.seek(position)
    return size


def validate_image_file(file: UploadFile, max_size_mb: int = 5) -> Tuple[bool, str]:
    """
    验证上传的图片文件。

    Args:
        file: FastAPI 的 UploadFile 对象。
        max_size_mb: 单个文件允许的最大大小 (MB)。
    Returns:
        一个元组 (is_valid, error_message)。
    """
    name = file.filename or "未命名文件"

    # 1. 检查 MIME 类型
    content_type = (file.content_type or "").lower()
    if not content_type.startswith("image/"):
        logger.warning(f"上传文件不是图片: {name}, type='{content_type}'")
        return False, f"文件 {name} 不是图片"

    # 2. 检查文件大小
    size = _file_size(file)
    if not size:
        return False, f"文件 {name} 为空"
    max_size_bytes = max_size_mb * 1024 * 1024
    if size > max_size_bytes:
        logger.warning(f"文件大小超限: {name}, size={size} bytes, max={max_size_mb}MB")
        return False, f"文件 {name} 过大 (最大 {max_size_mb}MB)"

    logger.debug(f"图片验证通过: {name}")
    return True, ""


def validate_image_batch(files: List[UploadFile], max_files: int = 6, max_size_mb: int = 5) -> Tuple[bool, str]:
    """验证一批图片：数量 1..max_files，且每个文件都通过 validate_image_file"""
    if not files:
        return False, "未提供文件"
    if len(files) > max_files:
        logger.warning(f"上传文件过多: {len(files)} > {max_files}")
        return False, f"最多允许上传 {max_files} 张图片"
    for file in files:
        is_valid, error_message = validate_image_file(file, max_size_mb)
        if not is_valid:
            return False, error_message
    return True, ""
