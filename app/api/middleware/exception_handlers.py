# app/api/middleware/exception_handlers.py
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from app.core.dtos import ApiResponse
from app.core.exceptions import BusinessException

logger = logging.getLogger(__name__)


async def business_exception_handler(request: Request, exc: BusinessException):
    """处理自定义的业务异常"""
    if exc.code >= 500:
        logger.error(f"业务异常: {exc.message}, Code: {exc.code}, Path: {request.url.path}")
    else:
        logger.info(f"业务异常: {exc.message}, Code: {exc.code}, Path: {request.url.path}")
    response = ApiResponse.fail(message=exc.message, code=exc.code)
    return JSONResponse(
        status_code=exc.code, # HTTP 状态码与业务码保持一致
        content=response.model_dump(exclude_none=True)
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """处理 FastAPI 的请求体验证错误 (RequestValidationError)"""
    error_messages = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error['loc'] if loc != 'body') # 获取字段路径
        error_messages.append(f"字段 '{field}': {error['msg']}")

    error_string = "; ".join(error_messages)
    logger.info(f"请求参数验证失败: {error_string}, Path: {request.url.path}")
    response = ApiResponse.fail(message=f"请求参数验证失败: {error_string}", code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=response.model_dump(exclude_none=True)
    )

async def general_exception_handler(request: Request, exc: Exception):
    """处理未被捕获的通用异常，不向客户端暴露错误细节"""
    logger.error(f"未处理的服务器内部错误: {exc}, Path: {request.url.path}", exc_info=exc)
    response = ApiResponse.fail(message="服务器内部错误，请稍后重试", code=status.HTTP_500_INTERNAL_SERVER_ERROR)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=response.model_dump(exclude_none=True)
    )

# 在 main.py 中注册这些处理器
def register_exception_handlers(app):
    app.add_exception_handler(BusinessException, business_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler) # 最后注册通用异常处理器
