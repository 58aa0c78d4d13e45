import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, File, UploadFile, status

from app.core.config.settings import settings
from app.core.dtos import ApiResponse, BaseIdResponseDto
from app.api.dependencies import (
    get_current_admin,
    get_jwt_service_from_state,
    get_storage_service_from_state,
    RateLimiter
)

from app.modules.store.admin.dtos import (
    LoginRequestDto, LoginResultDto, PresignRequestDto, PresignResultDto, SessionInfoDto, UploadResultDto
)
from app.modules.store.admin.session import AdminSession
from app.modules.store.catalog.dtos import ProductCreateDto, ProductDto, ProductUpdateDto
from app.modules.store.catalog.router import get_product_service
from app.modules.store.catalog.services.product_service import ProductService

# 类型提示导入
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from app.core.auth.jwt_service import JwtService
    from app.core.storage.base import IStorageService
    from app.modules.store.admin.services.auth_service import AdminAuthService
    from app.modules.store.admin.services.upload_service import UploadService

# 获取 Logger
logger = logging.getLogger(__name__)

# 创建管理后台 API Router
router = APIRouter(
    prefix="/admin",
    tags=["Admin"]
)


# 内部依赖项工厂
def _get_auth_service(
    jwt_service: 'JwtService' = Depends(get_jwt_service_from_state),
) -> 'AdminAuthService':
    from app.modules.store.admin.services.auth_service import AdminAuthService
    return AdminAuthService(settings=settings, jwt_service=jwt_service)


def _get_upload_service(
    storage_service: Optional['IStorageService'] = Depends(get_storage_service_from_state),
) -> 'UploadService':
    from app.modules.store.admin.services.upload_service import UploadService
    return UploadService(storage_service=storage_service, settings=settings)


# --- 认证 ---

@router.post(
    "/login",
    response_model=ApiResponse[LoginResultDto],
    response_model_by_alias=True,
    summary="管理员登录",
    dependencies=[Depends(RateLimiter(limit=10, period_seconds=60))]
)
async def login(
    dto: LoginRequestDto,
    auth_service: 'AdminAuthService' = Depends(_get_auth_service),
):
    result = await auth_service.login_async(dto)
    return ApiResponse.success(data=result, message="登录成功")


@router.post("/logout", response_model=ApiResponse, summary="退出登录")
async def logout(
    session: AdminSession = Depends(get_current_admin),
    auth_service: 'AdminAuthService' = Depends(_get_auth_service),
):
    await auth_service.logout_async(session)
    return ApiResponse.success(message="已退出登录")


@router.get("/session", response_model=ApiResponse[SessionInfoDto], response_model_by_alias=True, summary="获取当前会话")
async def get_session(session: AdminSession = Depends(get_current_admin)):
    return ApiResponse.success(data=SessionInfoDto(username=session.username, expires_at=session.expires_at))


# --- 商品管理 ---

@router.post(
    "/products",
    response_model=ApiResponse[ProductDto],
    response_model_by_alias=True,
    status_code=status.HTTP_201_CREATED,
    summary="创建商品"
)
async def create_product(
    dto: ProductCreateDto,
    session: AdminSession = Depends(get_current_admin),
    product_service: ProductService = Depends(get_product_service),
):
    product = await product_service.create_product_async(dto)
    return ApiResponse.success(data=product, message="商品已创建", code=201)


@router.put("/products/{product_id}", response_model=ApiResponse[ProductDto], response_model_by_alias=True, summary="更新商品")
async def update_product(
    product_id: str,
    dto: ProductUpdateDto,
    session: AdminSession = Depends(get_current_admin),
    product_service: ProductService = Depends(get_product_service),
):
    product = await product_service.update_product_async(product_id, dto)
    return ApiResponse.success(data=product, message="商品已更新")


@router.delete("/products/{product_id}", response_model=ApiResponse[BaseIdResponseDto], summary="删除商品")
async def delete_product(
    product_id: str,
    session: AdminSession = Depends(get_current_admin),
    product_service: ProductService = Depends(get_product_service),
):
    await product_service.delete_product_async(product_id)
    return ApiResponse.success(data=BaseIdResponseDto(id=product_id), message="商品已删除")


# --- 图片上传 ---

@router.post(
    "/upload",
    response_model=ApiResponse[UploadResultDto],
    summary="上传商品图片 (1-6 张，每张不超过 5MB)",
    dependencies=[Depends(RateLimiter(limit=30, period_seconds=60))]
)
async def upload_images(
    files: Optional[List[UploadFile]] = File(None, description="图片文件"),
    session: AdminSession = Depends(get_current_admin),
    upload_service: 'UploadService' = Depends(_get_upload_service),
):
    result = await upload_service.upload_images_async(files or [])
    return ApiResponse.success(data=result, message="上传成功")


@router.post("/upload-url", response_model=ApiResponse[PresignResultDto], response_model_by_alias=True, summary="获取预签名直传地址")
async def create_upload_url(
    dto: PresignRequestDto,
    session: AdminSession = Depends(get_current_admin),
    upload_service: 'UploadService' = Depends(_get_upload_service),
):
    result = await upload_service.presign_upload_async(dto)
    return ApiResponse.success(data=result)
