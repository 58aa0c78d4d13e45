"""
管理员认证服务 (单管理员，账号来自配置)
"""
import hmac
import logging

from app.core.auth.jwt_service import JwtService
from app.core.auth.password_service import PasswordService
from app.core.config.settings import Settings
from app.core.exceptions import BusinessException, UnauthorizedException
from app.modules.store.admin.dtos import LoginRequestDto, LoginResultDto
from app.modules.store.admin.session import AdminSession

logger = logging.getLogger(__name__)


class AdminAuthService:
    """管理员登录 / 退出"""

    def __init__(self, settings: Settings, jwt_service: JwtService):
        self.settings = settings
        self.jwt_service = jwt_service

    async def login_async(self, dto: LoginRequestDto) -> LoginResultDto:
        """
        校验用户名和密码，签发令牌。

        Raises:
            UnauthorizedException: 用户名或密码错误
            BusinessException: 服务器未配置管理员密码
        """
        if not self.settings.ADMIN_PASSWORD_HASH:
            logger.error("ADMIN_PASSWORD_HASH 未配置，拒绝所有管理员登录。")
            raise BusinessException("服务器未配置管理员账号", code=500)

        username_ok = hmac.compare_digest(dto.username.encode("utf-8"), self.settings.ADMIN_USERNAME.encode("utf-8"))
        # 用户名错误时也计算一次哈希，避免通过耗时区分
        password_ok = PasswordService.verify_password(dto.password, self.settings.ADMIN_PASSWORD_HASH)
        if not (username_ok and password_ok):
            logger.warning(f"管理员登录失败: username='{dto.username}'")
            raise UnauthorizedException("用户名或密码错误")

        token, expire_at = await self.jwt_service.generate_token(self.settings.ADMIN_USERNAME)
        logger.info(f"管理员 {self.settings.ADMIN_USERNAME} 登录成功。")
        return LoginResultDto(access_token=token, username=self.settings.ADMIN_USERNAME, expires_at=expire_at)

    async def logout_async(self, session: AdminSession) -> bool:
        revoked = await self.jwt_service.revoke_token(session.username)
        logger.info(f"管理员 {session.username} 已退出登录 (revoked={revoked})。")
        return revoked
