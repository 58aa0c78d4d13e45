# app/core/auth/password_service.py
import base64
import binascii
import getpass
import hashlib
import hmac
import os
from typing import Optional


class PasswordService:
    """
    管理员密码哈希与校验 (PBKDF2-SHA256)。
    存储格式: "迭代次数.base64(salt + derived_key)"，写入配置项 ADMIN_PASSWORD_HASH。
    """
    _ITERATIONS = 120_000
    _KEY_SIZE = 32   # 派生密钥长度 (256 bit)
    _SALT_SIZE = 16  # 盐长度 (128 bit)

    @staticmethod
    def hash_password(password: str, iterations: Optional[int] = None) -> str:
        """使用随机盐生成密码哈希"""
        rounds = iterations or PasswordService._ITERATIONS
        salt = os.urandom(PasswordService._SALT_SIZE)
        derived_key = hashlib.pbkdf2_hmac(
            'sha256', password.encode('utf-8'), salt, rounds, dklen=PasswordService._KEY_SIZE
        )
        encoded = base64.b64encode(salt + derived_key).decode('utf-8')
        return f"{rounds}.{encoded}"

    @staticmethod
    def verify_password(password: str, hashed_password: str) -> bool:
        """校验明文密码与存储的哈希是否匹配，格式错误视为不匹配"""
        if not hashed_password:
            return False
        try:
            iterations_str, b64_hash = hashed_password.split('.', 1)
            iterations = int(iterations_str)
            hash_bytes = base64.b64decode(b64_hash, validate=True)
        except (ValueError, binascii.Error):
            return False

        salt = hash_bytes[:PasswordService._SALT_SIZE]
        stored_key = hash_bytes[PasswordService._SALT_SIZE:]
        if not salt or not stored_key:
            return False

        candidate = hashlib.pbkdf2_hmac(
            'sha256', password.encode('utf-8'), salt, iterations, dklen=len(stored_key)
        )
        # 常量时间比较
        return hmac.compare_digest(stored_key, candidate)


if __name__ == "__main__":
    # 生成 ADMIN_PASSWORD_HASH: python -m app.core.auth.password_service
    plain = getpass.getpass("管理员密码: ")
    print(PasswordService.hash_password(plain))
