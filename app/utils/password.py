"""비밀번호 해싱 및 검증 유틸리티 모듈.

Volunteer password hashing helpers backed by bcrypt.
The ``volunteers.password_hash`` column only ever stores the bcrypt digest.
"""

import bcrypt


def hash_password(password: str) -> str:
    """평문 비밀번호를 bcrypt 해시로 변환합니다.

    Args:
        password: 평문 비밀번호 (Plain text password)

    Returns:
        str: bcrypt 해시 문자열 (Salted bcrypt digest)
    """
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str | None) -> bool:
    """평문 비밀번호와 저장된 해시를 비교합니다.

    A volunteer that never set a password (``None`` hash) never verifies.
    """
    if not hashed_password:
        return False
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
