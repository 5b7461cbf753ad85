"""
tournament_hub/security/passwords.py
Password hashing with bcrypt

bcrypt can block the event loop, so the async helpers run it in a thread pool.
"""
import asyncio
from concurrent.futures import ThreadPoolExecutor

from passlib.context import CryptContext

from tournament_hub.config import settings

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

BCRYPT_MAX_BYTES = 72

_executor = None


def get_executor():
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=4)
    return _executor


def normalize_password(password: str) -> str:
    """Cut to bcrypt's 72-byte input limit without leaving half a UTF-8 character."""
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES].decode("utf-8", errors="ignore")


def hash_password(password: str) -> str:
    return pwd_context.hash(normalize_password(password))


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(normalize_password(plain), hashed)


async def hash_password_async(password: str) -> str:
    """hash_password on the worker pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), hash_password, password)


async def verify_password_async(plain: str, hashed: str) -> bool:
    """verify_password on the worker pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), verify_password, plain, hashed)
