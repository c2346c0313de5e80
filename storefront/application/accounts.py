import logging
import uuid
from typing import List, Optional

from passlib.context import CryptContext
from pydantic import BaseModel

from storefront.domain.exceptions import ConflictError, UserNotFoundError
from storefront.domain.models import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class CreateUserDTO(BaseModel):
    username: str
    password: str
    email: str


class UsersService:
    """User accounts. Sessions are managed outside this service."""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def create(self, dto: CreateUserDTO) -> User:
        async with self._uow() as uow:
            if await uow.users.get_by_username(dto.username):
                raise ConflictError("Username already taken")
            if await uow.users.get_by_email(dto.email):
                raise ConflictError("Email already registered")

            user = User(
                id=str(uuid.uuid4()),
                username=dto.username,
                email=dto.email,
                password_hash=pwd_context.hash(dto.password),
            )
            await uow.users.create(user)
            await uow.commit()

        logger.info(f"User created: {user.id}")
        return user

    async def get(self, user_id: str) -> User:
        async with self._uow() as uow:
            user = await uow.users.get_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User {user_id} not found")
        return user

    async def list(self) -> List[User]:
        async with self._uow() as uow:
            return await uow.users.list()

    async def authenticate(self, username: str, password: str) -> Optional[User]:
        async with self._uow() as uow:
            user = await uow.users.get_by_username(username)
        if not user or not pwd_context.verify(password, user.password_hash):
            return None
        return user

    async def set_admin(self, user_id: str, is_admin: bool) -> User:
        async with self._uow() as uow:
            user = await uow.users.get_by_id(user_id)
            if not user:
                raise UserNotFoundError(f"User {user_id} not found")
            await uow.users.set_admin(user_id, is_admin)
            await uow.commit()
        return user.model_copy(update={"is_admin": is_admin})
