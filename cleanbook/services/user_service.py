"""Customer account service."""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cleanbook.config import get_settings
from cleanbook.errors import BadRequestError, NotFoundError, UnauthorizedError
from cleanbook.models.user import User
from cleanbook.schemas.auth import CustomerRegisterRequest
from cleanbook.schemas.user import UserUpdate
from cleanbook.security import hash_password, verify_password

settings = get_settings()


class UserService:
    """Service for customer account operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: int) -> Optional[User]:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        result = await self.db.execute(select(User).order_by(User.created_at.desc()))
        return list(result.scalars())

    async def register(self, data: CustomerRegisterRequest) -> User:
        """Create a customer account. Name defaults to the email's local part."""
        if await self.get_by_email(data.email):
            raise BadRequestError("Email already exists")

        user = User(
            name=data.name or data.email.split("@")[0],
            email=data.email,
            phone=data.phone,
            address=data.address,
            password_hash=hash_password(data.password),
            email_verified=False,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise UnauthorizedError("Invalid credentials")
        return user

    async def update(self, user_id: int, data: UserUpdate) -> User:
        """COALESCE-style update: only provided, non-null fields change."""
        user = await self.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)
        password = update_data.pop("password", None)

        new_email = update_data.get("email")
        if new_email and new_email != user.email:
            existing = await self.get_by_email(new_email)
            if existing and existing.id != user.id:
                raise BadRequestError("Email already in use")

        for field, value in update_data.items():
            setattr(user, field, value)
        if password and len(password) >= settings.MIN_PASSWORD_LENGTH:
            user.password_hash = hash_password(password)

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def delete(self, user_id: int) -> None:
        user = await self.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        await self.db.delete(user)
        await self.db.commit()
