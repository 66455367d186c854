import uuid
from typing import Optional
from tortoise import fields, models
from tortoise.exceptions import DoesNotExist

from app.core.security.security import verify_password
from app.enums.user_role import UserRole


class User(models.Model):
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=100)
    email = fields.CharField(max_length=255, unique=True)
    password_hash = fields.CharField(max_length=255)
    role = fields.CharEnumField(UserRole, default=UserRole.buyer)
    is_active = fields.BooleanField(default=True)
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "users"

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional['User']:
        try:
            user = await cls.get(email=email)
        except DoesNotExist:
            return None
        if not verify_password(password, user.password_hash):
            return None
        return user

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin
