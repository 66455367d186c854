from loguru import logger

from app.models.user import User
from app.enums.user_role import UserRole
from app.core.security.security import get_password_hash
from app.core.config import settings
from app.services.finance.wallet_service import WalletService


class InitService:
    @staticmethod
    async def create_default_admin():
        email = settings.first_superuser_email

        # Already bootstrapped
        if await User.exists(email=email):
            return None

        user = await User.create(
            name=settings.first_superuser_name,
            email=email,
            password_hash=get_password_hash(settings.first_superuser_password),
            role=UserRole.admin
        )
        await WalletService.get_or_create_wallet(user.id)
        logger.info(f"Default admin {email} created")
        return user
