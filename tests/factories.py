from datetime import timedelta
from decimal import Decimal

from app.core.money import utcnow
from app.core.security.security import get_password_hash
from app.core.security.auth import create_access_token
from app.enums.product_category import ProductCategory
from app.enums.product_status import ProductStatus
from app.enums.transaction_type import TransactionType
from app.enums.user_role import UserRole
from app.models.product import Product
from app.models.user import User
from app.services.finance.wallet_service import WalletService


async def make_user(name: str, role: UserRole = UserRole.buyer, password: str = "testpass123") -> User:
    return await User.create(
        name=name,
        email=f"{name.lower()}@example.com",
        password_hash=get_password_hash(password),
        role=role
    )


async def fund(user: User, amount) -> None:
    await WalletService.credit(user.id, Decimal(str(amount)), TransactionType.deposit, "Test funding")


async def make_product(vendor: User, starting_price="1000.00", hours: int = 24, **kwargs) -> Product:
    now = utcnow()
    return await Product.create(
        title=kwargs.pop("title", "Carved Teak Elephant"),
        description="Hand carved teak wood elephant",
        category=kwargs.pop("category", ProductCategory.handicrafts),
        starting_price=Decimal(starting_price),
        current_price=Decimal(starting_price),
        duration=hours,
        start_time=now,
        end_time=now + timedelta(hours=hours),
        status=kwargs.pop("status", ProductStatus.active),
        vendor=vendor,
        **kwargs
    )


async def expire(product: Product) -> None:
    await Product.filter(id=product.id).update(end_time=utcnow() - timedelta(minutes=1))


def auth_headers(user: User) -> dict:
    token = create_access_token(user_id=str(user.id), role=user.role.value)
    return {"Authorization": f"Bearer {token['access_token']}"}
