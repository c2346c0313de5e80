import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from storefront.domain.exceptions import FieldError, ProductNotFoundError, ValidationError
from storefront.domain.models import Product

logger = logging.getLogger(__name__)


class CreateProductDTO(BaseModel):
    name: str
    description: str
    price: Decimal = Field(ge=0)
    image_url: str
    category: str
    stock: int = Field(ge=0)


class ProductsService:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def create(self, dto: CreateProductDTO) -> Product:
        product = Product(id=str(uuid.uuid4()), created_at=datetime.now(timezone.utc), **dto.model_dump())
        async with self._uow() as uow:
            await uow.products.create(product)
            await uow.commit()
        logger.info(f"Product created: {product.id}")
        return product

    async def get(self, product_id: str) -> Product:
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
        if not product:
            raise ProductNotFoundError(f"Product {product_id} not found")
        return product

    async def list(self, category: Optional[str] = None) -> List[Product]:
        async with self._uow() as uow:
            return await uow.products.list(category=category)

    async def update_stock(self, product_id: str, stock: int) -> Product:
        if stock < 0:
            raise ValidationError([FieldError("stock", "Stock cannot be negative")])
        async with self._uow() as uow:
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(f"Product {product_id} not found")
            await uow.products.set_stock(product_id, stock)
            await uow.commit()
        return product.model_copy(update={"stock": stock})
