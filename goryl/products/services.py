from fastapi import HTTPException, status
from goryl.audit.repository import write_audit
from goryl.categories.repository import category_by_slug, refresh_product_count
from goryl.categories.services import drop_category_cache
from goryl.common.utils import now
from goryl.products.constants import logger
from goryl.products.models import ProductCreateIn, ReviewIn
from goryl.products.repository import buyer_received_product, product_by_pid, review_exists
from goryl.schema.full_schema import Product, ProductStatus, Review


async def create_product(session, payload: ProductCreateIn, seller_id: int) -> Product:
    category = await category_by_slug(session, payload.category_slug)
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")

    product = Product(seller_id=seller_id, category_id=category.id, name=payload.name.strip(),
                      description=payload.description, price=payload.price, stock_qty=payload.stock_qty,
                      image_url=payload.image_url)
    session.add(product)
    await session.flush()
    return product


async def moderate_product(session, product_pid: str, approve: bool, reason, actor_id: int) -> Product:
    product = await product_by_pid(session, product_pid)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    if not approve and not (reason or "").strip():
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Please provide a rejection reason")

    product.status = ProductStatus.APPROVED.value if approve else ProductStatus.REJECTED.value
    product.rejection_reason = None if approve else reason.strip()
    product.updated_at = now()
    session.add(product)
    await session.flush()
    await refresh_product_count(session, product.category_id)

    action = "product.approve" if approve else "product.reject"
    await write_audit(session, actor_id, "admin", action, "product", str(product.public_id),
                      None if approve else {"reason": product.rejection_reason})
    logger.info(action, extra={"product_id": str(product.public_id)})
    return product


async def add_review(session, product_pid: str, payload: ReviewIn, reviewer_id: int) -> Review:
    product = await product_by_pid(session, product_pid)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    if not await buyer_received_product(session, reviewer_id, product.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only review products you have received")
    if await review_exists(session, product.id, reviewer_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="You have already reviewed this product")

    review = Review(product_id=product.id, seller_id=product.seller_id, reviewer_id=reviewer_id,
                    rating=payload.rating, comment=payload.comment)
    session.add(review)
    await session.flush()
    return review


async def after_moderation():
    # product counts are part of the cached category list
    await drop_category_cache()
