from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from goryl.common.utils import success_response
from goryl.db.dependencies import get_session
from goryl.products.constants import logger
from goryl.products.models import ProductCreateIn, ProductReviewIn, ReviewIn
from goryl.products.repository import list_products, product_by_pid
from goryl.products.services import add_review, after_moderation, create_product, moderate_product
from goryl.products.utils import product_out
from goryl.schema.full_schema import ProductStatus
from goryl.users.dependencies import require_permissions, require_user

prods_public_router=APIRouter()
prods_admin_router=APIRouter()


@prods_public_router.post("", dependencies=[require_permissions("product:create")])
async def seller_create_product(request:Request, payload: ProductCreateIn, session: AsyncSession = Depends(get_session)):

    user_pid = request.state.user_public_id
    logger.info("product.create.attempt", extra={"user": user_pid})

    product = await create_product(session, payload, request.state.user_identifier)
    await session.commit()

    logger.info("product.create.success",extra={"product_id": str(product.public_id), "user": user_pid})
    return success_response({"message": "Product submitted for review", "product": product_out(product)},
                            status_code=status.HTTP_201_CREATED)


@prods_public_router.get("/mine")
async def seller_products(user_id: int = Depends(require_user), session: AsyncSession = Depends(get_session)):
    products = await list_products(session, seller_id=user_id)
    return success_response({"items": [product_out(p) for p in products]})


@prods_public_router.get("/{product_public_id}")
async def get_product_details(request: Request, product_public_id: str, session: AsyncSession = Depends(get_session)):

    product = await product_by_pid(session, product_public_id)
    viewer = request.state.user_identifier
    if not product or (product.status != ProductStatus.APPROVED.value and product.seller_id != viewer):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return success_response(product_out(product))


@prods_public_router.post("/{product_public_id}/reviews", dependencies=[require_permissions("review:write")])
async def review_product(request: Request, product_public_id: str, payload: ReviewIn,
                         session: AsyncSession = Depends(get_session)):

    review = await add_review(session, product_public_id, payload, request.state.user_identifier)
    await session.commit()
    logger.info("review.created", extra={"product_id": product_public_id})
    return success_response({"message": "Review added", "id": str(review.public_id)}, status_code=status.HTTP_201_CREATED)

#---------------------------------------------------------------------------------------------------------

@prods_admin_router.get("", dependencies=[require_permissions("products:moderate")])
async def admin_list_products(status_filter: Optional[str] = Query(None, alias="status"),
                              session: AsyncSession = Depends(get_session)):
    products = await list_products(session, status=status_filter, limit=500)
    return success_response({"items": [product_out(p) for p in products]})


@prods_admin_router.post("/{product_public_id}/approve", dependencies=[require_permissions("products:moderate")])
async def admin_approve_product(request: Request, product_public_id: str, session: AsyncSession = Depends(get_session)):
    product = await moderate_product(session, product_public_id, True, None, request.state.user_identifier)
    await session.commit()
    await after_moderation()
    return success_response({"message": "Product approved", "product": product_out(product)})


@prods_admin_router.post("/{product_public_id}/reject", dependencies=[require_permissions("products:moderate")])
async def admin_reject_product(request: Request, product_public_id: str, payload: ProductReviewIn,
                               session: AsyncSession = Depends(get_session)):
    product = await moderate_product(session, product_public_id, False, payload.reason, request.state.user_identifier)
    await session.commit()
    await after_moderation()
    return success_response({"message": "Product rejected", "product": product_out(product)})
