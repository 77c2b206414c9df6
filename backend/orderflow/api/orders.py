# backend/orderflow/api/orders.py
"""REST API endpoints for the customer purchase order lifecycle."""

from dataclasses import asdict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from orderflow.core.database import get_db
from orderflow.schemas.orders import (
    AdvanceRequest,
    CreateOrderRequest,
    HistoryResponse,
    MarkPaidRequest,
    MarkPaidResponse,
    OrderDetailResponse,
    OrderResponse,
    StartProcessingResponse,
    SweepResponse,
)
from orderflow.services.order_fulfillment import OrderFulfillmentService, OrderLineInput

router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(req: CreateOrderRequest, db: AsyncSession = Depends(get_db)):
    """Check out a customer's order."""
    order = await OrderFulfillmentService(db).create_order(
        customer_id=req.customer_id,
        lines=[OrderLineInput(line.product_id, line.quantity) for line in req.order_lines],
        delivery_price=req.delivery_price,
        address=req.address,
        phone_number=req.phone_number,
        payment_method=req.payment_method,
        total_price=req.total_price,
    )
    return OrderResponse.model_validate(order)


@router.get("", response_model=list[OrderResponse])
async def list_orders(customer_id: str | None = None, db: AsyncSession = Depends(get_db)):
    orders = await OrderFulfillmentService(db).list_orders(customer_id)
    return [OrderResponse.model_validate(o) for o in orders]


# Registered before "/{cpo_id}" routes so the literal path wins
@router.post("/expiry-sweep", response_model=SweepResponse)
async def run_expiry_sweep(db: AsyncSession = Depends(get_db)):
    """Cancel NEW orders left unpaid past the expiry window."""
    result = await OrderFulfillmentService(db).run_expiry_sweep()
    return SweepResponse(**asdict(result))


@router.get("/{cpo_id}", response_model=OrderDetailResponse)
async def get_order(cpo_id: int, db: AsyncSession = Depends(get_db)):
    return OrderDetailResponse(**await OrderFulfillmentService(db).get_order(cpo_id))


@router.get("/{cpo_id}/history", response_model=list[HistoryResponse])
async def get_order_history(cpo_id: int, db: AsyncSession = Depends(get_db)):
    records = await OrderFulfillmentService(db).get_history(cpo_id)
    return [HistoryResponse.model_validate(r) for r in records]


@router.post("/{cpo_id}/paid", response_model=MarkPaidResponse)
async def mark_paid(cpo_id: int, req: MarkPaidRequest, db: AsyncSession = Depends(get_db)):
    """Entry point for the payment verification service."""
    result = await OrderFulfillmentService(db).mark_paid(
        cpo_id, amount=req.amount, payment_method=req.payment_method
    )
    return MarkPaidResponse(
        message=result.message,
        created=result.created,
        merged=result.merged,
        shortages=[asdict(s) for s in result.shortages],
    )


@router.post("/{cpo_id}/process", response_model=StartProcessingResponse)
async def start_processing(cpo_id: int, db: AsyncSession = Depends(get_db)):
    deductions = await OrderFulfillmentService(db).start_processing(cpo_id)
    return StartProcessingResponse(
        message=f"Order {cpo_id} is now processing",
        materials=[asdict(d) for d in deductions],
    )


@router.post("/{cpo_id}/advance", response_model=OrderDetailResponse)
async def advance_order(cpo_id: int, req: AdvanceRequest, db: AsyncSession = Depends(get_db)):
    """Move an order to FINISHED_PROCESS, ON_DELIVERY or COMPLETED."""
    service = OrderFulfillmentService(db)
    await service.advance(cpo_id, req.status)
    return OrderDetailResponse(**await service.get_order(cpo_id))
