# backend/orderflow/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from orderflow.api import history, material_purchase_orders, materials, orders, requisitions
from orderflow.core.config import settings
from orderflow.core.database import async_session
from orderflow.core.errors import FulfillmentError
from orderflow.core.init_db import init_db
from orderflow.services.expiry_scheduler import ExpirySweepScheduler

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Order Fulfillment API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(FulfillmentError)
async def fulfillment_error_handler(request: Request, exc: FulfillmentError):
    logger.warning(f"{request.method} {request.url.path} failed: [{exc.kind}] {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.error(f"{request.method} {request.url.path} violated a constraint: {exc.orig}")
    return JSONResponse(
        status_code=409, content={"kind": "integrity", "message": str(exc.orig)}
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"kind": "validation", "message": "Invalid request", "errors": jsonable_encoder(exc.errors())},
    )


@app.on_event("startup")
async def startup():
    await init_db()

    scheduler = ExpirySweepScheduler(async_session, settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
    if settings.EXPIRY_SWEEP_ENABLED:
        scheduler.start()
    else:
        logger.warning("Expiry sweep disabled; NEW orders will not be cancelled automatically")
    app.state.expiry_scheduler = scheduler


@app.on_event("shutdown")
async def shutdown():
    scheduler = getattr(app.state, "expiry_scheduler", None)
    if scheduler is not None:
        await scheduler.stop()


app.include_router(orders.router)
app.include_router(requisitions.router)
app.include_router(material_purchase_orders.router)
app.include_router(materials.router)
app.include_router(history.router)


@app.get("/health")
async def health():
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
