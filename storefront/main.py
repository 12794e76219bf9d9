from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from storefront.config import get_settings
from storefront.routers import addresses, admin_catalog, cart, orders, payments, products
from storefront.utils.errors import StorefrontError

logging.basicConfig(level=get_settings().LOG_LEVEL, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger("storefront")

app = FastAPI(title="Storefront")


@app.on_event("startup")
def on_startup():
    # Ensure all DB tables exist after all models are imported
    from storefront.models.user import Base, engine  # Base/engine single source
    import storefront.models.product  # register Product, Category, Attribute and variant models
    import storefront.models.cart  # register Cart/CartItem models
    import storefront.models.order  # register Order/OrderItem models
    import storefront.models.address  # register Address model
    import storefront.models.payment  # register Payment model
    Base.metadata.create_all(bind=engine)


@app.exception_handler(StorefrontError)
def handle_storefront_error(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def handle_request_validation_error(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = first.get("msg", "Invalid request")
    detail = f"{field}: {message}" if field else message
    return JSONResponse(status_code=400, content={"detail": detail, "kind": "validation"})


# CORS configuration for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(products.router, prefix="/api/products", tags=["products"])
app.include_router(products.admin_router, prefix="/api/admin/products", tags=["admin-products"])
app.include_router(admin_catalog.categories_router, prefix="/api/admin/categories", tags=["admin-categories"])
app.include_router(admin_catalog.attributes_router, prefix="/api/admin/attributes", tags=["admin-attributes"])
app.include_router(cart.router, prefix="/api/cart", tags=["cart"])
app.include_router(addresses.router, prefix="/api/user/addresses", tags=["addresses"])
app.include_router(payments.router, prefix="/api/user/payments", tags=["payments"])
app.include_router(orders.router, prefix="/api/orders", tags=["orders"])


@app.get("/health")
def health():
    return {"status": "ok"}


# --- Entry point for local runs ---
if __name__ == "__main__":
    import os

    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("storefront.main:app", host="0.0.0.0", port=port, reload=False)
