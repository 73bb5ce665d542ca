# storefront/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import admin, auth, cart, checkout, favorites, orders, products
from .settings import settings
from .order_status import InvalidStatusTransition
from .pricing import PricingError
from .services.errors import NotFound

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("storefront")

app = FastAPI(title="Nexura Storefront API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(products.router)
app.include_router(cart.router)
app.include_router(checkout.router)
app.include_router(orders.router)
app.include_router(favorites.router)
app.include_router(auth.router)
app.include_router(admin.router)


@app.exception_handler(PricingError)
async def _pricing_error(request: Request, exc: PricingError):
    # checkout must not go through with bad line items
    return JSONResponse(status_code=400, content={"detail": str(exc), "error": type(exc).__name__})


@app.exception_handler(NotFound)
async def _not_found(request: Request, exc: NotFound):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(InvalidStatusTransition)
async def _bad_transition(request: Request, exc: InvalidStatusTransition):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(PermissionError)
async def _forbidden(request: Request, exc: PermissionError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.get("/")
def root():
    return {"message": "Nexura Storefront API is running"}


@app.on_event("startup")
def _startup():
    logger.info("storefront starting (project=%s, express surcharge=%.2f, tax slabs=%s)",
                settings.firebase_project_id, settings.express_shipping_surcharge,
                list(settings.tax_slabs))
