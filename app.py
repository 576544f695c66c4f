import logging

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import AuthService, authenticate, get_auth_service, require_admin
from config import Settings, get_settings
from errors import InternalError, SweetShopError, ValidationError
from inventory import InventoryService
from models import get_mongo_collections
from schemas import Identity, LoginRequest, RegisterRequest, RestockRequest, SweetCreate, SweetUpdate

logger = logging.getLogger(__name__)


def get_inventory_service(request: Request) -> InventoryService:
    return request.app.state.inventory_service


# ------------------------------------------------------------
# User registration and login
# ------------------------------------------------------------

auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(payload: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return service.register(payload.username, payload.email, payload.password, payload.role)


@auth_router.post("/login")
def login_user(payload: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return service.login(payload.email, payload.password)


# ------------------------------------------------------------
# Sweets inventory
# ------------------------------------------------------------

items_router = APIRouter(prefix="/items", tags=["items"])

"""  Any logged in user can use these endpoints.  """

# gets all the sweets in the inventory
@items_router.get("")
def list_sweets(_: Identity = Depends(authenticate),
                service: InventoryService = Depends(get_inventory_service)):
    return service.list_all()

# search sweets, e.g. /items/search?name=choc&minPrice=5&maxPrice=10
# declared before /{sweet_id} so "search" isn't read as an id
@items_router.get("/search")
def search_sweets(
    name: str | None = None,
    category: str | None = None,
    min_price: float | None = Query(None, alias="minPrice"),
    max_price: float | None = Query(None, alias="maxPrice"),
    _: Identity = Depends(authenticate),
    service: InventoryService = Depends(get_inventory_service),
):
    return service.search(name=name, category=category, min_price=min_price, max_price=max_price)

# gets a single sweet
@items_router.get("/{sweet_id}")
def get_sweet(sweet_id: str, _: Identity = Depends(authenticate),
              service: InventoryService = Depends(get_inventory_service)):
    return service.get(sweet_id)

# buy one unit
@items_router.post("/{sweet_id}/purchase")
def purchase_sweet(sweet_id: str, _: Identity = Depends(authenticate),
                   service: InventoryService = Depends(get_inventory_service)):
    return service.purchase(sweet_id)

"""  Only admins can use these endpoints.  """

# create a sweet
@items_router.post("", status_code=status.HTTP_201_CREATED)
def create_sweet(item: SweetCreate, _: Identity = Depends(require_admin),
                 service: InventoryService = Depends(get_inventory_service)):
    return service.add(item.model_dump())

# update a sweet, only the fields sent are changed
@items_router.put("/{sweet_id}")
def update_sweet(sweet_id: str, updates: SweetUpdate, _: Identity = Depends(require_admin),
                 service: InventoryService = Depends(get_inventory_service)):
    return service.update(sweet_id, updates.model_dump(exclude_unset=True))

# delete a sweet
@items_router.delete("/{sweet_id}")
def delete_sweet(sweet_id: str, _: Identity = Depends(require_admin),
                 service: InventoryService = Depends(get_inventory_service)):
    return service.remove(sweet_id)

# add stock, body is {"amount": 10}
@items_router.post("/{sweet_id}/restock")
def restock_sweet(sweet_id: str, payload: RestockRequest | None = None,
                  _: Identity = Depends(require_admin),
                  service: InventoryService = Depends(get_inventory_service)):
    amount = payload.amount if payload else None
    return service.restock(sweet_id, amount)


# ------------------------------------------------------------
# Error handlers, every failure becomes {"error": <message>}
# ------------------------------------------------------------

async def handle_sweet_shop_error(request: Request, exc: SweetShopError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def handle_request_validation_error(request: Request, exc: RequestValidationError):
    fields = {}
    for error in exc.errors():
        loc = [str(part) for part in error["loc"] if part not in ("body", "query", "path")]
        fields[".".join(loc) or "body"] = error["msg"]
    return await handle_sweet_shop_error(request, ValidationError(fields))


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    # unknown paths and wrong methods
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                        headers=getattr(exc, "headers", None))


async def handle_store_error(request: Request, exc: PyMongoError):
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return await handle_sweet_shop_error(request, InternalError())


async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return await handle_sweet_shop_error(request, InternalError())


# ------------------------------------------------------------
# Application factory
# ------------------------------------------------------------

def create_app(settings: Settings | None = None, client: MongoClient | None = None) -> FastAPI:
    """Build the API around an explicitly constructed Mongo client.

    Tests pass their own ``client`` (e.g. mongomock); otherwise one is
    created from ``settings.mongo_url``.
    """
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level)

    if client is None:
        client = MongoClient(settings.mongo_url)
    users_collection, sweets_collection = get_mongo_collections(client, settings.database_name)

    app = FastAPI(title=settings.app_name)
    app.state.settings = settings
    app.state.auth_service = AuthService(users_collection, settings)
    app.state.inventory_service = InventoryService(sweets_collection)

    app.add_exception_handler(SweetShopError, handle_sweet_shop_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(PyMongoError, handle_store_error)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.include_router(auth_router)
    app.include_router(items_router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    logger.info("%s ready, database %s", settings.app_name, settings.database_name)
    return app


# ------------------------------------------------------------
# Run the app:  uvicorn app:create_app --factory
# ------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
