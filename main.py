from fastapi import FastAPI, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi import status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional, List, Literal
from contextlib import asynccontextmanager
import logging

import uvicorn

import config
from auth import TokenClaims, get_current_user, get_current_admin
from database import db
from errors import AppError
from manager import UserManager, EventManager
from models import EventType
from query import EventQuery, DEFAULT_LIMIT, DEFAULT_PAGE, DEFAULT_SORT_BY, DEFAULT_SORT_DIR

# Logging
logging.basicConfig(level=config.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Database
users = UserManager(db)
manager = EventManager(db)


# FastAPI App
@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.ADMIN_USERNAME and config.ADMIN_PASSWORD:
        users.ensure_admin(config.ADMIN_USERNAME, config.ADMIN_PASSWORD)
        logger.info(f"Admin account {config.ADMIN_USERNAME} available")
    yield
    logger.info("Closing database connection")
    db.close()

app = FastAPI(title="Event Board API", lifespan=lifespan)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# -------------------------------
# Schemas
# -------------------------------
class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserCredentials(BaseModel):
    username: str
    password: str


class EventCreate(CamelModel):
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Python Workshop",
                "description": "Hands-on introduction to FastAPI",
                "eventType": "workshop",
                "location": "Room 4",
                "startDate": "2025-05-01T10:00:00",
                "endDate": "2025-05-01T12:00:00",
            }
        },
    )

    title: str
    description: str
    event_type: EventType
    image_url: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class EventUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    image_url: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None

# -------------------------------
# Error handlers
# -------------------------------
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    message = "Internal server error"
    if config.ENVIRONMENT == "development":
        message = f"{message}: {exc}"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"message": message})

# -------------------------------
# Auth Routes
# -------------------------------
@app.get("/", response_model=dict, summary="API root endpoint")
def root():
    """Welcome message for the Event Board API."""
    return {"message": "Welcome to Event Board API"}

@app.post("/register", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Register a new user")
def register(credentials: UserCredentials):
    """Register a new user with the default role."""
    users.register(credentials.username, credentials.password)
    return {"message": "Registration successful"}

@app.post("/login", response_model=dict, summary="Login and receive an access token")
def login(credentials: UserCredentials):
    """Authenticate user and return an access token."""
    token, user = users.login(credentials.username, credentials.password)
    return {"token": token, "user": user.public_view()}

@app.get("/user", response_model=dict, summary="Current user profile")
def read_current_user(current_user: TokenClaims = Depends(get_current_user)):
    return users.get_current_user(current_user.user_id).public_view()

# -------------------------------
# Event Routes
# -------------------------------
@app.get("/events", response_model=dict, summary="Search, filter, sort and page events")
def list_events(
    search: Optional[str] = None,
    type: Optional[str] = None,
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1),
    sort_by: str = Query(DEFAULT_SORT_BY, alias="sortBy"),
    sort_dir: Literal["asc", "desc"] = Query(DEFAULT_SORT_DIR, alias="sortDir"),
    current_user: TokenClaims = Depends(get_current_user),
):
    """Retrieve a page of events matching the query."""
    query = EventQuery(search=search, type=type, page=page, limit=limit, sort_by=sort_by, sort_dir=sort_dir)
    return manager.query(query).to_dict()

@app.get("/events/user/me", response_model=List[dict], summary="Events created by the current user")
def list_my_events(current_user: TokenClaims = Depends(get_current_user)):
    return [e.to_dict() for e in manager.list_for_user(current_user.user_id)]

@app.get("/events/{event_id}", response_model=dict, summary="Get an event")
def get_event(event_id: int, current_user: TokenClaims = Depends(get_current_user)):
    return manager.get(event_id).to_dict()

@app.post("/events", response_model=dict, status_code=status.HTTP_201_CREATED, summary="Create a new event")
def create_event(event: EventCreate, current_user: TokenClaims = Depends(get_current_user)):
    """Create a new event owned by the current user."""
    return manager.create(event.model_dump(), current_user.user_id).to_dict()

@app.put("/events/{event_id}", response_model=dict, summary="Update an event")
def update_event(event_id: int, event: EventUpdate, current_user: TokenClaims = Depends(get_current_user)):
    """Update an existing event (creator or admins only)."""
    return manager.update(event_id, event.model_dump(exclude_unset=True), current_user).to_dict()

@app.delete("/events/{event_id}", response_model=dict, summary="Delete an event")
def delete_event(event_id: int, current_user: TokenClaims = Depends(get_current_user)):
    """Delete an event (creator or admins only)."""
    manager.delete(event_id, current_user)
    return {"message": "Event deleted successfully"}

# -------------------------------
# Admin Routes
# -------------------------------
@app.get("/admin/users", response_model=List[dict], summary="List all users")
def list_users(current_user: TokenClaims = Depends(get_current_admin)):
    """List every registered user (admins only)."""
    return [u.public_view() for u in users.list_users()]


if __name__ == "__main__":
    uvicorn.run(app, host=config.HOST, port=config.PORT)
