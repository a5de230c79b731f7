import logging

from auth import TokenClaims, create_access_token, hash_password, verify_password
from database import Database
from errors import DuplicateUsername, InvalidCredentials, NotFound, ValidationError
from models import DEFAULT_IMAGE_URL, Event, EventType, Role, User
from query import EventPage, EventQuery, run_query
from utils import check_date_range, check_event_permission, normalize_date, utc_now

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 6

REQUIRED_EVENT_FIELDS = ("title", "description", "event_type")
MUTABLE_EVENT_FIELDS = (
    "title", "description", "event_type", "image_url", "location", "start_date", "end_date",
)


class UserManager:
    def __init__(self, db: Database):
        """Initialize UserManager with the credential store."""
        self.db = db

    @staticmethod
    def _to_user(data: dict) -> User:
        return User(
            id=data["id"],
            username=data["username"],
            password_hash=data["password_hash"],
            password_salt=data["password_salt"],
            role=Role(data["role"]),
            created_at=data["created_at"],
        )

    def register(self, username: str, password: str, role: Role = Role.USER) -> User:
        """Create a user with a hashed password."""
        if not username or len(username) < MIN_USERNAME_LENGTH:
            raise ValidationError(f"Username must be at least {MIN_USERNAME_LENGTH} characters")
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.db.get_user_by_username(username):
            raise DuplicateUsername()
        salt, password_hash = hash_password(password)
        user_id = self.db.add_user(username, password_hash, salt, Role(role).value, utc_now())
        if user_id is None:
            # Lost a race with a concurrent registration of the same name
            raise DuplicateUsername()
        logger.info(f"User {username} registered with role {Role(role).value}")
        return self._to_user(self.db.get_user(user_id))

    def login(self, username: str, password: str) -> tuple[str, User]:
        """Authenticate a user and return an access token with the user."""
        data = self.db.get_user_by_username(username) if username else None
        if not data or not password or not verify_password(password, data["password_salt"], data["password_hash"]):
            logger.info(f"Failed login for {username!r}")
            raise InvalidCredentials()
        user = self._to_user(data)
        token = create_access_token(TokenClaims(user_id=user.id, username=user.username, role=user.role))
        logger.info(f"User {username} logged in")
        return token, user

    def get_current_user(self, user_id: int) -> User:
        data = self.db.get_user(user_id)
        if not data:
            raise NotFound("User not found")
        return self._to_user(data)

    def list_users(self) -> list[User]:
        return [self._to_user(u) for u in self.db.list_users()]

    def ensure_admin(self, username: str, password: str) -> User:
        """Create an admin account unless the username already exists."""
        existing = self.db.get_user_by_username(username)
        if existing:
            return self._to_user(existing)
        return self.register(username, password, role=Role.ADMIN)


class EventManager:
    def __init__(self, db: Database):
        """Initialize EventManager with the event store."""
        self.db = db

    @staticmethod
    def _to_event(data: dict) -> Event:
        return Event(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            event_type=EventType(data["event_type"]),
            image_url=data["image_url"] or DEFAULT_IMAGE_URL,
            location=data["location"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            created_by=data["created_by"],
            created_at=data["created_at"],
            updated_at=data["updated_at"],
        )

    @staticmethod
    def _validate(fields: dict):
        for name in REQUIRED_EVENT_FIELDS:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValidationError("Title, description and event type are required")
        try:
            fields["event_type"] = EventType(fields["event_type"]).value
        except ValueError:
            allowed = ", ".join(t.value for t in EventType)
            raise ValidationError(f"Event type must be one of: {allowed}")
        check_date_range(fields.get("start_date"), fields.get("end_date"))
        # Stored in one ISO form whatever the accepted input format
        fields["start_date"] = normalize_date(fields.get("start_date"))
        fields["end_date"] = normalize_date(fields.get("end_date"))

    def create(self, data: dict, creator_id: int) -> Event:
        """Create a new event owned by creator_id."""
        fields = {k: data.get(k) for k in MUTABLE_EVENT_FIELDS}
        self._validate(fields)
        fields["image_url"] = fields.get("image_url") or DEFAULT_IMAGE_URL
        fields["created_by"] = creator_id
        fields["created_at"] = utc_now()
        event_id = self.db.add_event(fields)
        logger.info(f"Event {event_id} created by {creator_id}")
        return self.get(event_id)

    def get(self, event_id: int) -> Event:
        """Retrieve an event by ID."""
        data = self.db.get_event(event_id)
        if not data:
            raise NotFound("Event not found")
        return self._to_event(data)

    def list_all(self) -> list[Event]:
        """Retrieve all events in creation order."""
        return [self._to_event(e) for e in self.db.list_events()]

    def list_for_user(self, user_id: int) -> list[Event]:
        return [self._to_event(e) for e in self.db.list_events(created_by=user_id)]

    def update(self, event_id: int, patch: dict, requester: TokenClaims) -> Event:
        """Overwrite the given mutable fields of an event; others are kept."""
        changes = {k: v for k, v in patch.items() if k in MUTABLE_EVENT_FIELDS}
        with self.db.lock:
            event = self.get(event_id)
            check_event_permission(event, requester)
            merged = {k: getattr(event, k) for k in MUTABLE_EVENT_FIELDS}
            merged.update(changes)
            self._validate(merged)
            merged["image_url"] = merged.get("image_url") or DEFAULT_IMAGE_URL
            self.db.update_event(event_id, **merged, updated_at=utc_now())
            logger.info(f"Event {event_id} updated by {requester.user_id}")
            return self.get(event_id)

    def delete(self, event_id: int, requester: TokenClaims):
        """Delete an event."""
        with self.db.lock:
            event = self.get(event_id)
            check_event_permission(event, requester)
            self.db.delete_event(event_id)
        logger.info(f"Event {event_id} deleted by {requester.user_id}")

    def query(self, query: EventQuery) -> EventPage:
        return run_query(self.list_all(), query)
