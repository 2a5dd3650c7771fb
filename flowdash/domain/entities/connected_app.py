"""ConnectedApp aggregate.

Connection state for a third-party service a workflow step may depend on.
Apps without an owner (user_id None) form the system-wide catalog of
available integrations.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from flowdash.domain.enums import AppConnectionStatus
from flowdash.domain.events import (
    ConnectedAppConnected,
    ConnectedAppDisconnected,
    ConnectedAppLinked,
    EventRecorder,
)
from flowdash.domain.exceptions import (
    PreconditionViolationException,
    ValidationException,
)
from flowdash.domain.value_objects.core import ConnectedAppId, UserId, WorkflowId
from flowdash.shared.utils.datetime import ensure_utc, utc_now

TOKEN_REFRESH_WINDOW = timedelta(minutes=5)


@dataclass(eq=False)
class ConnectedApp(EventRecorder):
    """Domain aggregate for an external application connection.

    Invariant: access_token is None whenever status is DISCONNECTED.
    """

    user_id: UserId | None
    name: str
    description: str = ""
    icon: str = ""
    status: AppConnectionStatus = AppConnectionStatus.DISCONNECTED
    config: dict[str, Any] = field(default_factory=dict)
    id: ConnectedAppId | None = None
    access_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    token_expiry: datetime | None = None
    last_error: str | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    version: int = 0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationException("Connected app name is required", field="name")
        if self.status == AppConnectionStatus.DISCONNECTED:
            self.access_token = None
        self.token_expiry = ensure_utc(self.token_expiry)

    @classmethod
    def create(
        cls,
        user_id: UserId | None,
        name: str,
        description: str = "",
        icon: str = "",
        config: dict[str, Any] | None = None,
    ) -> "ConnectedApp":
        """Create a new app record in DISCONNECTED state."""
        return cls(
            user_id=user_id,
            name=name,
            description=description,
            icon=icon,
            config=dict(config or {}),
        )

    @property
    def is_new(self) -> bool:
        return self.id is None

    def belongs_to(self, user_id: UserId) -> bool:
        return self.user_id == user_id

    def is_connected(self) -> bool:
        return self.status == AppConnectionStatus.CONNECTED

    def has_valid_token(self, now: datetime | None = None) -> bool:
        """Return True if an access token is present and not expired."""
        if not self.access_token:
            return False
        if self.token_expiry is None:
            return True
        return self.token_expiry > (now or utc_now())

    def expires_within(
        self,
        window: timedelta = TOKEN_REFRESH_WINDOW,
        now: datetime | None = None,
    ) -> bool:
        """Return True if the access token expires within the window."""
        if not self.access_token or self.token_expiry is None:
            return False
        return (now or utc_now()) >= self.token_expiry - window

    def needs_token_refresh(
        self,
        now: datetime | None = None,
        window: timedelta = TOKEN_REFRESH_WINDOW,
    ) -> bool:
        """Return True if the token expires within the window and can be refreshed."""
        if not self.refresh_token:
            return False
        return self.expires_within(window, now)

    def is_usable(self, now: datetime | None = None) -> bool:
        """Connected and holding a valid token; what a requiresApp step needs."""
        return self.is_connected() and self.has_valid_token(now)

    def update_details(self, name: str, description: str) -> None:
        if not name or not name.strip():
            raise ValidationException("Connected app name is required", field="name")
        self.name = name
        self.description = description
        self._touch()

    def update_config(self, config: dict[str, Any]) -> None:
        self.config = dict(config)
        self._touch()

    def connect(
        self,
        access_token: str,
        refresh_token: str | None = None,
        token_expiry: datetime | None = None,
    ) -> None:
        if not access_token:
            raise ValidationException("Access token is required", field="access_token")
        self.status = AppConnectionStatus.CONNECTED
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.token_expiry = ensure_utc(token_expiry)
        self.last_error = None
        self._touch()
        self._record(
            ConnectedAppConnected(
                app_id=self._id_value(), user_id=self._user_id_value(), app_name=self.name
            )
        )

    def disconnect(self) -> None:
        """Move to DISCONNECTED and clear every token field."""
        self.status = AppConnectionStatus.DISCONNECTED
        self.access_token = None
        self.refresh_token = None
        self.token_expiry = None
        self._touch()
        self._record(
            ConnectedAppDisconnected(
                app_id=self._id_value(), user_id=self._user_id_value(), app_name=self.name
            )
        )

    def mark_as_error(self, error_message: str) -> None:
        self.status = AppConnectionStatus.ERROR
        self.last_error = error_message
        self._touch()

    def link_to_workflow(self, workflow_id: WorkflowId) -> None:
        """Record that a workflow depends on this app.

        Raises:
            PreconditionViolationException: If the app is not connected.
        """
        if not self.is_connected():
            raise PreconditionViolationException(
                "Cannot link disconnected app to workflow",
                app_name=self.name,
            )
        self._record(
            ConnectedAppLinked(
                app_id=self._id_value(),
                user_id=self._user_id_value(),
                workflow_id=workflow_id.value,
            )
        )

    def refresh_access_token(
        self, new_access_token: str, new_expiry: datetime | None = None
    ) -> None:
        """Replace the access token using the stored refresh token.

        Raises:
            PreconditionViolationException: If no refresh token is stored.
        """
        if not self.refresh_token:
            raise PreconditionViolationException(
                "No refresh token available", app_name=self.name
            )
        self.access_token = new_access_token
        self.token_expiry = ensure_utc(new_expiry)
        self._touch()

    def mark_persisted(self, app_id: ConnectedAppId, version: int) -> None:
        """Record the identity and version assigned by a repository write."""
        if self.id is not None and self.id != app_id:
            raise ValueError(f"Connected app already has id {self.id}")
        self.id = app_id
        self.version = version
        self._stamp_identity("app_id", app_id.value)

    def to_dict(self) -> dict[str, Any]:
        """Serializable view; secrets are never included."""
        return {
            "id": self._id_value(),
            "user_id": self._user_id_value(),
            "name": self.name,
            "description": self.description,
            "icon": self.icon,
            "status": self.status.value,
            "token_expiry": self.token_expiry.isoformat() if self.token_expiry else None,
            "has_valid_token": self.has_valid_token(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def _id_value(self) -> int | None:
        return self.id.value if self.id else None

    def _user_id_value(self) -> int | None:
        return self.user_id.value if self.user_id else None

    def _touch(self) -> None:
        now = utc_now()
        self.updated_at = now if now > self.updated_at else self.updated_at
