from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Literal, MutableMapping, Optional

SESSION_KEY = "portal_user"

Role = Literal["lecturer", "student", "super_admin"]
ROLES = ("lecturer", "student", "super_admin")


@dataclass(frozen=True)
class PortalSession:
    """
    The signed-in user for one request.

    Handlers receive it explicitly. ``load`` is called at request start and
    ``save`` at request end against whatever mapping backs the session
    (``st.session_state`` in the Streamlit page).
    """

    user_id: str
    email: str
    role: Role
    display_name: Optional[str] = None
    matric_number: Optional[str] = None

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise ValueError(f"Unknown role {self.role!r}; expected one of {ROLES}.")

    @property
    def is_lecturer(self) -> bool:
        return self.role in ("lecturer", "super_admin")

    @classmethod
    def load(cls, store: MutableMapping) -> Optional["PortalSession"]:
        data = store.get(SESSION_KEY)
        if not data:
            return None
        return cls(**data)

    def save(self, store: MutableMapping) -> None:
        store[SESSION_KEY] = asdict(self)

    @staticmethod
    def clear(store: MutableMapping) -> None:
        store.pop(SESSION_KEY, None)
