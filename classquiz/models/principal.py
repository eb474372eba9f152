from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated identity extracted from a validated JWT.

    Carried through the request via FastAPI's dependency system.
    Endpoints receive this instead of a raw user id string.

        user_id: subject from JWT
        roles: platform roles (student, teacher)
    """

    user_id: str
    roles: frozenset[str]

    def has_role(self, role: str) -> bool:
        return role in self.roles

    def has_any_role(self, roles: set[str]) -> bool:
        return bool(self.roles & roles)

    @property
    def is_teacher(self) -> bool:
        return "teacher" in self.roles

    @property
    def is_student(self) -> bool:
        return "student" in self.roles
