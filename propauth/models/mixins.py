from __future__ import annotations

from sqlalchemy import ForeignKey
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, validates


class CreatedByMixin:
    """
    `created_by` attribution for ownable rows.

    Set once at creation and never changed afterwards. NULL is only legal for
    legacy/seed rows and hides the row from every non-admin scope.
    """

    @declared_attr
    def created_by(cls) -> Mapped[int | None]:
        return mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    @validates("created_by")
    def _validate_created_by(self, key: str, value: int | None) -> int | None:
        current = getattr(self, key, None)
        if current is not None and value != current:
            raise ValueError(f"{type(self).__name__}.created_by is immutable")
        return value
