"""
Chart of accounts model.

Every account in the endowment's books (cash at bank, rental
revenue, beneficiary distributions, ...) is a row here. Accounts
form a tree through parent_id. Header accounts only aggregate
their children; journal lines may only reference active leaves.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, Boolean, DateTime, Numeric, Text, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from waqf_ledger.models.base import Base
from waqf_ledger.models.enums import AccountType, AccountNature


class Account(Base):
    """
    A single node in the chart of accounts.

    current_balance is a cache of the signed posted activity on the
    account. Only the posting step of the journal engine writes it.
    A child stores its parent's id and nothing else; the tree is
    walked through queries, never through object references.
    """

    __tablename__ = "accounts"

    id: Mapped[int] = mapped_column(primary_key=True)
    code: Mapped[str] = mapped_column(
        String(50), unique=True, nullable=False, index=True
    )
    name_ar: Mapped[str] = mapped_column(String(200), nullable=False)
    name_en: Mapped[str | None] = mapped_column(String(200), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, name="account_type_enum"),
        nullable=False,
    )
    account_nature: Mapped[AccountNature] = mapped_column(
        SAEnum(AccountNature, name="account_nature_enum"),
        nullable=False,
    )
    parent_id: Mapped[int | None] = mapped_column(
        ForeignKey("accounts.id"), nullable=True, index=True
    )
    is_header: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    current_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def is_postable(self) -> bool:
        """Only active leaf accounts may receive journal lines."""
        return self.is_active and not self.is_header

    def __repr__(self) -> str:
        return f"<Account {self.code} ({self.account_type.value})>"
