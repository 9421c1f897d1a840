"""
Chart-of-accounts service: the account tree and balance propagation.

This service enforces the rules on the account hierarchy:
1. Codes are unique
2. Parents are header accounts
3. Headers never receive postings; accounts with postings never become headers
4. Referenced accounts are never deleted

It also owns the one rule every balance in the system follows:
the signed delta of a line against its account's nature.
"""

import logging
from collections.abc import Iterable
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.orm import Session

from waqf_ledger.errors import (
    ValidationError,
    NotFoundError,
    ReferentialIntegrityError,
    account_not_found,
    account_delete_blocked,
)
from waqf_ledger.models.account import Account
from waqf_ledger.models.audit_log import AuditLog
from waqf_ledger.models.enums import AccountNature, AccountType, DEFAULT_NATURE
from waqf_ledger.models.fiscal_year import OpeningBalance
from waqf_ledger.models.journal_entry import JournalEntryLine
from waqf_ledger.schemas.account import AccountCreate, AccountUpdate

logger = logging.getLogger(__name__)


def signed_delta(
    nature: AccountNature, debit: Decimal, credit: Decimal
) -> Decimal:
    """
    Balance change caused by one line on an account of this nature.

    Debit-nature accounts grow with debits, credit-nature accounts
    grow with credits. Trial balance, general ledger and posting
    all use this function so they can never disagree.
    """
    debit = debit or Decimal("0")
    credit = credit or Decimal("0")
    if nature == AccountNature.DEBIT:
        return debit - credit
    return credit - debit


class ChartOfAccountsService:
    """
    All account-tree operations pass through this service.

    Like every service here, it takes the caller's session and
    only flushes. The caller decides when to commit or rollback.
    """

    def __init__(self, db: Session):
        self.db = db

    # --- Lookups ---

    def get_account(self, account_id: int) -> Account:
        account = self.db.get(Account, account_id)
        if not account:
            raise NotFoundError(account_not_found(account_id))
        return account

    def get_account_by_code(self, code: str) -> Account:
        account = self.db.execute(
            select(Account).where(Account.code == code)
        ).scalar_one_or_none()
        if not account:
            raise NotFoundError(f"Account with code '{code}' not found")
        return account

    def list_accounts(self) -> list[Account]:
        """Return the whole chart, ordered by code."""
        return list(
            self.db.execute(select(Account).order_by(Account.code)).scalars().all()
        )

    def list_active_leaf_accounts(self) -> list[Account]:
        """Accounts that may appear on a journal line, ordered by code."""
        accounts = self.db.execute(
            select(Account)
            .where(Account.is_active.is_(True), Account.is_header.is_(False))
            .order_by(Account.code)
        ).scalars().all()
        return list(accounts)

    def type_distribution(self) -> dict[AccountType, int]:
        """Count active accounts per account type. Every type is present."""
        rows = self.db.execute(
            select(Account.account_type, func.count(Account.id))
            .where(Account.is_active.is_(True))
            .group_by(Account.account_type)
        ).all()
        distribution = {account_type: 0 for account_type in AccountType}
        for account_type, count in rows:
            distribution[account_type] = count
        return distribution

    # --- Mutations ---

    def create_account(self, request: AccountCreate) -> Account:
        """
        Create a chart-of-accounts node.

        Raises ValidationError if the code is taken or the parent
        is missing or not a header.
        """
        self._ensure_code_free(request.code)
        if request.parent_id is not None:
            self._validate_parent(request.parent_id)

        account = Account(
            code=request.code,
            name_ar=request.name_ar,
            name_en=request.name_en,
            description=request.description,
            account_type=request.account_type,
            account_nature=(
                request.account_nature or DEFAULT_NATURE[request.account_type]
            ),
            parent_id=request.parent_id,
            is_header=request.is_header,
            is_active=request.is_active,
            current_balance=Decimal("0"),
        )
        self.db.add(account)
        self.db.flush()
        logger.info("Created account %s (%s)", account.code, account.account_type.value)
        return account

    def update_account(self, account_id: int, request: AccountUpdate) -> Account:
        """
        Apply a partial update, rejecting changes that would break the tree.

        A header that still has children cannot become a posting
        account, and an account that already carries journal lines
        cannot become a header or change its nature.
        """
        account = self.get_account(account_id)
        changes = request.model_dump(exclude_unset=True)

        if "code" in changes and changes["code"] != account.code:
            self._ensure_code_free(changes["code"])

        if "is_header" in changes and changes["is_header"] != account.is_header:
            if changes["is_header"]:
                if self._count_lines(account.id):
                    raise ValidationError(
                        f"Account {account.code} has journal lines and "
                        f"cannot become a header account"
                    )
            elif self._count_children(account.id):
                raise ValidationError(
                    f"Account {account.code} has child accounts and "
                    f"cannot become a posting account"
                )

        if (
            changes.get("account_nature") is not None
            and changes["account_nature"] != account.account_nature
            and self._count_lines(account.id)
        ):
            raise ValidationError(
                f"Account {account.code} has journal lines; "
                f"its nature cannot change"
            )

        if "parent_id" in changes and changes["parent_id"] is not None:
            self._validate_parent(changes["parent_id"], moving=account)

        for field in ("account_type", "account_nature", "name_ar", "code"):
            if field in changes and changes[field] is None:
                del changes[field]

        for field, value in changes.items():
            setattr(account, field, value)

        self.db.flush()
        logger.info("Updated account %s: %s", account.code, sorted(changes))
        return account

    def delete_account(self, account_id: int) -> None:
        """
        Delete an account nobody references.

        Raises ReferentialIntegrityError when children, journal lines
        or opening balances still point at it. Nothing is cascaded.
        """
        account = self.get_account(account_id)
        child_count = self._count_children(account.id)
        line_count = self._count_lines(account.id)
        opening_count = self.db.execute(
            select(func.count(OpeningBalance.id))
            .where(OpeningBalance.account_id == account.id)
        ).scalar()

        if child_count or line_count or opening_count:
            raise ReferentialIntegrityError(
                account_delete_blocked(
                    account.code, child_count, line_count, opening_count
                )
            )

        self.db.add(AuditLog(
            event_type="account_deleted",
            entity_type="account",
            entity_id=account.id,
            details=f"Deleted account {account.code} ({account.name_ar})",
        ))
        self.db.delete(account)
        self.db.flush()
        logger.info("Deleted account %s", account.code)

    def apply_balance_deltas(self, lines: Iterable[JournalEntryLine]) -> None:
        """
        Add each line's signed delta to its account's cached balance.

        Only called by the posting step of the journal service, inside
        the same savepoint as the status change.
        """
        lines = list(lines)
        account_ids = {line.account_id for line in lines}
        accounts = self.db.execute(
            select(Account).where(Account.id.in_(account_ids))
        ).scalars().all()
        accounts_by_id = {a.id: a for a in accounts}

        missing = account_ids - set(accounts_by_id)
        if missing:
            raise NotFoundError(f"Accounts not found: {sorted(missing)}")

        for line in lines:
            account = accounts_by_id[line.account_id]
            delta = signed_delta(
                account.account_nature, line.debit_amount, line.credit_amount
            )
            account.current_balance = (
                account.current_balance or Decimal("0")
            ) + delta

        self.db.flush()

    # --- Helpers ---

    def _ensure_code_free(self, code: str) -> None:
        existing = self.db.execute(
            select(Account.id).where(Account.code == code)
        ).scalar_one_or_none()
        if existing is not None:
            raise ValidationError(f"Account with code '{code}' already exists")

    def _validate_parent(self, parent_id: int, moving: Account | None = None) -> Account:
        parent = self.db.get(Account, parent_id)
        if not parent:
            raise ValidationError(f"Parent account {parent_id} not found")
        if not parent.is_header:
            raise ValidationError(
                f"Parent account {parent.code} is not a header account"
            )
        if moving is not None:
            # Walk up from the new parent; meeting the moved account is a cycle
            node = parent
            while node is not None:
                if node.id == moving.id:
                    raise ValidationError(
                        f"Account {moving.code} cannot be placed under "
                        f"itself or one of its descendants"
                    )
                node = self.db.get(Account, node.parent_id) if node.parent_id else None
        return parent

    def _count_children(self, account_id: int) -> int:
        return self.db.execute(
            select(func.count(Account.id)).where(Account.parent_id == account_id)
        ).scalar()

    def _count_lines(self, account_id: int) -> int:
        return self.db.execute(
            select(func.count(JournalEntryLine.id))
            .where(JournalEntryLine.account_id == account_id)
        ).scalar()
