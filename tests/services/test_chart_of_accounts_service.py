"""
Tests for the ChartOfAccountsService.
"""

from datetime import date
from decimal import Decimal

import pytest

from waqf_ledger.errors import (
    ValidationError,
    NotFoundError,
    ReferentialIntegrityError,
)
from waqf_ledger.models.enums import AccountType, AccountNature
from waqf_ledger.schemas.account import AccountCreate, AccountUpdate
from waqf_ledger.schemas.journal import JournalEntryCreate, JournalLineCreate
from waqf_ledger.services.chart_of_accounts_service import (
    ChartOfAccountsService,
    signed_delta,
)
from waqf_ledger.services.journal_service import JournalService


def make_account(service, code, account_type, is_header=False, parent=None, **kwargs):
    return service.create_account(AccountCreate(
        code=code,
        name_ar=f"حساب {code}",
        account_type=account_type,
        is_header=is_header,
        parent_id=parent.id if parent else None,
        **kwargs,
    ))


def post_rent(db_session, chart, amount="100"):
    journal = JournalService(db_session)
    entry = journal.create_entry(JournalEntryCreate(
        entry_date=date(2025, 2, 1),
        description="Rent",
        lines=[
            JournalLineCreate(
                account_id=chart["1.1.1"].id, debit_amount=Decimal(amount)
            ),
            JournalLineCreate(
                account_id=chart["4.1.1"].id, credit_amount=Decimal(amount)
            ),
        ],
    ))
    journal.post(entry.id)
    return entry


class TestSignedDelta:

    def test_debit_nature(self):
        assert signed_delta(AccountNature.DEBIT, Decimal("100"), Decimal("0")) == 100
        assert signed_delta(AccountNature.DEBIT, Decimal("0"), Decimal("40")) == -40

    def test_credit_nature(self):
        assert signed_delta(AccountNature.CREDIT, Decimal("0"), Decimal("100")) == 100
        assert signed_delta(AccountNature.CREDIT, Decimal("25"), Decimal("0")) == -25


class TestCreateAccount:

    def test_nature_defaults_from_type(self, db_session):
        service = ChartOfAccountsService(db_session)
        cash = make_account(service, "1", AccountType.ASSET)
        revenue = make_account(service, "4", AccountType.REVENUE)
        expense = make_account(service, "5", AccountType.EXPENSE)
        db_session.commit()

        assert cash.account_nature == AccountNature.DEBIT
        assert revenue.account_nature == AccountNature.CREDIT
        assert expense.account_nature == AccountNature.DEBIT
        assert cash.current_balance == Decimal("0")

    def test_explicit_nature_kept(self, db_session):
        service = ChartOfAccountsService(db_session)
        # Contra-asset: accumulated depreciation
        account = make_account(
            service, "1.2.9", AccountType.ASSET,
            account_nature=AccountNature.CREDIT,
        )
        assert account.account_nature == AccountNature.CREDIT

    def test_duplicate_code_rejected(self, db_session):
        service = ChartOfAccountsService(db_session)
        make_account(service, "1.1.1", AccountType.ASSET)
        db_session.commit()

        with pytest.raises(ValidationError, match="already exists"):
            make_account(service, "1.1.1", AccountType.ASSET)

    def test_parent_must_be_header(self, db_session):
        service = ChartOfAccountsService(db_session)
        leaf = make_account(service, "1.1.1", AccountType.ASSET)

        with pytest.raises(ValidationError, match="not a header"):
            make_account(service, "1.1.1.1", AccountType.ASSET, parent=leaf)

    def test_unknown_parent_rejected(self, db_session):
        service = ChartOfAccountsService(db_session)
        with pytest.raises(ValidationError, match="Parent account 42 not found"):
            service.create_account(AccountCreate(
                code="9", name_ar="x", account_type=AccountType.ASSET, parent_id=42
            ))


class TestLookups:

    def test_by_code_and_id(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        assert service.get_account_by_code("1.1.1").id == chart["1.1.1"].id
        assert service.get_account(chart["4.1.1"].id).code == "4.1.1"

    def test_missing_account(self, db_session):
        service = ChartOfAccountsService(db_session)
        with pytest.raises(NotFoundError):
            service.get_account(999)
        with pytest.raises(NotFoundError):
            service.get_account_by_code("9.9")

    def test_active_leaf_accounts(self, db_session, chart):
        chart["1.1.2"].is_active = False
        db_session.commit()

        service = ChartOfAccountsService(db_session)
        codes = [a.code for a in service.list_active_leaf_accounts()]

        assert codes == ["1.1.1", "1.2.1", "2.1.1", "3.1.1", "4.1.1", "5.1.1", "5.3.1"]

    def test_type_distribution(self, db_session, chart):
        distribution = ChartOfAccountsService(db_session).type_distribution()

        assert distribution[AccountType.ASSET] == 6
        assert distribution[AccountType.LIABILITY] == 3
        assert distribution[AccountType.EQUITY] == 3
        assert distribution[AccountType.REVENUE] == 3
        assert distribution[AccountType.EXPENSE] == 5

    def test_type_distribution_lists_every_type(self, db_session):
        distribution = ChartOfAccountsService(db_session).type_distribution()
        assert distribution == {account_type: 0 for account_type in AccountType}


class TestUpdateAccount:

    def test_rename(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        account = service.update_account(
            chart["1.1.1"].id, AccountUpdate(name_en="Cash on hand")
        )
        assert account.name_en == "Cash on hand"
        assert account.name_ar == "الصندوق"

    def test_header_with_children_cannot_become_leaf(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        with pytest.raises(ValidationError, match="child accounts"):
            service.update_account(chart["1.1"].id, AccountUpdate(is_header=False))

    def test_account_with_lines_cannot_become_header(
        self, db_session, chart, fiscal_year
    ):
        post_rent(db_session, chart)
        db_session.commit()

        service = ChartOfAccountsService(db_session)
        with pytest.raises(ValidationError, match="cannot become a header"):
            service.update_account(chart["1.1.1"].id, AccountUpdate(is_header=True))

    def test_nature_locked_once_used(self, db_session, chart, fiscal_year):
        post_rent(db_session, chart)
        db_session.commit()

        service = ChartOfAccountsService(db_session)
        with pytest.raises(ValidationError, match="nature cannot change"):
            service.update_account(
                chart["1.1.1"].id,
                AccountUpdate(account_nature=AccountNature.CREDIT),
            )

    def test_cycle_rejected(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        with pytest.raises(ValidationError, match="descendants"):
            service.update_account(chart["1"].id, AccountUpdate(parent_id=chart["1.1"].id))

    def test_duplicate_code_on_update(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        with pytest.raises(ValidationError, match="already exists"):
            service.update_account(chart["1.1.2"].id, AccountUpdate(code="1.1.1"))


class TestDeleteAccount:

    def test_unreferenced_account_deleted(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        service.delete_account(chart["1.2.1"].id)
        db_session.commit()

        with pytest.raises(NotFoundError):
            service.get_account_by_code("1.2.1")

    def test_parent_with_children_blocked(self, db_session, chart):
        service = ChartOfAccountsService(db_session)
        with pytest.raises(ReferentialIntegrityError, match="2 child accounts"):
            service.delete_account(chart["1.1"].id)

    def test_account_with_lines_blocked(self, db_session, chart, fiscal_year):
        post_rent(db_session, chart)
        db_session.commit()

        service = ChartOfAccountsService(db_session)
        with pytest.raises(ReferentialIntegrityError, match="1 journal line"):
            service.delete_account(chart["1.1.1"].id)
        assert service.get_account(chart["1.1.1"].id) is not None

    def test_integrity_error_is_a_value_error(self, db_session, chart):
        with pytest.raises(ValueError):
            ChartOfAccountsService(db_session).delete_account(chart["1"].id)


class TestBalancePropagation:

    def test_posting_moves_balances(self, db_session, chart, fiscal_year):
        post_rent(db_session, chart, "250")
        post_rent(db_session, chart, "50")
        db_session.commit()

        assert chart["1.1.1"].current_balance == Decimal("300")
        assert chart["4.1.1"].current_balance == Decimal("300")
