"""
Tests for the AutoJournalService and TemplateRegistry.

Every apply() leaves exactly one log row, whether it produced
an entry or not.
"""

from datetime import date
from decimal import Decimal

import pytest

from waqf_ledger.errors import ValidationError, NotFoundError
from waqf_ledger.models.auto_journal import AutoJournalTemplate
from waqf_ledger.models.enums import EntryStatus
from waqf_ledger.schemas.auto_journal import (
    AccountMapping,
    AutoJournalRequest,
    TemplateCreate,
    TemplateUpdate,
)
from waqf_ledger.services.auto_journal_service import AutoJournalService
from waqf_ledger.services.template_registry import (
    ByCode,
    ById,
    ResolvedMapping,
    TemplateRegistry,
)


def by_code(code, percentage=None, fixed_amount=None):
    return AccountMapping(
        account_code=code,
        percentage=Decimal(str(percentage)) if percentage is not None else None,
        fixed_amount=Decimal(str(fixed_amount)) if fixed_amount is not None else None,
    )


def rental_template(service, **overrides):
    fields = dict(
        template_name="Rental receipt",
        trigger_event="rental_receipt",
        debit_accounts=[by_code("1.1.1", percentage=100)],
        credit_accounts=[by_code("4.1.1", percentage=100)],
    )
    fields.update(overrides)
    return service.create_template(TemplateCreate(**fields))


def rental_request(amount="2000", **overrides):
    fields = dict(
        trigger_event="rental_receipt",
        amount=Decimal(amount),
        reference_type="rental_payment",
        reference_id="RP-17",
        description="Shop 4 rent, March",
        entry_date=date(2025, 3, 1),
    )
    fields.update(overrides)
    return AutoJournalRequest(**fields)


class TestTemplateRegistry:

    def test_priority_then_id_ordering(self, db_session, chart):
        service = AutoJournalService(db_session)
        low = rental_template(service, template_name="low", priority=10)
        first = rental_template(service, template_name="first", priority=200)
        second = rental_template(service, template_name="second", priority=200)
        db_session.commit()

        registry = TemplateRegistry.load(db_session)

        assert [t.template_id for t in registry.candidates("rental_receipt")] == [
            first.id, second.id, low.id,
        ]
        assert registry.select("rental_receipt").template_id == first.id
        assert registry.select("unknown") is None

    def test_inactive_templates_excluded(self, db_session, chart):
        service = AutoJournalService(db_session)
        rental_template(service, is_active=False)
        db_session.commit()

        assert TemplateRegistry.load(db_session).triggers() == []

    def test_references_resolved_at_load(self, db_session, chart):
        service = AutoJournalService(db_session)
        rental_template(
            service,
            debit_accounts=[
                AccountMapping(account_id=chart["1.1.2"].id, percentage=Decimal("100")),
            ],
            credit_accounts=[by_code("9.9.9", percentage=100)],
        )
        db_session.commit()

        template = TemplateRegistry.load(db_session).select("rental_receipt")

        assert template.debit[0].ref == ById(chart["1.1.2"].id)
        assert template.debit[0].account_id == chart["1.1.2"].id
        assert template.credit[0].ref == ByCode("9.9.9")
        assert template.credit[0].is_resolved is False

    def test_header_account_does_not_resolve(self, db_session, chart):
        service = AutoJournalService(db_session)
        rental_template(service, debit_accounts=[by_code("1.1", percentage=100)])
        db_session.commit()

        template = TemplateRegistry.load(db_session).select("rental_receipt")
        assert template.debit[0].account_id is None

    def test_amounts(self):
        share = ResolvedMapping(ref=ByCode("1"), account_id=1, percentage=Decimal("33.3333"))
        fixed = ResolvedMapping(ref=ByCode("1"), account_id=1, fixed_amount=Decimal("15"))

        assert share.amount_for(Decimal("100")) == Decimal("33.3333")
        assert fixed.amount_for(Decimal("100")) == Decimal("15")


class TestApply:

    def test_rental_receipt_generates_balanced_draft(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)
        template = rental_template(service)
        db_session.commit()

        entry = service.apply(rental_request())
        db_session.commit()

        assert entry.status == EntryStatus.DRAFT
        assert entry.reference_type == "rental_payment"
        assert entry.reference_id == "RP-17"
        assert len(entry.lines) == 2
        assert entry.lines[0].account_id == chart["1.1.1"].id
        assert entry.lines[0].debit_amount == Decimal("2000")
        assert entry.lines[1].account_id == chart["4.1.1"].id
        assert entry.lines[1].credit_amount == Decimal("2000")

        logs = service.list_logs()
        assert len(logs) == 1
        assert logs[0].success is True
        assert logs[0].template_id == template.id
        assert logs[0].journal_entry_id == entry.id
        assert logs[0].amount == Decimal("2000")

    def test_highest_priority_template_used(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)
        rental_template(service, template_name="to cash", priority=50)
        rental_template(
            service,
            template_name="to bank",
            priority=150,
            debit_accounts=[by_code("1.1.2", percentage=100)],
        )
        db_session.commit()

        entry = service.apply(rental_request())

        assert entry.lines[0].account_id == chart["1.1.2"].id

    def test_split_by_percentage_and_fixed_amount(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)
        rental_template(
            service,
            trigger_event="rental_received",
            debit_accounts=[
                by_code("1.1.2", percentage=90),
                by_code("5.1.1", fixed_amount=200),
            ],
        )
        db_session.commit()

        entry = service.apply(rental_request(trigger_event="rental_received"))

        assert [line.debit_amount for line in entry.lines[:2]] == [
            Decimal("1800"), Decimal("200"),
        ]
        assert entry.total_debit == entry.total_credit

    def test_unresolved_account_dropped(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)
        rental_template(
            service,
            debit_accounts=[by_code("1.1.1", percentage=100), by_code("7.7", percentage=10)],
        )
        db_session.commit()

        entry = service.apply(rental_request())

        assert len(entry.lines) == 2

    def test_no_template_logs_failure(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)

        with pytest.raises(NotFoundError, match="No active auto-journal template"):
            service.apply(rental_request(trigger_event="loan_disbursement"))

        logs = service.list_logs(success=False)
        assert len(logs) == 1
        assert logs[0].template_id is None
        assert logs[0].trigger_event == "loan_disbursement"

    def test_all_accounts_unresolved_fails_with_one_log_row(
        self, db_session, chart, fiscal_year
    ):
        service = AutoJournalService(db_session)
        template = rental_template(
            service,
            debit_accounts=[by_code("8.1", percentage=100)],
            credit_accounts=[by_code("8.2", percentage=100)],
        )
        db_session.commit()

        with pytest.raises(ValidationError, match="produced no journal lines"):
            service.apply(rental_request())
        db_session.commit()

        logs = service.list_logs()
        assert len(logs) == 1
        assert logs[0].success is False
        assert logs[0].template_id == template.id
        assert logs[0].journal_entry_id is None
        assert "no journal lines" in logs[0].error_message
        assert service.journal.list_entries() == []

    def test_one_sided_template_fails_balance_check(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)
        rental_template(service, credit_accounts=[by_code("9.9", percentage=100)])
        db_session.commit()

        with pytest.raises(ValidationError, match="does not balance"):
            service.apply(rental_request())

        assert [log.success for log in service.list_logs()] == [False]

    def test_line_amount_journal_refuses_fails_with_one_log_row(
        self, db_session, chart, fiscal_year
    ):
        # Stored before mappings were limited to four decimal places
        template = AutoJournalTemplate(
            template_name="Legacy fee",
            trigger_event="rental_receipt",
            debit_accounts=[{"account_code": "1.1.1", "fixed_amount": "10.12345"}],
            credit_accounts=[{"account_code": "4.1.1", "fixed_amount": "10.12345"}],
        )
        db_session.add(template)
        db_session.commit()
        service = AutoJournalService(db_session)

        with pytest.raises(ValidationError, match="invalid journal entry"):
            service.apply(rental_request())
        db_session.commit()

        logs = service.list_logs()
        assert len(logs) == 1
        assert logs[0].success is False
        assert logs[0].template_id == template.id
        assert "Legacy fee" in logs[0].error_message
        assert service.journal.list_entries() == []

    def test_template_changes_picked_up(self, db_session, chart, fiscal_year):
        service = AutoJournalService(db_session)
        template = rental_template(service)
        db_session.commit()
        service.apply(rental_request())

        service.update_template(template.id, TemplateUpdate(is_active=False))
        db_session.commit()

        with pytest.raises(NotFoundError):
            service.apply(rental_request())


class TestTemplateManagement:

    def test_mappings_stored_as_json(self, db_session, chart):
        service = AutoJournalService(db_session)
        template = rental_template(service)
        db_session.commit()

        stored = service.get_template(template.id)
        assert stored.debit_accounts == [{"account_code": "1.1.1", "percentage": "100"}]
        assert stored.priority == 100

    def test_mapping_needs_exactly_one_reference(self):
        with pytest.raises(ValueError):
            AccountMapping(percentage=Decimal("100"))
        with pytest.raises(ValueError):
            AccountMapping(account_code="1", account_id=1, percentage=Decimal("100"))
        with pytest.raises(ValueError):
            AccountMapping(account_code="1")

    def test_fixed_amount_limited_to_four_decimals(self):
        assert AccountMapping(
            account_code="1", fixed_amount=Decimal("10.1234")
        ).fixed_amount == Decimal("10.1234")
        with pytest.raises(ValueError):
            AccountMapping(account_code="1", fixed_amount=Decimal("10.12345"))

    def test_list_templates_by_trigger(self, db_session, chart):
        service = AutoJournalService(db_session)
        rental_template(service)
        rental_template(service, trigger_event="payment_made")
        db_session.commit()

        assert len(service.list_templates()) == 2
        assert [t.trigger_event for t in service.list_templates("payment_made")] == [
            "payment_made"
        ]

    def test_missing_template(self, db_session):
        with pytest.raises(NotFoundError):
            AutoJournalService(db_session).get_template(1)
