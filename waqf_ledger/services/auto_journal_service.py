"""
Auto-journal service: business events in, balanced draft entries out.

A trigger event (a rental receipt, a beneficiary payment, ...)
selects the highest-priority active template for that trigger.
The template's mappings become journal lines, and the entry is
created through JournalService like any hand-written one, so it
obeys every ledger rule.

Every attempt leaves one row in the auto-journal log, whether it
produced an entry or not.
"""

import logging
from datetime import date
from decimal import Decimal

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from waqf_ledger.errors import LedgerError, ValidationError, NotFoundError
from waqf_ledger.models.auto_journal import AutoJournalTemplate, AutoJournalLog
from waqf_ledger.models.journal_entry import JournalEntry
from waqf_ledger.schemas.auto_journal import (
    AutoJournalRequest,
    TemplateCreate,
    TemplateUpdate,
)
from waqf_ledger.schemas.journal import JournalEntryCreate, JournalLineCreate
from waqf_ledger.services.journal_service import JournalService
from waqf_ledger.services.template_registry import (
    ResolvedMapping,
    ResolvedTemplate,
    TemplateRegistry,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


def _dump_mappings(mappings) -> list[dict]:
    return [m.model_dump(mode="json", exclude_none=True) for m in mappings]


class AutoJournalService:

    def __init__(self, db: Session, registry: TemplateRegistry | None = None):
        self.db = db
        self.journal = JournalService(db)
        self._registry = registry

    @property
    def registry(self) -> TemplateRegistry:
        if self._registry is None:
            self._registry = TemplateRegistry.load(self.db)
        return self._registry

    def reload(self) -> TemplateRegistry:
        """Drop the cached registry so the next apply sees current templates."""
        self._registry = None
        return self.registry

    # --- Templates ---

    def create_template(self, request: TemplateCreate) -> AutoJournalTemplate:
        template = AutoJournalTemplate(
            template_name=request.template_name,
            trigger_event=request.trigger_event,
            description=request.description,
            debit_accounts=_dump_mappings(request.debit_accounts),
            credit_accounts=_dump_mappings(request.credit_accounts),
            priority=request.priority,
            is_active=request.is_active,
        )
        self.db.add(template)
        self.db.flush()
        self._registry = None
        logger.info(
            "Created auto-journal template '%s' for trigger %s",
            template.template_name, template.trigger_event,
        )
        return template

    def update_template(
        self, template_id: int, request: TemplateUpdate
    ) -> AutoJournalTemplate:
        template = self.get_template(template_id)
        changes = request.model_dump(exclude_unset=True)

        for field in ("debit_accounts", "credit_accounts"):
            if field in changes:
                mappings = getattr(request, field)
                if mappings is None:
                    raise ValidationError(f"{field} cannot be empty")
                changes[field] = _dump_mappings(mappings)

        for field in ("template_name", "trigger_event", "priority", "is_active"):
            if field in changes and changes[field] is None:
                del changes[field]

        for field, value in changes.items():
            setattr(template, field, value)

        self.db.flush()
        self._registry = None
        return template

    def get_template(self, template_id: int) -> AutoJournalTemplate:
        template = self.db.get(AutoJournalTemplate, template_id)
        if not template:
            raise NotFoundError(f"Auto-journal template {template_id} not found")
        return template

    def list_templates(
        self, trigger_event: str | None = None, active_only: bool = False
    ) -> list[AutoJournalTemplate]:
        query = select(AutoJournalTemplate)
        if trigger_event is not None:
            query = query.where(AutoJournalTemplate.trigger_event == trigger_event)
        if active_only:
            query = query.where(AutoJournalTemplate.is_active.is_(True))
        templates = self.db.execute(
            query.order_by(
                AutoJournalTemplate.trigger_event,
                AutoJournalTemplate.priority.desc(),
                AutoJournalTemplate.id,
            )
        ).scalars().all()
        return list(templates)

    # --- Generation ---

    def apply(self, request: AutoJournalRequest) -> JournalEntry:
        """
        Generate a draft entry for a trigger event.

        Raises NotFoundError when no active template handles the
        trigger, and ValidationError when the template yields no
        usable lines, a line amount the journal refuses, or an
        unbalanced entry. A failed attempt is logged before the error
        propagates; the caller must commit to keep that log row.
        """
        template = self.registry.select(request.trigger_event)
        if template is None:
            error = NotFoundError(
                f"No active auto-journal template for trigger "
                f"'{request.trigger_event}'"
            )
            self._log(request, None, error=error)
            logger.warning("Auto-journal rejected: %s", error)
            raise error

        try:
            lines = self._build_lines(template, request.amount)
            entry = self.journal.create_entry(
                JournalEntryCreate(
                    entry_date=request.entry_date or date.today(),
                    description=request.description,
                    reference_type=request.reference_type,
                    reference_id=request.reference_id,
                    lines=lines,
                ),
                created_by=request.created_by,
            )
        except SchemaValidationError as e:
            error = ValidationError(
                f"Template '{template.template_name}' produced an invalid "
                f"journal entry: {e}"
            )
            self._fail(request, template, error)
            raise error from e
        except (LedgerError, SQLAlchemyError) as e:
            self._fail(request, template, e)
            raise

        self._log(request, template, entry=entry)
        logger.info(
            "Generated %s from template '%s' for trigger %s",
            entry.entry_number, template.template_name, request.trigger_event,
        )
        return entry

    def list_logs(
        self,
        trigger_event: str | None = None,
        success: bool | None = None,
        reference_type: str | None = None,
        reference_id: str | None = None,
    ) -> list[AutoJournalLog]:
        """Return log rows matching the filters, newest first."""
        query = select(AutoJournalLog)
        if trigger_event is not None:
            query = query.where(AutoJournalLog.trigger_event == trigger_event)
        if success is not None:
            query = query.where(AutoJournalLog.success.is_(success))
        if reference_type is not None:
            query = query.where(AutoJournalLog.reference_type == reference_type)
        if reference_id is not None:
            query = query.where(AutoJournalLog.reference_id == reference_id)
        return list(
            self.db.execute(query.order_by(AutoJournalLog.id.desc())).scalars().all()
        )

    # --- Helpers ---

    def _build_lines(
        self, template: ResolvedTemplate, amount: Decimal
    ) -> list[JournalLineCreate]:
        lines = []
        for side, mappings in (("debit", template.debit), ("credit", template.credit)):
            for mapping in mappings:
                line = self._line_for(template, side, mapping, amount)
                if line is not None:
                    lines.append(line)

        if not lines:
            raise ValidationError(
                f"Template '{template.template_name}' produced no journal "
                f"lines: none of its accounts is an active posting account"
            )
        return lines

    def _line_for(
        self,
        template: ResolvedTemplate,
        side: str,
        mapping: ResolvedMapping,
        amount: Decimal,
    ) -> JournalLineCreate | None:
        if not mapping.is_resolved:
            logger.warning(
                "Template '%s': dropping %s line, account %s is not an "
                "active posting account",
                template.template_name, side, mapping.ref,
            )
            return None

        line_amount = mapping.amount_for(amount)
        if line_amount <= ZERO:
            return None
        if side == "debit":
            return JournalLineCreate(
                account_id=mapping.account_id, debit_amount=line_amount
            )
        return JournalLineCreate(
            account_id=mapping.account_id, credit_amount=line_amount
        )

    def _fail(
        self, request: AutoJournalRequest, template: ResolvedTemplate, error: Exception
    ) -> None:
        self._log(request, template, error=error)
        logger.warning(
            "Auto-journal with template '%s' failed for trigger %s: %s",
            template.template_name, request.trigger_event, error,
        )

    def _log(
        self,
        request: AutoJournalRequest,
        template: ResolvedTemplate | None,
        entry: JournalEntry | None = None,
        error: Exception | None = None,
    ) -> AutoJournalLog:
        log = AutoJournalLog(
            template_id=template.template_id if template else None,
            trigger_event=request.trigger_event,
            reference_type=request.reference_type,
            reference_id=request.reference_id,
            amount=request.amount,
            journal_entry_id=entry.id if entry else None,
            success=error is None,
            error_message=str(error)[:500] if error is not None else None,
        )
        self.db.add(log)
        self.db.flush()
        return log
