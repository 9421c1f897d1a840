"""
Template registry: active auto-journal templates, resolved and ordered.

Templates are stored with free-form account references (a code or
an id). The registry resolves every reference once, at load time,
against the set of active posting accounts, and orders candidates
per trigger by priority so selection is a dictionary lookup.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import select
from sqlalchemy.orm import Session

from waqf_ledger.models.auto_journal import AutoJournalTemplate
from waqf_ledger.services.chart_of_accounts_service import ChartOfAccountsService

logger = logging.getLogger(__name__)

AMOUNT_QUANTUM = Decimal("0.0001")


@dataclass(frozen=True)
class ByCode:
    code: str

    def __str__(self) -> str:
        return f"code {self.code}"


@dataclass(frozen=True)
class ById:
    account_id: int

    def __str__(self) -> str:
        return f"id {self.account_id}"


AccountRef = ByCode | ById


def account_ref(mapping: dict) -> AccountRef:
    """Build the reference a stored mapping names."""
    if mapping.get("account_code") is not None:
        return ByCode(str(mapping["account_code"]))
    return ById(int(mapping["account_id"]))


def resolve_ref(
    ref: AccountRef, ids_by_code: dict[str, int], active_ids: set[int]
) -> int | None:
    """Account id for a reference, or None if it names no active posting account."""
    if isinstance(ref, ByCode):
        return ids_by_code.get(ref.code)
    return ref.account_id if ref.account_id in active_ids else None


@dataclass(frozen=True)
class ResolvedMapping:
    ref: AccountRef
    account_id: int | None
    percentage: Decimal | None = None
    fixed_amount: Decimal | None = None

    @property
    def is_resolved(self) -> bool:
        return self.account_id is not None

    def amount_for(self, amount: Decimal) -> Decimal:
        if self.fixed_amount is not None:
            return self.fixed_amount
        return (amount * self.percentage / Decimal("100")).quantize(
            AMOUNT_QUANTUM, rounding=ROUND_HALF_UP
        )


@dataclass(frozen=True)
class ResolvedTemplate:
    template_id: int
    template_name: str
    trigger_event: str
    priority: int
    debit: tuple[ResolvedMapping, ...]
    credit: tuple[ResolvedMapping, ...]


def _resolve_side(
    mappings: list[dict], ids_by_code: dict[str, int], active_ids: set[int]
) -> tuple[ResolvedMapping, ...]:
    resolved = []
    for mapping in mappings:
        ref = account_ref(mapping)
        percentage = mapping.get("percentage")
        fixed_amount = mapping.get("fixed_amount")
        resolved.append(ResolvedMapping(
            ref=ref,
            account_id=resolve_ref(ref, ids_by_code, active_ids),
            percentage=Decimal(str(percentage)) if percentage is not None else None,
            fixed_amount=(
                Decimal(str(fixed_amount)) if fixed_amount is not None else None
            ),
        ))
    return tuple(resolved)


class TemplateRegistry:
    """
    Active templates grouped by trigger event.

    Within a trigger, candidates are ordered by descending priority,
    then by ascending template id, so selection is deterministic.
    """

    def __init__(self, templates: Iterable[ResolvedTemplate] = ()):
        by_trigger: dict[str, list[ResolvedTemplate]] = defaultdict(list)
        for template in templates:
            by_trigger[template.trigger_event].append(template)
        self._by_trigger = {
            trigger: sorted(candidates, key=lambda t: (-t.priority, t.template_id))
            for trigger, candidates in by_trigger.items()
        }

    @classmethod
    def load(cls, db: Session) -> "TemplateRegistry":
        leaves = ChartOfAccountsService(db).list_active_leaf_accounts()
        ids_by_code = {account.code: account.id for account in leaves}
        active_ids = set(ids_by_code.values())

        rows = db.execute(
            select(AutoJournalTemplate).where(AutoJournalTemplate.is_active.is_(True))
        ).scalars().all()

        templates = [
            ResolvedTemplate(
                template_id=row.id,
                template_name=row.template_name,
                trigger_event=row.trigger_event,
                priority=row.priority,
                debit=_resolve_side(row.debit_accounts, ids_by_code, active_ids),
                credit=_resolve_side(row.credit_accounts, ids_by_code, active_ids),
            )
            for row in rows
        ]
        logger.debug("Loaded %d active auto-journal templates", len(templates))
        return cls(templates)

    def candidates(self, trigger_event: str) -> list[ResolvedTemplate]:
        return list(self._by_trigger.get(trigger_event, ()))

    def select(self, trigger_event: str) -> ResolvedTemplate | None:
        candidates = self._by_trigger.get(trigger_event)
        return candidates[0] if candidates else None

    def triggers(self) -> list[str]:
        return sorted(self._by_trigger)
