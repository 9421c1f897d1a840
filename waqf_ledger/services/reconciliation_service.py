"""
Reconciliation service: pairing bank statement lines with posted entries.

Suggestions are advisory and never write anything. A match is
only recorded when confirmed, either by a user (manual) or by
auto_match for high-confidence suggestions. A bank transaction
has at most one match; the unique constraint on the match table
backs that up.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from waqf_ledger.config import get_settings
from waqf_ledger.errors import ValidationError, NotFoundError, StateConflictError
from waqf_ledger.models.audit_log import AuditLog
from waqf_ledger.models.bank import BankTransaction, BankReconciliationMatch
from waqf_ledger.models.enums import EntryStatus, MatchType
from waqf_ledger.models.journal_entry import JournalEntry
from waqf_ledger.schemas.reconciliation import (
    BankTransactionCreate,
    MatchCreate,
    MatchSuggestion,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass
class _Score:
    confidence: float = 0.0
    reasons: list[str] = field(default_factory=list)
    amount_points: float = 0.0
    date_points: float = 0.0

    def add(self, points: float, reason: str) -> float:
        self.confidence += points
        self.reasons.append(reason)
        return points

    @property
    def rank(self) -> tuple[float, float, float]:
        """Confidence first, then amount closeness, then date closeness."""
        return self.confidence, self.amount_points, self.date_points


def _words(text: str | None) -> list[str]:
    return (text or "").lower().split()


def description_similarity(left: str | None, right: str | None) -> float:
    """Share of words in common, relative to the longer description."""
    left_words = _words(left)
    right_words = _words(right)
    if not left_words or not right_words:
        return 0.0
    right_set = set(right_words)
    common = sum(1 for word in left_words if word in right_set)
    return common / max(len(left_words), len(right_words))


def score_pair(
    transaction: BankTransaction, entry: JournalEntry, entry_amount: Decimal
) -> _Score:
    score = _Score()

    tx_amount = abs(Decimal(str(transaction.amount)))
    amount_diff = abs(tx_amount - entry_amount)
    if amount_diff == ZERO:
        score.amount_points = score.add(0.4, "exact amount")
    elif amount_diff <= tx_amount * Decimal("0.01"):
        score.amount_points = score.add(0.3, "amount within 1%")
    elif amount_diff <= tx_amount * Decimal("0.05"):
        score.amount_points = score.add(0.2, "amount within 5%")

    days = abs((transaction.transaction_date - entry.entry_date).days)
    if days == 0:
        score.date_points = score.add(0.3, "same day")
    elif days <= 3:
        score.date_points = score.add(0.2, f"{days} day(s) apart")
    elif days <= 7:
        score.date_points = score.add(0.1, f"{days} days apart")
    elif days <= 14:
        score.date_points = score.add(0.05, f"{days} days apart")

    similarity = description_similarity(transaction.description, entry.description)
    if similarity > 0.7:
        score.add(0.3, "descriptions match")
    elif similarity > 0.4:
        score.add(0.2, "descriptions mostly match")
    elif similarity > 0.2:
        score.add(0.1, "descriptions partly match")

    score.confidence = round(score.confidence, 4)
    return score


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    # --- Bank transactions ---

    def add_transactions(
        self, requests: list[BankTransactionCreate]
    ) -> list[BankTransaction]:
        """Record bank statement lines as unmatched transactions."""
        transactions = [
            BankTransaction(
                statement_reference=request.statement_reference,
                transaction_date=request.transaction_date,
                amount=request.amount,
                description=request.description,
                reference_number=request.reference_number,
                is_matched=False,
            )
            for request in requests
        ]
        self.db.add_all(transactions)
        self.db.flush()
        logger.info("Imported %d bank transactions", len(transactions))
        return transactions

    def get_transaction(self, transaction_id: int) -> BankTransaction:
        transaction = self.db.get(BankTransaction, transaction_id)
        if not transaction:
            raise NotFoundError(f"Bank transaction {transaction_id} not found")
        return transaction

    def list_transactions(
        self,
        unmatched_only: bool = False,
        statement_reference: str | None = None,
    ) -> list[BankTransaction]:
        query = select(BankTransaction)
        if unmatched_only:
            query = query.where(BankTransaction.is_matched.is_(False))
        if statement_reference is not None:
            query = query.where(
                BankTransaction.statement_reference == statement_reference
            )
        return list(
            self.db.execute(
                query.order_by(BankTransaction.transaction_date, BankTransaction.id)
            ).scalars().all()
        )

    # --- Matches ---

    def get_match(self, match_id: int) -> BankReconciliationMatch:
        match = self.db.get(BankReconciliationMatch, match_id)
        if not match:
            raise NotFoundError(f"Reconciliation match {match_id} not found")
        return match

    def list_matches(self) -> list[BankReconciliationMatch]:
        return list(
            self.db.execute(
                select(BankReconciliationMatch).order_by(BankReconciliationMatch.id)
            ).scalars().all()
        )

    def create_match(self, request: MatchCreate) -> BankReconciliationMatch:
        """
        Confirm a pairing of one bank transaction with one posted entry.

        Raises StateConflictError if the transaction is already
        matched, and ValidationError if the entry is not posted.
        The match row and the transaction flag change together.
        """
        transaction = self.db.execute(
            select(BankTransaction)
            .where(BankTransaction.id == request.bank_transaction_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if not transaction:
            raise NotFoundError(
                f"Bank transaction {request.bank_transaction_id} not found"
            )
        if transaction.is_matched:
            raise StateConflictError(
                f"Bank transaction {transaction.id} is already matched to "
                f"journal entry {transaction.journal_entry_id}"
            )

        entry = self.db.get(JournalEntry, request.journal_entry_id)
        if not entry:
            raise NotFoundError(f"Journal entry {request.journal_entry_id} not found")
        if entry.status != EntryStatus.POSTED:
            raise ValidationError(
                f"Journal entry {entry.entry_number} is {entry.status.value}; "
                f"only posted entries can be matched"
            )

        with self.db.begin_nested():
            match = BankReconciliationMatch(
                bank_transaction_id=transaction.id,
                journal_entry_id=entry.id,
                match_type=request.match_type,
                confidence_score=request.confidence_score,
                notes=request.notes,
                matched_by=request.matched_by,
            )
            self.db.add(match)
            transaction.is_matched = True
            transaction.journal_entry_id = entry.id
            self.db.add(AuditLog(
                event_type="match_created",
                entity_type="bank_transaction",
                entity_id=transaction.id,
                actor=request.matched_by,
                details=(
                    f"{request.match_type.value} match to {entry.entry_number} "
                    f"(confidence {request.confidence_score})"
                ),
            ))
            self.db.flush()

        logger.info(
            "Matched bank transaction %d to %s (%s)",
            transaction.id, entry.entry_number, request.match_type.value,
        )
        return match

    def delete_match(
        self, match_id: int, deleted_by: str | None = None
    ) -> BankTransaction:
        """Undo a match. Returns the transaction, unmatched again."""
        match = self.get_match(match_id)
        transaction = self.get_transaction(match.bank_transaction_id)

        with self.db.begin_nested():
            transaction.is_matched = False
            transaction.journal_entry_id = None
            self.db.add(AuditLog(
                event_type="match_deleted",
                entity_type="bank_transaction",
                entity_id=transaction.id,
                actor=deleted_by,
                details=f"Removed match {match.id} to entry {match.journal_entry_id}",
            ))
            self.db.delete(match)
            self.db.flush()

        logger.info("Removed match %d from bank transaction %d", match_id, transaction.id)
        return transaction

    # --- Suggestions ---

    def suggest_matches(
        self,
        statement_reference: str | None = None,
        min_confidence: float | None = None,
    ) -> list[MatchSuggestion]:
        """
        Score unmatched transactions against posted, unmatched entries.

        Nothing is written. Results are ordered by confidence,
        highest first. Equal confidence goes to the closer amount,
        then the closer date; remaining ties keep transaction then
        entry order.
        """
        if min_confidence is None:
            min_confidence = self.settings.MATCH_MIN_CONFIDENCE
        window = self.settings.MATCH_DATE_WINDOW_DAYS

        transactions = self.list_transactions(
            unmatched_only=True, statement_reference=statement_reference
        )
        if not transactions:
            return []

        matched_entry_ids = select(BankReconciliationMatch.journal_entry_id)
        entries = self.db.execute(
            select(JournalEntry)
            .options(selectinload(JournalEntry.lines))
            .where(
                JournalEntry.status == EntryStatus.POSTED,
                JournalEntry.id.not_in(matched_entry_ids),
            )
            .order_by(JournalEntry.id)
        ).scalars().all()

        # An entry's amount is its debit total, which equals its credit total
        entry_amounts = {
            entry.id: Decimal(str(entry.total_debit)) for entry in entries
        }

        ranked = []
        for transaction in transactions:
            for entry in entries:
                days = abs((transaction.transaction_date - entry.entry_date).days)
                if days > window:
                    continue
                score = score_pair(transaction, entry, entry_amounts[entry.id])
                if score.confidence < min_confidence:
                    continue
                ranked.append((score, MatchSuggestion(
                    bank_transaction_id=transaction.id,
                    journal_entry_id=entry.id,
                    entry_number=entry.entry_number,
                    confidence=score.confidence,
                    reasons=score.reasons,
                )))

        ranked.sort(key=lambda pair: pair[0].rank, reverse=True)
        return [suggestion for _, suggestion in ranked]

    def auto_match(
        self,
        statement_reference: str | None = None,
        min_confidence: float | None = None,
        matched_by: str | None = None,
    ) -> list[BankReconciliationMatch]:
        """
        Confirm the best suggestion for each transaction as an auto match.

        Suggestions are taken in confidence order; a transaction or
        entry already used by an earlier pick is skipped.
        """
        if min_confidence is None:
            min_confidence = self.settings.MATCH_AUTO_CONFIDENCE

        used_transactions: set[int] = set()
        used_entries: set[int] = set()
        matches = []
        for suggestion in self.suggest_matches(statement_reference, min_confidence):
            if (
                suggestion.bank_transaction_id in used_transactions
                or suggestion.journal_entry_id in used_entries
            ):
                continue
            matches.append(self.create_match(MatchCreate(
                bank_transaction_id=suggestion.bank_transaction_id,
                journal_entry_id=suggestion.journal_entry_id,
                match_type=MatchType.AUTO,
                confidence_score=min(suggestion.confidence, 1.0),
                notes=", ".join(suggestion.reasons),
                matched_by=matched_by,
            )))
            used_transactions.add(suggestion.bank_transaction_id)
            used_entries.add(suggestion.journal_entry_id)

        logger.info("Auto-matched %d bank transactions", len(matches))
        return matches
