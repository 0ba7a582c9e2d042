"""Transaction submission - resolves inputs, evaluates rules and persists the decision"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable, Dict, Iterator, List, Optional, Protocol, Sequence

from risk_gateway.config import settings
from risk_gateway.domain.evaluators import RiskRuleEvaluator, TransactionHistory, default_evaluators
from risk_gateway.domain.exceptions import BadRequestError, NotFoundError
from risk_gateway.domain.models import (
    Customer,
    MerchantCategory,
    RiskRule,
    TransactionDecision,
    TransactionInput,
)
from risk_gateway.domain.scoring import make_risk_decision
from risk_gateway.utils.date_utils import now_in_timezone

logger = logging.getLogger(__name__)


class CustomerLookup(Protocol):
    def find_customer_by_id(self, customer_id: int) -> Optional[Customer]:
        ...


class RuleRegistry(Protocol):
    def list_active_rules(self) -> List[RiskRule]:
        ...


class TransactionStore(Protocol):
    def persist_decision(self, transaction: TransactionInput, decision: TransactionDecision) -> int:
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...


class CustomerLocks:
    """
    Per-customer mutexes held from the frequency count until the new
    transaction is committed, so two submissions for one customer cannot
    both read the same stale count.
    """

    def __init__(self):
        self._guard = threading.Lock()
        # customer id -> [lock, number of holders and waiters]
        self._locks: Dict[int, list] = {}

    @contextmanager
    def hold(self, customer_id: int) -> Iterator[None]:
        with self._guard:
            entry = self._locks.setdefault(customer_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[customer_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


# Shared by every submission service in the process
customer_locks = CustomerLocks()


@dataclass
class SubmissionResult:
    transaction_id: int
    customer: Customer
    decision: TransactionDecision
    rules_evaluated: int
    duration_ms: float


class TransactionSubmissionService:
    """Drives one submission from customer lookup through persistence"""

    def __init__(
        self,
        customers: CustomerLookup,
        rules: RuleRegistry,
        history: TransactionHistory,
        store: TransactionStore,
        evaluators: Optional[Sequence[RiskRuleEvaluator]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        locks: Optional[CustomerLocks] = None,
    ):
        self.customers = customers
        self.rules = rules
        self.store = store
        self.evaluators = list(evaluators) if evaluators is not None else default_evaluators(history)
        self.clock = clock or (lambda: now_in_timezone(settings.processing_timezone))
        self.locks = locks if locks is not None else customer_locks

    def submit_transaction(self, transaction: TransactionInput) -> SubmissionResult:
        """
        Evaluate and persist a transaction.

        Flow:
        1. Resolve customer (NotFoundError if missing)
        2. Validate merchant category (BadRequestError if unknown)
        3. Stamp with current processing time, ignoring any caller timestamp
        4. Evaluate active rules and decide
        5. Persist and commit

        Nothing is persisted unless every step succeeds.
        """
        start_time = time.time()
        logger.info("Processing transaction submission", extra={"customer_id": transaction.customer_id})

        with self.locks.hold(transaction.customer_id):
            try:
                customer = self.customers.find_customer_by_id(transaction.customer_id)
                if customer is None:
                    raise NotFoundError(f"Customer not found with id: {transaction.customer_id}")

                if MerchantCategory.parse(transaction.merchant_category) is None:
                    raise BadRequestError(f"Invalid merchant category: {transaction.merchant_category}")

                stamped = replace(transaction, timestamp=self.clock())

                active_rules = self.rules.list_active_rules()
                logger.debug(f"Evaluating {len(active_rules)} active risk rules")

                decision = make_risk_decision(
                    active_rules, self.evaluators, stamped, customer, stamped.timestamp
                )

                transaction_id = self.store.persist_decision(stamped, decision)
                self.store.commit()
            except (NotFoundError, BadRequestError) as e:
                self.store.rollback()
                logger.warning(f"Transaction submission rejected: {e}", extra={"customer_id": transaction.customer_id})
                raise
            except Exception as e:
                self.store.rollback()
                logger.error(f"Transaction submission failed: {e}", extra={"customer_id": transaction.customer_id})
                raise

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Transaction risk evaluation complete",
            extra={
                "transaction_id": transaction_id,
                "risk_score": decision.risk_score,
                "status": decision.status.value,
                "matched_rules": len(decision.matched_rules),
            },
        )

        return SubmissionResult(
            transaction_id=transaction_id,
            customer=customer,
            decision=decision,
            rules_evaluated=len(active_rules),
            duration_ms=duration_ms,
        )
