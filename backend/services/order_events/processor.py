from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Dict, Iterator, List, Optional

from constants import (
    DEFAULT_COMMISSION_CURRENCY,
    DEFAULT_SELF_REFERRAL_RATES,
    ORDER_STATUS_COMPLETED,
    ORDER_STATUS_PENDING,
)
from errors import DuplicateCommissionError, RepositoryWriteError
from models import CommissionRecord, Order

from .interfaces import (
    AffiliateDirectory,
    AttributionResolver,
    CommissionLedger,
    OrderReader,
    ParentLinkWriter,
    ProductCatalog,
    TagWriter,
)
from .messages import format_ids, log_text, note_text
from .rates import commission_amount, product_tag, select_rate
from .results import EventResult, StepResult, StepStatus, WriteFailure

STEP_TAGS = "product_tags"
STEP_PARENT = "parent_affiliate"
STEP_COMMISSION = "self_referral_commission"

# Booking outcomes after which a completed order writes nothing else.
BOOKING_ABORTS = {
    StepStatus.NOT_AFFILIATE,
    StepStatus.ALREADY_PROCESSED,
    StepStatus.NO_APPLICABLE_RATE,
}


def normalize_status(value: Optional[str]) -> str:
    status = (value or "").strip().lower()
    if status.startswith("wc-"):
        status = status[3:]
    return status


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderEventProcessor:
    """Reacts to order status transitions for affiliate customers.

    ``pending`` tags the customer per purchased product and links the
    referring affiliate as parent. ``completed`` books the self-referral
    commission and, once booking got as far as the insert, repeats tagging
    and parent assignment in case the pending transition was never delivered
    for the order.

    Nothing here logs or raises for expected outcomes: every step returns a
    ``StepResult`` and the caller decides how to report it. Writes that fail
    with ``RepositoryWriteError`` are recorded and the remaining writes are
    still attempted. Any other exception ends only the step it was raised in
    and is reported as an ``error`` step.
    """

    def __init__(
        self,
        *,
        orders: OrderReader,
        products: ProductCatalog,
        directory: AffiliateDirectory,
        attribution: AttributionResolver,
        tags: TagWriter,
        parents: ParentLinkWriter,
        ledger: CommissionLedger,
        rates: Optional[Dict[str, Decimal]] = None,
        currency: str = DEFAULT_COMMISSION_CURRENCY,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.orders = orders
        self.products = products
        self.directory = directory
        self.attribution = attribution
        self.tags = tags
        self.parents = parents
        self.ledger = ledger
        self.rates = dict(DEFAULT_SELF_REFERRAL_RATES if rates is None else rates)
        self.currency = currency
        self._clock = clock

    def handle_transition(
        self,
        order_id: int,
        old_status: Optional[str],
        new_status: str,
    ) -> EventResult:
        status = normalize_status(new_status)
        result = EventResult(order_id=order_id, old_status=old_status, new_status=status)
        if status not in (ORDER_STATUS_PENDING, ORDER_STATUS_COMPLETED):
            result.status = StepStatus.IGNORED
            result.message = log_text("status_ignored", order_id=order_id, status=status)
            return result

        order = self.orders.get_order(order_id)
        if order is None:
            result.status = StepStatus.NOT_FOUND
            result.message = log_text("order_not_found", order_id=order_id)
            return result
        if not order.customer_id:
            result.status = StepStatus.NOT_FOUND
            result.message = log_text("no_customer", order_id=order_id)
            return result
        result.customer_id = order.customer_id

        if status == ORDER_STATUS_PENDING:
            result.steps.append(self._run_step(STEP_TAGS, self.assign_product_tags, order))
            result.steps.append(
                self._run_step(STEP_PARENT, self.assign_parent_affiliate, order, order.customer_id)
            )
        else:
            result.steps.extend(self.assign_self_referral_commission(order))

        statuses = {step.status for step in result.steps}
        if StepStatus.ERROR in statuses:
            result.status = StepStatus.ERROR
        elif StepStatus.WRITE_FAILURE in statuses:
            result.status = StepStatus.WRITE_FAILURE
        return result

    def assign_product_tags(self, order: Order) -> StepResult:
        result = StepResult(step=STEP_TAGS)
        customer_id = order.customer_id
        if not customer_id:
            result.status = StepStatus.NOT_FOUND
            result.message = log_text("no_customer", order_id=order.id)
            return result

        assigned: List[str] = []
        missing: List[int] = []
        for item in order.items:
            product = self.products.get_product(item.product_id)
            if product is None:
                missing.append(item.product_id)
                continue
            tag = product_tag(product.slug)
            try:
                self.tags.attach_tag(customer_id, tag)
            except RepositoryWriteError as exc:
                result.fail(exc)
                self._note(order, result, note_text("tag_failed", tag=tag, customer_id=customer_id))
                continue
            assigned.append(tag)
            self._note(order, result, note_text("tag_assigned", tag=tag, customer_id=customer_id))

        result.data["tags"] = assigned
        if missing:
            result.data["missing_products"] = missing
        result.message = log_text(
            "tags_done",
            assigned=len(assigned),
            total=len(order.items),
            customer_id=customer_id,
        )
        return result

    def assign_parent_affiliate(self, order: Order, customer_id: int) -> StepResult:
        result = StepResult(step=STEP_PARENT)
        referrer_id = self.attribution.get_referrer_for_order(order.id)
        if referrer_id is None:
            result.status = StepStatus.NO_REFERRER
            result.message = log_text("no_referrer", order_id=order.id)
            self._note(order, result, note_text("no_referrer"))
            return result
        # A customer is never linked as their own parent.
        if referrer_id == customer_id:
            result.status = StepStatus.NO_REFERRER
            result.message = log_text("self_referrer", order_id=order.id, customer_id=customer_id)
            self._note(order, result, note_text("self_referrer", customer_id=customer_id))
            return result

        previous = self.directory.get_parents(customer_id)
        result.data.update(parent_id=referrer_id, previous_parents=list(previous))
        try:
            self.parents.assign_parent(customer_id, referrer_id)
        except RepositoryWriteError as exc:
            result.fail(exc)
            result.message = log_text("parent_failed", parent_id=referrer_id, customer_id=customer_id)
            self._note(
                order,
                result,
                note_text("parent_failed", customer_id=customer_id, parent_id=referrer_id),
            )
            return result

        if previous:
            self._note(
                order,
                result,
                note_text(
                    "parent_overwrite",
                    customer_id=customer_id,
                    previous=format_ids(previous),
                    parent_id=referrer_id,
                ),
            )

        current = self.directory.get_parents(customer_id)
        result.data["parents"] = list(current)
        result.data["verified"] = bool(current) and current[0] == referrer_id
        self._note(
            order,
            result,
            note_text("parent_set", customer_id=customer_id, parents=format_ids(current)),
        )
        if not result.data["verified"]:
            self._note(
                order,
                result,
                note_text(
                    "parent_mismatch",
                    customer_id=customer_id,
                    parent_id=referrer_id,
                    parents=format_ids(current),
                ),
            )
        result.message = log_text("parent_set", customer_id=customer_id, parent_id=referrer_id)
        return result

    def assign_self_referral_commission(self, order: Order) -> List[StepResult]:
        if not order.customer_id:
            return [
                StepResult(
                    step=STEP_COMMISSION,
                    status=StepStatus.NOT_FOUND,
                    message=log_text("no_customer", order_id=order.id),
                )
            ]
        booking = self._run_step(STEP_COMMISSION, self._book_commission, order)
        if booking.status in BOOKING_ABORTS:
            return [booking]
        return [
            booking,
            self._run_step(STEP_TAGS, self.assign_product_tags, order),
            self._run_step(STEP_PARENT, self.assign_parent_affiliate, order, order.customer_id),
        ]

    def _run_step(self, step: str, action: Callable[..., StepResult], order: Order, *args) -> StepResult:
        try:
            return action(order, *args)
        except Exception as exc:
            error = f"{type(exc).__name__}: {exc}"
            return StepResult(
                step=step,
                status=StepStatus.ERROR,
                message=log_text("step_error", step=step, order_id=order.id, error=error),
                error=error,
            )

    def _book_commission(self, order: Order) -> StepResult:
        result = StepResult(step=STEP_COMMISSION)
        customer_id = order.customer_id

        if not self.directory.is_affiliate(customer_id):
            result.status = StepStatus.NOT_AFFILIATE
            result.message = log_text("not_affiliate", customer_id=customer_id)
            return result

        if self.ledger.exists(order.id, customer_id):
            result.status = StepStatus.ALREADY_PROCESSED
            result.message = log_text("already_processed", order_id=order.id)
            return result

        match = select_rate(self._product_slugs(order), self.rates)
        if match is None:
            result.status = StepStatus.NO_APPLICABLE_RATE
            result.message = log_text("no_rate", customer_id=customer_id)
            return result

        slug, rate = match
        amount = commission_amount(order.total, rate)
        record = CommissionRecord(
            affiliate_id=customer_id,
            order_id=order.id,
            datetime=self._clock(),
            amount=amount,
            currency_id=self.currency,
        )
        result.data.update(slug=slug, rate=str(rate), amount=str(amount))

        try:
            self.ledger.insert(record)
        except DuplicateCommissionError:
            result.status = StepStatus.ALREADY_PROCESSED
            result.message = log_text("already_processed", order_id=order.id)
            return result
        except RepositoryWriteError as exc:
            result.fail(exc)
            result.message = log_text("commission_failed", customer_id=customer_id)
            self._note(order, result, note_text("commission_failed", customer_id=customer_id))
            return result

        result.message = log_text("commission_added", customer_id=customer_id, amount=amount)
        self._note(order, result, note_text("commission_added", customer_id=customer_id, amount=amount))
        return result

    def _product_slugs(self, order: Order) -> Iterator[str]:
        # Lazy so that rate selection stops resolving products at the first match.
        for item in order.items:
            product = self.products.get_product(item.product_id)
            if product is not None:
                yield product.slug

    def _note(self, order: Order, result: StepResult, text: str) -> None:
        try:
            self.orders.add_note(order.id, text)
        except RepositoryWriteError as exc:
            result.failures.append(WriteFailure.from_error(exc))
            return
        result.notes.append(text)
