"""
Checkout Use Case

Turns a purchase request into a pending order with reserved stock.

Flow:
1. Validate request shape and shipping address (no inventory touched yet)
2. Load the unit, fail fast on closed sales / insufficient stock
3. Compute the total server-side (client amounts are never trusted)
4. Online payment: open the payment intent before any write (fail closed)
5. One transaction: conditional decrement → purchase limit → order + line item
   → (cash ticket purchase) ticket issuance → commit
6. If the transaction fails after an intent was opened, cancel the intent
"""

import time
from typing import Callable, Optional, Self
import uuid

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import CustomBaseError, DomainError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.commerce_metrics import metrics
from src.service.commerce.app.dto.checkout_dto import CheckoutResult
from src.service.commerce.app.dto.payment_dto import PaymentIntentHandle
from src.service.commerce.app.interface.i_payment_gateway import IPaymentGateway
from src.service.commerce.app.service.ticket_issuance_service import TicketIssuanceService
from src.service.commerce.domain.commerce_errors import (
    InsufficientStockError,
    MissingShippingAddressError,
    PurchaseLimitExceededError,
    SalesClosedError,
)
from src.service.commerce.domain.entity.order_entity import (
    FulfillmentMethod,
    Order,
    OrderItem,
    PaymentMethod,
)
from src.service.commerce.domain.entity.sellable_unit_entity import SellableUnit, UnitKind
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.domain.value_object.redemption import new_redemption_token


class CheckoutUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        ticket_issuance_service: TicketIssuanceService,
        fee_percent: int = settings.PLATFORM_FEE_PERCENT,
        currency: str = settings.PAYMENT_CURRENCY,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.ticket_issuance_service = ticket_issuance_service
        self.fee_percent = fee_percent
        self.currency = currency
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        ticket_issuance_service: TicketIssuanceService = Depends(
            Provide[Container.ticket_issuance_service]
        ),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            payment_gateway=payment_gateway,
            ticket_issuance_service=ticket_issuance_service,
        )

    @Logger.io
    async def execute(
        self,
        *,
        buyer: UserEntity,
        unit_kind: UnitKind,
        unit_id: int,
        quantity: int,
        payment_method: PaymentMethod,
        fulfillment_method: FulfillmentMethod,
    ) -> CheckoutResult:
        """
        Create a pending order and reserve its stock.

        Raises:
            MissingShippingAddressError: mail delivery without a complete address
            NotFoundError: unit does not exist
            SalesClosedError: the ticket's event day has passed
            InsufficientStockError: not enough remaining (checked again atomically)
            PurchaseLimitExceededError: per-user limit of the product reached
            UpstreamTimeoutError / UpstreamPaymentFailureError: intent could not be opened
        """
        started = time.perf_counter()
        result = 'created'
        try:
            return await self._checkout(
                buyer=buyer,
                unit_kind=unit_kind,
                unit_id=unit_id,
                quantity=quantity,
                payment_method=payment_method,
                fulfillment_method=fulfillment_method,
            )
        except CustomBaseError as e:
            result = e.code
            raise
        except Exception:
            result = 'error'
            raise
        finally:
            metrics.record_checkout(
                unit_kind=unit_kind.value,
                payment_method=payment_method.value,
                result=result,
                duration=time.perf_counter() - started,
            )

    async def _checkout(
        self,
        *,
        buyer: UserEntity,
        unit_kind: UnitKind,
        unit_id: int,
        quantity: int,
        payment_method: PaymentMethod,
        fulfillment_method: FulfillmentMethod,
    ) -> CheckoutResult:
        order_id = uuid.UUID(str(uuid_utils.uuid7()))

        with self.tracer.start_as_current_span(
            'use_case.checkout',
            attributes={
                'order.id': str(order_id),
                'order.unit_kind': unit_kind.value,
                'order.unit_id': unit_id,
                'order.quantity': quantity,
                'order.payment_method': payment_method.value,
            },
        ):
            # Step 1: request shape, then the address, before inventory is touched
            buyer.validate_active()
            if quantity < 1:
                raise DomainError('quantity must be at least 1')
            if unit_kind == UnitKind.TICKET and fulfillment_method != FulfillmentMethod.VENUE:
                raise DomainError('Tickets can only be fulfilled at the venue')

            shipping_address = None
            if fulfillment_method == FulfillmentMethod.MAIL:
                shipping_address = buyer.shipping_snapshot()
                if shipping_address is None:
                    raise MissingShippingAddressError()

            # Step 2: fail fast on the unit snapshot
            async with self.uow_factory() as uow:
                unit = await uow.inventory_ledger.get_unit(kind=unit_kind, unit_id=unit_id)
            unit = self._ensure_sellable(
                unit=unit, unit_kind=unit_kind, unit_id=unit_id, quantity=quantity
            )

            # Step 3: the price is always the catalog price at this moment
            item = OrderItem(
                quantity=quantity,
                unit_price=unit.price,
                product_name=unit.display_name,
                product_id=None if unit.is_ticket else unit.id,
                ticket_type_id=unit.id if unit.is_ticket else None,
            )
            total = item.subtotal

            # Step 4: fail closed; nothing is written if the intent cannot be opened
            intent: Optional[PaymentIntentHandle] = None
            if payment_method == PaymentMethod.ONLINE:
                intent = await self.payment_gateway.open_intent(
                    amount=total,
                    currency=self.currency,
                    metadata={
                        'order_id': str(order_id),
                        'unit_kind': unit_kind.value,
                        'unit_id': str(unit_id),
                        'quantity': str(quantity),
                        'buyer_id': str(buyer.id),
                    },
                    idempotency_key=f'checkout-{order_id}',
                )

            order = Order.create(
                id=order_id,
                buyer_id=buyer.id,
                item=item,
                payment_method=payment_method,
                fulfillment_method=fulfillment_method,
                fee_percent=self.fee_percent,
                shipping_address=shipping_address,
                payment_reference=intent.intent_id if intent else None,
                redemption_token=(
                    new_redemption_token()
                    if fulfillment_method == FulfillmentMethod.VENUE and not unit.is_ticket
                    else None
                ),
            )

            # Step 5: one transaction for stock, order and (cash) tickets
            try:
                async with self.uow_factory() as uow:
                    reserved = await uow.inventory_ledger.try_reserve(
                        kind=unit_kind, unit_id=unit_id, quantity=quantity
                    )
                    if not reserved:
                        raise InsufficientStockError()

                    if unit.limit_per_user is not None and not unit.is_ticket:
                        already = await uow.order_query_repo.count_purchased_quantity(
                            buyer_id=buyer.id, product_id=unit.id
                        )
                        if already + quantity > unit.limit_per_user:
                            raise PurchaseLimitExceededError(
                                f'Purchase limit of {unit.limit_per_user} reached for this product'
                            )

                    await uow.order_command_repo.create(order=order)

                    tickets = []
                    if unit.is_ticket and payment_method == PaymentMethod.CASH:
                        tickets = await self.ticket_issuance_service.issue_for_order(
                            uow=uow, order=order
                        )

                    await uow.commit()
            except Exception:
                # Step 6: the intent will never be confirmed
                if intent is not None:
                    await self._cancel_intent_quietly(intent_id=intent.intent_id)
                raise

            Logger.base.info(
                f'🛒 [CHECKOUT] Order {order.id} created: {unit_kind}={unit_id} '
                f'qty={quantity} total={order.total_price} ({payment_method})'
            )
            return CheckoutResult(
                order=order,
                client_secret=intent.client_secret if intent else None,
                tickets=tickets,
            )

    @staticmethod
    def _ensure_sellable(
        *, unit: Optional[SellableUnit], unit_kind: UnitKind, unit_id: int, quantity: int
    ) -> SellableUnit:
        if unit is None:
            raise NotFoundError(f'{unit_kind.value.capitalize()} {unit_id} not found')
        if unit.is_ticket and unit.sales_closed():
            raise SalesClosedError()
        if not unit.has_stock_for(quantity):
            raise InsufficientStockError()
        return unit

    async def _cancel_intent_quietly(self, *, intent_id: str) -> None:
        try:
            await self.payment_gateway.cancel_intent(intent_id=intent_id)
        except Exception as e:
            Logger.base.warning(f'⚠️ [CHECKOUT] Intent {intent_id} left open: {e}')
