"""Order confirmation and company notification emails."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from email.message import EmailMessage
from typing import Optional, Protocol

from fastapi import Request
from loguru import logger

from orderform.core.concurrency import run_in_thread_mail
from orderform.core.config import Settings
from orderform.core.errors import PartialDeliveryFailure, TransportFailure
from orderform.schemas.order import OrderSubmission
from orderform.services.orders import to_cents
from orderform.utils.email import MailDeliveryError, build_message
from orderform.utils.email_templates import render


class Mailer(Protocol):
    def send(self, message: EmailMessage) -> None: ...


@dataclass(frozen=True)
class CompanyIdentity:
    name: str
    director: str
    address: str
    postal_code: str
    phone: str
    email: str
    vat_number: str

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompanyIdentity":
        return cls(
            name=settings.COMPANY_NAME,
            director=settings.COMPANY_DIRECTOR,
            address=settings.COMPANY_ADDRESS,
            postal_code=settings.COMPANY_POSTAL_CODE,
            phone=settings.COMPANY_PHONE,
            email=settings.COMPANY_EMAIL,
            vat_number=settings.COMPANY_VAT_NUMBER,
        )


@dataclass(frozen=True)
class OrderLine:
    product_name: str
    size: str
    quantity: int
    unit_price: Decimal
    total: Decimal


def _percent(rate: Decimal) -> str:
    value = rate * 100
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return str(value.normalize())


class OrderNotifier:
    """Renders an order twice and mails it to the client, then the company.

    The company is always addressed through the configured identity, never
    through the company snapshot carried by the payload.
    """

    def __init__(self, mailer: Mailer, settings: Settings):
        self.mailer = mailer
        self.settings = settings
        self.company = CompanyIdentity.from_settings(settings)

    def _context(self, order: OrderSubmission) -> dict:
        lines = [
            OrderLine(
                product_name=item.product_name,
                size=item.size,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=to_cents(item.quantity * item.unit_price),
            )
            for item in order.ordered_items
        ]
        return {
            "order": order,
            "lines": lines,
            "company": self.company,
            "vat_percent": _percent(self.settings.VAT_RATE),
            "free_delivery": order.subtotal >= self.settings.FREE_DELIVERY_THRESHOLD,
            "free_delivery_threshold": self.settings.FREE_DELIVERY_THRESHOLD,
        }

    def _message(
        self,
        *,
        to: str,
        subject: str,
        template: str,
        context: dict,
        reply_to: Optional[str] = None,
    ) -> EmailMessage:
        return build_message(
            sender=self.settings.mail_sender,
            sender_name=self.company.name,
            to=to,
            subject=subject,
            html_body=render(f"{template}.html", **context),
            plain_body=render(f"{template}.txt", **context),
            reply_to=reply_to,
        )

    def render_order(self, order: OrderSubmission) -> tuple[EmailMessage, EmailMessage]:
        """Build the client confirmation and the company notification."""
        context = self._context(order)
        client_msg = self._message(
            to=order.client.email,
            subject=f"Order confirmation - {order.client.name}",
            template="order_client",
            context=context,
            reply_to=self.company.email or None,
        )
        company_msg = self._message(
            to=self.company.email,
            subject=f"New order - {order.client.name}",
            template="order_company",
            context=context,
            reply_to=order.client.email,
        )
        return client_msg, company_msg

    async def send(self, order: OrderSubmission) -> None:
        if not self.company.email:
            logger.error("order_company_email_missing")
            raise TransportFailure("Order notifications are not configured.")
        client_msg, company_msg = self.render_order(order)
        log = logger.bind(client=order.client.email, lines=len(order.ordered_items))

        try:
            await run_in_thread_mail(self.mailer.send, client_msg)
        except MailDeliveryError as exc:
            log.bind(recipient="client", error=str(exc)).error("order_email_failed")
            raise TransportFailure() from exc

        try:
            await run_in_thread_mail(self.mailer.send, company_msg)
        except MailDeliveryError as exc:
            log.bind(
                recipient="company", delivered=["client"], error=str(exc)
            ).error("order_partial_delivery")
            raise PartialDeliveryFailure(delivered=["client"], failed=["company"]) from exc

        log.bind(total=str(order.total)).info("order_emails_sent")

    async def send_access_code(self, code: str, expires_at: Optional[datetime] = None) -> None:
        """Mail a freshly generated access code to the company."""
        expires = expires_at.strftime("%Y-%m-%d %H:%M UTC") if expires_at else None
        context = {"code": code, "expires_at": expires}
        message = self._message(
            to=self.company.email,
            subject="New order form access code",
            template="access_code",
            context=context,
        )
        try:
            await run_in_thread_mail(self.mailer.send, message)
        except MailDeliveryError as exc:
            logger.bind(error=str(exc)).error("access_code_email_failed")
            raise TransportFailure("The access code was created but could not be emailed.") from exc


def get_order_notifier(request: Request) -> OrderNotifier:
    """FastAPI dependency returning the app-scoped notifier."""

    return request.app.state.order_notifier
