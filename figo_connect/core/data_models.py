"""Typed figo Connect resources."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from .challenges import AuthMethod, Challenge
from .entity import Entity, register_nested_entity


class SynchronizationStatus(Entity):
    """Bank server synchronization status."""

    code: Optional[int] = None
    message: Optional[str] = None
    sync_timestamp: Optional[datetime] = None
    success_timestamp: Optional[datetime] = None


class AccountBalance(Entity):
    """Balance of an account; ``balance`` and ``balance_date`` stay empty until the bank reported one."""

    balance: Optional[float] = None
    balance_date: Optional[datetime] = None
    credit_line: Optional[float] = None
    monthly_spending_limit: Optional[float] = None
    status: Optional[SynchronizationStatus] = None

    dump_attributes = ("credit_line", "monthly_spending_limit")


register_nested_entity("status", SynchronizationStatus)
register_nested_entity("balance", AccountBalance)


class Account(Entity):
    """One bank account of the user."""

    account_id: Optional[str] = None
    bank_id: Optional[str] = None
    name: Optional[str] = None
    owner: Optional[str] = None
    auto_sync: Optional[bool] = None
    account_number: Optional[str] = None
    bank_code: Optional[str] = None
    bank_name: Optional[str] = None
    currency: Optional[str] = None
    iban: Optional[str] = None
    bic: Optional[str] = None
    type: Optional[str] = None
    icon: Optional[str] = None
    additional_icons: Optional[Dict[str, Any]] = None
    status: Optional[SynchronizationStatus] = None
    balance: Optional[AccountBalance] = None

    dump_attributes = ("name", "owner", "auto_sync")

    async def get_transactions(self, options: Optional[Dict[str, Any]] = None):
        session = self._require_session()
        return await session.get_transactions({**(options or {}), "account_id": self.account_id})

    async def get_transaction(self, transaction_id: str):
        return await self._require_session().get_transaction(self.account_id, transaction_id)

    async def get_payments(self):
        return await self._require_session().get_payments(self.account_id)

    async def get_payment(self, payment_id: str):
        return await self._require_session().get_payment(self.account_id, payment_id)

    async def get_securities(self, options: Optional[Dict[str, Any]] = None):
        session = self._require_session()
        return await session.get_securities({**(options or {}), "account_id": self.account_id})

    async def get_security(self, security_id: str):
        return await self._require_session().get_security(self.account_id, security_id)

    async def get_bank(self):
        return await self._require_session().get_bank(self.bank_id)

    async def get_balance(self):
        return await self._require_session().get_account_balance(self.account_id)


class Transaction(Entity):
    """One booked or pending transaction on an account."""

    transaction_id: Optional[str] = None
    account_id: Optional[str] = None
    name: Optional[str] = None
    account_number: Optional[str] = None
    bank_code: Optional[str] = None
    bank_name: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    booking_date: Optional[datetime] = None
    value_date: Optional[datetime] = None
    purpose: Optional[str] = None
    type: Optional[str] = None
    booking_text: Optional[str] = None
    booked: Optional[bool] = None
    visited: Optional[bool] = None
    creation_timestamp: Optional[datetime] = None
    modification_timestamp: Optional[datetime] = None
    bic: Optional[str] = None
    iban: Optional[str] = None
    booking_key: Optional[str] = None
    creditor_id: Optional[str] = None
    mandate_reference: Optional[str] = None
    sepa_purpose_code: Optional[str] = None
    sepa_remittance_info: Optional[str] = None
    text_key_addition: Optional[str] = None
    end_to_end_reference: Optional[str] = None
    customer_reference: Optional[str] = None
    prima_nota_number: Optional[Any] = None


class StandingOrder(Entity):
    standing_order_id: Optional[str] = None
    account_id: Optional[str] = None
    first_execution_date: Optional[datetime] = None
    last_execution_date: Optional[datetime] = None
    execution_day: Optional[int] = None
    interval: Optional[str] = None
    name: Optional[str] = None
    account_number: Optional[str] = None
    bank_code: Optional[str] = None
    bank_name: Optional[str] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    purpose: Optional[str] = None
    creation_timestamp: Optional[datetime] = None
    modification_timestamp: Optional[datetime] = None


class Security(Entity):
    security_id: Optional[str] = None
    account_id: Optional[str] = None
    name: Optional[str] = None
    isin: Optional[str] = None
    wkn: Optional[str] = None
    currency: Optional[str] = None
    quantity: Optional[float] = None
    amount: Optional[float] = None
    amount_original_currency: Optional[float] = None
    exchange_rate: Optional[float] = None
    price: Optional[float] = None
    price_currency: Optional[str] = None
    purchase_price: Optional[float] = None
    purchase_price_currency: Optional[str] = None
    visited: Optional[bool] = None
    trade_timestamp: Optional[datetime] = None
    creation_timestamp: Optional[datetime] = None
    modification_timestamp: Optional[datetime] = None

    dump_attributes = (
        "name",
        "isin",
        "wkn",
        "currency",
        "quantity",
        "amount",
        "amount_original_currency",
        "exchange_rate",
        "price",
        "price_currency",
        "purchase_price",
        "purchase_price_currency",
        "visited",
    )


class Notification(Entity):
    """A registered webhook or email hook."""

    notification_id: Optional[str] = None
    observe_key: Optional[str] = None
    notify_uri: Optional[str] = None
    state: Optional[str] = None

    dump_attributes = ("observe_key", "notify_uri", "state")


class Service(Entity):
    name: Optional[str] = None
    bank_code: Optional[str] = None
    icon: Optional[str] = None
    additional_icons: Optional[Dict[str, Any]] = None

    dump_attributes = ("name", "bank_code", "icon", "additional_icons")


class Credential(Entity):
    """One login field a bank asks for."""

    label: Optional[str] = None
    masked: Optional[bool] = None
    optional: Optional[bool] = None

    dump_attributes = ("label", "masked", "optional")


class LoginSettings(Entity):
    bank_name: Optional[str] = None
    supported: Optional[bool] = None
    icon: Optional[str] = None
    additional_icons: Optional[Dict[str, Any]] = None
    credentials: Optional[List[Credential]] = None
    auth_type: Optional[str] = None
    advice: Optional[str] = None

    dump_attributes = ("bank_name", "supported", "icon", "additional_icons", "credentials", "auth_type", "advice")


class Bank(Entity):
    bank_id: Optional[str] = None
    sepa_creditor_id: Optional[str] = None
    save_pin: Optional[bool] = None

    dump_attributes = ("sepa_creditor_id",)


class Payment(Entity):
    payment_id: Optional[str] = None
    account_id: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None
    account_number: Optional[str] = None
    bank_code: Optional[str] = None
    iban: Optional[str] = None
    bank_name: Optional[str] = None
    bank_icon: Optional[str] = None
    bank_additional_icons: Optional[Dict[str, Any]] = None
    amount: Optional[float] = None
    currency: Optional[str] = None
    purpose: Optional[str] = None
    submission_timestamp: Optional[datetime] = None
    creation_timestamp: Optional[datetime] = None
    modification_timestamp: Optional[datetime] = None
    transaction_id: Optional[str] = None

    dump_attributes = ("type", "name", "account_number", "bank_code", "iban", "amount", "currency", "purpose")


class User(Entity):
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    address: Optional[Dict[str, Any]] = None
    verified_email: Optional[bool] = None
    send_newsletter: Optional[bool] = None
    language: Optional[str] = None
    premium: Optional[bool] = None
    premium_expires_on: Optional[str] = None
    premium_subscription: Optional[str] = None
    join_date: Optional[datetime] = None

    dump_attributes = ("name", "address", "send_newsletter", "language")


class TaskToken(Entity):
    """Correlation id of a background bank communication task."""

    task_token: Optional[str] = None

    dump_attributes = ("task_token",)

    async def get_state(self, options: Optional[Dict[str, Any]] = None):
        return await self._require_session().get_task_state(self, options)


class TaskChallenge(Entity):
    """Challenge embedded in a task state (legacy PIN/TAN dialog)."""

    title: Optional[str] = None
    label: Optional[str] = None
    format: Optional[str] = None
    data: Optional[str] = None

    dump_attributes = ("title", "label", "format")


class TaskState(Entity):
    account_id: Optional[str] = None
    message: Optional[str] = None
    is_waiting_for_pin: bool = False
    is_waiting_for_response: bool = False
    is_erroneous: bool = False
    is_ended: bool = False
    challenge: Optional[TaskChallenge] = None

    dump_attributes = (
        "account_id",
        "message",
        "is_waiting_for_pin",
        "is_waiting_for_response",
        "is_erroneous",
        "is_ended",
        "challenge",
    )

    @property
    def waiting_for_pin(self) -> bool:
        return self.is_waiting_for_pin

    @property
    def waiting_for_response(self) -> bool:
        return self.is_waiting_for_response

    @property
    def erroneous(self) -> bool:
        return self.is_erroneous

    @property
    def ended(self) -> bool:
        return self.is_ended


class ProcessToken(Entity):
    process_token: Optional[str] = None

    dump_attributes = ("process_token",)


class Process(Entity):
    """Business process definition submitted through ``create_process``."""

    email: Optional[str] = None
    password: Optional[str] = None
    redirect_uri: Optional[str] = None
    state: Optional[str] = None
    steps: Optional[List[Dict[str, Any]]] = None

    dump_attributes = ("email", "password", "redirect_uri", "state", "steps")


class Access(Entity):
    """Configured connection between the user and one financial provider."""

    id: Optional[str] = None
    access_method_id: Optional[str] = None
    consent: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    auth_methods: Optional[List[AuthMethod]] = None

    async def add_sync(self, options: Optional[Dict[str, Any]] = None):
        return await self._require_session().add_sync(self.id, options)

    async def get_syncs(self):
        return await self._require_session().get_syncs(self.id)

    async def get_sync(self, sync_id: str):
        return await self._require_session().get_sync(self.id, sync_id)

    async def get_synchronization_challenges(self, sync_id: str):
        return await self._require_session().get_synchronization_challenges(self.id, sync_id)


class BackgroundOperation(Entity):
    """Server-side operation moving through ``created -> started -> ended``."""

    id: Optional[str] = None
    status: Optional[str] = None
    challenge: Optional[Challenge] = None
    error: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @property
    def is_started(self) -> bool:
        return self.started_at is not None

    @property
    def is_ended(self) -> bool:
        return self.ended_at is not None


class Sync(BackgroundOperation):
    """One synchronization run of an access."""


class PaymentInitiation(BackgroundOperation):
    """Submission of a payment to the bank, possibly waiting on a challenge."""
