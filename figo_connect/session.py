from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from .core.challenges import ChallengeBase, challenge_from_json
from .core.config import FigoConfig
from .core.context import ApiContext, path_segment as _segment
from .core.data_models import (
    Access,
    Account,
    AccountBalance,
    Bank,
    LoginSettings,
    Notification,
    Payment,
    PaymentInitiation,
    Process,
    ProcessToken,
    Security,
    Service,
    StandingOrder,
    Sync,
    TaskState,
    TaskToken,
    Transaction,
    User,
)
from .core.errors import SdkUsageError
from .core.executor import with_query
from .core.tasks import task_progress_payload, token_value

DEFAULT_PAGE_SIZE = 1000
PAYMENT_SERVICE_PATHS = {
    None: "/rest/catalog/{country}",
    "banks": "/rest/catalog/banks/{country}",
    "services": "/rest/catalog/services/{country}",
}


def _listing_params(options: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    params = dict(options or {})
    since = params.get("since")
    if isinstance(since, (datetime, date)):
        params["since"] = since.isoformat()
    if params.get("count") is None:
        params["count"] = DEFAULT_PAGE_SIZE
    if params.get("offset") is None:
        params["offset"] = 0
    return params


class Session(ApiContext):
    """User-bound connection authenticated with an access token.

    Every entity returned from here keeps a reference to this session, so
    e.g. ``await account.get_transactions()`` works without passing the
    token again. Calls return ``None`` when the resource does not exist.
    """

    def __init__(self, access_token: str, config: Optional[FigoConfig] = None):
        if not access_token:
            raise ValueError("access_token is required.")
        super().__init__(f"Bearer {access_token}", config)

    # User

    async def get_user(self) -> Optional[User]:
        return await self.query_api_object(User.from_json, "/rest/user")

    async def modify_user(self, user: User) -> Optional[User]:
        return await self.query_api_object(User.from_json, "/rest/user", user.dump(), "PUT")

    async def remove_user(self) -> Any:
        return await self.query_api("/rest/user", method="DELETE")

    async def resend_verification(self) -> Any:
        return await self.query_api("/rest/user/resend_verification", method="POST")

    # Accesses and synchronizations

    async def get_accesses(self) -> Optional[List[Access]]:
        return await self.query_api_object(Access.from_json, "/rest/accesses", collection="accesses")

    async def get_access(self, access_id: str) -> Optional[Access]:
        return await self.query_api_object(Access.from_json, f"/rest/accesses/{_segment(access_id)}")

    async def add_access(
        self,
        access_method_id: str,
        account_identifier: Optional[Dict[str, Any]] = None,
        credentials: Optional[Dict[str, Any]] = None,
        save_credentials: Optional[bool] = None,
        consent: Optional[Dict[str, Any]] = None,
    ) -> Optional[Access]:
        options = {
            "access_method_id": access_method_id,
            "account_identifier": [account_identifier] if account_identifier else None,
            "credentials": credentials or None,
            "save_credentials": save_credentials or None,
            "consent": consent or None,
        }
        return await self.query_api_object(Access.from_json, "/rest/accesses", options, "POST")

    async def add_sync(self, access_id: str, options: Optional[Dict[str, Any]] = None) -> Optional[Sync]:
        """Start a provider synchronization; poll it with ``get_sync``."""
        return await self.query_api_object(
            Sync.from_json, f"/rest/accesses/{_segment(access_id)}/syncs", dict(options or {}), "POST"
        )

    async def get_syncs(self, access_id: str) -> Optional[List[Sync]]:
        return await self.query_api_object(
            Sync.from_json, f"/rest/accesses/{_segment(access_id)}/syncs", collection="syncs"
        )

    def _sync_path(self, access_id: str, sync_id: str) -> str:
        return f"/rest/accesses/{_segment(access_id)}/syncs/{_segment(sync_id)}"

    async def get_sync(self, access_id: str, sync_id: str) -> Optional[Sync]:
        return await self.query_api_object(Sync.from_json, self._sync_path(access_id, sync_id))

    async def get_synchronization_challenges(self, access_id: str, sync_id: str) -> Optional[List[ChallengeBase]]:
        return await self.query_api_object(
            challenge_from_json,
            f"{self._sync_path(access_id, sync_id)}/challenges",
            collection="challenges",
        )

    async def get_synchronization_challenge(
        self, access_id: str, sync_id: str, challenge_id: str
    ) -> Optional[ChallengeBase]:
        return await self.query_api_object(
            challenge_from_json,
            f"{self._sync_path(access_id, sync_id)}/challenges/{_segment(challenge_id)}",
        )

    async def solve_synchronization_challenge(
        self, access_id: str, sync_id: str, challenge_id: str, data: Mapping[str, Any]
    ) -> Any:
        """Post the user's answer (e.g. ``{"value": "123456"}`` or ``{"method_id": ...}``)."""
        return await self.query_api(
            f"{self._sync_path(access_id, sync_id)}/challenges/{_segment(challenge_id)}/response",
            data,
            "POST",
        )

    # Accounts

    async def get_accounts(self) -> Optional[List[Account]]:
        return await self.query_api_object(Account.from_json, "/rest/accounts", collection="accounts")

    async def get_account(self, account_id: str) -> Optional[Account]:
        return await self.query_api_object(Account.from_json, f"/rest/accounts/{_segment(account_id)}")

    async def modify_account(self, account: Account) -> Optional[Account]:
        return await self.query_api_object(
            Account.from_json, f"/rest/accounts/{_segment(account.account_id)}", account.dump(), "PUT"
        )

    async def remove_account(self, account: Account) -> Any:
        return await self.query_api(f"/rest/accounts/{_segment(account.account_id)}", method="DELETE")

    async def get_account_balance(self, account_id: str) -> Optional[AccountBalance]:
        return await self.query_api_object(AccountBalance.from_json, f"/rest/accounts/{_segment(account_id)}/balance")

    async def modify_account_balance(self, account_id: str, balance: AccountBalance) -> Optional[AccountBalance]:
        return await self.query_api_object(
            AccountBalance.from_json, f"/rest/accounts/{_segment(account_id)}/balance", balance.dump(), "PUT"
        )

    async def add_account(
        self,
        country: str,
        credentials: List[str],
        bank_code: Optional[str] = None,
        iban: Optional[str] = None,
        save_pin: Optional[bool] = None,
    ) -> Optional[TaskToken]:
        """Legacy account setup; the returned task token drives ``get_task_state``."""
        data: Dict[str, Any] = {"country": country, "credentials": credentials}
        if iban:
            data["iban"] = iban
        elif bank_code:
            data["bank_code"] = bank_code
        data["save_pin"] = save_pin if isinstance(save_pin, bool) else False
        return await self.query_api_object(TaskToken.from_json, "/rest/accounts", data, "POST")

    # Banks and catalog

    async def get_bank(self, bank_id: str) -> Optional[Bank]:
        return await self.query_api_object(Bank.from_json, f"/rest/banks/{_segment(bank_id)}")

    async def modify_bank(self, bank: Bank) -> Optional[Bank]:
        return await self.query_api_object(Bank.from_json, f"/rest/banks/{_segment(bank.bank_id)}", bank.dump(), "PUT")

    async def remove_bank_pin(self, bank: Bank) -> Any:
        return await self.query_api(f"/rest/banks/{_segment(bank.bank_id)}/remove_pin", method="POST")

    async def get_supported_payment_services(self, country_code: str, service: Optional[str] = None) -> Any:
        """Catalog of banks (``service="banks"``), other services (``"services"``) or both (``None``)."""
        if service not in PAYMENT_SERVICE_PATHS:
            raise SdkUsageError(f"Unsupported catalog '{service}'; use 'banks', 'services' or None.")
        path = PAYMENT_SERVICE_PATHS[service].format(country=_segment(country_code))
        return await self.query_api_object(Service.from_json, path)

    async def get_login_settings(self, country_code: str, item_id: str) -> Optional[LoginSettings]:
        return await self.query_api_object(
            LoginSettings.from_json, f"/rest/catalog/banks/{_segment(country_code)}/{_segment(item_id)}"
        )

    # Securities

    async def get_security(self, account_id: str, security_id: str) -> Optional[Security]:
        return await self.query_api_object(
            Security.from_json, f"/rest/accounts/{_segment(account_id)}/securities/{_segment(security_id)}"
        )

    async def get_securities(self, options: Optional[Mapping[str, Any]] = None) -> Optional[List[Security]]:
        """Options: ``since``, ``count``, ``offset`` and ``account_id`` to scope to one account."""
        params = _listing_params(options)
        account_id = params.pop("account_id", None)
        path = f"/rest/accounts/{_segment(account_id)}/securities" if account_id else "/rest/securities"
        return await self.query_api_object(Security.from_json, with_query(path, params), collection="securities")

    async def modify_security(self, account_id: str, security_id: str, visited: bool) -> Any:
        return await self.query_api(
            f"/rest/accounts/{_segment(account_id)}/securities/{_segment(security_id)}", {"visited": visited}, "PUT"
        )

    async def modify_securities(self, visited: bool, account_id: Optional[str] = None) -> Any:
        path = f"/rest/accounts/{_segment(account_id)}/securities" if account_id else "/rest/securities"
        return await self.query_api(path, {"visited": visited}, "PUT")

    # Transactions

    async def get_transactions(self, options: Optional[Mapping[str, Any]] = None) -> Optional[List[Transaction]]:
        """Options: ``since`` (id or datetime), ``count``, ``offset``,
        ``include_pending`` and ``account_id`` to scope to one account.
        """
        params = _listing_params(options)
        params["include_pending"] = 1 if params.get("include_pending") else 0
        account_id = params.pop("account_id", None)
        path = f"/rest/accounts/{_segment(account_id)}/transactions" if account_id else "/rest/transactions"
        return await self.query_api_object(
            Transaction.from_json, with_query(path, params), collection="transactions"
        )

    async def get_transaction(self, account_id: str, transaction_id: str) -> Optional[Transaction]:
        return await self.query_api_object(
            Transaction.from_json, f"/rest/accounts/{_segment(account_id)}/transactions/{_segment(transaction_id)}"
        )

    async def modify_transaction(self, account_id: str, transaction_id: str, visited: bool) -> Optional[Transaction]:
        return await self.query_api_object(
            Transaction.from_json,
            f"/rest/accounts/{_segment(account_id)}/transactions/{_segment(transaction_id)}",
            {"visited": visited},
            "PUT",
        )

    async def modify_transactions(self, visited: bool, account_id: Optional[str] = None) -> Any:
        path = f"/rest/accounts/{_segment(account_id)}/transactions" if account_id else "/rest/transactions"
        return await self.query_api(path, {"visited": visited}, "PUT")

    async def delete_transaction(self, account_id: str, transaction_id: str) -> Any:
        return await self.query_api(
            f"/rest/accounts/{_segment(account_id)}/transactions/{_segment(transaction_id)}", method="DELETE"
        )

    # Standing orders

    async def get_standing_orders(self) -> Optional[List[StandingOrder]]:
        return await self.query_api_object(
            StandingOrder.from_json, "/rest/standing_orders", collection="standing_orders"
        )

    async def get_standing_order(self, standing_order_id: str) -> Optional[StandingOrder]:
        return await self.query_api_object(
            StandingOrder.from_json, f"/rest/standing_orders/{_segment(standing_order_id)}"
        )

    # Notifications

    async def get_notifications(self) -> Optional[List[Notification]]:
        return await self.query_api_object(Notification.from_json, "/rest/notifications", collection="notifications")

    async def get_notification(self, notification_id: str) -> Optional[Notification]:
        return await self.query_api_object(Notification.from_json, f"/rest/notifications/{_segment(notification_id)}")

    async def add_notification(self, notification: Notification) -> Optional[Notification]:
        return await self.query_api_object(
            Notification.from_json, "/rest/notifications", notification.dump(), "POST"
        )

    async def modify_notification(self, notification: Notification) -> Optional[Notification]:
        return await self.query_api_object(
            Notification.from_json,
            f"/rest/notifications/{_segment(notification.notification_id)}",
            notification.dump(),
            "PUT",
        )

    async def remove_notification(self, notification: Notification) -> Any:
        return await self.query_api(f"/rest/notifications/{_segment(notification.notification_id)}", method="DELETE")

    # Payments

    async def get_payments(self, account_id: Optional[str] = None) -> Optional[List[Payment]]:
        path = f"/rest/accounts/{_segment(account_id)}/payments" if account_id else "/rest/payments"
        return await self.query_api_object(Payment.from_json, path, collection="payments")

    async def get_payment(self, account_id: str, payment_id: str) -> Optional[Payment]:
        return await self.query_api_object(
            Payment.from_json, f"/rest/accounts/{_segment(account_id)}/payments/{_segment(payment_id)}"
        )

    async def get_payment_proposals(self) -> Any:
        return await self.query_api("/rest/address_book")

    async def add_payment(self, payment: Payment) -> Optional[Payment]:
        return await self.query_api_object(
            Payment.from_json, f"/rest/accounts/{_segment(payment.account_id)}/payments", payment.dump(), "POST"
        )

    async def modify_payment(self, payment: Payment) -> Optional[Payment]:
        return await self.query_api_object(
            Payment.from_json,
            f"/rest/accounts/{_segment(payment.account_id)}/payments/{_segment(payment.payment_id)}",
            payment.dump(),
            "PUT",
        )

    async def remove_payment(self, payment: Payment) -> Any:
        return await self.query_api(
            f"/rest/accounts/{_segment(payment.account_id)}/payments/{_segment(payment.payment_id)}", method="DELETE"
        )

    async def submit_payment(
        self,
        payment: Payment,
        tan_scheme_id: str,
        state: str,
        redirect_uri: Optional[str] = None,
    ) -> Optional[str]:
        """Submit a payment to the bank; returns the URL that starts the task."""
        params = {"tan_scheme_id": tan_scheme_id, "state": state, "redirect_uri": redirect_uri}
        result = await self.query_api(
            f"/rest/accounts/{_segment(payment.account_id)}/payments/{_segment(payment.payment_id)}/submit",
            params,
            "POST",
        )
        if result is None:
            return None
        return self.task_start_url(token_value(result))

    async def get_sync_url(self, redirect_uri: str, state: str) -> Optional[str]:
        """URL the user opens to synchronize all accounts in the browser."""
        result = await self.query_api("/rest/sync", {"redirect_uri": redirect_uri, "state": state}, "POST")
        if result is None:
            return None
        return self.task_start_url(token_value(result))

    def _payment_init_path(self, account_id: str, payment_id: str, init_id: Optional[str] = None) -> str:
        path = f"/rest/accounts/{_segment(account_id)}/payments/{_segment(payment_id)}/init"
        return f"{path}/{_segment(init_id)}" if init_id else path

    async def init_payment(
        self,
        payment: Payment,
        auth_method_id: Optional[str] = None,
        state: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        certificate: Optional[str] = None,
    ) -> Optional[PaymentInitiation]:
        """Hand a payment to the provider; answer challenges via ``solve_payment_challenge``."""
        data = {
            "auth_method_id": auth_method_id,
            "state": state,
            "redirect_uri": redirect_uri,
            "certificate": certificate,
        }
        return await self.query_api_object(
            PaymentInitiation.from_json,
            self._payment_init_path(payment.account_id, payment.payment_id),
            data,
            "POST",
        )

    async def get_payment_initiation(
        self, account_id: str, payment_id: str, init_id: str
    ) -> Optional[PaymentInitiation]:
        return await self.query_api_object(
            PaymentInitiation.from_json, self._payment_init_path(account_id, payment_id, init_id)
        )

    async def get_payment_challenges(
        self, account_id: str, payment_id: str, init_id: str
    ) -> Optional[List[ChallengeBase]]:
        return await self.query_api_object(
            challenge_from_json,
            f"{self._payment_init_path(account_id, payment_id, init_id)}/challenges",
            collection="challenges",
        )

    async def get_payment_challenge(
        self, account_id: str, payment_id: str, init_id: str, challenge_id: str
    ) -> Optional[ChallengeBase]:
        return await self.query_api_object(
            challenge_from_json,
            f"{self._payment_init_path(account_id, payment_id, init_id)}/challenges/{_segment(challenge_id)}",
        )

    async def solve_payment_challenge(
        self, account_id: str, payment_id: str, init_id: str, challenge_id: str, data: Mapping[str, Any]
    ) -> Any:
        return await self.query_api(
            f"{self._payment_init_path(account_id, payment_id, init_id)}/challenges/{_segment(challenge_id)}/response",
            data,
            "POST",
        )

    # Tasks and processes

    async def start_task(self, task_token: Any) -> Any:
        return await self.query_api(with_query("/task/start", {"id": token_value(task_token)}))

    async def get_task_state(self, task_token: Any, options: Optional[Mapping[str, Any]] = None) -> Optional[TaskState]:
        """Poll a task once.

        Options: ``pin`` and ``save_pin`` (defaults to ``False`` when a PIN is
        sent), ``response`` to a challenge, ``continue`` after an error or to
        skip an optional step (defaults to ``False``).
        """
        token = token_value(task_token)
        return await self.query_api_object(
            TaskState.from_json,
            with_query("/task/progress", {"id": token}),
            task_progress_payload(token, options),
            "POST",
        )

    async def cancel_task(self, task_token: Any) -> Optional[TaskToken]:
        token = token_value(task_token)
        return await self.query_api_object(TaskToken.from_json, with_query("/task/cancel", {"id": token}), None, "POST")

    async def start_process(self, process_token: Any) -> Any:
        token = token_value(process_token, "process_token")
        return await self.query_api(with_query("/process/start", {"id": token}))

    async def create_process(self, process: Process) -> Optional[ProcessToken]:
        return await self.query_api_object(ProcessToken.from_json, "/client/process", process.dump(), "POST")
