"""HTTP client for the budget API.

Reads go through a ``RetryPolicy``; writes are sent once.
"""
import os
from typing import Any, Dict, List, Optional, Tuple

import requests

from callbudget.app.config import Settings, get_settings
from callbudget.client.retry import RetryPolicy


class ApiError(Exception):
    def __init__(self, status_code: int, payload: Any):
        self.status_code = status_code
        self.payload = payload
        detail = payload.get("detail") if isinstance(payload, dict) else payload
        super().__init__(f"HTTP {status_code}: {detail}")

    @property
    def code(self) -> Optional[str]:
        return self.payload.get("error") if isinstance(self.payload, dict) else None


class BudgetApiClient:
    def __init__(
        self,
        base_url: str,
        user_id: Optional[str] = None,
        role: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.retry_policy = retry_policy or RetryPolicy()
        self.session = session or requests.Session()
        self.timeout = timeout
        if user_id:
            self.session.headers["X-User-Id"] = user_id
        if role:
            self.session.headers["X-User-Role"] = role

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **kwargs) -> "BudgetApiClient":
        settings = settings or get_settings()
        policy = RetryPolicy(settings.client_max_attempts, settings.client_backoff_seconds)
        return cls(settings.api_base_url, retry_policy=policy, **kwargs)

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}{endpoint}"

    def _budgets(self, startup_call_id: str) -> str:
        return f"/startup-calls/{startup_call_id}/budgets"

    def _expenses(self, startup_call_id: str, budget_id: str) -> str:
        return f"{self._budgets(startup_call_id)}/{budget_id}/expenses"

    @staticmethod
    def _parse(response: requests.Response) -> Any:
        if response.status_code >= 400:
            try:
                payload = response.json()
            except ValueError:
                payload = response.text
            raise ApiError(response.status_code, payload)
        return response.json() if response.content else {}

    def _read(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self.retry_policy.call(
            lambda: self.session.get(self._url(endpoint), params=params, timeout=self.timeout)
        )
        return self._parse(response)

    def _write(self, method: str, endpoint: str, **kwargs) -> Any:
        response = self.session.request(method, self._url(endpoint), timeout=self.timeout, **kwargs)
        return self._parse(response)

    # Reads

    def get_startup_call(self, startup_call_id: str) -> Dict[str, Any]:
        return self._read(f"/startup-calls/{startup_call_id}")

    def startup_call_summary(self, startup_call_id: str) -> Dict[str, Any]:
        return self._read(f"/startup-calls/{startup_call_id}/budget-summary")

    def list_budgets(self, startup_call_id: str) -> List[Dict[str, Any]]:
        return self._read(self._budgets(startup_call_id))

    def get_budget(self, startup_call_id: str, budget_id: str) -> Dict[str, Any]:
        return self._read(f"{self._budgets(startup_call_id)}/{budget_id}")

    def budget_summary(self, startup_call_id: str, budget_id: str) -> Dict[str, Any]:
        return self._read(f"{self._budgets(startup_call_id)}/{budget_id}/summary")

    def monthly_summary(self, startup_call_id: str, budget_id: str, year: Optional[int] = None) -> Dict[str, Any]:
        params = {"year": year} if year else None
        return self._read(f"{self._budgets(startup_call_id)}/{budget_id}/summary/monthly", params)

    def list_categories(self, startup_call_id: str, budget_id: str) -> List[Dict[str, Any]]:
        return self._read(f"{self._budgets(startup_call_id)}/{budget_id}/categories")

    def list_expenses(
        self,
        startup_call_id: str,
        budget_id: str,
        category_id: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        params = {key: value for key, value in {"category_id": category_id, "status": status}.items() if value}
        return self._read(self._expenses(startup_call_id, budget_id), params or None)

    def get_expense(self, startup_call_id: str, budget_id: str, expense_id: str) -> Dict[str, Any]:
        return self._read(f"{self._expenses(startup_call_id, budget_id)}/{expense_id}")

    # Writes

    def create_startup_call(self, title: str, description: Optional[str] = None) -> Dict[str, Any]:
        return self._write("post", "/startup-calls", json={"title": title, "description": description})

    def create_user(self, email: str, display_name: Optional[str] = None, role: str = "entrepreneur") -> Dict[str, Any]:
        return self._write("post", "/users", json={"email": email, "display_name": display_name, "role": role})

    def create_budget(self, startup_call_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._write("post", self._budgets(startup_call_id), json=payload)

    def update_budget(self, startup_call_id: str, budget_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._write("put", f"{self._budgets(startup_call_id)}/{budget_id}", json=payload)

    def delete_budget(self, startup_call_id: str, budget_id: str) -> Dict[str, Any]:
        return self._write("delete", f"{self._budgets(startup_call_id)}/{budget_id}")

    def create_category(self, startup_call_id: str, budget_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._write("post", f"{self._budgets(startup_call_id)}/{budget_id}/categories", json=payload)

    def create_expense(
        self,
        startup_call_id: str,
        budget_id: str,
        fields: Dict[str, Any],
        receipt_file: Optional[str] = None,
        content_type: str = "application/octet-stream"
    ) -> Dict[str, Any]:
        """Send the expense as multipart form data, with the receipt file if given"""
        data = {key: str(value) for key, value in fields.items() if value is not None}
        endpoint = self._expenses(startup_call_id, budget_id)
        if not receipt_file:
            return self._write("post", endpoint, data=data)
        with open(receipt_file, "rb") as handle:
            files = {"receipt": (os.path.basename(receipt_file), handle, content_type)}
            return self._write("post", endpoint, data=data, files=files)

    def update_expense(
        self, startup_call_id: str, budget_id: str, expense_id: str, fields: Dict[str, Any]
    ) -> Dict[str, Any]:
        data = {key: str(value) for key, value in fields.items() if value is not None}
        return self._write("put", f"{self._expenses(startup_call_id, budget_id)}/{expense_id}", data=data)

    def update_expense_status(
        self, startup_call_id: str, budget_id: str, expense_id: str, status: str, note: Optional[str] = None
    ) -> Dict[str, Any]:
        return self._write(
            "patch",
            f"{self._expenses(startup_call_id, budget_id)}/{expense_id}/status",
            json={"status": status, "note": note},
        )

    def delete_expense(self, startup_call_id: str, budget_id: str, expense_id: str) -> Dict[str, Any]:
        return self._write("delete", f"{self._expenses(startup_call_id, budget_id)}/{expense_id}")

    def download_report(self, startup_call_id: str, payload: Dict[str, Any]) -> Tuple[bytes, str]:
        """Returns the report bytes and the filename suggested by the server"""
        response = self.session.post(
            self._url(f"{self._budgets(startup_call_id)}/report"), json=payload, timeout=self.timeout
        )
        if response.status_code >= 400:
            self._parse(response)
        disposition = response.headers.get("Content-Disposition", "")
        filename = disposition.split("filename=")[-1].strip('"') if "filename=" in disposition else "budget_report"
        return response.content, filename
