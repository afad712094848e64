import os
import logging
from urllib.parse import urljoin
from typing import Any, Mapping, Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class AuthAdminClient:
    """Admin client for the external auth service that owns login emails."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_role_key: Optional[str] = None,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        load_dotenv()
        url = base_url or os.getenv("AUTH_BASE_URL")
        if not url:
            raise ValueError("Environment variable 'AUTH_BASE_URL' is not set")
        key = service_role_key or os.getenv("AUTH_SERVICE_ROLE_KEY")
        if not key:
            raise ValueError("Environment variable 'AUTH_SERVICE_ROLE_KEY' is not set")

        self.base_url = url.rstrip("/")
        self._service_role_key = key
        self.session = session or requests.Session()
        self.timeout = timeout

    # -------- headers --------
    @property
    def admin_headers(self) -> Mapping[str, str]:
        return {
            "Accept": "application/json",
            "apikey": self._service_role_key,
            "Authorization": f"Bearer {self._service_role_key}",
        }

    # -------- core request --------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> Any:
        url = urljoin(self.base_url + "/", path.lstrip("/"))
        r = self.session.request(
            method=method.upper(),
            url=url,
            headers=self.admin_headers,
            params=params,
            json=json,
            timeout=self.timeout,
        )
        r.raise_for_status()
        return r.json() if r.content else None

    # -------- API callers --------
    def get_user_by_id(self, user_id: str) -> dict:
        """Return the auth record of ``user_id``.

        Raises
        ------
        requests.HTTPError
            If the auth service rejects the request or the user does not exist.
        RuntimeError
            If the response body is not a JSON object.
        """
        # Never log the service role key
        logger.debug("Fetching auth user %s", user_id)
        data = self._request("GET", f"/auth/v1/admin/users/{user_id}")
        if not isinstance(data, dict):
            raise RuntimeError(f"Unexpected auth admin response: {data!r}")
        return data

    def get_user_email(self, user_id: str) -> Optional[str]:
        data = self.get_user_by_id(user_id)
        # Some deployments wrap the record as {"user": {...}}
        user = data.get("user", data)
        if not isinstance(user, dict):
            return None
        return user.get("email") or None
