"""Telemetry client abstraction and the NFM-T REST implementation."""

import logging
from typing import Protocol

import requests
import urllib3

from otsloss.errors import AuthenticationError, TelemetryFormatError, TransportError
from otsloss.models import Connection, FiberCore, LookbackWindow

logger = logging.getLogger(__name__)

PM_METRIC_KEY = "OPIN/TOPR-AVG (Receive/NEND)"


class TelemetryClient(Protocol):
    """Protocol defining the calls the loss engine makes to the platform."""

    def fetch_inventory(self) -> list[Connection]:
        """Return every physical connection known to the platform."""
        ...

    def fetch_characteristics(self, connection_id: str) -> list[FiberCore]:
        """Return the fiber cores of one connection in platform order."""
        ...

    def fetch_pm_series(self, object_id: str, window: LookbackWindow) -> dict:
        """Return the raw PM query document for one PM object."""
        ...

    def fetch_managed_connection_ids(self) -> list[tuple[str, str]]:
        """Return (display label, PM object id) pairs."""
        ...


class NfmtClient:
    """REST client for Nokia NFM-T.

    Authenticates with the single-step token endpoint on entry and revokes
    the token on exit, so it is meant to be used as a context manager:

        with NfmtClient("10.0.0.1", "admin", "secret") as client:
            inventory = client.fetch_inventory()

    The underlying requests.Session is shared by every worker thread; it is
    only read from once authenticated.
    """

    def __init__(
        self,
        host: str,
        username: str,
        password: str,
        granularity: str = "15mins",
        verify_tls: bool = False,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ):
        if not host or not host.strip():
            raise ValueError("Host cannot be empty")

        self.host = host.strip()
        self.username = username
        self.password = password
        self.granularity = granularity
        self.timeout_seconds = timeout_seconds
        self.session = session if session is not None else requests.Session()
        self.session.verify = verify_tls
        if not verify_tls:
            # NFM-T ships self-signed certificates
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

        self.access_token = ""
        self.token_type = ""

    def __enter__(self) -> "NfmtClient":
        self.authenticate()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if not self.access_token:
            return
        if exc is None:
            self.deauthenticate()
            return

        # The run is already failing; keep its error as the one reported
        try:
            self.deauthenticate()
        except TransportError as e:
            logger.warning("Token revocation failed after an aborted run: %s", e)

    # -- authentication --------------------------------------------------

    def authenticate(self) -> None:
        """Request a bearer token with the configured credentials."""
        response = self._send(
            "auth token",
            "POST",
            f"https://{self.host}/rest-gateway/rest/api/v1/auth/token",
            auth=(self.username, self.password),
            data={"grant_type": "client_credentials"},
            error_class=AuthenticationError,
        )
        body = self._decode("auth token", response)
        if not isinstance(body, dict) or not body.get("access_token"):
            raise AuthenticationError(self.host, "auth token", "no access_token in reply")

        self.access_token = body["access_token"]
        self.token_type = body.get("token_type") or "Bearer"
        logger.info("REST API authentication succeeded: host=%s", self.host)

    def deauthenticate(self) -> None:
        """Revoke the current token."""
        self._send(
            "auth revocation",
            "POST",
            f"https://{self.host}/rest-gateway/rest/api/v1/auth/revocation",
            auth=(self.username, self.password),
            data={"token": self.access_token, "token_type_hint": "token"},
            error_class=AuthenticationError,
        )
        self.access_token = ""
        logger.info("REST API deauthentication succeeded: host=%s", self.host)

    # -- platform calls --------------------------------------------------

    def fetch_inventory(self) -> list[Connection]:
        body = self.get_json("/data/npr/physicalConns")
        return [Connection.from_json(record) for record in _as_list(body, "physicalConns")]

    def fetch_characteristics(self, connection_id: str) -> list[FiberCore]:
        path = f"/data/npr/physicalConns/{connection_id}/fiberCharacteristic"
        body = self.get_json(path)
        return [FiberCore.from_json(record) for record in _as_list(body, path)]

    def fetch_managed_connection_ids(self) -> list[tuple[str, str]]:
        body = self.post_json("/mncpm/mdcxnlist/", {"noOfEntries": 10000, "startIndex": 0})
        pairs = []
        for record in _as_list(body, "mdcxnlist"):
            if not isinstance(record, dict):
                raise TelemetryFormatError(f"Managed connection is not an object: {record!r}")
            pairs.append((str(record.get("cxnName", "")), str(record.get("cxnId", ""))))
        return pairs

    def fetch_pm_series(self, object_id: str, window: LookbackWindow) -> dict:
        payload = {
            "objIds": [object_id],
            "startTime": window.start_epoch,
            "endTime": window.end_epoch,
            "granularity": self.granularity,
            "fileType": "CSV",
            "sftp": "inactive",
            "username": "",
            "passwd": "",
            "fileLocation": "",
        }
        body = self.post_json("/mncpm/connection/query", payload)
        if not isinstance(body, dict):
            raise TelemetryFormatError(f"PM query for {object_id} did not return an object")
        return body

    # -- transport -------------------------------------------------------

    def get_json(self, path: str):
        call = f"GET {path}"
        response = self._send(
            call, "GET", f"https://{self.host}:8443/oms1350{path}", headers=self._headers()
        )
        return self._decode(call, response)

    def post_json(self, path: str, payload: dict):
        call = f"POST {path}"
        response = self._send(
            call,
            "POST",
            f"https://{self.host}:8443{path}",
            headers=self._headers(),
            json=payload,
        )
        return self._decode(call, response)

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"{self.token_type} {self.access_token}",
            "Content-Type": "application/json",
        }

    def _send(self, call: str, method: str, url: str, error_class=TransportError, **kwargs):
        logger.debug("Request: %s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout_seconds, **kwargs)
        except requests.RequestException as e:
            raise error_class(self.host, call, str(e)) from e

        if response.status_code != 200:
            raise error_class(self.host, call, response.reason or "", response.status_code)
        return response

    def _decode(self, call: str, response):
        try:
            return response.json()
        except ValueError as e:
            raise TelemetryFormatError(f"{call} on {self.host} returned invalid JSON") from e


def _as_list(body, what: str) -> list:
    if not isinstance(body, list):
        raise TelemetryFormatError(f"Expected a list from {what}, got {type(body).__name__}")
    return body
