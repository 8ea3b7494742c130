"""
Semaphore SMS API Client Module

This module provides a client for the Semaphore v4 HTTP API
(https://semaphore.co/api/v4/) covering message sending, message lookup
and account management.

Every public call returns the decoded JSON payload. Failures are returned
in-band as a mapping with an 'error' key instead of being raised.
"""

import json
import os
import re
from typing import Any, Dict, Optional

import requests

from .cache import CACHE_TTL, ResponseCache, make_cache_key, shared_cache
from .logging_config import get_logger, log_api_event

logger = get_logger(__name__)

BASE_URI = "https://semaphore.co/api/v4/"
TIMEOUT = 5.0  # seconds

APIKEY_PARAM = re.compile(r"(apikey=)[^&\s]+")


def get_default_config_path() -> str:
    """Get the default config file path following XDG standards"""
    config_path = os.environ.get("SEMAPHORE_CONFIG")
    if config_path:
        return config_path

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "semaphore_sms", "config.json")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "semaphore_sms", "config.json")

    return os.path.join(os.getcwd(), ".config", "semaphore_sms", "config.json")


class SemaphoreConfig:
    """Configuration for the Semaphore API client"""

    def __init__(self, config_path: Optional[str] = None, api_key: Optional[str] = None):
        self.config_path = config_path or get_default_config_path()
        self.api_key: str = ""
        self.cache_enabled: bool = True
        self.sender_name: Optional[str] = None

        self._load_config(api_key)

    def _load_config(self, api_key: Optional[str]):
        """Load configuration from file, then apply overrides"""
        config_data = {}
        found = os.path.exists(self.config_path)
        if found:
            with open(self.config_path, 'r') as f:
                config_data = json.load(f)

        # Explicit argument wins over environment, environment over file
        override = api_key or os.environ.get("SEMAPHORE_API_KEY")
        if not found and not override:
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        self.api_key = override or config_data.get("api_key", "")
        if not self.api_key:
            raise ValueError("Missing required config field: api_key")

        self.cache_enabled = bool(config_data.get("cache_enabled", True))
        self.sender_name = config_data.get("sender_name")


class SemaphoreClient:
    """Client for the Semaphore SMS API"""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        cache: Optional[ResponseCache] = None,
    ):
        if not api_key:
            raise ValueError("api_key must be a non-empty string")

        self.api_key = api_key
        self.cache = cache
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()

    def close(self):
        """Close the HTTP session if this client created it"""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        form: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Dispatch a call to the API

        GET requests carry the API key in the query string and go through
        the cache when one is configured. Every other method carries it in
        the form body and is never cached.
        """
        if method == "GET":
            query = dict(query or {})
            query["apikey"] = self.api_key
            logger.debug(f"GET {path} params={sorted(k for k in query if k != 'apikey')}")

            if self.cache is None:
                return self._perform_request(method, path, query=query)

            fetched = False

            def fetch():
                nonlocal fetched
                fetched = True
                return self._perform_request(method, path, query=query)

            result = self.cache.remember(make_cache_key(path, query), CACHE_TTL, fetch)
            if not fetched:
                log_api_event("api_request", method, path, success="error" not in result, cached=True)
            return result

        form = dict(form or {})
        form["apikey"] = self.api_key
        logger.debug(f"{method} {path} fields={sorted(k for k in form if k != 'apikey')}")
        return self._perform_request(method, path, form=form)

    def _perform_request(
        self,
        method: str,
        path: str,
        query: Optional[Dict[str, Any]] = None,
        form: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Make the HTTP call and convert failures to an error mapping"""
        try:
            response = self.session.request(
                method,
                BASE_URI + path,
                params=query,
                data=form,
                timeout=TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            return self._handle_exception(method, path, e)

        log_api_event("api_request", method, path, success=True, status=response.status_code)
        return self._parse_response(response)

    def _parse_response(self, response: requests.Response) -> Dict[str, Any]:
        """Decode a successful response, falling back to an empty mapping"""
        try:
            data = response.json()
        except ValueError:
            data = None
        return {} if data is None else data

    def _handle_exception(
        self, method: str, path: str, e: requests.exceptions.RequestException
    ) -> Dict[str, Any]:
        """Format a transport or HTTP failure as an error mapping"""
        error: Dict[str, Any] = {"error": self._redact(str(e))}

        response = e.response
        if response is not None:
            error["status"] = response.status_code
            try:
                error["body"] = response.json()
            except ValueError:
                error["body"] = None

        log_api_event(
            "api_error", method, path, success=False,
            status=error.get("status"), error=error["error"],
        )
        return error

    def _redact(self, message: str) -> str:
        """Mask the apikey parameter in messages that echo the request URL"""
        return APIKEY_PARAM.sub(r"\1***", message)

    # Messaging

    def send_message(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a standard SMS message

        Args:
            data: Message fields such as 'number', 'message', 'sendername'

        Returns:
            Dict: API response or error information
        """
        return self._request("POST", "messages", form=data)

    def send_priority(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Send a message through the priority queue (same fields as send_message)"""
        return self._request("POST", "priority", form=data)

    def send_otp(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Send a one-time password message

        Args:
            data: OTP fields; the message may contain a {otp} placeholder
                  and 'code' may pin the value instead of letting the API
                  generate one
        """
        return self._request("POST", "otp", form=data)

    def get_messages(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Retrieve sent messages (limit, page, startDate, endDate, status, network)"""
        return self._request("GET", "messages", query=filters)

    def get_message_by_id(self, message_id) -> Dict[str, Any]:
        return self._request("GET", f"messages/{message_id}")

    # Account

    def get_account(self) -> Dict[str, Any]:
        """Get account information including balance and status"""
        return self._request("GET", "account")

    def get_transactions(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "account/transactions", query=filters)

    def get_sender_names(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "account/sendernames", query=filters)

    def get_users(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self._request("GET", "account/users", query=filters)


def create_client(
    config: Optional[SemaphoreConfig] = None,
    session: Optional[requests.Session] = None,
    cache: Optional[ResponseCache] = None,
) -> SemaphoreClient:
    """
    Build a client from configuration

    Args:
        config: Client configuration (loaded from the default location if None)
        session: Optional HTTP session to reuse
        cache: Cache store; defaults to the shared process cache unless
               caching is disabled in the config

    Returns:
        SemaphoreClient: Configured client
    """
    if config is None:
        config = SemaphoreConfig()
    if cache is None and config.cache_enabled:
        cache = shared_cache()
    return SemaphoreClient(config.api_key, session=session, cache=cache)


def send_message(api_config: SemaphoreConfig, data: Dict[str, Any]) -> Dict:
    """
    Send an SMS message

    Args:
        api_config: Semaphore API configuration
        data: Message fields

    Returns:
        Dict: Response from the API
    """
    with create_client(api_config) as client:
        return client.send_message(data)


def get_account(api_config: SemaphoreConfig) -> Dict:
    """
    Get account details

    Args:
        api_config: Semaphore API configuration

    Returns:
        Dict: Response from the API
    """
    with create_client(api_config) as client:
        return client.get_account()
