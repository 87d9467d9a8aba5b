"""HTTP plumbing shared by every vault backend client."""

from abc import ABC, abstractmethod
from typing import Any, Callable

import httpx
from httpx._types import QueryParamTypes

from shared.clients.VaultRequestError import VaultRequestError
from shared.helper.HelperConfig import HelperConfig
from shared.models.config import EnvConfig

# methods that are safe to repeat after a transport failure
IDEMPOTENT_METHODS = ("GET", "HEAD")

# keys a backend may use for the reason of a failed request
ERROR_MESSAGE_KEYS = ("error", "message", "detail")


class ClientInterface(ABC):
    """
    Base class of a backend client speaking JSON over HTTP.

    Settings are read from ``{TYPE}_{ENGINE}_{KEY}`` variables (e.g. ``VAULT_RAGBOX_BASE_URL``),
    except for the timeout and the GET retry count which are shared by every engine of a
    client type (``VAULT_TIMEOUT``, ``VAULT_GET_RETRIES``).
    """

    def __init__(self, helper_config: HelperConfig):
        self.logging = helper_config.get_logger()
        self._helper_config = helper_config
        type_prefix = self.get_client_type().upper()
        self.timeout = helper_config.get_number_val(f"{type_prefix}_TIMEOUT", default=30.0)
        self.get_retries = helper_config.get_int_val(f"{type_prefix}_GET_RETRIES", default=1, minimum=0)

        self._client: httpx.AsyncClient | None = None
        self.validate_full_configuration()

    ##########################################
    ############### CHECKER ##################
    ##########################################

    def validate_full_configuration(self) -> None:
        """
        Reads every setting the engine declares so a missing one fails at startup.

        Raises:
            ValueError: If a setting without default is unset or has the wrong type.
        """
        for config in self._get_required_config():
            self.get_config_val(raw_key=config.env_key, default=config.default, val_type=config.val_type)

    ##########################################
    ################ GETTER ##################
    ##########################################

    ################ GENERAL ##################
    def get_client_type(self) -> str:
        return self._get_client_type().lower()

    @abstractmethod
    def _get_client_type(self) -> str:
        """
        Returns the kind of backend the client talks to. E.g. "vault"
        """
        pass

    def get_engine_name(self) -> str:
        return self._get_engine_name().lower()

    @abstractmethod
    def _get_engine_name(self) -> str:
        """
        Returns the name of the backend implementation. E.g. "Ragbox"
        """
        pass

    ################ CONFIG ##################
    @abstractmethod
    def _get_required_config(self) -> list[EnvConfig]:
        """
        Returns the engine specific settings, validated when the client is created.
        """
        pass

    def get_config_val(self, raw_key: str, default: Any = None, val_type: str = "string") -> Any:
        """
        Reads an engine specific setting.

        Args:
            raw_key (str): The key without prefix, e.g. "BASE_URL".
            default (Any): Returned when the variable is unset. None makes the setting required.
            val_type (str): One of "string", "number", "int" or "bool".

        Raises:
            ValueError: For an unknown ``val_type`` or a missing or malformed value.
        """
        readers: dict[str, Callable[..., Any]] = {
            "string": self._helper_config.get_string_val,
            "number": self._helper_config.get_number_val,
            "int": self._helper_config.get_int_val,
            "bool": self._helper_config.get_bool_val,
        }
        reader = readers.get(val_type)
        if reader is None:
            raise ValueError(f"Unsupported config value type '{val_type}' for '{raw_key}' of the {self.get_engine_name()} {self.get_client_type()} client.")
        key = f"{self.get_client_type()}_{self.get_engine_name()}_{raw_key}".upper()
        return reader(key, default=default)

    ################ AUTH ##################
    @abstractmethod
    def _get_auth_header(self) -> dict:
        """
        Returns the headers authenticating against the backend, empty when no credentials are set.
        """
        pass

    ################ ENDPOINTS ##################
    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Returns the scheme and host of the backend (e.g. "http://localhost:8080").
        """
        pass

    @abstractmethod
    def _get_endpoint_healthcheck(self) -> str:
        pass

    ##########################################
    ############### REQUESTS #################
    ##########################################

    async def do_healthcheck(self) -> httpx.Response:
        return await self.do_request(method="GET", endpoint=self._get_endpoint_healthcheck())

    ##########################################
    ############ CORE REQUESTS ###############
    ##########################################

    async def boot(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        """Opens the HTTP connection pool. Tests pass a mock transport."""
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=transport)

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def do_request(
        self,
        method: str = "GET",
        json: dict | None = None,
        params: QueryParamTypes | None = None,
        endpoint: str = "",
        additional_headers: dict | None = None,
        raise_on_error: bool = True,
    ) -> httpx.Response:
        """
        Sends a request to the backend.

        GET and HEAD are repeated up to ``get_retries`` times when no response arrives.
        Everything else is sent once, a lost response must not apply a change twice.

        Args:
            method (str): HTTP method.
            json (dict | None): JSON body.
            params (QueryParamTypes | None): Query parameters.
            endpoint (str): Path below the base URL, leading slash optional.
            additional_headers (dict | None): Headers overriding the defaults.
            raise_on_error (bool): Raise on status codes of 300 and above instead of returning the response.

        Returns:
            httpx.Response: The backend response.

        Raises:
            RuntimeError: If boot() was not called.
            VaultRequestError: When the backend is unreachable or answers with an error status.
        """
        if self._client is None:
            raise RuntimeError("HTTP client not initialised. Call boot() before making requests.")

        method = method.upper()
        url = self._build_url(endpoint)
        headers = {**self._get_auth_header(), **(additional_headers or {})}
        request_kwargs: dict = {"headers": headers, "params": params, "timeout": self.timeout}
        if json is not None:
            request_kwargs["json"] = json

        retries = self.get_retries if method in IDEMPOTENT_METHODS else 0
        response = await self._send(method, url, retries, request_kwargs)
        if raise_on_error and response.status_code >= 300:
            self._raise_for_response(url, response)
        return response

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _build_url(self, endpoint: str) -> str:
        path = endpoint.strip().lstrip("/")
        return f"{self._get_base_url().rstrip('/')}/{path}" if path else self._get_base_url().rstrip("/")

    async def _send(self, method: str, url: str, retries: int, request_kwargs: dict) -> httpx.Response:
        attempt = 0
        while True:
            try:
                return await self._client.request(method, url, **request_kwargs)
            except httpx.TransportError as e:
                attempt += 1
                if attempt > retries:
                    self.logging.error("%s %s failed: %s", method, url, e)
                    raise VaultRequestError(message=f"Could not reach {self.get_engine_name()} backend", url=url, transient=True) from e
                self.logging.warning("%s %s failed (%s), retrying (%d/%d)", method, url, e.__class__.__name__, attempt, retries)

    def _raise_for_response(self, url: str, response: httpx.Response) -> None:
        self.logging.error("Request to %s failed with status %d: %s", url, response.status_code, response.text)
        server_message = self._extract_error_message(response)
        raise VaultRequestError(
            message=server_message or f"Request to {url} failed",
            status_code=response.status_code,
            url=url,
            server_message=server_message is not None,
        )

    def _extract_error_message(self, response: httpx.Response) -> str | None:
        """The reason the backend gave for a failed request, if any."""
        try:
            body = response.json()
        except ValueError:
            return None
        if not isinstance(body, dict):
            return None
        return next((body[key] for key in ERROR_MESSAGE_KEYS if isinstance(body.get(key), str) and body[key]), None)
