"""Error raised by vault clients when a request does not succeed."""


class VaultRequestError(Exception):
    """A failed request against the remote vault.

    Covers both failure kinds the explorer distinguishes: transport failures
    (connection refused, timeouts; ``transient`` is True) and failures reported
    by the backend (non-2xx status or a ``{"success": false}`` envelope).

    Attributes:
        message (str): Human readable reason, the server message when one was sent.
        status_code (int | None): HTTP status of the response, None for transport failures.
        url (str | None): The requested URL.
        transient (bool): True when the request never got a response.
        server_message (bool): True when ``message`` was written by the backend.
    """

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None, transient: bool = False, server_message: bool = False):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url
        self.transient = transient
        self.server_message = server_message

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status {self.status_code})"
        return self.message
