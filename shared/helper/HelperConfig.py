"""Environment-backed settings for the explorer, its vault clients and the API server."""

import logging
import os
from typing import Any

_TRUE_VALUES = ("true", "1", "yes", "on")


class HelperConfig:
    """
    Typed access to environment variables plus the shared application logger.

    Keys are case-insensitive. An unset or blank variable falls back to ``default``;
    without a default the setting is required and a ValueError names the key.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    ##########################################
    ################ READERS #################
    ##########################################

    def get_string_val(self, key: str, default: str | None = None) -> str:
        name, raw = self._lookup(key)
        if raw is None:
            return self._fallback(name, default)
        return raw

    def get_number_val(self, key: str, default: float | int | None = None) -> float | int:
        """Integers stay integers, anything with a decimal point is read as float."""
        name, raw = self._lookup(key)
        if raw is None:
            return self._fallback(name, default)
        try:
            return float(raw) if "." in raw else int(raw)
        except ValueError:
            raise ValueError(f"Environment variable '{name}' is not a valid number: '{raw}'.")

    def get_int_val(self, key: str, default: int | None = None, minimum: int | None = None) -> int:
        """
        Read a whole number, e.g. a limit, a retry count or a window in days.

        Args:
            key (str): Environment variable name.
            default (int | None): Fallback value if the variable is not set.
            minimum (int | None): Smallest accepted value.

        Raises:
            ValueError: If the variable is missing without default, not an integer, or below ``minimum``.
        """
        name, raw = self._lookup(key)
        if raw is None:
            value = self._fallback(name, default)
        else:
            try:
                value = int(raw)
            except ValueError:
                raise ValueError(f"Environment variable '{name}' is not a valid integer: '{raw}'.")
        if minimum is not None and value < minimum:
            raise ValueError(f"Environment variable '{name}' must be at least {minimum}. Got: {value}")
        return value

    def get_bool_val(self, key: str, default: bool | None = None) -> bool:
        name, raw = self._lookup(key)
        if raw is None:
            return self._fallback(name, default)
        return raw.lower() in _TRUE_VALUES

    def get_choice_val(self, key: str, choices: list[str], default: str | None = None) -> str:
        """
        Read one value out of a fixed set, compared case-insensitively.

        Returns:
            str: The matching entry of ``choices``.

        Raises:
            ValueError: If the value is missing without default or not one of ``choices``.
        """
        raw = self.get_string_val(key, default=default)
        by_lower = {choice.lower(): choice for choice in choices}
        if raw.lower() not in by_lower:
            raise ValueError(f"Environment variable '{key.upper()}' must be one of {choices}. Got: '{raw}'")
        return by_lower[raw.lower()]

    def get_logger(self) -> logging.Logger:
        return self._logger

    ##########################################
    ############### HELPERS ##################
    ##########################################

    def _lookup(self, key: str) -> tuple[str, str | None]:
        name = key.upper()
        raw = os.getenv(name)
        # blank counts as unset
        return name, raw.strip() if raw and raw.strip() else None

    def _fallback(self, name: str, default: Any) -> Any:
        if default is None:
            raise ValueError(f"Environment variable '{name}' is not set.")
        return default
