from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter a vault client reads from the environment.

    Attributes:
        env_key (str): The raw key of the setting, without the client prefix (e.g. "BASE_URL").
        val_type (str): The expected type of the value. Supported types are "string", "number", "int" and "bool".
        default (str | int | float | bool | None): An optional default value. If None, the setting is required and an error is raised when it is missing.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | None = None
