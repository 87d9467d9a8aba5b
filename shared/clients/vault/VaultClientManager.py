from shared.helper.HelperConfig import HelperConfig
from shared.clients.vault.VaultClientInterface import VaultClientInterface


class VaultClientManager:
    """
    Creates the vault client of the engine named in ``VAULT_ENGINE`` (default "ragbox").

    An engine ``foo`` is served by ``shared.clients.vault.foo.VaultClientFoo``.
    """

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _initialize_client(self) -> VaultClientInterface:
        """
        Raises:
            ValueError: If no client exists for the engine or it is misconfigured.
        """
        engine = self.helper_config.get_string_val("VAULT_ENGINE", default="ragbox").lower()
        class_name = f"VaultClient{engine.capitalize()}"
        try:
            module = __import__(f"shared.clients.vault.{engine}.{class_name}", fromlist=[class_name])
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ValueError(f"Unsupported vault engine specified: '{engine}'. Error: {e}")
        self.logging.info("Using vault engine: %s", engine)
        return client_class(helper_config=self.helper_config)

    def get_client(self) -> VaultClientInterface:
        return self.client
