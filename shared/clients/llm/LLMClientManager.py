from shared.helper.HelperConfig import HelperConfig
from shared.clients.llm.LLMClientInterface import LLMClientInterface


class LLMClientManager:
    """Manager class to instantiate the configured remote answer providers."""

    DEFAULT_ENGINES = ["openai", "anthropic"]

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.clients = self._initialize_clients()

    def _get_engines_from_env(self) -> list[str]:
        """Read the LLM engine names from env configuration.

        Returns:
            list[str]: Capitalised engine names (e.g. ["Openai", "Anthropic"]).

        Raises:
            ValueError: If LLM_ENGINES is set to an empty list.
        """
        engines = self.helper_config.get_list_val("LLM_ENGINES", default=self.DEFAULT_ENGINES)
        if not engines:
            raise ValueError("No LLM engines specified in configuration (LLM_ENGINES).")
        return [engine.strip().lower().capitalize() for engine in engines]

    def _initialize_clients(self) -> dict[str, LLMClientInterface]:
        """Instantiate one LLM client per configured engine.

        Returns:
            dict[str, LLMClientInterface]: Clients keyed by lowercase engine name.

        Raises:
            ValueError: If an engine is unsupported or cannot be imported.
        """
        clients: dict[str, LLMClientInterface] = {}
        for engine in self._get_engines_from_env():
            class_name = f"LLMClient{engine}"
            try:
                module = __import__(
                    f"shared.clients.llm.{engine.lower()}.{class_name}",
                    fromlist=[class_name],
                )
                client_class = getattr(module, class_name)
                client = client_class(helper_config=self.helper_config)
                clients[client.get_engine_name()] = client
                self.logging.debug("Instantiated LLM client for engine: %s", engine)
            except (ImportError, AttributeError) as e:
                raise ValueError("Unsupported LLM engine '%s'. Error: %s" % (engine, e))
        return clients

    def get_clients(self) -> dict[str, LLMClientInterface]:
        """Return the instantiated LLM clients keyed by engine name."""
        return self.clients
