"""Configuration package for the Ollama MCP client."""

from config.settings import Settings, get_settings
from config.server_config import ServerConfig
from config.client_config import ClientConfig, ConfigError, load_client_config

__all__ = ["Settings", "get_settings", "ServerConfig", "ClientConfig", "ConfigError", "load_client_config"]
