"""Centralized constants for all modules."""

# Configuration files
DEFAULT_CONFIG_NAME = "default"
DEFAULT_CONFIG_TYPE = "yaml"
DEFAULT_CONFIG_PATH = "./configs"
SUPPORTED_CONFIG_TYPES = ["yaml", "yml", "json"]

# Additional configuration file, merged over the defaults when all three are set
CONFIG_NAME_ENV_VAR = "KUBECOST_EXPORTER_CONFIG_NAME"
CONFIG_TYPE_ENV_VAR = "KUBECOST_EXPORTER_CONFIG_TYPE"
CONFIG_PATH_ENV_VAR = "KUBECOST_EXPORTER_CONFIG_PATH"

# Durations
DEFAULT_DURATION = "1m"
DEFAULT_UPDATE_INTERVAL = "1m"

# Labels
LABEL_SEPARATOR = ","
PATH_SEPARATOR = "."

# Upstream API
API_SCHEME = "http"
WINDOW_PARAMETER = "window"
HTTP_TIMEOUT = 30  # seconds
USER_AGENT = "kubecost-exporter/1.0"

# Scrape endpoint
DEFAULT_SERVER_PORT = 9101
DEFAULT_SERVER_PATH = "/metrics"
