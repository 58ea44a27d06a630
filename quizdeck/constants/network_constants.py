"""Network configuration constants for the quiz service."""

DEFAULT_HOST: str = "0.0.0.0"
DEFAULT_PORT: int = 8000
HOST_ENV_VAR: str = "QUIZDECK_HOST"
PORT_ENV_VAR: str = "QUIZDECK_PORT"
