"""
Server configuration loaded from environment variables.
"""
import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Server configuration."""

    # Server settings; PORT wins so hosting platforms can assign one
    HOST: str = os.getenv("SERVER_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT") or os.getenv("SERVER_PORT", "8080"))

    # Keepalive
    PING_INTERVAL: float = float(os.getenv("PING_INTERVAL", "30"))
    PING_TIMEOUT: float = float(os.getenv("PING_TIMEOUT", "10"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")


config = Config()
settings = config
