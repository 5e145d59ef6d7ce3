"""Configuration package for the checkout gateway."""
from .settings import GatewaySettings, get_settings

__all__ = ["GatewaySettings", "get_settings"]
