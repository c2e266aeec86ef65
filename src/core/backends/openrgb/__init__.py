from .client import CLIENT_NAME, OpenRgbClient, connect_with_retry

__all__ = ["CLIENT_NAME", "OpenRgbClient", "connect_with_retry"]
