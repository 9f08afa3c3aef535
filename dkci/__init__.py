"""dkci: export Docker images to disk or Baidu Netdisk and import them back."""

__version__ = "0.1.0"
