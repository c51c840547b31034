"""Balance Scout: headless gift card balance checker."""

__version__ = "0.1.0"
