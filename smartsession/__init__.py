"""Session-scoped permission validation for ERC-4337 / ERC-7579 smart accounts."""

__version__ = "0.1.0"
