"""PermEngine - multi-source permission resolution for a multi-tenant OIDC admin console."""

__version__ = "0.1.0"
