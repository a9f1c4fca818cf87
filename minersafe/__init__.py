"""MinerSafe identity core: authentication, profile reconciliation and auth audit trail."""

__version__ = "0.1.0"
