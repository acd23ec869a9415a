class StaffDBError(Exception):
    """Base error for the staffdb package"""


class ConfigError(StaffDBError):
    """Raised for a missing or invalid configuration value"""
