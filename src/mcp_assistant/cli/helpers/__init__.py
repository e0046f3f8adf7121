"""
CLI helper functions and utilities.
"""

from .display import (
    create_capability_table,
    create_status_table,
    print_capabilities,
    print_connection_report,
)
from .errors import handle_errors

__all__ = [
    'create_capability_table',
    'create_status_table',
    'print_capabilities',
    'print_connection_report',
    'handle_errors',
]
