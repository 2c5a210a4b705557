# Services package

from .code_validation import validate_virtual_endpoint_code
from .executor import VirtualEndpointExecutor
from .fetch_interceptor import (
    cleanup_fetch_interceptor,
    initialize_fetch_interceptor,
    update_virtual_endpoints,
)
from .http_executor import execute_request
from .templates import get_template, get_template_list
from .virtual_endpoint_factory import create_virtual_endpoint, update_virtual_endpoint

__all__ = [
    "validate_virtual_endpoint_code",
    "VirtualEndpointExecutor",
    "cleanup_fetch_interceptor",
    "initialize_fetch_interceptor",
    "update_virtual_endpoints",
    "execute_request",
    "get_template",
    "get_template_list",
    "create_virtual_endpoint",
    "update_virtual_endpoint",
]
