"""
OnceDrop Service Registry
Process-wide service registry - one instance per service name
"""
from typing import Dict, Any
import threading

_lock = threading.Lock()
_services: Dict[str, Any] = {}


def get_service(service_name: str, factory_func=None, *args, **kwargs):
    """
    Get a service instance, creating it on first use.

    Args:
        service_name: registry name
        factory_func: called with *args/**kwargs when the service is missing

    Returns:
        The service instance
    """
    with _lock:
        if service_name not in _services:
            if factory_func is None:
                raise ValueError(f"Service {service_name} not found and no factory provided")
            _services[service_name] = factory_func(*args, **kwargs)

        return _services[service_name]


def register_service(service_name: str, service_instance: Any):
    """Register (or replace) a service instance."""
    with _lock:
        _services[service_name] = service_instance


def has_service(service_name: str) -> bool:
    with _lock:
        return service_name in _services


def clear_services():
    """Drop every registered instance (tests)."""
    with _lock:
        _services.clear()


# Service names
DROP_GATE_SERVICE = "drop_gate_service"
REALTIME_CHANNEL = "realtime_channel"
