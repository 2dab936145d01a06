import ipaddress
from typing import Any

from rest_framework.request import Request

SENSITIVE_KEYS = ("password", "token", "secret", "key")
REDACTED = "[REDACTED]"


def get_client_ip(request: Request) -> str:
    """
    Extract client IP address from request, handling proxies and load balancers
    """
    x_forwarded_for = request.META.get("HTTP_X_FORWARDED_FOR")
    if x_forwarded_for:
        # X-Forwarded-For can contain multiple IPs, take the first one
        ip = x_forwarded_for.split(",")[0].strip()
        if is_valid_ip(ip):
            return ip

    x_real_ip = request.META.get("HTTP_X_REAL_IP")
    if x_real_ip and is_valid_ip(x_real_ip):
        return x_real_ip

    remote_addr = request.META.get("REMOTE_ADDR", "unknown")
    return remote_addr if is_valid_ip(remote_addr) else "unknown"


def is_valid_ip(ip: str) -> bool:
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def format_file_size(size: int) -> str:
    """
    Human readable size: ``0 Bytes``, ``512 Bytes``, ``1.5 KB``, ``2 MB``.
    """
    if size <= 0:
        return "0 Bytes"

    units = ["Bytes", "KB", "MB", "GB"]
    value = float(size)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    if index == 0:
        return f"{int(value)} Bytes"
    return f"{round(value, 2):g} {units[index]}"


def sanitize_for_log(data: Any) -> Any:
    """Recursively replace values of sensitive keys before logging a payload."""
    if isinstance(data, dict):
        sanitized = {}
        for key, value in data.items():
            if any(marker in str(key).lower() for marker in SENSITIVE_KEYS):
                sanitized[key] = REDACTED
            else:
                sanitized[key] = sanitize_for_log(value)
        return sanitized
    if isinstance(data, (list, tuple)):
        return [sanitize_for_log(item) for item in data]
    return data


def parse_int(value, default: int, minimum: int = 1, maximum: int = None) -> int:
    """Parse a query-string integer, falling back to ``default`` on junk input."""
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    number = max(number, minimum)
    if maximum is not None:
        number = min(number, maximum)
    return number
