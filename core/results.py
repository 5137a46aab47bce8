from functools import wraps

from core.exceptions import ClinicError
from core.logging_setup import get_logger

logger = get_logger("operations")


def success(**payload):
    return {"success": True, **payload}


def failure(error: str, code: str | None = None):
    result = {"success": False, "error": error}
    if code:
        result["code"] = code
    return result


def service_operation(label: str):
    """Run a service function and report its outcome as a result dict.

    The wrapped function returns a payload dict (or None) on success and
    raises on failure. Nothing escapes the wrapper:

        {"success": True, **payload}
        {"success": False, "error": "<label>: <message>", "code": "..."}
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                payload = func(*args, **kwargs)
            except ClinicError as e:
                logger.error("%s: %s", label, e.message)
                return failure(f"{label}: {e.message}", e.code)
            except Exception as e:
                logger.error("%s: %s", label, e, exc_info=True)
                return failure(f"{label}: {e}")
            return success(**(payload or {}))

        wrapper.raw = func
        return wrapper

    return decorator
