"""
Result values returned by service functions.

Services never raise for expected failures; they return a dict with a
``success`` flag that views turn into HTTP responses.
"""

ERROR_VALIDATION = 'validation'
ERROR_PERSISTENCE = 'persistence'
ERROR_CONTEXT = 'context_unavailable'


def operation_success(data=None, **extra) -> dict:
    result = {'success': True, 'data': data}
    result.update(extra)
    return result


def operation_failure(message: str, error_type: str, **extra) -> dict:
    result = {
        'success': False,
        'error': message,
        'error_type': error_type,
    }
    result.update(extra)
    return result


def store_message(exc: Exception) -> str:
    """Human readable message of a database-level exception."""
    if exc.args and isinstance(exc.args[0], str):
        return exc.args[0]
    return str(exc)
