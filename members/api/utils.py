from rest_framework.response import Response
from rest_framework import status

from studio.results import ERROR_CONTEXT, ERROR_PERSISTENCE, ERROR_VALIDATION

RESULT_STATUS_CODES = {
    ERROR_VALIDATION: status.HTTP_400_BAD_REQUEST,
    ERROR_PERSISTENCE: status.HTTP_409_CONFLICT,
    ERROR_CONTEXT: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def success_response(data=None, message='Success', status_code=status.HTTP_200_OK):
    return Response({
        'success': True,
        'message': message,
        'data': data
    }, status=status_code)


def error_response(message='Error', errors=None, status_code=status.HTTP_400_BAD_REQUEST, data=None):
    response_data = {
        'success': False,
        'message': message,
        'errors': errors
    }
    if data is not None:
        response_data['data'] = data
    return Response(response_data, status=status_code)


def result_response(result, message, data=None, status_code=status.HTTP_200_OK):
    """
    Turn a service result dict into a response.
    Failure details other than the message (e.g. completed wipe steps) go to ``data``.
    """
    if result['success']:
        return success_response(
            data=result.get('data') if data is None else data,
            message=message,
            status_code=status_code
        )

    error_type = result.get('error_type')
    details = {
        key: value for key, value in result.items()
        if key not in ('success', 'error', 'error_type', 'data')
    }
    return error_response(
        message=result.get('error'),
        errors={'error_type': error_type},
        status_code=RESULT_STATUS_CODES.get(error_type, status.HTTP_400_BAD_REQUEST),
        data=details or None
    )
