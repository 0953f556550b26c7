from django.http import JsonResponse
from django.db import connection

from simulator.clock import get_effective_today, read_override


def health_check(request):
    status = {
        'status': 'healthy',
        'database': 'connected',
        'effective_date': get_effective_today(request),
        'simulating': read_override(request) is not None,
        'version': '1.0'
    }
    status_code = 200

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
    except Exception:
        status['status'] = 'unhealthy'
        status['database'] = 'disconnected'
        status_code = 503

    return JsonResponse(status, status=status_code)
