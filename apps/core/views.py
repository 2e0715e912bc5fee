"""
Health check, metrics, and current-user views.
"""

from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.observability import (
    HealthStatus,
    health_checker,
    metrics,
    register_default_checks,
)
from apps.core.serializers import UserSerializer


# Register default health checks on module load
register_default_checks()


@method_decorator(csrf_exempt, name='dispatch')
class HealthCheckView(View):
    """
    Health check endpoint.

    GET /health/ - Run all health checks
    GET /health/<check_name>/ - Run specific health check
    """

    def get(self, request, check_name=None):
        if check_name:
            result = health_checker.check(check_name)
            status_code = 200 if result.status == HealthStatus.HEALTHY else 503
            return JsonResponse({
                "status": result.status.value,
                "message": result.message,
                "details": result.details,
                "duration_ms": result.duration_ms,
            }, status=status_code)

        results = health_checker.check_all()
        status_code = 200 if results["status"] == HealthStatus.HEALTHY.value else 503
        return JsonResponse(results, status=status_code)


@method_decorator(csrf_exempt, name='dispatch')
class LivenessView(View):
    """Liveness check. Returns 200 while the process is serving requests."""

    def get(self, request):
        return JsonResponse({"status": "alive"})


@method_decorator(csrf_exempt, name='dispatch')
class ReadinessView(View):
    """Readiness check. Ready once the database answers."""

    def get(self, request):
        db_check = health_checker.check("database")

        if db_check.status == HealthStatus.HEALTHY:
            return JsonResponse({"status": "ready"})
        return JsonResponse({
            "status": "not_ready",
            "reason": db_check.message,
        }, status=503)


@method_decorator(csrf_exempt, name='dispatch')
class MetricsView(View):
    """
    Metrics endpoint.

    GET /metrics/ - Get all in-process counters and histograms
    """

    def get(self, request):
        return JsonResponse(metrics.get_all_metrics())


class CurrentUserView(APIView):
    """
    The authenticated user with their editorial role.

    GET /api/auth/me/
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        serializer = UserSerializer(request.user)
        return Response(serializer.data)
