import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_COUNT = Counter(
    "http_requests_total",
    "HTTP requests handled",
    ["service", "method", "path", "status"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["service", "method", "path"],
)
ORDERS_CREATED = Counter("orders_created_total", "Checkout attempts", ["outcome"])
DELIVERY_ASSIGNMENTS = Counter(
    "delivery_assignments_total", "Delivery assignment attempts", ["outcome"]
)
IMAGE_UPLOADS = Counter("image_uploads_total", "Image uploads", ["outcome"])


class MetricsMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, service_name: str):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start

        # label by route template so path params don't explode cardinality
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        REQUEST_COUNT.labels(
            self.service_name, request.method, path, str(response.status_code)
        ).inc()
        REQUEST_LATENCY.labels(self.service_name, request.method, path).observe(elapsed)
        return response


def metrics_endpoint():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
