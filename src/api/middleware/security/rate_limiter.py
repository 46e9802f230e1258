from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from src.infra.config.settings import get_settings
from src.core.logger.logger import get_logger
from src.core.exceptions.handler import ErrorResponseBuilder, ServiceErrorCode

logger = get_logger(__name__)
settings = get_settings()

WINDOW = timedelta(minutes=1)
EXEMPT_PATHS = ["/api/health", "/", "/docs", "/redoc", "/openapi.json"]
# Paths without their own limit share this bucket
DEFAULT_BUCKET = "*"


class RateLimiter:
    """In-memory sliding window rate limiter with endpoint-specific limits."""

    def __init__(self, endpoint_limits: Optional[Dict[str, int]] = None, default_limit: Optional[int] = None):
        # Request tracking per limit bucket: bucket -> IP -> timestamps
        self.endpoint_requests: Dict[str, Dict[str, List[datetime]]] = {}

        # Requests per minute per IP
        self.endpoint_limits = endpoint_limits if endpoint_limits is not None else {
            '/api/ai/challenge': settings.RATE_LIMIT_AI_CHALLENGE,
            '/api/ai/process-prompt': settings.RATE_LIMIT_AI_PROMPT,
            '/api/register': settings.RATE_LIMIT_REGISTER,
        }
        self.default_limit = default_limit or settings.RATE_LIMIT_DEFAULT

    def bucket_for(self, endpoint: str) -> str:
        return endpoint if endpoint in self.endpoint_limits else DEFAULT_BUCKET

    def is_rate_limited(self, ip: str, endpoint: str, now: Optional[datetime] = None) -> Tuple[bool, int, int, datetime]:
        """
        Check if IP is rate limited for specific endpoint.
        Returns: (is_limited, current_count, limit, reset_time)
        """
        now = now or datetime.utcnow()
        limit = self.endpoint_limits.get(endpoint, self.default_limit)

        requests = self.endpoint_requests.setdefault(self.bucket_for(endpoint), {})
        if ip in requests:
            requests[ip] = [ts for ts in requests[ip] if now - ts < WINDOW]
            if not requests[ip]:
                del requests[ip]

        timestamps = requests.get(ip, [])
        current_count = len(timestamps)

        # The window frees a slot once the oldest request ages out
        reset_time = timestamps[0] + WINDOW if timestamps else now + WINDOW

        return current_count >= limit, current_count, limit, reset_time

    def add_request(self, ip: str, endpoint: str, now: Optional[datetime] = None):
        self.endpoint_requests.setdefault(self.bucket_for(endpoint), {}).setdefault(ip, []).append(now or datetime.utcnow())


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Rate limiting middleware answering 429 with the standard error envelope."""

    def __init__(self, app, rate_limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.rate_limiter = rate_limiter or RateLimiter()

    def _get_client_ip(self, request: Request) -> str:
        """Get client IP, handling proxies."""
        forwarded_for = request.headers.get("X-Forwarded-For")
        if forwarded_for:
            # Take the first IP in the chain
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip.strip()

        return request.client.host if request.client else "unknown"

    def _create_rate_limit_response(self, current_count: int, limit: int, reset_time: datetime) -> Response:
        retry_after = max(1, int((reset_time - datetime.utcnow()).total_seconds()))

        content = ErrorResponseBuilder.build_error_response(
            error_code=ServiceErrorCode.RATE_LIMIT_EXCEEDED,
            message=f"Rate limit exceeded. Maximum {limit} requests per minute.",
            details={
                "limit": limit,
                "current": current_count,
                "retry_after": retry_after
            }
        )

        response = JSONResponse(status_code=429, content=content)
        response.headers["Retry-After"] = str(retry_after)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = "0"
        response.headers["X-RateLimit-Reset"] = str(int(reset_time.timestamp()))
        return response

    async def dispatch(self, request: Request, call_next) -> Response:
        # Skip rate limiting for CORS preflight requests and health checks
        if request.method == "OPTIONS" or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        ip = self._get_client_ip(request)
        endpoint = request.url.path

        is_limited, current_count, limit, reset_time = self.rate_limiter.is_rate_limited(ip, endpoint)
        if is_limited:
            logger.warning(f"Rate limit exceeded for IP {ip} on {endpoint}: {current_count}/{limit}")
            return self._create_rate_limit_response(current_count, limit, reset_time)

        self.rate_limiter.add_request(ip, endpoint)

        response = await call_next(request)

        if response.status_code < 400:
            response.headers["X-RateLimit-Limit"] = str(limit)
            response.headers["X-RateLimit-Remaining"] = str(max(0, limit - current_count - 1))
            response.headers["X-RateLimit-Reset"] = str(int(reset_time.timestamp()))

        return response
