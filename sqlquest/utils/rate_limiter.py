"""
Rate limiting for API endpoints
"""
import asyncio
import time
from collections import defaultdict
from fastapi import Request, HTTPException
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    In-memory per-client rate limiter with minute and hour windows

    One instance per application, held on app.state. Stale entries are
    pruned by a background task that exists only between start() and stop().
    """

    def __init__(
        self,
        requests_per_minute: int = 60,
        requests_per_hour: int = 1000,
        cleanup_interval: int = 300
    ):
        self.requests_per_minute = requests_per_minute
        self.requests_per_hour = requests_per_hour
        self.cleanup_interval = cleanup_interval

        # Storage: {client_id: [timestamp, ...]}
        self.minute_tracker: Dict[str, list] = defaultdict(list)
        self.hour_tracker: Dict[str, list] = defaultdict(list)

        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._cleanup_task is not None and not self._cleanup_task.done()

    def start(self) -> None:
        """Start the periodic cleanup task on the running loop"""
        if self.running:
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop())
        logger.info("Rate limiter cleanup started")

    async def stop(self) -> None:
        """Cancel the cleanup task and drop all tracked clients"""
        if self._cleanup_task is not None:
            self._cleanup_task.cancel()
            try:
                await self._cleanup_task
            except asyncio.CancelledError:
                pass
            self._cleanup_task = None
        self.minute_tracker.clear()
        self.hour_tracker.clear()
        logger.info("Rate limiter stopped")

    async def _cleanup_loop(self) -> None:
        while True:
            await asyncio.sleep(self.cleanup_interval)
            self.cleanup()
            logger.debug(f"Rate limiter tracking {len(self.hour_tracker)} clients")

    def cleanup(self) -> None:
        self._cleanup_old_entries(self.minute_tracker, 60)
        self._cleanup_old_entries(self.hour_tracker, 3600)

    def _get_client_id(self, request: Request) -> str:
        """Extract client identifier from request"""
        if hasattr(request.state, "user_id"):
            return str(request.state.user_id)

        # Fallback to IP address
        return request.client.host if request.client else "unknown"

    def _cleanup_old_entries(self, tracker: Dict[str, list], window_seconds: int) -> None:
        """Remove entries older than window"""
        cutoff_time = time.time() - window_seconds

        for client_id in list(tracker.keys()):
            tracker[client_id] = [ts for ts in tracker[client_id] if ts > cutoff_time]

            # Remove empty entries
            if not tracker[client_id]:
                del tracker[client_id]

    async def check_rate_limit(self, request: Request) -> None:
        """
        Check if request exceeds rate limits

        Raises:
            HTTPException: 429 if rate limit exceeded
        """
        client_id = self._get_client_id(request)
        current_time = time.time()

        minute_requests = sum(1 for ts in self.minute_tracker.get(client_id, []) if ts > current_time - 60)
        if minute_requests >= self.requests_per_minute:
            logger.warning(f"Rate limit exceeded (minute): {client_id}")
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Limit: {self.requests_per_minute} requests per minute",
                    "retry_after": 60
                }
            )

        hour_requests = sum(1 for ts in self.hour_tracker.get(client_id, []) if ts > current_time - 3600)
        if hour_requests >= self.requests_per_hour:
            logger.warning(f"Rate limit exceeded (hour): {client_id}")
            raise HTTPException(
                status_code=429,
                detail={
                    "error": "rate_limit_exceeded",
                    "message": f"Too many requests. Limit: {self.requests_per_hour} requests per hour",
                    "retry_after": 3600
                }
            )

        # Record this request
        self.minute_tracker[client_id].append(current_time)
        self.hour_tracker[client_id].append(current_time)

        logger.debug(f"Rate limit check passed: {client_id} (minute: {minute_requests+1}, hour: {hour_requests+1})")
