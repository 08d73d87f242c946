import threading
import time
from typing import Dict, List

from fastapi import HTTPException, Request

class SimpleRateLimiter:
    """Sliding one-minute window per client, protecting the upstream boards from bursts."""

    def __init__(self, requests_per_minute: int = 30):
        self.requests_per_minute = requests_per_minute
        self.requests: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def check(self, request: Request, raise_exception: bool = True) -> bool:
        client = request.client.host if request.client else "unknown"
        now = time.time()

        with self._lock:
            recent = [t for t in self.requests.get(client, []) if now - t < 60]
            if len(recent) >= self.requests_per_minute:
                self.requests[client] = recent
                if raise_exception:
                    raise HTTPException(status_code=429, detail="Too many searches, slow down")
                return False

            recent.append(now)
            self.requests[client] = recent
            return True
