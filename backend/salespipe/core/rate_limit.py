from collections import deque


class SlidingWindowLimiter:
    """Per-key request counter over a trailing time window.

    Keys whose window has fully expired are dropped on sweep, so the map only
    holds clients that were active within the last window.
    """

    def __init__(self, max_requests: int, window_seconds: float) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._windows: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def __len__(self) -> int:
        return len(self._windows)

    def _expire(self, window: deque[float], now: float) -> None:
        while window and now - window[0] >= self.window_seconds:
            window.popleft()

    def sweep(self, now: float) -> None:
        for key in list(self._windows):
            window = self._windows[key]
            self._expire(window, now)
            if not window:
                del self._windows[key]
        self._last_sweep = now

    def hit(self, key: str, now: float) -> bool:
        """Record a request; False when the key is already at its limit."""
        if now - self._last_sweep >= self.window_seconds:
            self.sweep(now)

        window = self._windows.get(key)
        if window is None:
            window = self._windows[key] = deque()
        self._expire(window, now)
        if len(window) >= self.max_requests:
            return False
        window.append(now)
        return True
