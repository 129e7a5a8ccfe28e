import threading
import time


class LoginGuard:
    """Failed-login throttle keyed by (email, client IP).

    After ``max_attempts`` failures inside ``window_seconds`` the pair is
    locked for ``lockout_seconds``. State is per process.
    """

    def __init__(self, max_attempts: int, window_seconds: int, lockout_seconds: int) -> None:
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.lockout_seconds = lockout_seconds
        self._lock = threading.Lock()
        self._attempts: dict[str, dict[str, float]] = {}

    @staticmethod
    def _now() -> float:
        return time.time()

    @staticmethod
    def _record_key(email: str, client_ip: str) -> str:
        return f"{email.strip().lower()}|{client_ip}"

    def is_allowed(self, email: str, client_ip: str) -> tuple[bool, int]:
        key = self._record_key(email, client_ip)
        now = self._now()

        with self._lock:
            record = self._attempts.get(key)
            if not record:
                return True, 0

            locked_until = record.get("locked_until", 0.0)
            if locked_until > now:
                return False, max(int(locked_until - now), 1)

            first_attempt = record.get("first_attempt", now)
            if now - first_attempt > self.window_seconds:
                self._attempts.pop(key, None)

        return True, 0

    def register_failure(self, email: str, client_ip: str) -> tuple[bool, int]:
        key = self._record_key(email, client_ip)
        now = self._now()

        with self._lock:
            record = self._attempts.get(key)
            if not record or now - record.get("first_attempt", now) > self.window_seconds:
                record = {
                    "first_attempt": now,
                    "failed_attempts": 0,
                    "locked_until": 0.0,
                }
                self._attempts[key] = record

            record["failed_attempts"] += 1
            if record["failed_attempts"] >= self.max_attempts:
                record["locked_until"] = now + self.lockout_seconds
                record["failed_attempts"] = 0
                record["first_attempt"] = now
                return False, self.lockout_seconds

        return True, 0

    def register_success(self, email: str, client_ip: str) -> None:
        key = self._record_key(email, client_ip)
        with self._lock:
            self._attempts.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._attempts.clear()
