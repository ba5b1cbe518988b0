import json
import logging
import time

from fastapi import Request

from skillswap.config import settings
from skillswap.utils.datetime_utils import serialize_datetime, utc_now


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    real_ip = request.headers.get("x-real-ip", "")
    if real_ip:
        return real_ip
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent", "unknown")


logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

security_logger = logging.getLogger("security")
auth_logger = logging.getLogger("auth")
exchange_logger = logging.getLogger("exchange")


def _timestamp() -> str | None:
    return serialize_datetime(utc_now())


class SecurityLogger:
    @staticmethod
    def log_login_attempt(
        request: Request,
        email: str,
        success: bool,
        user_id: int | None = None,
        failure_reason: str | None = None,
    ):
        log_data: dict[str, object] = {
            "event_type": "login_attempt",
            "email": email,
            "success": success,
            "ip_address": get_client_ip(request),
            "user_agent": get_user_agent(request),
            "timestamp": _timestamp(),
        }

        if user_id:
            log_data["user_id"] = user_id
        if failure_reason:
            log_data["failure_reason"] = failure_reason

        message = f"Login {'successful' if success else 'failed'}: {json.dumps(log_data)}"

        if success:
            auth_logger.info(message)
        else:
            auth_logger.warning(message)

    @staticmethod
    def log_registration(
        request: Request,
        email: str,
        user_id: int | None = None,
        success: bool = True,
        failure_reason: str | None = None,
    ):
        log_data: dict[str, object] = {
            "event_type": "user_registration",
            "email": email,
            "success": success,
            "ip_address": get_client_ip(request),
            "user_agent": get_user_agent(request),
            "timestamp": _timestamp(),
        }

        if user_id:
            log_data["user_id"] = user_id
        if failure_reason:
            log_data["failure_reason"] = failure_reason

        message = f"Registration {'successful' if success else 'failed'}: {json.dumps(log_data)}"
        if success:
            auth_logger.info(message)
        else:
            auth_logger.warning(message)

    @staticmethod
    def log_suspicious_activity(
        request: Request,
        activity_type: str,
        user_id: int | None = None,
        details: dict[str, object] | None = None,
    ):
        log_data: dict[str, object] = {
            "event_type": "suspicious_activity",
            "activity_type": activity_type,
            "ip_address": get_client_ip(request),
            "user_agent": get_user_agent(request),
            "timestamp": _timestamp(),
        }

        if user_id:
            log_data["user_id"] = user_id
        if details:
            log_data.update(details)

        security_logger.warning(f"Suspicious activity detected: {json.dumps(log_data)}")

    @staticmethod
    def log_rate_limit_exceeded(
        request: Request,
        limit_type: str,
        user_id: int | None = None,
        details: dict[str, object] | None = None,
    ):
        log_data: dict[str, object] = {
            "event_type": "rate_limit_exceeded",
            "limit_type": limit_type,
            "ip_address": get_client_ip(request),
            "user_agent": get_user_agent(request),
            "timestamp": _timestamp(),
        }

        if user_id is not None:
            log_data["user_id"] = user_id
        if details is not None:
            log_data.update(details)

        security_logger.warning(f"Rate limit exceeded: {json.dumps(log_data)}")


class ExchangeLogger:
    """Structured audit lines for the match request and match lifecycle."""

    @staticmethod
    def log_request_sent(request_id: int, sender_id: int, receiver_id: int):
        log_data: dict[str, object] = {
            "event_type": "match_request_sent",
            "request_id": request_id,
            "sender_id": sender_id,
            "receiver_id": receiver_id,
            "timestamp": _timestamp(),
        }
        exchange_logger.info(f"Match request sent: {json.dumps(log_data)}")

    @staticmethod
    def log_request_transition(
        request_id: int,
        actor_id: int,
        new_status: str,
        match_id: int | None = None,
    ):
        log_data: dict[str, object] = {
            "event_type": "match_request_transition",
            "request_id": request_id,
            "actor_id": actor_id,
            "status": new_status,
            "timestamp": _timestamp(),
        }
        if match_id is not None:
            log_data["match_id"] = match_id
        exchange_logger.info(f"Match request {new_status}: {json.dumps(log_data)}")

    @staticmethod
    def log_match_rollback(request_id: int, actor_id: int, reason: str):
        log_data: dict[str, object] = {
            "event_type": "match_creation_rollback",
            "request_id": request_id,
            "actor_id": actor_id,
            "reason": reason,
            "timestamp": _timestamp(),
        }
        exchange_logger.error(f"Match creation failed, request reverted: {json.dumps(log_data)}")

    @staticmethod
    def log_match_event(
        match_id: int,
        actor_id: int,
        action: str,
        details: dict[str, object] | None = None,
    ):
        log_data: dict[str, object] = {
            "event_type": f"match_{action}",
            "match_id": match_id,
            "actor_id": actor_id,
            "timestamp": _timestamp(),
        }
        if details:
            log_data.update(details)
        exchange_logger.info(f"Match {action}: {json.dumps(log_data)}")


class SimpleRateLimiter:
    def __init__(self):
        self._attempts: dict[str, list[float]] = {}
        self._lockouts: dict[str, float] = {}

    def check_and_record_attempt(
        self,
        key: str,
        max_attempts: int = 5,
        window_seconds: int = 300,
        lockout_seconds: int = 900,
    ) -> dict[str, object]:
        now = time.time()

        if key in self._lockouts:
            if now < self._lockouts[key]:
                return {
                    "allowed": False,
                    "reason": "locked_out",
                    "retry_after": int(self._lockouts[key] - now),
                }
            del self._lockouts[key]

        attempts = [ts for ts in self._attempts.get(key, []) if now - ts < window_seconds]

        if len(attempts) >= max_attempts:
            self._lockouts[key] = now + lockout_seconds
            self._attempts[key] = attempts
            return {
                "allowed": False,
                "reason": "too_many_attempts",
                "attempts": len(attempts),
                "retry_after": lockout_seconds,
            }

        attempts.append(now)
        self._attempts[key] = attempts

        return {
            "allowed": True,
            "attempts": len(attempts),
            "remaining": max_attempts - len(attempts),
        }

    def reset(self, key: str) -> None:
        _ = self._attempts.pop(key, None)
        _ = self._lockouts.pop(key, None)

    def clear_all_limits(self) -> None:
        self._attempts.clear()
        self._lockouts.clear()


rate_limiter = SimpleRateLimiter()
