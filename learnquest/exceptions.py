"""
Standardized exception hierarchy for learnquest
Provides rich context, consistent logging, and user-friendly error messages

User messages are kept as translation keys, so the API can answer in the
request's language even when the error was raised below the service layer.
"""

from datetime import datetime
from typing import Optional, Dict, Any
from uuid import uuid4
import logging

import httpx
import openai
import psycopg

from learnquest.config import DEFAULT_LANGUAGE
from learnquest.i18n.translations import t

logger = logging.getLogger(__name__)


class LearnQuestError(Exception):
    """
    Base exception for all learnquest errors

    Provides:
    - Automatic timestamping
    - Request ID for tracing
    - User-friendly messages in the requested language
    - Automatic logging

    Example:
        raise LearnQuestError(
            message="Failed to save post",
            user_id="7b6f...",
            operation="record_post",
            context={"post_length": 120}
        )
    """

    status_code: int = 500
    message_key: str = "error_generic"

    def __init__(
        self,
        message: str,
        user_id: Optional[str] = None,
        request_id: Optional[str] = None,
        operation: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        user_message: Optional[str] = None,
        lang: str = DEFAULT_LANGUAGE,
        message_args: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.user_id = user_id
        self.request_id = request_id or str(uuid4())
        self.operation = operation
        self.context = context or {}
        self.cause = cause
        self.lang = lang
        self.message_args = message_args or {}
        # An explicit user_message is used as-is in every language
        self._fixed_user_message = user_message
        self.user_message = self.localized_message(lang)
        self.timestamp = datetime.utcnow()

        # Auto-log on creation
        self._log_error()

    def localized_message(self, lang: str) -> str:
        if self._fixed_user_message is not None:
            return self._fixed_user_message
        return t(self.message_key, lang, **self.message_args)

    def _log_error(self) -> None:
        """Log error with full context"""
        log_data = {
            "error_type": self.__class__.__name__,
            "error_message": self.message,  # Avoid conflict with logging's 'message' field
            "request_id": self.request_id,
            "user_id": self.user_id,
            "operation": self.operation,
            "error_context": self.context,
            "timestamp": self.timestamp.isoformat()
        }

        if self.cause:
            log_data["cause"] = str(self.cause)
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data, exc_info=self.cause)
        else:
            logger.error(f"{self.__class__.__name__}: {self.message}", extra=log_data)

    def to_dict(self, lang: Optional[str] = None) -> Dict[str, Any]:
        """Serialize exception for API responses, optionally in another language"""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "user_message": self.localized_message(lang) if lang else self.user_message,
            "request_id": self.request_id,
            "timestamp": self.timestamp.isoformat()
        }


# ==========================================
# Validation Errors (User Input)
# ==========================================

class ValidationError(LearnQuestError):
    """
    Raised when user input fails validation, before any store call

    Example:
        raise ValidationError(
            message="Content must not be empty",
            field="content",
            value="   ",
            lang="th",
        )
    """

    status_code = 422
    message_key = "error_invalid_input"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs
    ):
        self.field = field
        self.value = value
        if field:
            self.message_key = "error_invalid_field"
        super().__init__(
            message=message,
            context={"field": field, "value": value},
            message_args={"field": field},
            **kwargs
        )


class InvalidTransitionError(LearnQuestError):
    """A status change that the entity's state machine does not allow"""

    status_code = 409
    message_key = "error_invalid_transition"

    def __init__(
        self,
        message: str,
        entity: Optional[str] = None,
        state: Optional[str] = None,
        event: Optional[str] = None,
        **kwargs
    ):
        self.entity = entity
        self.state = state
        self.event = event
        super().__init__(
            message=message,
            context={"entity": entity, "state": state, "event": event},
            **kwargs
        )


# ==========================================
# Database Errors
# ==========================================

class DatabaseError(LearnQuestError):
    """
    Base class for database-related errors
    """
    pass


class ConnectionError(DatabaseError):
    """Database connection failed"""

    message_key = "error_database_connection"

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(message=message, **kwargs)


class QueryError(DatabaseError):
    """Database query execution failed"""

    message_key = "error_database_write"

    def __init__(
        self,
        message: str,
        query: Optional[str] = None,
        **kwargs
    ):
        self.query = query
        super().__init__(
            message=message,
            context={"query": query},
            **kwargs
        )


class RecordNotFoundError(DatabaseError):
    """Requested database record does not exist"""

    status_code = 404
    message_key = "error_not_found"

    def __init__(
        self,
        message: str,
        record_type: Optional[str] = None,
        record_id: Optional[str] = None,
        **kwargs
    ):
        self.record_type = record_type
        self.record_id = record_id
        super().__init__(
            message=message,
            context={"record_type": record_type, "record_id": record_id},
            message_args={"record": (record_type or "record").replace("_", " ")},
            **kwargs
        )


# ==========================================
# External API Errors
# ==========================================

class ExternalAPIError(LearnQuestError):
    """
    Base class for external API failures
    """

    status_code = 502
    message_key = "error_external_service"

    def __init__(
        self,
        message: str,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs
    ):
        self.service = service
        self.upstream_status = status_code
        super().__init__(
            message=message,
            context={"service": service, "status_code": status_code},
            **kwargs
        )


class AIGatewayError(ExternalAPIError):
    """AI coach gateway failed (any non-2xx other than 429/402, or transport error)"""

    message_key = "ai_error_generic"

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            service="AI Gateway",
            **kwargs
        )


class RateLimitedError(AIGatewayError):
    """AI gateway answered 429"""

    status_code = 429
    message_key = "ai_error_rate_limited"

    def __init__(self, message: str = "AI gateway rate limit exceeded", **kwargs):
        super().__init__(message=message, status_code=429, **kwargs)


class PaymentRequiredError(AIGatewayError):
    """AI gateway answered 402"""

    status_code = 402
    message_key = "ai_error_payment_required"

    def __init__(self, message: str = "AI gateway requires payment", **kwargs):
        super().__init__(message=message, status_code=402, **kwargs)


# ==========================================
# Authentication
# ==========================================

class AuthenticationError(LearnQuestError):
    """Authentication failed"""

    status_code = 401
    message_key = "error_unauthorized"

    def __init__(
        self,
        message: str = "Authentication failed",
        **kwargs
    ):
        super().__init__(message=message, **kwargs)


# ==========================================
# Configuration Errors
# ==========================================

class ConfigurationError(LearnQuestError):
    """System configuration is invalid or missing"""

    message_key = "error_configuration"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs
    ):
        self.config_key = config_key
        super().__init__(
            message=message,
            context={"config_key": config_key},
            **kwargs
        )


# ==========================================
# Helper Functions
# ==========================================

def wrap_external_exception(
    error: Exception,
    operation: str,
    user_id: Optional[str] = None,
    context: Optional[Dict[str, Any]] = None,
    lang: str = DEFAULT_LANGUAGE,
) -> LearnQuestError:
    """
    Wrap external exceptions (psycopg, openai, httpx) into our exception hierarchy

    Args:
        error: Original exception
        operation: What operation was being performed
        user_id: User ID if applicable
        context: Additional context
        lang: Language of the user message

    Returns:
        Appropriate LearnQuestError subclass

    Example:
        try:
            await queries.insert_post(user_id, content, image_url)
        except psycopg.Error as e:
            raise wrap_external_exception(e, operation="record_post", user_id=user_id)
    """
    # Database errors
    if isinstance(error, psycopg.OperationalError):
        return ConnectionError(
            message=f"Database connection failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            lang=lang,
            context=context,
            cause=error
        )
    elif isinstance(error, psycopg.Error):
        return QueryError(
            message=f"Database query failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            lang=lang,
            cause=error
        )

    # AI gateway transport errors
    elif isinstance(error, openai.APIConnectionError):
        return AIGatewayError(
            message=f"AI gateway unreachable: {str(error)}",
            user_id=user_id,
            operation=operation,
            lang=lang,
            cause=error
        )

    # HTTP errors
    elif isinstance(error, httpx.TimeoutException):
        return AIGatewayError(
            message=f"API request timed out: {str(error)}",
            user_id=user_id,
            operation=operation,
            lang=lang,
            cause=error
        )
    elif isinstance(error, httpx.HTTPError):
        return AIGatewayError(
            message=f"API request failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            lang=lang,
            cause=error
        )

    # Generic fallback
    else:
        return LearnQuestError(
            message=f"{operation} failed: {str(error)}",
            user_id=user_id,
            operation=operation,
            lang=lang,
            context=context,
            cause=error
        )
