import logging
import sys
import structlog
import os
from opentelemetry.instrumentation.logging import LoggingInstrumentor

# Global variable to store test output
test_output = []


def get_log_level():
    """Get log level from environment or default to INFO"""
    return os.getenv("LOG_LEVEL", "INFO").upper()


def get_log_renderer():
    """Get log renderer based on environment"""
    env = os.getenv("ENVIRONMENT", "development")
    # Use JSON format for tests and production
    if env in ["test", "production"]:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True, sort_keys=False)


def test_output_processor(logger, method_name, event_dict):
    """Keep a copy of every event for test assertions."""
    if os.getenv("ENVIRONMENT", "development") == "test":
        test_output.append(event_dict.copy())
    return event_dict


def redact_secrets(logger, method_name, event_dict):
    """Mask anything that looks like a Stripe secret or a raw payment token."""
    for key, value in event_dict.items():
        if isinstance(value, str) and value.startswith(("sk_", "rk_", "tok_", "btok_")):
            event_dict[key] = value[:7] + "***"
    return event_dict


def configure_logging():
    """Set up structlog + OTEL context injection."""
    shared_processors = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
        structlog.processors.ExceptionPrettyPrinter(),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            test_output_processor,
            get_log_renderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Cached loggers ignore later reconfiguration, so only cache in production
        cache_logger_on_first_use=os.getenv("ENVIRONMENT") == "production",
    )

    env = os.getenv("ENVIRONMENT", "development")
    if env == "test":
        # In test mode, write to stdout for easier capture
        handler = logging.StreamHandler(sys.stdout)
    else:
        handler = logging.StreamHandler()

    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger = logging.getLogger()
    root_logger.handlers = [handler]  # Replace any existing handlers
    root_logger.setLevel(get_log_level())

    # The SDK and urllib3 log every request at INFO
    logging.getLogger("stripe").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.ERROR)

    LoggingInstrumentor().instrument(set_logging_format=False)


# Business Event Log Names
class BusinessEvents:
    """Standard names for business event logs"""

    API_ENTRY = "api.request"
    BANK_ACCOUNT_CREATED = "bank_account.created"
    BANK_ACCOUNT_ORPHANED = "bank_account.orphaned"
    BANK_ACCOUNT_VERIFIED = "bank_account.verified"
    BANK_ACCOUNT_VERIFY_FAILED = "bank_account.verify_failed"
    CREDIT_CARD_CREATED = "credit_card.created"
    IDENTITY_SUBMITTED = "identity.submitted"
    IDENTITY_DOCUMENT_UPLOADED = "identity.document_uploaded"
    IDENTITY_STATUS = "identity.status"
    PAYMENT_ATTEMPT = "payment.attempt"
    PAYMENT_SUCCESS = "payment.success"
    PAYMENT_FAILURE = "payment.failure"
    PAYMENT_REJECTED = "payment.rejected"
    TRANSFER_CREATED = "transfer.created"
    TRANSFER_FAILED = "payment.transfer_failed"


# Configure logging when module is imported
configure_logging()
