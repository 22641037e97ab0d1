"""
Logging configuration for reportseal.

Provides structured JSON logging for audit trails and debugging.

Signature marks and attestation wording are never logged. Audit events carry
only run ids, signature ids, roles, hash versions and digests.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

# Opaque request id from the caller's tracing layer; never hashed.
request_id_var: ContextVar[str] = ContextVar('request_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per line.

    Audit events (records carrying extra_fields) put their event fields at
    the top level. Other records from WARNING up carry their source location.
    """

    def __init__(self, service: str = "reportseal"):
        super().__init__()
        self.service = service

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        # UTC, millisecond precision
        stamp = time.strftime('%Y-%m-%dT%H:%M:%S', time.gmtime(record.created))
        return f"{stamp}.{int(record.msecs):03d}Z"

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "service": self.service,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = getattr(record, 'extra_fields', None)
        if extra:
            log_data.update(extra)
        elif record.levelno >= logging.WARNING:
            log_data["source"] = f"{record.module}:{record.funcName}:{record.lineno}"

        request_id = log_data.get("request_id") or request_id_var.get()
        if request_id:
            log_data["request_id"] = request_id
        else:
            log_data.pop("request_id", None)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class AuditLogger:
    """
    Logger for signature audit events.

    Records signature creation, rejected signing and finalize attempts, run
    finalization and verification findings.
    """

    def __init__(self, name: str = "reportseal.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        if not self._logger.isEnabledFor(level):
            return
        message = kwargs.pop("message", "")
        extra = {
            "event_type": event_type,
            "request_id": request_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {message}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def signature_created(
        self,
        report_run_id: str,
        signature_role: str,
        signature_hash: str,
        hash_version: str,
        signer_user_id: Optional[str] = None
    ) -> None:
        """Log a newly bound signature."""
        self._log(
            logging.INFO,
            "SIGNATURE_CREATED",
            report_run_id=report_run_id,
            signature_role=signature_role,
            signature_hash=signature_hash,
            hash_version=hash_version,
            signer_user_id=signer_user_id,
            message=f"Signature created for run {report_run_id} as {signature_role}"
        )

    def signing_rejected(
        self,
        report_run_id: Optional[str],
        code: str,
        signature_role: Optional[str] = None
    ) -> None:
        """Log a signing request that failed a run or role rule."""
        self._log(
            logging.WARNING,
            "SIGNING_REJECTED",
            report_run_id=report_run_id,
            code=code,
            signature_role=signature_role,
            message=f"Signing rejected: {code}"
        )

    def signature_verified(
        self,
        report_run_id: Optional[str],
        signature_id: Optional[str],
        role: Optional[str],
        valid: bool,
        reason: Optional[str] = None
    ) -> None:
        """Log a signature verification. Failures are security events."""
        if valid:
            self._log(
                logging.INFO,
                "SIGNATURE_VERIFIED",
                report_run_id=report_run_id,
                signature_id=signature_id,
                role=role,
                valid=True,
                message=f"Signature {signature_id} verified"
            )
            return
        self.security_event(
            "signature_verification_failed",
            severity="high",
            report_run_id=report_run_id,
            signature_id=signature_id,
            role=role,
            reason=reason,
        )

    def finalize_rejected(
        self,
        report_run_id: Optional[str],
        code: str
    ) -> None:
        """Log a finalize request that failed a run or signature check."""
        self._log(
            logging.WARNING,
            "FINALIZE_REJECTED",
            report_run_id=report_run_id,
            code=code,
            message=f"Finalize rejected: {code}"
        )

    def run_finalized(
        self,
        report_run_id: str,
        data_hash: str
    ) -> None:
        """Log a run moving to complete."""
        self._log(
            logging.INFO,
            "RUN_FINALIZED",
            report_run_id=report_run_id,
            data_hash=data_hash,
            message=f"Report run {report_run_id} finalized with hash {data_hash[:12]}"
        )

    def run_verified(
        self,
        report_run_id: str,
        all_valid: bool,
        is_complete: bool,
        missing_roles: List[str]
    ) -> None:
        """Log the outcome of verifying a whole report run."""
        level = logging.INFO if all_valid else logging.WARNING
        self._log(
            level,
            "RUN_VERIFIED",
            report_run_id=report_run_id,
            all_valid=all_valid,
            is_complete=is_complete,
            missing_roles=missing_roles,
            message=f"Run {report_run_id} verified: all_valid={all_valid} complete={is_complete}"
        )

    def security_event(
        self,
        event: str,
        severity: str = "medium",
        **details
    ) -> None:
        """Log a security-relevant event."""
        level = {
            "low": logging.INFO,
            "medium": logging.WARNING,
            "high": logging.ERROR,
            "critical": logging.CRITICAL
        }.get(severity, logging.WARNING)

        self._log(
            level,
            "SECURITY_EVENT",
            security_event=event,
            severity=severity,
            **details,
            message=f"Security event: {event}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting (recommended for production)
        log_file: Optional file path that receives the same records
            (REPORTSEAL_LOG_FILE)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        if isinstance(handler, logging.FileHandler):
            handler.close()

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stderr keeps stdout clean for CLI output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set the request ID for the current context.

    Args:
        request_id: Request ID to set, or None to generate one

    Returns:
        The request ID that was set
    """
    if request_id is None:
        request_id = str(uuid.uuid4())
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


# Global audit logger instance
audit_log = AuditLogger()
