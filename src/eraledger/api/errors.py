from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from eraledger.runtime import errors as ledger_errors
from eraledger.runtime.errors import LedgerError

# Ledger rejections that describe a conflict with stored state rather than a malformed request.
_CONFLICT_CODES = {
    ledger_errors.OVERFLOW,
    ledger_errors.DIVIDE_BY_ZERO,
    ledger_errors.REWARD_NOT_FOUND,
    ledger_errors.CREDIT_FAILED,
}


@dataclass
class ApiError(Exception):
    status_code: int
    code: str
    message: str
    details: Dict[str, Any]

    @staticmethod
    def bad_request(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(400, code, message, details or {})

    @staticmethod
    def conflict(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(409, code, message, details or {})

    @staticmethod
    def internal(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> "ApiError":
        return ApiError(500, code, message, details or {})

    @staticmethod
    def from_ledger_error(e: LedgerError) -> "ApiError":
        details = e.details if isinstance(e.details, dict) else {"details": e.details}
        if e.code in _CONFLICT_CODES:
            return ApiError.conflict(e.code, e.reason, details)
        if e.code == ledger_errors.INVALID_INPUT:
            return ApiError.bad_request(e.code, e.reason, details)
        return ApiError.internal(e.code, e.reason, details)

    def to_json(self) -> Dict[str, Any]:
        return {"ok": False, "error": {"code": self.code, "message": self.message, "details": self.details}}
