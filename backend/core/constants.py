"""
Core constants — **Single Source of Truth** for project-wide magic numbers
and machine-readable error codes.

Any business rule that references a numeric limit or an error code should
import it from here instead of hardcoding.  Error codes are part of the
public contract of every service entry point: callers branch on them, so
they must stay byte-stable.
"""

# ── Transfer workflow limits ────────────────────────────────────────
REJECTION_REASON_MIN_LENGTH: int = 10
TRANSFER_NOTES_MAX_LENGTH: int = 500
REJECTION_REASON_MAX_LENGTH: int = 500

# ── Identifier formats ──────────────────────────────────────────────
#   officer code   : {DEPT}_{SUBDEPT}_{YEAR}_{NNNN}
#   complaint no.  : SUV{YYYY}{NNNNNN}
OFFICER_SEQUENCE_WIDTH: int = 4
COMPLAINT_SEQUENCE_WIDTH: int = 6
COMPLAINT_NUMBER_PREFIX: str = "SUV"
OFFICER_CODE_ALLOCATION_ATTEMPTS: int = 3

# Department / sub-department codes: 2-10 uppercase alphanumerics.
DIRECTORY_CODE_PATTERN: str = r"^[A-Z0-9]{2,10}$"

# ── Credentials ─────────────────────────────────────────────────────
TEMPORARY_PASSWORD_LENGTH: int = 12
# Look-alike characters (I, L, O, l, o, 0, 1) are excluded.
PASSWORD_UPPERCASE: str = "ABCDEFGHJKMNPQRSTUVWXYZ"
PASSWORD_LOWERCASE: str = "abcdefghijkmnpqrstuvwxyz"
PASSWORD_DIGITS: str = "23456789"
PASSWORD_SYMBOLS: str = "!@#$%&*"

# ── Connections ─────────────────────────────────────────────────────
MOST_ACTIVE_CONNECTIONS_LIMIT: int = 10


class ErrorCode:
    """Stable error codes carried by every ``DomainError``."""

    # Generic
    INVALID_REQUEST = "INVALID_REQUEST"
    INSUFFICIENT_AUTHORITY = "INSUFFICIENT_AUTHORITY"
    TRANSIENT_STORE_FAILURE = "TRANSIENT_STORE_FAILURE"

    # Not found
    COMPLAINT_NOT_FOUND = "COMPLAINT_NOT_FOUND"
    TRANSFER_NOT_FOUND = "TRANSFER_NOT_FOUND"
    OFFICER_NOT_FOUND = "OFFICER_NOT_FOUND"
    DEPARTMENT_NOT_FOUND = "DEPARTMENT_NOT_FOUND"
    SUBDEPARTMENT_NOT_FOUND = "SUBDEPARTMENT_NOT_FOUND"
    CONNECTION_NOT_FOUND = "CONNECTION_NOT_FOUND"

    # Integrity violations (assignment / destination)
    INVALID_ASSIGNMENT = "INVALID_ASSIGNMENT"
    INACTIVE_DEPARTMENT = "INACTIVE_DEPARTMENT"
    INACTIVE_SUBDEPARTMENT = "INACTIVE_SUBDEPARTMENT"
    SUBDEPARTMENT_MISMATCH = "SUBDEPARTMENT_MISMATCH"
    INVALID_OFFICER_ROLE = "INVALID_OFFICER_ROLE"
    OFFICER_INACTIVE = "OFFICER_INACTIVE"
    STALE_SOURCE_ASSIGNMENT = "STALE_SOURCE_ASSIGNMENT"
    INVALID_REJECTION_REASON = "INVALID_REJECTION_REASON"
    SELF_CONNECTION = "SELF_CONNECTION"

    # Conflicting state
    TRANSFER_NOT_PENDING = "TRANSFER_NOT_PENDING"
    DUPLICATE_PENDING_TRANSFER = "DUPLICATE_PENDING_TRANSFER"
    TRANSFER_ALREADY_SENT = "TRANSFER_ALREADY_SENT"
    CONNECTION_ALREADY_EXISTS = "CONNECTION_ALREADY_EXISTS"
    SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER = "SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER"
    NOT_TARGET_SUBDEPARTMENT = "NOT_TARGET_SUBDEPARTMENT"


# Violation constraints that describe a clash with current state rather
# than bad input.  ``raise_for_violations`` maps these to ``Conflict``.
CONFLICT_CONSTRAINTS: frozenset[str] = frozenset({
    ErrorCode.SAME_DEPARTMENT_SUBDEPARTMENT_TRANSFER,
    ErrorCode.STALE_SOURCE_ASSIGNMENT,
})
