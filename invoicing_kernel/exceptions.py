"""
Typed Exception Hierarchy for the Invoicing Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch by type, not by message text.  Every exception carries a
machine-readable ``code`` class attribute and keeps its context as
structured attributes, so the structured logger can serialize it and the
UI layer can pick a message without parsing strings.

    try:
        doc = set_field(doc, "status", "archived")
    except InvalidStatusError as e:
        log.warning("bad status", extra={"status": e.status, "kind": e.kind})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InvoicingError (base)
    |
    +-- DocumentError
    |   +-- DocumentNotFoundError
    |   +-- InvalidStatusError
    |   +-- UnknownFieldError
    |
    +-- ValidationError
    |   +-- MissingClientNameError
    |   +-- EmptyDocumentError
    |
    +-- AccessError
    |   +-- PermissionDeniedError
    |
    +-- AuthError
    |   +-- InvalidCredentialsError
    |   +-- AccountDisabledError
    |
    +-- PersistenceError
    |   +-- RemoteCallError
    |
    +-- ConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                    | When Raised
-------------|-------------------------|------------------------------------------
Document     | DOCUMENT_NOT_FOUND      | No invoice/quotation with that id
             | INVALID_STATUS          | Status outside the kind's status set
             | UNKNOWN_FIELD           | set_field / update_line_item on a bad name
-------------|-------------------------|------------------------------------------
Validation   | MISSING_CLIENT_NAME     | Save attempted with an empty client name
             | EMPTY_DOCUMENT          | Save or edit of a document with no line items
-------------|-------------------------|------------------------------------------
Access       | PERMISSION_DENIED       | Role lacks the requested action
-------------|-------------------------|------------------------------------------
Auth         | INVALID_CREDENTIALS     | No user matches identifier + password
             | ACCOUNT_DISABLED        | Matching user has active = False
-------------|-------------------------|------------------------------------------
Persistence  | REMOTE_CALL_FAILED      | The data store rejected a request
-------------|-------------------------|------------------------------------------
Config       | CONFIG_ERROR            | Configuration file missing or malformed

===============================================================================
HANDLING PATTERNS
===============================================================================

Validation errors are recoverable: the editor turns them into a message and
the user corrects the field.  Remote-call failures are logged by the
application state and reported to the caller as "nothing happened"; there is
no retry.  Authentication failures only distinguish a disabled account from
invalid credentials.
"""


class InvoicingError(Exception):
    """
    Base exception for all invoicing kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVOICING_ERROR"


# Document-related exceptions


class DocumentError(InvoicingError):
    """Base exception for invoice/quotation errors."""

    code: str = "DOCUMENT_ERROR"


class DocumentNotFoundError(DocumentError):
    """No document with the given id exists."""

    code: str = "DOCUMENT_NOT_FOUND"

    def __init__(self, kind: str, document_id: str):
        self.kind = kind
        self.document_id = document_id
        super().__init__(f"{kind} not found: {document_id}")


class InvalidStatusError(DocumentError):
    """Status value does not belong to the document kind's status set."""

    code: str = "INVALID_STATUS"

    def __init__(self, kind: str, status: str, allowed: tuple[str, ...]):
        self.kind = kind
        self.status = status
        self.allowed = allowed
        super().__init__(
            f"Invalid {kind} status '{status}'; expected one of {', '.join(allowed)}"
        )


class UnknownFieldError(DocumentError):
    """Field name is not editable on the target object."""

    code: str = "UNKNOWN_FIELD"

    def __init__(self, target: str, field_name: str):
        self.target = target
        self.field_name = field_name
        super().__init__(f"Unknown {target} field: {field_name}")


# Validation exceptions


class ValidationError(InvoicingError):
    """Base exception for user-correctable input problems."""

    code: str = "VALIDATION_ERROR"


class MissingClientNameError(ValidationError):
    """A document cannot be saved without a client name."""

    code: str = "MISSING_CLIENT_NAME"

    def __init__(self, document_number: str):
        self.document_number = document_number
        super().__init__("Please enter a client name")


class EmptyDocumentError(ValidationError):
    """A document must keep at least one line item."""

    code: str = "EMPTY_DOCUMENT"

    def __init__(self, document_number: str):
        self.document_number = document_number
        super().__init__(f"Document {document_number} has no line items")


# Access exceptions


class AccessError(InvoicingError):
    """Base exception for access policy errors."""

    code: str = "ACCESS_ERROR"


class PermissionDeniedError(AccessError):
    """The acting role may not perform the action."""

    code: str = "PERMISSION_DENIED"

    def __init__(self, role: str, action: str, reason: str = ""):
        self.role = role
        self.action = action
        self.reason = reason
        super().__init__(reason or f"Role '{role}' may not perform '{action}'")


# Authentication exceptions


class AuthError(InvoicingError):
    """Base exception for sign-in errors."""

    code: str = "AUTH_ERROR"


class InvalidCredentialsError(AuthError):
    """No user matches the identifier and password."""

    code: str = "INVALID_CREDENTIALS"

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__("Invalid credentials. Please check your name/email and password.")


class AccountDisabledError(AuthError):
    """The matching user account has been deactivated."""

    code: str = "ACCOUNT_DISABLED"

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            "Your account has been disabled. Please contact an administrator."
        )


# Persistence exceptions


class PersistenceError(InvoicingError):
    """Base exception for data store errors."""

    code: str = "PERSISTENCE_ERROR"


class RemoteCallError(PersistenceError):
    """A request to the data store failed."""

    code: str = "REMOTE_CALL_FAILED"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed: {detail}")


# Configuration exceptions


class ConfigError(InvoicingError):
    """Configuration could not be loaded."""

    code: str = "CONFIG_ERROR"

    def __init__(self, source: str, detail: str):
        self.source = source
        self.detail = detail
        super().__init__(f"Invalid configuration in {source}: {detail}")
