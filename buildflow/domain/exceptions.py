"""
Domain Exceptions for the BuildFlow estimation back end.

Custom exceptions enforcing business rules:
- Entity lookup (not found, reference not found)
- Persisted preconditions for save / update / delete
- Field validation and uniqueness
- DTO mapping
- Estimate aggregate invariants

The API layer maps each exception's code to an HTTP status.
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


# =============================================================================
# Not Found Exceptions
# =============================================================================

class NotFoundError(DomainError):
    """Raised when an entity looked up by id does not exist."""

    def __init__(self, entity_type: str, entity_id, code: str = "NOT_FOUND"):
        message = f"{entity_type} with ID '{entity_id}' does not exist."
        super().__init__(message, code=code)
        self.entity_type = entity_type
        self.entity_id = entity_id


class UserNotFoundError(NotFoundError):
    """Raised when a user cannot be found."""

    def __init__(self, user_id, role: str = "User"):
        super().__init__(role, user_id, code="USER_NOT_FOUND")
        self.user_id = user_id


class ContactNotFoundError(NotFoundError):
    """Raised when a contact cannot be found."""

    def __init__(self, contact_id):
        super().__init__("Contact", contact_id, code="CONTACT_NOT_FOUND")


class WorkItemNotFoundError(NotFoundError):
    """Raised when a work item cannot be found."""

    def __init__(self, work_item_id):
        super().__init__("WorkItem", work_item_id, code="WORK_ITEM_NOT_FOUND")


class ProjectNotFoundError(NotFoundError):
    """Raised when a project cannot be found."""

    def __init__(self, project_id):
        super().__init__("Project", project_id, code="PROJECT_NOT_FOUND")


class ParticipantNotFoundError(NotFoundError):
    """Raised when a project participant cannot be found."""

    def __init__(self, participant_id):
        super().__init__("Participant", participant_id, code="PARTICIPANT_NOT_FOUND")


class EstimateNotFoundError(NotFoundError):
    """Raised when an estimate cannot be found."""

    def __init__(self, estimate_id):
        super().__init__("Estimate", estimate_id, code="ESTIMATE_NOT_FOUND")


class EstimateGroupNotFoundError(NotFoundError):
    """Raised when an estimate group cannot be found."""

    def __init__(self, group_id):
        super().__init__("EstimateGroup", group_id, code="ESTIMATE_GROUP_NOT_FOUND")


class EstimateLineNotFoundError(NotFoundError):
    """Raised when an estimate line cannot be found."""

    def __init__(self, line_id):
        super().__init__("EstimateLine", line_id, code="ESTIMATE_LINE_NOT_FOUND")


class QuoteNotFoundError(NotFoundError):
    """Raised when a quote cannot be found."""

    def __init__(self, quote_id):
        super().__init__("Quote", quote_id, code="QUOTE_NOT_FOUND")


# =============================================================================
# Precondition Exceptions
# =============================================================================

class PreconditionViolationError(DomainError):
    """Raised when an operation is called on an entity in the wrong state."""

    def __init__(self, message: str, code: str = "PRECONDITION_VIOLATION"):
        super().__init__(message, code=code)


class NotPersistedError(PreconditionViolationError):
    """Raised when update/delete targets an entity that is not in storage."""

    def __init__(self, entity_type: str):
        super().__init__(f"{entity_type} must be already persisted.", code="NOT_PERSISTED")
        self.entity_type = entity_type


class AlreadyPersistedError(PreconditionViolationError):
    """Raised when saving an entity that already exists in storage."""

    def __init__(self, entity_type: str):
        super().__init__(f"{entity_type} is already persisted.", code="ALREADY_PERSISTED")
        self.entity_type = entity_type


# =============================================================================
# Validation Exceptions
# =============================================================================

class ValidationError(DomainError):
    """Raised when data validation fails."""

    def __init__(self, field: str, message: str):
        super().__init__(f"Validation failed for '{field}': {message}", code="VALIDATION_ERROR")
        self.field = field


class DuplicateEmailError(ValidationError):
    """Raised when a contact email is already taken."""

    def __init__(self, email: str, entity_type: str = "contact"):
        super().__init__("email", f"A {entity_type} with this email already exists.")
        self.code = "DUPLICATE_EMAIL"
        self.email = email


class DuplicateUserError(DomainError):
    """Raised when a username or email is already used by another account."""

    def __init__(self, field: str, value: str):
        super().__init__(f"Account with {field} '{value}' already exists!", code="DUPLICATE_USER")
        self.field = field
        self.value = value


# =============================================================================
# Mapping Exceptions
# =============================================================================

class DtoMappingError(DomainError):
    """Raised when a DTO cannot be converted into an entity. Keeps the cause."""

    def __init__(self, message: str, cause: Exception = None):
        super().__init__(message, code="DTO_MAPPING_ERROR")
        self.cause = cause
        self.__cause__ = cause


# =============================================================================
# Aggregate Exceptions
# =============================================================================

class InvariantViolationError(DomainError):
    """Raised when an aggregate invariant is violated."""

    def __init__(self, invariant_name: str, expected: str, actual: str):
        message = (
            f"Invariant '{invariant_name}' violated. "
            f"Expected: {expected}, Actual: {actual}"
        )
        super().__init__(message, code="INVARIANT_VIOLATION")
        self.invariant_name = invariant_name
        self.expected = expected
        self.actual = actual
