class VerificationEngineError(Exception):
    """Base error for the verification engine."""


class NotFoundError(VerificationEngineError):
    def __init__(self, kind: str, key):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} with id {key} not found")


class InspectionNotFoundError(NotFoundError):
    def __init__(self, inspection_id: str):
        super().__init__("Inspection", inspection_id)


class ChecklistItemNotFoundError(NotFoundError):
    def __init__(self, inspection_id: str, item_id: str):
        self.inspection_id = inspection_id
        super().__init__("Checklist item", f"{item_id} (inspection {inspection_id})")


class IssueNotFoundError(NotFoundError):
    def __init__(self, issue_id: str):
        super().__init__("Issue", issue_id)


class PhotoNotFoundError(NotFoundError):
    def __init__(self, photo_id: str):
        super().__init__("Photo", photo_id)


class WorkCompletionNotFoundError(NotFoundError):
    def __init__(self, completion_id: str):
        super().__init__("Work completion", completion_id)


class ConflictError(VerificationEngineError):
    """A write was based on a stale read; re-fetch and retry."""

    def __init__(self, kind: str, key, message: str = None):
        self.kind = kind
        self.key = key
        super().__init__(message or f"Concurrent update detected on {kind} {key}, re-fetch and retry")


class InvalidReferenceError(VerificationEngineError):
    def __init__(self, kind: str, key, building_id: str):
        self.kind = kind
        self.key = key
        self.building_id = building_id
        super().__init__(f"{kind} {key} is not registered for building {building_id}")


class InvalidTransitionError(VerificationEngineError):
    def __init__(self, kind: str, current: str, requested: str):
        self.kind = kind
        self.current = current
        self.requested = requested
        super().__init__(f"{kind} cannot move from '{current}' back to '{requested}'")
