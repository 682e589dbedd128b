"""Error kinds surfaced by the event manager."""


class EventError(Exception):
    """Base class for all event-core errors."""


class EventAlreadyExistsError(EventError):
    """Raised by register_event when the event ID is already registered."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"event with ID {event_id!r} already exists")


class EventNotFoundError(EventError):
    """Raised (or returned from dispatch) when an event ID is unknown."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__(f"event with ID {event_id!r} does not exist")


class RequiredParameterMissingError(EventError):
    """A non-optional parameter was absent from a dispatch request."""

    def __init__(self, param_name: str, event_id: str):
        self.param_name = param_name
        self.event_id = event_id
        super().__init__(f"required parameter {param_name!r} missing for event {event_id!r}")


class ParameterTypeMismatchError(EventError):
    """A dispatched parameter's pin type differs from the schema's."""

    def __init__(self, param_name: str, event_id: str, expected_type_id: str, actual_type_id: str):
        self.param_name = param_name
        self.event_id = event_id
        self.expected_type_id = expected_type_id
        self.actual_type_id = actual_type_id
        super().__init__(
            f"parameter {param_name!r} has incorrect type for event {event_id!r}: "
            f"expected {expected_type_id}, got {actual_type_id}"
        )


class HandlerRegistrationFailedError(EventError):
    """The trigger closure for a binding could not be installed.

    The binding has been rolled back when this is raised.
    """

    def __init__(self, binding_id: str, cause: BaseException):
        self.binding_id = binding_id
        self.cause = cause
        super().__init__(f"failed to register handler for binding {binding_id!r}: {cause}")


class HandlerInvocationFailedError(EventError):
    """The engine controller reported an error for one binding during dispatch."""

    def __init__(self, binding_id: str, cause: BaseException):
        self.binding_id = binding_id
        self.cause = cause
        super().__init__(f"error executing handler for binding {binding_id!r}: {cause}")


class DuplicateBindingWarning(UserWarning):
    """Advisory: a binding with the same ID already exists for the event."""

    def __init__(self, binding_id: str, event_id: str):
        self.binding_id = binding_id
        self.event_id = event_id
        super().__init__(
            f"binding with ID {binding_id!r} already exists for event {event_id!r}; skipping"
        )


class BindingIDConflictError(EventError):
    """A binding ID is already in use by a binding for a different event."""

    def __init__(self, binding_id: str, event_id: str, existing_event_id: str):
        self.binding_id = binding_id
        self.event_id = event_id
        self.existing_event_id = existing_event_id
        super().__init__(
            f"binding ID {binding_id!r} for event {event_id!r} is already bound to "
            f"event {existing_event_id!r}"
        )
