class OrderingError(Exception):
    """Base class for order lifecycle and table assignment failures."""

    code = "ordering_error"
    status_code = 400

    def __init__(self, message=None):
        super().__init__(message or self.default_message())

    def default_message(self):
        return self.code.replace("_", " ").capitalize()


# =====================================
# VALIDATION (handled inside the assignment protocol)
# =====================================

class NotFound(OrderingError):
    code = "not_found"
    status_code = 404


class OrderNotFound(NotFound):
    code = "order_not_found"


class OrderItemNotFound(NotFound):
    code = "order_item_not_found"


class TableNotFound(NotFound):
    code = "table_not_found"


class InvalidTransition(OrderingError):
    code = "invalid_transition"


class TableOccupied(OrderingError):
    code = "table_occupied"
    status_code = 409


class CapacityExceeded(OrderingError):
    code = "capacity_exceeded"


class InvalidOrder(OrderingError):
    code = "invalid_order"


class LayoutError(OrderingError):
    code = "invalid_layout"


# =====================================
# PERSISTENCE (escalated to the caller)
# =====================================

class Conflict(OrderingError):
    code = "conflict"
    status_code = 409


class PersistenceUnavailable(OrderingError):
    code = "persistence_unavailable"
    status_code = 503


# Reasons that mean "cannot drop here" to the end user.
REJECTIONS = (NotFound, InvalidTransition, TableOccupied, CapacityExceeded)
