"""
Typed failures raised by the RailBooker services.

Routers translate these into HTTP responses; ``status_code`` is the code a
failure maps to when it escapes a router unhandled.
"""

class RailBookerError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

# Not found
class NotFoundError(RailBookerError, LookupError):
    status_code = 404

class TrainNotFoundError(NotFoundError):
    def __init__(self, train_id):
        super().__init__(f"Train {train_id} not found")
        self.train_id = train_id

class FareNotFoundError(NotFoundError):
    def __init__(self, train_id, fare_class: str = None):
        if fare_class:
            message = f"No fare found for train {train_id} in class {fare_class}"
        else:
            message = f"No fares configured for train {train_id}"
        super().__init__(message)
        self.train_id = train_id
        self.fare_class = fare_class

class BookingNotFoundError(NotFoundError):
    def __init__(self, pnr: str):
        super().__init__(f"Booking with PNR {pnr} not found")
        self.pnr = pnr

class PaymentNotFoundError(NotFoundError):
    def __init__(self, payment_id):
        super().__init__(f"Payment {payment_id} not found")
        self.payment_id = payment_id

# Conflicts
class ConflictError(RailBookerError):
    status_code = 409

class BookingAlreadyCancelledError(ConflictError):
    def __init__(self, pnr: str):
        super().__init__(f"Booking {pnr} is already cancelled")
        self.pnr = pnr

class SeatAllocationError(ConflictError):
    pass

# Multi-step workflows that were rolled back
class WorkflowError(RailBookerError):
    status_code = 500

class BookingFailedError(WorkflowError):
    pass

class CancellationFailedError(WorkflowError):
    pass

# Ledgers
class LedgerNotInitializedError(RailBookerError):
    status_code = 503

    def __init__(self):
        super().__init__("Revenue ledger has not been initialized; run init_db() at startup")
