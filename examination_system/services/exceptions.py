from typing import Optional


class SeatingError(Exception):
    """Base class for errors raised while generating seating arrangements."""

    status_code = 400
    default_message = "Seating generation failed."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(SeatingError):
    status_code = 404
    default_message = "The requested record does not exist."


class NoRoomsAvailableError(SeatingError):
    default_message = "No rooms available for seating arrangements."


class InvalidParameterError(SeatingError):
    default_message = "Invalid seating generation parameters."


class PersistenceError(SeatingError):
    status_code = 500
    default_message = "An error occurred while saving seating arrangements."
