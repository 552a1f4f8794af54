"""
Fehlertypen des Buchungskerns.

Services werfen ausschließlich diese Fehler, main.py übersetzt sie in HTTP-Statuscodes.
"""


class BookingError(Exception):
    """Basis aller fachlichen Fehler."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(BookingError):
    """Referenzierte Unit, Slot oder Reservierung existiert nicht."""


class InvalidArgumentError(BookingError):
    """Anfrage ist formal oder fachlich ungültig."""


class InvalidTimeFormat(InvalidArgumentError):
    """Uhrzeit entspricht nicht dem Format HH:MM."""


class ConflictError(BookingError):
    """Überschneidender Slot oder gleichzeitige, kollidierende Änderung."""


class AlreadyExistsError(ConflictError):
    """Slot ist für das Datum bereits gebucht."""
