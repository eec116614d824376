# Custom exceptions to be used throughout the project.
from .period import MAX_BOOKINGS_PER_SLOT


class BookingError(Exception):
    """
    Base class for every refusal or failure shown to the user.
    Carries a localized message that the views flash into the error dialog.
    """
    default_message = "Ndodhi një gabim. Ju lutemi provoni përsëri."

    def __init__(self, message=None, *args):
        self.message = message or self.default_message
        super().__init__(self.message, *args)


class SlotInPastError(BookingError):
    # Raised when the day is over or today's slot has already ended
    default_message = "Nuk mund të rezervoni në një datë ose orar që ka kaluar."


class DuplicateBookingError(BookingError):
    default_message = "Ju tashmë keni një rezervim për këtë orar."


class SlotFullError(BookingError):
    default_message = f"Ky orar është tashmë plotësisht i rezervuar (maksimumi {MAX_BOOKINGS_PER_SLOT} rezervime)."


class BookingNotFoundError(BookingError):
    default_message = "Rezervimi nuk u gjet."


class DeleteNotAllowedError(BookingError):
    """
    Raised when a booking is removed by someone other than its owner,
    or after its slot has passed.
    """
    default_message = "Nuk mund ta fshini këtë rezervim."


class NetworkFailureError(BookingError):
    """
    To be raised when the record store cannot be reached or answers with something unusable.
    May be raised under the following circumstances:
        1. Connection refused or request timed out
        2. Response status was not 2xx
        3. Response body was not the expected JSON
    """
    default_message = "Ndodhi një gabim në lidhje me serverin. Ju lutemi provoni përsëri."


class InvalidCredentialsError(BookingError):
    default_message = "Emri i përdoruesit ose fjalëkalimi është i pasaktë."
