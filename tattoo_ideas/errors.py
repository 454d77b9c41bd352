# Kullanıcıya gösterilen hata sınıfları
#
# Her hata, arayüzde aynen gösterilecek bir `message` taşır. Ham exception
# metni asla kullanıcıya gitmez.


class TattooIdeasError(Exception):
    default_message = "Something went wrong. Please try again."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TattooIdeasError):
    """Prompt failed local checks; no request was sent."""

    default_message = "Invalid prompt."


class QuotaExceededError(TattooIdeasError):
    default_message = (
        "You have reached your request limit for the hour. Try again after sometime."
    )


class ServiceError(TattooIdeasError):
    """The service answered but rejected the request or reported a failure."""

    default_message = "The image service could not complete the request."


class TransportError(TattooIdeasError):
    default_message = "There was a problem reaching the image service. Please try again."


class JobTimeoutError(TattooIdeasError):
    default_message = "The image service took too long to respond. Please try again."


class DownloadError(TattooIdeasError):
    default_message = "The image could not be downloaded. Please try again."
