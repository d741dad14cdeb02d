class RecaptchaError(Exception):
    """Base class for every failure raised while verifying a CAPTCHA."""


class InvalidInput(RecaptchaError):
    """The inbound request is missing or carries no challenge token."""


class NetworkError(RecaptchaError):
    """The verification endpoint could not be reached."""


class ReadError(RecaptchaError):
    """The verification response body could not be fully read."""


class DecodeError(RecaptchaError):
    """The verification response is not the JSON document we expect."""
