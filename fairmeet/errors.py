"""Exceptions raised by the meeting point pipeline and mapped to HTTP status codes by the API."""


class FairMeetError(Exception):
    status_code = 500
    error_name = "InternalServerError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {'success': False, 'error': self.error_name, 'message': self.message}


class InputError(FairMeetError):
    """The caller supplied something the pipeline cannot work with"""
    status_code = 400
    error_name = "ValidationError"


class AddressNotFoundError(InputError):
    status_code = 404
    error_name = "NotFound"

    def __init__(self, address: str):
        super().__init__(f"Could not geocode address: {address}")
        self.address = address


class UpstreamUnavailableError(FairMeetError):
    """A routing, places, geocoding or classification provider failed"""
    status_code = 502
    error_name = "ExternalApiError"

    def __init__(self, service: str, message: str):
        super().__init__(f"{service} is unavailable: {message}")
        self.service = service


class ConfigurationError(FairMeetError):
    error_name = "ConfigurationError"
