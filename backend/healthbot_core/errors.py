from __future__ import annotations


class RegistrationValidationError(Exception):
    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        super().__init__("; ".join(f"{name}: {message}" for name, message in self.errors.items()))


class ConsentError(Exception):
    pass


class TransportError(Exception):
    pass


class ChatTimeoutError(TransportError):
    pass


class UpstreamDataError(Exception):
    pass


class LoggingError(Exception):
    pass
