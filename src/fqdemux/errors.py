"""Exceptions that abort a demultiplexing run."""


class DemultiplexError(Exception):
    """Base class for errors that abort a demultiplexing run."""


class ConfigurationError(DemultiplexError):
    pass


class InputError(DemultiplexError):
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class OutputError(DemultiplexError):
    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path
