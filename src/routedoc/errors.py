from __future__ import annotations


class RoutedocError(Exception):
    """Base class for errors that abort a generation run."""


class ConfigError(RoutedocError):
    pass


class RouteTableError(RoutedocError):
    pass


class SourceReadError(RoutedocError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"Cannot read source file {path}: {reason}")
        self.path = path
        self.reason = reason
