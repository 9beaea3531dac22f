from __future__ import annotations


class CheckError(Exception):
    """Base class for errors raised while running the disk usage check."""


class ConfigurationError(CheckError):
    pass


class CollectorError(CheckError):
    pass


class UsageError(CheckError):
    def __init__(self, mountpoint: str, cause: BaseException | str) -> None:
        super().__init__(f"failed to get disk usage for {mountpoint}, error: {cause}")
        self.mountpoint = mountpoint
        self.cause = cause
