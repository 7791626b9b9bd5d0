"""Process exit codes for the selfupdate CLI.

The numeric values are part of the command line contract and must stay
stable so that wrapper scripts can branch on them.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    - 0: Success (also "already up to date")
    - 1: User error (conflicting flags, invalid constraint)
    - 2: Environment error (not running from a zipapp, bad config)
    - 4: Network error (GitHub unreachable, no releases, download failed)
    - 5: I/O error (permission denied, replace failed)
    - 6: Integrity error (downloaded archive is corrupted)
    - 10: Update available (``check`` only)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    NETWORK_ERROR = 4
    IO_ERROR = 5
    INTEGRITY_ERROR = 6
    UPDATE_AVAILABLE = 10

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self in (ErrorCode.OK, ErrorCode.UPDATE_AVAILABLE)
