"""Download and atomic in-place replacement of the running program."""

from selfupdate.install.replace import (
    ReplaceResult,
    SelfReplacer,
    running_program,
    temp_path_for,
    verify_zipapp,
)

__all__ = [
    "ReplaceResult",
    "SelfReplacer",
    "running_program",
    "temp_path_for",
    "verify_zipapp",
]
