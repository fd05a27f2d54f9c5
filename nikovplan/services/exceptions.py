"""
Error taxonomy shared by the services, consoles and API.
None of these are fatal: callers log or report them and carry on.
"""
from typing import List, Optional


class ScheduleAppError(Exception):
    """Base class for application errors"""

    user_message = "Something went wrong. Please try again."


class AuthDeniedError(ScheduleAppError):
    """A sign-in attempt by an identity that is not allow-listed"""

    code = "AccessDenied"
    user_message = "Access denied. You do not have permission to sign in."


class StoreError(ScheduleAppError):
    pass


class StoreReadError(StoreError):
    user_message = "Could not load data. Please try again."


class StoreWriteError(StoreError):
    user_message = "Error saving changes. Please try again."


class StoreNotConfiguredError(StoreError):
    user_message = "Supabase is not configured"


class BatchApplyError(StoreWriteError):
    """A batch edit failed part way through; ``written_hours`` stay written"""

    user_message = "Error applying batch update. Some slots may not have been saved."

    def __init__(self, message: str, written_hours: List[int], failed_hour: Optional[int] = None):
        super().__init__(message)
        self.written_hours = written_hours
        self.failed_hour = failed_hour
