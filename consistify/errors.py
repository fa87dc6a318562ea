# consistify/errors.py
"""
Domain errors raised by the services.

Every error carries the HTTP status it maps to and a stable code so the
client can tell "already done" apart from "not yours / not there".
Ownership failures are reported as not-found.
"""


class JourneyError(Exception):
    status_code = 400
    code = "JourneyError"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# 404s

class GoalNotFound(JourneyError):
    status_code = 404
    code = "NotFound"
    default_message = "Goal not found"


class NoActiveGoal(JourneyError):
    status_code = 404
    code = "NoActiveGoal"
    default_message = "Start a new goal to see your daily task"


class TaskNotFound(JourneyError):
    status_code = 404
    code = "NotFound"
    default_message = "Task not found"


class ActionItemIndexOutOfBounds(JourneyError):
    status_code = 404
    code = "IndexOutOfBounds"
    default_message = "Action item not found"


class InviteNotFound(JourneyError):
    status_code = 404
    code = "NotFound"
    default_message = "Invite not found"


class UserNotFound(JourneyError):
    status_code = 404
    code = "NotFound"
    default_message = "User not found"


class NoPartner(JourneyError):
    status_code = 404
    code = "NoPartner"
    default_message = "This goal is not shared with a partner"


# 409s: state guards, checked before any write

class TaskNotPending(JourneyError):
    status_code = 409
    code = "TaskNotPending"
    default_message = "Task is no longer pending"


class ActionItemsIncomplete(JourneyError):
    status_code = 409
    code = "ActionItemsIncomplete"
    default_message = "Check off every action item before completing the task"


class InviteAlreadyResolved(JourneyError):
    status_code = 409
    code = "AlreadyResolved"
    default_message = "Invite was already resolved"


class GoalAlreadyShared(JourneyError):
    status_code = 409
    code = "GoalAlreadyShared"
    default_message = "Goal already has a partner"


class GoalAlreadyCompleted(JourneyError):
    status_code = 409
    code = "GoalAlreadyCompleted"
    default_message = "Goal is already completed"


# 400s

class InvalidInvite(JourneyError):
    status_code = 400
    code = "InvalidInvite"
    default_message = "Invite is not valid"
