from __future__ import annotations

"""
EMBED_SUMMARY: Domain error kinds for check-in, roster import, pricing and the start.gg integration.
EMBED_TAGS: errors, checkin, roster, startgg

Each error carries the HTTP status it is rendered with by the exception handlers in
observability.py. Handlers never retry; the operator corrects the input or re-invokes.
"""

from typing import Optional


class CheckinError(Exception):
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class MissingConfiguration(CheckinError):
    status_code = 500
    default_message = "Required configuration is missing"


class AlreadyCheckedIn(CheckinError):
    status_code = 409
    default_message = "Participant is already checked in"


class MissingReason(CheckinError):
    default_message = "A reason and a non-zero amount are required for this adjustment"


class HeaderNotFound(CheckinError):
    default_message = "Could not find the roster header row"


class EmptyImport(CheckinError):
    default_message = "No participants to import"


class UnknownAdjustment(CheckinError):
    default_message = "Unknown adjustment option"


class ParticipantNotFound(CheckinError):
    status_code = 404
    default_message = "Participant not found"


class UpstreamUnavailable(CheckinError):
    status_code = 502
    default_message = "Upstream service unavailable"

    def __init__(self, message: Optional[str] = None, upstream_status: Optional[int] = None) -> None:
        self.upstream_status = upstream_status
        if message and upstream_status is not None:
            message = f"{message} ({upstream_status})"
        super().__init__(message)
