# focus_timer/errors.py
"""
Error taxonomy for the audio endpoints

Each error carries the HTTP status it maps to.
"""


class FocusTimerError(Exception):
    status_code = 500


class ValidationError(FocusTimerError):
    """Request is missing a required parameter"""
    status_code = 400


class NotFoundError(FocusTimerError):
    """No candidate survived filtering"""
    status_code = 404


class UpstreamError(FocusTimerError):
    """Search, resolve or stream failure from the media platform"""
    status_code = 500
