"""Custom exceptions for VideoMind application."""

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported for a single ingestion or discovery run."""

    FETCH_BLOCKED = "fetch_blocked"
    EMPTY_CONTENT = "empty_content"
    ANALYSIS_FAILURE = "analysis_failure"
    DISCOVERY_FAILURE = "discovery_failure"
    UNEXPECTED = "unexpected"


class VideoMindError(Exception):
    """Base exception for all VideoMind errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED


class FetchBlockedError(VideoMindError):
    """Exception raised when no proxy yielded acceptable content for a URL."""

    kind = ErrorKind.FETCH_BLOCKED


class EmptyContentError(VideoMindError):
    """Exception raised when extracted text is too short to be useful."""

    kind = ErrorKind.EMPTY_CONTENT


class AnalysisError(VideoMindError):
    """Exception raised when an analysis call fails or returns malformed data."""

    kind = ErrorKind.ANALYSIS_FAILURE


class DiscoveryError(VideoMindError):
    """Exception raised when the discovery cascade found zero links."""

    kind = ErrorKind.DISCOVERY_FAILURE


class PersistenceError(VideoMindError):
    """Exception raised when a knowledge item cannot be written."""

    pass


class MediaValidationError(VideoMindError):
    """Exception raised when a local media file cannot be uploaded."""

    pass
