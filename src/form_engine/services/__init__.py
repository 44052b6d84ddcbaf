"""External collaborators (forms API, option source, file storage, notifications)."""

from form_engine.services.interfaces import FileStorage, FormsApi, Notifier, OptionSource
from form_engine.services.notifications import LoggingNotifier, RecordingNotifier
from form_engine.services.rest_client import (
    RestClient,
    RestFileStorage,
    RestFormsApi,
    RestOptionSource,
    RestSubmitter,
)

__all__ = [
    "FileStorage",
    "FormsApi",
    "LoggingNotifier",
    "Notifier",
    "OptionSource",
    "RecordingNotifier",
    "RestClient",
    "RestFileStorage",
    "RestFormsApi",
    "RestOptionSource",
    "RestSubmitter",
]
