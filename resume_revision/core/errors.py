# resume_revision/core/errors.py


class ProviderError(Exception):
    """A single AI provider call failed (transport, credentials, timeout or malformed reply)."""


class AnalysisError(Exception):
    """The ATS analysis backend could not produce a result."""
