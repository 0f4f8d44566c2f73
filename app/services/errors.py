"""
Failure taxonomy for the verification engine.

Collaborators (weather provider, report store) raise these. The owning
service converts each one into an explicit fallback outcome, so none of
them ever reaches the caller of evaluate().
"""


class VerificationError(Exception):
    """Base class for collaborator failures inside the verification engine."""


class ProviderError(VerificationError):
    """Weather provider unreachable, timed out, misconfigured or returned garbage."""


# Name used in the failure taxonomy of the design notes
ProviderUnavailable = ProviderError


class HistoryLookupFailed(VerificationError):
    """The report history store could not answer a query."""
