"""Exception types for SpamSlam."""


class SpamSlamError(Exception):
    """Base class for errors surfaced to the user."""


class MailGatewayError(SpamSlamError):
    """A Gmail API call failed."""


class AIGatewayError(SpamSlamError):
    """The AI proxy could not produce a reply."""


class PreconditionError(SpamSlamError):
    """An action was requested in a state that does not allow it."""


class NotSignedInError(PreconditionError):
    def __init__(self, message: str = "Connect your Gmail to perform this action.") -> None:
        super().__init__(message)


class NothingSelectedError(PreconditionError):
    def __init__(self, message: str = "Select some companies first.") -> None:
        super().__init__(message)


class UnknownActionError(PreconditionError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"Unknown action: {kind!r}")
        self.kind = kind


class UnknownDomainError(PreconditionError):
    def __init__(self, domain: str) -> None:
        super().__init__(f"No company found for domain {domain!r}.")
        self.domain = domain


class ArtifactMissingError(PreconditionError):
    def __init__(self, domain: str) -> None:
        super().__init__(f"No deletion request generated for {domain} yet. Run the deletion action first.")
        self.domain = domain


class ArtifactUnparseableError(PreconditionError):
    def __init__(self, domain: str) -> None:
        super().__init__(f"The deletion request for {domain} has no subject/body; regenerate it first.")
        self.domain = domain


class NotConnectedError(PreconditionError):
    def __init__(self, message: str = "Draft creation failed (not connected to Gmail).") -> None:
        super().__init__(message)
