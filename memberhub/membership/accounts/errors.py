class AccountError(Exception):
    pass


class AccountNotFoundError(AccountError):
    pass


class AccountAlreadyExistsError(AccountError):
    pass


class PermissionDeniedError(AccountError):
    pass


class InvalidProfileError(AccountError):
    pass


class InvalidHobbyError(AccountError):
    def __init__(self, unknown: list[str]) -> None:
        super().__init__(", ".join(unknown))
        self.unknown = unknown


class IdentityProviderError(AccountError):
    pass


class InvalidIdentityTokenError(AccountError):
    pass


class CannotDeleteSelfError(AccountError):
    pass
