class RateProxyError(Exception):
    pass


class SessionLaunchError(RateProxyError):
    """Rendering engine could not be started."""


class FetchError(RateProxyError):
    fatal = False


class NavigationError(FetchError):
    """Navigation-level failure; the session must be relaunched."""

    fatal = True


class EmptyPageError(FetchError):
    """Page loaded but carried no decimal tokens."""


class ParseError(RateProxyError):
    pass


class DerivationPreconditionError(RateProxyError):
    pass
