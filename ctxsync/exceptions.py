"""Errors raised by the kubeconfig and credentials storages.

Every error derives from :class:`CtxSyncError` so the CLI can report them
uniformly. None of them is retried; they end the current operation.
"""


class CtxSyncError(Exception):
    """Base class for all ctxsync errors"""


class ConfigIOError(CtxSyncError):
    """A config file could not be read or written"""

    def __init__(self, path, reason):
        self.path = path
        self.reason = reason
        super().__init__(f"cannot access '{path}': {reason}")


class ConfigNotFoundError(ConfigIOError):
    """A config file does not exist"""

    def __init__(self, path):
        super().__init__(path, "no such file")


class ConfigParseError(CtxSyncError):
    """A config file has malformed content"""


class DuplicateContextError(CtxSyncError):
    """Two contexts share the same name"""

    def __init__(self, name):
        self.name = name
        super().__init__(f"found duplicated context name: {name}")


class InvalidContextNameError(CtxSyncError, ValueError):
    """A context name is empty"""


class ContextNotFoundError(CtxSyncError):
    """No context matches the given name"""

    def __init__(self, name):
        self.name = name
        if name:
            message = f"cannot find context named '{name}'"
        else:
            message = "no current-context set"
        super().__init__(message)


class IdOutOfRangeError(CtxSyncError):
    """A numeric context ID is outside the listed contexts"""

    def __init__(self, context_id, size):
        self.context_id = context_id
        self.size = size
        super().__init__(
            f"the ID '{context_id}' does not exist. "
            f"Run 'ctxsync ls' to get the correct IDs"
        )


class NoProfileConfiguredError(CtxSyncError):
    """The context has no AWS profile to switch to"""

    def __init__(self, name):
        self.name = name
        super().__init__(
            f"no AWS profile configured for context '{name}'. "
            "Define it by adding 'aws-profile: <profile>' to the context inside the kube config"
        )


class UnknownProfileError(CtxSyncError):
    """The AWS profile is not present in the credentials file"""

    def __init__(self, profile, path):
        self.profile = profile
        self.path = path
        super().__init__(f"given profile name '{profile}' does not exist in '{path}'")
