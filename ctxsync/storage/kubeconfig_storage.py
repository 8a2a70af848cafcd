import logging
from pathlib import Path
from typing import List, Optional, Tuple

import yaml

from ctxsync.exceptions import (
    ConfigIOError,
    ConfigNotFoundError,
    ConfigParseError,
    ContextNotFoundError,
    DuplicateContextError,
    InvalidContextNameError,
    NoProfileConfiguredError,
    UnknownProfileError,
)
from ctxsync.models import Context
from ctxsync.storage.credentials_storage import CredentialsStorage
from ctxsync.utils.utils import atomic_write, get_credentials_path, get_kubeconfig_path

logger = logging.getLogger(__name__)

CONTEXTS_KEY = "contexts"
CURRENT_KEY = "current-context"


class KubeConfigStorage:
    """Kube config file storage that keeps the AWS credentials file in sync.

    Only ``contexts`` and ``current-context`` are interpreted. Every other
    top-level key (clusters, users, preferences, ...) is carried through
    load/save untouched.
    """

    def __init__(self, path: Path = None, credentials_path: Path = None):
        """Initialize an empty storage bound to the kube config and credentials paths"""
        self.path = Path(path) if path else get_kubeconfig_path()
        self.credentials_path = Path(credentials_path) if credentials_path else get_credentials_path()
        self.contexts: List[Context] = []
        self.current_context: str = ""
        self._document: dict = {}

    @classmethod
    def load(cls, path: Path = None, credentials_path: Path = None) -> "KubeConfigStorage":
        """Read, parse and validate the kube config file"""
        storage = cls(path, credentials_path)
        storage._load_index()
        return storage

    def _read_data(self) -> dict:
        """Read the raw YAML document"""
        try:
            raw = self.path.read_text()
        except FileNotFoundError as e:
            raise ConfigNotFoundError(self.path) from e
        except OSError as e:
            raise ConfigIOError(self.path, e.strerror or str(e)) from e

        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigParseError(f"cannot parse '{self.path}': {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigParseError(f"'{self.path}' is not a kube config mapping")
        return data

    def _load_index(self):
        """Build the context list from the document and check name uniqueness"""
        data = self._read_data()
        entries = data.get(CONTEXTS_KEY) or []
        if not isinstance(entries, list):
            raise ConfigParseError(f"'{CONTEXTS_KEY}' in '{self.path}' must be a list")

        contexts = [Context.from_dict(entry) for entry in entries]
        seen = set()
        for ctx in contexts:
            if ctx.name in seen:
                raise DuplicateContextError(ctx.name)
            seen.add(ctx.name)

        current = data.get(CURRENT_KEY)
        self._document = data
        self.contexts = sorted(contexts, key=lambda c: c.name)
        self.current_context = "" if current is None else str(current)
        logger.debug(
            "loaded %d contexts from %s (current-context: %r)",
            len(self.contexts), self.path, self.current_context,
        )

    def _write_data(self, data: dict):
        atomic_write(self.path, yaml.safe_dump(data, default_flow_style=False, sort_keys=False))

    def save(self):
        """Sort the contexts and rewrite the whole kube config file"""
        self.contexts.sort(key=lambda c: c.name)
        data = dict(self._document)
        data[CONTEXTS_KEY] = [c.to_dict() for c in self.contexts]
        data[CURRENT_KEY] = self.current_context
        self._write_data(data)
        self._document = data

    def list_names(self) -> List[str]:
        """Sorted names of all contexts"""
        return sorted(c.name for c in self.contexts)

    def get_context(self, name: str) -> Tuple[Context, int]:
        """Return the context with the given name and its position"""
        for idx, ctx in enumerate(self.contexts):
            if ctx.name == name:
                return ctx, idx
        raise ContextNotFoundError(name)

    def get_current_context(self) -> Optional[Context]:
        """Return the current context, None if no current-context is set.

        A current-context that names a missing context raises ContextNotFoundError.
        """
        if not self.current_context:
            return None
        ctx, _ = self.get_context(self.current_context)
        return ctx

    def exists(self, name: str) -> bool:
        """Check if a context with this name exists"""
        return any(c.name == name for c in self.contexts)

    def add_context(self, context: Context):
        """Add a new context and save"""
        if not context.name:
            raise InvalidContextNameError("the name of the new context must not be empty")
        if self.exists(context.name):
            raise DuplicateContextError(context.name)
        self.contexts.append(context)
        self.save()

    def copy_context(self, new_name: str, source: str = None, cluster: str = None,
                     user: str = None, namespace: str = None, profile: str = None) -> Context:
        """Copy a context (default: the current one) under a new name and save"""
        src, _ = self.get_context(self.current_context if source is None else source)
        new_context = src.copy_as(
            new_name, cluster=cluster, user=user, namespace=namespace, profile=profile,
        )
        self.add_context(new_context)
        return new_context

    def set_profile_for(self, context_name: str, profile_name: str):
        """Attach an AWS profile, which must exist in the credentials file, to a context"""
        ctx, _ = self.get_context(context_name)
        credentials = CredentialsStorage.load(self.credentials_path)
        if profile_name not in credentials.list_profile_names():
            raise UnknownProfileError(profile_name, credentials.path)
        ctx.profile = profile_name
        self.save()

    def set_namespace_for(self, context_name: str, namespace: str):
        """Change the namespace of a context"""
        ctx, _ = self.get_context(context_name)
        ctx.namespace = namespace
        self.save()

    def unset_active(self):
        """Clear current-context; the credentials file is left alone"""
        self.current_context = ""
        self.save()

    def activate(self, context_name: str):
        """Make a context current and switch the AWS default profile with it.

        The credentials file is switched and saved first. current-context only
        changes once that succeeded, so a failure never leaves the kube config
        pointing at a context whose profile was not activated. Activating the
        current context again repeats both writes.
        """
        ctx, _ = self.get_context(context_name)
        if not ctx.has_profile():
            raise NoProfileConfiguredError(context_name)

        credentials = CredentialsStorage.load(self.credentials_path)
        credentials.set_active_profile(ctx.profile)
        logger.debug("switched AWS profile to '%s' for context '%s'", ctx.profile, context_name)

        previous = self.current_context
        self.current_context = context_name
        try:
            self.save()
        except ConfigIOError:
            self.current_context = previous
            raise
