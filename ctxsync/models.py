from dataclasses import dataclass, field
from typing import Optional

from ctxsync.exceptions import ConfigParseError

PROFILE_KEY = 'aws-profile'
CONTEXT_FIELDS = ('cluster', 'user', 'namespace')


@dataclass
class Context:
    """Kube context model with the AWS profile that belongs to it"""
    name: str
    cluster: str = ""
    user: str = ""
    namespace: str = ""
    profile: Optional[str] = None
    extra: dict = field(default_factory=dict)  # unknown keys of the entry
    context_extra: dict = field(default_factory=dict)  # unknown keys below 'context'

    def to_dict(self) -> dict:
        """Convert context to the kubeconfig entry layout"""
        data = {'name': self.name}
        if self.profile:
            data[PROFILE_KEY] = self.profile
        data['context'] = {
            'cluster': self.cluster,
            'user': self.user,
            'namespace': self.namespace,
            **self.context_extra,
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: dict):
        """Create context from a kubeconfig entry (missing fields become empty)"""
        if not isinstance(data, dict):
            raise ConfigParseError(f"context entry must be a mapping, got: {data!r}")
        name = data.get('name')
        if not isinstance(name, str) or not name:
            raise ConfigParseError(f"context entry without a valid name: {data!r}")

        inner = data.get('context') or {}
        if not isinstance(inner, dict):
            raise ConfigParseError(f"context '{name}' has an invalid 'context' section")

        profile = data.get(PROFILE_KEY)
        return cls(
            name=name,
            cluster=_as_str(inner.get('cluster')),
            user=_as_str(inner.get('user')),
            namespace=_as_str(inner.get('namespace')),
            profile=str(profile) if profile else None,
            extra={k: v for k, v in data.items() if k not in ('name', PROFILE_KEY, 'context')},
            context_extra={k: v for k, v in inner.items() if k not in CONTEXT_FIELDS},
        )

    def copy_as(self, name: str, **overrides) -> "Context":
        """Return a copy under a new name; empty overrides keep the copied value"""
        values = {
            'cluster': self.cluster,
            'user': self.user,
            'namespace': self.namespace,
            'profile': self.profile,
        }
        for key, value in overrides.items():
            if value:
                values[key] = value
        return Context(
            name=name,
            extra=dict(self.extra),
            context_extra=dict(self.context_extra),
            **values,
        )

    def has_profile(self) -> bool:
        """Check if an AWS profile is configured for this context"""
        return bool(self.profile)


def _as_str(value) -> str:
    return "" if value is None else str(value)
