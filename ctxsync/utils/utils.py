import logging
import os
import stat
import tempfile
from pathlib import Path
from typing import List

from ctxsync.exceptions import ConfigIOError, IdOutOfRangeError

logger = logging.getLogger(__name__)


def get_kubeconfig_path() -> Path:
    """Return the kubeconfig path from $KUBECONFIG or ~/.kube/config"""
    env = os.environ.get("KUBECONFIG", "")
    # KUBECONFIG may hold a list of files; the first one is the one we edit
    first = next((p for p in env.split(os.pathsep) if p), None)
    if first:
        return Path(first).expanduser()
    return Path.home() / ".kube" / "config"


def get_credentials_path() -> Path:
    """Return the AWS credentials path from $AWS_SHARED_CREDENTIALS_FILE or ~/.aws/credentials"""
    env = os.environ.get("AWS_SHARED_CREDENTIALS_FILE")
    if env:
        return Path(env).expanduser()
    return Path.home() / ".aws" / "credentials"


def id_to_name(token: str, names: List[str]) -> str:
    """Resolve a context ID (index into the sorted names) to its name.

    Tokens that are not integers are returned unchanged, so callers can pass
    either an ID or a context name.
    """
    try:
        context_id = int(token)
    except ValueError:
        return token
    if context_id < 0 or context_id >= len(names):
        raise IdOutOfRangeError(context_id, len(names))
    return names[context_id]


def atomic_write(path: Path, text: str, mode: int = 0o644):
    """Replace the file at path with text in one rename.

    The data goes to a temporary file in the same directory first, so a failed
    write leaves the previous content in place. Symlinks are followed and an
    existing file keeps its permissions; mode only applies to new files.
    """
    path = Path(path).resolve()
    tmp_name = None
    try:
        if path.exists():
            mode = stat.S_IMODE(path.stat().st_mode)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise ConfigIOError(path, e.strerror or str(e)) from e
    logger.debug("wrote %d bytes to %s", len(text), path)
