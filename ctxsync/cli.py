import functools
import logging
import sys

import click
from rich import box
from rich.console import Console
from rich.table import Table

from ctxsync import __version__
from ctxsync.exceptions import CtxSyncError, NoProfileConfiguredError
from ctxsync.models import Context
from ctxsync.storage.credentials_storage import CredentialsStorage
from ctxsync.storage.kubeconfig_storage import KubeConfigStorage
from ctxsync.utils.utils import id_to_name

console = Console()
logger = logging.getLogger(__name__)

ALIASES = {
    'ls': 'list',
    'contexts': 'list',
    'current': 'is',
    'to': 'set',
    'use': 'set',
    'use-current': 'set',
    'rm': 'unset',
    'del': 'unset',
    'p': 'profile',
    'pr': 'profile',
    'use-profile': 'profile',
    'n': 'namespace',
    'ns': 'namespace',
    'use-namespace': 'namespace',
    'add': 'new',
    'nc': 'new',
    'new-context': 'new',
    'cp': 'copy',
    'copy-current': 'copy',
}


class AliasedGroup(click.Group):
    """Group that also accepts the short command aliases"""

    def get_command(self, ctx, cmd_name):
        return super().get_command(ctx, ALIASES.get(cmd_name, cmd_name))

    def resolve_command(self, ctx, args):
        _, cmd, args = super().resolve_command(ctx, args)
        return (cmd.name if cmd else None), cmd, args


def handle_errors(f):
    """Turn storage errors into a non-zero exit with the message on stderr"""
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except CtxSyncError as e:
            logger.debug("command failed", exc_info=True)
            raise click.ClickException(str(e)) from e
    return wrapper


def load_storage() -> KubeConfigStorage:
    """Load the kube config fresh for the running command"""
    obj = click.get_current_context().obj or {}
    return KubeConfigStorage.load(obj.get('kubeconfig'), obj.get('credentials'))


def context_options(f):
    """Options shared by 'new' and 'copy'"""
    f = click.option('--profile', '-p', default='', help='Name of the AWS profile of the new context.')(f)
    f = click.option('--cluster', '-c', default='', help='Name of the cluster of the new context.')(f)
    f = click.option('--namespace', '-n', default='', help='Namespace of the new context.')(f)
    f = click.option('--user', '-u', default='', help='Name of the user of the new context.')(f)
    return f


@click.group(cls=AliasedGroup)
@click.version_option(version=__version__, prog_name='ctxsync')
@click.option('--kubeconfig', type=click.Path(dir_okay=False), default=None,
              help='Kube config file (default: $KUBECONFIG or ~/.kube/config).')
@click.option('--credentials', type=click.Path(dir_okay=False), default=None,
              help='AWS credentials file (default: $AWS_SHARED_CREDENTIALS_FILE or ~/.aws/credentials).')
@click.option('--verbose', '-v', is_flag=True, help='Log debug details to stderr.')
@click.pass_context
def cli(ctx, kubeconfig, credentials, verbose):
    """ctxsync - switch kube contexts together with their AWS profiles"""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, stream=sys.stderr,
                            format='%(levelname)s %(name)s: %(message)s')
    ctx.obj = {'kubeconfig': kubeconfig, 'credentials': credentials}


@cli.command('list')
@click.option('--short', '-s', is_flag=True, envvar='CTXSYNC_SHORT_INFO',
              help='Print only the context names.')
@handle_errors
def list_contexts(short):
    """List all contexts of the kube config"""
    storage = load_storage()
    if short:
        for name in storage.list_names():
            click.echo(name)
        return

    if not storage.contexts:
        console.print("[dim]No contexts found[/dim]")
        return

    table = Table(box=box.SIMPLE)
    for header in ('ID', 'CURRENT', 'KUBE CONTEXT', 'AWS PROFILE', 'CLUSTER', 'USER', 'NAMESPACE'):
        table.add_column(header, no_wrap=True)
    for idx, c in enumerate(storage.contexts):
        table.add_row(
            str(idx),
            '*' if c.name == storage.current_context else '',
            c.name,
            c.profile or '',
            c.cluster,
            c.user,
            c.namespace,
        )
    console.print(table)


@cli.command('is')
@handle_errors
def current():
    """Print the current context"""
    storage = load_storage()
    if storage.current_context:
        click.echo(storage.current_context)
    else:
        click.echo('no current-context set')


@cli.command('set')
@click.argument('context')
@handle_errors
def set_context(context):
    """Make CONTEXT (name or ID) current and switch its AWS profile"""
    storage = load_storage()
    name = id_to_name(context, storage.list_names())
    try:
        storage.activate(name)
    except NoProfileConfiguredError as e:
        raise click.ClickException(
            f"{e}.\nYou can also run 'ctxsync profile <aws profile> {context}' "
            "to set an AWS profile for this context"
        ) from e


@cli.command('unset')
@handle_errors
def unset():
    """Remove the current-context entry"""
    load_storage().unset_active()


@cli.command('profile')
@click.argument('profile')
@click.argument('context', required=False)
@handle_errors
def profile(profile, context):
    """Set the AWS PROFILE of CONTEXT (default: the current one)"""
    storage = load_storage()
    name = id_to_name(context, storage.list_names()) if context else storage.current_context
    storage.set_profile_for(name, profile)


@cli.command('namespace')
@click.argument('namespace')
@click.argument('context', required=False)
@handle_errors
def namespace(namespace, context):
    """Set the NAMESPACE of CONTEXT (default: the current one)"""
    storage = load_storage()
    name = id_to_name(context, storage.list_names()) if context else storage.current_context
    storage.set_namespace_for(name, namespace)


@cli.command('new')
@click.argument('name')
@context_options
@handle_errors
def new(name, user, namespace, cluster, profile):
    """Add a new context called NAME"""
    storage = load_storage()
    storage.add_context(Context(
        name=name,
        cluster=cluster,
        user=user,
        namespace=namespace,
        profile=profile or None,
    ))


@cli.command('copy')
@click.argument('name')
@context_options
@handle_errors
def copy(name, user, namespace, cluster, profile):
    """Copy the current context as NAME, overriding the given fields"""
    storage = load_storage()
    storage.copy_context(name, cluster=cluster, user=user, namespace=namespace, profile=profile)


@cli.command('profiles')
@handle_errors
def profiles():
    """List the AWS profiles, marking the active one"""
    obj = click.get_current_context().obj or {}
    credentials = CredentialsStorage.load(obj.get('credentials'))
    active, _ = credentials.get_active_profile()
    for name in credentials.list_profile_names():
        marker = '*' if name == active else ' '
        click.echo(f"{marker} {name}")


if __name__ == '__main__':
    cli()
