"""
Cognito user pool workflows from the command line.

Sessions are not persisted, so commands that need one sign in first.
"""

import asyncio
import getpass
import sys

import click

from .config import CONFIG_FILE, load_config, read_settings, save_config
from .exceptions import CognitoWorkflowError, ConfigurationError
from .facade import AuthFacade, NewPasswordRequired


def _facade():
    try:
        config = load_config()
    except ConfigurationError as e:
        click.echo(f"❌ {e}")
        click.echo("Run 'cognito-workflows configure' first or set environment variables:")
        click.echo("  COGNITO_USER_POOL_ID")
        click.echo("  COGNITO_CLIENT_ID")
        sys.exit(1)
    return AuthFacade(config)


def _run(coro):
    try:
        return asyncio.run(coro)
    except CognitoWorkflowError as e:
        click.echo(f"❌ Error: {e}", err=True)
        sys.exit(1)


async def _authenticate(facade, username, password):
    """Sign in, answering a new password challenge if Cognito asks for one"""
    outcome = await facade.sign_in(username, password)
    if isinstance(outcome, NewPasswordRequired):
        click.echo("New password required. Please set a new password.")
        new_password = getpass.getpass("Enter new password: ")
        attributes = dict(outcome.user_attributes)
        for name in outcome.required_attributes:
            attributes[name] = click.prompt(name)
        await facade.complete_new_password(outcome.user, attributes, new_password)
        click.echo("📝 New password submitted. Sign in again with the new password.")
        return None
    click.echo("✅ Successfully authenticated with User Pool")
    return facade.current_user()


def _credentials(username, password):
    if not username:
        username = click.prompt('Username')
    if not password:
        password = getpass.getpass('Password: ')
    return username, password


@click.group()
def cli():
    """Cognito User Pool Workflows

    Sign up, sign in, confirm accounts, reset passwords and verify attributes
    against an AWS Cognito User Pool.
    """
    pass


@cli.command()
@click.option('--user-pool-id', prompt=True, help='Cognito User Pool ID')
@click.option('--client-id', prompt=True, help='Cognito User Pool Client ID')
@click.option('--region', help='AWS Region (optional, will be inferred from User Pool ID)')
@click.option('--endpoint-url', help='Cognito endpoint override (optional)')
def configure(user_pool_id, client_id, region, endpoint_url):
    """Configure the user pool to work with"""
    config = {
        'user_pool_id': user_pool_id,
        'client_id': client_id,
        'region': region,
        'endpoint_url': endpoint_url,
    }
    try:
        path = save_config(config)
    except OSError as e:
        click.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)
    click.echo(f"✅ Configuration saved to {path}")


@cli.command()
def status():
    """Show current configuration status"""
    try:
        config = read_settings()
    except ConfigurationError as e:
        click.echo(f"❌ {e}", err=True)
        sys.exit(1)

    click.echo("📋 Current Configuration:")
    for key, value in config.items():
        if value:
            if key in ['user_pool_id', 'client_id']:
                # Show partial values for security
                masked_value = value[:8] + '...' + value[-4:] if len(value) > 12 else value
                click.echo(f"  {key}: {masked_value}")
            else:
                click.echo(f"  {key}: {value}")
        else:
            click.echo(f"  {key}: Not set")

    if CONFIG_FILE.exists():
        click.echo(f"\n📁 Config file: {CONFIG_FILE}")


@cli.command('sign-up')
@click.option('--username', '-u', prompt=True, help='Username')
@click.option('--email', '-e', prompt=True, help='Email address')
@click.option('--password', '-p', help='Password (will prompt securely if not provided)')
def sign_up(username, email, password):
    """Register a new user"""
    facade = _facade()
    if not password:
        password = getpass.getpass('Password: ')

    result = _run(facade.sign_up(username, password, email))
    click.echo(f"✅ User {result.user.username} registered (sub: {result.user_sub})")
    if not result.user_confirmed:
        destination = (result.code_delivery_details or {}).get('Destination')
        if destination:
            click.echo(f"📧 Confirmation code sent to {destination}")
        click.echo("Run 'cognito-workflows confirm' with the code to finish sign-up.")


@cli.command()
@click.option('--username', '-u', prompt=True, help='Username')
@click.option('--code', '-c', prompt=True, help='Confirmation code')
def confirm(username, code):
    """Confirm a registration with the code Cognito sent"""
    facade = _facade()
    _run(facade.confirm_sign_up(username, code))
    click.echo(f"✅ User {username} confirmed")


@cli.command()
@click.option('--username', '-u', help='Username (will prompt if not provided)')
@click.option('--password', '-p', help='Password (will prompt securely if not provided)')
@click.option('--show-token', is_flag=True, help='Print the ID token')
def login(username, password, show_token):
    """Sign in to the user pool"""
    facade = _facade()
    username, password = _credentials(username, password)

    async def flow():
        click.echo("🔐 Authenticating with Cognito User Pool...")
        user = await _authenticate(facade, username, password)
        if user is not None and show_token:
            click.echo(await facade.id_token(user))

    _run(flow())


@cli.command()
@click.option('--username', '-u', help='Username (will prompt if not provided)')
@click.option('--password', '-p', help='Password (will prompt securely if not provided)')
def attributes(username, password):
    """Show the signed-in user's attributes"""
    facade = _facade()
    username, password = _credentials(username, password)

    async def flow():
        user = await _authenticate(facade, username, password)
        if user is None:
            return
        for name, value in sorted((await facade.user_attributes(user)).items()):
            click.echo(f"  {name}: {value}")

    _run(flow())


@cli.command('verify-attribute')
@click.argument('attribute', default='email')
@click.option('--username', '-u', help='Username (will prompt if not provided)')
@click.option('--password', '-p', help='Password (will prompt securely if not provided)')
def verify_attribute(attribute, username, password):
    """Verify an attribute (email by default) with a code"""
    facade = _facade()
    username, password = _credentials(username, password)

    async def flow():
        user = await _authenticate(facade, username, password)
        if user is None:
            return
        await facade.request_attribute_verification_code(user, attribute)
        click.echo(f"📧 Verification code for {attribute} sent")
        code = click.prompt('Verification code')
        await facade.verify_attribute(user, attribute, code)
        click.echo(f"✅ {attribute} verified")

    _run(flow())


@cli.command('forgot-password')
@click.option('--username', '-u', prompt=True, help='Username')
def forgot_password(username):
    """Reset a forgotten password"""
    facade = _facade()

    async def flow():
        user = facade.user_handle(username)
        await facade.forgot_password(user)
        click.echo("📧 Password reset code sent")
        code = click.prompt('Reset code')
        new_password = getpass.getpass('New password: ')
        await facade.confirm_password(user, code, new_password)
        click.echo("✅ Password changed")

    _run(flow())


if __name__ == '__main__':
    cli()
