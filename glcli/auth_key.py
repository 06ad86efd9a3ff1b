"""AUTH_KEY provisioning.

The key is written once. An existing non-empty AUTH_KEY is never replaced.
"""

from typing import Optional

import click

from .env_file import read_value, upsert
from .settings import Settings
from .system import HostSystem

AUTH_KEY_NAME = "AUTH_KEY"
GENERATED_KEY_PREFIX = "sk-prod-"
GENERATED_KEY_BYTES = 16


def generate_auth_key(system: HostSystem) -> str:
    """Return a new production key: ``sk-prod-`` followed by 32 hex characters.

    Raises:
        SecretGenerationUnavailable: If the host has no secure random source
    """
    return GENERATED_KEY_PREFIX + system.random_bytes(GENERATED_KEY_BYTES).hex()


def ensure_auth_key(settings: Settings, system: HostSystem, prompt: bool = True) -> Optional[str]:
    """Make sure the canonical environment file carries an AUTH_KEY.

    Priority for a new key: the AUTH_KEY override from settings, then a manual
    entry at the prompt, then generation when the entry is left empty.

    Args:
        settings: Installation settings
        system: Host capabilities (random source)
        prompt: Ask the operator before generating

    Returns:
        The newly written key, or None when a key was already present
    """
    env_file = settings.env_file
    if read_value(AUTH_KEY_NAME, env_file):
        return None

    generated = False
    new_key = settings.auth_key_override or ""
    if not new_key and prompt:
        new_key = click.prompt(
            "Enter AUTH_KEY (leave empty to auto-generate)",
            default="",
            show_default=False,
            hide_input=True,
        ).strip()
    if not new_key:
        new_key = generate_auth_key(system)
        generated = True

    upsert(AUTH_KEY_NAME, new_key, env_file)
    click.echo(f"✓ Configured AUTH_KEY and wrote to {env_file}.")
    if generated:
        click.echo(f"  Generated AUTH_KEY: {new_key}")
    click.echo("  Please store this key securely.")
    return new_key
