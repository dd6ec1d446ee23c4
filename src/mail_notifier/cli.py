# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Command-line interface for mail-notifier.

Usage:
    mail-notifier --config config.ini send --to user@example.com --body "Hello"
    mail-notifier --config config.ini --tenants tenants.json send --tenant acme \\
        --to user@example.com --subject "Welcome" --body "<b>Hi</b>" --html
    mail-notifier --config config.ini check --tenant acme
    mail-notifier --tenants tenants.json tenants
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import aiosmtplib
import click
from rich.console import Console
from rich.table import Table

from .errors import MailNotifierError
from .logger import configure_logging
from .models import EmailMessageRequest, EmailProperties
from .sender import DefaultEmailSender
from .settings import MailSettings, load_mail_settings
from .ssl_bundles import SslBundles, load_ssl_bundles
from .tenants import InMemoryTenantsManager, find_email_communication_policy

console = Console()
err_console = Console(stderr=True)


class CliContext:
    """Objects shared by all subcommands."""

    def __init__(self, config_path: str | None, tenants_path: str | None):
        self.config_path = config_path
        self.tenants_path = tenants_path

    def settings(self) -> MailSettings:
        return load_mail_settings(self.config_path)

    def ssl_bundles(self) -> SslBundles | None:
        if self.config_path is None:
            return None
        return load_ssl_bundles(self.config_path)

    def tenants(self) -> InMemoryTenantsManager | None:
        if self.tenants_path is None:
            return None
        return InMemoryTenantsManager.from_file(self.tenants_path)

    def sender(self) -> DefaultEmailSender:
        return DefaultEmailSender(
            mail_settings=self.settings(),
            tenants=self.tenants(),
            ssl_bundles=self.ssl_bundles(),
        )


@click.group()
@click.version_option(package_name="mail-notifier")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False),
              envvar="MAIL_CONFIG", help="INI file with [mail] settings and SSL bundles.")
@click.option("--tenants", "-t", "tenants_path", type=click.Path(exists=True, dir_okay=False),
              envvar="MAIL_TENANTS", help="JSON file with tenant definitions.")
@click.option("--log-level", default=None, help="Logging level (default: MAIL_LOG_LEVEL or INFO).")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, tenants_path: str | None, log_level: str | None) -> None:
    """Send tenant-aware email notifications."""
    configure_logging(log_level)
    ctx.obj = CliContext(config_path, tenants_path)


@main.command("send")
@click.option("--to", "recipients", multiple=True, required=True, help="Recipient address (repeatable).")
@click.option("--body", required=True, help="Message body.")
@click.option("--subject", default=None, help="Subject or subject message code.")
@click.option("--tenant", default=None, help="Tenant identifier.")
@click.option("--from", "from_address", default=None, help="Sender (default: [mail] from).")
@click.option("--reply-to", default=None, help="Reply-To address.")
@click.option("--cc", multiple=True, help="Carbon-copy recipient (repeatable).")
@click.option("--bcc", multiple=True, help="Blind carbon-copy recipient (repeatable).")
@click.option("--html", is_flag=True, help="Send the body as HTML.")
@click.option("--priority", type=click.IntRange(1, 5), default=1, show_default=True)
@click.option("--validate-addresses", is_flag=True, help="Reject malformed addresses.")
@click.pass_obj
def send_command(
    obj: CliContext,
    recipients: tuple[str, ...],
    body: str,
    subject: str | None,
    tenant: str | None,
    from_address: str | None,
    reply_to: str | None,
    cc: tuple[str, ...],
    bcc: tuple[str, ...],
    html: bool,
    priority: int,
    validate_addresses: bool,
) -> None:
    """Send one message."""
    try:
        sender = obj.sender()
        request = EmailMessageRequest(
            recipients=recipients,
            body=body,
            tenant=tenant,
            email_properties=EmailProperties(
                from_address=from_address or sender.mail_settings.default_from,
                subject=subject,
                reply_to=reply_to,
                cc=cc,
                bcc=bcc,
                html=html,
                priority=priority,
                validate_addresses=validate_addresses,
            ),
        )
        result = asyncio.run(sender.send(request))
    except (MailNotifierError, aiosmtplib.SMTPException, FileNotFoundError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    if result.success:
        console.print(f"[green]Sent[/green] to {', '.join(result.to)}")
    else:
        err_console.print(f"[yellow]Not sent[/yellow] ({result.outcome.value}) to {', '.join(result.to)}")
        sys.exit(1)


@main.command("check")
@click.option("--tenant", default=None, help="Tenant identifier.")
@click.pass_obj
def check_command(obj: CliContext, tenant: str | None) -> None:
    """Probe the mail server resolved for a tenant."""
    try:
        sender = obj.sender()
        request = EmailMessageRequest(tenant=tenant)
        policy = find_email_communication_policy(sender.tenants, tenant)
        transport = sender.create_transport(request, policy)
    except (MailNotifierError, FileNotFoundError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    if transport is None:
        err_console.print("[yellow]No mail host configured[/yellow]")
        sys.exit(1)
    try:
        asyncio.run(transport.test_connection())
    except Exception as e:
        err_console.print(f"[red]Cannot connect to {transport.host}:{transport.port}:[/red] {e}")
        sys.exit(1)
    console.print(f"[green]Connected[/green] to {transport.host}:{transport.port or 'default'}")


@main.command("tenants")
@click.pass_obj
def tenants_command(obj: CliContext) -> None:
    """List tenants and their email communication policy."""
    if obj.tenants_path is None:
        err_console.print("[red]Error:[/red] --tenants is required")
        sys.exit(2)
    try:
        manager = InMemoryTenantsManager.from_file(Path(obj.tenants_path))
    except MailNotifierError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        sys.exit(2)

    table = Table(title="Tenants")
    table.add_column("ID", style="cyan")
    table.add_column("Description")
    table.add_column("SMTP host")
    table.add_column("Port")
    table.add_column("From")
    for tenant in manager.list_tenants():
        policy = tenant.email_communication_policy
        table.add_row(
            tenant.id,
            tenant.description or "-",
            policy.host if policy and policy.host else "-",
            str(policy.port) if policy and policy.port else "-",
            policy.from_address if policy and policy.from_address else "-",
        )
    console.print(table)


if __name__ == "__main__":
    main()
