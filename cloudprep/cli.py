"""
cloudprep CLI - prepare an Azure cluster for Submariner and clean it up.
"""

import logging
import sys

import click
from rich.console import Console

from cloudprep.api import PrepareForSubmarinerInput
from cloudprep.azure import new_cloud
from cloudprep.config import DEFAULT_INTERNAL_PORTS, AzureSettings, load_cloud_info, parse_port
from cloudprep.logging import configure_logging
from cloudprep.reporter import ConsoleReporter

console = Console(stderr=True)


def _target_options(func):
    """Options identifying the cluster, falling back to AZURE_* settings."""
    options = [
        click.option("--infra-id", help="Cluster infrastructure ID (AZURE_INFRA_ID)"),
        click.option("--region", help="Azure region of the cluster (AZURE_REGION)"),
        click.option(
            "--resource-group",
            "base_group_name",
            help="Resource group holding the cluster network (AZURE_BASE_GROUP_NAME)",
        ),
        click.option("--subscription-id", help="Azure subscription (AZURE_SUBSCRIPTION_ID)"),
        click.option("--debug", is_flag=True, help="Enable debug logging"),
        click.option("--json-logs", is_flag=True, help="Write logs as JSON lines"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _port(ctx, param, values):
    try:
        return [parse_port(value) for value in values]
    except ValueError as e:
        raise click.BadParameter(str(e))


def _load_cloud(debug: bool, json_logs: bool, **target):
    configure_logging(logging.DEBUG if debug else logging.WARNING, json_format=json_logs)
    try:
        info = load_cloud_info(AzureSettings(), **target)
    except ValueError as e:
        raise click.UsageError(str(e))
    return new_cloud(info)


@click.group()
@click.version_option(version="0.1.0")
def cli():
    """
    cloudprep - open and revoke the cloud networking Submariner needs.

    Works on OpenShift clusters installed on Azure.
    """
    pass


@cli.command()
@_target_options
@click.option(
    "--port",
    "-p",
    "ports",
    multiple=True,
    callback=_port,
    help="Internal port to open as <port>/<protocol>; repeatable (default: 4800/udp, 8080/tcp)",
)
def prepare(ports, debug: bool, json_logs: bool, **target):
    """
    Open the Submariner ports on a cluster.

    Example:
        cloudprep prepare --infra-id mycluster-x7k2p --region eastus \\
            --resource-group mycluster-x7k2p-rg --port 4800/udp
    """
    cloud = _load_cloud(debug, json_logs, **target)
    request = PrepareForSubmarinerInput(internal_ports=list(ports) or list(DEFAULT_INTERNAL_PORTS))

    try:
        cloud.prepare_for_submariner(request, ConsoleReporter(console))
    except Exception as e:
        if debug:
            console.print_exception()
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@_target_options
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def cleanup(yes: bool, debug: bool, json_logs: bool, **target):
    """
    Revoke everything prepare opened on a cluster.
    """
    cloud = _load_cloud(debug, json_logs, **target)

    if not yes:
        click.confirm(
            f"Remove the Submariner security groups and load-balancing rules of {cloud.info.infra_id}?",
            abort=True,
        )

    try:
        cloud.cleanup_after_submariner(ConsoleReporter(console))
    except Exception as e:
        if debug:
            console.print_exception()
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def main():
    """Entry point for the cloudprep command."""
    cli()


if __name__ == "__main__":
    main()
