"""Entry point for the ``scalex`` command."""

from __future__ import annotations

import click

from scalex import __version__
from scalex.cli.commands.deploy import deploy, remove, validate


@click.group(name="scalex")
@click.version_option(__version__, prog_name="scalex")
def main() -> None:
    """Swap HTTP API routes between Lambda and HTTP backends per region.

    Commands:

        validate  Check the scaling configuration
        deploy    Reconcile routes with their scaling policies
        remove    Delete every integration created by ScaleX

    Example:

        scalex deploy --stage prod --region ap-southeast-1
    """


main.add_command(validate)
main.add_command(deploy)
main.add_command(remove)


if __name__ == "__main__":
    main()
