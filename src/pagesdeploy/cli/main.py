"""Entry point for the pagesdeploy command line."""

import click

from pagesdeploy import __version__
from pagesdeploy.cli.commands.deploy import deploy


@click.group()
@click.version_option(version=__version__, prog_name="pagesdeploy")
def main() -> None:
    """pagesdeploy - Deploy Cloudflare Pages projects from CI.

    Starts a Pages deployment, streams each build stage's logs into the
    job output and reports the result back to GitHub.
    """


main.add_command(deploy)


if __name__ == "__main__":  # pragma: no cover
    main()
