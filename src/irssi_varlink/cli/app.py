"""Main CLI application."""

import typer

from irssi_varlink.cli.commands import client, config, serve

app = typer.Typer(
    name="irssi-varlink",
    help="irssi-varlink - varlink interface for irssi",
    no_args_is_help=True,
)

serve.register(app)
client.register(app)
config.register(app)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
