import typer

from runbook_studio.cli.fetch import fetch
from runbook_studio.cli.params import check, params

app = typer.Typer(
    name="runbook-studio",
    help="Runbook Studio CLI: fetch runbooks and inspect their parameters.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.command("params")(params)
app.command("check")(check)
app.command("fetch")(fetch)


def main() -> None:
    app()
