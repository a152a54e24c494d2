#!filepath: treebt/cli.py
from typing import Optional

import typer
from rich import print

from treebt import __version__

app = typer.Typer(help="treebt event-driven backtest CLI")


@app.command()
def version():
    print(f"v{__version__}")


@app.command()
def run(
    config: Optional[str] = typer.Option(
        None, "--config", "-c", help="YAML config (default: treebt/config/base.yml)"
    ),
):
    """
    Run a backtest from a YAML config
    """
    from treebt.workflows.run_backtest import run_backtest

    print(f"[green]Running backtest config={config or 'base.yml'}[/green]")

    statistic = run_backtest(config)
    result = statistic.result()

    print(
        f"[blue]events={result.n_events} "
        f"transactions={result.n_transactions} "
        f"total_return={result.total_return:.2%}[/blue]"
    )


if __name__ == "__main__":
    app()

# python -m treebt.cli run --config treebt/config/base.yml
