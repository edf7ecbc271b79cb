"""CLI entry point for flowviz."""

import json
import logging
import sys

import click

from flowviz import parse_flow
from flowviz.analysis import calculate_complexity
from flowviz.config import CARD_LAYOUT_CONFIG, DEFAULT_LAYOUT_CONFIG
from flowviz.errors import ParseError, ValidationError


@click.command()
@click.argument("input", required=False, type=click.Path(exists=True))
@click.option("--output", "-o", "output", type=str, default=None, help="Write JSON to this file instead of stdout")
@click.option("--card", "card", is_flag=True, help="Use the wider card node geometry")
@click.option("--stats", "stats", is_flag=True, help="Include complexity metrics")
@click.option("--no-layout", "no_layout", is_flag=True, help="Skip positioning; x/y stay null")
@click.option("--verbose", "-v", "verbose", is_flag=True, help="Log pipeline diagnostics to stderr")
def main(input: str | None, output: str | None, card: bool, stats: bool, no_layout: bool, verbose: bool) -> None:
    """Salesforce Flow XML to positioned graph JSON."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if input:
        try:
            with open(input, encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            click.echo(f"error: cannot read '{input}': {e}", err=True)
            sys.exit(1)
    else:
        text = sys.stdin.read()

    config = CARD_LAYOUT_CONFIG if card else DEFAULT_LAYOUT_CONFIG
    try:
        flow = parse_flow(text, auto_layout=not no_layout, config=config)
    except ParseError as e:
        where = f" (line {e.line}, column {e.column})" if e.line is not None else ""
        click.echo(f"parse error{where}: {e}", err=True)
        sys.exit(1)
    except ValidationError as e:
        click.echo(f"invalid flow: {e}", err=True)
        sys.exit(1)

    payload = flow.to_dict()
    if stats:
        payload["complexity"] = calculate_complexity(flow.nodes, flow.edges).to_dict()
    rendered = json.dumps(payload, indent=2)

    if output:
        try:
            with open(output, "w", encoding="utf-8") as f:
                f.write(rendered + "\n")
        except OSError as e:
            click.echo(f"error: cannot write '{output}': {e}", err=True)
            sys.exit(1)
    else:
        click.echo(rendered)


if __name__ == "__main__":
    main()
