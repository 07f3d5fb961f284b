"""Rich renderer for vesting views.

Transforms SDK portfolio output into formatted Rich tables.
"""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from esopadmin.sdk.vesting import VestingSummary, classify_event


def _fmt_count(n: int) -> str:
    return f"{n:,}"


def _fmt_money(value: float, fair_value: float) -> str:
    # Zero fair value means no valuation is set yet
    if not fair_value:
        return "[dim]-[/dim]"
    return f"{value:,.0f}"


def _summary_cells(summary: VestingSummary, fair_value: float) -> list:
    return [
        _fmt_count(summary.total),
        f"[green]{_fmt_count(summary.vested)}[/green]",
        _fmt_count(summary.unvested),
        f"[red]{_fmt_count(summary.lapsed)}[/red]" if summary.lapsed else "0",
        f"{summary.pct}%",
        _fmt_money(summary.vested_value, fair_value),
    ]


def _summary_table(title: str) -> Table:
    table = Table(title=title, box=box.ROUNDED)
    table.add_column("", style="bold", min_width=12)
    table.add_column("Total", justify="right")
    table.add_column("Vested", justify="right")
    table.add_column("Unvested", justify="right")
    table.add_column("Lapsed", justify="right")
    table.add_column("Vested %", justify="right")
    table.add_column("Vested Value", justify="right")
    return table


def _render_valuation(console: Console, as_of: str, fair_value: float) -> None:
    if fair_value:
        console.print(f"As of {as_of} - fair value per option: [bold]{fair_value:,.2f}[/bold]")
    else:
        console.print(Panel(
            f"[yellow]No valuation effective on {as_of}; values not shown.[/yellow]",
            title="Note",
            border_style="yellow",
        ))


def render_grant(console: Console, grant: dict, events: list, summary: VestingSummary,
                 as_of: str, fair_value: float) -> None:
    """Render one grant with its event-by-event classification."""
    _render_valuation(console, as_of, fair_value)

    table = Table(title=f"Grant {grant['grant_number']} ({grant['grant_date']})", box=box.ROUNDED)
    table.add_column("Vest Date")
    table.add_column("Options", justify="right")
    table.add_column("As of " + as_of)
    styles = {"vested": "green", "unvested": "", "lapsed": "red"}
    for event in sorted(events, key=lambda e: e["vest_date"]):
        state = classify_event(event, as_of)
        label = f"[{styles[state]}]{state}[/{styles[state]}]" if styles[state] else state
        table.add_row(event["vest_date"], _fmt_count(event["options_count"]), label)
    console.print(table)

    totals = _summary_table("Summary")
    totals.add_row(grant["grant_number"], *_summary_cells(summary, fair_value))
    console.print(totals)

    if summary.scheduled != summary.total:
        console.print(
            f"[yellow]Schedule covers {summary.scheduled:,} of {summary.total:,} options.[/yellow]"
        )


def render_employee(console: Console, view: dict) -> None:
    """Render per-grant rows and the combined total for one employee."""
    employee = view["employee"]
    _render_valuation(console, view["as_of"], view["fair_value"])

    table = _summary_table(f"{employee['name']} ({employee['employee_code']})")
    for row in view["grants"]:
        table.add_row(row["grant"]["grant_number"], *_summary_cells(row["summary"], view["fair_value"]))
    if len(view["grants"]) > 1:
        table.add_row("[bold]TOTAL[/bold]", *_summary_cells(view["total"], view["fair_value"]))
    console.print(table)


def render_company(console: Console, view: dict) -> None:
    """Render the company-wide total."""
    _render_valuation(console, view["as_of"], view["fair_value"])
    table = _summary_table(f"All grants ({view['grants']} grants, {view['employees']} employees)")
    table.add_row("TOTAL", *_summary_cells(view["total"], view["fair_value"]))
    console.print(table)
