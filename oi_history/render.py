"""
Rich terminal rendering of display rows.

One table per retained snapshot, calls on the left and puts on the right of
the strike column, mirroring the dashboard layout.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .config import SYMBOL_CONFIGS, ColumnVisibility
from .deltas import SideDelta
from .summary import ChainSummary
from .table import DisplayRow, StrikeRow


def format_number(value) -> str:
    return f"{value or 0:,}"


def _delta_text(delta: SideDelta) -> Text:
    if not delta.has_baseline:
        return Text("")
    sign = "+" if delta.oi_delta > 0 else ""
    style = "green" if delta.oi_delta >= 0 else "red"
    return Text(f"{sign}{delta.oi_delta:,}", style=style)


def _oi_cell(open_interest: int, delta: SideDelta, delta_first: bool) -> Text:
    oi_text = Text(format_number(open_interest), style="bold")
    badge = _delta_text(delta)
    if not badge.plain:
        return oi_text
    parts = [badge, oi_text] if delta_first else [oi_text, badge]
    return Text(" ").join(parts)


def _display_or_dash(value) -> str:
    return str(value) if value else "-"


def _call_cells(row: StrikeRow, columns: ColumnVisibility) -> List:
    cells = []
    if columns.oi:
        cells.append(_oi_cell(row.call.open_interest, row.call_delta, delta_first=True))
    if columns.oi_value:
        cells.append(f"{row.call_oi_value:.2f}")
    if columns.volume:
        cells.append(format_number(row.call.total_traded_volume))
    if columns.iv:
        cells.append(_display_or_dash(row.call.implied_volatility))
    if columns.ltp:
        cells.append(_display_or_dash(row.call.last_price))
    return cells


def _put_cells(row: StrikeRow, columns: ColumnVisibility) -> List:
    cells = []
    if columns.ltp:
        cells.append(_display_or_dash(row.put.last_price))
    if columns.iv:
        cells.append(_display_or_dash(row.put.implied_volatility))
    if columns.volume:
        cells.append(format_number(row.put.total_traded_volume))
    if columns.oi_value:
        cells.append(f"{row.put_oi_value:.2f}")
    if columns.oi:
        cells.append(_oi_cell(row.put.open_interest, row.put_delta, delta_first=False))
    return cells


def _headers(columns: ColumnVisibility) -> List[str]:
    call = []
    if columns.oi:
        call.append("OI")
    if columns.oi_value:
        call.append("CE OI Val")
    if columns.volume:
        call.append("Vol")
    if columns.iv:
        call.append("IV")
    if columns.ltp:
        call.append("CE LTP")
    put = [name.replace("CE", "PE") for name in reversed(call)]
    return call + ["Strike"] + put


def build_snapshot_table(row: DisplayRow, columns: Optional[ColumnVisibility] = None) -> Table:
    columns = columns or ColumnVisibility()
    title = row.timestamp.strftime("%H:%M:%S")
    if row.exchange_timestamp:
        title += f" (NSE: {row.exchange_timestamp})"
    table = Table(title=title, caption=f"Spot: {row.spot_price}", show_lines=False, expand=True)
    for name in _headers(columns):
        table.add_column(name, justify="center")

    for strike_row in row.strikes:
        strike_style = "bold cyan" if strike_row.is_atm else "bold"
        table.add_row(
            *_call_cells(strike_row, columns),
            Text(str(strike_row.strike), style=strike_style),
            *_put_cells(strike_row, columns),
            style="on grey23" if strike_row.is_atm else None,
        )
    return table


def display_name(symbol: str) -> str:
    return SYMBOL_CONFIGS.get((symbol or '').upper(), {}).get('display_name', symbol)


def build_summary_panel(symbol: str, summary: Optional[ChainSummary]) -> Panel:
    name = display_name(symbol)
    if summary is None:
        return Panel("[bold yellow]No snapshot available.[/bold yellow]", title=name, border_style="yellow")
    body = (
        f"Spot Price: [bold]{summary.spot_price}[/bold]   "
        f"PCR: [bold]{summary.pcr:.2f}[/bold]   "
        f"Total CE OI: [bold red]{summary.total_call_oi:,}[/bold red]   "
        f"Total PE OI: [bold green]{summary.total_put_oi:,}[/bold green]"
    )
    return Panel(body, title=f"{name} OI Dashboard", border_style="blue")


def render_history(symbol: str, summary: Optional[ChainSummary], rows: Sequence[DisplayRow],
                   columns: Optional[ColumnVisibility] = None) -> Group:
    """Summary panel followed by one table per display row."""
    renderables = [build_summary_panel(symbol, summary)]
    if not rows:
        renderables.append(Panel("No snapshots in the selected window.", border_style="yellow"))
    renderables.extend(build_snapshot_table(row, columns) for row in rows)
    return Group(*renderables)
