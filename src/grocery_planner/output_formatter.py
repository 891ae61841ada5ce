"""Output formatting for CLI and programmatic use."""

import json
from datetime import date, datetime
from typing import Any
from uuid import UUID

from rich.console import Console
from rich.panel import Panel
from rich.table import Table


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for output."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        return super().default(obj)


def format_cents(cents: int | None) -> str:
    """Render an amount in cents as dollars."""
    if cents is None:
        return "-"
    return f"${cents / 100:.2f}"


class OutputFormatter:
    """Formats output for both Rich terminal and JSON modes."""

    def __init__(self, json_mode: bool = False):
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode
        self.console = Console()

    def output(self, data: dict[str, Any], message: str = "") -> None:
        """Output data in appropriate format.

        Args:
            data: Data to output
            message: Optional message for Rich mode
        """
        if self.json_mode:
            self._output_json(data)
        else:
            self._output_rich(data, message)

    def _output_json(self, data: dict[str, Any]) -> None:
        """Output as JSON to stdout."""
        print(json.dumps(data, cls=JSONEncoder, indent=2))

    def _output_rich(self, data: dict[str, Any], message: str) -> None:
        """Output with Rich formatting."""
        if message:
            self.console.print(f"[green]✓[/green] {message}")

        payload = data.get("data", {})
        if "list" in payload:
            self._render_shopping_list(data)
        elif "lists" in payload:
            self._render_lists(data)
        elif "item" in payload and isinstance(payload["item"], dict):
            self._render_item(data)
        elif "by_category" in payload:
            self._render_by_category(data)
        elif "suggestions" in payload:
            self._render_suggestions(data)
        elif "profile" in payload:
            self._render_profile(data)
        elif "quantity" in payload:
            self._render_quantity(data)
        elif "retailers" in payload:
            self._render_retailers(data)
        elif "deals" in payload:
            self._render_deals(data)
        elif "plan" in payload:
            self._render_plan(payload["plan"])
        elif "plans" in payload:
            self._render_plan_comparison(data)

    def _render_shopping_list(self, data: dict) -> None:
        """Render a shopping list with Rich."""
        list_data = data["data"]["list"]
        items = list_data["items"]

        if not items:
            self.console.print("[dim]No items on the list[/dim]")
            return

        table = Table(title=list_data.get("name", "Shopping List"), header_style="bold cyan")
        table.add_column("Item", style="cyan", no_wrap=False)
        table.add_column("Qty", style="magenta", justify="right")
        table.add_column("Unit", style="magenta")
        table.add_column("Category", style="yellow")
        table.add_column("Done", style="blue")
        table.add_column("ID", style="dim")

        for item in items:
            table.add_row(
                item["canonical_name"],
                f"{item['quantity']:g}",
                item["unit"],
                item["category"],
                "[green]✓[/green]" if item["is_completed"] else "○",
                item["id"][:8],
            )

        self.console.print(table)
        self.console.print(f"\nTotal items: {len(items)}")

    def _render_lists(self, data: dict) -> None:
        lists = data["data"]["lists"]
        if not lists:
            self.console.print("[dim]No shopping lists yet[/dim]")
            return

        table = Table(title="Shopping Lists", header_style="bold cyan")
        table.add_column("Name", style="cyan")
        table.add_column("Active", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Default")
        table.add_column("ID", style="dim")
        for lst in lists:
            table.add_row(
                lst["name"],
                str(lst["active_items"]),
                str(lst["total_items"]),
                "★" if lst["is_default"] else "",
                lst["id"],
            )
        self.console.print(table)

    def _render_item(self, data: dict) -> None:
        """Render a single item with Rich."""
        payload = data["data"]
        item = payload["item"]

        panel_content = f"""[bold]{item["canonical_name"]}[/bold]

Quantity: {item["quantity"]:g} {item["unit"]}
Category: {item["category"]}
Status: {"completed" if item["is_completed"] else "active"}"""

        if payload.get("merged"):
            panel_content += "\n[yellow]Merged into an existing entry[/yellow]"
        if payload.get("corrected"):
            panel_content += f"\n[yellow]Spelling corrected from '{item['raw_name']}'[/yellow]"
        suggestion = payload.get("suggestion")
        if suggestion:
            panel_content += (
                f"\n[dim]Stores usually sell this as {suggestion['suggested_quantity']:g} "
                f"{suggestion['suggested_unit']}: {suggestion['reason']}[/dim]"
            )
        if item.get("suggested_price") is not None:
            panel_content += f"\nPlanned price: {format_cents(item['suggested_price'])}"

        panel = Panel(panel_content, title="Item Details", border_style="green")
        self.console.print(panel)

    def _render_by_category(self, data: dict) -> None:
        """Render items grouped by category in aisle order."""
        for category, group in data["data"]["by_category"].items():
            self.console.print(f"\n[bold yellow]{category}[/bold yellow] [dim]{group['aisle']}[/dim]")
            for item in group["items"]:
                self.console.print(
                    f"  - {item['canonical_name']} ({item['quantity']:g} {item['unit']})"
                )

    def _render_suggestions(self, data: dict) -> None:
        """Render rename and quantity suggestions."""
        suggestions = data["data"]["suggestions"]

        if not suggestions:
            self.console.print("[dim]Everything on the list already looks right[/dim]")
            return

        table = Table(title="Suggestions", header_style="bold cyan")
        table.add_column("Item", style="cyan")
        table.add_column("Canonical")
        table.add_column("Suggested", justify="right")
        table.add_column("Why", style="dim")
        for s in suggestions:
            quantity = s["quantity"]
            table.add_row(
                s["name"],
                s["profile"]["canonical_name"],
                f"{quantity['suggested_quantity']:g} {quantity['suggested_unit']}",
                quantity["reason"],
            )
        self.console.print(table)

    def _render_profile(self, data: dict) -> None:
        profile = data["data"]["profile"]
        content = f"""[bold]{profile["icon"]} {profile["canonical_name"]}[/bold]

Category: {profile["category"]}
Subcategory: {profile.get("subcategory") or "-"}
Location: {profile["aisle"]}, {profile["section"]}
Sold by: {profile["suggested_unit"]}
Confidence: {profile["confidence"]:.0%} ({profile["match_type"]})"""
        if profile.get("brand_variations"):
            content += f"\nBrands: {', '.join(profile['brand_variations'])}"
        self.console.print(Panel(content, title="Category Profile", border_style="cyan"))

    def _render_quantity(self, data: dict) -> None:
        q = data["data"]["quantity"]
        self.console.print(
            f"{q['original_quantity']:g} {q['original_unit']} → "
            f"[bold]{q['suggested_quantity']:g} {q['suggested_unit']}[/bold]"
        )
        self.console.print(f"[dim]{q['reason']}[/dim]")

    def _render_retailers(self, data: dict) -> None:
        retailers = data["data"]["retailers"]
        if not retailers:
            self.console.print("[dim]No retailers yet[/dim]")
            return

        table = Table(title="Retailers", header_style="bold cyan")
        table.add_column("ID", justify="right")
        table.add_column("Name", style="cyan")
        table.add_column("Price factor", justify="right")
        table.add_column("Availability", justify="right")
        for r in retailers:
            table.add_row(
                str(r["id"]),
                r["name"],
                f"{r['price_factor']:.2f}",
                f"{r['availability_offset']:+.2f}",
            )
        self.console.print(table)

    def _render_deals(self, data: dict) -> None:
        deals = data["data"]["deals"]
        if not deals:
            self.console.print("[dim]No active deals[/dim]")
            return

        table = Table(title="Active Deals", header_style="bold cyan")
        table.add_column("Retailer", justify="right")
        table.add_column("Product", style="cyan")
        table.add_column("Regular", justify="right")
        table.add_column("Sale", justify="right", style="green")
        table.add_column("Ends")
        for d in deals:
            table.add_row(
                str(d["retailer_id"]),
                d["product_name"],
                format_cents(d["regular_price"]),
                format_cents(d["sale_price"]),
                d["end_date"][:10],
            )
        self.console.print(table)

    def _render_plan(self, plan: dict) -> None:
        """Render a plan as one table per store plus a summary panel."""
        if not plan["stores"]:
            self.console.print("[dim]Nothing to shop for[/dim]")
            return

        for store in plan["stores"]:
            table = Table(title=store["retailer_name"], header_style="bold cyan")
            table.add_column("Item", style="cyan")
            table.add_column("Qty", justify="right")
            table.add_column("Unit price", justify="right")
            table.add_column("Total", justify="right")
            table.add_column("", style="yellow")
            for line in plan_lines(store):
                table.add_row(*line)
            self.console.print(table)
            self.console.print(f"Subtotal: {format_cents(store['subtotal'])}")

        summary = f"""[bold]{plan["plan_type"]}[/bold]

Stores: {plan["store_count"]}
Total: {format_cents(plan["total_cost"])}
Estimated time: {plan["estimated_time"]}
Savings: {format_cents(plan["savings"])}"""
        if plan["unavailable_items"]:
            summary += f"\n[red]Unavailable: {', '.join(plan['unavailable_items'])}[/red]"
        self.console.print(Panel(summary, title="Plan", border_style="green"))

    def _render_plan_comparison(self, data: dict) -> None:
        table = Table(title="Plan Comparison", header_style="bold cyan")
        table.add_column("Plan", style="cyan")
        table.add_column("Stores", justify="right")
        table.add_column("Total", justify="right")
        table.add_column("Savings", justify="right", style="green")
        table.add_column("Time")
        for plan in data["data"]["plans"]:
            table.add_row(
                plan["plan_type"],
                str(plan["store_count"]),
                format_cents(plan["total_cost"]),
                format_cents(plan["savings"]),
                plan["estimated_time"],
            )
        self.console.print(table)

    def error(self, message: str, error_code: str | None = None) -> None:
        """Output error message.

        Args:
            message: Error message
            error_code: Optional error code
        """
        if self.json_mode:
            output = {"success": False, "error": message}
            if error_code:
                output["error_code"] = error_code
            print(json.dumps(output))
        else:
            self.console.print(f"[red]✗ Error:[/red] {message}")

    def success(self, message: str, data: dict | None = None) -> None:
        """Output success message.

        Args:
            message: Success message
            data: Optional data to include
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if data:
                output["data"] = data
            print(json.dumps(output, cls=JSONEncoder))
        else:
            self.console.print(f"[green]✓[/green] {message}")


def plan_lines(store: dict) -> list[tuple[str, str, str, str, str]]:
    """Table rows for one store allocation."""
    rows = []
    for line in store["items"]:
        flag = ""
        if not line["available"]:
            flag = "unavailable"
            if line.get("substitute_retailer_id") is not None:
                flag += f" (try #{line['substitute_retailer_id']})"
        elif line["is_deal"]:
            flag = "deal"
        rows.append(
            (
                line["name"],
                f"{line['quantity']:g} {line['unit']}",
                format_cents(line["unit_price"]),
                format_cents(line["line_total"]),
                flag,
            )
        )
    return rows
