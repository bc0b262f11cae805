import asyncio

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import MarkdownViewer

from api import resources
from utils.messages import ModeSwitchedMessage, NewNotificationMessage
from utils.pure import dashboard_stats, generate_markdown_table, monthly_sales, product_sales
from views.base_screen import BaseScreen


class DashboardScreen(BaseScreen):
    """
    Sales insights: headline numbers, monthly sales and units sold per product.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-top", show_table_of_contents=False)

    def on_mount(self) -> None:
        self.handle_reload()

    @on(NewNotificationMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        admin = self.app.admin
        if not admin.is_authenticated:
            return
        orders_res, returns_res, customers_res = await asyncio.gather(
            admin.call("fetch orders", resources.list_orders(admin.client, admin.token)),
            admin.call("fetch returns", resources.list_returns(admin.client, admin.token)),
            admin.call(
                "count new customers",
                resources.count_new_customers(admin.client, admin.token),
            ),
        )
        if not self.report(orders_res):
            return
        # the other two only lose their card on failure
        returned = len(returns_res.value or []) if returns_res.ok else 0
        new_customers = customers_res.value if customers_res.ok else 0

        orders = orders_res.value or []
        stats = dashboard_stats(orders, returned, new_customers)

        headline_md = (
            "### Overview\n\n"
            f"- Total Revenue: ${stats.total_revenue:.2f}\n"
            f"- Total Orders: {stats.total_orders}\n"
            f"- Avg Order Value: ${stats.average_order_value:.2f}\n"
            f"- Returned Orders: {stats.returned_orders}\n"
            f"- New Customers: {stats.new_customers}\n\n"
        )

        monthly_md = "### Monthly Sales\n\n" + generate_markdown_table(
            ["Month", "Orders", "Revenue ($)"],
            [[m.month, m.orders, f"{m.revenue:.2f}"] for m in monthly_sales(orders)],
            ["l", "r", "r"],
        )

        sold = sorted(product_sales(orders).items(), key=lambda kv: kv[1], reverse=True)
        products_md = "### Units Sold per Product\n\n"
        if sold:
            products_md += generate_markdown_table(
                ["Product", "Units"], [[name, qty] for name, qty in sold], ["l", "r"]
            )
        else:
            products_md += "_No sales yet._"

        await self.query_one("#md-top", MarkdownViewer).document.update(
            headline_md + monthly_md + "\n\n" + products_md
        )
