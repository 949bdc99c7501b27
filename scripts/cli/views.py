"""CLI views: report, dashboard and document listings."""

from scripts.cli.util import W, fmt_amount, print_banner


def show_report(summary, currency: str):
    """Print a ReportSummary."""
    print_banner(f"REPORT {summary.start.isoformat()} .. {summary.end.isoformat()}")
    print(f"  {'Documents':<24} {summary.count:>20}")
    print(f"  {'Total amount':<24} {fmt_amount(summary.total_amount, currency):>20}")
    print(f"  {'Collected (paid)':<24} {fmt_amount(summary.collected, currency):>20}")
    print(f"  {'Pending':<24} {fmt_amount(summary.pending, currency):>20}")
    print(f"  {'Draft':<24} {fmt_amount(summary.draft, currency):>20}")
    if summary.filtered:
        print()
        show_documents(summary.filtered)
    print()


def show_dashboard(summary, currency: str):
    """Print a DashboardSummary."""
    print_banner("DASHBOARD")
    print(f"  {'Total revenue':<24} {fmt_amount(summary.total_revenue, currency):>20}")
    print(
        f"  {'Pending':<24} {fmt_amount(summary.pending_amount, currency):>20}"
        f"  ({summary.pending_count} invoices)"
    )
    print(f"  {'Clients':<24} {summary.client_count:>20}")
    print(f"  {'Users':<24} {summary.user_count:>20}")
    print("\n  --- Recent invoices ---")
    if not summary.recent:
        print("    (none)")
    else:
        show_documents(summary.recent)
    print()


def show_documents(documents):
    """One line per document: number, date, client, status, total."""
    print(f"  {'Number':<12} {'Date':<10} {'Client':<22} {'Status':<9} {'Total':>14}")
    print(f"  {'-'*12} {'-'*10} {'-'*22} {'-'*9} {'-'*14}")
    for d in documents:
        print(
            f"  {d.number[:12]:<12} {d.issue_date.isoformat():<10} "
            f"{(d.client_name or '')[:22]:<22} {d.status.value:<9} "
            f"{fmt_amount(d.totals.total, d.currency):>14}"
        )
    print(f"  {'-' * (W - 2)}")
    print(f"  Total: {len(documents)} documents")
