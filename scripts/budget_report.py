#!/usr/bin/env python3
"""
Budget report viewer.

Prints budget-vs-actual, the budget dashboard, the monthly trend or the
payment status report for a database.  Read-only: the session is rolled
back on exit.

Usage:
    python3 scripts/budget_report.py --start 2025-01-01 --end 2025-12-31
    python3 scripts/budget_report.py --start 2025-01-01 --end 2025-12-31 \\
        --sort utilization_percent --desc
    python3 scripts/budget_report.py --report payments --as-of 2025-06-30
    python3 scripts/budget_report.py --report dashboard --database-url sqlite:///budget.db
"""

import argparse
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from budget_config import get_active_config  # noqa: E402
from budget_engines.budget_actual import SORT_KEYS  # noqa: E402
from budget_kernel.db.engine import get_session, init_engine_from_url  # noqa: E402
from budget_kernel.domain.dtos import PaymentStatus  # noqa: E402
from budget_kernel.exceptions import BudgetKernelError  # noqa: E402
from budget_kernel.logging_config import configure_logging  # noqa: E402
from budget_services.reporting_service import BudgetReportingService  # noqa: E402

W = 96


def _fmt(v) -> str:
    """Format a Decimal as 1,234.56 with parentheses for negatives."""
    d = Decimal(str(v))
    formatted = f"{abs(d):,.2f}"
    return f"({formatted})" if d < 0 else formatted


def _hdr(title: str, subtitle: str = "") -> str:
    lines = ["", "=" * W, title.center(W)]
    if subtitle:
        lines.append(subtitle.center(W))
    lines.append("=" * W)
    return "\n".join(lines)


def render_budget_rows(rows) -> list[str]:
    out = [
        f"  {'Account':<10}{'Name':<22}{'Period':<24}"
        f"{'Budget':>12}{'Actual':>12}{'Remaining':>12}{'Util %':>8}"
    ]
    out.append("  " + "-" * (W - 4))
    for r in rows:
        period = f"{r.period_start}..{r.period_end}"
        flag = " !" if r.is_over_budget else ""
        out.append(
            f"  {r.account_code:<10}{r.account_name[:21]:<22}{period:<24}"
            f"{_fmt(r.budget_amount):>12}{_fmt(r.actual_amount):>12}"
            f"{_fmt(r.remaining):>12}{r.utilization_percent:>8}{flag}"
        )
    return out


def render_budget_report(report) -> str:
    s = report.summary
    out = [_hdr("BUDGET VS ACTUAL", str(report.period))]
    out.extend(render_budget_rows(report.rows))
    out.append("  " + "-" * (W - 4))
    out.append(
        f"  {'TOTAL':<56}{_fmt(s.total_budget):>12}{_fmt(s.total_actual):>12}"
        f"{_fmt(s.total_remaining):>12}{s.overall_utilization_percent:>8}"
    )
    return "\n".join(out)


def render_unbudgeted(items) -> str:
    if not items:
        return ""
    out = [_hdr("UNBUDGETED ACTIVITY")]
    for item in items:
        out.append(
            f"  {item.account_code:<10}{item.account_name[:29]:<30}"
            f"expense {_fmt(item.actual_expense):>14}  income {_fmt(item.actual_income):>14}"
        )
    return "\n".join(out)


def render_dashboard(dashboard) -> str:
    s = dashboard.summary
    out = [_hdr("BUDGET DASHBOARD")]
    out.append(f"  Budgets:            {dashboard.budget_count}")
    out.append(f"  Cost centers:       {dashboard.cost_center_count}")
    out.append(f"  Total budget:       {_fmt(s.total_budget)}")
    out.append(f"  Total actual:       {_fmt(s.total_actual)}")
    out.append(f"  Utilization:        {s.overall_utilization_percent}%")
    if dashboard.over_budget:
        out.append("")
        out.append("  Over budget")
        out.extend(render_budget_rows(dashboard.over_budget))
    if dashboard.under_utilized:
        out.append("")
        out.append("  Under-utilized")
        out.extend(render_budget_rows(dashboard.under_utilized))
    out.append("")
    out.append("  Cost centers")
    for cc in dashboard.cost_centers:
        out.append(
            f"  {cc.account_code:<10}{cc.account_name[:21]:<22}"
            f"budget {_fmt(cc.total_budget):>14}  expense {_fmt(cc.actual_expense):>14}"
            f"  income {_fmt(cc.actual_income):>14}  net {_fmt(cc.net_actual):>14}"
        )
    return "\n".join(out)


def render_trend(buckets) -> str:
    out = [_hdr("MONTHLY TREND")]
    for b in buckets:
        out.append(
            f"  {b.account_code:<10}{b.year:04d}-{b.month:02d}   "
            f"expense {_fmt(b.actual_expense):>14}  income {_fmt(b.actual_income):>14}"
            f"  net {_fmt(b.net_actual):>14}"
        )
    return "\n".join(out)


def render_payments(report) -> str:
    s = report.summary
    out = [_hdr("PAYMENT STATUS", f"as of {report.as_of}")]
    for r in report.results:
        if r.is_cancelled:
            continue
        overdue = f"overdue {r.days_overdue}d" if r.is_overdue else ""
        out.append(
            f"  {str(r.document_id)[:36]:<38}{r.payment_status.value:<16}"
            f"{_fmt(r.total_amount):>14}{_fmt(r.balance):>14}  {overdue}"
        )
    out.append("  " + "-" * (W - 4))
    for status in PaymentStatus:
        out.append(
            f"  {status.value:<16}{s.count_by_status[status]:>6}"
            f"{_fmt(s.balance_by_status[status]):>16}"
        )
    out.append(f"  {'OVERDUE':<16}{s.overdue_count:>6}{_fmt(s.overdue_balance):>16}")
    return "\n".join(out)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Budget and cost-center reports")
    parser.add_argument(
        "--report",
        choices=("budget", "dashboard", "trend", "payments"),
        default="budget",
    )
    parser.add_argument("--start", type=date.fromisoformat, help="Period start YYYY-MM-DD")
    parser.add_argument("--end", type=date.fromisoformat, help="Period end YYYY-MM-DD")
    parser.add_argument("--as-of", type=date.fromisoformat, help="Payment report date")
    parser.add_argument("--sort", choices=SORT_KEYS, default="account_code")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--account", help="Limit the monthly trend to one account")
    parser.add_argument("--database-url", help="Overrides the configured database URL")
    parser.add_argument("--config", type=Path, help="Engine configuration YAML")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.report != "payments" and (args.start is None or args.end is None):
        parser.error("--start and --end are required for this report")

    session = None
    try:
        config = get_active_config(args.config)
        configure_logging(level=config.log_level)
        init_engine_from_url(
            args.database_url or config.database_url,
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
        )
        session = get_session()
        service = BudgetReportingService.for_session(session, config=config)
        if args.report == "budget":
            report = service.budget_vs_actual(
                args.start, args.end, sort_by=args.sort, descending=args.desc,
            )
            print(render_budget_report(report))
            unbudgeted = render_unbudgeted(service.unbudgeted_activity(args.start, args.end))
            if unbudgeted:
                print(unbudgeted)
        elif args.report == "dashboard":
            print(render_dashboard(service.dashboard(args.start, args.end)))
        elif args.report == "trend":
            print(render_trend(service.monthly_trend(args.start, args.end, args.account)))
        else:
            print(render_payments(service.payment_status_report(as_of=args.as_of)))
    except BudgetKernelError as e:
        print(f"error [{e.code}]: {e}", file=sys.stderr)
        return 2
    finally:
        if session is not None:
            session.rollback()
            session.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
