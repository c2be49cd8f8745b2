#!/usr/bin/env python3
"""Terminal budget dashboard for a startup call.

Run with the API up: ``python -m callbudget.client.dashboard``.
"""
import os
import sys
from typing import Any, Dict, List, Optional

import requests

from callbudget.app.config import get_settings
from callbudget.app.logger import setup_logging
from callbudget.client.api_client import ApiError, BudgetApiClient

BAR_WIDTH = 20

def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')

def print_header(title: str):
    clear_screen()
    print("=" * 60)
    print(f" {title} ".center(60, "="))
    print("=" * 60)
    print()

def get_input(prompt: str, default: Optional[str] = None) -> str:
    if default:
        result = input(f"{prompt} [{default}]: ").strip()
        if not result:
            return default
        return result
    return input(f"{prompt}: ").strip()

def pause():
    input("\nPress Enter to continue...")

def progress_bar(percent: int, width: int = BAR_WIDTH) -> str:
    filled = round(width * max(0, min(100, percent)) / 100)
    return "[" + "#" * filled + "-" * (width - filled) + "]"

def format_spend_line(label: str, summary: Dict[str, Any], currency: str = "") -> str:
    remaining = summary["remaining"]
    flag = "  OVER BUDGET" if summary.get("over_budget") else ""
    return (
        f"{label:<24.24} {progress_bar(summary['percent_spent'])} {summary['percent_spent']:>4}%  "
        f"spent {summary['spent']:>11,.2f}  left {remaining:>11,.2f} {currency}{flag}"
    ).rstrip()

def format_budget_overview(summary: Dict[str, Any]) -> List[str]:
    """Lines for one budget summary and its categories"""
    currency = summary.get("currency", "")
    lines = [format_spend_line(summary["title"], summary, currency)]
    for category in summary.get("categories", []):
        lines.append(format_spend_line("  " + category["name"], category, currency))
    if summary.get("uncategorized_spent"):
        lines.append(f"  {'Uncategorized':<22} spent {summary['uncategorized_spent']:,.2f} {currency}")
    return lines

def format_monthly(monthly: Dict[str, Any]) -> List[str]:
    peak = max((month["total"] for month in monthly["months"]), default=0) or 1
    lines = []
    for month in monthly["months"]:
        bar = "#" * round(BAR_WIDTH * month["total"] / peak)
        lines.append(f"{month['label']:<4} {bar:<{BAR_WIDTH}} {month['total']:>11,.2f}")
    lines.append(f"{'Total':<{BAR_WIDTH + 5}} {monthly['total']:>11,.2f}")
    return lines

def show_overview(client: BudgetApiClient, startup_call_id: str):
    print_header("Budget Overview")
    call_summary = client.startup_call_summary(startup_call_id)
    if not call_summary["budgets"]:
        print("No budgets for this startup call yet.")
        return pause()

    for budget in call_summary["budgets"]:
        summary = client.budget_summary(startup_call_id, budget["budget_id"])
        for line in format_budget_overview(summary):
            print(line)
        print()
    print("-" * 60)
    print(format_spend_line("All budgets", call_summary))
    pause()

def show_monthly(client: BudgetApiClient, startup_call_id: str):
    print_header("Monthly Spending")
    budgets = client.list_budgets(startup_call_id)
    if not budgets:
        print("No budgets for this startup call yet.")
        return pause()

    for index, budget in enumerate(budgets, start=1):
        print(f"{index}. {budget['title']} ({budget['fiscal_year']})")
    choice = get_input("\nSelect budget", "1")
    if not choice.isdigit() or not 1 <= int(choice) <= len(budgets):
        print("Invalid selection.")
        return pause()
    budget = budgets[int(choice) - 1]
    year = get_input("Year", budget["fiscal_year"])

    monthly = client.monthly_summary(startup_call_id, budget["id"], int(year) if year.isdigit() else None)
    print()
    for line in format_monthly(monthly):
        print(line)
    pause()

def show_expenses(client: BudgetApiClient, startup_call_id: str):
    print_header("Recent Expenses")
    budgets = client.list_budgets(startup_call_id)
    status = get_input("Filter by status (blank for all)", "") or None
    for budget in budgets:
        expenses = client.list_expenses(startup_call_id, budget["id"], status=status)
        print(f"{budget['title']}: {len(expenses)} expenses")
        for expense in expenses[:10]:
            receipt = " [receipt]" if expense.get("receipt") else ""
            print(f"  {expense['date']}  {expense['title']:<28.28} "
                  f"{expense['amount']:>10,.2f} {expense['currency']}  {expense['status']}{receipt}")
        print()
    pause()

def download_report(client: BudgetApiClient, startup_call_id: str):
    print_header("Download Report")
    report_format = get_input("Format (pdf/excel/csv)", "excel")
    timeframe = get_input("Timeframe (current_month/current_quarter/current_year/all)", "all")
    content, filename = client.download_report(
        startup_call_id, {"format": report_format, "timeframe": timeframe}
    )
    with open(filename, "wb") as handle:
        handle.write(content)
    print(f"Saved {filename} ({len(content)} bytes)")
    pause()

def main_menu(client: BudgetApiClient, startup_call_id: str):
    actions = {
        "1": show_overview,
        "2": show_monthly,
        "3": show_expenses,
        "4": download_report,
    }
    while True:
        print_header("Startup Call Budget Dashboard")
        print("1. Budget Overview")
        print("2. Monthly Spending")
        print("3. Recent Expenses")
        print("4. Download Report")
        print("0. Exit")

        choice = get_input("\nEnter your choice")
        if choice == "0":
            print("\nExiting...")
            return
        action = actions.get(choice)
        if action is None:
            continue
        try:
            action(client, startup_call_id)
        except ApiError as exc:
            print(f"Error: {exc}")
            pause()

def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()
    setup_logging(settings)
    client = BudgetApiClient.from_settings(settings)

    startup_call_id = argv[0] if argv else get_input("Startup call ID")
    try:
        call = client.get_startup_call(startup_call_id)
    except requests.ConnectionError:
        print(f"Error: Cannot connect to the API at {settings.api_base_url}")
        print("Make sure your FastAPI server is running.")
        return 1
    except ApiError as exc:
        print(f"Error: {exc}")
        return 1

    print(f"Loaded startup call: {call['title']}")
    main_menu(client, startup_call_id)
    return 0

if __name__ == "__main__":
    sys.exit(main())
