#!/usr/bin/env python3
"""
OpenProject Work Log Processor

Reads a JSON work log (see README), asks for the start time of each day,
shows which work packages will be reused or created and then logs the time
entries to OpenProject.
"""

import argparse
import logging
import os
import sys

from . import __version__
from .config import load_config
from .dates import format_time_12h
from .errors import ConfigurationError, FormatError, ServerDuplicatesError, WorkLoggerError
from .models import TaskStatus
from .service import WorkLogService

logger = logging.getLogger(__name__)

DEFAULT_WORK_LOG = "logs.json"


def get_yes_no_input(prompt):
    """Get yes/no input from user, only allowing 'y' or 'n'."""
    while True:
        response = input(f"{prompt} (y/n): ").strip().lower()
        if response in ["y", "n"]:
            return response == "y"
        print("Please enter 'y' for yes or 'n' for no.")


def get_work_package_comment():
    """Get optional comment/description for a new work package."""
    return input("Enter comment (or press Enter to skip): ").strip()


def get_work_package_status(statuses, default_status_id):
    """Let the user pick a status for a new work package."""
    if not statuses:
        return default_status_id

    print("\nAvailable statuses:")
    for number, status in enumerate(statuses, 1):
        print(f"  {number}. {status.get('name')}")

    default_name = next(
        (s.get("name") for s in statuses if s.get("id") == default_status_id),
        f"Status ID {default_status_id}",
    )
    while True:
        choice = input(f"Select status (1-{len(statuses)}, or press Enter for '{default_name}'): ").strip()
        if not choice:
            return default_status_id
        if choice.isdigit() and 1 <= int(choice) <= len(statuses):
            selected = statuses[int(choice) - 1]
            print(f"Selected status: {selected.get('name')}")
            return selected.get("id")
        print(f"Invalid choice. Please select 1-{len(statuses)} or press Enter for default.")


def prompt_start_times(service, preset=None):
    """Ask for the start time of the first task on each date that needs one."""
    while True:
        entry_date = service.next_date_needing_start_time()
        if entry_date is None:
            return

        if preset:
            issues = service.set_start_time(entry_date, preset)
            print_issues(issues)
            continue

        print("\n" + "=" * 50)
        print("START TIME CONFIGURATION")
        print("=" * 50)
        print(f"Enter the start time for the first task on {entry_date}")

        start_time_input = input("Enter start time (e.g., 9:00 AM, 09:30, 14:30): ").strip()
        if not start_time_input:
            print("Start time is required. Please enter a valid time.")
            continue

        try:
            issues = service.set_start_time(entry_date, start_time_input)
        except FormatError as e:
            print(f"Invalid time format: {e}")
            print("Please use formats like: 9:00 AM, 2:30 PM, 09:00, 14:30")
            continue

        print(f"Updated entries for {entry_date}")
        print_issues(issues)


def print_issues(issues):
    for issue in issues:
        print(f"  ! {issue.task.label}: {issue.message}")


def print_preview(service):
    for entry_date, group in service.groups.items():
        print("\n" + "=" * 60)
        print(f"WORK LOG ENTRIES PREVIEW - {entry_date}")
        print("=" * 60)
        for i, task in enumerate(group.tasks, 1):
            print(f"{i}. {task.label}")
            if task.calculated_start:
                print(
                    f"   Time: {format_time_12h(task.calculated_start)} - "
                    f"{format_time_12h(task.calculated_end)} ({task.duration_hours} hrs)"
                )
            print(f"   Activity: {task.activity}")
            if task.is_recurring_meeting:
                print(f"   Work Package: SCRUM (ID: {task.linked_work_item_id})")
            elif task.linked_work_item_id:
                print(f"   Work Package: Existing (ID: {task.linked_work_item_id})")
        print(f"Total hours for {entry_date}: {group.total_hours}")


def print_analysis(analysis):
    print("\n" + "=" * 60)
    print("WORK PACKAGE ANALYSIS")
    print("=" * 60)

    if analysis.recurring:
        print(f"\nSCRUM ENTRIES ({len(analysis.recurring)}):")
        for task in analysis.recurring:
            print(f"  - {task.label} -> Work Package ID: {task.linked_work_item_id}")

    if analysis.linked:
        print(f"\nEXISTING WORK PACKAGE ENTRIES ({len(analysis.linked)}):")
        for task in analysis.linked:
            print(f"  - {task.label} -> Work Package ID: {task.linked_work_item_id}")

    if analysis.duplicate:
        print(f"\nEXISTING WORK PACKAGES FOUND ({len(analysis.duplicate)}):")
        for task in analysis.duplicate:
            print(f"  - {task.label}")
            print(f"    -> Will use existing Work Package ID: {task.resolved_work_item_id}")

    if analysis.new:
        print(f"\nNEW WORK PACKAGES TO CREATE ({len(analysis.new)}):")
        for task in analysis.new:
            print(f"  - {task.label}")

    print("\n" + "=" * 60)
    print("SUMMARY:")
    print(f"  SCRUM entries: {len(analysis.recurring)}")
    print(f"  Existing work package entries: {len(analysis.linked)}")
    print(f"  Existing work packages (will reuse): {len(analysis.duplicate)}")
    print(f"  New work packages (will create): {len(analysis.new)}")
    print("=" * 60)


def collect_new_work_package_options(service, analysis):
    """Ask for a comment and status for each new work package."""
    comment_data = {}
    statuses = service.fetch_statuses()
    for index, task in enumerate(analysis.new):
        print(f"\n--- Configuration for work package {index + 1}/{len(analysis.new)} ---")
        print(f"  {task.label}")
        comment = get_work_package_comment()
        if comment:
            comment_data[f"comment_{index}"] = comment
        comment_data[f"status_{index}"] = get_work_package_status(
            statuses, service.settings.default_status_id
        )
    return comment_data


def print_report(report):
    print("\n" + "=" * 80)
    print("RESULTS")
    print("=" * 80)
    for outcome in report.outcomes:
        task = outcome.task
        if outcome.succeeded:
            detail = f"WP {outcome.work_item_id}"
            if outcome.time_entry_id:
                detail += f", time entry {outcome.time_entry_id}"
            elif outcome.existing_time_entries:
                detail += f", {outcome.existing_hours:g}h already logged"
            print(f"  OK   {task.entry_date} {task.label}: {outcome.kind.value} ({detail})")
        else:
            print(f"  FAIL {task.entry_date} {task.label}: {outcome.error_message}")

    if report.cancelled:
        print(f"\nCancelled after {len(report.outcomes)} of {report.total} entries.")

    print(
        f"\nSUMMARY: {report.created} created, {report.updated} updated, "
        f"{report.failed} failed, {report.skipped} skipped as already logged"
    )
    if not report.changed_anything and not report.failed:
        print("Nothing changed on the server.")
    elif report.failed:
        print("Some entries failed; the work log was only partially applied.")


def build_arg_parser():
    parser = argparse.ArgumentParser(description="Log a JSON work log to OpenProject.")
    parser.add_argument("work_log", nargs="?", default=DEFAULT_WORK_LOG, help="work log JSON file")
    parser.add_argument("-c", "--config", default=None, help="config module (default: config.py)")
    parser.add_argument("--start-time", help="start time for the first task of every date")
    parser.add_argument(
        "--no-server-check",
        action="store_true",
        help="skip the duplicate subject check while parsing",
    )
    parser.add_argument(
        "--allow-duplicates",
        action="store_true",
        help="report server duplicates as warnings instead of aborting",
    )
    parser.add_argument("--dry-run", action="store_true", help="analyze only, change nothing")
    parser.add_argument("-y", "--yes", action="store_true", help="do not ask for confirmation")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv=None):
    """Main execution function."""
    args = build_arg_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("\nOpenProject Work Log Processor")
    print("=" * 40)

    try:
        settings = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2

    if not os.path.exists(args.work_log):
        print(f"Error: Could not find work log file '{args.work_log}'.")
        return 1

    service = WorkLogService(settings)
    try:
        return run(service, args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}")
        return 2
    except WorkLoggerError as e:
        print(f"Error: {e}")
        return 1
    finally:
        service.close()


def run(service, args):
    print(f"Processing work log file: {args.work_log}")

    try:
        service.load_file(
            args.work_log,
            validate_against_server=False if args.no_server_check else None,
            throw_on_server_duplicates=False if args.allow_duplicates else None,
        )
    except ServerDuplicatesError as e:
        print(f"\n{e}")
        print("Fix the subjects or add the work_package_id, or rerun with --allow-duplicates.")
        return 1
    except FormatError as e:
        print(f"Error parsing work log file: {e}")
        return 1

    if not service.work_log:
        print("No valid time entries found in the work log file.")
        return 1

    for duplicate in service.work_log.server_duplicates:
        print(f"Warning: {duplicate.message}")

    prompt_start_times(service, preset=args.start_time)
    print_preview(service)

    analysis = service.analyze()
    print_analysis(analysis)

    if args.dry_run:
        print("\nDry run - no changes made.")
        return 0

    comment_data = {}
    if analysis.new and not args.yes:
        comment_data = collect_new_work_package_options(service, analysis)

    if not args.yes and not get_yes_no_input(f"\nProcess all {len(service.tasks)} entries?"):
        print("Processing cancelled.")
        return 0

    def show_progress(current, total, task):
        print(f"\n[{current}/{total}] Processing: {task.label[:60]}")

    try:
        report = service.process_all(comment_data, progress_callback=show_progress)
    except KeyboardInterrupt:
        print("Interrupted. Entries already processed were kept; rerunning skips them.")
        return 130

    print_report(report)
    return 1 if any(o.kind == TaskStatus.ERROR for o in report.outcomes) else 0


if __name__ == "__main__":
    sys.exit(main())
