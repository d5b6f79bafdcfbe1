from __future__ import annotations

from datetime import date
from typing import Any, Callable, Iterable, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from coursedesk.client import TransportError
from coursedesk.config import Settings
from coursedesk.duplicates import is_duplicate
from coursedesk.model import SEMESTERS, FeedbackEntry, FeedbackStatus, ScheduleDraft
from coursedesk.pipeline import ImportOutcome, ImportPlan, count_active_courses, plan_import
from coursedesk.rows import validate_course_fields
from coursedesk.sheets import SheetError, read_sheet
from coursedesk.wizard import (
    CreateCommit,
    EditCommit,
    ImportCommit,
    ScheduleWizard,
    WizardError,
    WizardOutcome,
    WizardState,
)

console = Console()

PromptFn = Callable[[str], str]

STATUS_STYLE = {
    FeedbackStatus.IMPORTED: "green",
    FeedbackStatus.SKIPPED: "yellow",
    FeedbackStatus.ERROR: "red",
}


def _println(msg: str = "") -> None:
    console.print(msg)


def _prompt(msg: str) -> str:
    # prompts contain literal brackets such as "[a] Add" or "[Y/n]"
    return console.input(escape(msg))


def _confirm(prompt: PromptFn, question: str, default: bool = True) -> bool:
    hint = "[Y/n]" if default else "[y/N]"
    answer = prompt(f"{question} {hint}: ").strip().lower()
    if not answer:
        return default
    return answer in ("y", "yes")


def current_academic_year(today: Optional[date] = None) -> str:
    """
    The academic year starts in June: 2025-03 -> '2024-2025', 2025-08 -> '2025-2026'.
    """
    d = today or date.today()
    first = d.year if d.month >= 6 else d.year - 1
    return f"{first}-{first + 1}"


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


def print_feedback(feedback: Iterable[FeedbackEntry], title: str = "Import feedback") -> None:
    entries = list(feedback)
    if not entries:
        return

    table = Table(title=title, box=box.SIMPLE)
    table.add_column("Row", justify="right")
    table.add_column("Code")
    table.add_column("Status")
    table.add_column("Message")
    for f in entries:
        style = STATUS_STYLE[f.status]
        table.add_row(
            "" if f.row is None else str(f.row), escape(f.code), f"[{style}]{f.status.value}[/]", escape(f.message)
        )
    console.print(table)


def print_outcome(outcome: WizardOutcome) -> None:
    style = "green" if outcome.success else "red"
    _println(f"[{style}]{escape(outcome.message)}[/]")

    if outcome.conflicts:
        table = Table(title="Conflicting courses", box=box.SIMPLE)
        table.add_column("Course")
        table.add_column("Section")
        table.add_column("Problem")
        for c in outcome.conflicts:
            table.add_row(*(escape(str(c.get(k, ""))) for k in ("courseCode", "courseSection", "error")))
        console.print(table)

    if outcome.report is not None:
        print_feedback(outcome.report.feedback)


def _print_step(wizard: ScheduleWizard) -> None:
    _println(f"\n=== Schedules ({wizard.mode}) - course {wizard.index + 1} of {wizard.total} ===")
    _println(f"[bold cyan]{escape(wizard.current_label)}[/]")

    rows = [d for d in wizard.draft if not d.is_untouched()]
    if not rows:
        _println("(no schedules yet)")
    else:
        table = Table(box=box.SIMPLE)
        table.add_column("#", justify="right")
        table.add_column("Day")
        table.add_column("From")
        table.add_column("To")
        for i, d in enumerate(rows, start=1):
            table.add_row(str(i), escape(d.day), escape(d.from_time), escape(d.to_time))
        console.print(table)

    if wizard.error:
        _println(f"[red]{escape(wizard.error)}[/]")


# ---------------------------------------------------------------------------
# Wizard driver
# ---------------------------------------------------------------------------


def _menu(wizard: ScheduleWizard) -> str:
    items = ["[a] Add schedule", "[d] Delete schedule", "[n] Next" if not wizard.is_last else "[n] Finish"]
    if wizard.strategy.allows_navigation:
        if wizard.index > 0:
            items.append("[b] Back")
        items.append("[s] Skip")
    items.append("[x] Cancel")
    return "\n" + "  ".join(items) + "\nSelect: "


def run_wizard(wizard: ScheduleWizard, store: Any, prompt: PromptFn = _prompt) -> Optional[WizardOutcome]:
    """
    Drive a wizard from the terminal until it is DONE or CANCELLED.
    """
    while True:
        if wizard.state is WizardState.CANCELLED:
            return None

        if wizard.state is WizardState.SUBMITTING:
            try:
                outcome = wizard.submit(store)
            except TransportError as e:
                _println(f"[red]Could not reach storage: {escape(str(e))}[/]")
                if _confirm(prompt, "Retry?"):
                    continue
                if _confirm(prompt, wizard.cancel_prompt(), default=False):
                    wizard.cancel(True)
                    _println("Cancelled.")
                    return None
                continue
            print_outcome(outcome)
            return outcome

        _print_step(wizard)
        choice = prompt(_menu(wizard)).strip().lower()

        rows = [d for d in wizard.draft if not d.is_untouched()]

        if choice == "a":
            day = prompt("Day (e.g. Monday): ").strip()
            start = prompt("Start time (e.g. 08:00 or 8:00 AM): ").strip()
            end = prompt("End time (e.g. 09:30 or 9:30 AM): ").strip()
            wizard.set_draft(rows + [ScheduleDraft(day, start, end)])
        elif choice == "d":
            pick = prompt("Number to delete: ").strip()
            if pick.isdigit() and 1 <= int(pick) <= len(rows):
                del rows[int(pick) - 1]
                wizard.set_draft(rows)
            else:
                _println("Out of range.")
        elif choice == "n":
            wizard.next()
        elif choice == "b":
            try:
                wizard.back()
            except WizardError as e:
                _println(escape(str(e)))
        elif choice == "s":
            try:
                wizard.skip()
            except WizardError as e:
                _println(escape(str(e)))
        elif choice == "x":
            if wizard.cancel(_confirm(prompt, wizard.cancel_prompt(), default=False)):
                _println("Cancelled.")
                return None
        else:
            _println("Invalid choice.")


# ---------------------------------------------------------------------------
# Flows
# ---------------------------------------------------------------------------


def flow_check(path: str, store: Any, settings: Settings) -> Optional[ImportPlan]:
    """
    Dry run: show what an import of `path` would do. Returns the plan.
    """
    try:
        rows = read_sheet(path)
    except SheetError as e:
        _println(f"[red]{escape(str(e))}[/]")
        return None

    existing = store.list_courses()
    active = count_active_courses(existing, settings.faculty_id)
    plan = plan_import(rows, existing, active, settings.max_active)

    print_feedback(plan.feedback, title="Rows that will not be imported")
    if plan.error:
        _println(f"[red]{escape(plan.error)}[/]")
    _println(f"{len(rows)} row(s): {len(plan.fresh)} new, {plan.skipped_count} duplicate, {plan.error_count} invalid")
    return plan


def flow_import(path: str, store: Any, settings: Settings, prompt: PromptFn = _prompt) -> Optional[WizardOutcome]:
    plan = flow_check(path, store, settings)
    if plan is None:
        return None

    if plan.outcome is ImportOutcome.CAPACITY_EXCEEDED:
        return None
    if plan.outcome is ImportOutcome.NOTHING_TO_IMPORT:
        _println("All courses already exist or are invalid. Nothing to import.")
        return None
    if plan.needs_confirmation and not _confirm(prompt, plan.confirmation_prompt()):
        return None

    _println(f"{len(plan.fresh)} course(s) ready. Add schedules to complete the import.")
    wizard = ScheduleWizard(ImportCommit(plan.fresh, plan.feedback, faculty_id=settings.faculty_id))
    return run_wizard(wizard, store, prompt)


def _pick_semester(prompt: PromptFn) -> str:
    pick = prompt(f"Semester [1] {SEMESTERS[0]} / [2] {SEMESTERS[1]} (default 1): ").strip()
    return SEMESTERS[1] if pick == "2" else SEMESTERS[0]


def flow_create(store: Any, settings: Settings, prompt: PromptFn = _prompt) -> Optional[WizardOutcome]:
    fields = {
        "code": prompt("Course code: "),
        "title": prompt("Course title: "),
        "section": prompt("Section: "),
        "room": prompt("Room: "),
        "semester": _pick_semester(prompt),
        "academic_year": prompt(f"Academic year [{current_academic_year()}]: ").strip() or current_academic_year(),
        "class_number": prompt("Class number [1]: ").strip() or "1",
        "status": prompt("Status [ACTIVE]: ").strip() or "ACTIVE",
    }

    result = validate_course_fields(fields)
    if not result.ok or result.value is None:
        for err in result.errors:
            _println(f"[red]{escape(err)}[/]")
        return None

    course = result.value
    existing = store.list_courses()
    if is_duplicate(course, existing):
        _println(f"[red]Course {escape(course.label)} already exists.[/]")
        return None

    _println("Please add schedules to complete course creation.")
    wizard = ScheduleWizard(
        CreateCommit(
            course,
            faculty_id=settings.faculty_id,
            active_count=count_active_courses(existing, settings.faculty_id),
            max_active=settings.max_active,
        )
    )
    return run_wizard(wizard, store, prompt)


def flow_edit(slug: str, store: Any, prompt: PromptFn = _prompt) -> Optional[WizardOutcome]:
    course = store.get_course(slug)
    if course is None:
        _println(f"[red]Course not found: {escape(slug)}[/]")
        return None

    return run_wizard(ScheduleWizard(EditCommit(course)), store, prompt)
