"""
View model builders: one function per dashboard view.

Each builder takes raw collections (lists of dicts) plus the view's expansion
state and returns plain data: chart series as ``{name, value}`` pairs or
month series, and drill-down tables as nested rows. Values are not formatted;
money is Decimal rounded to cents, percentages are floats rounded to 2 places.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from src.modules.reporting.aggregator import (
    count_by,
    count_by_status,
    group_by,
    group_by_month,
    join_lookup,
    percentage_of,
    ratio,
    resolve,
    sort_by_date,
    sorted_months,
    sum_by,
    within_days,
)
from src.modules.reporting.constants import (
    LESSON_STATUSES,
    NOT_AVAILABLE,
    PACKAGE_STATUSES,
    UNDATED,
    UNKNOWN,
    LessonStatus,
    PackageStatus,
)
from src.modules.reporting.expansion import ExpansionState, ViewExpansion
from src.modules.reporting.normalizer import (
    full_name,
    index_by_id,
    is_identifier,
    name_lookup,
)
from src.shared.utils.money import round_money

UNKNOWN_STUDENT = "Unknown Student"
UNKNOWN_TEACHER = "Unknown Teacher"
NO_PACKAGE = "-"

# Expansion levels per view
VIEW_LEVELS: dict[str, tuple[str, ...]] = {
    "financial": ("month",),
    "lessons": ("month",),
    "packages": ("package_name", "student", "package"),
    "students": ("student",),
    "teachers": ("teacher",),
}


def _level(expansion: ViewExpansion | None, name: str) -> ExpansionState:
    if expansion is None or not expansion.has_level(name):
        return ExpansionState()
    return expansion.level(name)


def _pct(part: Any, whole: Any) -> float:
    return round(percentage_of(part, whole), 2)


def _money_or_na(value: float | str) -> Decimal | str:
    if value == NOT_AVAILABLE:
        return NOT_AVAILABLE
    return round_money(value)


def _int(value: Any) -> int:
    """Integer field of a record; missing or malformed reads as 0."""
    if isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _series(counts: dict, order: tuple | None = None) -> list[dict]:
    """``{name, value}`` pairs; known order first, then the rest by name."""
    names = list(counts)
    if order is not None:
        names = [n for n in order if n in counts] + sorted(
            (n for n in counts if n not in order), key=str
        )
    return [{"name": str(name), "value": counts[name]} for name in names]


def is_role(user: dict, role_id: str, role_name: str) -> bool:
    """
    Whether a user has a role. ``role`` is either the role id or a nested
    ``{id, name}`` object depending on the fields the API was asked for.
    """
    role = user.get("role")
    if isinstance(role, str):
        return role == role_id
    if isinstance(role, dict):
        if role.get("id") == role_id:
            return True
        name = role.get("name")
        return isinstance(name, str) and name.lower() == role_name.lower()
    return False


# --- Overview ---


def build_overview(
    users: list[dict],
    lessons: list[dict],
    instruments: list[dict],
    packages: list[dict],
    payments: list[dict],
    *,
    teacher_role_id: str,
    student_role_id: str,
    recent_days: int = 30,
    now: datetime | None = None,
) -> dict:
    """Home page cards: headcounts, recent lessons, totals."""
    return {
        "teacher_count": sum(1 for u in users if is_role(u, teacher_role_id, "teacher")),
        "student_count": sum(1 for u in users if is_role(u, student_role_id, "student")),
        "instrument_count": len(instruments),
        "monthly_lessons": len(within_days(lessons, "start_datetime", recent_days, now)),
        "total_packages": len(packages),
        "total_revenue": round_money(sum_by(payments, "rate")),
    }


# --- Financial ---


def revenue_by_instrument(
    payments: list[dict],
    packages_by_id: dict,
    instrument_names: dict,
) -> tuple[dict[str, Decimal], Decimal]:
    """
    Attribute each payment's rate to its package's instrument.

    Returns ``(per_instrument, unattributed)``. Payments whose package cannot
    be resolved, or whose package has no instrument, are summed into
    ``unattributed`` instead of any instrument. An instrument id missing from
    the lookup is attributed to "Unknown".
    """
    per_instrument: dict[str, Decimal] = {}
    unattributed: list[dict] = []
    for payment in payments:
        package = resolve(packages_by_id, payment.get("package"), None)
        if not package or not package.get("instrument"):
            unattributed.append(payment)
            continue
        name = resolve(instrument_names, package.get("instrument")) or UNKNOWN
        per_instrument[name] = per_instrument.get(name, Decimal("0")) + sum_by([payment], "rate")
    return per_instrument, sum_by(unattributed, "rate")


def build_financial(
    payments: list[dict],
    packages: list[dict],
    users: list[dict],
    instruments: list[dict],
    expansion: ViewExpansion | None = None,
) -> dict:
    """Revenue trend, revenue per instrument, monthly drill-down, key metrics."""
    packages_by_id = index_by_id(packages)
    users_by_id = index_by_id(users)
    instrument_names = name_lookup(instruments)
    months = _level(expansion, "month")

    by_month = group_by_month(payments, "payment_date")
    monthly_revenue = [
        {
            "month": month,
            "revenue": round_money(sum_by(by_month[month], "rate")),
            "transaction_count": len(by_month[month]),
        }
        for month in sorted_months(by_month)
        if month != UNDATED
    ]

    per_instrument, unattributed = revenue_by_instrument(
        payments, packages_by_id, instrument_names
    )
    instrument_revenue = [
        {"name": name, "value": round_money(total)}
        for name, total in sorted(per_instrument.items(), key=lambda kv: (-kv[1], kv[0]))
    ]

    monthly_details = []
    for month in sorted_months(by_month, descending=True):
        month_payments = by_month[month]
        total = sum_by(month_payments, "rate")
        expanded = months.is_expanded(month)
        sub_rows = []
        if expanded:
            for payment in sort_by_date(month_payments, "payment_date"):
                package = resolve(packages_by_id, payment.get("package"), None)
                student = resolve(users_by_id, package.get("student"), None) if package else None
                sub_rows.append(
                    {
                        "id": payment.get("id"),
                        "payment_id": payment.get("payment_id"),
                        "payment_date": payment.get("payment_date"),
                        "package_name": package.get("name") if package else NO_PACKAGE,
                        "student_name": full_name(student) or UNKNOWN_STUDENT,
                        "amount": round_money(sum_by([payment], "rate")),
                        "currency": payment.get("currency"),
                    }
                )
        monthly_details.append(
            {
                "key": month,
                "month": month,
                "revenue": round_money(total),
                "transaction_count": len(month_payments),
                "average_value": _money_or_na(ratio(total, len(month_payments))),
                "expanded": expanded,
                "sub_rows": sub_rows,
            }
        )

    total_revenue = sum_by(payments, "rate")
    return {
        "monthly_revenue": monthly_revenue,
        "instrument_revenue": instrument_revenue,
        "unattributed_revenue": round_money(unattributed),
        "monthly_details": monthly_details,
        "metrics": {
            "total_revenue": round_money(total_revenue),
            "total_transactions": len(payments),
            "average_transaction_value": _money_or_na(ratio(total_revenue, len(payments))),
            "active_packages": sum(
                1 for p in packages if p.get("status") == PackageStatus.ACTIVE.value
            ),
        },
    }


# --- Lessons ---


def _status_counts(lessons: list[dict]) -> dict[str, int]:
    counts = count_by_status(lessons, known=LESSON_STATUSES)
    return {status: counts.get(status, 0) for status in LESSON_STATUSES}


def build_lessons(
    lessons: list[dict],
    packages: list[dict],
    users: list[dict],
    expansion: ViewExpansion | None = None,
) -> dict:
    """Status distribution, monthly trend, duration distribution, monthly drill-down."""
    packages_by_id = index_by_id(packages)
    users_by_id = index_by_id(users)
    months = _level(expansion, "month")

    by_month = group_by_month(lessons, "start_datetime")
    trend = [
        {"month": month, "total": len(by_month[month]), **_status_counts(by_month[month])}
        for month in sorted_months(by_month)
        if month != UNDATED
    ]

    def package_duration(lesson: dict) -> Any:
        package = resolve(packages_by_id, lesson.get("package"), None)
        return package.get("duration") if package else None

    durations = count_by(lessons, package_duration)
    duration_distribution = [
        {"name": str(d), "value": durations[d]}
        for d in sorted(durations, key=lambda d: (_int(d), str(d)))
    ]

    monthly_details = []
    for month in sorted_months(by_month, descending=True):
        month_lessons = by_month[month]
        counts = _status_counts(month_lessons)
        expanded = months.is_expanded(month)
        sub_rows = []
        if expanded:
            for lesson in sort_by_date(month_lessons, "start_datetime"):
                package = resolve(packages_by_id, lesson.get("package"), None)
                student = resolve(users_by_id, package.get("student"), None) if package else None
                teacher = resolve(users_by_id, lesson.get("teacher"), None)
                sub_rows.append(
                    {
                        "id": lesson.get("id"),
                        "start_datetime": lesson.get("start_datetime"),
                        "status": lesson.get("status"),
                        "package_name": package.get("name") if package else NO_PACKAGE,
                        "student_name": full_name(student) or UNKNOWN_STUDENT,
                        "teacher_name": full_name(teacher) or UNKNOWN_TEACHER,
                        "remarks": lesson.get("remarks"),
                    }
                )
        monthly_details.append(
            {
                "key": month,
                "month": month,
                "total": len(month_lessons),
                **counts,
                "attendance_rate": _pct(counts[LessonStatus.ATTENDED.value], len(month_lessons)),
                "expanded": expanded,
                "sub_rows": sub_rows,
            }
        )

    overall = _status_counts(lessons)
    return {
        "status_distribution": _series(
            count_by_status(lessons, known=LESSON_STATUSES), LESSON_STATUSES
        ),
        "monthly_trend": trend,
        "duration_distribution": duration_distribution,
        "monthly_details": monthly_details,
        "metrics": {
            "total_lessons": len(lessons),
            "attendance_rate": _pct(overall[LessonStatus.ATTENDED.value], len(lessons)),
            "cancellation_rate": _pct(overall[LessonStatus.CANCELLED.value], len(lessons)),
            "pending_lessons": overall[LessonStatus.PENDING.value],
        },
    }


# --- Packages ---


def package_completion_rate(completed: int, lessons_quota: int) -> float:
    """
    Attended lessons against quota, in percent.

    A zero quota divides by 1, so such a package reports 0% rather than "N/A".
    """
    return round(completed / max(lessons_quota, 1) * 100, 2)


def _lessons_of(lessons_by_package: dict, package: dict) -> list[dict]:
    pid = package.get("id")
    if not is_identifier(pid):
        return []
    return lessons_by_package.get(pid, [])


def _package_progress(package: dict, package_lessons: list[dict]) -> dict:
    completed = count_by_status(package_lessons, known=LESSON_STATUSES).get(
        LessonStatus.ATTENDED.value, 0
    )
    quota = _int(package.get("lessons_quota"))
    return {
        "total": len(package_lessons),
        "completed": completed,
        "quota": quota,
        "completion_rate": package_completion_rate(completed, quota),
        "remaining_lessons": quota - completed,
    }


def _package_detail_row(
    package: dict,
    package_lessons: list[dict],
    instrument_names: dict,
    *,
    expanded: bool,
    recent_limit: int,
) -> dict:
    recent = []
    if expanded:
        recent = [
            {
                "id": lesson.get("id"),
                "start_datetime": lesson.get("start_datetime"),
                "status": lesson.get("status"),
            }
            for lesson in sort_by_date(package_lessons, "start_datetime")[:recent_limit]
        ]
    return {
        "key": str(package.get("id")),
        "id": package.get("id"),
        "instrument": resolve(instrument_names, package.get("instrument")) or UNKNOWN,
        "duration": package.get("duration"),
        "status": package.get("status"),
        "start_datetime": package.get("start_datetime"),
        "end_datetime": package.get("end_datetime"),
        "remarks": package.get("remarks"),
        **_package_progress(package, package_lessons),
        "expanded": expanded,
        "recent_lessons": recent,
    }


def build_packages(
    packages: list[dict],
    lessons: list[dict],
    users: list[dict],
    instruments: list[dict],
    expansion: ViewExpansion | None = None,
    recent_lessons_limit: int = 5,
) -> dict:
    """
    Package distributions and the three-level drill-down
    package name -> student -> package (with its most recent lessons).

    Student keys are scoped by package name (``"<name>::<student id>"``), so
    expanding a student under one package name leaves other names untouched.
    """
    users_by_id = index_by_id(users)
    instrument_names = name_lookup(instruments)
    lessons_by_package = group_by(lessons, "package", default=None)
    names_level = _level(expansion, "package_name")
    students_level = _level(expansion, "student")
    packages_level = _level(expansion, "package")

    def lessons_of(package: dict) -> list[dict]:
        return _lessons_of(lessons_by_package, package)

    def progress_of(package: dict) -> dict:
        return _package_progress(package, lessons_of(package))

    def total_of(pkgs: list[dict], field: str) -> int:
        return sum(progress_of(p)[field] for p in pkgs)

    def active_count(pkgs: list[dict]) -> int:
        return sum(1 for p in pkgs if p.get("status") == PackageStatus.ACTIVE.value)

    rows = []
    by_name = group_by(packages, "name")
    for name, name_packages in sorted(by_name.items(), key=lambda kv: str(kv[0])):
        by_student = group_by(name_packages, "student")
        name_key = str(name)
        name_expanded = names_level.is_expanded(name_key)
        student_rows = []
        if name_expanded:
            for student_id, student_packages in by_student.items():
                student_key = f"{name_key}::{student_id}"
                student_expanded = students_level.is_expanded(student_key)
                package_rows = []
                if student_expanded:
                    package_rows = [
                        _package_detail_row(
                            package,
                            lessons_of(package),
                            instrument_names,
                            expanded=packages_level.is_expanded(package.get("id")),
                            recent_limit=recent_lessons_limit,
                        )
                        for package in student_packages
                    ]
                completed = total_of(student_packages, "completed")
                quota = total_of(student_packages, "quota")
                student_rows.append(
                    {
                        "key": student_key,
                        "student_id": student_id if student_id != UNKNOWN else None,
                        "student_name": full_name(resolve(users_by_id, student_id, None))
                        or UNKNOWN_STUDENT,
                        "package_count": len(student_packages),
                        "active_packages": active_count(student_packages),
                        "total_lessons": total_of(student_packages, "total"),
                        "completed": completed,
                        "quota": quota,
                        "completion_rate": package_completion_rate(completed, quota),
                        "expanded": student_expanded,
                        "sub_rows": package_rows,
                    }
                )
            student_rows.sort(key=lambda r: r["student_name"])
        rows.append(
            {
                "key": name_key,
                "package_name": name_key,
                "student_count": len(by_student),
                "active_packages": active_count(name_packages),
                "total_lessons": total_of(name_packages, "total"),
                "expanded": name_expanded,
                "sub_rows": student_rows,
            }
        )

    status_counts = count_by_status(packages, known=PACKAGE_STATUSES)
    instrument_counts = count_by(
        join_lookup(packages, "instrument", instrument_names, as_field="instrument_name"),
        lambda p: p["instrument_name"] or UNKNOWN,
    )
    average_duration = ratio(sum_by(packages, "duration"), len(packages))
    return {
        "status_distribution": _series(status_counts, PACKAGE_STATUSES),
        "instrument_distribution": _series(
            dict(sorted(instrument_counts.items(), key=lambda kv: str(kv[0])))
        ),
        "rows": rows,
        "metrics": {
            "total_packages": len(packages),
            "active_packages": status_counts.get(PackageStatus.ACTIVE.value, 0),
            "completion_rate": _pct(
                status_counts.get(PackageStatus.COMPLETED.value, 0), len(packages)
            ),
            "average_duration": average_duration
            if average_duration == NOT_AVAILABLE
            else round(average_duration),
        },
    }


# --- Students ---


def build_students(
    packages: list[dict],
    lessons: list[dict],
    users: list[dict],
    instruments: list[dict],
    expansion: ViewExpansion | None = None,
) -> dict:
    """
    Packages per student, attendance distribution, per-student package progress.

    A student's active packages are those below 100% completion, whatever their
    status. Expanded rows list packages by completion rate, highest first.
    """
    users_by_id = index_by_id(users)
    instrument_names = name_lookup(instruments)
    lessons_by_package = group_by(lessons, "package", default=None)
    students_level = _level(expansion, "student")

    packages_per_student = count_by(
        packages, lambda p: full_name(resolve(users_by_id, p.get("student"), None))
    )

    rows = []
    for student_id, student_packages in group_by(packages, "student").items():
        key = str(student_id)
        expanded = students_level.is_expanded(key)
        progress = []
        for package in join_lookup(
            student_packages, "instrument", instrument_names, as_field="instrument_name"
        ):
            package_lessons = _lessons_of(lessons_by_package, package)
            progress.append(
                {
                    "package_id": package.get("id"),
                    "package_name": package.get("name"),
                    "instrument": package["instrument_name"] or UNKNOWN,
                    "status": package.get("status"),
                    **_package_progress(package, package_lessons),
                }
            )
        progress.sort(key=lambda p: -p["completion_rate"])
        average = ratio(sum(p["completion_rate"] for p in progress), len(progress))
        rows.append(
            {
                "key": key,
                "student_id": student_id if student_id != UNKNOWN else None,
                "student_name": full_name(resolve(users_by_id, student_id, None))
                or UNKNOWN_STUDENT,
                "package_count": len(student_packages),
                "active_packages": sum(1 for p in progress if p["completion_rate"] < 100),
                "average_completion_rate": 0.0 if average == NOT_AVAILABLE else round(average, 2),
                "expanded": expanded,
                "sub_rows": progress if expanded else [],
            }
        )
    rows.sort(key=lambda r: (r["student_name"], r["key"]))

    attended = count_by_status(lessons, known=LESSON_STATUSES).get(LessonStatus.ATTENDED.value, 0)
    active_students = {
        p.get("student")
        for p in packages
        if p.get("status") == PackageStatus.ACTIVE.value and is_identifier(p.get("student"))
    }
    return {
        "packages_per_student": [
            {"name": name, "value": count}
            for name, count in sorted(packages_per_student.items(), key=lambda kv: (-kv[1], kv[0]))
        ],
        "attendance_distribution": _series(
            count_by_status(lessons, known=LESSON_STATUSES), LESSON_STATUSES
        ),
        "rows": rows,
        "metrics": {
            "total_packages": len(packages),
            "total_lessons": len(lessons),
            "attendance_rate": _pct(attended, len(lessons)),
            "active_students": len(active_students),
        },
    }


# --- Teachers ---


def build_teachers(
    users: list[dict],
    lessons: list[dict],
    relations: list[dict],
    instruments: list[dict],
    *,
    teacher_role_id: str,
    expansion: ViewExpansion | None = None,
) -> dict:
    """
    Per-teacher workload.

    Student counts come from the relation table, not from lesson history: a
    teacher with lessons but no relation rows reports 0 students.
    """
    users_by_id = index_by_id(users)
    instrument_names = name_lookup(instruments)
    lessons_by_teacher = group_by(lessons, "teacher", default=None)
    relations_by_teacher = group_by(relations, "teacher", default=None)
    teachers_level = _level(expansion, "teacher")

    rows = []
    for teacher in users:
        if not is_role(teacher, teacher_role_id, "teacher"):
            continue
        tid = teacher.get("id")
        if not is_identifier(tid):
            continue
        teacher_lessons = lessons_by_teacher.get(tid, [])
        teacher_relations = relations_by_teacher.get(tid, [])
        counts = _status_counts(teacher_lessons)
        distinct_students = {
            r.get("student") for r in teacher_relations if is_identifier(r.get("student"))
        }
        instrument_list: list[str] = []
        for relation in teacher_relations:
            name = resolve(instrument_names, relation.get("instrument")) or UNKNOWN
            if name not in instrument_list:
                instrument_list.append(name)
        key = str(tid)
        expanded = teachers_level.is_expanded(key)
        rows.append(
            {
                "key": key,
                "id": tid,
                "name": full_name(teacher) or UNKNOWN_TEACHER,
                "total_students": len(distinct_students),
                "total_lessons": len(teacher_lessons),
                "completed_lessons": counts[LessonStatus.ATTENDED.value],
                "cancelled_lessons": counts[LessonStatus.CANCELLED.value],
                "pending_lessons": counts[LessonStatus.PENDING.value],
                "instruments": instrument_list,
                "average_completion_rate": _pct(
                    counts[LessonStatus.ATTENDED.value], len(teacher_lessons)
                ),
                "expanded": expanded,
                "sub_rows": [
                    {
                        "student_id": r.get("student"),
                        "student_name": full_name(resolve(users_by_id, r.get("student"), None))
                        or UNKNOWN_STUDENT,
                        "instrument": resolve(instrument_names, r.get("instrument")) or UNKNOWN,
                    }
                    for r in teacher_relations
                ]
                if expanded
                else [],
            }
        )
    rows.sort(key=lambda r: (r["name"], r["key"]))

    return {
        "lessons_by_teacher": [{"name": r["name"], "value": r["total_lessons"]} for r in rows],
        "students_by_teacher": [{"name": r["name"], "value": r["total_students"]} for r in rows],
        "rows": rows,
        "metrics": {
            "teacher_count": len(rows),
            "total_lessons": sum(r["total_lessons"] for r in rows),
            "average_completion_rate": _pct(
                sum(r["completed_lessons"] for r in rows),
                sum(r["total_lessons"] for r in rows),
            ),
        },
    }


# --- Instruments ---


def build_instruments(
    instruments: list[dict],
    student_instruments: list[dict],
    teacher_instruments: list[dict],
) -> dict:
    """Students and teachers per instrument from the instrument junction tables."""
    def instrument_id(row: dict) -> Any:
        ident = row.get("instruments_id")
        return ident if is_identifier(ident) else None

    students = count_by(student_instruments, instrument_id)
    teachers = count_by(teacher_instruments, instrument_id)

    rows = [
        {
            "id": ident,
            "name": record.get("name") or UNKNOWN,
            "students": resolve(students, ident, 0),
            "teachers": resolve(teachers, ident, 0),
        }
        for ident, record in index_by_id(instruments).items()
    ]
    rows.sort(key=lambda r: (str(r["name"]), str(r["id"])))

    total_students = sum(r["students"] for r in rows)
    total_teachers = sum(r["teachers"] for r in rows)
    for row in rows:
        row["student_share"] = _pct(row["students"], total_students)
        row["teacher_share"] = _pct(row["teachers"], total_teachers)

    return {
        "rows": rows,
        "student_distribution": [{"name": r["name"], "value": r["students"]} for r in rows],
        "total_students": total_students,
        "total_teachers": total_teachers,
        "student_teacher_ratio": ratio(total_students, total_teachers),
    }
