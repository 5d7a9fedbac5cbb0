"""Schemas for dashboard API (one response model per view)."""

from decimal import Decimal
from enum import StrEnum

from src.shared.schemas.base import BaseSchema, ChartPoint


class DashboardView(StrEnum):
    OVERVIEW = "overview"
    FINANCIAL = "financial"
    LESSONS = "lessons"
    PACKAGES = "packages"
    STUDENTS = "students"
    TEACHERS = "teachers"
    INSTRUMENTS = "instruments"


# --- Overview ---

class OverviewResponse(BaseSchema):
    """Home page cards."""

    teacher_count: int = 0
    student_count: int = 0
    instrument_count: int = 0
    monthly_lessons: int = 0  # lessons starting within the last RECENT_LESSONS_DAYS
    total_packages: int = 0
    total_revenue: Decimal = Decimal("0")


# --- Financial ---

class MonthlyRevenuePoint(BaseSchema):
    month: str  # YYYY-MM
    revenue: Decimal
    transaction_count: int


class PaymentRow(BaseSchema):
    id: int | str | None = None
    payment_id: str | None = None
    payment_date: str | None = None
    package_name: str | None = None
    student_name: str
    amount: Decimal
    currency: str | None = None


class MonthlyPaymentRow(BaseSchema):
    key: str
    month: str
    revenue: Decimal
    transaction_count: int
    average_value: Decimal | str  # "N/A" when the month has no payments
    expanded: bool = False
    sub_rows: list[PaymentRow] = []


class FinancialMetrics(BaseSchema):
    total_revenue: Decimal
    total_transactions: int
    average_transaction_value: Decimal | str  # "N/A" when there are no payments
    active_packages: int


class FinancialResponse(BaseSchema):
    monthly_revenue: list[MonthlyRevenuePoint]
    instrument_revenue: list[ChartPoint]
    # Payments whose package (or its instrument) cannot be resolved
    unattributed_revenue: Decimal
    monthly_details: list[MonthlyPaymentRow]
    metrics: FinancialMetrics


# --- Lessons ---

class LessonTrendPoint(BaseSchema):
    month: str
    total: int
    attended: int
    cancelled: int
    pending: int


class LessonRow(BaseSchema):
    id: int | str | None = None
    start_datetime: str | None = None
    status: str | None = None
    package_name: str | None = None
    student_name: str
    teacher_name: str
    remarks: str | None = None


class MonthlyLessonRow(BaseSchema):
    key: str
    month: str
    total: int
    attended: int
    cancelled: int
    pending: int
    attendance_rate: float  # 0-100
    expanded: bool = False
    sub_rows: list[LessonRow] = []


class LessonMetrics(BaseSchema):
    total_lessons: int
    attendance_rate: float
    cancellation_rate: float
    pending_lessons: int


class LessonsResponse(BaseSchema):
    status_distribution: list[ChartPoint]
    monthly_trend: list[LessonTrendPoint]
    duration_distribution: list[ChartPoint]  # name = package duration in minutes
    monthly_details: list[MonthlyLessonRow]
    metrics: LessonMetrics


# --- Packages ---

class RecentLesson(BaseSchema):
    id: int | str | None = None
    start_datetime: str | None = None
    status: str | None = None


class PackageDetailRow(BaseSchema):
    key: str
    id: int | str | None = None
    instrument: str
    duration: int | float | None = None
    status: str | None = None
    start_datetime: str | None = None
    end_datetime: str | None = None
    remarks: str | None = None
    total: int
    completed: int
    quota: int
    completion_rate: float
    remaining_lessons: int
    expanded: bool = False
    recent_lessons: list[RecentLesson] = []


class PackageStudentRow(BaseSchema):
    key: str  # "<package name>::<student id>"
    student_id: int | str | None = None
    student_name: str
    package_count: int
    active_packages: int
    total_lessons: int
    completed: int
    quota: int
    completion_rate: float
    expanded: bool = False
    sub_rows: list[PackageDetailRow] = []


class PackageNameRow(BaseSchema):
    key: str
    package_name: str
    student_count: int
    active_packages: int
    total_lessons: int
    expanded: bool = False
    sub_rows: list[PackageStudentRow] = []


class PackageMetrics(BaseSchema):
    total_packages: int
    active_packages: int
    completion_rate: float  # completed packages / all packages, 0-100
    average_duration: int | str  # minutes, "N/A" without packages


class PackagesResponse(BaseSchema):
    status_distribution: list[ChartPoint]
    instrument_distribution: list[ChartPoint]
    rows: list[PackageNameRow]
    metrics: PackageMetrics


# --- Students ---

class PackageProgressRow(BaseSchema):
    package_id: int | str | None = None
    package_name: str | None = None
    instrument: str
    status: str | None = None
    total: int
    completed: int
    quota: int
    completion_rate: float
    remaining_lessons: int


class StudentRow(BaseSchema):
    key: str
    student_id: int | str | None = None
    student_name: str
    package_count: int
    active_packages: int  # packages below 100% completion
    average_completion_rate: float
    expanded: bool = False
    sub_rows: list[PackageProgressRow] = []  # highest completion rate first


class StudentMetrics(BaseSchema):
    total_packages: int
    total_lessons: int
    attendance_rate: float
    active_students: int  # distinct students with an active package


class StudentsResponse(BaseSchema):
    packages_per_student: list[ChartPoint]
    attendance_distribution: list[ChartPoint]
    rows: list[StudentRow]
    metrics: StudentMetrics


# --- Teachers ---

class TeacherStudentRow(BaseSchema):
    student_id: int | str | None = None
    student_name: str
    instrument: str


class TeacherRow(BaseSchema):
    key: str
    id: int | str
    name: str
    total_students: int  # distinct students in the relation table
    total_lessons: int
    completed_lessons: int
    cancelled_lessons: int
    pending_lessons: int
    instruments: list[str]
    average_completion_rate: float
    expanded: bool = False
    sub_rows: list[TeacherStudentRow] = []


class TeacherMetrics(BaseSchema):
    teacher_count: int
    total_lessons: int
    average_completion_rate: float


class TeachersResponse(BaseSchema):
    lessons_by_teacher: list[ChartPoint]
    students_by_teacher: list[ChartPoint]
    rows: list[TeacherRow]
    metrics: TeacherMetrics


# --- Instruments ---

class InstrumentRow(BaseSchema):
    id: int | str
    name: str
    students: int
    teachers: int
    student_share: float
    teacher_share: float


class InstrumentsResponse(BaseSchema):
    rows: list[InstrumentRow]
    student_distribution: list[ChartPoint]
    total_students: int
    total_teachers: int
    student_teacher_ratio: float | str  # "N/A" without teachers


# --- View sessions (expansion state) ---

class ViewSessionCreate(BaseSchema):
    view: DashboardView


class ToggleRequest(BaseSchema):
    level: str
    key: str


class ViewSessionResponse(BaseSchema):
    session_id: str
    view: DashboardView
    levels: list[str]
    expanded: dict[str, list[str]]


class ToggleResponse(ViewSessionResponse):
    level: str
    key: str
    is_expanded: bool
