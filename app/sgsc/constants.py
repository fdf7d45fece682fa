"""
Stored enumeration codes and their display labels.

Codes are what the database holds; labels are what forms, tables and
exported reports show.
"""

PERSONNEL_STATUSES = (
    ("activo", "Active"),
    ("inactivo", "Inactive"),
)

# Positions that qualify someone for the supervisor lookup.
SUPERVISOR_POSITIONS = ("Supervisor", "Jefe de turno", "Coordinador")

POSITIONS = (
    ("Sereno", "Sereno"),
    ("Operador de camaras", "Camera operator"),
    ("Conductor", "Driver"),
    ("Supervisor", "Supervisor"),
    ("Jefe de turno", "Shift lead"),
    ("Coordinador", "Coordinator"),
)

PATROL_STATUSES = (
    ("en_curso", "In progress"),
    ("completado", "Completed"),
    ("interrumpido", "Interrupted"),
    ("cancelado", "Cancelled"),
)

INCIDENT_STATUSES = (
    ("pendiente", "Pending"),
    ("resuelto", "Resolved"),
    ("derivado_pnp", "Referred to PNP"),
)

INCIDENT_TYPES = (
    ("Robo", "Robbery"),
    ("Hurto", "Theft"),
    ("Accidente", "Accident"),
    ("Disturbio", "Disturbance"),
    ("Violencia Familiar", "Domestic violence"),
)

INCIDENT_REPORTERS = (
    ("COE", "COE"),
    ("Serenazgo a pie", "Foot patrol"),
    ("Operador de movil", "Vehicle operator"),
    ("Motorizado", "Motorcycle unit"),
    ("Camaras", "Cameras"),
)

ATTENDANCE_STATUSES = (
    ("asistio_firmo", "Attended and signed"),
    ("falta", "Absent"),
    ("descanso_semanal", "Weekly rest"),
    ("feriado", "Holiday"),
    ("permiso_medico", "Medical leave"),
)

EQUIPMENT_STATUSES = (
    ("operativo", "Operational"),
    ("con_fallas", "Faulty"),
    ("fuera_servicio", "Out of service"),
    ("mantenimiento", "Maintenance"),
)

RECORDING_STATUSES = (
    ("grabando", "Recording"),
    ("pausado", "Paused"),
    ("detenido", "Stopped"),
    ("error", "Error"),
)

VEHICLE_STATUSES = (
    ("operativo", "Operational"),
    ("mantenimiento", "Maintenance"),
    ("fuera_servicio", "Out of service"),
)

VEHICLE_CONDITIONS = (
    ("excelente", "Excellent"),
    ("bueno", "Good"),
    ("regular", "Fair"),
    ("malo", "Poor"),
    ("averiado", "Broken down"),
)

VOUCHER_TYPES = (
    ("viaticos", "Travel allowance"),
    ("combustible", "Fuel"),
    ("mantenimiento", "Maintenance"),
    ("materiales", "Materials"),
    ("servicios", "Services"),
    ("emergencia", "Emergency"),
    ("otros", "Other"),
)

VOUCHER_STATUSES = (
    ("pendiente", "Pending"),
    ("aprobado", "Approved"),
    ("rechazado", "Rejected"),
    ("pagado", "Paid"),
    ("vencido", "Expired"),
)

PAYMENT_METHODS = (
    ("efectivo", "Cash"),
    ("transferencia", "Bank transfer"),
    ("cheque", "Cheque"),
    ("tarjeta", "Card"),
)

CURRENCIES = (
    ("PEN", "Soles (S/)"),
    ("USD", "Dollars ($)"),
)

# Roles of the navigation menu.
ROLES = (
    ("admin", "Administrator"),
    ("obseciu", "Citizen security observatory"),
    ("coe", "Emergency operations centre"),
    ("supervisor", "Supervisor"),
    ("camaras", "Camera operator"),
)


def codes(choices) -> tuple[str, ...]:
    return tuple(code for code, _label in choices)


def label_for(choices, code: str | None) -> str:
    if code is None:
        return ""
    return dict(choices).get(code, code)


# Every status code any screen stores, for the report "status" formatter.
STATUS_LABELS: dict[str, str] = {}
for _choices in (
    PERSONNEL_STATUSES,
    PATROL_STATUSES,
    INCIDENT_STATUSES,
    ATTENDANCE_STATUSES,
    VEHICLE_STATUSES,
    EQUIPMENT_STATUSES,
    RECORDING_STATUSES,
    VOUCHER_STATUSES,
):
    STATUS_LABELS.update(dict(_choices))
STATUS_LABELS["en_progreso"] = "In progress"
