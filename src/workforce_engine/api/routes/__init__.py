"""API routes."""

from workforce_engine.api.routes.attendance import router as attendance_router
from workforce_engine.api.routes.health import router as health_router
from workforce_engine.api.routes.leave import router as leave_router
from workforce_engine.api.routes.payslips import router as payslips_router
from workforce_engine.api.routes.periods import router as periods_router
from workforce_engine.api.routes.policy import router as policy_router
from workforce_engine.api.routes.salaries import router as salaries_router

__all__ = [
    "attendance_router",
    "health_router",
    "leave_router",
    "payslips_router",
    "periods_router",
    "policy_router",
    "salaries_router",
]
