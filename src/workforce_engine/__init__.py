"""Multi-tenant time and compensation engine.

Attendance sessions, leave approval, salary configuration, payroll periods
and deterministic payslip generation.
"""

__version__ = "1.0.0"
