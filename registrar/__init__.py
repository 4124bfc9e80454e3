"""
Registrar: enrollment and academic records domain model.

Keeps students, courses, registrations and grade results mutually consistent
and exposes the read-side projections the dashboards are built on.
"""

__version__ = "1.0.0"
__author__ = "Registrar Development Team"
__description__ = "Enrollment and academic records domain model"
