"""LMS Attendance Sync package.

This package is organized by feature modules (portal, attendance, jobs, acquisition, ...)
with a thin bootstrap layer and SOLID service/repository layers.
"""
